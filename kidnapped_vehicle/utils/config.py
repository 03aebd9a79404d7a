"""
Filter configuration and parameter validation.

Default values follow the reference driver of the kidnapped vehicle project:
10 Hz time step, 50 m sensor range, GPS-like process noise and a 0.3 m
landmark measurement noise per axis.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional, Tuple

import numpy as np

from kidnapped_vehicle.errors import ConfigurationError

logger = logging.getLogger(__name__)


def check_num_particles(num_particles):
    """Validate the particle count and return it as ``int``."""
    if isinstance(num_particles, bool) or int(num_particles) != num_particles:
        raise ConfigurationError(
            f"num_particles must be an integer, got {num_particles!r}"
        )
    if num_particles <= 0:
        raise ConfigurationError(
            f"num_particles must be positive, got {num_particles}"
        )
    return int(num_particles)


def check_positive(name, value):
    """Validate a strictly positive finite scalar and return it as ``float``."""
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be positive and finite, got {value}")
    return value


def check_std(name, std, size):
    """
    Validate a vector of standard deviations.

    Parameters
    ----------
    name : str
        Parameter name used in the error message.
    std : array_like
        Standard deviations, one per axis.
    size : int
        Expected number of axes.

    Returns
    -------
    ndarray of shape (size,)
        The standard deviations as floats.

    Raises
    ------
    ConfigurationError
        If the shape is wrong or any entry is non-positive or not finite.
    """
    std = np.asarray(std, dtype=float).ravel()
    if std.shape != (size,):
        raise ConfigurationError(
            f"{name} must have {size} entries, got {std.shape[0]}"
        )
    if not np.all(np.isfinite(std)) or np.any(std <= 0):
        raise ConfigurationError(
            f"{name} must contain positive standard deviations, got {std.tolist()}"
        )
    return std


@dataclass
class FilterConfig:
    """
    Parameters of a particle filter run.

    Attributes
    ----------
    num_particles : int
        Number of particles N, fixed for the life of the filter.
    delta_t : float
        Time between timesteps (s).
    sensor_range : float
        Maximum landmark observation range (m).
    sigma_pos : tuple of float
        GPS / process noise standard deviations [σ_x (m), σ_y (m), σ_θ (rad)].
    sigma_landmark : tuple of float
        Landmark measurement noise standard deviations [σ_x (m), σ_y (m)].
    candidate_filter : str
        Landmark candidate policy for association, one of
        ``"particle_range"``, ``"observation_range"`` or ``"none"``. A
        ``CandidateFilter`` member is accepted and stored as its value.
    resampling : str
        Resampling scheme, ``"multinomial"`` or ``"systematic"``.
    seed : int, optional
        Seed of the random generator. ``None`` draws fresh OS entropy.
    """

    num_particles: int = 100
    delta_t: float = 0.1
    sensor_range: float = 50.0
    sigma_pos: Tuple[float, float, float] = field(default=(0.3, 0.3, 0.01))
    sigma_landmark: Tuple[float, float] = field(default=(0.3, 0.3))
    candidate_filter: str = "particle_range"
    resampling: str = "multinomial"
    seed: Optional[int] = None

    def __post_init__(self):
        # the strategy registries live in localization, which imports this module
        from kidnapped_vehicle.localization.association import CandidateFilter

        self.sigma_pos = tuple(float(s) for s in self.sigma_pos)
        self.sigma_landmark = tuple(float(s) for s in self.sigma_landmark)
        self.candidate_filter = CandidateFilter.parse(self.candidate_filter).value
        self.validate()

    def validate(self):
        """Raise ``ConfigurationError`` if any parameter is invalid."""
        from kidnapped_vehicle.localization.association import CandidateFilter
        from kidnapped_vehicle.localization.resampling import get_resampler

        check_num_particles(self.num_particles)
        check_positive("delta_t", self.delta_t)
        check_positive("sensor_range", self.sensor_range)
        check_std("sigma_pos", self.sigma_pos, 3)
        check_std("sigma_landmark", self.sigma_landmark, 2)
        CandidateFilter.parse(self.candidate_filter)
        get_resampler(self.resampling)

    @classmethod
    def from_dict(cls, params):
        """Build a config from a mapping, rejecting unknown keys."""
        known = set(cls.__dataclass_fields__)
        unknown = set(params) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        config = cls(**params)
        logger.debug(f"Loaded filter configuration: {config}")
        return config

    def to_dict(self):
        return asdict(self)
