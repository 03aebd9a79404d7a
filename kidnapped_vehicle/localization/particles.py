"""
Particle and particle set representation.

A particle is a weighted hypothesis of the vehicle pose [x, y, θ]. The
particle set stores the N hypotheses column-wise so that the motion model,
the measurement model and the resampler can operate on all particles at once
with numpy, while still offering per-particle access through
:class:`Particle` value copies.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np
import pandas as pd

from kidnapped_vehicle.utils.config import check_num_particles, check_std

logger = logging.getLogger(__name__)


@dataclass
class Particle:
    """
    Single pose hypothesis.

    ``associations``, ``sense_x`` and ``sense_y`` are diagnostics only: the
    ids of the matched landmarks and their map coordinates.
    """

    id: int
    x: float
    y: float
    theta: float
    weight: float = 1.0
    associations: List[int] = field(default_factory=list)
    sense_x: List[float] = field(default_factory=list)
    sense_y: List[float] = field(default_factory=list)


class ParticleSet:
    """
    Fixed-size, ordered set of weighted particles.

    Parameters
    ----------
    poses : array_like, shape (N, 3)
        Particle poses [x, y, θ] in the map frame.
    weights : array_like, shape (N,), optional
        Importance weights. Default: 1.0 for every particle.
    ids : array_like, shape (N,), optional
        Particle identifiers. Default: 0..N-1.

    Attributes
    ----------
    poses : ndarray, shape (N, 3)
        Pose hypotheses, mutated in place by the motion model.
    weights : ndarray, shape (N,)
        Importance weights, overwritten by each measurement update.
    ids : ndarray, shape (N,)
        Identifiers, unique within a generation.
    associations, sense_x, sense_y : list of list
        Per-particle diagnostics attached with :meth:`set_associations`.
    """

    def __init__(self, poses, weights=None, ids=None):
        self.poses = np.array(poses, dtype=float).reshape(-1, 3)
        n = len(self.poses)
        check_num_particles(n)

        self.weights = (
            np.ones(n) if weights is None else np.array(weights, dtype=float).ravel()
        )
        self.ids = np.arange(n) if ids is None else np.array(ids, dtype=int).ravel()
        if self.weights.shape != (n,) or self.ids.shape != (n,):
            raise ValueError(
                f"weights and ids must have {n} entries, got "
                f"{self.weights.shape[0]} and {self.ids.shape[0]}"
            )

        self.associations = [[] for _ in range(n)]
        self.sense_x = [[] for _ in range(n)]
        self.sense_y = [[] for _ in range(n)]

    @classmethod
    def from_particles(cls, particles):
        """Build a set from a sequence of :class:`Particle`."""
        particles = list(particles)
        particle_set = cls(
            [[p.x, p.y, p.theta] for p in particles],
            weights=[p.weight for p in particles],
            ids=[p.id for p in particles],
        )
        for i, p in enumerate(particles):
            particle_set.set_associations(i, p.associations, p.sense_x, p.sense_y)
        return particle_set

    def __len__(self):
        return len(self.poses)

    def __getitem__(self, index):
        x, y, theta = self.poses[index]
        return Particle(
            id=int(self.ids[index]),
            x=float(x),
            y=float(y),
            theta=float(theta),
            weight=float(self.weights[index]),
            associations=list(self.associations[index]),
            sense_x=list(self.sense_x[index]),
            sense_y=list(self.sense_y[index]),
        )

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __repr__(self):
        return f"ParticleSet(N={len(self)})"

    @property
    def x(self):
        return self.poses[:, 0]

    @property
    def y(self):
        return self.poses[:, 1]

    @property
    def theta(self):
        return self.poses[:, 2]

    def take(self, indexes):
        """
        New generation made of value copies of the selected particles.

        Poses, weights and diagnostics are copied; ids are renumbered 0..N-1
        so that they stay unique within the new generation.
        """
        indexes = np.asarray(indexes, dtype=int)
        selected = ParticleSet(self.poses[indexes], weights=self.weights[indexes])
        selected.associations = [list(self.associations[i]) for i in indexes]
        selected.sense_x = [list(self.sense_x[i]) for i in indexes]
        selected.sense_y = [list(self.sense_y[i]) for i in indexes]
        return selected

    def copy(self):
        copied = self.take(np.arange(len(self)))
        copied.ids = self.ids.copy()
        return copied

    def set_associations(self, index, associations, sense_x, sense_y):
        """
        Attach diagnostic associations to one particle.

        Parameters
        ----------
        index : int
            Position of the particle in the set.
        associations : sequence of int
            Ids of the landmarks matched by each observation.
        sense_x, sense_y : sequence of float
            Map coordinates of each match.
        """
        if not len(associations) == len(sense_x) == len(sense_y):
            raise ValueError(
                "associations, sense_x and sense_y must have the same length"
            )
        self.associations[index] = [int(a) for a in associations]
        self.sense_x[index] = [float(s) for s in sense_x]
        self.sense_y[index] = [float(s) for s in sense_y]

    def best_index(self):
        """Index of the highest weight particle (first one on ties)."""
        return int(np.argmax(self.weights))

    def mean_pose(self):
        """Unweighted mean pose [x, y, θ] of the set."""
        return np.mean(self.poses, axis=0)

    def weighted_mean_pose(self):
        """
        Weight-averaged pose; falls back to :meth:`mean_pose` when all
        weights are zero.
        """
        total = np.sum(self.weights)
        if total <= 0:
            return self.mean_pose()
        return np.average(self.poses, axis=0, weights=self.weights)

    def to_dataframe(self):
        """Particle set as a DataFrame with columns id, x, y, theta, weight."""
        frame = pd.DataFrame(self.poses, columns=["x", "y", "theta"])
        frame.insert(0, "id", self.ids)
        frame["weight"] = self.weights
        return frame


def initialize_particles(num_particles, x, y, theta, std, rng):
    """
    Sample the initial particle set around a prior pose.

    Particles are drawn independently per axis:

        x_0^[m] ~ N(x, σ_x²)
        y_0^[m] ~ N(y, σ_y²)
        θ_0^[m] ~ N(θ, σ_θ²)

    and every weight is set to 1.0.

    Parameters
    ----------
    num_particles : int
        Number of particles N (> 0).
    x, y, theta : float
        Prior pose, typically a GPS fix (m, m, rad).
    std : array_like, shape (3,)
        Prior standard deviations [σ_x, σ_y, σ_θ].
    rng : numpy.random.Generator
        Random source.

    Returns
    -------
    ParticleSet

    Raises
    ------
    ConfigurationError
        If ``num_particles`` or any standard deviation is not positive.
    """
    num_particles = check_num_particles(num_particles)
    std = check_std("std", std, 3)

    poses = rng.normal(loc=[x, y, theta], scale=std, size=(num_particles, 3))
    logger.debug(
        f"Sampled {num_particles} particles around ({x:.3f}, {y:.3f}, {theta:.3f})"
    )
    return ParticleSet(poses)
