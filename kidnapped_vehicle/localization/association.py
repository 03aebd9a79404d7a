"""
Nearest-neighbour data association.

Each map-frame observation is matched to the closest candidate landmark.
Which landmarks are candidates is a policy, :class:`CandidateFilter`:

- ``PARTICLE_RANGE``: landmarks within sensor range of the particle position.
- ``OBSERVATION_RANGE``: landmarks within sensor range of each transformed
  observation.
- ``NONE``: every landmark in the map.

Matches are not exclusive: several observations may share a landmark.
"""

from enum import Enum

import numpy as np

from kidnapped_vehicle.errors import ConfigurationError, NoCandidateLandmarkError


class CandidateFilter(Enum):
    PARTICLE_RANGE = "particle_range"
    OBSERVATION_RANGE = "observation_range"
    NONE = "none"

    @classmethod
    def parse(cls, value):
        """Accept a member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"candidate_filter must be one of {[f.value for f in cls]}, "
                f"got {value!r}"
            ) from None


def nearest_landmarks(points, landmark_positions, candidate_mask=None):
    """
    Index of the closest candidate landmark for every observation.

    Parameters
    ----------
    points : array_like, shape (M, 2)
        Observations in the map frame.
    landmark_positions : array_like, shape (L, 2)
        Landmark positions in map order.
    candidate_mask : array_like of bool, shape (L,) or (M, L), optional
        Candidate landmarks, shared by all observations or given per
        observation. Default: every landmark.

    Returns
    -------
    ndarray of int, shape (M,)
        Landmark index per observation. Ties go to the first landmark in
        map order.

    Raises
    ------
    NoCandidateLandmarkError
        If an observation has no candidate landmark.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    landmark_positions = np.asarray(landmark_positions, dtype=float).reshape(-1, 2)
    if len(points) == 0:
        return np.empty(0, dtype=int)

    distances = np.hypot(
        points[:, np.newaxis, 0] - landmark_positions[np.newaxis, :, 0],
        points[:, np.newaxis, 1] - landmark_positions[np.newaxis, :, 1],
    )
    if candidate_mask is not None:
        mask = np.broadcast_to(np.asarray(candidate_mask, dtype=bool), distances.shape)
        distances = np.where(mask, distances, np.inf)
    else:
        mask = np.ones(distances.shape, dtype=bool)

    has_candidate = mask.any(axis=1)
    if not np.all(has_candidate):
        missing = np.flatnonzero(~has_candidate)
        raise NoCandidateLandmarkError(
            f"No candidate landmark for observation(s) {missing.tolist()} "
            f"({landmark_positions.shape[0]} landmarks in map)"
        )

    # argmin returns the first minimum, which keeps ties in map order
    return np.argmin(distances, axis=1)


def build_candidate_mask(
    points, pose, landmark_positions, sensor_range, candidate_filter
):
    """Boolean candidate mask for :func:`nearest_landmarks` under a policy."""
    candidate_filter = CandidateFilter.parse(candidate_filter)
    landmark_positions = np.asarray(landmark_positions, dtype=float).reshape(-1, 2)

    if candidate_filter is CandidateFilter.NONE:
        return np.ones(len(landmark_positions), dtype=bool)
    if candidate_filter is CandidateFilter.PARTICLE_RANGE:
        return (
            np.hypot(
                landmark_positions[:, 0] - pose[0], landmark_positions[:, 1] - pose[1]
            )
            <= sensor_range
        )
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    return (
        np.hypot(
            points[:, np.newaxis, 0] - landmark_positions[np.newaxis, :, 0],
            points[:, np.newaxis, 1] - landmark_positions[np.newaxis, :, 1],
        )
        <= sensor_range
    )


def associate(
    points,
    pose,
    landmarks,
    sensor_range,
    candidate_filter=CandidateFilter.PARTICLE_RANGE,
):
    """
    Associate the map-frame observations of one particle with landmarks.

    Parameters
    ----------
    points : array_like, shape (M, 2)
        Observations already transformed into the map frame by this particle.
    pose : array_like, shape (3,)
        Particle pose, used by the ``PARTICLE_RANGE`` policy.
    landmarks : Map
        Known landmarks.
    sensor_range : float
        Sensor range (m).
    candidate_filter : CandidateFilter or str
        Candidate landmark policy.

    Returns
    -------
    ndarray of int, shape (M,)
        Index into ``landmarks`` of the match of each observation.
    """
    mask = build_candidate_mask(
        points, pose, landmarks.positions, sensor_range, candidate_filter
    )
    return nearest_landmarks(points, landmarks.positions, mask)


def associate_particles(
    map_points,
    poses,
    landmarks,
    sensor_range,
    candidate_filter=CandidateFilter.PARTICLE_RANGE,
):
    """
    Associate observations for every particle.

    Parameters
    ----------
    map_points : ndarray, shape (N, M, 2)
        Observations transformed by each particle, as returned by
        :func:`~kidnapped_vehicle.localization.geometry.transform_observations`.
    poses : ndarray, shape (N, 3)
        Particle poses.

    Returns
    -------
    ndarray of int, shape (N, M)
        Landmark index of each (particle, observation) pair.
    """
    map_points = np.asarray(map_points, dtype=float)
    indexes = np.empty(map_points.shape[:2], dtype=int)
    for i, (points, pose) in enumerate(zip(map_points, poses)):
        indexes[i] = associate(points, pose, landmarks, sensor_range, candidate_filter)
    return indexes
