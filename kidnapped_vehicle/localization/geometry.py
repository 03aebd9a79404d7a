"""
2-D rigid body transforms between the vehicle frame and the map frame.

Observations are reported by the sensor in the vehicle frame: x points
forward, y points to the left. Particles live in the map frame. Mapping a
vehicle-frame point into the map frame from the perspective of a particle
requires a rotation by the particle heading followed by a translation by the
particle position (no scaling):

    x_m = x_p + x_c * cos(θ_p) - y_c * sin(θ_p)
    y_m = y_p + x_c * sin(θ_p) + y_c * cos(θ_p)

References
----------
.. [1] LaValle, S. M. (2006). Planning Algorithms. Cambridge University
       Press. Section 3.2.2, equation 3.33.
"""

import numpy as np

from kidnapped_vehicle.data.landmarks import Observation


def vehicle_to_map(points, pose):
    """
    Transform vehicle-frame points into the map frame.

    Parameters
    ----------
    points : array_like, shape (M, 2) or (2,)
        Points [x_c, y_c] in the vehicle frame (m).
    pose : array_like, shape (3,)
        Particle pose [x_p, y_p, θ_p] in the map frame (m, m, rad).

    Returns
    -------
    ndarray
        Points in the map frame, same shape as ``points``.
    """
    points = np.asarray(points, dtype=float)
    x_p, y_p, theta_p = pose
    cos_t, sin_t = np.cos(theta_p), np.sin(theta_p)
    x_c, y_c = points[..., 0], points[..., 1]
    return np.stack(
        (x_p + x_c * cos_t - y_c * sin_t, y_p + x_c * sin_t + y_c * cos_t),
        axis=-1,
    )


def map_to_vehicle(points, pose):
    """
    Transform map-frame points into the vehicle frame of ``pose``.

    Inverse of :func:`vehicle_to_map`: translate by (-x_p, -y_p), then rotate
    by -θ_p.
    """
    points = np.asarray(points, dtype=float)
    x_p, y_p, theta_p = pose
    cos_t, sin_t = np.cos(theta_p), np.sin(theta_p)
    dx, dy = points[..., 0] - x_p, points[..., 1] - y_p
    return np.stack((dx * cos_t + dy * sin_t, -dx * sin_t + dy * cos_t), axis=-1)


def transform_observations(points, poses):
    """
    Transform every observation from the perspective of every particle.

    Each (particle, observation) pair is evaluated exactly once.

    Parameters
    ----------
    points : array_like, shape (M, 2)
        Vehicle-frame observations.
    poses : array_like, shape (N, 3)
        Particle poses.

    Returns
    -------
    ndarray, shape (N, M, 2)
        Map-frame observations, one row of M points per particle.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    poses = np.asarray(poses, dtype=float).reshape(-1, 3)

    cos_t = np.cos(poses[:, 2])[:, np.newaxis]
    sin_t = np.sin(poses[:, 2])[:, np.newaxis]
    x_c, y_c = points[np.newaxis, :, 0], points[np.newaxis, :, 1]

    x_m = poses[:, 0, np.newaxis] + x_c * cos_t - y_c * sin_t
    y_m = poses[:, 1, np.newaxis] + x_c * sin_t + y_c * cos_t
    return np.stack((x_m, y_m), axis=-1)


def transform_observation(observation, pose):
    """Map-frame copy of a single ``Observation``; the id passes through."""
    x_m, y_m = vehicle_to_map((observation.x, observation.y), pose)
    return Observation(x=float(x_m), y=float(y_m), id=observation.id)
