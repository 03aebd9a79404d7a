"""
Constant turn rate and velocity (CTRV) motion model.

See Probabilistic Robotics, page 124, Table 5.3 for the sampling form of a
velocity motion model. Each particle is propagated with the kinematic
bicycle equations and then perturbed with independent Gaussian process noise.
"""

import numpy as np

from kidnapped_vehicle.utils.config import check_positive, check_std

# Below this yaw rate the straight-line equations are used to avoid dividing
# by a vanishing yaw rate.
YAW_RATE_EPSILON = 1e-4


def move(poses, delta_t, velocity, yaw_rate):
    """
    Noise-free CTRV prediction of a batch of poses.

    Motion Model
    ------------
    For |ω| > ε:

        x_t = x_{t-1} + v/ω * (sin(θ_{t-1} + ω Δt) - sin(θ_{t-1}))
        y_t = y_{t-1} + v/ω * (cos(θ_{t-1}) - cos(θ_{t-1} + ω Δt))

    Otherwise (straight line):

        x_t = x_{t-1} + v Δt cos(θ_{t-1})
        y_t = y_{t-1} + v Δt sin(θ_{t-1})

    Always θ_t = θ_{t-1} + ω Δt. The heading is not wrapped.

    Parameters
    ----------
    poses : array_like, shape (N, 3)
        Poses [x, y, θ].
    delta_t : float
        Elapsed time (s), must be positive.
    velocity : float
        Linear velocity v (m/s).
    yaw_rate : float
        Yaw rate ω (rad/s).

    Returns
    -------
    ndarray, shape (N, 3)
        Predicted poses.
    """
    delta_t = check_positive("delta_t", delta_t)
    poses = np.array(poses, dtype=float).reshape(-1, 3)
    theta = poses[:, 2]

    if abs(yaw_rate) > YAW_RATE_EPSILON:
        theta_new = theta + yaw_rate * delta_t
        poses[:, 0] += (velocity / yaw_rate) * (np.sin(theta_new) - np.sin(theta))
        poses[:, 1] += (velocity / yaw_rate) * (np.cos(theta) - np.cos(theta_new))
    else:
        poses[:, 0] += velocity * delta_t * np.cos(theta)
        poses[:, 1] += velocity * delta_t * np.sin(theta)

    poses[:, 2] = theta + yaw_rate * delta_t
    return poses


def sample_motion(poses, delta_t, velocity, yaw_rate, std_pos, rng):
    """
    Sample predicted poses from p(x_t | u_t, x_{t-1}).

    Applies :func:`move` and adds zero-mean Gaussian noise with standard
    deviations ``std_pos`` = [σ_x, σ_y, σ_θ]. A fresh noise sample is drawn
    for every particle and axis on every call.

    Returns
    -------
    ndarray, shape (N, 3)
        Noisy predicted poses.
    """
    std_pos = check_std("std_pos", std_pos, 3)
    predicted = move(poses, delta_t, velocity, yaw_rate)
    predicted += rng.normal(0.0, std_pos, size=predicted.shape)
    return predicted
