"""
Landmark measurement model and importance weights.

See Probabilistic Robotics, page 179, Table 6.4. With independent Gaussian
noise on each map axis, the likelihood of an observation matched to landmark
(μ_x, μ_y) is the bivariate normal density with zero correlation:

    p = 1 / (2π σ_x σ_y) * exp(-((x - μ_x)² / (2σ_x²) + (y - μ_y)² / (2σ_y²)))

which factors into the product of two univariate normal densities. A particle
weight is the product of p over all its observations, computed in log space.
"""

import numpy as np
from scipy import stats

from kidnapped_vehicle.utils.config import check_std


def observation_likelihood(deltas, std_landmark):
    """
    Gaussian likelihood of landmark/observation differences.

    Parameters
    ----------
    deltas : array_like, shape (..., 2)
        Differences [Δx, Δy] between matched landmark and observation (m).
    std_landmark : array_like, shape (2,)
        Measurement noise standard deviations [σ_x, σ_y] (m).

    Returns
    -------
    ndarray, shape (...)
        Densities; the maximum 1 / (2π σ_x σ_y) is reached for Δx = Δy = 0.
    """
    std_landmark = check_std("std_landmark", std_landmark, 2)
    deltas = np.asarray(deltas, dtype=float)
    prob_x = stats.norm(0, std_landmark[0]).pdf(deltas[..., 0])
    prob_y = stats.norm(0, std_landmark[1]).pdf(deltas[..., 1])
    return prob_x * prob_y


def log_particle_weights(map_points, matched_positions, std_landmark):
    """
    Log of the product of the observation likelihoods of every particle.

    Parameters
    ----------
    map_points : array_like, shape (N, M, 2)
        Observations transformed into the map frame by each particle.
    matched_positions : array_like, shape (N, M, 2)
        Position of the landmark associated with each observation.
    std_landmark : array_like, shape (2,)
        Measurement noise standard deviations [σ_x, σ_y].

    Returns
    -------
    ndarray, shape (N,)
        Σ log p over the observations of each particle; 0.0 for a particle
        without observations.
    """
    std_landmark = check_std("std_landmark", std_landmark, 2)
    map_points = np.asarray(map_points, dtype=float)
    deltas = np.asarray(matched_positions, dtype=float) - map_points
    log_prob_x = stats.norm(0, std_landmark[0]).logpdf(deltas[..., 0])
    log_prob_y = stats.norm(0, std_landmark[1]).logpdf(deltas[..., 1])
    return np.sum(log_prob_x + log_prob_y, axis=-1)


def particle_weights(map_points, matched_positions, std_landmark):
    """
    Importance weight of every particle.

    The product of the observation likelihoods is accumulated in log space
    and rescaled so that the best particle weighs 1.0:

        w^[m] = exp(log w^[m] - max_k log w^[k])

    Only the ratios between particles are meaningful.

    Returns
    -------
    ndarray, shape (N,)
        Weights in [0, 1], the best particle at 1.0. Particles without
        observations all weigh 1.0.
    """
    log_weights = log_particle_weights(map_points, matched_positions, std_landmark)
    if log_weights.size == 0:
        return log_weights
    return np.exp(log_weights - np.max(log_weights))
