"""
Importance resampling (SIR step).

Resampling draws N particle indices with replacement, with probability
proportional to the importance weights. High-weight particles are likely to
be duplicated and low-weight particles are likely to disappear, while the
particle count stays N.

References
----------
.. [1] Arulampalam, M. S., et al. (2002). A tutorial on particle filters
       for online nonlinear/non-Gaussian Bayesian tracking. IEEE
       Transactions on Signal Processing, 50(2), 174-188.
.. [2] Labbe, R. Kalman and Bayesian Filters in Python, chapter 12,
       "Particle Filters" (systematic resampling).
"""

import numpy as np

from kidnapped_vehicle.errors import ConfigurationError, DegenerateWeightError


def normalize_weights(weights):
    """
    Normalized copy of ``weights``.

    Raises
    ------
    DegenerateWeightError
        If a weight is negative or not finite, or if all weights are zero.
    """
    weights = np.asarray(weights, dtype=float).ravel()
    if weights.size == 0:
        raise DegenerateWeightError("Cannot resample an empty weight vector")
    if not np.all(np.isfinite(weights)) or np.any(weights < 0):
        raise DegenerateWeightError(
            "Weights must be finite and non-negative, got "
            f"min={np.min(weights)}, max={np.max(weights)}"
        )
    total = np.sum(weights)
    if total <= 0:
        raise DegenerateWeightError(
            f"All {weights.size} particle weights are zero; "
            "the resampling distribution is undefined"
        )
    return weights / total


def multinomial_resample(weights, rng):
    """
    Draw N independent indices with probability proportional to weight.

    Parameters
    ----------
    weights : array_like, shape (N,)
        Non-negative importance weights, not necessarily normalized.
    rng : numpy.random.Generator
        Random source.

    Returns
    -------
    ndarray of int, shape (N,)
        Selected particle indices.
    """
    probabilities = normalize_weights(weights)
    n = len(probabilities)
    return rng.choice(n, size=n, replace=True, p=probabilities)


def systematic_resample(weights, rng):
    """
    Low-variance resampling with a single random offset.

    Divides [0, 1) into N equal strata and picks one point per stratum at the
    same random offset, then maps each point through the cumulative weights.
    """
    probabilities = normalize_weights(weights)
    n = len(probabilities)
    positions = (np.arange(n) + rng.uniform()) / n

    cumulative_sum = np.cumsum(probabilities)
    cumulative_sum[-1] = 1.0  # guard against round-off
    return np.searchsorted(cumulative_sum, positions, side="right")


RESAMPLERS = {
    "multinomial": multinomial_resample,
    "systematic": systematic_resample,
}


def get_resampler(name):
    try:
        return RESAMPLERS[name]
    except KeyError:
        raise ConfigurationError(
            f"resampling must be one of {sorted(RESAMPLERS)}, got {name!r}"
        ) from None


def effective_sample_size(weights):
    """
    Effective sample size 1 / Σ ŵ² of the normalized weights.

    Equals N for uniform weights and 1 when a single particle carries all
    the weight.
    """
    probabilities = normalize_weights(weights)
    return 1.0 / np.sum(probabilities**2)
