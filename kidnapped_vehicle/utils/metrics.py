"""
Localization evaluation metrics.

This module provides the per-timestep pose error used to grade a particle
filter run against ground truth, together with trajectory-level statistics
such as the Absolute Trajectory Error (ATE). Trajectory metrics operate on
pandas DataFrames indexed by timestep for robust alignment.
"""

import logging
from typing import Tuple

import numpy as np
import pandas as pd

# Configure module logger
logger = logging.getLogger(__name__)

# Pass thresholds of the kidnapped vehicle project
MAX_TRANSLATION_ERROR = 1.0
MAX_YAW_ERROR = 0.05


def get_error(groundtruth, estimate):
    """
    Absolute pose error between ground truth and an estimate.

    Parameters
    ----------
    groundtruth : array_like, shape (3,)
        True pose [x, y, θ].
    estimate : array_like, shape (3,)
        Estimated pose [x, y, θ].

    Returns
    -------
    ndarray, shape (3,)
        [|Δx|, |Δy|, |Δθ|] with the yaw error wrapped into [0, π].
    """
    groundtruth = np.asarray(groundtruth, dtype=float)
    estimate = np.asarray(estimate, dtype=float)
    error = np.abs(estimate - groundtruth)
    yaw_error = np.mod(error[2], 2.0 * np.pi)
    error[2] = min(yaw_error, 2.0 * np.pi - yaw_error)
    return error


def check_errors(
    error,
    max_translation_error: float = MAX_TRANSLATION_ERROR,
    max_yaw_error: float = MAX_YAW_ERROR,
) -> bool:
    """
    Whether a pose error is within the pass thresholds.

    Parameters
    ----------
    error : array_like, shape (3,)
        Error as returned by :func:`get_error` (or its cumulative mean).
    max_translation_error : float, optional
        Maximum x and y error (m). Default: 1.0.
    max_yaw_error : float, optional
        Maximum yaw error (rad). Default: 0.05.
    """
    error = np.asarray(error, dtype=float)
    passed = bool(
        error[0] < max_translation_error
        and error[1] < max_translation_error
        and error[2] < max_yaw_error
    )
    if not passed:
        logger.warning(
            f"⚠ Error {np.round(error, 4).tolist()} exceeds thresholds "
            f"(translation {max_translation_error} m, yaw {max_yaw_error} rad)"
        )
    return passed


def compute_ate(
    estimated_states: pd.DataFrame,
    groundtruth_data: pd.DataFrame,
    verbose: bool = True
) -> float:
    """
    Compute Absolute Trajectory Error (ATE) using RMSE with timestep matching.

    Parameters
    ----------
    estimated_states : pd.DataFrame
        Estimated trajectory indexed by timestep, with columns ['x', 'y'] at
        minimum. Typically ``pf.states_df`` after ``pf.build_dataframes()``.
    groundtruth_data : pd.DataFrame
        Ground truth trajectory indexed by timestep, with columns ['x', 'y'].
        Typically ``pf.gt``.
    verbose : bool, optional
        If True, log alignment statistics. Default: True.

    Returns
    -------
    float
        Root Mean Squared Error (RMSE) of position errors in meters.

    Raises
    ------
    ValueError
        If inputs are not DataFrames or missing required columns.
    RuntimeError
        If timestep alignment produces no matching frames.

    Examples
    --------
    >>> from kidnapped_vehicle.data.reader import Reader
    >>> from kidnapped_vehicle.localization.PF import ParticleFilter
    >>> from kidnapped_vehicle.utils.metrics import compute_ate
    >>>
    >>> reader = Reader("data")
    >>> pf = ParticleFilter(num_particles=100, rng=42)
    >>> pf.run(reader)
    >>> pf.build_dataframes()
    >>> ate = compute_ate(pf.states_df, pf.gt)
    >>> print(f"Particle filter ATE: {ate:.3f} m")
    """
    # Validate input types
    if not isinstance(estimated_states, pd.DataFrame):
        raise ValueError(
            f"estimated_states must be a DataFrame, got {type(estimated_states).__name__}. "
            f"Did you call build_dataframes() and use states_df instead of states?"
        )

    if not isinstance(groundtruth_data, pd.DataFrame):
        raise ValueError(
            f"groundtruth_data must be a DataFrame, got {type(groundtruth_data).__name__}. "
            f"Did you call build_dataframes() and use gt instead of groundtruth_data?"
        )

    # Validate required columns
    required_cols = ['x', 'y']
    for col in required_cols:
        if col not in estimated_states.columns:
            raise ValueError(
                f"estimated_states missing required column '{col}'. "
                f"Available columns: {list(estimated_states.columns)}"
            )
        if col not in groundtruth_data.columns:
            raise ValueError(
                f"groundtruth_data missing required column '{col}'. "
                f"Available columns: {list(groundtruth_data.columns)}"
            )

    # Join on timestep index (inner join to get only matching steps)
    aligned = estimated_states[['x', 'y']].join(
        groundtruth_data[['x', 'y']],
        how='inner',
        rsuffix='_gt'
    )

    if len(aligned) == 0:
        raise RuntimeError(
            "Timestep alignment produced 0 matching frames! "
            f"Estimated steps: [{estimated_states.index.min()}, {estimated_states.index.max()}], "
            f"Ground truth steps: [{groundtruth_data.index.min()}, {groundtruth_data.index.max()}]"
        )

    errors = np.sqrt(
        (aligned['x'] - aligned['x_gt']) ** 2 +
        (aligned['y'] - aligned['y_gt']) ** 2
    )
    ate = np.sqrt(np.mean(errors ** 2))

    if verbose:
        alignment_pct = len(aligned) / len(estimated_states) * 100
        logger.info("=" * 60)
        logger.info("ATE Computation")
        logger.info(f"✓ Aligned frames: {len(aligned)} ({alignment_pct:.1f}% of estimates)")
        logger.info(f"✓ Mean error: {np.mean(errors):.4f} m")
        logger.info(f"✓ Max error: {np.max(errors):.4f} m")
        logger.info(f"✓ ATE (RMSE): {ate:.4f} m")
        logger.info("=" * 60)

    return ate


def compute_trajectory_stats(
    estimated_states: pd.DataFrame,
    groundtruth_data: pd.DataFrame
) -> dict:
    """
    Compute detailed trajectory error statistics.

    Returns
    -------
    dict
        'ate', 'mean_error', 'std_error', 'median_error', 'max_error',
        'min_error', 'mean_yaw_error' (when both frames carry 'theta'),
        'aligned_frames' and 'alignment_ratio'.
    """
    cols = ['x', 'y']
    if 'theta' in estimated_states.columns and 'theta' in groundtruth_data.columns:
        cols.append('theta')
    aligned = estimated_states[cols].join(
        groundtruth_data[cols],
        how='inner',
        rsuffix='_gt'
    )

    if len(aligned) == 0:
        raise RuntimeError("No matching timesteps between trajectories")

    errors = np.sqrt(
        (aligned['x'] - aligned['x_gt']) ** 2 +
        (aligned['y'] - aligned['y_gt']) ** 2
    )

    stats = {
        'ate': np.sqrt(np.mean(errors ** 2)),
        'mean_error': np.mean(errors),
        'std_error': np.std(errors),
        'median_error': np.median(errors),
        'max_error': np.max(errors),
        'min_error': np.min(errors),
        'aligned_frames': len(aligned),
        'alignment_ratio': len(aligned) / len(estimated_states)
    }
    if 'theta' in cols:
        yaw_errors = [
            get_error((0.0, 0.0, gt), (0.0, 0.0, est))[2]
            for gt, est in zip(aligned['theta_gt'], aligned['theta'])
        ]
        stats['mean_yaw_error'] = float(np.mean(yaw_errors))
    return stats


def compare_algorithms(
    algorithms: dict[str, Tuple[pd.DataFrame, pd.DataFrame]]
) -> pd.DataFrame:
    """
    Compare several filter configurations using ATE and other metrics.

    Parameters
    ----------
    algorithms : dict
        Mapping from a configuration name to (states_df, gt_df).
        Example: {'multinomial': (pf_a.states_df, pf_a.gt),
        'systematic': (pf_b.states_df, pf_b.gt)}

    Returns
    -------
    pd.DataFrame
        Comparison table sorted by ATE (best first).
    """
    results = []

    for name, (states_df, gt_df) in algorithms.items():
        stats = compute_trajectory_stats(states_df, gt_df)
        results.append({
            'Algorithm': name,
            'ATE': stats['ate'],
            'Mean Error': stats['mean_error'],
            'Std Error': stats['std_error'],
            'Max Error': stats['max_error'],
            'Aligned Frames': stats['aligned_frames']
        })

    df = pd.DataFrame(results)
    return df.sort_values('ATE')
