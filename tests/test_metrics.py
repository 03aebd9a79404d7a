import numpy as np
import pandas as pd
import pytest

from kidnapped_vehicle.utils.metrics import (
    check_errors,
    compare_algorithms,
    compute_ate,
    compute_trajectory_stats,
    get_error,
)


def _trajectory(xs, ys, thetas=None, start=0):
    frame = pd.DataFrame({"x": xs, "y": ys}, index=range(start, start + len(xs)))
    if thetas is not None:
        frame["theta"] = thetas
    frame.index.name = "step"
    return frame


def test_get_error_is_absolute():
    np.testing.assert_allclose(get_error([1.0, 2.0, 0.1], [0.5, 3.0, 0.2]), [0.5, 1.0, 0.1])


def test_get_error_wraps_yaw():
    error = get_error([0.0, 0.0, 0.1], [0.0, 0.0, 2 * np.pi + 0.05])
    assert error[2] == pytest.approx(0.05)
    error = get_error([0.0, 0.0, -3.1], [0.0, 0.0, 3.1])
    assert error[2] == pytest.approx(2 * np.pi - 6.2)


def test_check_errors_thresholds():
    assert check_errors([0.5, 0.5, 0.01])
    assert not check_errors([1.5, 0.5, 0.01])
    assert not check_errors([0.5, 0.5, 0.06])
    assert check_errors([1.5, 0.5, 0.01], max_translation_error=2.0)


def test_compute_ate():
    estimate = _trajectory([0.0, 1.0, 2.0], [0.0, 0.0, 0.0])
    groundtruth = _trajectory([0.0, 1.0, 2.0], [3.0, 4.0, 0.0])
    assert compute_ate(estimate, groundtruth, verbose=False) == pytest.approx(
        np.sqrt((9 + 16) / 3)
    )


def test_compute_ate_aligns_on_timestep():
    estimate = _trajectory([1.0, 2.0], [0.0, 0.0], start=1)
    groundtruth = _trajectory([0.0, 1.0, 2.0], [0.0, 0.0, 0.0])
    assert compute_ate(estimate, groundtruth, verbose=False) == pytest.approx(0.0)


def test_compute_ate_validates_input():
    frame = _trajectory([0.0], [0.0])
    with pytest.raises(ValueError):
        compute_ate(np.zeros((1, 4)), frame)
    with pytest.raises(ValueError):
        compute_ate(frame[["x"]], frame)
    with pytest.raises(RuntimeError):
        compute_ate(frame, _trajectory([0.0], [0.0], start=5), verbose=False)


def test_trajectory_stats_include_yaw_error():
    estimate = _trajectory([0.0, 1.0], [0.0, 0.0], thetas=[0.0, 0.1])
    groundtruth = _trajectory([0.0, 1.0], [0.0, 2.0], thetas=[0.0, 0.0])

    stats = compute_trajectory_stats(estimate, groundtruth)

    assert stats["max_error"] == pytest.approx(2.0)
    assert stats["mean_yaw_error"] == pytest.approx(0.05)
    assert stats["aligned_frames"] == 2


def test_compare_algorithms_sorts_by_ate():
    groundtruth = _trajectory([0.0, 1.0], [0.0, 0.0])
    table = compare_algorithms(
        {
            "coarse": (_trajectory([0.0, 1.0], [1.0, 1.0]), groundtruth),
            "fine": (_trajectory([0.0, 1.0], [0.1, 0.1]), groundtruth),
        }
    )
    assert table["Algorithm"].tolist() == ["fine", "coarse"]
