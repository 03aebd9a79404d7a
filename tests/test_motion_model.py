import numpy as np
import pytest

from kidnapped_vehicle.errors import ConfigurationError
from kidnapped_vehicle.localization.motion_model import (
    YAW_RATE_EPSILON,
    move,
    sample_motion,
)


def test_straight_line_motion():
    moved = move([[1.0, 2.0, 0.5]], delta_t=2.0, velocity=3.0, yaw_rate=0.0)

    np.testing.assert_allclose(
        moved, [[1.0 + 6.0 * np.cos(0.5), 2.0 + 6.0 * np.sin(0.5), 0.5]]
    )


def test_turning_motion_quarter_circle():
    moved = move([[0.0, 0.0, 0.0]], delta_t=1.0, velocity=1.0, yaw_rate=np.pi / 2)

    np.testing.assert_allclose(moved, [[2 / np.pi, 2 / np.pi, np.pi / 2]], atol=1e-12)


def test_small_yaw_rate_uses_straight_line_branch():
    yaw_rate = YAW_RATE_EPSILON / 10
    moved = move([[0.0, 0.0, 0.0]], delta_t=1.0, velocity=2.0, yaw_rate=yaw_rate)

    np.testing.assert_allclose(moved, [[2.0, 0.0, yaw_rate]])


def test_heading_is_not_wrapped():
    moved = move([[0.0, 0.0, 3.0]], delta_t=1.0, velocity=0.0, yaw_rate=1.0)
    assert moved[0, 2] == pytest.approx(4.0)


def test_move_does_not_modify_input():
    poses = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
    move(poses, delta_t=0.1, velocity=1.0, yaw_rate=0.2)
    np.testing.assert_array_equal(poses, [[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])


@pytest.mark.parametrize("delta_t", [0.0, -0.1])
def test_non_positive_delta_t_is_rejected(delta_t):
    with pytest.raises(ConfigurationError):
        move([[0.0, 0.0, 0.0]], delta_t=delta_t, velocity=1.0, yaw_rate=0.0)


def test_sample_motion_noise_per_particle(rng):
    poses = np.zeros((20_000, 3))
    std = np.array([0.3, 0.2, 0.01])

    moved = sample_motion(poses, 0.1, 1.0, 0.0, std, rng)
    noise = moved - move(poses, 0.1, 1.0, 0.0)

    np.testing.assert_allclose(np.mean(noise, axis=0), 0.0, atol=0.01)
    np.testing.assert_allclose(np.std(noise, axis=0), std, rtol=0.05)


def test_sample_motion_draws_fresh_noise_each_call(rng):
    poses = np.zeros((5, 3))
    first = sample_motion(poses, 0.1, 1.0, 0.1, [0.3, 0.3, 0.01], rng)
    second = sample_motion(poses, 0.1, 1.0, 0.1, [0.3, 0.3, 0.01], rng)
    assert not np.allclose(first, second)


def test_sample_motion_rejects_bad_std(rng):
    with pytest.raises(ConfigurationError):
        sample_motion(np.zeros((2, 3)), 0.1, 1.0, 0.0, [0.3, 0.3], rng)
