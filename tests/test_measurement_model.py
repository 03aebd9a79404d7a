import numpy as np
import pytest

from kidnapped_vehicle.errors import ConfigurationError
from kidnapped_vehicle.localization.measurement_model import (
    log_particle_weights,
    observation_likelihood,
    particle_weights,
)


def test_exact_match_gives_peak_density():
    density = observation_likelihood([0.0, 0.0], [0.3, 0.5])
    assert density == pytest.approx(1.0 / (2 * np.pi * 0.3 * 0.5))


def test_bivariate_gaussian_density():
    dx, dy, sx, sy = 0.2, -0.4, 0.3, 0.3
    expected = np.exp(-(dx**2 / (2 * sx**2) + dy**2 / (2 * sy**2))) / (
        2 * np.pi * sx * sy
    )
    assert observation_likelihood([dx, dy], [sx, sy]) == pytest.approx(expected)


def test_log_weight_is_sum_of_log_likelihoods():
    map_points = np.array([[[0.0, 0.0], [1.0, 1.0]]])
    matched = np.array([[[0.1, 0.0], [1.0, 1.2]]])
    std = [0.3, 0.3]

    log_weights = log_particle_weights(map_points, matched, std)

    expected = observation_likelihood([0.1, 0.0], std) * observation_likelihood(
        [0.0, 0.2], std
    )
    assert log_weights.shape == (1,)
    assert log_weights[0] == pytest.approx(np.log(expected))


def test_weights_keep_product_ratios_and_best_weighs_one():
    std = [0.3, 0.3]
    map_points = np.array([[[0.0, 0.0], [1.0, 1.0]], [[0.2, 0.0], [1.0, 0.7]]])
    matched = np.array([[[0.0, 0.0], [1.0, 1.1]], [[0.0, 0.0], [1.0, 1.0]]])

    weights = particle_weights(map_points, matched, std)

    products = np.prod(observation_likelihood(matched - map_points, std), axis=-1)
    assert np.max(weights) == 1.0
    assert weights[1] / weights[0] == pytest.approx(products[1] / products[0])


def test_many_sharp_matches_do_not_overflow():
    # 60 exact matches at 1 mm: each density is about 1.6e5
    landmarks = np.column_stack((np.arange(60.0), np.zeros(60)))
    map_points = np.stack([landmarks, landmarks + [0.0, 1e-3]])

    weights = particle_weights(map_points, np.stack([landmarks, landmarks]), [1e-3, 1e-3])

    assert np.all(np.isfinite(weights))
    assert weights[0] == 1.0
    assert weights[1] == pytest.approx(np.exp(-30.0))


def test_many_poor_matches_do_not_all_underflow():
    landmarks = np.column_stack((np.arange(60.0), np.zeros(60)))
    map_points = np.stack([landmarks + 1.0, landmarks + 2.0])

    weights = particle_weights(map_points, np.stack([landmarks, landmarks]), [1e-3, 1e-3])

    np.testing.assert_array_equal(weights, [1.0, 0.0])


def test_particles_without_observations_weigh_one():
    weights = particle_weights(np.empty((4, 0, 2)), np.empty((4, 0, 2)), [0.3, 0.3])
    np.testing.assert_array_equal(weights, np.ones(4))


def test_closer_particle_weighs_more():
    matched = np.array([[[5.0, 5.0]], [[5.0, 5.0]]])
    map_points = np.array([[[5.1, 5.0]], [[5.6, 5.0]]])
    weights = particle_weights(map_points, matched, [0.3, 0.3])
    assert weights[0] > weights[1] > 0


def test_non_positive_noise_is_rejected():
    with pytest.raises(ConfigurationError):
        observation_likelihood([0.0, 0.0], [0.0, 0.3])
