import numpy as np
import pytest

from kidnapped_vehicle.errors import ConfigurationError, DegenerateWeightError
from kidnapped_vehicle.localization.resampling import (
    effective_sample_size,
    get_resampler,
    multinomial_resample,
    normalize_weights,
    systematic_resample,
)

RESAMPLERS = [multinomial_resample, systematic_resample]


@pytest.mark.parametrize("resample", RESAMPLERS)
def test_single_nonzero_weight_takes_everything(resample, rng):
    for _ in range(20):
        assert resample([0.0, 1.0, 0.0], rng).tolist() == [1, 1, 1]


@pytest.mark.parametrize("resample", RESAMPLERS)
def test_uniform_weights_select_uniformly(resample, rng):
    draws = np.concatenate([resample([1.0, 1.0, 1.0], rng) for _ in range(3000)])
    frequencies = np.bincount(draws, minlength=3) / len(draws)
    np.testing.assert_allclose(frequencies, 1 / 3, atol=0.03)


@pytest.mark.parametrize("resample", RESAMPLERS)
def test_frequencies_follow_weights(resample, rng):
    weights = [1.0, 3.0, 0.0, 6.0]
    draws = np.concatenate([resample(weights, rng) for _ in range(2000)])
    frequencies = np.bincount(draws, minlength=4) / len(draws)
    np.testing.assert_allclose(frequencies, [0.1, 0.3, 0.0, 0.6], atol=0.03)


@pytest.mark.parametrize("resample", RESAMPLERS)
def test_size_is_preserved(resample, rng):
    assert len(resample(rng.uniform(size=57), rng)) == 57


def test_systematic_resampling_is_low_variance(rng):
    # every particle with weight 1/N is drawn exactly once
    counts = np.bincount(systematic_resample(np.ones(10), rng), minlength=10)
    np.testing.assert_array_equal(counts, np.ones(10))


@pytest.mark.parametrize(
    "weights", [[0.0, 0.0, 0.0], [1.0, -0.5], [1.0, np.nan], [np.inf, 1.0], []]
)
def test_degenerate_weights_raise(weights):
    with pytest.raises(DegenerateWeightError):
        normalize_weights(weights)


@pytest.mark.parametrize("resample", RESAMPLERS)
def test_all_zero_weights_do_not_fall_back_to_uniform(resample, rng):
    with pytest.raises(DegenerateWeightError):
        resample(np.zeros(5), rng)


def test_normalize_weights_sums_to_one():
    np.testing.assert_allclose(normalize_weights([2.0, 6.0]), [0.25, 0.75])


def test_effective_sample_size():
    assert effective_sample_size(np.ones(8)) == pytest.approx(8.0)
    assert effective_sample_size([0.0, 5.0, 0.0]) == pytest.approx(1.0)


def test_get_resampler():
    assert get_resampler("systematic") is systematic_resample
    with pytest.raises(ConfigurationError):
        get_resampler("stratified")
