import pytest

from kidnapped_vehicle.errors import ConfigurationError, ParticleFilterError
from kidnapped_vehicle.localization.PF import ParticleFilter
from kidnapped_vehicle.localization.association import CandidateFilter
from kidnapped_vehicle.utils.config import FilterConfig


def test_defaults():
    config = FilterConfig()
    assert config.num_particles == 100
    assert config.delta_t == 0.1
    assert config.sensor_range == 50.0
    assert config.sigma_pos == (0.3, 0.3, 0.01)
    assert config.sigma_landmark == (0.3, 0.3)
    assert config.candidate_filter == "particle_range"
    assert config.resampling == "multinomial"


@pytest.mark.parametrize(
    "params",
    [
        {"num_particles": 0},
        {"delta_t": 0.0},
        {"sensor_range": -1.0},
        {"sigma_pos": (0.3, 0.3)},
        {"sigma_landmark": (0.3, 0.0)},
        {"candidate_filter": "closest"},
        {"resampling": "residual"},
    ],
)
def test_invalid_parameters_raise(params):
    with pytest.raises(ConfigurationError):
        FilterConfig(**params)


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(ConfigurationError, ParticleFilterError)


def test_dict_round_trip():
    config = FilterConfig(num_particles=200, sigma_pos=[0.1, 0.1, 0.005], seed=3)
    params = config.to_dict()

    assert params["sigma_pos"] == (0.1, 0.1, 0.005)
    assert FilterConfig.from_dict(params) == config


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigurationError):
        FilterConfig.from_dict({"num_particles": 10, "particles": 10})


def test_candidate_filter_member_is_accepted():
    config = FilterConfig(candidate_filter=CandidateFilter.NONE)

    assert config.candidate_filter == "none"
    assert ParticleFilter.from_config(config).candidate_filter is CandidateFilter.NONE
