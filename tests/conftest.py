import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from kidnapped_vehicle.data.landmarks import Landmark, Map
from kidnapped_vehicle.data.simulator import constant_controls, simulate_run


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def two_landmarks():
    return Map([Landmark(1, 0.0, 0.0), Landmark(2, 10.0, 10.0)])


@pytest.fixture
def grid_map():
    # 5 x 5 landmarks, 20 m apart
    return Map(
        Landmark(i * 5 + j + 1, 20.0 * i, 20.0 * j) for i in range(5) for j in range(5)
    )


@pytest.fixture
def scenario(grid_map):
    controls = constant_controls(60, velocity=5.0, yaw_rate=0.1)
    return simulate_run(
        grid_map,
        initial_pose=(40.0, 20.0, 0.0),
        controls=controls,
        delta_t=0.1,
        sensor_range=50.0,
    )
