import numpy as np
import pytest

from kidnapped_vehicle.data.landmarks import Landmark, Map
from kidnapped_vehicle.data.reader import Reader, load_table
from kidnapped_vehicle.data.simulator import (
    constant_controls,
    observe,
    random_map,
    simulate_run,
)


def test_saved_scenario_loads_back(scenario, tmp_path):
    scenario.save(tmp_path)

    reader = Reader(tmp_path)

    assert len(reader) == len(scenario)
    np.testing.assert_array_equal(reader.map.ids, scenario.map.ids)
    np.testing.assert_allclose(reader.map.positions, scenario.map.positions, atol=1e-6)
    np.testing.assert_allclose(reader.control_data, scenario.control_data, atol=1e-6)
    np.testing.assert_allclose(
        reader.groundtruth_data, scenario.groundtruth_data, atol=1e-6
    )
    for loaded, simulated in zip(reader.observations, scenario.observations):
        np.testing.assert_allclose(loaded, simulated, atol=1e-6)


def test_end_frame_truncates(scenario, tmp_path):
    scenario.save(tmp_path)
    reader = Reader(tmp_path, end_frame=10)

    assert len(reader) == 10
    assert len(reader.observations) == 10
    assert len(list(reader.timesteps())) == 10


def test_timestep_without_observations(tmp_path):
    landmarks = Map([Landmark(1, 0.0, 0.0), Landmark(2, 100.0, 0.0)])
    scenario = simulate_run(
        landmarks, (0.0, 0.0, 0.0), constant_controls(3, 0.0, 0.0), 0.1, 200.0
    )
    scenario.observations[1] = np.empty((0, 2))
    scenario.save(tmp_path)

    reader = Reader(tmp_path)

    assert reader.observations[0].shape == (2, 2)
    assert reader.observations[1].shape == (0, 2)


def test_mismatched_streams_raise(scenario, tmp_path):
    scenario.save(tmp_path)
    np.savetxt(tmp_path / "gt_data.txt", scenario.groundtruth_data[:-1])
    with pytest.raises(ValueError):
        Reader(tmp_path)


def test_missing_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Reader(tmp_path / "missing")


def test_load_table_checks_columns(tmp_path):
    path = tmp_path / "table.txt"
    path.write_text("1 2 3\n4 5 6")
    assert load_table(path, 3).shape == (2, 3)
    with pytest.raises(ValueError):
        load_table(path, 2)


def test_simulated_ground_truth_follows_controls():
    landmarks = Map([Landmark(1, 0.0, 0.0)])
    scenario = simulate_run(
        landmarks, (0.0, 0.0, 0.0), constant_controls(11, 2.0, 0.0), 0.5, 50.0
    )
    np.testing.assert_allclose(scenario.groundtruth_data[-1], [10.0, 0.0, 0.0])


def test_observe_returns_vehicle_frame_landmarks_in_range():
    landmarks = Map(
        [Landmark(1, 5.0, 0.0), Landmark(2, 100.0, 0.0), Landmark(3, 0.0, 3.0)]
    )
    observations = observe(landmarks, (0.0, 0.0, np.pi / 2), 50.0)
    np.testing.assert_allclose(observations, [[0.0, -5.0], [3.0, 0.0]], atol=1e-12)


def test_random_map_ids_and_bounds(rng):
    landmarks = random_map(30, 100.0, 50.0, rng, start_id=5)
    assert landmarks.ids.tolist() == list(range(5, 35))
    assert np.all((landmarks.positions >= 0) & (landmarks.positions <= [100.0, 50.0]))
