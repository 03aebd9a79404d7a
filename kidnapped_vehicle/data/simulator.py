"""
Synthetic kidnapped vehicle scenarios.

Generates a landmark map, a ground truth trajectory obtained by integrating
the noise-free motion model over a control sequence, and the vehicle-frame
observations of every landmark within sensor range at each timestep. The
result can be saved in the dataset layout read by
:class:`kidnapped_vehicle.data.reader.Reader`, so recorded and synthetic runs
go through the same code path.
"""

import logging
import os
from dataclasses import dataclass
from typing import List

import numpy as np

from kidnapped_vehicle.data.landmarks import Landmark, Map
from kidnapped_vehicle.data.reader import (
    CONTROL_FILE,
    GROUNDTRUTH_FILE,
    MAP_FILE,
    OBSERVATION_DIR,
    OBSERVATION_PATTERN,
)
from kidnapped_vehicle.localization.geometry import map_to_vehicle
from kidnapped_vehicle.localization.motion_model import move
from kidnapped_vehicle.utils.config import check_positive, check_std

logger = logging.getLogger(__name__)


@dataclass
class Scenario:
    """Simulated run with the same attributes as a loaded ``Reader``."""

    map: Map
    control_data: np.ndarray
    groundtruth_data: np.ndarray
    observations: List[np.ndarray]

    def __len__(self):
        return len(self.control_data)

    def timesteps(self):
        return zip(self.control_data, self.groundtruth_data, self.observations)

    def save(self, data_dir):
        """Write the scenario in the dataset layout expected by ``Reader``."""
        os.makedirs(os.path.join(data_dir, OBSERVATION_DIR), exist_ok=True)

        map_rows = [[lm.x, lm.y, lm.id] for lm in self.map]
        np.savetxt(
            os.path.join(data_dir, MAP_FILE),
            np.array(map_rows).reshape(-1, 3),
            fmt=["%.6f", "%.6f", "%d"],
            delimiter="\t",
        )
        np.savetxt(os.path.join(data_dir, CONTROL_FILE), self.control_data, fmt="%.6f")
        np.savetxt(
            os.path.join(data_dir, GROUNDTRUTH_FILE), self.groundtruth_data, fmt="%.6f"
        )
        for i, observations in enumerate(self.observations):
            np.savetxt(
                os.path.join(data_dir, OBSERVATION_DIR, OBSERVATION_PATTERN.format(i + 1)),
                observations.reshape(-1, 2),
                fmt="%.6f",
            )
        logger.info(f"Saved {len(self)} simulated timesteps to {data_dir}")


def random_map(num_landmarks, width, height, rng, start_id=1):
    """
    Landmarks uniformly distributed over [0, width] x [0, height].

    Ids are consecutive, starting at ``start_id``.
    """
    positions = rng.uniform((0.0, 0.0), (width, height), size=(num_landmarks, 2))
    return Map(
        Landmark(start_id + i, float(x), float(y)) for i, (x, y) in enumerate(positions)
    )


def constant_controls(num_steps, velocity, yaw_rate):
    """Control sequence holding [velocity, yaw_rate] for ``num_steps`` steps."""
    return np.tile([float(velocity), float(yaw_rate)], (num_steps, 1))


def observe(landmarks, pose, sensor_range, sigma_landmark=None, rng=None):
    """
    Vehicle-frame observations of the landmarks within range of ``pose``.

    Landmarks are reported in map order. When ``sigma_landmark`` is given,
    Gaussian noise with those per-axis standard deviations is added.
    """
    in_range = landmarks.within_range(pose[0], pose[1], sensor_range)
    observations = map_to_vehicle(landmarks.positions[in_range], pose).reshape(-1, 2)
    if sigma_landmark is not None:
        sigma_landmark = check_std("sigma_landmark", sigma_landmark, 2)
        observations = observations + rng.normal(
            0.0, sigma_landmark, size=observations.shape
        )
    return observations


def simulate_run(
    landmarks,
    initial_pose,
    controls,
    delta_t,
    sensor_range,
    sigma_landmark=None,
    rng=None,
):
    """
    Simulate a run of the vehicle through a landmark map.

    The pose at timestep i is obtained by applying control i-1 to the pose at
    timestep i-1, matching the way the filter predicts with the previous
    control.

    Parameters
    ----------
    landmarks : Map
        Landmark map.
    initial_pose : array_like, shape (3,)
        Ground truth pose at timestep 0.
    controls : array_like, shape (T, 2)
        Control inputs [v, yaw_rate] per timestep.
    delta_t : float
        Time between timesteps (s).
    sensor_range : float
        Sensor range (m).
    sigma_landmark : array_like, shape (2,), optional
        Observation noise. Default: noise-free observations.
    rng : numpy.random.Generator or int, optional
        Random source for observation noise.

    Returns
    -------
    Scenario
    """
    delta_t = check_positive("delta_t", delta_t)
    sensor_range = check_positive("sensor_range", sensor_range)
    controls = np.asarray(controls, dtype=float).reshape(-1, 2)
    rng = np.random.default_rng(rng)

    groundtruth = np.zeros((len(controls), 3))
    groundtruth[0] = initial_pose
    for i in range(1, len(controls)):
        velocity, yaw_rate = controls[i - 1]
        groundtruth[i] = move(groundtruth[i - 1], delta_t, velocity, yaw_rate)[0]

    observations = [
        observe(landmarks, pose, sensor_range, sigma_landmark, rng) for pose in groundtruth
    ]
    logger.debug(
        f"Simulated {len(controls)} timesteps, "
        f"{np.mean([len(o) for o in observations]):.1f} observations per step"
    )
    return Scenario(landmarks, controls, groundtruth, observations)
