#!/usr/bin/env python3
"""
Kidnapped Vehicle Dataset Reader Module

This module provides the data loading infrastructure for particle filter
localization runs. It loads the landmark map, the per-timestep control
inputs, the ground truth poses and the per-timestep landmark observations,
and exposes them as aligned numpy arrays.

Dataset layout (one directory):

- ``map_data.txt``: one landmark per line, [x[m], y[m], id]
- ``control_data.txt``: one control per timestep, [v[m/s], yaw_rate[rad/s]]
- ``gt_data.txt``: one ground truth pose per timestep, [x[m], y[m], theta[rad]]
- ``observation/observations_000001.txt``, ...: one file per timestep
  (1-indexed, zero-padded to 6 digits) with one vehicle-frame observation
  [x[m], y[m]] per line. An empty file means no observations.
"""

import logging
import os

import numpy as np

from kidnapped_vehicle.data.landmarks import Map

logger = logging.getLogger(__name__)

MAP_FILE = "map_data.txt"
CONTROL_FILE = "control_data.txt"
GROUNDTRUTH_FILE = "gt_data.txt"
OBSERVATION_DIR = "observation"
OBSERVATION_PATTERN = "observations_{:06d}.txt"


def load_table(path, columns):
    """Load a whitespace separated table as a 2-D array with ``columns`` columns."""
    if os.path.getsize(path) == 0:
        return np.empty((0, columns))
    table = np.loadtxt(path, ndmin=2)
    if table.size == 0:
        return np.empty((0, columns))
    if table.shape[1] != columns:
        raise ValueError(
            f"{path} must have {columns} columns, got {table.shape[1]}"
        )
    return table


class Reader:
    """
    Kidnapped vehicle dataset reader.

    Loads a recorded run: the landmark map, and for every timestep the control
    input, the ground truth pose and the landmark observations. Timestep ``i``
    of every stream refers to the same instant.

    Attributes
    ----------
    map : Map
        Landmark map [id, x[m], y[m]] in file order.
    control_data : ndarray of shape (T, 2)
        Control inputs [v[m/s], yaw_rate[rad/s]] per timestep.
    groundtruth_data : ndarray of shape (T, 3)
        Ground truth poses [x[m], y[m], theta[rad]] per timestep.
    observations : list of ndarray
        Vehicle-frame observations per timestep, each of shape (M_t, 2).

    Parameters
    ----------
    data_dir : str
        Path to the dataset directory.
    end_frame : int, optional
        Maximum number of timesteps to load. Default: all of them.

    Raises
    ------
    FileNotFoundError
        If the directory or a required data file is missing.
    ValueError
        If a file has the wrong number of columns or the control and ground
        truth streams have different lengths.

    Examples
    --------
    >>> from kidnapped_vehicle.data.reader import Reader
    >>> reader = Reader("data", end_frame=500)
    >>> print(f"{len(reader)} timesteps, {len(reader.map)} landmarks")
    >>> for step, (control, gt, observations) in enumerate(reader.timesteps()):
    ...     velocity, yaw_rate = control
    """

    def __init__(self, data_dir, end_frame=None):
        self.data_dir = data_dir
        self.load_data(data_dir, end_frame)

    def load_data(self, data_dir, end_frame):
        """
        Load and align the dataset files.

        Processing Steps
        ----------------
        1. Load the map and build an ordered landmark ``Map``
        2. Load control inputs and ground truth, check they are aligned
        3. Truncate to ``end_frame`` timesteps
        4. Load one observation file per remaining timestep
        """
        # Map: [x[m], y[m], id]
        self.map = Map.from_array(load_table(os.path.join(data_dir, MAP_FILE), 3))
        # Control: [v[m/s], yaw_rate[rad/s]]
        self.control_data = load_table(os.path.join(data_dir, CONTROL_FILE), 2)
        # Ground truth: [x[m], y[m], theta[rad]]
        self.groundtruth_data = load_table(os.path.join(data_dir, GROUNDTRUTH_FILE), 3)

        if len(self.control_data) != len(self.groundtruth_data):
            raise ValueError(
                f"control_data has {len(self.control_data)} timesteps but "
                f"gt_data has {len(self.groundtruth_data)}"
            )

        # Remove all data after the specified number of frames
        if end_frame is not None:
            self.control_data = self.control_data[:end_frame]
            self.groundtruth_data = self.groundtruth_data[:end_frame]

        # Observations: one file per timestep, 1-indexed
        self.observations = [
            load_table(
                os.path.join(
                    data_dir, OBSERVATION_DIR, OBSERVATION_PATTERN.format(i + 1)
                ),
                2,
            )
            for i in range(len(self.control_data))
        ]

        logger.info(
            f"Loaded {len(self)} timesteps and {len(self.map)} landmarks from {data_dir}"
        )

    def __len__(self):
        return len(self.control_data)

    def timesteps(self):
        """Iterate over (control, groundtruth, observations) per timestep."""
        return zip(self.control_data, self.groundtruth_data, self.observations)


if __name__ == "__main__":
    data_dir = "data"
    end_frame = 2443
    #
    r = Reader(data_dir, end_frame)
