"""
Data transformation and diagnostic output utilities.

This module provides helper functions for converting filter histories into
pandas DataFrames and for writing particle sets and associations in the
plain-text formats consumed by the simulator and visualization tools.
"""

import logging
import os

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def build_timeseries(data, cols):
    """
    Convert numpy array to pandas DataFrame indexed by timestep.

    Parameters
    ----------
    data : ndarray
        Input data array where first column contains the timestep number.
    cols : list of str
        Column names for the DataFrame. First column should be 'step'.

    Returns
    -------
    pandas.DataFrame
        DataFrame indexed by integer timestep with the remaining columns.

    Examples
    --------
    >>> import numpy as np
    >>> from kidnapped_vehicle.utils.data_utils import build_timeseries
    >>>
    >>> # Estimated trajectory [step, x, y, theta]
    >>> data = np.array([
    ...     [0, 6.27, 1.87, 0.00],
    ...     [1, 6.30, 1.88, 0.01],
    ... ])
    >>> df = build_timeseries(data, cols=['step', 'x', 'y', 'theta'])
    >>> print(df)
             x     y  theta
    step
    0     6.27  1.87   0.00
    1     6.30  1.88   0.01
    """
    timeseries = pd.DataFrame(np.asarray(data).reshape(-1, len(cols)), columns=cols)
    timeseries[cols[0]] = timeseries[cols[0]].astype(int)
    timeseries = timeseries.set_index(cols[0])
    return timeseries


def write_particles(particles, filename):
    """
    Write one ``x,y,theta`` line per particle.

    The file is overwritten. There is no newline after the last particle.

    Parameters
    ----------
    particles : ParticleSet
        Particles to write.
    filename : str or os.PathLike
        Output file path.
    """
    lines = [f"{x},{y},{theta}" for x, y, theta in particles.poses]
    with open(filename, "w") as data_file:
        data_file.write("\n".join(lines))
    logger.debug(f"Wrote {len(lines)} particles to {os.fspath(filename)}")


def read_particles(filename):
    """Read a file written by :func:`write_particles` as an (N, 3) array."""
    return np.loadtxt(filename, delimiter=",", ndmin=2)


def _join(values):
    return " ".join(str(v) for v in values)


def get_associations(particle):
    """Space separated landmark ids of a particle's associations."""
    return _join(particle.associations)


def get_sense_x(particle):
    """Space separated x coordinates of a particle's associations."""
    return _join(particle.sense_x)


def get_sense_y(particle):
    """Space separated y coordinates of a particle's associations."""
    return _join(particle.sense_y)
