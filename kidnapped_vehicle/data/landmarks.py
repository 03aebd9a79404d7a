"""
Landmark map and observation value types.

The map is static for the lifetime of a filter: landmarks are read once (see
:mod:`kidnapped_vehicle.data.reader`) and only ever read afterwards. Landmark
order matters, since association breaks distance ties in favour of the first
landmark in map order.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Landmark:
    """Static map feature [id, x[m], y[m]] in the map frame."""

    id: int
    x: float
    y: float


@dataclass(frozen=True)
class Observation:
    """
    Sensor observation of a landmark.

    Coordinates are in the vehicle frame as reported by the sensor, or in the
    map frame once transformed. ``id`` is unknown (-1) at input and is carried
    through transforms unchanged.
    """

    x: float
    y: float
    id: int = -1


class Map:
    """
    Ordered, read-only collection of landmarks.

    Parameters
    ----------
    landmarks : iterable of Landmark
        Landmarks in map order.

    Attributes
    ----------
    ids : ndarray of shape (L,)
        Landmark identifiers in map order.
    positions : ndarray of shape (L, 2)
        Landmark [x, y] positions in map order.

    Examples
    --------
    >>> landmarks = Map([Landmark(1, 0.0, 0.0), Landmark(2, 10.0, 10.0)])
    >>> len(landmarks)
    2
    >>> landmarks.positions[1]
    array([10., 10.])
    """

    def __init__(self, landmarks):
        self._landmarks = tuple(landmarks)
        self.ids = np.array([lm.id for lm in self._landmarks], dtype=int)
        self.positions = np.array(
            [[lm.x, lm.y] for lm in self._landmarks], dtype=float
        ).reshape(-1, 2)
        self.ids.flags.writeable = False
        self.positions.flags.writeable = False

    @classmethod
    def from_array(cls, data):
        """Build a map from rows of [x, y, id] (the ``map_data.txt`` layout)."""
        data = np.asarray(data, dtype=float).reshape(-1, 3)
        return cls(Landmark(int(row[2]), float(row[0]), float(row[1])) for row in data)

    def __len__(self):
        return len(self._landmarks)

    def __iter__(self):
        return iter(self._landmarks)

    def __getitem__(self, index):
        return self._landmarks[index]

    def __repr__(self):
        return f"Map({len(self)} landmarks)"

    def within_range(self, x, y, sensor_range):
        """Boolean mask of landmarks within ``sensor_range`` of (x, y)."""
        distances = np.hypot(self.positions[:, 0] - x, self.positions[:, 1] - y)
        return distances <= sensor_range


def as_observation_array(observations):
    """
    Coerce observations into a float array of shape (M, 2).

    Accepts a sequence of :class:`Observation`, an (M, 2) array, or an empty
    sequence.
    """
    if isinstance(observations, np.ndarray):
        return observations.astype(float).reshape(-1, 2)
    observations = list(observations)
    if not observations:
        return np.empty((0, 2))
    if isinstance(observations[0], Observation):
        return np.array([[obs.x, obs.y] for obs in observations], dtype=float)
    return np.asarray(observations, dtype=float).reshape(-1, 2)
