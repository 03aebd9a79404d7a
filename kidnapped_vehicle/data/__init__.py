"""Landmark maps, dataset reader and synthetic scenarios."""

from .landmarks import Landmark, Map, Observation
from .reader import Reader

__all__ = ["Landmark", "Map", "Observation", "Reader"]
