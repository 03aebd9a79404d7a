"""Localization algorithms: Particle Filter (Monte Carlo Localization)."""

from .association import CandidateFilter
from .particles import Particle, ParticleSet
from .PF import ParticleFilter

__all__ = ["CandidateFilter", "Particle", "ParticleFilter", "ParticleSet"]
