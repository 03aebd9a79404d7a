"""
Error hierarchy for particle filter localization.

Every error raised by the filter derives from ``ParticleFilterError`` and from
the closest built-in exception, so callers can catch either the specific
filter error or the generic Python one.
"""


class ParticleFilterError(Exception):
    """Base class for all particle filter errors."""


class ConfigurationError(ParticleFilterError, ValueError):
    """Invalid filter parameter (particle count, noise, range, time step)."""


class UninitializedFilterError(ParticleFilterError, RuntimeError):
    """Prediction or update requested before ``initialization``."""


class NoCandidateLandmarkError(ParticleFilterError, LookupError):
    """No landmark is available to associate an observation with."""


class DegenerateWeightError(ParticleFilterError, ArithmeticError):
    """Importance weights cannot define a resampling distribution."""
