"""
Exceptions raised by the eposyn oversampling routines.
"""


class OversamplingError(ValueError):
    """Base class for all oversampling failures."""
    pass


class TargetTooSmallError(OversamplingError):
    """The requested minority class size is below the existing size."""
    pass


class InsufficientSamplesError(OversamplingError):
    """Fewer than two minority samples, so no covariance can be estimated."""
    pass


class DimensionMismatchError(OversamplingError):
    """Minority and majority samples have different feature counts."""
    pass


class InvalidSampleMatrixError(OversamplingError):
    """A sample matrix is not 2-D, has too few features, or has missing values."""
    pass


class DegenerateSpectrumError(OversamplingError):
    """The leading and cutoff eigenvalues coincide, so the decay model is undefined."""
    pass


class GenerationError(OversamplingError):
    """A generator could not produce the requested number of samples."""
    pass
