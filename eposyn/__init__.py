"""
eposyn: Oversampling of imbalanced classes with regularized eigen-spectra.
"""

__version__ = "0.1.0"

# Import key components for convenient access
from eposyn.exceptions import (
    OversamplingError,
    TargetTooSmallError,
    InsufficientSamplesError,
    DimensionMismatchError,
    InvalidSampleMatrixError,
    DegenerateSpectrumError,
    GenerationError,
)
from eposyn.spectrum import RELIABILITY_THRESHOLD, RegularizedSpectrum, estimate_spectrum
from eposyn.generators import (
    ADASYNGenerator,
    EPSOGenerator,
    ExecutionMode,
    FeatureMajorMatrix,
)
from eposyn.imbalanced import (
    EPSOADASYNSampler,
    oversample,
    split_counts,
    summarize_class_distribution,
)
