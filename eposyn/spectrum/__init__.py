"""
Regularized eigen-spectrum estimation for minority classes.
"""

from eposyn.spectrum.estimator import (
    RELIABILITY_THRESHOLD,
    RegularizedSpectrum,
    eigen_decompose,
    estimate_spectrum,
    hyperbolic_constants,
    projected_variance,
    regularize_spectrum,
    reliable_cutoff,
)

__all__ = [
    "RELIABILITY_THRESHOLD",
    "RegularizedSpectrum",
    "eigen_decompose",
    "estimate_spectrum",
    "hyperbolic_constants",
    "projected_variance",
    "regularize_spectrum",
    "reliable_cutoff",
]
