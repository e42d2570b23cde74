"""
Imbalanced dataset handling module for eposyn.

This module oversamples minority classes with a mix of the spectral EPSO
generator and the density-based ADASYN generator.
"""

from .oversample import (
    DEFAULT_PER,
    oversample,
    split_counts,
)

from .samplers import EPSOADASYNSampler

from .utils import summarize_class_distribution

__all__ = [
    # Orchestration
    'DEFAULT_PER',
    'oversample',
    'split_counts',

    # Samplers
    'EPSOADASYNSampler',

    # Utilities
    'summarize_class_distribution',
]
