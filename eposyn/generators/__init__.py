"""
Synthetic sample generators and their execution modes.
"""

from eposyn.generators.base import (
    DensityGenerator,
    ExecutionMode,
    FeatureMajorMatrix,
    SpectralGenerator,
    run_chunked,
    split_count,
)
from eposyn.generators.epso import EPSOGenerator
from eposyn.generators.adasyn import ADASYNGenerator

__all__ = [
    "ADASYNGenerator",
    "DensityGenerator",
    "EPSOGenerator",
    "ExecutionMode",
    "FeatureMajorMatrix",
    "SpectralGenerator",
    "run_chunked",
    "split_count",
]
