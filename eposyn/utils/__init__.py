"""
Utility functions for the eposyn package.
"""

from eposyn.utils.dataframe_utils import (
    check_dataframe_type,
    convert_dataframe,
    as_sample_matrix,
)

__all__ = [
    # Dataframe utils
    "check_dataframe_type",
    "convert_dataframe",
    "as_sample_matrix",
]
