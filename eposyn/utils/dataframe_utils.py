"""
Utilities for working with different types of dataframes and sample matrices.
"""
import logging
from typing import Any, Literal, Optional

import numpy as np
import pandas as pd

from eposyn.exceptions import DimensionMismatchError, InvalidSampleMatrixError

logger = logging.getLogger(__name__)


def check_dataframe_type(df: Any) -> str:
    """
    Check the type of dataframe.

    Parameters
    ----------
    df : Any
        The dataframe to check.

    Returns
    -------
    str
        The type of dataframe: 'pandas', 'polars', or 'unknown'.

    Examples
    --------
    >>> import pandas as pd
    >>> df = pd.DataFrame({'A': [1, 2, 3]})
    >>> check_dataframe_type(df)
    'pandas'
    """
    if isinstance(df, pd.DataFrame):
        return "pandas"

    # Check for polars DataFrame
    try:
        import polars
        if isinstance(df, polars.DataFrame):
            return "polars"
    except ImportError:
        pass

    return "unknown"


def convert_dataframe(df: Any, to_type: Literal["pandas", "polars"]) -> Any:
    """
    Convert a dataframe to the specified type.

    Parameters
    ----------
    df : Any
        The dataframe to convert.
    to_type : Literal["pandas", "polars"]
        The type to convert to.

    Returns
    -------
    Any
        The converted dataframe.

    Examples
    --------
    >>> import pandas as pd
    >>> df = pd.DataFrame({'A': [1, 2, 3]})
    >>> converted_df = convert_dataframe(df, "pandas")
    >>> isinstance(converted_df, pd.DataFrame)
    True
    """
    df_type = check_dataframe_type(df)

    if df_type == to_type:
        return df

    if df_type == "unknown":
        raise ValueError(f"Cannot convert unknown dataframe type to {to_type}")

    if to_type == "pandas":
        # Polars to pandas
        return df.to_pandas()

    if to_type == "polars":
        try:
            import polars as pl
        except ImportError:
            raise ImportError(
                "polars is not installed. Install it with 'pip install polars'."
            )
        return pl.from_pandas(df)

    raise ValueError(f"Unsupported dataframe type: {to_type}")


def as_sample_matrix(
    X: Any,
    name: str = "X",
    min_features: int = 2,
    n_features: Optional[int] = None,
) -> np.ndarray:
    """
    Convert samples to a 2-D float matrix with one row per sample.

    Parameters
    ----------
    X : Any
        Array-like, pandas or polars dataframe.
    name : str, default="X"
        Name used in error messages.
    min_features : int, default=2
        Minimum number of feature columns.
    n_features : Optional[int], default=None
        Required number of feature columns. Empty input without columns,
        such as ``[]``, is returned as ``(0, n_features)``.

    Returns
    -------
    np.ndarray
        Float matrix of shape (n_samples, n_features).

    Raises
    ------
    InvalidSampleMatrixError
        If the input is not 2-D, has fewer than ``min_features`` columns,
        or contains NaN or infinite values.
    DimensionMismatchError
        If ``n_features`` is given and the input has a different number of
        columns.
    """
    if check_dataframe_type(X) == "polars":
        X = convert_dataframe(X, "pandas")

    if isinstance(X, pd.DataFrame):
        non_numeric = X.select_dtypes(exclude=np.number).columns.tolist()
        if non_numeric:
            raise InvalidSampleMatrixError(
                f"{name} has non-numeric columns: {non_numeric}"
            )
        matrix = X.to_numpy(dtype=float)
    else:
        matrix = np.asarray(X, dtype=float)

    # Empty input without columns takes the expected width
    no_columns = matrix.ndim != 2 or matrix.shape == (0, 0)
    if n_features is not None and matrix.size == 0 and no_columns:
        return np.empty((0, n_features))

    if matrix.ndim != 2:
        raise InvalidSampleMatrixError(
            f"{name} must be a 2-D matrix, got {matrix.ndim} dimension(s)"
        )

    if n_features is not None and matrix.shape[1] != n_features:
        raise DimensionMismatchError(
            f"{name} has {matrix.shape[1]} features, expected {n_features}"
        )

    if matrix.shape[1] < min_features:
        raise InvalidSampleMatrixError(
            f"{name} needs at least {min_features} features, got {matrix.shape[1]}"
        )

    if not np.all(np.isfinite(matrix)):
        raise InvalidSampleMatrixError(f"{name} contains missing or infinite values")

    return matrix
