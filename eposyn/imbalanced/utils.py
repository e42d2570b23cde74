"""
Helpers for inspecting class imbalance.
"""
from typing import Any

import numpy as np
import pandas as pd


def summarize_class_distribution(y: Any) -> pd.DataFrame:
    """
    Summarize the class distribution of a label vector.

    Parameters
    ----------
    y : Any
        Class labels.

    Returns
    -------
    pd.DataFrame
        One row per class, largest first, with columns ``count``,
        ``percentage`` and ``imbalance_ratio`` (largest class count divided
        by the class count).

    Examples
    --------
    >>> summarize_class_distribution([0, 0, 0, 1])["imbalance_ratio"].tolist()
    [1.0, 3.0]
    """
    counts = pd.Series(np.asarray(y).ravel()).value_counts()
    if counts.empty:
        raise ValueError("y is empty")

    summary = pd.DataFrame({"count": counts})
    summary["percentage"] = counts / counts.sum() * 100
    summary["imbalance_ratio"] = counts.max() / counts
    summary.index.name = "class"
    return summary
