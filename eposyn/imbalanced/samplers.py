"""
Class-level oversampler that balances every minority class of a dataset.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from eposyn.generators.adasyn import DEFAULT_K, DEFAULT_M
from eposyn.generators.base import ExecutionMode, RandomStateLike, spawn_seeds
from eposyn.generators.epso import DEFAULT_PUSH_RATIO
from eposyn.imbalanced.oversample import DEFAULT_PER, oversample
from eposyn.spectrum.estimator import RELIABILITY_THRESHOLD
from eposyn.utils import as_sample_matrix, check_dataframe_type, convert_dataframe

logger = logging.getLogger(__name__)


class EPSOADASYNSampler:
    """
    Oversample every minority class with a mix of EPSO and ADASYN.

    Each class smaller than ``ratio`` times the largest class is treated as
    the minority class against all other samples and grown to that size.

    Parameters
    ----------
    ratio : float, default=1.0
        Target size of every minority class relative to the largest class,
        in ``(0, 1]``.
    per : float, default=0.8
        Share of the synthetic samples produced by EPSO.
    push_ratio : float, default=1.0
        How far EPSO pushes samples toward the class boundary.
    k : int, default=5
        Same-class neighbours used by ADASYN for interpolation.
    m : int, default=15
        Neighbours used by ADASYN to weight the minority seeds.
    parallel : bool, default=False
        Whether the generators run their chunks in parallel.
    progress : bool, default=False
        Whether the generators show progress bars.
    n_jobs : int, default=-1
        Number of joblib workers when ``parallel`` is True.
    threshold : float, default=0.005
        Eigenvalues at or below this value are unreliable.
    random_state : int, np.random.Generator or None, default=None
        Seed for reproducible resampling.

    Attributes
    ----------
    sample_counts_ : Dict[Any, int]
        Number of synthetic samples generated per class by the last call
        to ``fit_resample``.

    Examples
    --------
    >>> import numpy as np
    >>> rng = np.random.default_rng(0)
    >>> X = np.vstack([rng.normal(size=(10, 3)), rng.normal(4, 1, size=(40, 3))])
    >>> y = np.array([1] * 10 + [0] * 40)
    >>> X_res, y_res = EPSOADASYNSampler(random_state=0).fit_resample(X, y)
    >>> np.bincount(y_res)
    array([40, 40])
    """

    def __init__(
        self,
        ratio: float = 1.0,
        per: float = DEFAULT_PER,
        push_ratio: float = DEFAULT_PUSH_RATIO,
        k: int = DEFAULT_K,
        m: int = DEFAULT_M,
        parallel: bool = False,
        progress: bool = False,
        n_jobs: int = -1,
        threshold: float = RELIABILITY_THRESHOLD,
        random_state: RandomStateLike = None,
    ):
        if not 0 < ratio <= 1:
            raise ValueError(f"ratio must be in (0, 1], got {ratio}")
        if not 0 <= per <= 1:
            raise ValueError(f"per must be between 0 and 1, got {per}")

        self.ratio = ratio
        self.per = per
        self.push_ratio = push_ratio
        self.k = k
        self.m = m
        self.parallel = parallel
        self.progress = progress
        self.n_jobs = n_jobs
        self.threshold = threshold
        self.random_state = random_state

        self.sample_counts_: Optional[Dict[Any, int]] = None

    @property
    def execution_mode(self) -> ExecutionMode:
        return ExecutionMode(parallel=self.parallel, progress=self.progress, n_jobs=self.n_jobs)

    def fit_resample(self, X: Any, y: Any) -> Tuple[Any, Any]:
        """
        Append synthetic samples so that every class reaches the target size.

        Parameters
        ----------
        X : Any
            Samples as a numpy array, pandas or polars dataframe.
        y : Any
            Class labels, one per row of ``X``.

        Returns
        -------
        Tuple[Any, Any]
            The resampled ``(X, y)``. Original rows come first. Dataframe
            input gives a dataframe of the same type and a pandas Series.
        """
        df_type = check_dataframe_type(X)
        columns = None
        if df_type == "polars":
            X = convert_dataframe(X, "pandas")
        if df_type in ("pandas", "polars"):
            columns = X.columns

        X_matrix = as_sample_matrix(X, name="X")
        y_name = y.name if isinstance(y, pd.Series) else None
        y_array = np.asarray(y).ravel()

        if len(y_array) != len(X_matrix):
            raise ValueError(
                f"X has {len(X_matrix)} samples but y has {len(y_array)} labels"
            )
        if pd.isna(y_array).any():
            raise ValueError("y contains missing labels")

        classes, counts = np.unique(y_array, return_counts=True)
        if len(classes) < 2:
            raise ValueError(f"At least 2 classes are required, got {len(classes)}")

        n_target = int(round(self.ratio * counts.max()))
        seeds = spawn_seeds(self.random_state, len(classes))

        new_X, new_y = [X_matrix], [y_array]
        self.sample_counts_ = {}
        for label, count, seed in zip(classes, counts, seeds):
            if count >= n_target:
                self.sample_counts_[label] = 0
                continue

            mask = y_array == label
            synthetic = oversample(
                X_matrix[mask],
                X_matrix[~mask],
                n_target,
                per=self.per,
                push_ratio=self.push_ratio,
                k=self.k,
                m=self.m,
                execution_mode=self.execution_mode,
                threshold=self.threshold,
                random_state=seed,
            )
            logger.info("Class %s: generated %d samples", label, len(synthetic))
            self.sample_counts_[label] = len(synthetic)
            new_X.append(synthetic)
            new_y.append(np.full(len(synthetic), label, dtype=y_array.dtype))

        X_res = np.vstack(new_X)
        y_res = np.concatenate(new_y)

        if columns is None:
            return X_res, y_res

        X_res = pd.DataFrame(X_res, columns=columns)
        if df_type == "polars":
            X_res = convert_dataframe(X_res, "polars")
        return X_res, pd.Series(y_res, name=y_name)
