"""
ADASYN: adaptive synthetic sampling weighted by local class density.

Minority seeds surrounded by more majority samples get more synthetic
samples. Each synthetic sample lies on the segment between a seed and one of
its nearest minority neighbours.
"""
import logging
from functools import partial
from typing import Optional

import numpy as np
from sklearn.neighbors import NearestNeighbors

from eposyn.exceptions import DimensionMismatchError, InsufficientSamplesError
from eposyn.generators.base import (
    DensityGenerator,
    ExecutionMode,
    FeatureMajorMatrix,
    RandomStateLike,
    run_chunked,
)

logger = logging.getLogger(__name__)

DEFAULT_K = 5
DEFAULT_M = 15


def _without_self(indices: np.ndarray) -> np.ndarray:
    """Drop each query's own index from its neighbour list."""
    is_self = indices == np.arange(len(indices))[:, None]
    # A duplicate row can push the query out of its own list, drop the furthest instead
    is_self[~is_self.any(axis=1), -1] = True
    return indices[~is_self].reshape(len(indices), -1)


def seed_weights(minority: np.ndarray, majority: np.ndarray, m: int) -> np.ndarray:
    """
    Sampling probability of each minority seed.

    The weight of a seed is the share of majority samples among its ``m``
    nearest neighbours in the combined data, normalized to sum to one. When
    no seed has a majority neighbour the weights are uniform.

    Parameters
    ----------
    minority : np.ndarray
        Minority samples, row-major.
    majority : np.ndarray
        Majority samples, row-major.
    m : int
        Number of neighbours, clipped to the number of other samples.

    Returns
    -------
    np.ndarray
        Probabilities of shape (n_minority,).
    """
    combined = np.vstack([minority, majority])
    is_majority = np.r_[np.zeros(len(minority), dtype=bool), np.ones(len(majority), dtype=bool)]

    n_neighbors = min(m, len(combined) - 1)
    if n_neighbors < m:
        logger.warning("m=%d exceeds the available samples, using %d", m, n_neighbors)

    nn = NearestNeighbors(n_neighbors=n_neighbors + 1).fit(combined)
    _, indices = nn.kneighbors(minority)
    # Minority seeds come first in the combined data, so row i is sample i
    ratios = is_majority[_without_self(indices)].mean(axis=1)

    total = ratios.sum()
    if total == 0:
        logger.info("No minority seed has majority neighbours, sampling seeds uniformly")
        return np.full(len(minority), 1.0 / len(minority))
    return ratios / total


def minority_neighbors(minority: np.ndarray, k: int) -> np.ndarray:
    """Indices of the ``k`` nearest minority neighbours of every minority sample."""
    n_neighbors = min(k, len(minority) - 1)
    if n_neighbors < k:
        logger.warning("k=%d exceeds the minority neighbours available, using %d", k, n_neighbors)

    nn = NearestNeighbors(n_neighbors=n_neighbors + 1).fit(minority)
    _, indices = nn.kneighbors(minority)
    return _without_self(indices)


def _adasyn_chunk(
    size: int,
    rng: np.random.Generator,
    minority: np.ndarray,
    weights: np.ndarray,
    neighbors: np.ndarray,
) -> np.ndarray:
    seeds = rng.choice(len(minority), size=size, p=weights)
    picks = neighbors[seeds, rng.integers(neighbors.shape[1], size=size)]
    gaps = rng.random((size, 1))
    return minority[seeds] + gaps * (minority[picks] - minority[seeds])


class ADASYNGenerator(DensityGenerator):
    """
    Density-weighted interpolation between minority neighbours.

    Parameters
    ----------
    random_state : int, np.random.Generator or None, default=None
        Seed for seed selection and interpolation gaps.
    """

    def __init__(self, random_state: RandomStateLike = None):
        self.random_state = random_state

    def generate(
        self,
        P: FeatureMajorMatrix,
        N: FeatureMajorMatrix,
        count: int,
        k: int = DEFAULT_K,
        m: int = DEFAULT_M,
        mode: Optional[ExecutionMode] = None,
    ) -> FeatureMajorMatrix:
        """Generate ``count`` synthetic minority samples.

        Args:
            P: Minority samples, feature-major
            N: Majority samples, feature-major
            count: Number of samples to produce
            k: Same-class neighbours used for interpolation
            m: Neighbours across both classes used to weight the seeds
            mode: Execution mode

        Returns:
            Synthetic samples, feature-major with ``count`` columns
        """
        if k < 1 or m < 1:
            raise ValueError(f"k and m must be at least 1, got k={k}, m={m}")
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if P.n_samples < 2:
            raise InsufficientSamplesError(
                f"At least 2 minority samples are required, got {P.n_samples}"
            )
        if N.n_samples and N.n_features != P.n_features:
            raise DimensionMismatchError(
                f"P has {P.n_features} features but N has {N.n_features}"
            )

        minority = P.to_rows()
        majority = N.to_rows().reshape(-1, P.n_features)

        task = partial(
            _adasyn_chunk,
            minority=minority,
            weights=seed_weights(minority, majority, m),
            neighbors=minority_neighbors(minority, k),
        )

        logger.debug("Generating %d ADASYN samples (k=%d, m=%d)", count, k, m)
        rows = run_chunked(
            task,
            count,
            P.n_features,
            mode=mode,
            random_state=self.random_state,
            desc="ADASYN",
        )
        return FeatureMajorMatrix.from_rows(rows)
