"""Base classes and execution helpers for synthetic sample generators.

This module provides the execution mode shared by all generators, the
feature-major matrix type used at the density generator boundary, and the
chunked runner that executes a generation task sequentially or in parallel,
with or without a progress bar.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, NamedTuple, Optional, Union

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from tqdm.auto import tqdm

logger = logging.getLogger(__name__)

RandomStateLike = Union[None, int, np.random.Generator, np.random.SeedSequence]

# Chunks used for progress reporting in sequential mode
DEFAULT_PROGRESS_CHUNKS = 10


class ExecutionMode(NamedTuple):
    """How a generator runs: sequential or parallel, silent or with progress."""

    parallel: bool = False
    progress: bool = False
    n_jobs: int = -1  # Passed to joblib when parallel
    n_chunks: Optional[int] = None  # Overrides the automatic chunk count

    def resolve_chunks(self, count: int) -> int:
        """Number of chunks to split ``count`` samples into."""
        if count <= 0:
            return 0
        if self.n_chunks is not None:
            n_chunks = self.n_chunks
        elif self.parallel:
            n_chunks = effective_n_jobs(self.n_jobs)
        elif self.progress:
            n_chunks = DEFAULT_PROGRESS_CHUNKS
        else:
            n_chunks = 1
        return max(1, min(count, n_chunks))


class FeatureMajorMatrix(NamedTuple):
    """Samples stored column-wise: shape (n_features, n_samples)."""

    data: np.ndarray

    @classmethod
    def from_rows(cls, rows: np.ndarray) -> FeatureMajorMatrix:
        """Build from a row-major (n_samples, n_features) matrix."""
        return cls(np.ascontiguousarray(np.asarray(rows, dtype=float).T))

    def to_rows(self) -> np.ndarray:
        """Return the row-major (n_samples, n_features) view."""
        return self.data.T

    @property
    def n_features(self) -> int:
        return self.data.shape[0]

    @property
    def n_samples(self) -> int:
        return self.data.shape[1]


def split_count(count: int, n_chunks: int) -> List[int]:
    """Split ``count`` into ``n_chunks`` near-equal non-negative parts."""
    if n_chunks <= 0:
        return []
    base, extra = divmod(count, n_chunks)
    return [base + 1 if i < extra else base for i in range(n_chunks)]


def spawn_seeds(random_state: RandomStateLike, n: int) -> List[np.random.SeedSequence]:
    """Derive ``n`` independent seed sequences from ``random_state``."""
    if isinstance(random_state, np.random.SeedSequence):
        sequence = random_state
    elif isinstance(random_state, np.random.Generator):
        sequence = np.random.SeedSequence(int(random_state.integers(2**63)))
    else:
        sequence = np.random.SeedSequence(random_state)
    return sequence.spawn(n)


def _run_chunk(
    func: Callable[[int, np.random.Generator], np.ndarray],
    size: int,
    seed: np.random.SeedSequence,
) -> np.ndarray:
    return func(size, np.random.default_rng(seed))


def run_chunked(
    func: Callable[[int, np.random.Generator], np.ndarray],
    count: int,
    n_features: int,
    mode: Optional[ExecutionMode] = None,
    random_state: RandomStateLike = None,
    desc: Optional[str] = None,
) -> np.ndarray:
    """
    Run a generation task over chunks of the requested count.

    Parameters
    ----------
    func : Callable[[int, np.random.Generator], np.ndarray]
        Produces a (size, n_features) block of samples from its own
        random generator. Must be picklable when running in parallel.
    count : int
        Total number of samples to produce.
    n_features : int
        Number of columns of each block.
    mode : Optional[ExecutionMode], default=None
        Execution mode; sequential and silent when None.
    random_state : RandomStateLike, default=None
        Seed for the per-chunk random streams.
    desc : Optional[str], default=None
        Label of the progress bar.

    Returns
    -------
    np.ndarray
        The blocks stacked in chunk order, shape (count, n_features).
    """
    mode = mode or ExecutionMode()
    if count <= 0:
        return np.empty((0, n_features))

    sizes = split_count(count, mode.resolve_chunks(count))
    seeds = spawn_seeds(random_state, len(sizes))

    if mode.parallel:
        logger.debug("Running %d chunks with n_jobs=%s", len(sizes), mode.n_jobs)
        results = Parallel(n_jobs=mode.n_jobs, return_as="generator")(
            delayed(_run_chunk)(func, size, seed) for size, seed in zip(sizes, seeds)
        )
    else:
        results = (_run_chunk(func, size, seed) for size, seed in zip(sizes, seeds))

    blocks = []
    with tqdm(total=count, desc=desc, unit="sample", disable=not mode.progress) as progress_bar:
        for block in results:
            blocks.append(block)
            progress_bar.update(len(block))

    return np.vstack(blocks)


class SpectralGenerator(ABC):
    """Interface of generators driven by a regularized eigen-spectrum."""

    @abstractmethod
    def generate(
        self,
        mean: np.ndarray,
        eigenvectors: np.ndarray,
        eigenvalues: np.ndarray,
        P: np.ndarray,
        N: np.ndarray,
        push_ratio: float,
        cutoff: int,
        count: int,
        mode: Optional[ExecutionMode] = None,
    ) -> np.ndarray:
        """Return a (count, n_features) matrix of synthetic minority samples.

        Args:
            mean: Minority class mean
            eigenvectors: Eigen axes as columns
            eigenvalues: Regularized eigenvalues shaping the noise per axis
            P: Minority samples, row-major
            N: Majority samples, row-major
            push_ratio: How far samples are pushed toward the class boundary
            cutoff: 1-based index of the first unreliable axis
            count: Number of samples to produce
            mode: Execution mode

        Returns:
            Synthetic samples, row-major
        """
        pass


class DensityGenerator(ABC):
    """Interface of neighbour-density generators working on feature-major data."""

    @abstractmethod
    def generate(
        self,
        P: FeatureMajorMatrix,
        N: FeatureMajorMatrix,
        count: int,
        k: int,
        m: int,
        mode: Optional[ExecutionMode] = None,
    ) -> FeatureMajorMatrix:
        """Return ``count`` synthetic minority samples as a feature-major matrix.

        Args:
            P: Minority samples, feature-major
            N: Majority samples, feature-major
            count: Number of samples to produce
            k: Same-class neighbours used for interpolation
            m: Neighbours across both classes used to weight the seeds
            mode: Execution mode

        Returns:
            Synthetic samples, feature-major
        """
        pass
