"""
EPSO: synthetic minority samples drawn from a regularized eigen-spectrum.

Candidates are drawn from a Gaussian centred on the minority mean whose
variance along each eigen axis is the regularized eigenvalue. A candidate is
kept only when its nearest minority sample is closer than its nearest majority
sample. With a push ratio above one, more candidates than needed are drawn and
the least probable ones (furthest out along the reliable axes) are kept, which
pushes the synthetic samples toward the class boundary.
"""
import logging
import math
from functools import partial
from typing import Optional

import numpy as np
from sklearn.neighbors import NearestNeighbors

from eposyn.exceptions import GenerationError
from eposyn.generators.base import (
    ExecutionMode,
    RandomStateLike,
    SpectralGenerator,
    run_chunked,
)

logger = logging.getLogger(__name__)

DEFAULT_PUSH_RATIO = 1.0

# Largest candidate batch drawn in one pass
MAX_BATCH_SIZE = 65536


def _nearest_distance(nn: Optional[NearestNeighbors], queries: np.ndarray) -> np.ndarray:
    if nn is None:
        return np.full(len(queries), np.inf)
    distances, _ = nn.kneighbors(queries)
    return distances[:, 0]


def _epso_chunk(
    size: int,
    rng: np.random.Generator,
    mean: np.ndarray,
    eigenvectors: np.ndarray,
    eigenvalues: np.ndarray,
    P: np.ndarray,
    N: np.ndarray,
    push_ratio: float,
    cutoff: int,
    max_attempts_factor: int,
) -> np.ndarray:
    n_features = len(mean)
    n_candidates = int(math.ceil(size * push_ratio))
    scale = np.sqrt(np.clip(eigenvalues, 0.0, None))
    # Axes before the cutoff are the reliable subspace
    n_reliable = max(cutoff - 1, 1)

    minority_nn = NearestNeighbors(n_neighbors=1).fit(P)
    majority_nn = NearestNeighbors(n_neighbors=1).fit(N) if len(N) else None

    # Where the classes overlap about one draw in `imbalance` lands on the minority side
    imbalance = int(math.ceil((len(P) + len(N)) / len(P)))
    max_draws = max_attempts_factor * n_candidates * imbalance

    kept_samples, kept_scores = [], []
    n_kept = 0
    n_drawn = 0

    while n_kept < n_candidates:
        if n_drawn >= max_draws:
            raise GenerationError(
                f"Only {n_kept} of {n_candidates} EPSO candidates fell on the minority "
                f"side after {n_drawn} draws"
            )
        acceptance = n_kept / n_drawn if n_kept else 1.0 / imbalance
        batch_size = int(math.ceil((n_candidates - n_kept) / acceptance))
        batch_size = min(max(batch_size, n_candidates), MAX_BATCH_SIZE, max_draws - n_drawn)

        z = rng.standard_normal((batch_size, n_features))
        candidates = mean + (z * scale) @ eigenvectors.T
        n_drawn += batch_size

        accepted = (
            _nearest_distance(minority_nn, candidates)
            < _nearest_distance(majority_nn, candidates)
        )
        kept_samples.append(candidates[accepted])
        kept_scores.append(-0.5 * np.sum(z[accepted, :n_reliable] ** 2, axis=1))
        n_kept += int(accepted.sum())

        logger.debug("EPSO accepted %d of %d draws", n_kept, n_drawn)

    samples = np.vstack(kept_samples)[:n_candidates]
    if n_candidates == size:
        return samples

    # Keep the least probable candidates
    log_density = np.concatenate(kept_scores)[:n_candidates]
    order = np.argsort(log_density, kind="stable")[:size]
    return samples[order]


class EPSOGenerator(SpectralGenerator):
    """
    Spectral oversampling driven by a regularized eigen-spectrum.

    Parameters
    ----------
    max_attempts_factor : int, default=100
        Draws allowed per requested candidate, times the ratio of all
        samples to minority samples, before giving up with GenerationError.
    random_state : int, np.random.Generator or None, default=None
        Seed for the candidate draws.

    Examples
    --------
    >>> import numpy as np
    >>> from eposyn.spectrum import estimate_spectrum
    >>> rng = np.random.default_rng(0)
    >>> P, N = rng.normal(size=(20, 3)), rng.normal(5, 1, size=(60, 3))
    >>> s = estimate_spectrum(P, N)
    >>> EPSOGenerator(random_state=0).generate(
    ...     s.mean, s.eigenvectors, s.regularized, P, N, 1.0, s.cutoff, 5).shape
    (5, 3)
    """

    def __init__(self, max_attempts_factor: int = 100, random_state: RandomStateLike = None):
        if max_attempts_factor < 1:
            raise ValueError(f"max_attempts_factor must be at least 1, got {max_attempts_factor}")
        self.max_attempts_factor = max_attempts_factor
        self.random_state = random_state

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
        """Draw ``count`` synthetic minority samples.

        Args:
            mean: Minority class mean, shape (n,)
            eigenvectors: Eigen axes as columns, shape (n, n)
            eigenvalues: Regularized eigenvalues, shape (n,)
            P: Minority samples, shape (poscnt, n)
            N: Majority samples, shape (negcnt, n)
            push_ratio: Candidates drawn per kept sample, at least 1
            cutoff: 1-based index of the first unreliable axis
            count: Number of samples to return
            mode: Execution mode

        Returns:
            Synthetic samples of shape (count, n)
        """
        if push_ratio < 1:
            raise ValueError(f"push_ratio must be at least 1, got {push_ratio}")
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")

        mean = np.asarray(mean, dtype=float)
        n_features = len(mean)
        task = partial(
            _epso_chunk,
            mean=mean,
            eigenvectors=np.asarray(eigenvectors, dtype=float),
            eigenvalues=np.asarray(eigenvalues, dtype=float),
            P=np.asarray(P, dtype=float),
            N=np.asarray(N, dtype=float).reshape(-1, n_features),
            push_ratio=push_ratio,
            cutoff=cutoff,
            max_attempts_factor=self.max_attempts_factor,
        )

        logger.debug("Generating %d EPSO samples (push_ratio=%s)", count, push_ratio)
        return run_chunked(
            task,
            count,
            n_features,
            mode=mode,
            random_state=self.random_state,
            desc="EPSO",
        )
