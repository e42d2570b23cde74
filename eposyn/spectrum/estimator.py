"""
Regularized eigen-spectrum estimation for small minority classes.

The covariance of a minority class estimated from few samples has a reliable
leading part of its eigen-spectrum and an unreliable tail. This module keeps
the leading eigenvalues, replaces the tail with a hyperbolic decay model
fitted through the first and the cutoff eigenvalue, and caps the tail with the
variance the combined population shows along the same axes.
"""
import logging
from typing import Any, Literal, NamedTuple, Tuple

import numpy as np

from eposyn.exceptions import (
    DegenerateSpectrumError,
    InsufficientSamplesError,
)
from eposyn.utils.dataframe_utils import as_sample_matrix

logger = logging.getLogger(__name__)

# Eigenvalues at or below this are treated as unreliable
RELIABILITY_THRESHOLD = 0.005


class RegularizedSpectrum(NamedTuple):
    """Immutable result of :func:`estimate_spectrum`."""

    mean: np.ndarray  # Column means of the minority samples (n,)
    eigenvectors: np.ndarray  # Eigen axes as columns (n, n)
    eigenvalues: np.ndarray  # Raw eigenvalues, descending (n,)
    projected_variance: np.ndarray  # Combined-population variance per axis (n,)
    regularized: np.ndarray  # Regularized eigenvalues (n,)
    cutoff: int  # 1-based index of the first unreliable eigenvalue
    alpha: float  # Decay model numerator, NaN when degenerate
    beta: float  # Decay model offset, NaN when degenerate
    degenerate: bool  # True when the raw eigenvalues were kept


def eigen_decompose(cov: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigendecompose a covariance matrix with eigenvalues in descending order.

    Parameters
    ----------
    cov : np.ndarray
        Symmetric positive semi-definite matrix of shape (n, n).

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        Eigenvalues (n,) sorted descending and the matching eigenvectors
        as the columns of an (n, n) matrix. Negative eigenvalues caused by
        roundoff are clipped to zero.
    """
    values, vectors = np.linalg.eigh(cov)
    # eigh returns ascending order
    values = np.clip(values[::-1], 0.0, None)
    vectors = vectors[:, ::-1]
    return values, vectors


def reliable_cutoff(eigenvalues: np.ndarray, threshold: float = RELIABILITY_THRESHOLD) -> int:
    """
    Find the 1-based index of the first eigenvalue at or below ``threshold``.

    Returns the number of eigenvalues when none fall below the threshold,
    so the result always lies in ``[1, n]``.
    """
    below = np.flatnonzero(eigenvalues <= threshold)
    if below.size == 0:
        return len(eigenvalues)
    return int(below[0]) + 1


def projected_variance(eigenvectors: np.ndarray, cov: np.ndarray) -> np.ndarray:
    """Variance of ``cov`` along each eigen axis, i.e. ``diag(V' C V)``."""
    return np.diag(eigenvectors.T @ cov @ eigenvectors).copy()


def hyperbolic_constants(eigenvalues: np.ndarray, cutoff: int) -> Tuple[float, float]:
    """
    Fit ``f(i) = alpha / (i + beta)`` through ``(1, D[1])`` and ``(M, D[M])``.

    Parameters
    ----------
    eigenvalues : np.ndarray
        Descending eigenvalues ``D``.
    cutoff : int
        1-based reliability cutoff ``M``.

    Returns
    -------
    Tuple[float, float]
        The constants ``(alpha, beta)``.

    Raises
    ------
    DegenerateSpectrumError
        If ``D[1] == D[M]``, which includes ``M == 1``.
    """
    first = float(eigenvalues[0])
    last = float(eigenvalues[cutoff - 1])
    if first == last:
        raise DegenerateSpectrumError(
            f"Eigenvalues 1 and {cutoff} are both {first}; the decay model is undefined"
        )
    alpha = first * last * (cutoff - 1) / (first - last)
    beta = (cutoff * last - first) / (first - last)
    return alpha, beta


def regularize_spectrum(
    eigenvalues: np.ndarray,
    projected: np.ndarray,
    cutoff: int,
) -> np.ndarray:
    """
    Regularize the unreliable tail of an eigen-spectrum.

    Eigenvalues before the cutoff are passed through unchanged. From the
    cutoff on, each value follows the hyperbolic decay model and is capped
    by the projected combined-population variance on the same axis.

    Parameters
    ----------
    eigenvalues : np.ndarray
        Descending eigenvalues ``D`` of shape (n,).
    projected : np.ndarray
        Projected combined-population variance ``dT`` of shape (n,).
    cutoff : int
        1-based reliability cutoff ``M``.

    Returns
    -------
    np.ndarray
        A new array with the regularized eigenvalues.

    Raises
    ------
    DegenerateSpectrumError
        If the decay model is undefined for this spectrum.
    """
    alpha, beta = hyperbolic_constants(eigenvalues, cutoff)

    regularized = np.array(eigenvalues, dtype=float)
    axes = np.arange(1, len(regularized) + 1)
    tail = axes >= cutoff
    regularized[tail] = np.minimum(alpha / (axes[tail] + beta), projected[tail])
    return regularized


def estimate_spectrum(
    P: Any,
    N: Any,
    threshold: float = RELIABILITY_THRESHOLD,
    on_degenerate: Literal["raw", "raise"] = "raw",
) -> RegularizedSpectrum:
    """
    Estimate the regularized eigen-spectrum of the minority class.

    Parameters
    ----------
    P : Any
        Minority samples, one row per sample, at least 2 rows and 2 columns.
    N : Any
        Majority samples with the same number of columns as ``P``.
    threshold : float, default=0.005
        Eigenvalues at or below this value are unreliable.
    on_degenerate : Literal["raw", "raise"], default="raw"
        What to do when the first and cutoff eigenvalues are equal. "raw"
        keeps the raw eigenvalues, "raise" raises DegenerateSpectrumError.

    Returns
    -------
    RegularizedSpectrum
        Mean, eigen axes, raw and regularized eigenvalues and the cutoff.

    Raises
    ------
    InsufficientSamplesError
        If ``P`` has fewer than two rows.
    DimensionMismatchError
        If ``P`` and ``N`` have different numbers of columns.

    Examples
    --------
    >>> import numpy as np
    >>> rng = np.random.default_rng(0)
    >>> spectrum = estimate_spectrum(rng.normal(size=(20, 4)), rng.normal(size=(80, 4)))
    >>> spectrum.regularized.shape
    (4,)
    """
    if on_degenerate not in ("raw", "raise"):
        raise ValueError(
            f"on_degenerate '{on_degenerate}' is not supported. Expected one of ['raw', 'raise']"
        )

    P = as_sample_matrix(P, name="P")
    if P.shape[0] < 2:
        raise InsufficientSamplesError(
            f"At least 2 minority samples are required, got {P.shape[0]}"
        )

    N = as_sample_matrix(N, name="N", min_features=1, n_features=P.shape[1])

    mean = P.mean(axis=0)
    eigenvalues, eigenvectors = eigen_decompose(np.cov(P, rowvar=False))
    cutoff = reliable_cutoff(eigenvalues, threshold)

    total_cov = np.cov(np.vstack([P, N]), rowvar=False)
    projected = projected_variance(eigenvectors, total_cov)

    try:
        alpha, beta = hyperbolic_constants(eigenvalues, cutoff)
    except DegenerateSpectrumError:
        if on_degenerate == "raise":
            raise
        logger.warning(
            "Flat eigen-spectrum (cutoff %d of %d); using raw eigenvalues",
            cutoff, len(eigenvalues)
        )
        return RegularizedSpectrum(
            mean=mean,
            eigenvectors=eigenvectors,
            eigenvalues=eigenvalues,
            projected_variance=projected,
            regularized=eigenvalues.copy(),
            cutoff=cutoff,
            alpha=float("nan"),
            beta=float("nan"),
            degenerate=True,
        )

    regularized = regularize_spectrum(eigenvalues, projected, cutoff)
    logger.debug(
        "Spectrum cutoff %d of %d, alpha=%.6g, beta=%.6g",
        cutoff, len(eigenvalues), alpha, beta
    )

    return RegularizedSpectrum(
        mean=mean,
        eigenvectors=eigenvectors,
        eigenvalues=eigenvalues,
        projected_variance=projected,
        regularized=regularized,
        cutoff=cutoff,
        alpha=alpha,
        beta=beta,
        degenerate=False,
    )
