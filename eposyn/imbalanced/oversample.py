"""
Mixed EPSO / ADASYN oversampling of a single minority class.

The number of samples needed to reach the target size is split between the
spectral generator (EPSO) and the density generator (ADASYN). The spectral
generator is parameterized by the regularized eigen-spectrum of the minority
class; the density generator works on feature-major copies of the samples.
"""
import logging
import math
from typing import Any, Literal, Optional, Tuple

import numpy as np

from eposyn.exceptions import GenerationError, TargetTooSmallError
from eposyn.generators.adasyn import DEFAULT_K, DEFAULT_M, ADASYNGenerator
from eposyn.generators.base import (
    DensityGenerator,
    ExecutionMode,
    FeatureMajorMatrix,
    RandomStateLike,
    SpectralGenerator,
    spawn_seeds,
)
from eposyn.generators.epso import DEFAULT_PUSH_RATIO, EPSOGenerator
from eposyn.spectrum.estimator import RELIABILITY_THRESHOLD, estimate_spectrum
from eposyn.utils.dataframe_utils import as_sample_matrix

logger = logging.getLogger(__name__)

# Share of the synthetic samples produced by EPSO
DEFAULT_PER = 0.8


def split_counts(n_target: int, poscnt: int, per: float = DEFAULT_PER) -> Tuple[int, int]:
    """
    Split the samples to generate between EPSO and ADASYN.

    EPSO receives ``ceil((n_target - poscnt) * per)`` samples and ADASYN the
    rest, so the two always add up to ``n_target - poscnt``.

    Parameters
    ----------
    n_target : int
        Target size of the minority class.
    poscnt : int
        Current size of the minority class.
    per : float, default=0.8
        Share of the samples assigned to EPSO, in ``[0, 1]``.

    Returns
    -------
    Tuple[int, int]
        ``(num_epso, num_adasyn)``.

    Examples
    --------
    >>> split_counts(30, 10, 0.8)
    (16, 4)
    """
    if not float(n_target).is_integer():
        raise ValueError(f"n_target must be a whole number, got {n_target}")
    if n_target < poscnt:
        raise TargetTooSmallError(
            f"The target minority class size {n_target} is smaller than the "
            f"existing size {poscnt}"
        )
    if not 0 <= per <= 1:
        raise ValueError(f"per must be between 0 and 1, got {per}")

    total = int(n_target) - poscnt
    # Rounding first keeps float noise such as 10 * 0.7 = 7.000000000000001 out of the ceiling
    num_epso = int(math.ceil(round(total * per, 9)))
    return num_epso, total - num_epso


def oversample(
    P: Any,
    N: Any,
    n_target: int,
    per: float = DEFAULT_PER,
    push_ratio: float = DEFAULT_PUSH_RATIO,
    k: int = DEFAULT_K,
    m: int = DEFAULT_M,
    execution_mode: Optional[ExecutionMode] = None,
    threshold: float = RELIABILITY_THRESHOLD,
    on_degenerate: Literal["raw", "raise"] = "raw",
    spectral_generator: Optional[SpectralGenerator] = None,
    density_generator: Optional[DensityGenerator] = None,
    random_state: RandomStateLike = None,
) -> np.ndarray:
    """
    Generate synthetic minority samples with EPSO and ADASYN.

    Parameters
    ----------
    P : Any
        Minority samples, one row per sample.
    N : Any
        Majority samples with the same columns as ``P``.
    n_target : int
        Target size of the minority class, at least ``len(P)``.
    per : float, default=0.8
        Share of the synthetic samples produced by EPSO.
    push_ratio : float, default=1.0
        How far EPSO pushes samples toward the class boundary.
    k : int, default=5
        Same-class neighbours used by ADASYN for interpolation.
    m : int, default=15
        Neighbours used by ADASYN to weight the minority seeds.
    execution_mode : Optional[ExecutionMode], default=None
        Sequential or parallel, with or without progress bars. Passed to
        both generators.
    threshold : float, default=0.005
        Eigenvalues at or below this value are unreliable.
    on_degenerate : Literal["raw", "raise"], default="raw"
        Handling of a flat eigen-spectrum, see ``estimate_spectrum``.
    spectral_generator : Optional[SpectralGenerator], default=None
        Replaces the default EPSOGenerator.
    density_generator : Optional[DensityGenerator], default=None
        Replaces the default ADASYNGenerator.
    random_state : RandomStateLike, default=None
        Seed for the default generators.

    Returns
    -------
    np.ndarray
        Synthetic samples of shape ``(n_target - len(P), n_features)``:
        the ADASYN samples followed by the EPSO samples.

    Raises
    ------
    TargetTooSmallError
        If ``n_target`` is smaller than the number of minority samples.
    ValueError
        If ``n_target`` is not a whole number, ``per`` is outside
        ``[0, 1]`` or ``k`` or ``m`` is below one.

    Examples
    --------
    >>> import numpy as np
    >>> rng = np.random.default_rng(0)
    >>> P = rng.normal(size=(10, 3))
    >>> N = rng.normal(4, 1, size=(50, 3))
    >>> oversample(P, N, n_target=30, random_state=0).shape
    (20, 3)
    """
    P = as_sample_matrix(P, name="P")
    poscnt, n_features = P.shape
    num_epso, num_adasyn = split_counts(n_target, poscnt, per)

    if k < 1 or m < 1:
        raise ValueError(f"k and m must be at least 1, got k={k}, m={m}")

    spectrum = estimate_spectrum(P, N, threshold=threshold, on_degenerate=on_degenerate)
    N = as_sample_matrix(N, name="N", min_features=1, n_features=n_features)

    logger.info(
        "Oversampling %d minority samples to %d: %d EPSO, %d ADASYN",
        poscnt, n_target, num_epso, num_adasyn
    )

    mode = execution_mode or ExecutionMode()
    epso_seed, adasyn_seed = spawn_seeds(random_state, 2)

    epso_samples = np.empty((0, n_features))
    if num_epso > 0:
        generator = spectral_generator or EPSOGenerator(random_state=epso_seed)
        epso_samples = np.asarray(generator.generate(
            spectrum.mean,
            spectrum.eigenvectors,
            spectrum.regularized,
            P,
            N,
            push_ratio,
            spectrum.cutoff,
            num_epso,
            mode=mode,
        ))
        _check_block(epso_samples, num_epso, n_features, "EPSO")

    adasyn_samples = np.empty((0, n_features))
    if num_adasyn > 0:
        generator = density_generator or ADASYNGenerator(random_state=adasyn_seed)
        result = generator.generate(
            FeatureMajorMatrix.from_rows(P),
            FeatureMajorMatrix.from_rows(N),
            num_adasyn,
            k,
            m,
            mode=mode,
        )
        adasyn_samples = result.to_rows()
        _check_block(adasyn_samples, num_adasyn, n_features, "ADASYN")

    return np.vstack([adasyn_samples, epso_samples])


def _check_block(block: np.ndarray, count: int, n_features: int, name: str) -> None:
    if block.shape != (count, n_features):
        raise GenerationError(
            f"{name} returned shape {block.shape}, expected {(count, n_features)}"
        )
