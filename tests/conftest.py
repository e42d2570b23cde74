"""
Shared fixtures for the eposyn tests.
"""
import numpy as np
import pytest


@pytest.fixture
def rank_deficient_data():
    """Minority class with one near-zero eigenvalue and a distant majority class."""
    rng = np.random.default_rng(42)
    base = rng.normal(size=(10, 2)) * 2.0
    P = np.column_stack([base, base[:, 0] + base[:, 1]])
    N = rng.normal(loc=8.0, size=(50, 3))
    return P, N


@pytest.fixture
def separated_data():
    """Full-rank minority class well separated from the majority class."""
    rng = np.random.default_rng(7)
    P = rng.normal(size=(25, 4))
    N = rng.normal(loc=6.0, size=(100, 4))
    return P, N
