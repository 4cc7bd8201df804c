"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def poisson_data(rng):
    """y ~ Poisson(exp(1 + 2x)), x ~ U[0, 1], n = 100, with intercept column."""
    n = 100
    x = rng.uniform(0.0, 1.0, n)
    X = np.column_stack([np.ones(n), x])
    y = rng.poisson(np.exp(1.0 + 2.0 * x)).astype(np.float64)
    return X, y


@pytest.fixture
def collinear_data(rng):
    """Design with a duplicated column (should fail)."""
    n = 50
    x = rng.uniform(0.0, 1.0, n)
    X = np.column_stack([np.ones(n), x, x])
    y = rng.poisson(2.0, n).astype(np.float64)
    return X, y
