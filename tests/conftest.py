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
def simple_regression_data(rng):
    """Intercept plus two regressors, low noise."""
    n = 100
    X = np.column_stack([np.ones(n), rng.standard_normal((n, 2))])
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * 0.1
    return X, y, beta_true


@pytest.fixture
def heteroscedastic_data(rng):
    """Noise variance grows with |x1|."""
    n = 200
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    X = np.column_stack([np.ones(n), x1, x2])
    y = X @ [0.5, 1.0, -1.0] + rng.standard_normal(n) * (0.2 + np.abs(x1))
    return X, y


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2  # Perfect collinearity
    X = np.column_stack([x1, x2, x3])
    y = rng.standard_normal(n)
    return X, y


@pytest.fixture
def logit_data(rng):
    """Binary response from a known logit model."""
    n = 500
    X = np.column_stack([np.ones(n), rng.standard_normal((n, 2))])
    beta_true = np.array([-0.5, 1.0, -0.75])
    prob = 1.0 / (1.0 + np.exp(-(X @ beta_true)))
    y = (rng.uniform(size=n) < prob).astype(float)
    return X, y, beta_true


@pytest.fixture
def small_logit_data():
    """Five observations, intercept and one regressor."""
    X = np.array([
        [1.0, 3.1],
        [1.0, 13.2],
        [1.0, -23.5],
        [1.0, -4.4],
        [1.0, 9.4],
    ])
    y = np.array([0.0, 1.0, 1.0, 0.0, 1.0])
    return X, y
