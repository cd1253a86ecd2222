"""
Pytest configuration and fixtures for pcaengine tests.
"""

import os
import sys

import numpy as np
import pytest

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pcaengine.components.config import ConfigManager

ENV_VARS = [
    'PCA_ITERS', 'PCA_EPSILON', 'PCA_TOL', 'PCA_SEED', 'PCA_NORMALIZE',
    'PCA_DEGENERATE_POLICY', 'PCA_VARIANCE_THRESHOLD', 'PORT', 'HOST', 'LOG_LEVEL'
]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Start every test from default configuration with no environment overrides."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def structured_data():
    """
    200 samples x 5 features with well separated variances.

    The data is a random rotation of independent columns with standard
    deviations 5, 3, 2, 1 and 0.5.
    """
    rng = np.random.RandomState(0)
    q, _ = np.linalg.qr(rng.randn(5, 5))
    latent = rng.randn(200, 5) * np.array([5.0, 3.0, 2.0, 1.0, 0.5])
    return latent @ q.T + np.array([10.0, -3.0, 0.0, 7.5, 1.0])


@pytest.fixture
def square_data():
    """Four corners of a square, equal variance in every direction."""
    return [[2, 0], [0, 2], [2, 2], [0, 0]]


@pytest.fixture
def correlated_data():
    """
    300 samples x 3 features on very different scales.

    Features 0 and 1 share a common factor, feature 2 is independent noise.
    """
    rng = np.random.RandomState(1)
    common = rng.randn(300)
    return np.column_stack([
        100.0 * (common + 0.3 * rng.randn(300)),
        0.01 * (common + 0.3 * rng.randn(300)) + 5.0,
        4.0 * rng.randn(300) + 2.0,
    ])
