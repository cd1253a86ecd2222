"""
Tests for the standardization module.
"""

import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pcaengine.exceptions import DegenerateInputError, ValidationError
from pcaengine.math.standardize import feature_means, feature_stds, standardize


class TestFeatureStatistics:
    """Tests for the per-feature mean and std."""

    def test_feature_means(self):
        data = np.array([[1.0, 10.0], [3.0, 20.0]])
        assert np.allclose(feature_means(data), [2.0, 15.0])

    def test_feature_stds_use_sample_divisor(self):
        """The std divides by n-1."""
        data = np.array([[1.0], [2.0], [3.0], [4.0]])
        stds = feature_stds(data, feature_means(data))

        assert np.isclose(stds[0], np.std(data[:, 0], ddof=1))

    def test_feature_stds_single_sample(self):
        """One sample has no sample standard deviation."""
        data = np.array([[1.0, 2.0]])
        with pytest.raises(ValidationError):
            feature_stds(data, feature_means(data))


class TestStandardize:
    """Tests for standardize."""

    def test_normalize(self):
        """Normalized columns have zero mean and unit sample variance."""
        rng = np.random.RandomState(0)
        data = rng.randn(50, 3) * [1.0, 10.0, 100.0] + [5.0, -5.0, 0.0]

        standardized, means, stds = standardize(data, normalize=True)

        assert np.allclose(standardized.mean(axis=0), 0.0)
        assert np.allclose(standardized.std(axis=0, ddof=1), 1.0)
        assert np.allclose(means, data.mean(axis=0))
        assert np.allclose(stds, data.std(axis=0, ddof=1))

    def test_center_only(self):
        """Without normalization the data is only centered and stds are 1."""
        data = np.array([[2.0, 0.0], [0.0, 2.0], [2.0, 2.0], [0.0, 0.0]])

        standardized, means, stds = standardize(data, normalize=False)

        assert np.allclose(means, [1.0, 1.0])
        assert np.array_equal(stds, [1.0, 1.0])
        assert np.allclose(standardized, data - 1.0)

    def test_input_not_modified(self):
        data = np.array([[1.0, 2.0], [3.0, 5.0]])
        original = data.copy()

        standardize(data, normalize=True)

        assert np.array_equal(data, original)

    def test_constant_feature_raises(self):
        """A zero-variance feature cannot be normalized under the default policy."""
        data = np.array([[1.0, 7.0], [2.0, 7.0], [3.0, 7.0]])

        with pytest.raises(DegenerateInputError, match=r"\[1\]"):
            standardize(data, normalize=True)

    def test_constant_feature_clamped(self):
        """The clamp policy scales by epsilon and zeroes the column."""
        data = np.array([[1.0, 0.1], [2.0, 0.1], [3.0, 0.1]])

        standardized, _, stds = standardize(data, normalize=True, epsilon=1e-10, degenerate_policy='clamp')

        assert stds[1] == 1e-10
        assert np.array_equal(standardized[:, 1], [0.0, 0.0, 0.0])
        assert np.all(np.isfinite(standardized))

    def test_constant_feature_without_normalization(self):
        """Centering a constant feature is harmless."""
        data = np.array([[1.0, 7.0], [2.0, 7.0], [3.0, 7.0]])

        standardized, _, _ = standardize(data, normalize=False)

        assert np.allclose(standardized[:, 1], 0.0)

    def test_unknown_policy(self):
        data = np.array([[1.0, 7.0], [2.0, 7.0]])

        with pytest.raises(ValidationError):
            standardize(data, normalize=True, degenerate_policy='ignore')
