"""
Feature standardization for PCA.

Centers every feature on its mean and, when normalization is requested,
scales it by its sample standard deviation (divisor n-1).
"""

import logging
from typing import Tuple

import numpy as np

from pcaengine.exceptions import DegenerateInputError, ValidationError

logger = logging.getLogger(__name__)


def feature_means(data: np.ndarray) -> np.ndarray:
    """Column means of a samples x features matrix."""
    return np.mean(data, axis=0)


def feature_stds(data: np.ndarray, means: np.ndarray) -> np.ndarray:
    """
    Sample standard deviation of every column.

    Args:
        data: Samples x features matrix
        means: Column means of data

    Returns:
        Standard deviations computed with divisor n-1
    """
    n_samples = data.shape[0]
    if n_samples < 2:
        raise ValidationError("At least 2 samples are required to estimate a standard deviation")
    return np.sqrt(np.sum((data - means) ** 2, axis=0) / (n_samples - 1))


def standardize(data: np.ndarray,
                normalize: bool = True,
                epsilon: float = 1e-10,
                degenerate_policy: str = 'raise') -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Center and optionally scale every feature.

    Args:
        data: Samples x features matrix
        normalize: Whether to divide by the sample standard deviation
        epsilon: Value constant features are scaled by under the 'clamp' policy
        degenerate_policy: 'raise' or 'clamp', applied to zero-variance
            features when normalize is true

    Returns:
        Tuple of (standardized data, means, stds)

    Raises:
        DegenerateInputError: If a feature is constant, normalize is true
            and the policy is 'raise'
    """
    means = feature_means(data)

    if normalize:
        stds = feature_stds(data, means)
        constant = np.flatnonzero(stds <= epsilon)
        if constant.size > 0:
            if degenerate_policy == 'raise':
                raise DegenerateInputError(
                    f"Cannot normalize zero-variance feature(s) {constant.tolist()}; "
                    "remove them or use the 'clamp' policy"
                )
            if degenerate_policy != 'clamp':
                raise ValidationError(f"Unknown degenerate policy: {degenerate_policy}")
            logger.warning(f"Clamping std of zero-variance feature(s) {constant.tolist()} to {epsilon}")
            stds = stds.copy()
            stds[constant] = epsilon
    else:
        stds = np.ones(data.shape[1])

    standardized = (data - means) / stds
    if normalize and constant.size > 0:
        # Rounding in the mean must not be blown up by the clamped std
        standardized[:, constant] = 0.0

    return standardized, means, stds
