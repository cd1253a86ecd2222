"""
Correlation and covariance computation for the PCA engine.

Correlation is always measured on the raw features, covariance on the
matrix that is actually handed to the eigen-solver.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from pcaengine.math.standardize import feature_means, feature_stds

logger = logging.getLogger(__name__)


def covariance_matrix(standardized: np.ndarray) -> np.ndarray:
    """
    Compute the covariance matrix of already centered data.

    Args:
        standardized: Centered (and possibly scaled) samples x features matrix

    Returns:
        Features x features covariance matrix, divisor n-1
    """
    n_samples = standardized.shape[0]
    cov = standardized.T @ standardized / (n_samples - 1)

    # Remove floating point asymmetry
    return (cov + cov.T) / 2.0


def correlation_matrix(data: np.ndarray) -> np.ndarray:
    """
    Compute the Pearson correlation matrix of the raw features.

    The data is re-centered and re-scaled with each feature's own mean and
    sample std, whatever preprocessing the PCA itself uses. The diagonal is
    set to 1 without being computed, and pairs involving a constant feature
    get a correlation of 0.

    Args:
        data: Raw samples x features matrix

    Returns:
        Features x features correlation matrix
    """
    n_samples = data.shape[0]
    means = feature_means(data)
    stds = feature_stds(data, means)

    constant = np.ptp(data, axis=0) == 0
    if np.any(constant):
        logger.debug(f"Features {np.flatnonzero(constant).tolist()} are constant, correlation set to 0")

    scale = np.where(constant, 1.0, stds)
    z = (data - means) / scale
    z[:, constant] = 0.0

    corr = z.T @ z / (n_samples - 1)
    corr = np.clip((corr + corr.T) / 2.0, -1.0, 1.0)

    # Set diagonal to 1
    np.fill_diagonal(corr, 1.0)

    return corr


def feature_statistics(data: np.ndarray,
                       feature_names: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Summarize every raw feature.

    Args:
        data: Raw samples x features matrix
        feature_names: Optional names for the features

    Returns:
        DataFrame indexed by feature with mean, median, min, max and std
        (population std, divisor n) columns
    """
    df = pd.DataFrame(data, columns=feature_names)

    # Median matches the upper middle element for even counts
    sorted_values = np.sort(data, axis=0)
    median = sorted_values[data.shape[0] // 2]

    return pd.DataFrame({
        'mean': df.mean(axis=0),
        'median': pd.Series(median, index=df.columns),
        'min': df.min(axis=0),
        'max': df.max(axis=0),
        'std': df.std(axis=0, ddof=0)
    })


def correlation_pairs(corr: np.ndarray,
                      feature_names: Optional[List[str]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Find the most and least correlated pairs of distinct features.

    Pairs with a perfect correlation (|r| == 1) are skipped when looking
    for the strongest pair, since they are usually duplicated features.

    Args:
        corr: Correlation matrix
        feature_names: Optional names for the features

    Returns:
        Dictionary with 'strongest' and 'weakest' entries, each holding
        'feature_a', 'feature_b', 'idx_a', 'idx_b' and 'corr'
    """
    n = corr.shape[0]
    if feature_names is None:
        feature_names = [f"feature_{i}" for i in range(n)]

    def pair(i: int, j: int) -> Dict[str, Any]:
        return {
            'feature_a': feature_names[i],
            'feature_b': feature_names[j],
            'idx_a': i,
            'idx_b': j,
            'corr': float(corr[i, j])
        }

    strongest = None
    weakest = None
    for i in range(n):
        for j in range(i + 1, n):
            value = abs(corr[i, j])
            if value < 1.0 and (strongest is None or value > abs(strongest['corr'])):
                strongest = pair(i, j)
            if weakest is None or value < abs(weakest['corr']):
                weakest = pair(i, j)

    return {
        'strongest': strongest,
        'weakest': weakest
    }
