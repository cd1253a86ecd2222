"""
Projection and derived statistics for the PCA engine.

Everything here is computed from the standardized data and the extracted
eigenpairs: transformed coordinates, variance ratios, reconstruction error
and loadings.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from pcaengine.exceptions import DegenerateInputError, ValidationError

logger = logging.getLogger(__name__)


def project(standardized: np.ndarray, eigenvectors: np.ndarray) -> np.ndarray:
    """
    Project samples onto the principal components.

    Args:
        standardized: Standardized samples x features matrix
        eigenvectors: Components as rows (k x features)

    Returns:
        Samples x k matrix of coordinates
    """
    return standardized @ eigenvectors.T


def inverse_transform(transformed: np.ndarray,
                      components: np.ndarray,
                      mean: Optional[np.ndarray] = None,
                      std: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Map projected coordinates back to feature space.

    Without mean and std the result is in standardized units; with them it
    is in the units of the original data.

    Args:
        transformed: Samples x k coordinates
        components: Components as rows (k x features)
        mean: Feature means used for standardization
        std: Feature scales used for standardization

    Returns:
        Samples x features reconstruction
    """
    reconstructed = transformed @ components
    if std is not None:
        reconstructed = reconstructed * std
    if mean is not None:
        reconstructed = reconstructed + mean
    return reconstructed


def explained_variance_ratio(eigenvalues: np.ndarray) -> np.ndarray:
    """
    Share of the extracted variance carried by each component.

    The denominator is the sum over the extracted eigenvalues only, so the
    ratios always sum to 1.

    Args:
        eigenvalues: Extracted eigenvalues

    Returns:
        Ratio per component

    Raises:
        DegenerateInputError: If the extracted eigenvalues sum to zero
    """
    total = float(np.sum(eigenvalues))
    if total <= 0:
        raise DegenerateInputError("Dataset has no variance along any extracted component")
    return eigenvalues / total


def cumulative_variance(ratios: np.ndarray) -> np.ndarray:
    """Running sum of the explained variance ratios."""
    return np.cumsum(ratios)


def reconstruction_error(eigenvalues: np.ndarray) -> np.ndarray:
    """
    Fraction of extracted variance left out when keeping 1..m components.

    Args:
        eigenvalues: Extracted eigenvalues

    Returns:
        Array whose entry k-1 is sum(eigenvalues[k:]) / sum(eigenvalues)
    """
    total = float(np.sum(eigenvalues))
    if total <= 0:
        raise DegenerateInputError("Dataset has no variance along any extracted component")

    remaining = total - np.cumsum(eigenvalues)
    # The last entry is exactly zero, not a rounding residue
    remaining[-1] = 0.0
    return np.clip(remaining / total, 0.0, 1.0)


def loadings(eigenvalues: np.ndarray, eigenvectors: np.ndarray) -> np.ndarray:
    """
    Scale eigenvector entries by the square root of their eigenvalue.

    Args:
        eigenvalues: Extracted eigenvalues (k)
        eigenvectors: Components as rows (k x features)

    Returns:
        Features x k loadings matrix
    """
    scaled = eigenvectors * np.sqrt(np.clip(eigenvalues, 0.0, None))[:, np.newaxis]
    return scaled.T


def top_features(loadings_matrix: np.ndarray,
                 n_components: Optional[int] = None,
                 feature_names: Optional[Sequence[str]] = None,
                 top: int = 3) -> List[Dict[str, Any]]:
    """
    Rank features by their summed absolute loading.

    Args:
        loadings_matrix: Features x k loadings
        n_components: Number of leading components to sum over
        feature_names: Optional names for the features
        top: Number of features to return

    Returns:
        List of dicts with 'feature', 'index' and 'importance', most
        important first
    """
    n_features, k = loadings_matrix.shape
    if n_components is None:
        n_components = k
    if feature_names is None:
        feature_names = [f"feature_{i}" for i in range(n_features)]

    importance = np.sum(np.abs(loadings_matrix[:, :n_components]), axis=1)
    order = np.argsort(-importance, kind='stable')[:top]

    return [
        {'feature': feature_names[i], 'index': int(i), 'importance': float(importance[i])}
        for i in order
    ]


def get_optimal_components(cumulative: Sequence[float], threshold: float = 0.95) -> int:
    """
    Smallest number of components reaching a cumulative variance threshold.

    Args:
        cumulative: Non-decreasing cumulative variance ratios
        threshold: Target fraction in (0, 1]

    Returns:
        1-based count of components, or 0 if the threshold is never reached
    """
    if not 0 < threshold <= 1:
        raise ValidationError(f"threshold must be in (0, 1], got {threshold}")

    for i, value in enumerate(cumulative):
        if value >= threshold:
            return i + 1
    return 0
