"""
PCA pipeline entry points.

This module ties the stages together: standardize the data, build the
correlation and covariance matrices, extract the leading eigenpairs and
derive every statistic exposed in a PCAResult.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from pcaengine.components.config import DEGENERATE_POLICIES, Config, ConfigManager
from pcaengine.exceptions import ValidationError
from pcaengine.math.corr import correlation_matrix, covariance_matrix
from pcaengine.math.pca import RandomStateLike, extract_top_eigenpairs
from pcaengine.math.report import (
    cumulative_variance, explained_variance_ratio, get_optimal_components,
    loadings, project, reconstruction_error
)
from pcaengine.math.standardize import standardize
from pcaengine.utils.general import MatrixLike, as_matrix, check_n_components, frozen

logger = logging.getLogger(__name__)

# Field name -> key in the exported dictionary
EXPORT_KEYS = {
    'transformed_data': 'transformedData',
    'explained_variance': 'explainedVariance',
    'explained_variance_ratio': 'explainedVarianceRatio',
    'cumulative_variance': 'cumulativeVariance',
    'components': 'components',
    'eigenvalues': 'eigenvalues',
    'mean': 'mean',
    'std': 'std',
    'reconstruction_error': 'reconstructionError',
    'loadings': 'loadings',
    'correlation_matrix': 'correlationMatrix',
    'original_data': 'originalData',
    'standardized_data': 'standardizedData',
}


@dataclass(frozen=True, eq=False)
class PCAResult:
    """
    Immutable snapshot of one PCA computation.

    Every array is a read-only copy owned by the result.
    """
    transformed_data: np.ndarray
    eigenvalues: np.ndarray
    explained_variance: np.ndarray
    explained_variance_ratio: np.ndarray
    cumulative_variance: np.ndarray
    components: np.ndarray
    mean: np.ndarray
    std: np.ndarray
    reconstruction_error: np.ndarray
    loadings: np.ndarray
    correlation_matrix: np.ndarray
    original_data: np.ndarray
    standardized_data: np.ndarray
    n_components: int
    normalize: bool
    n_iter: int

    def optimal_components(self, threshold: float = 0.95) -> int:
        """Smallest component count whose cumulative variance reaches threshold."""
        return get_optimal_components(self.cumulative_variance, threshold)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the result to plain lists for JSON export.

        Returns:
            Dictionary keyed by the names used by presentation consumers
        """
        result = {key: getattr(self, name).tolist() for name, key in EXPORT_KEYS.items()}
        result['nComponents'] = self.n_components
        result['normalize'] = self.normalize
        return result


def save_result_to_json(result: PCAResult, filepath: str) -> None:
    """
    Save a PCA result to a JSON file.

    Args:
        result: Result from perform_pca
        filepath: Path to save the JSON file
    """
    with open(filepath, 'w') as f:
        json.dump(result.to_dict(), f)


def max_components(data: MatrixLike) -> int:
    """
    Largest meaningful number of components for a dataset.

    Args:
        data: Samples x features matrix

    Returns:
        min(n_samples, n_features)
    """
    matrix = as_matrix(data)
    return int(min(matrix.shape))


def perform_pca(data: MatrixLike,
                n_components: int,
                normalize: Optional[bool] = True,
                *,
                iters: Optional[int] = None,
                epsilon: Optional[float] = None,
                random_state: RandomStateLike = None,
                degenerate_policy: Optional[str] = None,
                tol: Optional[float] = None,
                config: Optional[Config] = None) -> PCAResult:
    """
    Run the full PCA pipeline on a dataset.

    Keyword arguments left as None are read from the configuration.

    Args:
        data: Samples x features matrix (nested sequence, array or DataFrame)
        n_components: Number of components to extract; clamped to the
            feature count with a warning
        normalize: Whether to scale features to unit variance (None reads
            the configured default)
        iters: Power iterations per component
        epsilon: Guard for near-zero norms and zero-variance features
        random_state: Seed or RandomState for the solver's start vectors
        degenerate_policy: 'raise' or 'clamp' for zero-variance features
        tol: Early-exit tolerance for the solver
        config: Configuration to read defaults from

    Returns:
        PCAResult

    Raises:
        ValidationError: If the input violates a precondition
        DegenerateInputError: If the data is numerically degenerate
    """
    config = config or ConfigManager.get_config()

    if normalize is None:
        normalize = config.get('pca.normalize', True)
    if iters is None:
        iters = config.get('pca.iters')
    if epsilon is None:
        epsilon = config.get('pca.epsilon')
    if random_state is None:
        random_state = config.get('pca.seed')
    if degenerate_policy is None:
        degenerate_policy = config.get('pca.degenerate-policy')
    if tol is None:
        tol = config.get('pca.tol')

    if degenerate_policy not in DEGENERATE_POLICIES:
        raise ValidationError(f"Unknown degenerate policy: {degenerate_policy}")

    matrix = as_matrix(data)
    n_components = check_n_components(n_components)

    n_samples, n_features = matrix.shape
    if n_samples < 2:
        raise ValidationError(f"At least 2 samples are required for PCA, got {n_samples}")

    if n_components > n_features:
        logger.warning(
            f"Requested {n_components} components but data has only {n_features} feature(s); "
            f"using {n_features}"
        )
        n_components = n_features

    logger.debug(f"Running PCA on {n_samples}x{n_features} data, k={n_components}, normalize={normalize}")

    # Step 1: Standardize data
    standardized, means, stds = standardize(matrix, normalize, epsilon, degenerate_policy)

    # Step 2: Correlation from the raw data
    corr = correlation_matrix(matrix)

    # Step 3: Covariance of what the solver sees
    cov = covariance_matrix(standardized)

    # Step 4: Eigenpairs
    eigenvalues, eigenvectors, n_iter = extract_top_eigenpairs(
        cov, n_components,
        iters=iters,
        epsilon=epsilon,
        random_state=random_state,
        tol=tol
    )

    # Step 5: Derived statistics
    ratios = explained_variance_ratio(eigenvalues)
    transformed = project(standardized, eigenvectors)

    result = PCAResult(
        transformed_data=frozen(transformed),
        eigenvalues=frozen(eigenvalues),
        explained_variance=frozen(eigenvalues),
        explained_variance_ratio=frozen(ratios),
        cumulative_variance=frozen(cumulative_variance(ratios)),
        components=frozen(eigenvectors),
        mean=frozen(means),
        std=frozen(stds),
        reconstruction_error=frozen(reconstruction_error(eigenvalues)),
        loadings=frozen(loadings(eigenvalues, eigenvectors)),
        correlation_matrix=frozen(corr),
        original_data=frozen(matrix),
        standardized_data=frozen(standardized),
        n_components=n_components,
        normalize=bool(normalize),
        n_iter=n_iter
    )

    logger.debug(f"PCA complete: explained variance ratio {np.round(ratios, 4).tolist()}")

    return result
