"""
General utility functions for the pcaengine package.

Input coercion and validation shared by the pipeline stages.
"""

import logging
import numbers
from typing import Any, Sequence, Union

import numpy as np
import pandas as pd

from pcaengine.exceptions import ValidationError

logger = logging.getLogger(__name__)

MatrixLike = Union[np.ndarray, pd.DataFrame, Sequence[Sequence[float]]]


def as_matrix(data: MatrixLike) -> np.ndarray:
    """
    Convert a dataset to a 2-D float array, rejecting malformed input.

    The result is always a fresh copy, so the caller's data is never
    aliased or mutated.

    Args:
        data: Nested sequence, numpy array or DataFrame (samples x features)

    Returns:
        Float array of shape (n_samples, n_features)

    Raises:
        ValidationError: If the dataset is empty, ragged, non-numeric,
            or contains NaN/infinite values
    """
    if isinstance(data, pd.DataFrame):
        matrix = data.to_numpy(copy=True)
    elif isinstance(data, np.ndarray):
        matrix = data.copy()
    else:
        if data is None or len(data) == 0:
            raise ValidationError("Dataset is empty: at least one sample is required")

        lengths = set()
        for row in data:
            try:
                lengths.add(len(row))
            except TypeError:
                raise ValidationError("Dataset must be a sequence of rows (samples x features)")
        if len(lengths) != 1:
            raise ValidationError(f"Dataset rows are ragged: found row lengths {sorted(lengths)}")

        matrix = np.array([list(row) for row in data], dtype=object)

    if matrix.ndim != 2:
        raise ValidationError(f"Dataset must be 2-dimensional, got {matrix.ndim} dimension(s)")

    n_rows, n_cols = matrix.shape
    if n_rows == 0:
        raise ValidationError("Dataset is empty: at least one sample is required")
    if n_cols == 0:
        raise ValidationError("Dataset has no features: rows must have length >= 1")

    try:
        matrix = matrix.astype(float)
    except (ValueError, TypeError):
        raise ValidationError("Dataset contains non-numeric values")

    if not np.all(np.isfinite(matrix)):
        bad = np.argwhere(~np.isfinite(matrix))
        row, col = bad[0]
        raise ValidationError(
            f"Dataset contains {len(bad)} NaN or infinite value(s), first at sample {row}, feature {col}"
        )

    return matrix


def check_n_components(n_components: Any) -> int:
    """
    Validate a requested component count.

    Args:
        n_components: Requested number of components

    Returns:
        The count as an int

    Raises:
        ValidationError: If it is not a positive integer
    """
    if isinstance(n_components, bool) or not isinstance(n_components, numbers.Integral):
        raise ValidationError(f"n_components must be a positive integer, got {n_components!r}")
    if n_components < 1:
        raise ValidationError(f"n_components must be >= 1, got {n_components}")
    return int(n_components)


def frozen(arr: Any) -> np.ndarray:
    """
    Return a read-only float copy of an array.

    Args:
        arr: Array-like value

    Returns:
        Independent array with the writeable flag cleared
    """
    out = np.array(arr, dtype=float, copy=True)
    out.setflags(write=False)
    return out
