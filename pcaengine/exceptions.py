"""
Exception types raised by the PCA engine.

Every error derives from ValueError, so callers that only care about
"bad input" can keep catching that.
"""


class PCAError(ValueError):
    """Base class for all PCA engine errors."""


class ValidationError(PCAError):
    """
    Raised when an input violates a precondition of the computation.

    Examples are an empty or ragged dataset, non-finite values, or a
    non-positive number of components.
    """


class DegenerateInputError(PCAError):
    """
    Raised when the data is valid but numerically degenerate.

    This covers zero-variance features under normalization and datasets
    with no variance at all.
    """
