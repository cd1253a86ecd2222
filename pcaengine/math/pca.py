"""
Eigen-solver for the PCA engine.

This module extracts the leading eigenpairs of a covariance matrix using
power iteration, deflating every candidate against the eigenvectors that
were already found so that each run converges to the next-largest one.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from sklearn.utils import check_random_state

logger = logging.getLogger(__name__)

MIN_ITERS = 100

RandomStateLike = Union[None, int, np.random.RandomState]


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector
    """
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def vector_length(v: np.ndarray) -> float:
    """
    Calculate the length (norm) of a vector.

    Args:
        v: Vector

    Returns:
        Vector length
    """
    return float(np.linalg.norm(v))


def private_random_state(random_state: RandomStateLike = None) -> np.random.RandomState:
    """
    Turn a seed into a RandomState that is not numpy's global generator.

    Args:
        random_state: None, a seed, or an existing RandomState

    Returns:
        RandomState; a fresh OS-seeded one when random_state is None
    """
    if random_state is None:
        return np.random.RandomState()
    return check_random_state(random_state)


def deflate(v: np.ndarray, basis: Sequence[np.ndarray]) -> np.ndarray:
    """
    Remove the components of v along every (unit) vector in basis.

    Each basis vector is subtracted scaled by its dot product with the
    running result, which keeps v orthogonal to all of them.

    Args:
        v: Vector to deflate
        basis: Previously extracted unit eigenvectors

    Returns:
        Deflated copy of v
    """
    out = np.array(v, dtype=float, copy=True)
    for e in basis:
        out -= np.dot(out, e) * e
    return out


def rand_starting_vec(n: int, rng: np.random.RandomState) -> np.ndarray:
    """
    Generate a random starting vector for power iteration.

    Args:
        n: Dimension of the vector
        rng: Random generator

    Returns:
        Vector with entries drawn uniformly from [0, 1)
    """
    return rng.rand(n)


def orthogonal_fallback(n: int, basis: Sequence[np.ndarray]) -> np.ndarray:
    """
    Build a unit vector orthogonal to basis from the coordinate axes.

    Used when deflation leaves nothing to iterate on, i.e. more components
    were requested than the matrix has independent directions.

    Args:
        n: Dimension of the vector
        basis: Previously extracted unit eigenvectors

    Returns:
        Unit vector orthogonal to every vector in basis
    """
    best = None
    best_norm = -1.0
    for j in range(n):
        axis = np.zeros(n)
        axis[j] = 1.0
        residual = deflate(axis, basis)
        norm = vector_length(residual)
        if norm > best_norm:
            best, best_norm = residual, norm
    return normalize_vector(deflate(best, basis))


def power_iteration(cov: np.ndarray,
                    iters: int = MIN_ITERS,
                    start_vector: Optional[np.ndarray] = None,
                    previous: Optional[Sequence[np.ndarray]] = None,
                    epsilon: float = 1e-10,
                    tol: Optional[float] = None,
                    rng: RandomStateLike = None) -> Tuple[float, np.ndarray, int]:
    """
    Find the dominant eigenpair of cov orthogonal to previous eigenvectors.

    Every step multiplies the candidate by cov, deflates the product against
    the previous eigenvectors, takes its norm as the eigenvalue estimate and
    renormalizes it with norm + epsilon in the denominator.

    Args:
        cov: Symmetric positive semi-definite matrix
        iters: Number of iterations, at least MIN_ITERS
        start_vector: Initial vector (defaults to uniform random)
        previous: Eigenvectors already extracted
        epsilon: Guard added to the norm before dividing
        tol: Optional tolerance for stopping once the estimate settles,
            checked only after MIN_ITERS iterations
        rng: Seed or RandomState for the random start vector

    Returns:
        Tuple of (eigenvalue, unit eigenvector, iterations run)
    """
    n = cov.shape[0]
    previous = list(previous or [])
    iters = max(int(iters), MIN_ITERS)

    if start_vector is None:
        start_vector = rand_starting_vec(n, private_random_state(rng))
    elif len(start_vector) != n:
        raise ValueError(f"Start vector has length {len(start_vector)}, expected {n}")

    v = normalize_vector(np.asarray(start_vector, dtype=float))
    eigval = 0.0

    n_iter = 0
    for n_iter in range(1, iters + 1):
        product_vector = deflate(cov @ v, previous)
        new_eigval = vector_length(product_vector)
        normed = product_vector / (new_eigval + epsilon)

        if tol is not None and n_iter >= MIN_ITERS:
            settled = abs(new_eigval - eigval) <= tol * max(1.0, new_eigval)
            aligned = 1.0 - abs(np.dot(normalize_vector(normed), normalize_vector(v))) <= tol
            if settled and aligned:
                v, eigval = normed, new_eigval
                break

        v, eigval = normed, new_eigval

    if eigval <= epsilon:
        # Nothing left after deflation
        logger.debug(f"Deflated matrix is exhausted after {len(previous)} component(s)")
        return 0.0, orthogonal_fallback(n, previous), n_iter

    # Re-deflate to scrub rounding drift, then make the norm exactly 1
    v = normalize_vector(deflate(v, previous))

    return eigval, v, n_iter


def extract_top_eigenpairs(cov: np.ndarray,
                           n_comps: int,
                           iters: int = MIN_ITERS,
                           epsilon: float = 1e-10,
                           random_state: RandomStateLike = None,
                           start_vectors: Optional[List[Optional[np.ndarray]]] = None,
                           tol: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray, int]:
    """
    Find the first n_comps eigenpairs of a covariance matrix.

    Args:
        cov: Covariance matrix (p x p)
        n_comps: Number of eigenpairs requested; at most p are returned
        iters: Iterations per component, at least MIN_ITERS
        epsilon: Guard for near-zero norms
        random_state: Seed or RandomState for the random start vectors
        start_vectors: Initial vectors for warm start, None entries fall
            back to random vectors
        tol: Optional early-exit tolerance

    Returns:
        Tuple of (eigenvalues, eigenvectors as rows, most iterations used
        by any component), ordered by descending eigenvalue
    """
    p = cov.shape[0]
    n_comps = min(n_comps, p)
    rng = private_random_state(random_state)

    if start_vectors is None:
        start_vectors = []

    eigenvalues = []
    eigenvectors = []
    max_iter = 0

    for i in range(n_comps):
        start_vector = start_vectors[i] if i < len(start_vectors) else None
        if start_vector is not None and np.all(np.asarray(start_vector) == 0):
            start_vector = None

        eigval, vec, n_iter = power_iteration(
            cov, iters, start_vector,
            previous=eigenvectors,
            epsilon=epsilon,
            tol=tol,
            rng=rng
        )
        logger.debug(f"Component {i}: eigenvalue {eigval:.6g} after {n_iter} iterations")

        eigenvalues.append(eigval)
        eigenvectors.append(vec)
        max_iter = max(max_iter, n_iter)

    eigenvalues = np.array(eigenvalues, dtype=float)
    eigenvectors = np.array(eigenvectors, dtype=float).reshape(n_comps, p)

    # Extraction order is already descending once converged; this only
    # repairs ties and unconverged near-equal pairs
    order = np.argsort(-eigenvalues, kind='stable')
    if np.any(order != np.arange(n_comps)):
        logger.debug(f"Reordering eigenpairs to {order.tolist()}")

    return eigenvalues[order], eigenvectors[order], max_iter
