"""
Graph matrices built from a 0/1 adjacency matrix.
"""

import numpy as np


def adjacency_matrix(adjacency: np.ndarray) -> np.ndarray:
    return np.asarray(adjacency, dtype=np.float64)


def laplacian_matrix(adjacency: np.ndarray) -> np.ndarray:
    """Combinatorial Laplacian L = D - A."""
    a = adjacency_matrix(adjacency)
    return np.diag(a.sum(axis=1)) - a


def signless_laplacian_matrix(adjacency: np.ndarray) -> np.ndarray:
    """Signless Laplacian Q = D + A."""
    a = adjacency_matrix(adjacency)
    return np.diag(a.sum(axis=1)) + a


def normalized_laplacian(adjacency: np.ndarray) -> np.ndarray:
    """
    Normalized Laplacian I - D^-1/2 A D^-1/2.

    The diagonal is 1 for every vertex with at least one neighbor and 0
    for isolated vertices; off-diagonal entries are -1/sqrt(d_i d_j) for
    adjacent pairs. Eigenvalues lie in [0, 2].

    Args:
        adjacency: Symmetric 0/1 matrix

    Returns:
        Dense float64 matrix of the same shape
    """
    a = adjacency_matrix(adjacency)
    degrees = a.sum(axis=1)
    scale = np.zeros_like(degrees)
    connected = degrees > 0
    scale[connected] = 1.0 / np.sqrt(degrees[connected])

    matrix = -(scale[:, None] * a * scale[None, :])
    matrix[np.diag_indices_from(matrix)] = connected.astype(np.float64)
    return matrix
