"""
Symmetric eigensolvers.

``JacobiEigensolver`` is the cyclic Jacobi method and the reference
implementation whose output the hash keys are defined against.
``ScipyEigensolver`` wraps LAPACK through SciPy and is interchangeable
for well-separated spectra.
"""

import logging
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np
from scipy import linalg

from ..errors import EigensolverError

logger = logging.getLogger(__name__)

MAX_SWEEPS = 500


class SymmetricEigensolver(ABC):
    """Base class for eigensolvers of real symmetric matrices."""

    @abstractmethod
    def decompose(self, matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute eigenvalues and eigenvectors.

        Args:
            matrix: Real symmetric matrix

        Returns:
            Tuple of (eigenvalues ascending, eigenvectors as matching columns)

        Raises:
            EigensolverError: If the decomposition does not converge
        """
        pass


class JacobiEigensolver(SymmetricEigensolver):
    """Cyclic Jacobi rotations with a threshold on the first sweeps."""

    def __init__(self, max_sweeps: int = MAX_SWEEPS):
        self.max_sweeps = max_sweeps
        self.sweeps = 0

    def decompose(self, matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        a = np.array(matrix, dtype=np.float64, copy=True)
        n = a.shape[0]
        vectors = np.eye(n)
        if n == 0:
            return np.zeros(0), vectors

        d = np.diag(a).copy()
        b = d.copy()
        z = np.zeros(n)

        for sweep in range(1, self.max_sweeps + 1):
            off = np.abs(np.triu(a, 1)).sum()
            if off == 0.0:
                self.sweeps = sweep - 1
                order = np.argsort(d, kind='stable')
                return d[order], vectors[:, order]

            threshold = 0.2 * off / (n * n) if sweep < 4 else 0.0

            for p in range(n - 1):
                for q in range(p + 1, n):
                    apq = a[p, q]
                    g = 100.0 * abs(apq)
                    if sweep > 4 and abs(d[p]) + g == abs(d[p]) and abs(d[q]) + g == abs(d[q]):
                        a[p, q] = a[q, p] = 0.0
                        continue
                    if abs(apq) <= threshold:
                        continue

                    h = d[q] - d[p]
                    if abs(h) + g == abs(h):
                        t = apq / h
                    else:
                        theta = 0.5 * h / apq
                        t = 1.0 / (abs(theta) + np.sqrt(1.0 + theta * theta))
                        if theta < 0.0:
                            t = -t
                    c = 1.0 / np.sqrt(1.0 + t * t)
                    s = t * c
                    tau = s / (1.0 + c)
                    h = t * apq
                    z[p] -= h
                    z[q] += h
                    d[p] -= h
                    d[q] += h

                    col_p = a[:, p].copy()
                    col_q = a[:, q].copy()
                    a[:, p] = col_p - s * (col_q + col_p * tau)
                    a[:, q] = col_q + s * (col_p - col_q * tau)
                    a[p, :] = a[:, p]
                    a[q, :] = a[:, q]
                    a[p, q] = a[q, p] = 0.0

                    vec_p = vectors[:, p].copy()
                    vec_q = vectors[:, q].copy()
                    vectors[:, p] = vec_p - s * (vec_q + vec_p * tau)
                    vectors[:, q] = vec_q + s * (vec_p - vec_q * tau)

            b += z
            d = b.copy()
            z.fill(0.0)

        raise EigensolverError(
            f"Eigensolver didn't converge within {self.max_sweeps} sweeps")


class ScipyEigensolver(SymmetricEigensolver):
    """LAPACK ``syevd`` via ``scipy.linalg.eigh``."""

    def decompose(self, matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        try:
            values, vectors = linalg.eigh(np.asarray(matrix, dtype=np.float64))
        except linalg.LinAlgError as e:
            raise EigensolverError(f"Eigensolver didn't converge: {e}") from e
        return values, vectors


def create_eigensolver(name: str = 'jacobi', **kwargs) -> SymmetricEigensolver:
    """
    Factory function to create eigensolvers.

    Args:
        name: 'jacobi' or 'scipy'
        **kwargs: Solver-specific arguments

    Returns:
        Eigensolver instance
    """
    if name == 'jacobi':
        return JacobiEigensolver(**kwargs)
    elif name == 'scipy':
        return ScipyEigensolver()
    else:
        raise ValueError(f"Unknown eigensolver: {name}")
