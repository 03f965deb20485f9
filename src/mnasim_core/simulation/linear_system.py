# src/mnasim_core/simulation/linear_system.py
"""
Dense linear systems and Gaussian elimination with partial pivoting.

Nothing in this module knows about circuits: it accumulates coefficients into a
square matrix and solves A x = b for real (float64) or complex (complex128)
coefficients with the same algorithm.
"""
import logging
from typing import Optional

import numpy as np

from ..constants import SINGULAR_PIVOT_THRESHOLD
from .exceptions import SingularMatrixError

logger = logging.getLogger(__name__)


def gaussian_elimination(
    matrix: np.ndarray,
    rhs: np.ndarray,
    pivot_threshold: float = SINGULAR_PIVOT_THRESHOLD,
) -> np.ndarray:
    """
    Solves matrix @ x = rhs by Gaussian elimination with partial pivoting.

    At step k the pivot is the entry of largest magnitude (abs() for real, modulus
    for complex) in column k at or below the diagonal. Both inputs are copied and
    left untouched.

    Args:
        matrix: Square (N, N) coefficient matrix.
        rhs: Right-hand side of length N.
        pivot_threshold: Smallest acceptable pivot magnitude.

    Returns:
        The solution vector, with the common dtype of matrix and rhs.

    Raises:
        SingularMatrixError: If the best pivot at some step k is below the threshold.
    """
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Coefficient matrix must be square, got shape {matrix.shape}.")
    size = matrix.shape[0]
    if rhs.shape != (size,):
        raise ValueError(f"Right-hand side must have shape ({size},), got {rhs.shape}.")

    dtype = np.result_type(matrix.dtype, rhs.dtype, np.float64)
    a = np.array(matrix, dtype=dtype, copy=True)
    b = np.array(rhs, dtype=dtype, copy=True)

    for k in range(size):
        magnitudes = np.abs(a[k:, k])
        offset = int(np.argmax(magnitudes))
        pivot_magnitude = float(magnitudes[offset])
        if pivot_magnitude < pivot_threshold:
            raise SingularMatrixError(row=k, pivot_magnitude=pivot_magnitude)

        p = k + offset
        if p != k:
            a[[k, p], k:] = a[[p, k], k:]
            b[[k, p]] = b[[p, k]]

        if k + 1 < size:
            factors = a[k + 1:, k] / a[k, k]
            a[k + 1:, k:] -= np.outer(factors, a[k, k:])
            b[k + 1:] -= factors * b[k]

    x = np.zeros(size, dtype=dtype)
    for k in range(size - 1, -1, -1):
        x[k] = (b[k] - a[k, k + 1:] @ x[k + 1:]) / a[k, k]
    return x


class LinearSystem:
    """
    A square coefficient matrix plus right-hand side, filled by accumulation.

    The matrix lives in one flat, contiguous, row-major buffer; entry (r, c) is
    element r * size + c. `add` and `add_rhs` always accumulate, since several
    components stamp into the same entries.
    """

    def __init__(self, size: int, dtype=np.float64, pivot_threshold: float = SINGULAR_PIVOT_THRESHOLD):
        if size < 0:
            raise ValueError(f"System size must be non-negative, got {size}.")
        self.size: int = size
        self.dtype = np.dtype(dtype)
        self.pivot_threshold = pivot_threshold
        self._buffer: np.ndarray = np.zeros(size * size, dtype=self.dtype)
        self.rhs: np.ndarray = np.zeros(size, dtype=self.dtype)

    @classmethod
    def real(cls, size: int) -> "LinearSystem":
        return cls(size, dtype=np.float64)

    @classmethod
    def complex(cls, size: int) -> "LinearSystem":
        return cls(size, dtype=np.complex128)

    @property
    def is_complex(self) -> bool:
        return np.issubdtype(self.dtype, np.complexfloating)

    @property
    def matrix(self) -> np.ndarray:
        """A (size, size) view onto the flat buffer."""
        return self._buffer.reshape(self.size, self.size)

    def add(self, row: int, col: int, value) -> None:
        self._buffer[row * self.size + col] += value

    def add_rhs(self, row: int, value) -> None:
        self.rhs[row] += value

    def entry(self, row: int, col: int):
        return self._buffer[row * self.size + col]

    def clear(self) -> None:
        self._buffer[:] = 0
        self.rhs[:] = 0

    def solve(self, rhs: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Solves the system for `rhs`, or for the accumulated right-hand side when None.
        The stored coefficients are not modified, so solve may be called repeatedly.
        """
        b = self.rhs if rhs is None else np.asarray(rhs)
        logger.debug(f"Solving {'complex' if self.is_complex else 'real'} system of size {self.size}.")
        return gaussian_elimination(self.matrix, b, self.pivot_threshold)

    def __repr__(self) -> str:
        return f"LinearSystem(size={self.size}, dtype={self.dtype})"
