"""
Gate matrix value type.

A single-qubit gate is stored as the four real coefficients of

    | a  b |
    | c  d |

and never mutated after construction.
"""
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..constants import DEFAULT_TOLERANCE
from ..utils.error_handler import PreconditionViolation


@dataclass(frozen=True)
class GateMatrix:
    """Real 2x2 operator applied to every amplitude pair."""

    a: float
    b: float
    c: float
    d: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "GateMatrix":
        """
        Build a gate from four coefficients in row-major order.

        Args:
            values: Sequence (a, b, c, d)

        Returns:
            GateMatrix instance
        """
        if len(values) != 4:
            raise PreconditionViolation(
                f"Gate matrix needs exactly 4 coefficients, got {len(values)}")
        a, b, c, d = (float(v) for v in values)
        return cls(a, b, c, d)

    @classmethod
    def identity(cls) -> "GateMatrix":
        return cls(1.0, 0.0, 0.0, 1.0)

    def as_array(self, dtype=np.float64) -> np.ndarray:
        """Return the gate as a 2x2 numpy array."""
        return np.array([[self.a, self.b], [self.c, self.d]], dtype=dtype)

    def coefficients(self) -> tuple:
        return (self.a, self.b, self.c, self.d)

    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def is_invertible(self, tol: float = DEFAULT_TOLERANCE) -> bool:
        return abs(self.determinant()) > tol

    def inverse(self, tol: float = DEFAULT_TOLERANCE) -> "GateMatrix":
        """
        Compute the inverse gate.

        Raises:
            PreconditionViolation: If the matrix is singular within tolerance
        """
        det = self.determinant()
        if abs(det) <= tol:
            raise PreconditionViolation(f"Gate matrix is singular (det={det:.3e})")
        return GateMatrix(self.d / det, -self.b / det, -self.c / det, self.a / det)

    def __str__(self) -> str:
        return f"[[{self.a:g}, {self.b:g}], [{self.c:g}, {self.d:g}]]"
