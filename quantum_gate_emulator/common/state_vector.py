"""
State vector storage for the Quantum Gate Emulator.

The host-resident StateVector is the authoritative copy of the amplitudes.
Accelerator copies are derived from it by the orchestrator and never
written back into it.
"""
import logging
from typing import Sequence, Union

import numpy as np

from ..constants import MIN_AMPLITUDES, PRECISIONS, DEFAULT_PRECISION
from ..utils.error_handler import PreconditionViolation

logger = logging.getLogger("QuantumGateEmulator.StateVector")


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def amplitude_dtype(precision: str = DEFAULT_PRECISION) -> np.dtype:
    """
    Map a precision name to the numpy amplitude dtype.

    Args:
        precision: 'single' or 'double'

    Returns:
        numpy dtype
    """
    if precision not in PRECISIONS:
        valid = ", ".join(PRECISIONS)
        raise PreconditionViolation(f"Unknown precision: {precision}. Valid options: {valid}")
    return np.dtype(PRECISIONS[precision])


class StateVector:
    """
    Ordered sequence of N = 2^n real amplitudes, n >= 1.

    The underlying array is read-only; use ``as_array`` for a writable copy.
    """

    def __init__(self, amplitudes: Union[np.ndarray, Sequence[float]],
                 dtype: Union[str, np.dtype, None] = None):
        """
        Initialize the state vector.

        Args:
            amplitudes: Amplitude values in basis-state order
            dtype: Amplitude dtype (defaults to float64)
        """
        array = np.array(amplitudes, dtype=dtype if dtype is not None else np.float64, copy=True)

        if array.ndim != 1:
            raise PreconditionViolation(
                f"State vector must be one-dimensional, got shape {array.shape}")
        if len(array) < MIN_AMPLITUDES or not is_power_of_two(len(array)):
            raise PreconditionViolation(
                f"State vector length must be a power of two >= {MIN_AMPLITUDES}, got {len(array)}")

        array.flags.writeable = False
        self._amplitudes = array

        logger.debug(f"State vector created: {len(array)} amplitudes ({array.dtype})")

    @classmethod
    def from_sequence(cls, values: Sequence[float], precision: str = DEFAULT_PRECISION) -> "StateVector":
        return cls(values, dtype=amplitude_dtype(precision))

    @property
    def amplitudes(self) -> np.ndarray:
        """Read-only view of the amplitudes."""
        return self._amplitudes

    @property
    def num_amplitudes(self) -> int:
        return len(self._amplitudes)

    @property
    def num_qubits(self) -> int:
        return self.num_amplitudes.bit_length() - 1

    @property
    def dtype(self) -> np.dtype:
        return self._amplitudes.dtype

    @property
    def nbytes(self) -> int:
        """Size of one full buffer of amplitudes in bytes."""
        return self.num_amplitudes * self._amplitudes.itemsize

    def as_array(self) -> np.ndarray:
        """Return a writable, C-contiguous copy of the amplitudes."""
        return np.array(self._amplitudes, copy=True, order='C')

    def astype(self, precision: str) -> "StateVector":
        return StateVector(self._amplitudes, dtype=amplitude_dtype(precision))

    def __len__(self) -> int:
        return self.num_amplitudes

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateVector):
            return NotImplemented
        return np.array_equal(self._amplitudes, other._amplitudes)

    def __repr__(self) -> str:
        return f"StateVector(num_qubits={self.num_qubits}, dtype={self.dtype})"
