"""
Immutable run configuration for one gate application.
"""
from dataclasses import dataclass

from .gate_matrix import GateMatrix
from .state_vector import StateVector
from ..utils.error_handler import PreconditionViolation


@dataclass(frozen=True)
class GateJob:
    """Gate, state and target bit for a single orchestration run."""

    gate: GateMatrix
    state: StateVector
    target_bit: int

    @property
    def num_amplitudes(self) -> int:
        return self.state.num_amplitudes

    @property
    def num_qubits(self) -> int:
        return self.state.num_qubits

    def validate(self) -> None:
        """
        Check the target bit against the state vector's bit width.

        Raises:
            PreconditionViolation: If the target bit is outside [0, n)
        """
        if not isinstance(self.target_bit, int) or isinstance(self.target_bit, bool):
            raise PreconditionViolation(
                f"Target bit must be an integer, got {self.target_bit!r}")
        if not 0 <= self.target_bit < self.num_qubits:
            raise PreconditionViolation(
                f"Target bit {self.target_bit} out of range for {self.num_qubits}-qubit state "
                f"(valid: 0..{self.num_qubits - 1})")
