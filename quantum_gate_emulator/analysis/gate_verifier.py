"""
Dense reference checks for the pairwise gate transform.

The sparse transform does O(N) work; the reference here builds the full
2^n x 2^n operator I (x) ... (x) G (x) ... (x) I and multiplies it with the
state vector in O(N^2). Qubit 0 is the least significant bit of an
amplitude index, so the gate sits at position n-1-t from the left of the
Kronecker product.
"""
import logging
from typing import Dict, Any

import numpy as np

from ..common.gate_job import GateJob
from ..common.gate_matrix import GateMatrix
from ..common.pair_indexer import enumerate_pairs, is_complete_pairing
from ..constants import MAX_VERIFY_QUBITS, DEFAULT_TOLERANCE
from ..utils.error_handler import PreconditionViolation

logger = logging.getLogger("QuantumGateEmulator.GateVerifier")


def embed_gate(gate: GateMatrix, target_bit: int, num_qubits: int) -> np.ndarray:
    """
    Build the dense operator of a single-qubit gate on an n-qubit register.

    Args:
        gate: 2x2 gate
        target_bit: Qubit the gate acts on (bit position of the index)
        num_qubits: Register width n

    Returns:
        Array of shape (2^n, 2^n)
    """
    if not 0 <= target_bit < num_qubits:
        raise PreconditionViolation(f"Target bit {target_bit} out of range for {num_qubits} qubits")

    operator = np.ones((1, 1))
    for qubit in reversed(range(num_qubits)):
        factor = gate.as_array() if qubit == target_bit else np.eye(2)
        operator = np.kron(operator, factor)
    return operator


def dense_apply(gate: GateMatrix, target_bit: int, amplitudes: np.ndarray) -> np.ndarray:
    """Apply a gate through the dense operator."""
    num_qubits = len(amplitudes).bit_length() - 1
    return embed_gate(gate, target_bit, num_qubits) @ np.asarray(amplitudes, dtype=np.float64)


def pairing_report(num_amplitudes: int, target_bit: int) -> Dict[str, Any]:
    """
    Summarize the amplitude pairing for a target bit.

    Returns:
        Dictionary with the pair count, a completeness flag and the first pairs
    """
    pairs = enumerate_pairs(num_amplitudes, target_bit)
    return {
        "num_amplitudes": num_amplitudes,
        "target_bit": target_bit,
        "num_pairs": len(pairs),
        "complete": is_complete_pairing(pairs, num_amplitudes),
        "stride": 1 << target_bit,
        "sample": [tuple(int(i) for i in pair) for pair in pairs[:4]],
    }


class GateVerifier:
    """
    Compare transform output against the dense reference.
    """

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE,
                 max_qubits: int = MAX_VERIFY_QUBITS):
        """
        Initialize the verifier.

        Args:
            tolerance: Maximum allowed absolute deviation per amplitude
            max_qubits: Largest register the dense reference will build
        """
        self.tolerance = tolerance
        self.max_qubits = max_qubits

    def check_supported(self, job: GateJob) -> None:
        """
        Refuse jobs too wide for the dense reference.

        Raises:
            PreconditionViolation: If the register exceeds ``max_qubits``
        """
        if job.num_qubits > self.max_qubits:
            raise PreconditionViolation(
                f"Dense verification limited to {self.max_qubits} qubits, job has {job.num_qubits}",
                step="verify output")

    def verify(self, job: GateJob, output: np.ndarray) -> Dict[str, Any]:
        """
        Verify an output vector.

        Args:
            job: The job that produced ``output``
            output: Transform output

        Returns:
            Dictionary with 'passed', 'max_error' and the pairing report

        Raises:
            PreconditionViolation: If the register is too wide for a dense check
        """
        self.check_supported(job)

        # Single-precision outputs carry ~1e-7 relative error
        tolerance = self.tolerance
        if np.dtype(output.dtype).itemsize < 8:
            tolerance = max(tolerance, 1e-5 * max(1.0, float(np.max(np.abs(output)))))

        expected = dense_apply(job.gate, job.target_bit, job.state.amplitudes)
        max_error = float(np.max(np.abs(expected - output.astype(np.float64))))
        passed = max_error <= tolerance

        if passed:
            logger.info(f"Verification passed (max error {max_error:.3e})")
        else:
            logger.warning(f"Verification failed (max error {max_error:.3e} > {tolerance:.3e})")

        return {
            "passed": passed,
            "max_error": max_error,
            "tolerance": tolerance,
            "pairing": pairing_report(job.num_amplitudes, job.target_bit),
        }
