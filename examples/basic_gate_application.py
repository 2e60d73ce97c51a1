#!/usr/bin/env python3
"""
Basic gate application example for the Quantum Gate Emulator.

This example builds a Hadamard gate, applies it to every qubit of a small
register in turn through the orchestrator, and checks each step against the
dense reference operator.

Usage:
    python basic_gate_application.py --qubits 3 --backend host
"""
import argparse
import logging
import sys

import numpy as np

from quantum_gate_emulator.analysis.gate_verifier import GateVerifier
from quantum_gate_emulator.backends.backend_factory import BackendFactory
from quantum_gate_emulator.common import GateMatrix, StateVector, GateJob, GateOrchestrator
from quantum_gate_emulator.utils.error_handler import GateEmulatorError

logger = logging.getLogger("QuantumGateEmulator.BasicExample")


def main():
    """Run the basic gate application example."""
    parser = argparse.ArgumentParser(description="Basic gate application example for Quantum Gate Emulator")
    parser.add_argument('--qubits', type=int, default=3, help='Register width')
    parser.add_argument('--backend', type=str, choices=['auto', 'cuda', 'host'], default='auto',
                        help='Accelerator backend')

    args = parser.parse_args()

    s = 1.0 / np.sqrt(2.0)
    hadamard = GateMatrix(s, s, s, -s)

    amplitudes = np.zeros(1 << args.qubits)
    amplitudes[0] = 1.0
    state = StateVector(amplitudes)

    try:
        backend = BackendFactory.create_backend(args.backend)
    except ValueError as e:
        logger.error(f"Error creating backend: {e}")
        return 1

    orchestrator = GateOrchestrator(backend)
    verifier = GateVerifier()

    # H on every qubit spreads |0...0> uniformly
    for target_bit in range(args.qubits):
        job = GateJob(gate=hadamard, state=state, target_bit=target_bit)
        try:
            output = orchestrator.run(job)
        except GateEmulatorError as e:
            logger.error(f"Gate application failed at bit {target_bit}: {e}")
            return e.exit_code

        report = verifier.verify(job, output)
        print(f"bit {target_bit}: max error vs dense reference {report['max_error']:.2e}")
        state = StateVector(output)

    print("Final amplitudes:")
    for index, value in enumerate(state.amplitudes):
        print(f"  |{index:0{args.qubits}b}>  {value:.4f}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
