"""
Main entry point for the Quantum Gate Emulator package.

This module allows the package to be run as a module using:
python -m quantum_gate_emulator <input-file> [args]
"""

import sys

from quantum_gate_emulator.main import main

if __name__ == "__main__":
    sys.exit(main())
