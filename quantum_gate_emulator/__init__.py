"""
Quantum Gate Emulator for Accelerated State-Vector Updates

A scientific Python tool that applies a single-qubit 2x2 gate to one target
qubit of an n-qubit real state vector, pairing amplitudes across the target
bit and transforming every pair in parallel on a CUDA device or on host lanes.
"""

__version__ = "0.1.0"
