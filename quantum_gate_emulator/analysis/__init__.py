"""
Verification tools for gate application results.
"""
from .gate_verifier import GateVerifier, embed_gate, dense_apply, pairing_report
