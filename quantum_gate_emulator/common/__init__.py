"""
Core data types and the gate transform shared by all backends.
"""
from .gate_matrix import GateMatrix
from .state_vector import StateVector
from .gate_job import GateJob
from .interfaces import AcceleratorBackend, DeviceAllocation
from .orchestrator import GateOrchestrator
