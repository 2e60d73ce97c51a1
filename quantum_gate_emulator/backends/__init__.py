"""
Accelerator backends executing the pairwise gate transform.
"""
from .host_backend import HostBackend, LanePool
from .cuda_backend import CudaBackend
from .backend_factory import BackendFactory
