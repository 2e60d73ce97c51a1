# backends/backend_factory.py
import logging
from typing import Optional

from ..common.interfaces import AcceleratorBackend
from ..backend_configs import BACKEND_CONFIGS
from ..utils.performance_optimizer import gpu_available

# Import backend implementations
from .host_backend import HostBackend
from .cuda_backend import CudaBackend

logger = logging.getLogger("QuantumGateEmulator.BackendFactory")


class BackendFactory:
    @staticmethod
    def resolve_backend_name(backend_type: str) -> str:
        """Map 'auto' to 'cuda' when a CUDA device is usable, else 'host'."""
        if backend_type == "auto":
            return "cuda" if gpu_available() else "host"
        if backend_type not in BACKEND_CONFIGS:
            raise ValueError(f"Unknown backend type: {backend_type}")
        return backend_type

    @staticmethod
    def create_backend(backend_type: str, config: Optional[dict] = None) -> AcceleratorBackend:
        """Create and return a backend implementation based on type."""
        config = config or {}
        name = BackendFactory.resolve_backend_name(backend_type)
        performance = config.get("performance", {})

        if name == "cuda":
            if not gpu_available():
                raise ValueError("CUDA backend requested but no CUDA device is available")
            backend = CudaBackend(device_id=config.get("device", {}).get("id", 0))
        elif name == "host":
            backend = HostBackend(
                lanes=performance.get("lanes"),
                dispatch_order=performance.get("dispatch_order", "sequential"),
                memory_limit_mb=performance.get("memory_limit_mb"),
                seed=performance.get("seed"),
            )
        else:
            raise ValueError(f"Backend implementation not available for: {name}")

        logger.info(f"Created {name} backend ({BACKEND_CONFIGS[name]['description']})")
        return backend
