"""
Performance utilities for the Quantum Gate Emulator.

This module discovers CUDA devices through CuPy, times the individual steps
of an orchestration run, tracks host memory and sizes dispatch groups.
"""

import logging
import os
import time
from contextlib import contextmanager
from functools import wraps
from typing import Dict, Any, Optional, Iterator

import psutil

from ..backend_configs import BACKEND_CONFIGS

# Try to import GPU acceleration libraries
try:
    import cupy as cp
    CUPY_AVAILABLE = True
except ImportError:
    CUPY_AVAILABLE = False
    cp = None

logger = logging.getLogger("QuantumGateEmulator.PerformanceOptimizer")


class PerformanceOptimizer:
    """
    Performance instrumentation for the Quantum Gate Emulator.

    Tracks which device is in use, how long each step of a run takes and how
    much host memory the process holds.
    """

    def __init__(self, gpu_enabled: bool = True,
                 device_id: int = 0):
        """
        Initialize the performance optimizer.

        Args:
            gpu_enabled: Whether to probe for a CUDA device
            device_id: CUDA device ordinal to select
        """
        self.gpu_enabled = gpu_enabled and CUPY_AVAILABLE
        self.device_id = device_id
        self.current_device = None
        self.device_info = {}

        self.metrics = {
            "execution_times": {},
            "memory_usage": [],
        }

        self._initialize_gpu()
        self.memory_tracker = MemoryTracker()
        self.metrics["memory_usage"].append({
            "timestamp": time.time(),
            "usage_mb": self.memory_tracker.get_current_memory_usage()
        })

        logger.debug(f"Performance optimizer initialized (GPU: {self.gpu_enabled})")

    def _initialize_gpu(self) -> None:
        """Select the configured CUDA device if one is present."""
        if not self.gpu_enabled:
            return

        if not gpu_available():
            logger.info("No CUDA devices found, GPU acceleration disabled")
            self.gpu_enabled = False
            return

        device_count = cp.cuda.runtime.getDeviceCount()
        if self.device_id >= device_count:
            logger.warning(f"CUDA device {self.device_id} not present ({device_count} found), "
                           f"GPU acceleration disabled")
            self.gpu_enabled = False
            return

        self.current_device = self.device_id
        self.device_info = device_properties(self.device_id)
        logger.info(f"Using GPU: {self.device_info['name']} "
                    f"({self.device_info['total_memory_gb']:.2f} GB)")

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        """
        Context manager for timing a step.

        Args:
            name: Name to identify the timed section
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            execution_time = time.perf_counter() - start_time
            self.metrics["execution_times"].setdefault(name, []).append(execution_time)
            logger.debug(f"Execution time for {name}: {execution_time:.6f} seconds")

    @contextmanager
    def memory_usage_tracking(self) -> Iterator[None]:
        """Context manager recording the host memory delta of a block."""
        memory_before = self.memory_tracker.get_current_memory_usage()
        try:
            yield
        finally:
            memory_after = self.memory_tracker.get_current_memory_usage()
            self.metrics["memory_usage"].append({
                "timestamp": time.time(),
                "usage_mb": memory_after,
                "delta_mb": memory_after - memory_before
            })

    def suggest_group_size(self, num_amplitudes: int, backend_name: str,
                           requested: Optional[int] = None) -> int:
        """
        Pick the number of units per dispatch group.

        The group size only affects performance; any positive value covers
        [0, N) once the grid is sized with a ceiling division.

        Args:
            num_amplitudes: Vector length N
            backend_name: Key into BACKEND_CONFIGS
            requested: Explicit group size (None for the backend default)

        Returns:
            Group size, at most the backend maximum and at most N
        """
        backend_config = BACKEND_CONFIGS[backend_name]
        group_size = requested or backend_config["default_group_size"]
        group_size = min(group_size, backend_config["max_group_size"])
        return max(1, min(group_size, num_amplitudes))

    def get_performance_metrics(self) -> Dict[str, Any]:
        """
        Get performance metrics.

        Returns:
            Dictionary with performance metrics
        """
        total_times = {
            name: sum(times)
            for name, times in self.metrics["execution_times"].items()
        }
        usage = [m["usage_mb"] for m in self.metrics["memory_usage"]]

        return {
            "current_memory_mb": self.memory_tracker.get_current_memory_usage(),
            "peak_memory_mb": max(usage) if usage else 0.0,
            "step_times": total_times,
            "gpu_enabled": self.gpu_enabled,
            "device": self.device_info.get("name"),
        }


class MemoryTracker:
    """
    Track host memory usage of the emulator process.
    """

    def __init__(self, limit_mb: Optional[int] = None):
        """
        Initialize the memory tracker.

        Args:
            limit_mb: Memory limit in MB (None for no limit)
        """
        self.limit_mb = limit_mb
        self.process = psutil.Process(os.getpid())
        self.initial_memory_mb = self.get_current_memory_usage()

        logger.debug(f"Initial memory usage: {self.initial_memory_mb:.2f} MB")

    def get_current_memory_usage(self) -> float:
        """Resident set size of this process in MB."""
        return self.process.memory_info().rss / (1024 * 1024)

    def check_memory_limit(self, additional_bytes: int = 0) -> bool:
        """
        Check whether current usage plus ``additional_bytes`` stays within the limit.

        Returns:
            True if within limit or no limit set, False otherwise
        """
        if not self.limit_mb:
            return True
        projected = self.get_current_memory_usage() + additional_bytes / (1024 * 1024)
        return projected <= self.limit_mb


def gpu_available() -> bool:
    """
    Check if a CUDA device is usable through CuPy.

    Returns:
        True if at least one CUDA device is present
    """
    if not CUPY_AVAILABLE:
        return False

    try:
        return cp.cuda.runtime.getDeviceCount() > 0
    except cp.cuda.runtime.CUDARuntimeError as e:
        logger.debug(f"CUDA runtime unavailable: {e}")
        return False


def device_properties(device_id: int = 0) -> Dict[str, Any]:
    """
    Describe a CUDA device.

    Args:
        device_id: CUDA device ordinal

    Returns:
        Dictionary with name, memory and thread limits
    """
    props = cp.cuda.runtime.getDeviceProperties(device_id)
    name = props["name"]
    if isinstance(name, bytes):
        name = name.decode()
    return {
        "id": device_id,
        "name": name,
        "total_memory_gb": props["totalGlobalMem"] / (1024 ** 3),
        "max_threads_per_block": props["maxThreadsPerBlock"],
        "multiprocessors": props["multiProcessorCount"],
    }


def optimal_lane_count() -> int:
    """
    Determine the number of host worker lanes.

    Honors a cgroup CPU quota when running in a container.

    Returns:
        Lane count, at least 1
    """
    cpu_count = os.cpu_count() or 4

    quota_path = '/sys/fs/cgroup/cpu/cpu.cfs_quota_us'
    period_path = '/sys/fs/cgroup/cpu/cpu.cfs_period_us'
    if os.path.exists(quota_path) and os.path.exists(period_path):
        try:
            with open(quota_path, 'r') as f:
                cpu_quota = int(f.read().strip())
            with open(period_path, 'r') as f:
                cpu_period = int(f.read().strip())
        except (OSError, ValueError) as e:
            logger.debug(f"Could not read cgroup CPU quota: {e}")
        else:
            if cpu_quota > 0 and cpu_period > 0:
                cpu_count = min(cpu_count, max(1, cpu_quota // cpu_period))

    return max(1, cpu_count)


def memory_stats() -> Dict[str, float]:
    """
    Get host memory statistics.

    Returns:
        Dictionary with system and process memory figures
    """
    system_memory = psutil.virtual_memory()
    process = psutil.Process(os.getpid())
    return {
        "total_gb": system_memory.total / (1024 ** 3),
        "available_gb": system_memory.available / (1024 ** 3),
        "percent_used": system_memory.percent,
        "process_mb": process.memory_info().rss / (1024 ** 2),
    }


def timeit(func):
    """
    Decorator to time function execution at DEBUG level.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        execution_time = time.perf_counter() - start_time

        logger.debug(f"{func.__name__} executed in {execution_time:.4f} seconds")
        return result

    return wrapper
