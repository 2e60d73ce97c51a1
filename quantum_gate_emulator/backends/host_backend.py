"""
Host-emulated accelerator backend.

Device memory is a table of numpy buffers addressed by integer handles, and
a launch runs the dispatch groups on a pool of worker threads ("lanes").
numpy releases the GIL inside its array kernels, so lanes overlap on
large groups. Group order is configurable to exercise the order
independence of the transform.
"""

import logging
import random
import threading
from itertools import count
from typing import Dict, Any, List, Optional

import numpy as np

from ..common.interfaces import AcceleratorBackend, DeviceAllocation
from ..common.gate_matrix import GateMatrix
from ..common.parallel_apply import apply_units, grid_size
from ..constants import DISPATCH_ORDERS
from ..utils.performance_optimizer import MemoryTracker, optimal_lane_count

logger = logging.getLogger("QuantumGateEmulator.HostBackend")


class LanePool:
    """
    Fixed set of worker threads executing dispatch groups.

    Workers pull group numbers from a shared cursor; the first exception
    raised by any group is re-raised from ``run`` after all lanes join.
    """

    def __init__(self, num_lanes: int):
        """
        Initialize the lane pool.

        Args:
            num_lanes: Number of worker threads per launch
        """
        self.num_lanes = max(1, num_lanes)

    def run(self, task, groups: List[int]) -> None:
        """
        Run ``task(group)`` for every group and wait for completion.

        Args:
            task: Callable taking a group number
            groups: Group numbers in dispatch order
        """
        if self.num_lanes == 1 or len(groups) <= 1:
            for group in groups:
                task(group)
            return

        cursor = iter(groups)
        cursor_lock = threading.Lock()
        errors = []

        def worker():
            while not errors:
                with cursor_lock:
                    group = next(cursor, None)
                if group is None:
                    return
                try:
                    task(group)
                except Exception as e:
                    errors.append(e)
                    return

        threads = [
            threading.Thread(target=worker, name=f"gate-lane-{lane}", daemon=True)
            for lane in range(min(self.num_lanes, len(groups)))
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if errors:
            raise errors[0]


class HostBackend(AcceleratorBackend):
    """
    Accelerator backend emulated in host memory.
    """

    name = "host"

    def __init__(self, lanes: Optional[int] = None,
                 dispatch_order: str = "sequential",
                 capacity_bytes: Optional[int] = None,
                 memory_limit_mb: Optional[int] = None,
                 seed: Optional[int] = None):
        """
        Initialize the host backend.

        Args:
            lanes: Worker threads per launch (None for one per available CPU)
            dispatch_order: 'sequential', 'reversed' or 'shuffled'
            capacity_bytes: Emulated device memory size (None for unlimited)
            memory_limit_mb: Host process memory limit checked on allocation
            seed: Random seed for the 'shuffled' dispatch order
        """
        if dispatch_order not in DISPATCH_ORDERS:
            valid = ", ".join(DISPATCH_ORDERS)
            raise ValueError(f"Unknown dispatch order: {dispatch_order}. Valid options: {valid}")

        self.lane_pool = LanePool(lanes or optimal_lane_count())
        self.dispatch_order = dispatch_order
        self.capacity_bytes = capacity_bytes
        self.memory_tracker = MemoryTracker(limit_mb=memory_limit_mb)
        self._random = random.Random(seed)

        self._buffers: Dict[int, np.ndarray] = {}
        self._handles = count(1)
        self._lock = threading.Lock()

        logger.debug(f"Host backend initialized ({self.lane_pool.num_lanes} lanes, "
                     f"{dispatch_order} dispatch)")

    @property
    def allocated_bytes(self) -> int:
        with self._lock:
            return sum(buffer.nbytes for buffer in self._buffers.values())

    @property
    def live_allocations(self) -> int:
        with self._lock:
            return len(self._buffers)

    def allocate(self, nbytes: int, label: str = "") -> DeviceAllocation:
        if nbytes <= 0:
            raise ValueError(f"Allocation size must be positive, got {nbytes}")
        if self.capacity_bytes is not None and self.allocated_bytes + nbytes > self.capacity_bytes:
            raise MemoryError(f"out of emulated device memory: requested {nbytes} bytes, "
                              f"{self.capacity_bytes - self.allocated_bytes} available")
        if not self.memory_tracker.check_memory_limit(nbytes):
            raise MemoryError(f"host memory limit of {self.memory_tracker.limit_mb} MB "
                              f"would be exceeded by {nbytes} bytes")

        buffer = np.empty(nbytes, dtype=np.uint8)
        with self._lock:
            address = next(self._handles)
            self._buffers[address] = buffer

        logger.debug(f"Allocated {nbytes} bytes for {label or 'buffer'} at handle {address}")
        return DeviceAllocation(address=address, nbytes=nbytes, label=label)

    def _buffer(self, allocation: DeviceAllocation) -> np.ndarray:
        with self._lock:
            buffer = self._buffers.get(allocation.address)
        if buffer is None or allocation.released:
            raise ValueError(f"invalid device handle {allocation.address} ({allocation.label})")
        return buffer

    def _view(self, allocation: DeviceAllocation, dtype: np.dtype) -> np.ndarray:
        return self._buffer(allocation).view(dtype)

    def upload(self, allocation: DeviceAllocation, host: np.ndarray) -> None:
        if host.nbytes != allocation.nbytes:
            raise ValueError(f"size mismatch: host {host.nbytes} bytes, device {allocation.nbytes} bytes")
        np.copyto(self._view(allocation, host.dtype), host.ravel())

    def launch(self, source: DeviceAllocation, dest: DeviceAllocation,
               gate: GateMatrix, target_bit: int, num_amplitudes: int,
               group_size: int, dtype: np.dtype) -> None:
        if source.address == dest.address:
            raise ValueError("input and output buffers must be distinct")

        amplitudes_in = self._view(source, dtype)
        amplitudes_out = self._view(dest, dtype)
        if len(amplitudes_in) < num_amplitudes or len(amplitudes_out) < num_amplitudes:
            raise ValueError(f"buffers too small for {num_amplitudes} amplitudes")

        if num_amplitudes > 1 and (1 << target_bit) >= num_amplitudes:
            raise IndexError(f"target bit {target_bit} addresses beyond {num_amplitudes} amplitudes")

        groups = self._dispatch_order(grid_size(num_amplitudes, group_size))

        def run_group(group: int) -> None:
            start = group * group_size
            apply_units(gate, target_bit,
                        amplitudes_in[:num_amplitudes], amplitudes_out[:num_amplitudes],
                        start, start + group_size)

        logger.debug(f"Dispatching {len(groups)} groups of {group_size} units "
                     f"over {self.lane_pool.num_lanes} lanes")
        self.lane_pool.run(run_group, groups)

    def _dispatch_order(self, num_groups: int) -> List[int]:
        groups = list(range(num_groups))
        if self.dispatch_order == "reversed":
            groups.reverse()
        elif self.dispatch_order == "shuffled":
            self._random.shuffle(groups)
        return groups

    def download(self, allocation: DeviceAllocation, host: np.ndarray) -> None:
        if host.nbytes != allocation.nbytes:
            raise ValueError(f"size mismatch: host {host.nbytes} bytes, device {allocation.nbytes} bytes")
        np.copyto(host.reshape(-1), self._view(allocation, host.dtype))

    def release(self, allocation: DeviceAllocation) -> None:
        with self._lock:
            buffer = self._buffers.pop(allocation.address, None)
        if buffer is None:
            raise ValueError(f"double release or unknown handle {allocation.address} ({allocation.label})")
        allocation.released = True
        logger.debug(f"Released handle {allocation.address} ({allocation.label})")

    def describe(self) -> Dict[str, Any]:
        return {
            "backend": self.name,
            "lanes": self.lane_pool.num_lanes,
            "dispatch_order": self.dispatch_order,
            "capacity_bytes": self.capacity_bytes,
        }
