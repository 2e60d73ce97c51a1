"""
CUDA accelerator backend built on CuPy.

Buffers are raw device allocations obtained from the CUDA runtime
(cudaMalloc/cudaMemcpy/cudaFree through ``cupy.cuda.runtime``) so every
allocation, transfer and release is an explicit, individually failing step.
The transform itself is a ``cupy.RawKernel`` launched with one thread per
amplitude index.
"""

import logging
from typing import Dict, Any

import numpy as np

from ..common.interfaces import AcceleratorBackend, DeviceAllocation
from ..common.gate_matrix import GateMatrix
from ..common.parallel_apply import KERNEL_NAME, kernel_source, grid_size
from ..utils.performance_optimizer import CUPY_AVAILABLE, cp, device_properties

logger = logging.getLogger("QuantumGateEmulator.CudaBackend")


class CudaBackend(AcceleratorBackend):
    """
    Accelerator backend running the transform on a CUDA device.
    """

    name = "cuda"

    def __init__(self, device_id: int = 0):
        """
        Initialize the CUDA backend.

        Args:
            device_id: CUDA device ordinal
        """
        if not CUPY_AVAILABLE:
            raise RuntimeError("CuPy is not installed; install the 'gpu' extra")

        self.device_id = device_id
        self.device = cp.cuda.Device(device_id)
        self.device.use()
        self.stream = cp.cuda.Stream.null
        self._kernels = {}

        logger.info(f"CUDA backend initialized on device {device_id}")

    def _kernel(self, dtype: np.dtype):
        """Compile (once per dtype) and return the transform kernel."""
        dtype = np.dtype(dtype)
        if dtype not in self._kernels:
            self._kernels[dtype] = cp.RawKernel(kernel_source(dtype), KERNEL_NAME)
        return self._kernels[dtype]

    def _as_array(self, allocation: DeviceAllocation, dtype: np.dtype, size: int):
        """Wrap a raw allocation as a CuPy array without taking ownership."""
        memory = cp.cuda.UnownedMemory(allocation.address, allocation.nbytes, self, self.device_id)
        return cp.ndarray((size,), dtype=dtype, memptr=cp.cuda.MemoryPointer(memory, 0))

    def allocate(self, nbytes: int, label: str = "") -> DeviceAllocation:
        with self.device:
            address = cp.cuda.runtime.malloc(nbytes)
        logger.debug(f"cudaMalloc {nbytes} bytes for {label or 'buffer'} at {address:#x}")
        return DeviceAllocation(address=address, nbytes=nbytes, label=label)

    def upload(self, allocation: DeviceAllocation, host: np.ndarray) -> None:
        if host.nbytes != allocation.nbytes:
            raise ValueError(f"size mismatch: host {host.nbytes} bytes, device {allocation.nbytes} bytes")
        host = np.ascontiguousarray(host)
        with self.device:
            cp.cuda.runtime.memcpy(allocation.address, host.ctypes.data, host.nbytes,
                                   cp.cuda.runtime.memcpyHostToDevice)

    def launch(self, source: DeviceAllocation, dest: DeviceAllocation,
               gate: GateMatrix, target_bit: int, num_amplitudes: int,
               group_size: int, dtype: np.dtype) -> None:
        if source.address == dest.address:
            raise ValueError("input and output buffers must be distinct")

        if num_amplitudes > 1 and (1 << target_bit) >= num_amplitudes:
            raise IndexError(f"target bit {target_bit} addresses beyond {num_amplitudes} amplitudes")

        dtype = np.dtype(dtype)
        scalar = dtype.type
        blocks = grid_size(num_amplitudes, group_size)

        with self.device:
            kernel = self._kernel(dtype)
            amplitudes_in = self._as_array(source, dtype, num_amplitudes)
            amplitudes_out = self._as_array(dest, dtype, num_amplitudes)
            kernel(
                (blocks,), (group_size,),
                (amplitudes_in, amplitudes_out,
                 scalar(gate.a), scalar(gate.b), scalar(gate.c), scalar(gate.d),
                 np.int32(target_bit), np.int64(num_amplitudes)),
                stream=self.stream
            )
            # Launch errors surface at the next runtime call; block until the kernel finishes.
            self.stream.synchronize()

        logger.debug(f"Kernel completed: {blocks} blocks x {group_size} threads")

    def download(self, allocation: DeviceAllocation, host: np.ndarray) -> None:
        if host.nbytes != allocation.nbytes:
            raise ValueError(f"size mismatch: host {host.nbytes} bytes, device {allocation.nbytes} bytes")
        if not host.flags.c_contiguous:
            raise ValueError("host output buffer must be C-contiguous")
        with self.device:
            cp.cuda.runtime.memcpy(host.ctypes.data, allocation.address, host.nbytes,
                                   cp.cuda.runtime.memcpyDeviceToHost)

    def release(self, allocation: DeviceAllocation) -> None:
        if allocation.released:
            raise ValueError(f"double release of {allocation.label} at {allocation.address:#x}")
        with self.device:
            cp.cuda.runtime.free(allocation.address)
        allocation.released = True
        logger.debug(f"cudaFree {allocation.label} at {allocation.address:#x}")

    def describe(self) -> Dict[str, Any]:
        info = device_properties(self.device_id)
        info["backend"] = self.name
        return info
