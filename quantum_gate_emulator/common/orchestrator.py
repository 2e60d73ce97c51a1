"""
Host/accelerator orchestration of one gate application.

The orchestrator owns both device buffers for their whole lifetime:
allocate, upload, dispatch, download and release run in sequence, each
inside its own error boundary. Device buffers are acquired through a
context manager so they are released on every exit path. Nothing is
retried and there is no fallback to another backend mid-run.
"""

import logging
from contextlib import contextmanager, ExitStack
from typing import Optional, Iterator

import numpy as np

from .gate_job import GateJob
from .interfaces import AcceleratorBackend, DeviceAllocation
from ..utils.error_handler import (
    error_handler, fatal_step, ReleaseFailure, ResourceExhaustion,
    TransferFailure, DispatchFailure
)
from ..utils.performance_optimizer import PerformanceOptimizer

logger = logging.getLogger("QuantumGateEmulator.Orchestrator")


def release_buffer(backend: AcceleratorBackend, allocation: DeviceAllocation) -> None:
    """
    Release one device buffer.

    Raises:
        ReleaseFailure: If the backend cannot free the buffer
    """
    with fatal_step(f"release {allocation.label}", ReleaseFailure,
                    {"address": allocation.address, "nbytes": allocation.nbytes}):
        backend.release(allocation)


@contextmanager
def device_buffer(backend: AcceleratorBackend, nbytes: int, label: str) -> Iterator[DeviceAllocation]:
    """
    Scoped acquisition of a device buffer.

    On normal exit a release failure raises ReleaseFailure. When the block
    is already unwinding with an error, the release is still attempted and
    a release failure is reported without replacing the original error.

    Args:
        backend: Backend owning the memory
        nbytes: Buffer size in bytes
        label: Buffer name used in diagnostics
    """
    with fatal_step(f"allocate {label}", ResourceExhaustion, {"nbytes": nbytes}):
        allocation = backend.allocate(nbytes, label=label)

    try:
        yield allocation
    except BaseException:
        try:
            release_buffer(backend, allocation)
        except ReleaseFailure as release_error:
            error_handler.log_exception(release_error, message=f"{release_error} (during error unwind)")
        raise
    else:
        release_buffer(backend, allocation)


class GateOrchestrator:
    """
    Run a GateJob on an accelerator backend.

    The host StateVector stays authoritative: it is copied into a device
    input buffer, the transform writes a separate device output buffer, and
    the output is copied back into a fresh host array.
    """

    def __init__(self, backend: AcceleratorBackend,
                 group_size: Optional[int] = None,
                 validate_inputs: bool = True,
                 optimizer: Optional[PerformanceOptimizer] = None):
        """
        Initialize the orchestrator.

        Args:
            backend: Accelerator backend executing the transform
            group_size: Units of work per dispatch group (None for the backend default)
            validate_inputs: Check the target bit before allocating anything
            optimizer: Performance instrumentation (created if not given)
        """
        self.backend = backend
        self.group_size = group_size
        self.validate_inputs = validate_inputs
        self.optimizer = optimizer or PerformanceOptimizer(gpu_enabled=backend.name == "cuda")

        logger.debug(f"Orchestrator initialized for {backend.name} backend")

    def run(self, job: GateJob) -> np.ndarray:
        """
        Apply the job's gate to its state vector.

        Args:
            job: Gate, state and target bit

        Returns:
            Host-resident output amplitudes (never aliasing the input)

        Raises:
            PreconditionViolation: Invalid target bit (when validation is on)
            ResourceExhaustion: Device allocation failed
            TransferFailure: Upload or download failed
            DispatchFailure: Launch or kernel execution failed
            ReleaseFailure: Device buffer could not be freed
        """
        if self.validate_inputs:
            job.validate()
        else:
            logger.warning("Input validation disabled; target bit is not checked")

        num_amplitudes = job.num_amplitudes
        host_input = job.state.as_array()
        dtype = host_input.dtype
        nbytes = job.state.nbytes
        group_size = self.optimizer.suggest_group_size(num_amplitudes, self.backend.name, self.group_size)

        logger.info(f"Applying gate {job.gate} to bit {job.target_bit} of "
                    f"{job.num_qubits}-qubit state ({num_amplitudes} amplitudes, {dtype})")

        with self.optimizer.memory_usage_tracking(), ExitStack() as buffers:
            with self.optimizer.timer("allocate"):
                device_input = buffers.enter_context(
                    device_buffer(self.backend, nbytes, "input buffer"))
                device_output = buffers.enter_context(
                    device_buffer(self.backend, nbytes, "output buffer"))

            with self.optimizer.timer("upload"), fatal_step("upload state vector", TransferFailure):
                self.backend.upload(device_input, host_input)

            with self.optimizer.timer("dispatch"), fatal_step("dispatch gate transform", DispatchFailure,
                                                              {"group_size": group_size}):
                self.backend.launch(device_input, device_output, job.gate, job.target_bit,
                                    num_amplitudes, group_size, dtype)

            host_output = np.empty(num_amplitudes, dtype=dtype)
            with self.optimizer.timer("download"), fatal_step("download output vector", TransferFailure):
                self.backend.download(device_output, host_output)

            with self.optimizer.timer("release"):
                buffers.close()

        logger.info("Gate application complete")
        return host_output
