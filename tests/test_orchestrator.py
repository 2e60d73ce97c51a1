"""
Tests for the GateOrchestrator.

A host backend with injectable faults checks that every failing step is
reported with its own error class and that device buffers are released on
every exit path.
"""
import unittest
import numpy as np

from quantum_gate_emulator.backends.host_backend import HostBackend
from quantum_gate_emulator.common import GateMatrix, StateVector, GateJob, GateOrchestrator
from quantum_gate_emulator.utils.error_handler import (
    error_handler, ErrorCategory, ErrorLevel, PreconditionViolation, ResourceExhaustion,
    TransferFailure, DispatchFailure, ReleaseFailure
)


class FaultyBackend(HostBackend):
    """Host backend that fails at a chosen step."""

    def __init__(self, fail_on=None, fail_release_of=None, **kwargs):
        super().__init__(lanes=1, **kwargs)
        self.fail_on = fail_on
        self.fail_release_of = fail_release_of
        self.calls = []

    def allocate(self, nbytes, label=""):
        self.calls.append(("allocate", label))
        if self.fail_on == label:
            raise MemoryError("simulated out of memory")
        return super().allocate(nbytes, label)

    def upload(self, allocation, host):
        self.calls.append(("upload", allocation.label))
        if self.fail_on == "upload":
            raise RuntimeError("simulated copy failure")
        super().upload(allocation, host)

    def launch(self, source, dest, gate, target_bit, num_amplitudes, group_size, dtype):
        self.calls.append(("launch", dest.label))
        if self.fail_on == "launch":
            raise RuntimeError("simulated kernel failure")
        super().launch(source, dest, gate, target_bit, num_amplitudes, group_size, dtype)

    def download(self, allocation, host):
        self.calls.append(("download", allocation.label))
        if self.fail_on == "download":
            raise RuntimeError("simulated copy failure")
        super().download(allocation, host)

    def release(self, allocation):
        self.calls.append(("release", allocation.label))
        if self.fail_release_of == allocation.label:
            raise RuntimeError("simulated free failure")
        super().release(allocation)


class TestGateOrchestrator(unittest.TestCase):
    """
    Test cases for the GateOrchestrator class.
    """

    def setUp(self):
        error_handler.clear_error_history()
        self.job = GateJob(GateMatrix(0, 1, 1, 0), StateVector([3.0, 7.0]), 0)

    def _run(self, backend, job=None, **kwargs):
        return GateOrchestrator(backend, **kwargs).run(job or self.job)

    def test_swap(self):
        backend = HostBackend(lanes=1)
        output = self._run(backend)
        np.testing.assert_array_equal(output, [7.0, 3.0])
        self.assertEqual(backend.live_allocations, 0)

    def test_identity_on_bit_one(self):
        job = GateJob(GateMatrix.identity(), StateVector([1.0, 2.0, 3.0, 4.0]), 1)
        np.testing.assert_array_equal(self._run(HostBackend(lanes=2), job), [1.0, 2.0, 3.0, 4.0])

    def test_diagonal_on_bit_zero(self):
        job = GateJob(GateMatrix(2, 0, 0, 3), StateVector([1.0, 1.0, 1.0, 1.0]), 0)
        np.testing.assert_array_equal(self._run(HostBackend(lanes=2), job), [2.0, 3.0, 2.0, 3.0])

    def test_output_does_not_alias_input(self):
        output = self._run(HostBackend(lanes=1))
        output[0] = 100.0
        self.assertEqual(self.job.state.amplitudes[0], 3.0)

    def test_group_sizes(self):
        rng = np.random.default_rng(5)
        job = GateJob(GateMatrix(0.5, 1.0, -1.0, 2.0), StateVector(rng.standard_normal(1024)), 9)
        expected = self._run(HostBackend(lanes=1), job, group_size=1024)
        for group_size in (1, 7, 100):
            backend = HostBackend(lanes=4, dispatch_order="shuffled", seed=group_size)
            np.testing.assert_array_equal(self._run(backend, job, group_size=group_size), expected)

    def test_single_precision(self):
        job = GateJob(GateMatrix(0, 1, 1, 0), StateVector([3.0, 7.0], dtype=np.float32), 0)
        output = self._run(HostBackend(lanes=1), job)
        self.assertEqual(output.dtype, np.float32)
        np.testing.assert_array_equal(output, [7.0, 3.0])

    def test_invalid_target_before_allocation(self):
        backend = FaultyBackend()
        job = GateJob(GateMatrix.identity(), StateVector([1.0, 2.0]), 1)
        with self.assertRaises(PreconditionViolation):
            self._run(backend, job)
        self.assertEqual(backend.calls, [])

    def test_validation_disabled(self):
        backend = FaultyBackend()
        job = GateJob(GateMatrix.identity(), StateVector([1.0, 2.0]), 1)
        with self.assertRaises(DispatchFailure):
            self._run(backend, job, validate_inputs=False)
        self.assertEqual(backend.live_allocations, 0)

    def test_input_allocation_failure(self):
        backend = FaultyBackend(fail_on="input buffer")
        with self.assertRaises(ResourceExhaustion) as ctx:
            self._run(backend)
        self.assertIsInstance(ctx.exception.__cause__, MemoryError)
        self.assertEqual(backend.live_allocations, 0)
        self.assertNotIn(("allocate", "output buffer"), backend.calls)

    def test_output_allocation_failure_releases_input(self):
        backend = FaultyBackend(fail_on="output buffer")
        with self.assertRaises(ResourceExhaustion):
            self._run(backend)
        self.assertIn(("release", "input buffer"), backend.calls)
        self.assertEqual(backend.live_allocations, 0)

    def test_capacity_exhaustion(self):
        backend = HostBackend(lanes=1, capacity_bytes=24)
        with self.assertRaises(ResourceExhaustion):
            self._run(backend)
        self.assertEqual(backend.live_allocations, 0)

    def test_step_failures(self):
        cases = [
            ("upload", TransferFailure),
            ("launch", DispatchFailure),
            ("download", TransferFailure),
        ]
        for step, error_type in cases:
            with self.subTest(step=step):
                backend = FaultyBackend(fail_on=step)
                with self.assertRaises(error_type) as ctx:
                    self._run(backend)
                self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
                self.assertEqual(backend.live_allocations, 0)
                self.assertIn(("release", "input buffer"), backend.calls)
                self.assertIn(("release", "output buffer"), backend.calls)

    def test_steps_run_in_order(self):
        backend = FaultyBackend()
        self._run(backend)
        self.assertEqual([call[0] for call in backend.calls],
                         ["allocate", "allocate", "upload", "launch", "download", "release", "release"])

    def test_release_failure_on_success_path(self):
        backend = FaultyBackend(fail_release_of="output buffer")
        with self.assertRaises(ReleaseFailure):
            self._run(backend)
        # The input buffer is still released after the output release fails
        self.assertIn(("release", "input buffer"), backend.calls)
        self.assertEqual(backend.live_allocations, 1)

    def test_release_failure_during_unwind_keeps_original_error(self):
        backend = FaultyBackend(fail_on="launch", fail_release_of="input buffer")
        with self.assertRaises(DispatchFailure):
            self._run(backend)

        reported = error_handler.get_error_history(level=ErrorLevel.ERROR, category=ErrorCategory.RELEASE)
        self.assertEqual(len(reported), 1)
        self.assertIn("input buffer", reported[0]["message"])

    def test_step_timings_recorded(self):
        orchestrator = GateOrchestrator(HostBackend(lanes=1))
        orchestrator.run(self.job)
        step_times = orchestrator.optimizer.get_performance_metrics()["step_times"]
        for step in ("allocate", "upload", "dispatch", "download", "release"):
            self.assertIn(step, step_times)


if __name__ == '__main__':
    unittest.main()
