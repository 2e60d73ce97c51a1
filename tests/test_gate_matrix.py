"""
Tests for the GateMatrix and StateVector value types.
"""
import unittest
import numpy as np

from quantum_gate_emulator.common.gate_matrix import GateMatrix
from quantum_gate_emulator.common.gate_job import GateJob
from quantum_gate_emulator.common.state_vector import StateVector, is_power_of_two, amplitude_dtype
from quantum_gate_emulator.utils.error_handler import PreconditionViolation


class TestGateMatrix(unittest.TestCase):
    """
    Test cases for the GateMatrix class.
    """

    def test_from_sequence(self):
        gate = GateMatrix.from_sequence([1, 2, 3, 4])
        self.assertEqual(gate.coefficients(), (1.0, 2.0, 3.0, 4.0))
        np.testing.assert_array_equal(gate.as_array(), [[1, 2], [3, 4]])

    def test_from_sequence_wrong_length(self):
        with self.assertRaises(PreconditionViolation):
            GateMatrix.from_sequence([1, 0, 0])

    def test_immutable(self):
        gate = GateMatrix.identity()
        with self.assertRaises(AttributeError):
            gate.a = 2.0

    def test_inverse(self):
        gate = GateMatrix(2.0, 1.0, 1.0, 1.0)
        inverse = gate.inverse()
        np.testing.assert_allclose(gate.as_array() @ inverse.as_array(), np.eye(2), atol=1e-12)

    def test_singular_inverse(self):
        gate = GateMatrix(1.0, 2.0, 2.0, 4.0)
        self.assertFalse(gate.is_invertible())
        with self.assertRaises(PreconditionViolation):
            gate.inverse()


class TestStateVector(unittest.TestCase):
    """
    Test cases for the StateVector class.
    """

    def test_power_of_two_lengths(self):
        for n in range(1, 6):
            state = StateVector(np.arange(1 << n))
            self.assertEqual(state.num_amplitudes, 1 << n)
            self.assertEqual(state.num_qubits, n)

    def test_rejects_invalid_lengths(self):
        for length in (0, 1, 3, 6, 12):
            with self.assertRaises(PreconditionViolation):
                StateVector(np.ones(length))

    def test_rejects_multidimensional(self):
        with self.assertRaises(PreconditionViolation):
            StateVector(np.ones((2, 2)))

    def test_read_only_and_copy(self):
        source = np.array([1.0, 2.0, 3.0, 4.0])
        state = StateVector(source)
        source[0] = 99.0
        self.assertEqual(state.amplitudes[0], 1.0)

        with self.assertRaises(ValueError):
            state.amplitudes[0] = 5.0

        copy = state.as_array()
        copy[0] = 5.0
        self.assertEqual(state.amplitudes[0], 1.0)

    def test_precision(self):
        state = StateVector.from_sequence([1.0, 2.0], precision="single")
        self.assertEqual(state.dtype, np.float32)
        self.assertEqual(state.nbytes, 8)
        self.assertEqual(state.astype("double").nbytes, 16)
        with self.assertRaises(PreconditionViolation):
            amplitude_dtype("half")

    def test_is_power_of_two(self):
        self.assertTrue(is_power_of_two(1))
        self.assertTrue(is_power_of_two(1024))
        self.assertFalse(is_power_of_two(0))
        self.assertFalse(is_power_of_two(6))


class TestGateJob(unittest.TestCase):
    """
    Test cases for GateJob validation.
    """

    def setUp(self):
        self.state = StateVector([1.0, 2.0, 3.0, 4.0])

    def test_valid_target_bits(self):
        for target_bit in (0, 1):
            GateJob(GateMatrix.identity(), self.state, target_bit).validate()

    def test_invalid_target_bits(self):
        for target_bit in (-1, 2, 10):
            with self.assertRaises(PreconditionViolation):
                GateJob(GateMatrix.identity(), self.state, target_bit).validate()

    def test_non_integer_target_bit(self):
        with self.assertRaises(PreconditionViolation):
            GateJob(GateMatrix.identity(), self.state, 1.0).validate()


if __name__ == '__main__':
    unittest.main()
