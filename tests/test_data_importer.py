"""
Tests for gate job input parsing and output emission.
"""
import io
import os
import tempfile
import unittest
from unittest import mock
import numpy as np

from quantum_gate_emulator.utils.data_importer import DataImporter
from quantum_gate_emulator.utils.result_emitter import format_amplitudes, emit_result
from quantum_gate_emulator.utils.error_handler import InputUnavailable


class TestDataImporter(unittest.TestCase):
    """
    Test cases for the DataImporter class.
    """

    def setUp(self):
        self.importer = DataImporter()
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write(self, name, text):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, 'w') as f:
            f.write(text)
        return path

    def test_parse_text(self):
        job = self.importer.parse_text("0 1 1 0 3.0 7.0 0")
        self.assertEqual(job.gate.coefficients(), (0.0, 1.0, 1.0, 0.0))
        np.testing.assert_array_equal(job.state.amplitudes, [3.0, 7.0])
        self.assertEqual(job.target_bit, 0)
        self.assertEqual(job.num_qubits, 1)

    def test_mixed_whitespace(self):
        job = self.importer.parse_text("2 0\n0 3\n\t1 1 1 1\n  0\n")
        self.assertEqual(job.num_amplitudes, 4)
        self.assertEqual(job.gate.d, 3.0)

    def test_target_bit_truncated(self):
        self.assertEqual(self.importer.parse_text("1 0 0 1 1 2 3 4 1.9").target_bit, 1)
        self.assertEqual(self.importer.parse_text("1 0 0 1 1 2 3 4 -0.5").target_bit, 0)

    def test_out_of_range_target_is_parsed(self):
        # Range checking belongs to job validation, not parsing
        job = self.importer.parse_text("1 0 0 1 1 2 3 4 5")
        self.assertEqual(job.target_bit, 5)

    def test_too_few_tokens(self):
        for text in ("", "1 0 0 1", "1 0 0 1 5 0"):
            with self.assertRaises(InputUnavailable):
                self.importer.parse_text(text)

    def test_non_numeric_token(self):
        with self.assertRaises(InputUnavailable) as ctx:
            self.importer.parse_text("1 0 0 1 abc 2 0")
        self.assertIn("token 5", str(ctx.exception))

    def test_non_finite_target(self):
        with self.assertRaises(InputUnavailable):
            self.importer.parse_text("1 0 0 1 1 2 nan")

    def test_amplitude_count_not_power_of_two(self):
        with self.assertRaises(InputUnavailable):
            self.importer.parse_text("1 0 0 1 1 2 3 0")

    def test_single_precision(self):
        job = DataImporter(precision="single").parse_text("1 0 0 1 1 2 0")
        self.assertEqual(job.state.dtype, np.float32)

    def test_import_file(self):
        path = self._write("job.txt", "0 1 1 0\n3.0 7.0\n0\n")
        job = self.importer.import_file(path)
        np.testing.assert_array_equal(job.state.amplitudes, [3.0, 7.0])

    def test_missing_file(self):
        with self.assertRaises(InputUnavailable) as ctx:
            self.importer.import_file(os.path.join(self.temp_dir.name, "missing.txt"))
        self.assertEqual(ctx.exception.exit_code, 3)

    def test_import_stdin(self):
        stdin = io.StringIO("0 1 1 0\n3.0 7.0\n0\n")
        with mock.patch("sys.stdin", stdin):
            job = self.importer.import_file("-")
        np.testing.assert_array_equal(job.state.amplitudes, [3.0, 7.0])

    def test_stdin_not_utf8(self):
        stdin = io.TextIOWrapper(io.BytesIO(b"0 1 1 0 \xff\xfe 7 0"), encoding="utf-8")
        with mock.patch("sys.stdin", stdin):
            with self.assertRaises(InputUnavailable) as ctx:
                self.importer.import_file("-")
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)
        self.assertEqual(ctx.exception.exit_code, 3)

    def test_file_not_utf8(self):
        path = os.path.join(self.temp_dir.name, "binary.txt")
        with open(path, 'wb') as f:
            f.write(b"0 1 1 0 \xff\xfe 7 0")
        with self.assertRaises(InputUnavailable):
            self.importer.import_file(path)

    def test_import_stream(self):
        job = self.importer.import_stream(io.StringIO("1 0 0 1 5 6 0"), source="<test>")
        np.testing.assert_array_equal(job.state.amplitudes, [5.0, 6.0])


class TestResultEmitter(unittest.TestCase):
    """
    Test cases for result formatting and emission.
    """

    def test_format(self):
        self.assertEqual(format_amplitudes(np.array([7.0, 3.0])), "7.000\n3.000\n")
        self.assertEqual(format_amplitudes(np.array([0.70710678, -0.25])), "0.707\n-0.250\n")

    def test_format_decimals(self):
        self.assertEqual(format_amplitudes(np.array([1.25, 2.0]), decimals=1), "1.2\n2.0\n")
        self.assertEqual(format_amplitudes(np.array([1.0]), decimals=0), "1\n")

    def test_format_single_precision(self):
        self.assertEqual(format_amplitudes(np.array([0.5, 1.5], dtype=np.float32)), "0.500\n1.500\n")

    def test_emit_to_stream(self):
        stream = io.StringIO()
        emit_result(np.array([2.0, 3.0, 2.0, 3.0]), stream=stream)
        self.assertEqual(stream.getvalue(), "2.000\n3.000\n2.000\n3.000\n")

    def test_emit_to_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "out", "result.txt")
            emit_result(np.array([7.0, 3.0]), output_path=path)
            with open(path, 'r') as f:
                self.assertEqual(f.read(), "7.000\n3.000\n")

    def test_failed_file_write_leaves_nothing(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "result.txt")
            with open(path, 'w') as f:
                f.write("previous\n")

            with mock.patch("quantum_gate_emulator.utils.result_emitter.os.replace",
                            side_effect=OSError("disk full")):
                with self.assertRaises(OSError):
                    emit_result(np.array([7.0, 3.0]), output_path=path)

            self.assertEqual(os.listdir(temp_dir), ["result.txt"])
            with open(path, 'r') as f:
                self.assertEqual(f.read(), "previous\n")


if __name__ == '__main__':
    unittest.main()
