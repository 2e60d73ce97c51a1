"""
Input import for gate jobs.

The input is a whitespace/newline separated list of decimal numbers:

    a b c d v0 v1 ... v(N-1) t

The first four tokens are the gate coefficients, the last token is the
target bit (read as a float and truncated toward zero) and everything in
between is the initial state vector, so N = token count - 5.
"""

import logging
import math
import os
import sys
from typing import List, Optional, TextIO

from ..common.gate_job import GateJob
from ..common.gate_matrix import GateMatrix
from ..common.state_vector import StateVector, amplitude_dtype
from ..constants import GATE_TOKEN_COUNT, TARGET_TOKEN_COUNT, MIN_AMPLITUDES, DEFAULT_PRECISION
from .error_handler import error_boundary, ErrorCategory, InputUnavailable, PreconditionViolation
from .performance_optimizer import timeit

logger = logging.getLogger("QuantumGateEmulator.DataImporter")

STDIN_PATH = "-"


class DataImporter:
    """
    Parse gate job input files into GateJob values.
    """

    def __init__(self, precision: str = DEFAULT_PRECISION):
        """
        Initialize the data importer.

        Args:
            precision: Amplitude precision of the parsed state vector
        """
        self.precision = precision
        self.dtype = amplitude_dtype(precision)

    @timeit
    def import_file(self, filepath: str) -> GateJob:
        """
        Read and parse an input file.

        Args:
            filepath: Path to the input file, or '-' for standard input

        Returns:
            Parsed GateJob

        Raises:
            InputUnavailable: If the file is missing, unreadable or malformed,
                or its amplitude count is not a power of two
        """
        if filepath == STDIN_PATH:
            logger.info("Reading gate job from standard input")
            return self.import_stream(sys.stdin, source="<stdin>")

        if not os.path.exists(filepath):
            raise InputUnavailable(f"Input file not found: {filepath}", step="read input")

        try:
            with open(filepath, 'r') as f:
                logger.info(f"Reading gate job from {filepath}")
                return self.import_stream(f, source=filepath)
        except (OSError, UnicodeDecodeError) as e:
            raise InputUnavailable(f"Cannot read input file {filepath}: {e}", step="read input") from e

    def import_stream(self, stream: TextIO, source: Optional[str] = None) -> GateJob:
        """Parse a gate job from an open text stream."""
        return self.parse_text(self._read_stream(stream), source=source)

    @staticmethod
    @error_boundary(ErrorCategory.INPUT, InputUnavailable)
    def _read_stream(stream: TextIO) -> str:
        return stream.read()

    def parse_text(self, text: str, source: Optional[str] = None) -> GateJob:
        """
        Parse a gate job from input text.

        Args:
            text: Input contents
            source: Name of the input for diagnostics

        Returns:
            Parsed GateJob
        """
        source = source or "<input>"
        values = self._parse_tokens(text.split(), source)

        min_tokens = GATE_TOKEN_COUNT + MIN_AMPLITUDES + TARGET_TOKEN_COUNT
        if len(values) < min_tokens:
            raise InputUnavailable(
                f"{source}: expected at least {min_tokens} numbers "
                f"(4 gate coefficients, {MIN_AMPLITUDES}+ amplitudes, target bit), got {len(values)}",
                step="parse input")

        gate = GateMatrix.from_sequence(values[:GATE_TOKEN_COUNT])
        amplitudes = values[GATE_TOKEN_COUNT:-TARGET_TOKEN_COUNT]
        target_value = values[-1]
        if not math.isfinite(target_value):
            raise InputUnavailable(f"{source}: target bit must be finite, got {target_value}",
                                   step="parse input")
        target_bit = int(target_value)

        try:
            state = StateVector(amplitudes, dtype=self.dtype)
        except PreconditionViolation as e:
            raise InputUnavailable(f"{source}: {e}", step="parse input") from e

        logger.debug(f"Parsed {source}: gate {gate}, {state.num_amplitudes} amplitudes, "
                     f"target bit {target_bit}")
        return GateJob(gate=gate, state=state, target_bit=target_bit)

    @staticmethod
    def _parse_tokens(tokens: List[str], source: str) -> List[float]:
        values = []
        for position, token in enumerate(tokens):
            try:
                values.append(float(token))
            except ValueError:
                raise InputUnavailable(
                    f"{source}: token {position + 1} is not a number: {token!r}",
                    step="parse input") from None
        return values
