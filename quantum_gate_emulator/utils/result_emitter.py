"""
Output emission for gate results.

Amplitudes are written one per line with a fixed number of decimal places
in index order. The whole vector is formatted before anything is written.
"""

import logging
import os
import sys
import tempfile
from typing import Optional, TextIO

import numpy as np

from ..constants import DEFAULT_OUTPUT_DECIMALS

logger = logging.getLogger("QuantumGateEmulator.ResultEmitter")


def format_amplitudes(amplitudes: np.ndarray, decimals: int = DEFAULT_OUTPUT_DECIMALS) -> str:
    """
    Format amplitudes as newline-terminated fixed-point lines.

    Args:
        amplitudes: Output vector
        decimals: Digits after the decimal point

    Returns:
        Formatted text
    """
    if len(amplitudes) == 0:
        return ""
    fmt = f"%.{decimals}f"
    return "\n".join(fmt % value for value in np.asarray(amplitudes, dtype=np.float64)) + "\n"


def emit_result(amplitudes: np.ndarray, output_path: Optional[str] = None,
                decimals: int = DEFAULT_OUTPUT_DECIMALS,
                stream: Optional[TextIO] = None) -> None:
    """
    Emit the output vector to a file or stream.

    Args:
        amplitudes: Output vector
        output_path: Destination file (None for ``stream``)
        decimals: Digits after the decimal point
        stream: Destination stream when no path is given (defaults to stdout)
    """
    text = format_amplitudes(amplitudes, decimals)

    if output_path:
        _write_atomic(output_path, text)
        logger.info(f"Wrote {len(amplitudes)} amplitudes to {output_path}")
        return

    stream = stream or sys.stdout
    stream.write(text)
    stream.flush()


def _write_atomic(output_path: str, text: str) -> None:
    """
    Write ``text`` to a temporary file beside ``output_path`` and move it into place.

    Either the complete vector lands at ``output_path`` or the path is left
    as it was.
    """
    directory = os.path.dirname(output_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)

    fd, temp_path = tempfile.mkstemp(prefix=".result-", suffix=".tmp", dir=directory or ".")
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(text)
        os.replace(temp_path, output_path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
