"""
The pairwise gate transform.

One unit of work runs per amplitude index i in [0, N). A unit whose
partner j = i | (1 << t) is greater than i writes

    C[i] = a*A[i] + b*A[j]
    C[j] = c*A[i] + d*A[j]

and all other units write nothing. Units read only the input buffer A and
write only the output buffer C; their write sets are disjoint, so units
may run in any order and in any grouping without synchronization.
"""
import math
from string import Template

import numpy as np

from .gate_matrix import GateMatrix
from .pair_indexer import pair_partners

KERNEL_NAME = "apply_single_qubit_gate"

KERNEL_TEMPLATE = Template(r'''
extern "C" __global__
void apply_single_qubit_gate(const ${T}* __restrict__ amplitudes_in,
                             ${T}* __restrict__ amplitudes_out,
                             const ${T} a, const ${T} b,
                             const ${T} c, const ${T} d,
                             const int target_bit,
                             const long long num_amplitudes)
{
    const long long i = (long long)blockIdx.x * blockDim.x + threadIdx.x;
    if (i >= num_amplitudes) {
        return;
    }
    const long long j = i | (1LL << target_bit);
    if (j > i) {
        const ${T} low = amplitudes_in[i];
        const ${T} high = amplitudes_in[j];
        amplitudes_out[i] = a * low + b * high;
        amplitudes_out[j] = c * low + d * high;
    }
}
''')

_C_TYPES = {
    np.dtype(np.float32): "float",
    np.dtype(np.float64): "double",
}


def kernel_source(dtype) -> str:
    """
    CUDA C source of the transform for the given amplitude dtype.

    Args:
        dtype: numpy float32 or float64

    Returns:
        Kernel source string
    """
    dtype = np.dtype(dtype)
    if dtype not in _C_TYPES:
        raise ValueError(f"Unsupported amplitude dtype for kernel: {dtype}")
    return KERNEL_TEMPLATE.substitute(T=_C_TYPES[dtype])


def grid_size(num_amplitudes: int, group_size: int) -> int:
    """Number of groups of ``group_size`` units needed to cover [0, N)."""
    if group_size <= 0:
        raise ValueError(f"Group size must be positive, got {group_size}")
    return math.ceil(num_amplitudes / group_size)


def apply_units(gate: GateMatrix, target_bit: int,
                source: np.ndarray, dest: np.ndarray,
                start: int, stop: int) -> None:
    """
    Execute the units of work for indices [start, stop) on host arrays.

    Indices at or beyond len(source) are dropped, mirroring the kernel's
    bounds check.

    Args:
        gate: Gate coefficients
        target_bit: Bit position t
        source: Read-only input amplitudes A
        dest: Output amplitudes C (must not alias ``source``)
        start: First unit index
        stop: One past the last unit index
    """
    stop = min(stop, len(source))
    if start >= stop:
        return

    indices = np.arange(start, stop, dtype=np.int64)
    partners = pair_partners(indices, target_bit)
    active = partners > indices
    low = indices[active]
    high = partners[active]

    a, b, c, d = (source.dtype.type(v) for v in gate.coefficients())
    low_values = source[low]
    high_values = source[high]
    dest[low] = a * low_values + b * high_values
    dest[high] = c * low_values + d * high_values


def apply_gate(gate: GateMatrix, target_bit: int, amplitudes: np.ndarray) -> np.ndarray:
    """
    Apply the transform on the host in a single group.

    Returns:
        New output array; ``amplitudes`` is left untouched
    """
    source = np.ascontiguousarray(amplitudes)
    dest = np.empty_like(source)
    apply_units(gate, target_bit, source, dest, 0, len(source))
    return dest
