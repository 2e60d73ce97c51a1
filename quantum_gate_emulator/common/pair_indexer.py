"""
Amplitude pairing across a target bit.

Indices i and i | (1 << t) differ only in bit t and are mixed by the gate.
``partner`` returns i itself when bit t is already set, so a unit of work
acts only from the low member of its pair and each pair is visited once.
"""
import numpy as np


def partner(index: int, target_bit: int) -> int:
    """Return the high partner of ``index`` across ``target_bit``."""
    return index | (1 << target_bit)


def pair_partners(indices: np.ndarray, target_bit: int) -> np.ndarray:
    """Vectorized ``partner`` over an integer index array."""
    return np.bitwise_or(indices, np.int64(1) << np.int64(target_bit))


def low_indices(num_amplitudes: int, target_bit: int) -> np.ndarray:
    """
    Indices whose bit ``target_bit`` is zero, in ascending order.

    Args:
        num_amplitudes: Vector length N
        target_bit: Bit position t

    Returns:
        Array of N/2 low indices
    """
    indices = np.arange(num_amplitudes, dtype=np.int64)
    return indices[(indices >> target_bit) & 1 == 0]


def enumerate_pairs(num_amplitudes: int, target_bit: int) -> np.ndarray:
    """
    All (low, high) pairs for a target bit.

    Returns:
        Array of shape (N/2, 2)
    """
    low = low_indices(num_amplitudes, target_bit)
    return np.stack([low, pair_partners(low, target_bit)], axis=1)


def is_complete_pairing(pairs: np.ndarray, num_amplitudes: int) -> bool:
    """
    Check that ``pairs`` covers [0, N) exactly once with no overlap.

    Args:
        pairs: Array of shape (M, 2)
        num_amplitudes: Vector length N

    Returns:
        True if every index appears in exactly one pair
    """
    if pairs.shape != (num_amplitudes // 2, 2):
        return False
    counts = np.bincount(pairs.ravel(), minlength=num_amplitudes)
    return len(counts) == num_amplitudes and bool(np.all(counts == 1))
