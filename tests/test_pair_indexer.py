"""
Tests for amplitude pairing across a target bit.
"""
import unittest
import numpy as np

from quantum_gate_emulator.common.pair_indexer import (
    partner, pair_partners, low_indices, enumerate_pairs, is_complete_pairing
)


class TestPairIndexer(unittest.TestCase):
    """
    Test cases for the pair indexer functions.
    """

    def test_partner_of_low_index(self):
        self.assertEqual(partner(0, 0), 1)
        self.assertEqual(partner(0, 2), 4)
        self.assertEqual(partner(5, 1), 7)

    def test_partner_of_high_index_is_itself(self):
        # bit t already set: no partner greater than i
        self.assertEqual(partner(1, 0), 1)
        self.assertEqual(partner(6, 2), 6)

    def test_xor_partner_is_involution(self):
        for n in range(1, 7):
            for t in range(n):
                indices = np.arange(1 << n)
                partners = indices ^ (1 << t)
                np.testing.assert_array_equal(partners ^ (1 << t), indices)

    def test_vectorized_matches_scalar(self):
        indices = np.arange(32, dtype=np.int64)
        for t in range(5):
            expected = [partner(int(i), t) for i in indices]
            np.testing.assert_array_equal(pair_partners(indices, t), expected)

    def test_pairing_totality(self):
        for n in range(1, 9):
            num_amplitudes = 1 << n
            for t in range(n):
                pairs = enumerate_pairs(num_amplitudes, t)
                self.assertEqual(len(pairs), num_amplitudes // 2)
                self.assertTrue(is_complete_pairing(pairs, num_amplitudes))
                # low member has bit t clear, high member has it set
                self.assertTrue(np.all((pairs[:, 0] >> t) & 1 == 0))
                self.assertTrue(np.all((pairs[:, 1] >> t) & 1 == 1))

    def test_boundary_bits(self):
        num_amplitudes = 16
        lowest = enumerate_pairs(num_amplitudes, 0)
        highest = enumerate_pairs(num_amplitudes, 3)
        self.assertEqual([tuple(p) for p in lowest[:2]], [(0, 1), (2, 3)])
        self.assertEqual([tuple(p) for p in highest[:2]], [(0, 8), (1, 9)])
        self.assertTrue(is_complete_pairing(lowest, num_amplitudes))
        self.assertTrue(is_complete_pairing(highest, num_amplitudes))

    def test_incomplete_pairing_detected(self):
        pairs = np.array([[0, 1], [0, 1]])
        self.assertFalse(is_complete_pairing(pairs, 4))
        self.assertFalse(is_complete_pairing(np.array([[0, 1]]), 4))

    def test_low_indices(self):
        np.testing.assert_array_equal(low_indices(8, 1), [0, 1, 4, 5])


if __name__ == '__main__':
    unittest.main()
