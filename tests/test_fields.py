"""
Tests for shift fields, their corrections and stable sequences.
"""

import unittest

from logpatterns.fields import (
    FIELD_NONE, shift_match_field, fields_corrections, mutual_shift,
    first_monotonous_sequence, detect_stable_sequence, count_equals, diff_ratio
)


class TestShiftMatchField(unittest.TestCase):
    """Test building a shift field."""

    def test_constant_offset(self):
        """A one character prefix shifts every position by one."""
        self.assertEqual(shift_match_field("abc", "xabc", 3, "•"), [1, 1, 1])

    def test_mask_positions_never_match(self):
        self.assertEqual(shift_match_field("a•c", "abc", 3, "•"), [0, FIELD_NONE, 0])

    def test_window_limit(self):
        """Offsets at or beyond maxdist are not searched."""
        self.assertEqual(shift_match_field("a", "xxxa", 3, "•"), [FIELD_NONE])
        self.assertEqual(shift_match_field("a", "xxxa", 4, "•"), [3])

    def test_positive_offset_preferred(self):
        # 'b' occurs at both -1 and +1 around position 1
        self.assertEqual(shift_match_field("ab", "bab", 3, "•"), [1, 1])

    def test_other_shorter_than_base(self):
        self.assertEqual(shift_match_field("abcz", "ab", 3, "•"),
                         [0, 0, FIELD_NONE, FIELD_NONE])
        self.assertEqual(shift_match_field("xab", "ab", 3, "•"), [FIELD_NONE, -1, -1])


class TestFieldsCorrections(unittest.TestCase):
    """Test mutual confirmation and neighbour smoothing."""

    def test_consistent_fields_unchanged(self):
        a, b = "abcdefgh", "abcXYdefgh"
        fa = shift_match_field(a, b, 10, "•")
        fb = shift_match_field(b, a, 10, "•")
        fields_corrections(fa, fb, a, b)

        self.assertEqual(fa, [0, 0, 0, 2, 2, 2, 2, 2])
        self.assertEqual(fb, [0, 0, 0, FIELD_NONE, FIELD_NONE, -2, -2, -2, -2, -2])

    def test_neighbor_offset_adopted(self):
        """A wrong offset next to a confirmed neighbour takes the neighbour's offset."""
        fa, fb = [1, 0], [0, 0]
        fields_corrections(fa, fb, "ab", "ab")
        self.assertEqual(fa, [0, 0])
        self.assertEqual(fb, [0, 0])

    def test_unconfirmed_reset(self):
        fa, fb = [2], [FIELD_NONE] * 3
        fields_corrections(fa, fb, "a", "xxa")
        self.assertEqual(fa, [FIELD_NONE])
        self.assertEqual(fb, [FIELD_NONE] * 3)

    def test_mutual_shift_out_of_range(self):
        self.assertFalse(mutual_shift([5], [0, 0], 0))
        self.assertFalse(mutual_shift([0], [0], 3))
        self.assertTrue(mutual_shift([1], [0, -1], 0))


class TestStableSequences(unittest.TestCase):
    """Test detection of constant-offset runs."""

    def test_first_monotonous_sequence(self):
        field = [FIELD_NONE, 0, 0, 0, 1, 1]
        self.assertEqual(first_monotonous_sequence(field, 3), (1, 4))
        self.assertIsNone(first_monotonous_sequence(field, 3, 4))
        self.assertEqual(first_monotonous_sequence(field, 2, 4), (4, 6))

    def test_single_items_are_not_runs(self):
        self.assertIsNone(first_monotonous_sequence([1, 2, 3], 1))

    def test_none_runs_count_as_runs(self):
        field = [FIELD_NONE, FIELD_NONE, FIELD_NONE, 0]
        self.assertEqual(first_monotonous_sequence(field, 3), (0, 3))

    def test_detect_stable_sequence_excludes(self):
        field = [0, 0, 0, 2, 2, 2, FIELD_NONE]
        self.assertEqual(detect_stable_sequence(field, 0, 3), (3, 6, 2))
        self.assertEqual(detect_stable_sequence(field, 0, 3, exclude=(FIELD_NONE,)), (0, 3, 0))
        self.assertIsNone(detect_stable_sequence(field, 6, 3))


class TestHelpers(unittest.TestCase):

    def test_diff_ratio(self):
        self.assertAlmostEqual(diff_ratio(10, 20), 0.5)
        self.assertAlmostEqual(diff_ratio(20, 10), 0.5)
        self.assertEqual(diff_ratio(0, 0), 0.0)

    def test_count_equals(self):
        self.assertEqual(count_equals([0, FIELD_NONE, 0, 1], 0), 2)
        self.assertEqual(count_equals([0, FIELD_NONE, 0, 1], 0, 1, 3), 1)


if __name__ == '__main__':
    unittest.main()
