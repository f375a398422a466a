"""
Tests for pattern merging and grouping.
"""

import unittest

from logpatterns.merger import merge_with_pattern, pattern_similarity, group_patterns

DISK_A = "Disk /dev/sda1 is 91% full"
DISK_B = "Disk /dev/sdb2 is 97% full"
DISK_C = "Disk /dev/sdc3 is 93% full"
NOISE = "QW" * 13


class TestMergeWithPattern(unittest.TestCase):

    def test_identical(self):
        result = merge_with_pattern(DISK_A, DISK_A)
        self.assertEqual(result.pattern, DISK_A)
        self.assertEqual(result.match_ratio, 1.0)

    def test_merge_masks_differences(self):
        result = merge_with_pattern(DISK_B, DISK_A)
        self.assertEqual(result.pattern, "Disk /dev/sd•• is 9•% full")
        self.assertAlmostEqual(result.match_ratio, 23 / 26)

    def test_no_common_characters(self):
        self.assertIsNone(merge_with_pattern(NOISE, DISK_A).pattern)


class TestPatternSimilarity(unittest.TestCase):

    def test_same_length(self):
        self.assertAlmostEqual(pattern_similarity(DISK_A, DISK_B), 23 / 26)

    def test_unaligned_is_zero(self):
        self.assertEqual(pattern_similarity(DISK_A, NOISE), 0.0)

    def test_length_gate(self):
        self.assertEqual(pattern_similarity("abc", "abcdefghij"), 0.0)


class TestGroupPatterns(unittest.TestCase):
    """Test the greedy chain grouping."""

    def test_pair_and_singleton(self):
        groups = group_patterns([DISK_A, DISK_B, NOISE])
        self.assertEqual(groups, [[0, 1], [2]])

    def test_clique_forms_one_chain(self):
        groups = group_patterns([DISK_A, DISK_B, DISK_C, NOISE])
        self.assertEqual(len(groups), 2)
        self.assertEqual(sorted(groups[0]), [0, 1, 2])
        self.assertEqual(groups[1], [3])

    def test_result_is_partition(self):
        patterns = [NOISE, DISK_A, "User 123 logged in", DISK_B, "User 456 logged in", DISK_C]
        groups = group_patterns(patterns)
        members = sorted(i for group in groups for i in group)
        self.assertEqual(members, list(range(len(patterns))))

    def test_empty(self):
        self.assertEqual(group_patterns([]), [])


if __name__ == '__main__':
    unittest.main()
