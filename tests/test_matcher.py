"""
Tests for matching messages against existing patterns.
"""

import unittest

from logpatterns.matcher import closest_pattern_for_message, fast_search_pattern
from logpatterns.models import PatternOptions, PatternRecord


def make_records(*patterns):
    return [PatternRecord(pattern=p) for p in patterns]


class TestFastSearch(unittest.TestCase):
    """Test the exact/substring prepass."""

    def test_exact_match(self):
        records = make_records("Service alpha started", "Service beta stopped")
        self.assertEqual(fast_search_pattern(records, "Service beta stopped"), 1)

    def test_pattern_contains_message(self):
        records = make_records("Started worker pool")
        self.assertEqual(fast_search_pattern(records, "Started worker"), 0)

    def test_message_contains_stripped_pattern(self):
        records = make_records("Request id=••••")
        self.assertEqual(fast_search_pattern(records, "Request id=4242"), 0)

    def test_length_gate(self):
        records = make_records("abcdefghij")
        self.assertEqual(fast_search_pattern(records, "abcdefghij0123456789"), -1)

    def test_first_qualifying_record_wins(self):
        records = make_records("Started worker pool", "Started worker")
        self.assertEqual(fast_search_pattern(records, "Started worker"), 1)
        self.assertEqual(fast_search_pattern(records, "Started work"), 0)


class TestClosestPattern(unittest.TestCase):
    """Test the full matcher."""

    def test_fast_hit_counts_scanned_records(self):
        records = make_records("Service alpha started", "Service beta stopped",
                               "Service gamma paused")
        match = closest_pattern_for_message(records, "Service beta stopped")

        self.assertEqual(match.index, 1)
        self.assertEqual(match.ratio, 1.0)
        self.assertEqual(match.corrected_pattern, "Service beta stopped")
        self.assertEqual([r.stats.checked for r in records], [2, 2, 1])
        self.assertEqual([r.stats.hits for r in records], [2, 2, 1])

    def test_aligned_match(self):
        records = make_records("User 123 logged in")
        match = closest_pattern_for_message(records, "User 456 logged in")

        self.assertIsNotNone(match)
        self.assertEqual(match.index, 0)
        self.assertEqual(match.corrected_pattern, "User ••• logged in")
        self.assertAlmostEqual(match.ratio, 15 / 18)
        self.assertEqual(records[0].stats.checked, 2)
        self.assertEqual(records[0].stats.hits, 2)

    def test_best_below_unique_ratio_rejected(self):
        records = make_records("User 123 logged in")
        options = PatternOptions(max_unique_match_ratio=0.9)
        match = closest_pattern_for_message(records, "User 456 logged in", options)

        self.assertIsNone(match)
        self.assertEqual(records[0].stats.hits, 2)

    def test_unrelated_message(self):
        records = make_records("aaaaaaaaaa")
        self.assertIsNone(closest_pattern_for_message(records, "bbbbbbbbbb"))
        self.assertEqual(records[0].stats.checked, 2)
        self.assertEqual(records[0].stats.hits, 1)

    def test_length_gated_pattern_never_compared(self):
        records = make_records("abcdefghij")
        for prepass_off in (False, True):
            with self.subTest(no_fast_search_prepass=prepass_off):
                options = PatternOptions(len_diff_max_ratio=0.4,
                                         no_fast_search_prepass=prepass_off)
                match = closest_pattern_for_message(records, "abcdefghij0123456789", options)
                self.assertIsNone(match)
                self.assertEqual(records[0].stats.checked, 1)

    def test_prepass_disabled_still_matches_identical(self):
        records = make_records("User 123 logged in")
        options = PatternOptions(no_fast_search_prepass=True)
        match = closest_pattern_for_message(records, "User 123 logged in", options)

        self.assertEqual(match.index, 0)
        self.assertEqual(match.ratio, 1.0)
        self.assertEqual(records[0].stats.checked, 2)

    def test_best_candidate_selected(self):
        records = make_records("Disk /dev/sda1 is 91% full", "User 123 logged in")
        match = closest_pattern_for_message(records, "User 456 logged in")
        self.assertEqual(match.index, 1)

    def test_empty_pattern_list(self):
        self.assertIsNone(closest_pattern_for_message([], "anything"))


if __name__ == '__main__':
    unittest.main()
