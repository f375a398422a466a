"""
Matching of incoming messages against the current pattern list.

A cheap exact/substring prepass runs first; otherwise every
length-compatible pattern is aligned with the message and the best
alignment wins if it clears ``max_unique_match_ratio``.
"""

from dataclasses import replace
from typing import List, Optional

from .models import PatternMatch, PatternOptions, PatternRecord
from .alignment import align_and_mask, optimal_parameters
from .fields import diff_ratio


def fast_search_pattern(patterns: List[PatternRecord], msg: str,
                        options: Optional[PatternOptions] = None) -> int:
    """
    Index of the first pattern equal to, containing, or contained in ``msg``.

    Containment is tested in both directions: the pattern contains the
    message, or the message contains the pattern with its mask characters
    stripped. Returns -1 when nothing qualifies.
    """
    options = options or PatternOptions()
    for i, rec in enumerate(patterns):
        if rec.pattern == msg:
            return i

    for i, rec in enumerate(patterns):
        pattern = rec.pattern
        if diff_ratio(len(pattern), len(msg)) > options.len_diff_max_ratio:
            continue
        if msg in pattern:
            return i
        if pattern.replace(options.mask_char, "") in msg:
            return i
    return -1


def closest_pattern_for_message(patterns: List[PatternRecord], msg: str,
                                options: Optional[PatternOptions] = None) -> Optional[PatternMatch]:
    """
    Find the existing pattern that best fits a message.

    Updates ``checked`` and ``hits`` of the records considered.

    Args:
        patterns: Ordered pattern records; order breaks ties in the prepass
        msg: The incoming message
        options: Matching thresholds

    Returns:
        PatternMatch with the corrected pattern, or None if no pattern is
        a good enough fit
    """
    options = options or PatternOptions()

    if not options.no_fast_search_prepass:
        index = fast_search_pattern(patterns, msg, options)
        if index != -1:
            for rec in patterns[:index + 1]:
                rec.stats.checked += 1
                rec.stats.hits += 1
            return PatternMatch(index=index, ratio=1.0,
                                corrected_pattern=patterns[index].pattern)

    index = -1
    ratio = options.min_match_ratio
    second_ratio = 0.0
    corrected_pattern = ""
    for i, rec in enumerate(patterns):
        pattern = rec.pattern
        if diff_ratio(len(pattern), len(msg)) > options.len_diff_max_ratio:
            continue
        rec.stats.checked += 1
        local_options = optimal_parameters(pattern, msg, options)
        local_options = replace(local_options,
                                min_match_ratio=ratio * (1 - options.ratio_rel_tol))
        result = align_and_mask(pattern, msg, local_options)
        if result.pattern is None or result.match_ratio < options.min_match_ratio:
            continue
        rec.stats.hits += 1
        if result.match_ratio > ratio:
            ratio = result.match_ratio
            index = i
            corrected_pattern = result.pattern
        else:
            second_ratio = max(result.match_ratio, second_ratio)

    if index == -1 or ratio < options.max_unique_match_ratio:
        return None
    return PatternMatch(index=index, ratio=ratio,
                        corrected_pattern=corrected_pattern,
                        second_ratio=second_ratio)
