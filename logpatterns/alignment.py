"""
Character-level alignment of a pattern and a message.

``align_and_mask`` re-synchronises two strings by padding the shorter side
with mask characters wherever a stable offset shows an insertion or a
deletion, then masks every position that does not line up exactly.
"""

import math
from dataclasses import replace
from typing import List, Optional, Tuple

from .models import AlignmentResult, PatternOptions
from .fields import (
    FIELD_NONE, Field, shift_match_field, fields_corrections,
    detect_stable_sequence, count_equals
)

MIN_BODY_RATIO = 0.15


def optimal_parameters(pattern: str, text: str,
                       options: Optional[PatternOptions] = None) -> PatternOptions:
    """
    Adapt the search window to the strings about to be aligned.

    Masked patterns may hide long length-changing gaps, so their window
    grows with the masked count (bounded by half the pattern, at least 5).
    Unmasked text gets a window proportional to its own length.
    """
    options = options or PatternOptions()
    maxdist = options.maxdist or 10
    num_mask = pattern.count(options.mask_char)
    if num_mask > 0:
        maxdist = max(maxdist, math.ceil(num_mask * 1.25))
        maxdist = min(maxdist, math.ceil(len(pattern) * 0.5))
        maxdist = max(maxdist, 5)
    else:
        maxdist = max(maxdist, math.ceil(max(len(pattern), len(text)) * 0.075))
    return replace(options, maxdist=maxdist)


def _body_ratio(chars: List[str], mask_char: str) -> float:
    if not chars:
        return 1.0
    return max(MIN_BODY_RATIO, 1 - chars.count(mask_char) / len(chars))


def _run_match_ratio(field: Field, minlen: int) -> float:
    """Share of positions covered by stable runs with a real offset."""
    if not field:
        return 0.0
    count, start = 0, 0
    while start < len(field):
        run = detect_stable_sequence(field, start, minlen, exclude=(FIELD_NONE,))
        if run is None:
            break
        pos, end, _ = run
        count += end - pos
        start = end
    return count / len(field)


def _exact_match_ratio(field: Field) -> float:
    if not field:
        return 0.0
    return count_equals(field, 0) / len(field)


def _build_fields(base: List[str], other: List[str], maxdist: int,
                  mask_char: str) -> Tuple[Field, Field]:
    field_bo = shift_match_field(base, other, maxdist, mask_char)
    field_ob = shift_match_field(other, base, maxdist, mask_char)
    fields_corrections(field_bo, field_ob, base, other)
    return field_bo, field_ob


def align_and_mask(base: str, other: str,
                   options: Optional[PatternOptions] = None) -> AlignmentResult:
    """
    Align ``other`` onto ``base`` and produce a masked merged pattern.

    Args:
        base: The pattern (or string) that is corrected
        other: The string aligned against it
        options: Thresholds; ``maxdist``, ``min_match_ratio``,
            ``sequence_minlen`` and ``mask_char`` are used

    Returns:
        AlignmentResult with both ratios; ``pattern`` is None when neither
        direction reaches ``min_match_ratio``.
    """
    if other == base:
        return AlignmentResult(match_ratio=1.0, back_match_ratio=1.0, pattern=base)

    options = options or PatternOptions()
    mask_char = options.mask_char
    minlen = options.sequence_minlen
    min_match_ratio = options.min_match_ratio
    maxdist = min(options.maxdist, max(len(base), len(other)))

    base_chars = list(base)
    other_chars = list(other)
    field_bo, field_ob = _build_fields(base_chars, other_chars, maxdist, mask_char)

    base_body_ratio = _body_ratio(base_chars, mask_char)
    other_body_ratio = _body_ratio(other_chars, mask_char)
    match_ratio = _run_match_ratio(field_bo, minlen) / base_body_ratio
    back_match_ratio = _run_match_ratio(field_ob, minlen) / other_body_ratio

    if max(match_ratio, back_match_ratio) < min_match_ratio:
        return AlignmentResult(match_ratio, back_match_ratio)

    start = 0
    while start < len(base_chars):
        run = detect_stable_sequence(field_bo, start, minlen)
        if run is None:
            break
        pos, end, shift = run
        if shift > 0:
            base_chars[pos:pos] = [mask_char] * shift
        else:
            other_chars[pos + shift:pos + shift] = [mask_char] * -shift
            shift = 0
        start = end + shift
        field_bo, field_ob = _build_fields(base_chars, other_chars, maxdist, mask_char)

    match_ratio = _exact_match_ratio(field_bo) / base_body_ratio
    back_match_ratio = _exact_match_ratio(field_ob) / other_body_ratio
    if max(match_ratio, back_match_ratio) < min_match_ratio:
        return AlignmentResult(match_ratio, back_match_ratio)

    for i, shift in enumerate(field_bo):
        if shift != 0:
            base_chars[i] = mask_char
    return AlignmentResult(match_ratio, back_match_ratio, pattern="".join(base_chars))
