"""
Shift fields: per-position alignment offsets between two character sequences.

A shift field holds, for every position of one sequence, the offset at
which the same character occurs in the other sequence, or ``FIELD_NONE``
when no occurrence lies inside the search window. Runs of a constant
offset ("stable sequences") are the unit of confident alignment.
"""

from typing import List, Optional, Sequence, Tuple

FIELD_NONE = None

Field = List[Optional[int]]


def shift_match_field(base: Sequence[str], other: Sequence[str],
                      maxdist: int, mask_char: str) -> Field:
    """
    Build the shift field of ``base`` against ``other``.

    Offsets are tried in the order 0, +1, -1, +2, -2, ... while below
    ``maxdist``; the first hit wins. Masked and empty positions never match.
    """
    other_len = len(other)
    field: Field = []
    for i, char in enumerate(base):
        shift = FIELD_NONE
        if char != "" and char != mask_char:
            for k in range(maxdist):
                if i + k < other_len and other[i + k] == char:
                    shift = k
                    break
                if 0 <= i - k < other_len and other[i - k] == char:
                    shift = -k
                    break
        field.append(shift)
    return field


def _char_at(seq: Sequence[str], pos: int) -> Optional[str]:
    if 0 <= pos < len(seq):
        return seq[pos]
    return None


def mutual_shift(fa: Field, fb: Field, pos: int) -> bool:
    """True when ``fa[pos]`` is confirmed by the reverse offset in ``fb``."""
    if not 0 <= pos < len(fa):
        return False
    shift = fa[pos]
    if shift is FIELD_NONE:
        return False
    target = pos + shift
    if not 0 <= target < len(fb) or fb[target] is FIELD_NONE:
        return False
    return shift == -fb[target]


def _neighbor_correction(fa: Field, fb: Field, a: Sequence[str],
                         b: Sequence[str], pos: int) -> Optional[int]:
    def can_transfer(neighbor: int) -> bool:
        return (0 < neighbor < len(fa)
                and mutual_shift(fa, fb, neighbor)
                and a[pos] == _char_at(b, pos + fa[neighbor]))

    left = can_transfer(pos - 1)
    right = can_transfer(pos + 1)
    source = None
    if left and right and fa[pos + 1] == fa[pos - 1]:
        source = pos + 1
    if not mutual_shift(fa, fb, pos):
        if left:
            source = pos - 1
        elif right:
            source = pos + 1
    if source is None:
        return fa[pos]
    shift = fa[source]
    fb[pos + shift] = -shift
    return shift


def fields_corrections(fa: Field, fb: Field, a: Sequence[str], b: Sequence[str]) -> None:
    """
    Clean a pair of shift fields in place.

    Offsets of mutually confirmed neighbours are propagated across single
    character gaps first; afterwards every position of either field that
    is not mutually confirmed is reset to ``FIELD_NONE``.
    """
    for i in range(len(fa)):
        fa[i] = _neighbor_correction(fa, fb, a, b, i)
    for i in range(len(fb)):
        fb[i] = _neighbor_correction(fb, fa, b, a, i)

    unconfirmed_a = [i for i in range(len(fa)) if not mutual_shift(fa, fb, i)]
    unconfirmed_b = [i for i in range(len(fb)) if not mutual_shift(fb, fa, i)]
    for i in unconfirmed_a:
        fa[i] = FIELD_NONE
    for i in unconfirmed_b:
        fb[i] = FIELD_NONE


def first_monotonous_sequence(field: Field, minlen: int,
                              start: int = 0) -> Optional[Tuple[int, int]]:
    """
    Find the first run of equal entries of at least ``minlen`` items.

    Returns half-open ``(start, end)`` bounds or None. Single items never
    form a run.
    """
    minlen = max(minlen, 2)
    end = len(field)
    pos = start
    while pos < end:
        run_end = pos + 1
        while run_end < end and field[run_end] == field[pos]:
            run_end += 1
        if run_end - pos >= minlen:
            return pos, run_end
        pos = run_end
    return None


def detect_stable_sequence(field: Field, start: int, minlen: int,
                           exclude: Tuple = (0, FIELD_NONE)) -> Optional[Tuple[int, int, Optional[int]]]:
    """First stable run at or after ``start`` whose offset is not excluded."""
    while start + minlen - 1 < len(field):
        run = first_monotonous_sequence(field, minlen, start)
        if run is None:
            break
        pos, end = run
        start = end
        shift = field[pos]
        if shift not in exclude:
            return pos, end, shift
    return None


def count_equals(values: Sequence, value, start: int = 0, end: Optional[int] = None) -> int:
    if end is None:
        end = len(values)
    return sum(1 for i in range(start, end) if values[i] == value)


def diff_ratio(a: int, b: int) -> float:
    """Length difference relative to the longer of the two lengths."""
    a, b = abs(a), abs(b)
    longest = max(a, b)
    return abs(a - b) / longest if longest else 0.0
