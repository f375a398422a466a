"""
Pairwise merging and greedy grouping of patterns.
"""

import math
from dataclasses import replace
from typing import List, Optional, Sequence

from .models import AlignmentResult, PatternOptions
from .alignment import align_and_mask, optimal_parameters
from .fields import diff_ratio


def merge_with_pattern(msg: str, pattern: str,
                       options: Optional[PatternOptions] = None) -> AlignmentResult:
    """Align ``msg`` onto ``pattern`` using the looser group-level threshold."""
    if msg == pattern:
        return AlignmentResult(match_ratio=1.0, back_match_ratio=1.0, pattern=pattern)
    options = optimal_parameters(pattern, msg, options)
    options = replace(options,
                      min_match_ratio=options.min_group_ratio * (1 - options.ratio_rel_tol))
    return align_and_mask(pattern, msg, options)


def pattern_similarity(p1: str, p2: str, options: Optional[PatternOptions] = None) -> float:
    """
    Similarity of two patterns for grouping.

    The better of the two directional ratios, damped by
    ``sqrt(1 - length difference ratio)``. Zero when the lengths are too
    far apart or the strings do not align.
    """
    options = options or PatternOptions()
    length_diff = diff_ratio(len(p1), len(p2))
    if length_diff > options.len_diff_max_ratio:
        return 0.0
    result = merge_with_pattern(p1, p2, options)
    if result.pattern is None:
        return 0.0
    return result.best_ratio * math.sqrt(1 - length_diff)


def _similarity_matrix(patterns: Sequence[str], options: PatternOptions) -> List[List[float]]:
    size = len(patterns)
    matrix = [[0.0] * size for _ in range(size)]
    for j in range(size):
        for i in range(j):
            score = pattern_similarity(patterns[j], patterns[i], options)
            matrix[j][i] = score
            matrix[i][j] = score
    return matrix


def _top_neighbors(row: List[float], own_index: int, options: PatternOptions) -> List[int]:
    """Neighbours within ``max_ratio_range`` of the row's best, best first."""
    ranked = sorted((i for i in range(len(row)) if i != own_index),
                    key=lambda i: -row[i])
    if not ranked:
        return []
    min_match = max(row[ranked[0]] - options.max_ratio_range, options.min_group_ratio)
    return [i for i in ranked if row[i] >= min_match]


def group_patterns(patterns: Sequence[str],
                   options: Optional[PatternOptions] = None) -> List[List[int]]:
    """
    Partition patterns into greedy similarity chains.

    A chain starts at the first unconsumed row and follows the single
    neighbour not yet in the chain among the current row's top
    ``len(chain) + 1`` neighbours. When more than one such neighbour
    exists the choice is ambiguous and the chain stops before the current
    row joins. Chains never extend into rows consumed by earlier chains.
    The result is not a transitive clustering.

    Args:
        patterns: Pattern strings to group
        options: Uses ``min_group_ratio``, ``max_ratio_range`` and
            ``len_diff_max_ratio`` besides the alignment thresholds

    Returns:
        List of groups, each a list of indexes into ``patterns``
    """
    options = options or PatternOptions()
    matrix = _similarity_matrix(patterns, options)
    neighbors = [_top_neighbors(row, j, options) for j, row in enumerate(matrix)]

    consumed = set()
    groups = []
    for row in range(len(patterns)):
        if row in consumed:
            continue
        group: List[int] = []
        current = row
        while current is not None and current not in consumed:
            window = neighbors[current][:len(group) + 1]
            candidates = [i for i in window if i not in group]
            if len(candidates) > 1:
                break
            group.append(current)
            current = candidates[0] if candidates else None
        consumed.update(group)
        groups.append(group)
    return groups
