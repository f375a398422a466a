"""
Core data models for log pattern mining.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from dataclasses_json import dataclass_json, config, Exclude


DEF_MASK_CHAR = "•"


class PatternDataError(ValueError):
    """Raised when a pattern database, options file or message file is malformed."""


@dataclass_json
@dataclass
class PatternOptions:
    """Thresholds steering alignment, matching, grouping and pruning."""
    mask_char: str = DEF_MASK_CHAR
    min_match_ratio: float = 0.15
    maxdist: int = 10
    sequence_minlen: int = 3
    min_group_ratio: float = 0.2
    max_ratio_range: float = 0.5
    ratio_rel_tol: float = 0.3
    len_diff_max_ratio: float = 0.4
    max_crosspattern_match: float = 0.5  # reserved, not read by acceptance checks
    max_unique_match_ratio: float = 0.75
    min_const_part_ratio: float = 0.15
    min_good_matched_stat: float = 0.01
    no_fast_search_prepass: bool = False

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'PatternOptions':
        """Build options from a plain mapping, rejecting unknown keys."""
        if not isinstance(data, dict):
            raise PatternDataError("options must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise PatternDataError(f"unknown option(s): {', '.join(unknown)}")
        for f in fields(cls):
            if f.name in data and not _option_value_ok(f.type, data[f.name]):
                raise PatternDataError(f"invalid value for {f.name}: {data[f.name]!r}")
        mask_char = data.get("mask_char", DEF_MASK_CHAR)
        if len(mask_char) != 1:
            raise PatternDataError(f"mask_char must be a single character: {mask_char!r}")
        try:
            return cls.from_dict(data)
        except (ValueError, TypeError, KeyError) as e:
            raise PatternDataError(f"invalid options: {e}") from e


def _option_value_ok(expected: type, value: Any) -> bool:
    if expected is bool:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if expected is int:
        return isinstance(value, int)
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


@dataclass_json
@dataclass
class PatternStats:
    """Counters collected for a pattern record."""
    checked: int = 1  # match attempts this record took part in
    hits: int = 1  # attempts clearing the per-candidate threshold
    matched: int = 1  # messages assigned to this record
    rating: float = 0.0


@dataclass_json
@dataclass
class PatternRecord:
    """A template together with its statistics and per-batch bookkeeping."""
    pattern: str
    stats: PatternStats = field(default_factory=PatternStats)
    msg_indexes: List[int] = field(default_factory=list,
                                   metadata=config(exclude=Exclude.ALWAYS))
    is_new: bool = field(default=False, metadata=config(exclude=Exclude.ALWAYS))
    is_updated: bool = field(default=False, metadata=config(exclude=Exclude.ALWAYS))

    def literal_ratio(self, mask_char: str) -> float:
        """Fraction of characters that are not the mask character."""
        return literal_ratio(self.pattern, mask_char)

    def reset_batch_state(self) -> None:
        self.msg_indexes = []
        self.is_new = False
        self.is_updated = False


@dataclass
class AlignmentResult:
    """Outcome of aligning two strings; ``pattern`` is None when alignment failed."""
    match_ratio: float
    back_match_ratio: float
    pattern: Optional[str] = None

    @property
    def best_ratio(self) -> float:
        return max(self.match_ratio, self.back_match_ratio)


@dataclass
class PatternMatch:
    """Best existing pattern found for a message."""
    index: int
    ratio: float
    corrected_pattern: str
    second_ratio: float = 0.0  # runner-up, informational only

    def __str__(self) -> str:
        return (f"Match(index={self.index}, ratio={self.ratio:.3f}, "
                f"pattern={self.corrected_pattern!r})")


@dataclass_json
@dataclass
class PatternChange:
    """A record touched by a batch with the batch-relative message indexes."""
    pattern: str
    msg_indexes: List[int] = field(default_factory=list)


@dataclass_json
@dataclass
class ChangeReport:
    """Records added and updated by one ``put_messages`` call."""
    added: List[PatternChange] = field(default_factory=list)
    updated: List[PatternChange] = field(default_factory=list)

    def shifted(self, offset: int) -> 'ChangeReport':
        """Copy of the report with every message index moved by ``offset``."""
        def move(changes: List[PatternChange]) -> List[PatternChange]:
            return [PatternChange(c.pattern, [i + offset for i in c.msg_indexes])
                    for c in changes]
        return ChangeReport(added=move(self.added), updated=move(self.updated))


def literal_ratio(pattern: str, mask_char: str) -> float:
    if not pattern:
        return 1.0
    return 1 - pattern.count(mask_char) / len(pattern)
