"""
Pattern store: ingestion lifecycle, quality control and serialisation.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    ChangeReport, PatternChange, PatternDataError,
    PatternOptions, PatternRecord, PatternStats, literal_ratio
)
from .matcher import closest_pattern_for_message
from .merger import group_patterns, merge_with_pattern

logger = logging.getLogger(__name__)

MAX_BAD_PATTERNS = 30

_COUNTERS = ("checked", "hits", "matched")


class PatternStore:
    """
    Ordered collection of pattern records mined from a message stream.

    Record order matters: the fast prepass returns the first qualifying
    record. Records absorbed by a unification are left as ``None`` slots
    until the end of the batch, so group indexes stay valid while the
    quality pass runs.

    A store is owned by a single caller; it does no locking.
    """

    def __init__(self, options: Optional[PatternOptions] = None, **overrides):
        """
        Args:
            options: Base thresholds (defaults when omitted)
            **overrides: Individual ``PatternOptions`` fields to replace
        """
        self.options = replace(options or PatternOptions(), **overrides)
        self.patterns: List[Optional[PatternRecord]] = []
        self.total_messages = 0

    def __len__(self) -> int:
        return len(self.records)

    @property
    def records(self) -> List[PatternRecord]:
        """Live records in store order."""
        return [rec for rec in self.patterns if rec is not None]

    def put_messages(self, messages: Iterable[str]) -> ChangeReport:
        """
        Apply a batch of messages, correcting or creating patterns.

        Messages are processed strictly in order; every message sees the
        patterns left by the previous one.

        Returns:
            ChangeReport of the records added and updated by this batch,
            with message indexes relative to the batch
        """
        messages = list(messages)
        for i, msg in enumerate(messages):
            self._put_message(msg, i)
        self.total_messages += len(messages)
        self.correct_patterns()
        report = self._changes_report()
        self._cleanup_patterns()
        logger.debug("Batch of %d messages: %d added, %d updated, %d patterns total",
                     len(messages), len(report.added), len(report.updated), len(self))
        return report

    def _put_message(self, msg: str, index: int) -> None:
        match = closest_pattern_for_message(self.patterns, msg, self.options)
        if match is not None and not self.acceptable_pattern(match.corrected_pattern):
            match = None

        if match is None:
            rec = PatternRecord(pattern=msg, stats=PatternStats(checked=1, hits=1, matched=1),
                                msg_indexes=[index], is_new=True)
            self.patterns.append(rec)
            return

        rec = self.patterns[match.index]
        rec.is_updated = True
        rec.stats.matched += 1
        rec.pattern = match.corrected_pattern
        rec.msg_indexes.append(index)

    def acceptable_pattern(self, pattern: str) -> bool:
        """Check that enough of the pattern is literal text."""
        # max_crosspattern_match is not consulted
        return literal_ratio(pattern, self.options.mask_char) >= self.options.min_const_part_ratio

    def rate(self, stats: PatternStats, average_matched: Optional[float] = None) -> float:
        """
        Composite quality score of a record.

        Blends global frequency, frequency relative to the average record,
        conversion of attempts into matches and of hits into matches.
        """
        if self.total_messages <= 0:
            return 0.0
        if average_matched is None:
            average_matched = self.total_messages / max(len(self), 1)
        return (1.00 * stats.matched / self.total_messages
                + 0.75 * stats.matched / average_matched
                + 0.50 * stats.matched / max(stats.checked, 1)
                + 0.25 * stats.matched / max(stats.hits, 1))

    def correct_patterns(self) -> None:
        """Rate every record, then try to unite the worst rated ones."""
        if self.total_messages <= 0 or not self.records:
            return

        average_matched = self.total_messages / len(self)
        ratings = {}
        for i, rec in enumerate(self.patterns):
            if rec is not None:
                rec.stats.rating = self.rate(rec.stats, average_matched)
                ratings[i] = rec.stats.rating

        bad = [i for i, rating in ratings.items()
               if rating < self.options.min_good_matched_stat]
        bad.sort(key=lambda i: ratings[i])
        bad = bad[:MAX_BAD_PATTERNS]
        if not bad:
            return

        groups = group_patterns([self.patterns[i].pattern for i in bad], self.options)
        for group in groups:
            if len(group) <= 1:
                continue
            united = self.unite_patterns([bad[row] for row in group])
            if united is not None:
                united.stats.rating = self.rate(united.stats, average_matched)

    def unite_patterns(self, indexes: List[int]) -> Optional[PatternRecord]:
        """
        Fold the records at ``indexes`` into one new record.

        The store is left untouched when any fold fails to align or the
        result is not an acceptable pattern. On success the new record is
        appended and the members become empty slots.
        """
        united: Optional[PatternRecord] = None
        for idx in indexes:
            rec = self.patterns[idx]
            if rec is None:
                continue
            if united is None:
                united = PatternRecord(pattern=rec.pattern,
                                       stats=replace(rec.stats),
                                       msg_indexes=list(rec.msg_indexes),
                                       is_new=True)
                continue
            result = merge_with_pattern(rec.pattern, united.pattern, self.options)
            if result.pattern is None:
                logger.debug("Unification aborted: %r does not align with %r",
                             rec.pattern, united.pattern)
                return None
            united.pattern = result.pattern
            united.msg_indexes.extend(rec.msg_indexes)
            united.stats.checked = max(rec.stats.checked, united.stats.checked)
            united.stats.hits = max(rec.stats.hits, united.stats.hits)
            united.stats.matched += rec.stats.matched + 1

        if united is None or not self.acceptable_pattern(united.pattern):
            logger.debug("Unification rejected for records %s", indexes)
            return None

        united.msg_indexes = sorted(set(united.msg_indexes))
        self.patterns.append(united)
        for idx in indexes:
            self.patterns[idx] = None
        logger.debug("United %d records into %r", len(indexes), united.pattern)
        return united

    def _changes_report(self) -> ChangeReport:
        def to_change(rec: PatternRecord) -> PatternChange:
            return PatternChange(pattern=rec.pattern, msg_indexes=list(rec.msg_indexes))

        live = self.records
        return ChangeReport(
            added=[to_change(rec) for rec in live if rec.is_new],
            updated=[to_change(rec) for rec in live if rec.is_updated],
        )

    def _cleanup_patterns(self) -> None:
        self.patterns = self.records
        for rec in self.patterns:
            rec.reset_batch_state()

    def dump(self) -> Dict[str, Any]:
        """Serialisable snapshot of the store."""
        return {
            "mask_char": self.options.mask_char,
            "total_messages": self.total_messages,
            "patterns": [rec.to_dict() for rec in self.records],
        }

    def load(self, data: Dict[str, Any], append: bool = False) -> None:
        """
        Load a database produced by ``dump``.

        Args:
            data: Parsed database mapping
            append: Add to the current records and counter instead of
                replacing them

        Raises:
            PatternDataError: If the data is malformed; nothing is changed
        """
        records, total_messages = self._adapt_load_data(data)
        if append:
            self.patterns.extend(records)
            self.total_messages += total_messages
        else:
            self.patterns = records
            self.total_messages = total_messages

    def _adapt_load_data(self, data: Any):
        if not isinstance(data, dict):
            raise PatternDataError("pattern database must be a mapping")
        if "patterns" not in data:
            raise PatternDataError("pattern database has no 'patterns' field")
        raw_patterns = data["patterns"]
        if not isinstance(raw_patterns, list):
            raise PatternDataError("'patterns' must be a list")

        total_messages = data.get("total_messages", 0)
        if not _is_count(total_messages):
            raise PatternDataError(f"invalid total_messages: {total_messages!r}")

        mask_char = data.get("mask_char", self.options.mask_char)
        if not isinstance(mask_char, str) or len(mask_char) != 1:
            raise PatternDataError(f"invalid mask_char: {mask_char!r}")

        records = [_parse_record(raw, n) for n, raw in enumerate(raw_patterns)]
        if mask_char != self.options.mask_char:
            logger.warning("Rewriting mask character %r to %r in %d loaded patterns",
                           mask_char, self.options.mask_char, len(records))
            for rec in records:
                rec.pattern = rec.pattern.replace(mask_char, self.options.mask_char)
        return records, total_messages


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_record(raw: Any, position: int) -> PatternRecord:
    if not isinstance(raw, dict):
        raise PatternDataError(f"pattern #{position} must be a mapping")
    pattern = raw.get("pattern")
    if not isinstance(pattern, str):
        raise PatternDataError(f"pattern #{position} has no pattern string")
    stats = raw.get("stats", {})
    if not isinstance(stats, dict):
        raise PatternDataError(f"pattern #{position} has invalid stats")
    for name in _COUNTERS:
        if name in stats and not _is_count(stats[name]):
            raise PatternDataError(f"pattern #{position}: invalid {name}: {stats[name]!r}")
    rating = stats.get("rating", 0.0)
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise PatternDataError(f"pattern #{position}: invalid rating: {rating!r}")
    return PatternRecord(
        pattern=pattern,
        stats=PatternStats(
            checked=stats.get("checked", 1),
            hits=stats.get("hits", 1),
            matched=stats.get("matched", 1),
            rating=float(rating),
        ),
    )
