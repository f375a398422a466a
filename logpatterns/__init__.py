"""
Log Pattern Mining

Incrementally discovers character-level templates for a stream of log
messages, masking the variable parts of each message and merging
low-quality patterns as the stream goes on.
"""

__version__ = "1.0.0"
__author__ = "Log Pattern Mining"

from .models import (
    PatternOptions, PatternStats, PatternRecord, ChangeReport,
    PatternChange, PatternDataError
)
from .alignment import align_and_mask, optimal_parameters
from .matcher import closest_pattern_for_message
from .merger import merge_with_pattern, group_patterns
from .store import PatternStore
from .io_utils import MessageReader, PatternDatabaseFile, load_options

__all__ = [
    "PatternOptions",
    "PatternStats",
    "PatternRecord",
    "ChangeReport",
    "PatternChange",
    "PatternDataError",
    "align_and_mask",
    "optimal_parameters",
    "closest_pattern_for_message",
    "merge_with_pattern",
    "group_patterns",
    "PatternStore",
    "MessageReader",
    "PatternDatabaseFile",
    "load_options",
]
