"""
Services for the health tracker.

This package contains the reading classifier, the pattern-insight aggregator,
history queries, storage, and the tracker that ties them together.
"""

from .classifier import classify, fixed_status
from .history import HistorySummary, filter_history, summarize_history
from .insights import aggregate, latest_by_kind, period_trend
from .result import Result
from .storage import InMemoryStore, JsonFileStore, KeyValueStore, RecordRepository, StorageError
from .tracker import HealthTracker, TrackerState, apply_action

__all__ = [
    "classify",
    "fixed_status",
    "aggregate",
    "latest_by_kind",
    "period_trend",
    "filter_history",
    "summarize_history",
    "HistorySummary",
    "Result",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "RecordRepository",
    "StorageError",
    "HealthTracker",
    "TrackerState",
    "apply_action",
]
