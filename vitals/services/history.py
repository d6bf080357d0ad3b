"""History listing and summary statistics."""

from collections.abc import Iterable
from datetime import UTC, tzinfo
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vitals.domain.models import MetricKind, MetricRecord

SortOrder = Literal["newest", "oldest"]


class HistorySummary(BaseModel):
    """Counts shown under the history list."""

    model_config = ConfigDict(frozen=True)

    total_readings: int = Field(ge=0)
    days_tracked: int = Field(ge=0, description="Distinct calendar days with a reading")
    kinds_tracked: int = Field(ge=0)
    noted_percent: int = Field(ge=0, le=100, description="Share of readings with a note")


def filter_history(
    records: Iterable[MetricRecord],
    kind: MetricKind | None = None,
    order: SortOrder = "newest",
) -> list[MetricRecord]:
    """Readings of one kind (or all kinds) sorted by time."""
    selected = [r for r in records if kind is None or r.kind == kind]
    return sorted(selected, key=lambda r: r.recorded_at, reverse=order == "newest")


def summarize_history(records: Iterable[MetricRecord], tz: tzinfo = UTC) -> HistorySummary:
    """Counts for the history list; calendar days are taken in `tz`."""
    records = list(records)
    if not records:
        return HistorySummary(total_readings=0, days_tracked=0, kinds_tracked=0, noted_percent=0)

    noted = sum(1 for r in records if r.note)
    return HistorySummary(
        total_readings=len(records),
        days_tracked=len({r.recorded_at.astimezone(tz).date() for r in records}),
        kinds_tracked=len({r.kind for r in records}),
        noted_percent=round(noted / len(records) * 100),
    )
