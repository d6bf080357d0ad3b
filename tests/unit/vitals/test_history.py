"""Tests for history listing and summary counts in `vitals/services/history.py`."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from vitals.domain.models import MetricKind, MetricRecord
from vitals.services.history import filter_history, summarize_history

DAY_ONE = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def records() -> list[MetricRecord]:
    return [
        MetricRecord(kind=MetricKind.HEART_RATE, value=72, recorded_at=DAY_ONE),
        MetricRecord(
            kind=MetricKind.BLOOD_SUGAR,
            value=5.4,
            recorded_at=DAY_ONE + timedelta(hours=3),
            note="fasting",
        ),
        MetricRecord(
            kind=MetricKind.HEART_RATE, value=80, recorded_at=DAY_ONE + timedelta(days=1)
        ),
        MetricRecord(
            kind=MetricKind.BLOOD_PRESSURE,
            systolic=120,
            diastolic=80,
            recorded_at=DAY_ONE + timedelta(days=3),
        ),
    ]


class TestFilterHistory:
    def test_newest_first_by_default(self, records: list[MetricRecord]) -> None:
        result = filter_history(records)

        assert [r.recorded_at for r in result] == sorted(
            (r.recorded_at for r in records), reverse=True
        )

    def test_oldest_first(self, records: list[MetricRecord]) -> None:
        result = filter_history(records, order="oldest")
        assert result[0].recorded_at == DAY_ONE

    def test_filter_by_kind(self, records: list[MetricRecord]) -> None:
        result = filter_history(records, kind=MetricKind.HEART_RATE)

        assert [r.value for r in result] == [80, 72]

    def test_kind_without_readings(self, records: list[MetricRecord]) -> None:
        assert filter_history(records, kind=MetricKind.SPO2) == []


class TestSummarizeHistory:
    def test_counts(self, records: list[MetricRecord]) -> None:
        summary = summarize_history(records)

        assert summary.total_readings == 4
        assert summary.days_tracked == 3
        assert summary.kinds_tracked == 3
        assert summary.noted_percent == 25

    def test_empty_history_is_all_zero(self) -> None:
        summary = summarize_history([])

        assert summary.total_readings == 0
        assert summary.days_tracked == 0
        assert summary.kinds_tracked == 0
        assert summary.noted_percent == 0

    def test_blank_note_does_not_count(self) -> None:
        records = [
            MetricRecord(kind=MetricKind.SPO2, value=98, note=""),
            MetricRecord(kind=MetricKind.SPO2, value=97, note="after walk"),
            MetricRecord(kind=MetricKind.SPO2, value=99),
        ]

        assert summarize_history(records).noted_percent == 33

    def test_days_are_counted_in_the_given_zone(self) -> None:
        early = datetime(2024, 5, 1, 2, 0, tzinfo=UTC)
        records = [
            MetricRecord(kind=MetricKind.HEART_RATE, value=70, recorded_at=early),
            MetricRecord(
                kind=MetricKind.HEART_RATE, value=72, recorded_at=early + timedelta(hours=7)
            ),
        ]

        assert summarize_history(records).days_tracked == 1
        assert summarize_history(records, tz=timezone(timedelta(hours=-5))).days_tracked == 2
