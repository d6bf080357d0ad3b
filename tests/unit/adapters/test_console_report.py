"""
Tests for the rich terminal dashboard in `adapters/console`.

Output is captured with a recording Console and checked for content, not
layout.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from rich.console import Console

from adapters.console.display import METRIC_DISPLAY, SEVERITY_STYLES, STATUS_STYLES
from adapters.console.report import (
    demo_tracker,
    render_dashboard,
    render_history,
    render_insights,
)
from vitals.domain.models import (
    Gender,
    InsightSeverity,
    MetricKind,
    PatternInsight,
    PatternName,
    Profile,
    SimpleStatus,
    StatusTier,
)
from vitals.services.storage import InMemoryStore, RecordRepository
from vitals.services.tracker import HealthTracker, SetMetricVisibility, UpdateProfile

NOW = datetime(2024, 7, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200, color_system=None)


@pytest.fixture
def tracker() -> HealthTracker:
    return demo_tracker(now=NOW)


def test_every_kind_has_display_metadata() -> None:
    assert set(METRIC_DISPLAY) == set(MetricKind)
    assert METRIC_DISPLAY[MetricKind.BLOOD_SUGAR].unit == "mmol/L"


def test_every_status_and_severity_has_a_style() -> None:
    assert set(STATUS_STYLES) == set(StatusTier) | set(SimpleStatus)
    assert set(SEVERITY_STYLES) == set(InsightSeverity)


def test_dashboard_lists_latest_readings(tracker: HealthTracker, console: Console) -> None:
    render_dashboard(tracker, console)
    output = console.export_text()

    assert "Health Dashboard: Demo" in output
    assert "140 bpm" in output
    assert "121/79 mmHg" in output
    assert "5 mmol/L" in output
    assert "no readings" in output


def test_dashboard_hides_invisible_kinds(tracker: HealthTracker, console: Console) -> None:
    tracker.dispatch(SetMetricVisibility(kind=MetricKind.SPO2, visible=False))

    render_dashboard(tracker, console)

    assert METRIC_DISPLAY[MetricKind.SPO2].title not in console.export_text()


def test_empty_dashboard(console: Console) -> None:
    tracker = HealthTracker(RecordRepository(InMemoryStore()))

    render_dashboard(tracker, console)
    output = console.export_text()

    assert output.count("no readings") == len(MetricKind)


def test_history_includes_notes_and_summary(tracker: HealthTracker, console: Console) -> None:
    render_history(tracker.records, console)
    output = console.export_text()

    assert "after lunch" in output
    assert "16 readings" in output
    assert "3 metrics tracked" in output


def test_history_filtered_by_kind(tracker: HealthTracker, console: Console) -> None:
    render_history(tracker.records, console, kind=MetricKind.BLOOD_SUGAR)
    output = console.export_text()

    assert "12 mmol/L" in output
    assert "bpm" not in output


def test_insights_render_titles_and_advice(tracker: HealthTracker, console: Console) -> None:
    insights = tracker.insights()

    render_insights(insights, console)
    output = console.export_text()

    for insight in insights:
        assert insight.title in output
    assert "Heart Rate Often Too High" in output
    assert "Blood Pressure Well Controlled" in output


def test_no_insights_prompts_for_more_readings(console: Console) -> None:
    render_insights([], console)

    assert "at least 3 readings" in console.export_text()


def test_bracketed_note_is_printed_verbatim(console: Console) -> None:
    tracker = HealthTracker(RecordRepository(InMemoryStore()))
    tracker.add_reading(MetricKind.HEART_RATE, value=88, recorded_at=NOW, note="after [/] run")
    tracker.add_reading(MetricKind.SPO2, value=97, recorded_at=NOW, note="[bold]cold[/bold]")

    render_history(tracker.records, console, tz=UTC)
    output = console.export_text()

    assert "after [/] run" in output
    assert "[bold]cold[/bold]" in output


def test_bracketed_profile_name_in_dashboard_title(console: Console) -> None:
    tracker = HealthTracker(RecordRepository(InMemoryStore()))
    tracker.dispatch(
        UpdateProfile(
            profile=Profile(
                age=30, height_cm=170, weight_kg=65, gender=Gender.FEMALE, name="[/] Lee"
            )
        )
    )
    tracker.add_reading(MetricKind.HEART_RATE, value=70, recorded_at=NOW)

    render_dashboard(tracker, console)

    assert "Health Dashboard: [/] Lee" in console.export_text()


def test_insight_text_is_not_parsed_as_markup(console: Console) -> None:
    insight = PatternInsight(
        kind=MetricKind.HEART_RATE,
        pattern=PatternName.OFTEN_HIGH,
        severity=InsightSeverity.WARNING,
        title="Readings [high]",
        message="Most readings were above [/] range",
        recommendations=["Rest [5 min] before measuring"],
    )

    render_insights([insight], console)
    output = console.export_text()

    assert "Readings [high]" in output
    assert "above [/] range" in output
    assert "Rest [5 min] before measuring" in output


def test_history_times_follow_the_given_zone(console: Console) -> None:
    tracker = HealthTracker(RecordRepository(InMemoryStore()))
    early = datetime(2024, 7, 1, 2, 0, tzinfo=UTC)
    tracker.add_reading(MetricKind.SPO2, value=97, recorded_at=early)

    render_history(tracker.records, console, tz=timezone(timedelta(hours=-5)))

    assert "2024-06-30 21:00" in console.export_text()
