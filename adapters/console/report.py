"""
Terminal dashboard for the health tracker.

Renders the latest reading of each visible kind with its status, the reading
history, and pattern insights using rich tables and panels.

Run with: python -m adapters.console.report
"""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta, tzinfo

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from adapters.console.display import METRIC_DISPLAY, SEVERITY_STYLES, STATUS_STYLES
from vitals.domain.models import Gender, MetricKind, MetricRecord, PatternInsight, Profile
from vitals.services.history import filter_history, summarize_history
from vitals.services.insights import period_trend
from vitals.services.storage import InMemoryStore, RecordRepository
from vitals.services.tracker import HealthTracker, UpdateProfile


def render_dashboard(tracker: HealthTracker, console: Console) -> None:
    """One row per visible kind with the latest reading and its status."""
    profile = tracker.settings.profile
    title = "Health Dashboard"
    if profile and profile.name:
        title = f"Health Dashboard: {escape(profile.name)}"

    table = Table(title=title)
    table.add_column("Metric", style="bold")
    table.add_column("Latest", justify="right")
    table.add_column("Status")
    table.add_column("Normal range", style="dim")
    table.add_column("7-day trend")

    for kind in tracker.visible_kinds():
        display = METRIC_DISPLAY[kind]
        label = f"[{display.colour}]{display.icon} {display.title}[/]"
        result = tracker.status_for(kind)
        if result is None:
            table.add_row(label, "-", "[dim]no readings[/]", "", "")
            continue

        trend = period_trend(tracker.records, kind, days=7)
        table.add_row(
            label,
            f"{result.record.display_value} {display.unit}",
            f"[{STATUS_STYLES[result.status]}]{result.status.value}[/]",
            result.normal_range,
            trend.direction.value,
        )

    console.print(table)

    for kind in tracker.visible_kinds():
        result = tracker.status_for(kind)
        if result is not None:
            console.print(f"{METRIC_DISPLAY[kind].icon} {escape(result.message)}")


def render_history(
    records: Sequence[MetricRecord],
    console: Console,
    kind: MetricKind | None = None,
    tz: tzinfo | None = None,
) -> None:
    """
    Readings newest first, followed by summary counts.

    Times are shown and days counted in `tz`, the local zone when omitted.
    """
    tz = tz or datetime.now().astimezone().tzinfo or UTC
    table = Table(title="History")
    table.add_column("When", style="dim")
    table.add_column("Metric")
    table.add_column("Reading", justify="right")
    table.add_column("Note")

    for record in filter_history(records, kind=kind):
        display = METRIC_DISPLAY[record.kind]
        table.add_row(
            record.recorded_at.astimezone(tz).strftime("%Y-%m-%d %H:%M"),
            display.title,
            f"{record.display_value} {display.unit}",
            escape(record.note or ""),
        )
    console.print(table)

    summary = summarize_history(records, tz=tz)
    console.print(
        f"{summary.total_readings} readings over {summary.days_tracked} days, "
        f"{summary.kinds_tracked} metrics tracked, {summary.noted_percent}% with notes"
    )


def render_insights(insights: Sequence[PatternInsight], console: Console) -> None:
    """One panel per insight; the overall rollup comes last."""
    if not insights:
        console.print(
            Panel(
                "Log at least 3 readings of a metric to see pattern insights.",
                title="Insights",
                style="dim",
            )
        )
        return

    for insight in insights:
        lines = [escape(insight.message), ""]
        lines.extend(f"• {escape(rec)}" for rec in insight.recommendations)
        console.print(
            Panel(
                "\n".join(lines),
                title=escape(insight.title),
                subtitle=insight.severity.value,
                border_style=SEVERITY_STYLES[insight.severity],
            )
        )


def demo_tracker(now: datetime | None = None) -> HealthTracker:
    """In-memory tracker seeded with a week of sample readings."""
    now = now or datetime.now(UTC)
    tracker = HealthTracker(RecordRepository(InMemoryStore()))
    tracker.dispatch(
        UpdateProfile(
            profile=Profile(age=45, height_cm=170, weight_kg=82, gender=Gender.FEMALE, name="Demo")
        )
    )

    heart_rates = [72, 75, 70, 130, 128, 135, 140]
    pressures = [(118, 76), (122, 80), (125, 82), (119, 78), (121, 79)]
    sugars = [4.5, 4.8, 12.0, 5.0]
    for day, hr in enumerate(heart_rates):
        tracker.add_reading(
            MetricKind.HEART_RATE, value=hr, recorded_at=now - timedelta(days=6 - day)
        )
    for day, (sys, dia) in enumerate(pressures):
        tracker.add_reading(
            MetricKind.BLOOD_PRESSURE,
            systolic=sys,
            diastolic=dia,
            recorded_at=now - timedelta(days=4 - day),
        )
    for day, bs in enumerate(sugars):
        tracker.add_reading(
            MetricKind.BLOOD_SUGAR,
            value=bs,
            note="after lunch" if bs > 11.1 else None,
            recorded_at=now - timedelta(days=3 - day),
        )
    return tracker


def main() -> None:
    console = Console()
    tracker = HealthTracker.from_config()
    tracker.load()
    if not tracker.records:
        console.print("[yellow]No readings stored yet, showing sample data[/]")
        tracker = demo_tracker()

    render_dashboard(tracker, console)
    render_history(tracker.records, console)
    render_insights(tracker.insights(), console)


if __name__ == "__main__":
    main()
