"""
Pattern analysis over a short history of readings.

For each metric kind with enough history, the most recent readings are
summarised (highest, lowest, average, trend) and bucketed into a named pattern
by share-of-readings and spread heuristics. Once at least two kinds have an
insight, a cross-kind rollup compares how many look concerning against how
many look good.

Key rules:
- Only the most recent `history_window` readings of a kind are considered
- A kind needs `min_readings` readings before it gets an insight
- Pattern rules are checked in a fixed order and the first match wins
- The rollup is a plain count comparison with no weighting
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from statistics import mean
from typing import Any

import structlog

from vitals.config import AnalysisConfig
from vitals.domain.models import (
    InsightDetails,
    InsightSeverity,
    MetricKind,
    MetricRecord,
    PatternInsight,
    PatternName,
    PeriodTrend,
    SimpleStatus,
    Trend,
    TrendDirection,
)
from vitals.services.classifier import fixed_status

logger = structlog.get_logger(__name__)

STABLE_CHANGE_PERCENT = 5.0


@dataclass(frozen=True)
class PatternRules:
    """Thresholds that bucket one kind's history into a pattern."""

    high_share: float | None = None
    high_severity: InsightSeverity = InsightSeverity.WARNING
    low_share: float | None = None
    low_severity: InsightSeverity = InsightSeverity.INFO
    spread: float | None = None
    diastolic_spread: float | None = None
    lower_end_below: float | None = None
    average_digits: int = 0


PATTERN_RULES: dict[MetricKind, PatternRules] = {
    MetricKind.HEART_RATE: PatternRules(
        high_share=0.4,
        high_severity=InsightSeverity.WARNING,
        low_share=0.4,
        low_severity=InsightSeverity.INFO,
        spread=50,
    ),
    MetricKind.BLOOD_PRESSURE: PatternRules(
        high_share=0.5,
        high_severity=InsightSeverity.CONCERN,
        low_share=0.4,
        low_severity=InsightSeverity.INFO,
        spread=40,
        diastolic_spread=20,
    ),
    MetricKind.SPO2: PatternRules(
        low_share=0.0,
        low_severity=InsightSeverity.CONCERN,
        lower_end_below=97,
    ),
    MetricKind.BLOOD_SUGAR: PatternRules(
        high_share=0.3,
        high_severity=InsightSeverity.CONCERN,
        low_share=0.0,
        low_severity=InsightSeverity.WARNING,
        spread=8.0,
        average_digits=1,
    ),
}

_LABELS: dict[MetricKind, tuple[str, str]] = {
    MetricKind.HEART_RATE: ("Heart rate", "bpm"),
    MetricKind.BLOOD_PRESSURE: ("Blood pressure", "mmHg"),
    MetricKind.SPO2: ("Oxygen level", "%"),
    MetricKind.BLOOD_SUGAR: ("Blood sugar", "mmol/L"),
}


@dataclass(frozen=True)
class _Copy:
    title: str
    message: str
    recommendations: tuple[str, ...]


# Titles, message templates and advice per (kind, pattern). Message placeholders
# come from `_template_fields`.
_COPY: dict[tuple[MetricKind, PatternName], _Copy] = {
    (MetricKind.HEART_RATE, PatternName.OFTEN_HIGH): _Copy(
        "Heart Rate Often Too High",
        "Out of your last {total} readings, {high} were above 100 bpm (highest: {highest:g} "
        "bpm). Your heart may be working too hard.",
        (
            "Make time to unwind; try deep breathing exercises daily",
            "Cut down on coffee and tea, or switch to decaf",
            "Check whether work or family stress has been building up lately",
            "Keep to light exercise like walking until your heart rate settles",
            "If this continues, ask a doctor to check your heart",
        ),
    ),
    (MetricKind.HEART_RATE, PatternName.OFTEN_LOW): _Copy(
        "Heart Rate Often Slow",
        "{low} of your last {total} readings were below 60 bpm (lowest: {lowest:g} bpm). "
        "That is normal for trained athletes; otherwise it is worth checking.",
        (
            "If you feel dizzy, tired or breathless, see a doctor",
            "Check whether any medication you take slows the heart",
            "Notice how you feel during daily activities",
            "If you are very active, this might be normal for you",
            "Keep tracking and show the pattern to your doctor at your next visit",
        ),
    ),
    (MetricKind.HEART_RATE, PatternName.UNSTABLE): _Copy(
        "Heart Rate Very Unstable",
        "Your heart rate ranged from {lowest:g} to {highest:g} bpm, a difference of "
        "{spread:g} bpm. That much variation is unusual.",
        (
            "Look for what causes the high readings: exercise, stress or caffeine",
            "Take readings at the same time each day for better comparison",
            "Note down what you were doing before each measurement",
            "Practise relaxation techniques to keep your heart rate steady",
            "Discuss this pattern with a doctor; it may need further investigation",
        ),
    ),
    (MetricKind.HEART_RATE, PatternName.WELL_CONTROLLED): _Copy(
        "Heart Rate Steady",
        "All {total} readings were in the normal range, from {lowest:g} to {highest:g} bpm "
        "with an average of {average:g} bpm.",
        (
            "Your heart rate is healthy and consistent",
            "Continue what you are doing for your cardiovascular health",
            "Keep up regular exercise and a healthy lifestyle",
            "This kind of stability shows good heart fitness",
        ),
    ),
    (MetricKind.BLOOD_PRESSURE, PatternName.OFTEN_HIGH): _Copy(
        "Blood Pressure Consistently High",
        "{high} of {total} readings show high blood pressure (highest: {highest:g}/"
        "{highest_diastolic:g} mmHg). This should not be ignored.",
        (
            "See a doctor soon for a proper assessment",
            "Measure daily and keep a record to show your doctor",
            "Cut down sharply on salt, including instant noodles and processed food",
            "Exercise regularly but start slowly; walking and swimming are good",
            "Reduce stress with meditation, yoga or whatever helps you relax",
            "If your doctor prescribes medication, take it regularly",
            "Check whether high blood pressure runs in your family",
        ),
    ),
    (MetricKind.BLOOD_PRESSURE, PatternName.OFTEN_LOW): _Copy(
        "Blood Pressure Often Low",
        "{low} of {total} readings show low blood pressure (lowest: {lowest:g}/"
        "{lowest_diastolic:g} mmHg).",
        (
            "Drink enough water through the day",
            "Stand up slowly, especially after sitting or lying down",
            "Tell your doctor if you often feel faint or dizzy",
        ),
    ),
    (MetricKind.BLOOD_PRESSURE, PatternName.UNSTABLE): _Copy(
        "Blood Pressure Very Unstable",
        "Systolic ranged from {lowest:g} to {highest:g} and diastolic from "
        "{lowest_diastolic:g} to {highest_diastolic:g} mmHg. That much variation is not good.",
        (
            "Take readings at the same time every day for consistency",
            "Sit quietly for 5 minutes before measuring",
            "Avoid measuring right after exercise, coffee or a stressful moment",
            "Note down what you were doing before each reading",
            "Show this pattern to your doctor; 24-hour monitoring may help",
            "It could be white coat syndrome if readings are only high at the clinic",
        ),
    ),
    (MetricKind.BLOOD_PRESSURE, PatternName.WELL_CONTROLLED): _Copy(
        "Blood Pressure Well Controlled",
        "All {total} readings were in the normal range, averaging {average:g}/"
        "{average_diastolic:g} mmHg.",
        (
            "Your blood pressure control is very good",
            "Continue your current lifestyle; it is working",
            "Keep up regular exercise and a healthy diet",
            "This shows healthy heart and blood vessels",
        ),
    ),
    (MetricKind.SPO2, PatternName.OFTEN_LOW): _Copy(
        "Oxygen Level Sometimes Too Low",
        "{low} of {total} readings were below 95% (lowest: {lowest:g}%). Your body may not "
        "be getting enough oxygen.",
        (
            "If you feel breathless or have chest tightness, see a doctor immediately",
            "Check that your oximeter is working properly",
            "Make sure your finger is clean and warm when measuring",
            "Note whether low readings happen during specific activities",
            "Low oxygen can come from lung, heart or circulation problems",
            "Do not delay; readings like these need medical attention",
        ),
    ),
    (MetricKind.SPO2, PatternName.LOWER_END): _Copy(
        "Oxygen Level At Lower End",
        "Your readings ranged from {lowest:g}% to {highest:g}%, averaging {average:g}%. "
        "All are at least 95% but on the lower side of normal.",
        (
            "Notice any breathlessness or fatigue",
            "Measure in a well-ventilated area",
            "Try some deep breathing exercises daily",
            "If you smoke, this is a good time to quit",
            "Keep tracking and tell your doctor if readings drop further",
        ),
    ),
    (MetricKind.SPO2, PatternName.WELL_CONTROLLED): _Copy(
        "Oxygen Levels Excellent",
        "All {total} readings were 97% or above, from {lowest:g}% to {highest:g}% with an "
        "average of {average:g}%.",
        (
            "Your respiratory system is very healthy",
            "Continue what you are doing for your lung health",
            "Regular exercise helps maintain good oxygen levels",
            "Your heart and lungs are working well together",
        ),
    ),
    (MetricKind.BLOOD_SUGAR, PatternName.OFTEN_HIGH): _Copy(
        "Blood Sugar Often Too High",
        "{high} of {total} readings were above 11.1 mmol/L (highest: {highest:.1f} mmol/L). "
        "That is in the diabetic range.",
        (
            "See a doctor for diabetes screening",
            "Cut down on rice, noodles and sweet drinks now",
            "Choose unsweetened drinks over sweetened tea and coffee",
            "Eat more vegetables and fewer carbohydrates at each meal",
            "Walk after meals; even 10 minutes helps",
            "Check whether diabetes runs in your family",
            "Medication may be needed if your doctor confirms diabetes",
        ),
    ),
    (MetricKind.BLOOD_SUGAR, PatternName.OFTEN_LOW): _Copy(
        "Blood Sugar Sometimes Too Low",
        "{low} readings were below 4.0 mmol/L (lowest: {lowest:.1f} mmol/L). Low blood sugar "
        "can be dangerous too.",
        (
            "Keep glucose sweets or a sugary drink with you",
            "Do not skip meals; eat regularly through the day",
            "If you take diabetes medication, discuss these lows with your doctor",
            "Learn the signs of low sugar: shakiness, sweating, blurred vision",
            "Check when readings were taken, before or after meals",
            "Your medication or meal timing may need adjusting",
        ),
    ),
    (MetricKind.BLOOD_SUGAR, PatternName.UNSTABLE): _Copy(
        "Blood Sugar Very Unstable",
        "Your blood sugar swung from {lowest:.1f} to {highest:.1f} mmol/L, a difference of "
        "{spread:.1f} mmol/L. That much variation is not good.",
        (
            "Eat at regular times every day",
            "Note down what you ate before each reading",
            "Avoid sugary snacks that cause sudden spikes",
            "Consider smaller, more frequent meals",
            "Show this pattern to your doctor; a glucose tolerance test may help",
            "Swings like these can indicate pre-diabetes or insulin resistance",
        ),
    ),
    (MetricKind.BLOOD_SUGAR, PatternName.WELL_CONTROLLED): _Copy(
        "Blood Sugar Well Controlled",
        "All {total} readings were in range, from {lowest:.1f} to {highest:.1f} mmol/L with "
        "an average of {average:.1f} mmol/L.",
        (
            "Your sugar control is excellent; keep it up",
            "Your diet and lifestyle choices are working well",
            "Keep monitoring regularly to maintain this control",
            "This shows a low risk of diabetes complications",
        ),
    ),
}

_MIXED_RECOMMENDATIONS = (
    "Monitor more regularly to understand the pattern",
    "Note down activities and stress levels with each reading",
    "Keep a consistent routine for sleep, exercise and diet",
    "Discuss the mixed readings with your doctor",
)

_OVERALL_COPY: dict[PatternName, _Copy] = {
    PatternName.OVERALL_ATTENTION: _Copy(
        "Health Pattern Needs Attention",
        "Out of {total} health metrics analysed, {concerning} show concerning patterns. "
        "Act now before things get worse.",
        (
            "Schedule an appointment with your doctor soon",
            "Start lifestyle changes now: diet, exercise and stress management",
            "Keep detailed records of all readings to show your doctor",
            "Consider a comprehensive health screening",
            "Small changes now can prevent big problems later",
        ),
    ),
    PatternName.OVERALL_GOOD: _Copy(
        "Overall Health Looking Good",
        "{good} out of {total} metrics show healthy patterns. You are taking good care of "
        "yourself.",
        (
            "Keep up the excellent work; your health habits are paying off",
            "Continue regular monitoring to maintain these trends",
            "You are setting a good example for family and friends",
            "Regular check-ups are still important when you are healthy",
        ),
    ),
    PatternName.OVERALL_MIXED: _Copy(
        "Overall Health Pattern",
        "Mixed health patterns: {good} metrics look good and {concerning} need attention. "
        "Focus on improving the concerning areas.",
        (
            "Focus on the metrics that need improvement",
            "Do not neglect the areas where you are doing well",
            "Gradual improvements work better than changing everything at once",
            "Discuss your health goals with your doctor for personalised advice",
        ),
    ),
}


def latest_by_kind(records: Iterable[MetricRecord]) -> dict[MetricKind, MetricRecord]:
    """Most recent record of each kind present."""
    latest: dict[MetricKind, MetricRecord] = {}
    for record in records:
        current = latest.get(record.kind)
        if current is None or record.recorded_at > current.recorded_at:
            latest[record.kind] = record
    return latest


def recent_history(
    records: Iterable[MetricRecord], kind: MetricKind, window: int
) -> list[MetricRecord]:
    """Up to `window` most recent readings of one kind, oldest first."""
    history = sorted((r for r in records if r.kind == kind), key=lambda r: r.recorded_at)
    return history[-window:]


def compute_trend(values: Sequence[float], recent_window: int, delta: float) -> Trend:
    """Compare the mean of the last `recent_window` values with the mean of the rest."""
    recent = values[-recent_window:]
    older = values[:-recent_window]
    recent_avg = mean(recent)
    older_avg = mean(older) if older else recent_avg

    if recent_avg > older_avg + delta:
        return Trend.WORSENING
    if recent_avg < older_avg - delta:
        return Trend.IMPROVING
    return Trend.STABLE


def summarize(
    kind: MetricKind, history: Sequence[MetricRecord], config: AnalysisConfig
) -> InsightDetails:
    """Statistics and band counts for one kind's history."""
    rules = PATTERN_RULES[kind]
    values = [r.primary_value for r in history]
    statuses = [fixed_status(kind, r) for r in history]

    high = statuses.count(SimpleStatus.HIGH)
    low = statuses.count(SimpleStatus.LOW)
    diastolic: dict[str, Any] = {}
    if kind == MetricKind.BLOOD_PRESSURE:
        dia_values = [r.blood_pressure[1] for r in history]
        diastolic = {
            "highest_diastolic": max(dia_values),
            "lowest_diastolic": min(dia_values),
            "average_diastolic": round(mean(dia_values), rules.average_digits),
        }

    return InsightDetails(
        highest=max(values),
        lowest=min(values),
        average=round(mean(values), rules.average_digits),
        trend=compute_trend(values, config.recent_window, config.trend_delta),
        concerning_readings=high + low,
        high_readings=high,
        low_readings=low,
        normal_readings=statuses.count(SimpleStatus.NORMAL),
        total_readings=len(values),
        **diastolic,
    )


def match_pattern(kind: MetricKind, details: InsightDetails) -> tuple[PatternName, InsightSeverity]:
    """First matching pattern rule for a kind's summary."""
    rules = PATTERN_RULES[kind]
    total = details.total_readings

    if rules.high_share is not None and details.high_readings > total * rules.high_share:
        return PatternName.OFTEN_HIGH, rules.high_severity
    if rules.low_share is not None and details.low_readings > total * rules.low_share:
        return PatternName.OFTEN_LOW, rules.low_severity

    spread_exceeded = rules.spread is not None and details.highest - details.lowest > rules.spread
    if (
        rules.diastolic_spread is not None
        and details.highest_diastolic is not None
        and details.lowest_diastolic is not None
    ):
        spread_exceeded = spread_exceeded or (
            details.highest_diastolic - details.lowest_diastolic > rules.diastolic_spread
        )
    if spread_exceeded:
        return PatternName.UNSTABLE, InsightSeverity.WARNING

    if details.normal_readings == total:
        if rules.lower_end_below is not None and details.lowest < rules.lower_end_below:
            return PatternName.LOWER_END, InsightSeverity.INFO
        return PatternName.WELL_CONTROLLED, InsightSeverity.GOOD

    return PatternName.MIXED, InsightSeverity.INFO


def _template_fields(details: InsightDetails) -> dict[str, Any]:
    return {
        "total": details.total_readings,
        "high": details.high_readings,
        "low": details.low_readings,
        "normal": details.normal_readings,
        "highest": details.highest,
        "lowest": details.lowest,
        "average": details.average,
        "spread": details.highest - details.lowest,
        "highest_diastolic": details.highest_diastolic,
        "lowest_diastolic": details.lowest_diastolic,
        "average_diastolic": details.average_diastolic,
    }


def _mixed_message(kind: MetricKind, details: InsightDetails) -> str:
    label, unit = _LABELS[kind]
    if kind == MetricKind.BLOOD_PRESSURE:
        average = f"{details.average:g}/{details.average_diastolic:g} {unit}"
    else:
        average = f"{details.average:g} {unit}"
    return (
        f"{label} readings are mixed: {details.normal_readings} normal, "
        f"{details.high_readings} high and {details.low_readings} low out of "
        f"{details.total_readings}. Average {average}."
    )


def analyze_kind(
    kind: MetricKind, records: Iterable[MetricRecord], config: AnalysisConfig | None = None
) -> PatternInsight | None:
    """Insight for one kind, or None when there is not enough history."""
    config = config or AnalysisConfig()
    history = recent_history(records, kind, config.history_window)
    if len(history) < config.min_readings:
        return None

    details = summarize(kind, history, config)
    pattern, severity = match_pattern(kind, details)

    if pattern == PatternName.MIXED:
        title = f"{_LABELS[kind][0]} Pattern Analysis"
        message = _mixed_message(kind, details)
        recommendations = list(_MIXED_RECOMMENDATIONS)
    else:
        copy = _COPY[(kind, pattern)]
        title = copy.title
        message = copy.message.format(**_template_fields(details))
        recommendations = list(copy.recommendations)

    return PatternInsight(
        kind=kind,
        pattern=pattern,
        severity=severity,
        title=title,
        message=message,
        recommendations=recommendations,
        details=details,
    )


def overall_insight(insights: Sequence[PatternInsight]) -> PatternInsight:
    """Roll per-kind insights up by counting concerning against good ones."""
    concerning = sum(
        1 for i in insights if i.severity in (InsightSeverity.CONCERN, InsightSeverity.WARNING)
    )
    good = sum(1 for i in insights if i.severity == InsightSeverity.GOOD)

    if concerning > good:
        pattern, severity = PatternName.OVERALL_ATTENTION, InsightSeverity.WARNING
    elif good > concerning:
        pattern, severity = PatternName.OVERALL_GOOD, InsightSeverity.GOOD
    else:
        pattern, severity = PatternName.OVERALL_MIXED, InsightSeverity.INFO

    copy = _OVERALL_COPY[pattern]
    return PatternInsight(
        kind=None,
        pattern=pattern,
        severity=severity,
        title=copy.title,
        message=copy.message.format(total=len(insights), concerning=concerning, good=good),
        recommendations=list(copy.recommendations),
    )


def aggregate(
    records: Iterable[MetricRecord], config: AnalysisConfig | None = None
) -> list[PatternInsight]:
    """
    Generate pattern insights for every kind with enough history.

    Returns per-kind insights in MetricKind order, followed by the overall
    rollup when at least `min_insights_for_overall` kinds produced one.
    """
    config = config or AnalysisConfig()
    snapshot = list(records)

    insights = [
        insight
        for kind in MetricKind
        if (insight := analyze_kind(kind, snapshot, config)) is not None
    ]
    if len(insights) >= config.min_insights_for_overall:
        insights.append(overall_insight(insights))

    logger.info(
        "insights_generated",
        records=len(snapshot),
        insights=len(insights),
        patterns=[i.pattern.value for i in insights],
    )
    return insights


def period_trend(
    records: Iterable[MetricRecord],
    kind: MetricKind,
    days: int,
    now: datetime | None = None,
) -> PeriodTrend:
    """
    Rising/falling/stable from the first to the last reading in the last `days` days.

    At most `days` readings are used: the most recent ones inside the window.
    """
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(days=days)
    window = sorted(
        (r for r in records if r.kind == kind and r.recorded_at >= cutoff),
        key=lambda r: r.recorded_at,
    )[-days:]
    if len(window) < 2:
        return PeriodTrend(
            kind=kind, days=days, direction=TrendDirection.INSUFFICIENT, readings=len(window)
        )

    first, last = window[0].primary_value, window[-1].primary_value
    # A zero baseline has no percentage change; fall back to the raw difference
    change = (last - first) / first * 100 if first else last - first

    if abs(change) < STABLE_CHANGE_PERCENT:
        direction = TrendDirection.STABLE
    elif change > 0:
        direction = TrendDirection.RISING
    else:
        direction = TrendDirection.FALLING

    return PeriodTrend(
        kind=kind,
        days=days,
        direction=direction,
        readings=len(window),
        first=first,
        last=last,
        change_percent=round(change, 1),
    )
