"""
Display metadata for each metric kind.

The core never looks at any of this; it only knows `MetricKind`.
"""

from pydantic import BaseModel, ConfigDict

from vitals.domain.models import InsightSeverity, MetricKind, SimpleStatus, StatusTier


class MetricDisplay(BaseModel):
    """How one metric kind is labelled on screen."""

    model_config = ConfigDict(frozen=True)

    title: str
    unit: str
    icon: str
    colour: str


METRIC_DISPLAY: dict[MetricKind, MetricDisplay] = {
    MetricKind.HEART_RATE: MetricDisplay(title="Heart Rate", unit="bpm", icon="❤", colour="red"),
    MetricKind.BLOOD_PRESSURE: MetricDisplay(
        title="Blood Pressure", unit="mmHg", icon="🩺", colour="blue"
    ),
    MetricKind.SPO2: MetricDisplay(title="Oxygen (SpO2)", unit="%", icon="🫁", colour="cyan"),
    MetricKind.BLOOD_SUGAR: MetricDisplay(
        title="Blood Sugar", unit="mmol/L", icon="🩸", colour="magenta"
    ),
}

STATUS_STYLES: dict[StatusTier | SimpleStatus, str] = {
    StatusTier.CRITICAL: "bold red",
    StatusTier.CONCERNING: "red",
    StatusTier.BORDERLINE: "yellow",
    StatusTier.GOOD: "green",
    StatusTier.EXCELLENT: "bold green",
    SimpleStatus.LOW: "yellow",
    SimpleStatus.NORMAL: "green",
    SimpleStatus.HIGH: "red",
}

SEVERITY_STYLES: dict[InsightSeverity, str] = {
    InsightSeverity.GOOD: "green",
    InsightSeverity.WARNING: "yellow",
    InsightSeverity.CONCERN: "red",
    InsightSeverity.INFO: "blue",
}
