"""
Domain models for personal health tracking.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; classification and insight results are
computed on demand and never persisted.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


class UnknownMetricKindError(ValueError):
    """Raised when a record carries a kind outside the supported set."""


class MetricKind(str, Enum):
    """Types of health readings a user can log."""

    HEART_RATE = "heart_rate"
    BLOOD_PRESSURE = "blood_pressure"
    SPO2 = "spo2"
    BLOOD_SUGAR = "blood_sugar"


class MetricRecord(BaseModel):
    """A single health reading."""

    model_config = ConfigDict(frozen=True, ser_json_inf_nan="constants")

    id: str = Field(default_factory=lambda: uuid4().hex)
    kind: MetricKind
    value: float | None = Field(None, description="Magnitude for single-valued kinds")
    systolic: float | None = Field(None, description="Blood pressure only, mmHg")
    diastolic: float | None = Field(None, description="Blood pressure only, mmHg")
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    note: str | None = None

    @field_validator("recorded_at")
    @classmethod
    def normalise_to_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC; aware ones are converted to UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @model_validator(mode="after")
    def check_value_shape(self) -> "MetricRecord":
        """Blood pressure carries both components together; other kinds carry a value."""
        if self.kind == MetricKind.BLOOD_PRESSURE:
            if self.systolic is None or self.diastolic is None:
                raise ValueError("blood pressure requires both systolic and diastolic")
        elif self.value is None:
            raise ValueError(f"{self.kind.value} reading requires a value")
        return self

    @property
    def blood_pressure(self) -> tuple[float, float]:
        if self.systolic is None or self.diastolic is None:
            raise ValueError(f"record {self.id} has no blood pressure pair")
        return self.systolic, self.diastolic

    @property
    def primary_value(self) -> float:
        """Value used for statistics: systolic for blood pressure."""
        if self.kind == MetricKind.BLOOD_PRESSURE:
            return self.blood_pressure[0]
        if self.value is None:
            raise ValueError(f"record {self.id} has no value")
        return self.value

    @property
    def display_value(self) -> str:
        if self.kind == MetricKind.BLOOD_PRESSURE:
            return f"{self.systolic:g}/{self.diastolic:g}"
        return f"{self.value:g}"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class AgeGroup(str, Enum):
    """Age brackets used to pick threshold tables."""

    CHILD = "child"
    YOUNG_ADULT = "young_adult"
    ADULT = "adult"
    MIDDLE_AGED = "middle_aged"
    SENIOR = "senior"

    @classmethod
    def from_age(cls, age: int) -> "AgeGroup":
        if age < 18:
            return cls.CHILD
        if age < 30:
            return cls.YOUNG_ADULT
        if age < 50:
            return cls.ADULT
        if age < 65:
            return cls.MIDDLE_AGED
        return cls.SENIOR


class BMICategory(str, Enum):
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE = "obese"

    @classmethod
    def from_bmi(cls, bmi: float) -> "BMICategory":
        if bmi < 18.5:
            return cls.UNDERWEIGHT
        if bmi < 25:
            return cls.NORMAL
        if bmi < 30:
            return cls.OVERWEIGHT
        return cls.OBESE


class Profile(BaseModel):
    """Optional demographic profile used to adjust thresholds."""

    model_config = ConfigDict(frozen=True)

    age: int = Field(gt=0, lt=150)
    height_cm: float = Field(gt=0.0)
    weight_kg: float = Field(gt=0.0)
    gender: Gender
    name: str | None = None

    @computed_field(return_type=float)
    def bmi(self) -> float:
        height_m = self.height_cm / 100
        return self.weight_kg / (height_m * height_m)

    @computed_field(return_type=BMICategory)
    def bmi_category(self) -> BMICategory:
        return BMICategory.from_bmi(self.bmi)

    @computed_field(return_type=AgeGroup)
    def age_group(self) -> AgeGroup:
        return AgeGroup.from_age(self.age)


class DashboardSettings(BaseModel):
    """User preferences persisted next to the record list."""

    model_config = ConfigDict(frozen=True)

    metric_order: list[MetricKind] = Field(default_factory=lambda: list(MetricKind))
    visibility: dict[MetricKind, bool] = Field(
        default_factory=lambda: {kind: True for kind in MetricKind}
    )
    profile: Profile | None = None

    @model_validator(mode="after")
    def order_covers_every_kind(self) -> "DashboardSettings":
        if sorted(self.metric_order) != sorted(MetricKind):
            raise ValueError("metric_order must list every metric kind exactly once")
        return self

    def is_visible(self, kind: MetricKind) -> bool:
        return self.visibility.get(kind, True)


class StatusTier(str, Enum):
    """Profile-adjusted status, ordered from worst to best."""

    CRITICAL = "critical"
    CONCERNING = "concerning"
    BORDERLINE = "borderline"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def rank(self) -> int:
        return list(StatusTier).index(self)


class SimpleStatus(str, Enum):
    """Fixed-threshold status used when no profile is available."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class BMIImpact(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ClassificationResult(BaseModel):
    """Status of a single reading, with an explanation for the user."""

    model_config = ConfigDict(frozen=True)

    record: MetricRecord
    status: StatusTier | SimpleStatus
    message: str
    recommendations: list[str] = Field(default_factory=list)
    normal_range: str

    # Only populated for profile-adjusted results
    age_appropriate: bool | None = None
    bmi_impact: BMIImpact | None = None
    risk_factors: list[str] = Field(default_factory=list)
    age_group: AgeGroup | None = None
    bmi_category: BMICategory | None = None


class Trend(str, Enum):
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


class TrendDirection(str, Enum):
    """Direction of readings across a calendar window."""

    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    INSUFFICIENT = "insufficient"


class PeriodTrend(BaseModel):
    """First-to-last change of one kind over the last N days."""

    model_config = ConfigDict(frozen=True)

    kind: MetricKind
    days: int = Field(gt=0)
    direction: TrendDirection
    readings: int = Field(ge=0)
    first: float | None = None
    last: float | None = None
    change_percent: float | None = None


class InsightSeverity(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    CONCERN = "concern"
    INFO = "info"


class PatternName(str, Enum):
    """Named patterns a short history of readings can fall into."""

    OFTEN_HIGH = "often_high"
    OFTEN_LOW = "often_low"
    UNSTABLE = "unstable"
    LOWER_END = "lower_end"
    WELL_CONTROLLED = "well_controlled"
    MIXED = "mixed"

    # Cross-kind rollup
    OVERALL_ATTENTION = "overall_attention"
    OVERALL_GOOD = "overall_good"
    OVERALL_MIXED = "overall_mixed"


class InsightDetails(BaseModel):
    """Statistics backing a per-kind insight."""

    model_config = ConfigDict(frozen=True)

    highest: float
    lowest: float
    average: float
    trend: Trend
    concerning_readings: int = Field(ge=0)
    high_readings: int = Field(ge=0)
    low_readings: int = Field(ge=0)
    normal_readings: int = Field(ge=0)
    total_readings: int = Field(gt=0)

    highest_diastolic: float | None = None
    lowest_diastolic: float | None = None
    average_diastolic: float | None = None


class PatternInsight(BaseModel):
    """Textual insight about a pattern of readings."""

    model_config = ConfigDict(frozen=True)

    kind: MetricKind | None = Field(description="None for the cross-kind rollup")
    pattern: PatternName
    severity: InsightSeverity
    title: str
    message: str
    recommendations: list[str] = Field(default_factory=list)
    details: InsightDetails | None = None
