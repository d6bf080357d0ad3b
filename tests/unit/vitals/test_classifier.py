"""
Tests for single-reading classification in `vitals/services/classifier.py`.

Covers:
- Fixed-threshold boundaries for every kind
- Purity of `classify`
- Profile-adjusted tiers, messages and recommendations
- BMI widening never narrowing the heart rate band
- Unknown kinds failing fast
"""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vitals.domain.models import (
    AgeGroup,
    BMICategory,
    BMIImpact,
    Gender,
    MetricKind,
    MetricRecord,
    Profile,
    SimpleStatus,
    StatusTier,
    UnknownMetricKindError,
)
from vitals.services.classifier import HEART_RATE_BANDS, classify, heart_rate_band


def reading(kind: MetricKind, value: float) -> MetricRecord:
    return MetricRecord(kind=kind, value=value)


def pressure(systolic: float, diastolic: float) -> MetricRecord:
    return MetricRecord(kind=MetricKind.BLOOD_PRESSURE, systolic=systolic, diastolic=diastolic)


@pytest.fixture
def adult() -> Profile:
    """40-year-old man with a normal BMI (about 22.9)."""
    return Profile(age=40, height_cm=175, weight_kg=70, gender=Gender.MALE)


@pytest.fixture
def obese_adult() -> Profile:
    """40-year-old man with an obese BMI (about 32.9)."""
    return Profile(age=40, height_cm=170, weight_kg=95, gender=Gender.MALE)


@pytest.fixture
def senior() -> Profile:
    return Profile(age=70, height_cm=165, weight_kg=60, gender=Gender.FEMALE)


class TestFixedThresholds:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (59, SimpleStatus.LOW),
            (60, SimpleStatus.NORMAL),
            (100, SimpleStatus.NORMAL),
            (101, SimpleStatus.HIGH),
        ],
    )
    def test_heart_rate_boundaries(self, value: float, expected: SimpleStatus) -> None:
        assert classify(reading(MetricKind.HEART_RATE, value)).status == expected

    @pytest.mark.parametrize(
        ("systolic", "diastolic", "expected"),
        [
            (89, 70, SimpleStatus.LOW),
            (120, 59, SimpleStatus.LOW),
            (90, 60, SimpleStatus.NORMAL),
            (140, 90, SimpleStatus.NORMAL),
            (141, 80, SimpleStatus.HIGH),
            (120, 91, SimpleStatus.HIGH),
            (150, 55, SimpleStatus.HIGH),
        ],
    )
    def test_blood_pressure_boundaries(
        self, systolic: float, diastolic: float, expected: SimpleStatus
    ) -> None:
        assert classify(pressure(systolic, diastolic)).status == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(94, SimpleStatus.LOW), (95, SimpleStatus.NORMAL), (100, SimpleStatus.NORMAL)],
    )
    def test_spo2_boundaries(self, value: float, expected: SimpleStatus) -> None:
        assert classify(reading(MetricKind.SPO2, value)).status == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3.9, SimpleStatus.LOW),
            (4.0, SimpleStatus.NORMAL),
            (11.1, SimpleStatus.NORMAL),
            (11.2, SimpleStatus.HIGH),
        ],
    )
    def test_blood_sugar_boundaries(self, value: float, expected: SimpleStatus) -> None:
        assert classify(reading(MetricKind.BLOOD_SUGAR, value)).status == expected

    def test_fixed_result_carries_message_and_range_only(self) -> None:
        result = classify(reading(MetricKind.HEART_RATE, 72))

        assert result.message == "Heart rate looks steady"
        assert result.normal_range == "60-100 bpm"
        assert result.recommendations == []
        assert result.age_appropriate is None
        assert result.bmi_impact is None

    def test_nan_value_falls_through_to_normal(self) -> None:
        """NaN comparisons are all false, so no out-of-range branch matches."""
        record = reading(MetricKind.HEART_RATE, math.nan)
        assert classify(record).status == SimpleStatus.NORMAL


class TestPurity:
    @given(value=st.floats(min_value=20, max_value=250))
    def test_classify_is_idempotent(self, value: float) -> None:
        record = reading(MetricKind.HEART_RATE, value)
        profile = Profile(age=52, height_cm=160, weight_kg=80, gender=Gender.FEMALE)

        assert classify(record) == classify(record)
        assert classify(record, profile) == classify(record, profile)

    def test_unknown_kind_raises(self) -> None:
        record = MetricRecord.model_construct(kind="weight", value=1.0)

        with pytest.raises(UnknownMetricKindError, match="weight"):
            classify(record)


class TestHeartRateBand:
    @given(
        age_group=st.sampled_from(list(AgeGroup)),
        bmi_category=st.sampled_from(
            [BMICategory.NORMAL, BMICategory.OVERWEIGHT, BMICategory.OBESE]
        ),
    )
    def test_adjusted_band_never_narrows(
        self, age_group: AgeGroup, bmi_category: BMICategory
    ) -> None:
        base = HEART_RATE_BANDS[age_group]
        adjusted = heart_rate_band(age_group, bmi_category)

        assert adjusted.minimum == base.minimum
        assert adjusted.maximum >= base.maximum

    def test_obese_ceiling_is_widened_by_ten(self) -> None:
        assert heart_rate_band(AgeGroup.ADULT, BMICategory.OBESE).maximum == 110


class TestProfileHeartRate:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (45, StatusTier.CRITICAL),
            (55, StatusTier.CONCERNING),
            (72, StatusTier.EXCELLENT),
            (105, StatusTier.BORDERLINE),
            (115, StatusTier.CONCERNING),
        ],
    )
    def test_tiers_for_normal_weight_adult(
        self, adult: Profile, value: float, expected: StatusTier
    ) -> None:
        assert classify(reading(MetricKind.HEART_RATE, value), adult).status == expected

    def test_excellent_result_is_personalised(self, adult: Profile) -> None:
        result = classify(reading(MetricKind.HEART_RATE, 72), adult)

        assert result.message.startswith(
            "Your heart rate of 72 bpm is excellent for a 40-year-old male"
        )
        assert "healthy weight" in result.message
        assert result.normal_range == "60-100 bpm (adjusted for age)"
        assert result.age_appropriate is True
        assert result.bmi_impact == BMIImpact.POSITIVE
        assert result.risk_factors == []
        assert result.age_group == AgeGroup.ADULT
        assert result.bmi_category == BMICategory.NORMAL

    def test_bmi_widened_band_gives_good(self, obese_adult: Profile) -> None:
        result = classify(reading(MetricKind.HEART_RATE, 105), obese_adult)

        assert result.status == StatusTier.GOOD
        assert "your weight might be affecting it" in result.message
        assert result.bmi_impact == BMIImpact.NEGATIVE
        assert result.risk_factors == ["Obesity significantly increases cardiovascular risk"]
        assert result.recommendations == [
            "Weight loss will significantly improve your heart health",
            "Start with low-impact exercises like swimming or walking",
        ]

    def test_recommendations_concatenate_every_applicable_hint(self) -> None:
        profile = Profile(age=55, height_cm=160, weight_kg=90, gender=Gender.FEMALE)

        result = classify(reading(MetricKind.HEART_RATE, 55), profile)

        assert result.status == StatusTier.CONCERNING
        assert result.age_appropriate is False
        assert result.recommendations == [
            "Share this reading with your doctor at your next visit",
            "Weight loss will significantly improve your heart health",
            "Start with low-impact exercises like swimming or walking",
            "Menopause can affect heart rate; discuss it with your doctor",
        ]


class TestProfileBloodPressure:
    @pytest.mark.parametrize(
        ("systolic", "diastolic", "expected"),
        [
            (145, 85, StatusTier.EXCELLENT),
            (155, 85, StatusTier.GOOD),
            (165, 85, StatusTier.BORDERLINE),
            (170, 85, StatusTier.CONCERNING),
            (185, 95, StatusTier.CRITICAL),
            (120, 110, StatusTier.CRITICAL),
        ],
    )
    def test_tiers_for_senior(
        self, senior: Profile, systolic: float, diastolic: float, expected: StatusTier
    ) -> None:
        assert classify(pressure(systolic, diastolic), senior).status == expected

    def test_same_reading_is_stricter_for_young_adult(self) -> None:
        young = Profile(age=25, height_cm=180, weight_kg=75, gender=Gender.MALE)

        result = classify(pressure(145, 85), young)

        assert result.status == StatusTier.CONCERNING
        assert result.normal_range == "90-120/60-80 mmHg (age-adjusted)"
        assert "High blood pressure at your age is serious" in " ".join(result.recommendations)


class TestProfileSpO2:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (89, StatusTier.CRITICAL),
            (95, StatusTier.CONCERNING),
            (96, StatusTier.GOOD),
            (98, StatusTier.EXCELLENT),
        ],
    )
    def test_tiers_for_adult(self, adult: Profile, value: float, expected: StatusTier) -> None:
        assert classify(reading(MetricKind.SPO2, value), adult).status == expected

    def test_senior_floor_is_lower(self, senior: Profile) -> None:
        assert classify(reading(MetricKind.SPO2, 95), senior).status == StatusTier.GOOD

        result = classify(reading(MetricKind.SPO2, 93), senior)
        assert result.status == StatusTier.CONCERNING
        assert "too low even for your age" in result.message


class TestProfileBloodSugar:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (5.5, StatusTier.EXCELLENT),
            (8.5, StatusTier.GOOD),
            (10.0, StatusTier.BORDERLINE),
            (11.5, StatusTier.CONCERNING),
            (15.0, StatusTier.CONCERNING),
            (15.5, StatusTier.CRITICAL),
        ],
    )
    def test_tiers_for_adult(self, adult: Profile, value: float, expected: StatusTier) -> None:
        assert classify(reading(MetricKind.BLOOD_SUGAR, value), adult).status == expected

    def test_range_uses_one_decimal(self, senior: Profile) -> None:
        result = classify(reading(MetricKind.BLOOD_SUGAR, 6.0), senior)
        assert result.normal_range == "4.0-8.0 mmol/L (age-adjusted)"
