"""
Rule-based classification of single health readings.

Two modes:
- Without a profile, fixed population thresholds give a low/normal/high status.
- With a profile, thresholds are picked by age bracket and widened by BMI
  category, giving one of five ordered tiers plus personalised advice.

Everything here is a pure function of (record, profile). Nothing is cached or
stored; callers recompute whenever they display a result.
"""

from typing import NamedTuple, assert_never

import structlog

from vitals.domain.models import (
    AgeGroup,
    BMICategory,
    BMIImpact,
    ClassificationResult,
    Gender,
    MetricKind,
    MetricRecord,
    Profile,
    SimpleStatus,
    StatusTier,
    UnknownMetricKindError,
)

logger = structlog.get_logger(__name__)


class Band(NamedTuple):
    """Inclusive normal range."""

    minimum: float
    maximum: float

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


# Fixed thresholds used without a profile
HEART_RATE_NORMAL = Band(60, 100)
SYSTOLIC_NORMAL = Band(90, 140)
DIASTOLIC_NORMAL = Band(60, 90)
SPO2_NORMAL_FLOOR = 95.0
BLOOD_SUGAR_NORMAL = Band(4.0, 11.1)

# Age-bracket tables used with a profile
HEART_RATE_BANDS: dict[AgeGroup, Band] = {
    AgeGroup.CHILD: Band(70, 100),
    AgeGroup.YOUNG_ADULT: Band(60, 100),
    AgeGroup.ADULT: Band(60, 100),
    AgeGroup.MIDDLE_AGED: Band(60, 95),
    AgeGroup.SENIOR: Band(60, 90),
}
HEART_RATE_BMI_ADJUSTMENT: dict[BMICategory, float] = {
    BMICategory.OVERWEIGHT: 5,
    BMICategory.OBESE: 10,
}

BLOOD_PRESSURE_BANDS: dict[AgeGroup, tuple[Band, Band]] = {
    AgeGroup.CHILD: (Band(90, 120), Band(60, 80)),
    AgeGroup.YOUNG_ADULT: (Band(90, 120), Band(60, 80)),
    AgeGroup.ADULT: (Band(90, 130), Band(60, 85)),
    AgeGroup.MIDDLE_AGED: (Band(90, 140), Band(60, 90)),
    AgeGroup.SENIOR: (Band(90, 150), Band(60, 90)),
}
BLOOD_PRESSURE_CRISIS = (180, 110)

SPO2_BAND = Band(96, 100)
SPO2_SENIOR_BAND = Band(95, 100)
SPO2_CRITICAL_BELOW = 90
SPO2_EXCELLENT_FROM = 98

BLOOD_SUGAR_BAND = Band(4.0, 7.0)
BLOOD_SUGAR_SENIOR_BAND = Band(4.0, 8.0)
BLOOD_SUGAR_CRITICAL_ABOVE = 15.0


def heart_rate_band(age_group: AgeGroup, bmi_category: BMICategory) -> Band:
    """Heart rate band for an age bracket with the ceiling widened by BMI."""
    base = HEART_RATE_BANDS[age_group]
    return Band(base.minimum, base.maximum + HEART_RATE_BMI_ADJUSTMENT.get(bmi_category, 0))


def classify(record: MetricRecord, profile: Profile | None = None) -> ClassificationResult:
    """Classify a reading, using demographic thresholds when a profile is given."""
    try:
        kind = MetricKind(record.kind)
    except ValueError as e:
        raise UnknownMetricKindError(f"Unknown metric kind: {record.kind!r}") from e

    if profile is None:
        result = _classify_fixed(kind, record)
    else:
        result = _classify_with_profile(kind, record, profile)

    logger.debug(
        "reading_classified",
        kind=kind.value,
        status=result.status.value,
        personalised=profile is not None,
    )
    return result


# --- Fixed thresholds ---------------------------------------------------------

_FIXED_MESSAGES: dict[MetricKind, dict[SimpleStatus, str]] = {
    MetricKind.HEART_RATE: {
        SimpleStatus.LOW: "Resting heart rate is quite low",
        SimpleStatus.NORMAL: "Heart rate looks steady",
        SimpleStatus.HIGH: "Heart is beating quite fast",
    },
    MetricKind.BLOOD_PRESSURE: {
        SimpleStatus.LOW: "Blood pressure is quite low, drink more water",
        SimpleStatus.NORMAL: "Blood pressure looks good",
        SimpleStatus.HIGH: "Blood pressure is a bit high, take care",
    },
    MetricKind.SPO2: {
        SimpleStatus.LOW: "Oxygen level is a bit low, consider seeing a doctor",
        SimpleStatus.NORMAL: "Oxygen level is healthy",
    },
    MetricKind.BLOOD_SUGAR: {
        SimpleStatus.LOW: "Sugar level is low, eat something sweet",
        SimpleStatus.NORMAL: "Sugar level is just right",
        SimpleStatus.HIGH: "Sugar level is high, watch your diet",
    },
}

_FIXED_RANGES: dict[MetricKind, str] = {
    MetricKind.HEART_RATE: "60-100 bpm",
    MetricKind.BLOOD_PRESSURE: "90-140/60-90 mmHg",
    MetricKind.SPO2: "95-100%",
    MetricKind.BLOOD_SUGAR: "4.0-11.1 mmol/L",
}


def fixed_status(kind: MetricKind, record: MetricRecord) -> SimpleStatus:
    """Low/normal/high against the population thresholds."""
    if kind == MetricKind.HEART_RATE:
        hr = record.primary_value
        if hr < HEART_RATE_NORMAL.minimum:
            return SimpleStatus.LOW
        if hr > HEART_RATE_NORMAL.maximum:
            return SimpleStatus.HIGH
        return SimpleStatus.NORMAL
    elif kind == MetricKind.BLOOD_PRESSURE:
        systolic, diastolic = record.blood_pressure
        # High wins when one component is high and the other low
        if systolic > SYSTOLIC_NORMAL.maximum or diastolic > DIASTOLIC_NORMAL.maximum:
            return SimpleStatus.HIGH
        if systolic < SYSTOLIC_NORMAL.minimum or diastolic < DIASTOLIC_NORMAL.minimum:
            return SimpleStatus.LOW
        return SimpleStatus.NORMAL
    elif kind == MetricKind.SPO2:
        if record.primary_value < SPO2_NORMAL_FLOOR:
            return SimpleStatus.LOW
        return SimpleStatus.NORMAL
    elif kind == MetricKind.BLOOD_SUGAR:
        bs = record.primary_value
        if bs > BLOOD_SUGAR_NORMAL.maximum:
            return SimpleStatus.HIGH
        if bs < BLOOD_SUGAR_NORMAL.minimum:
            return SimpleStatus.LOW
        return SimpleStatus.NORMAL
    else:
        assert_never(kind)


def _classify_fixed(kind: MetricKind, record: MetricRecord) -> ClassificationResult:
    status = fixed_status(kind, record)
    return ClassificationResult(
        record=record,
        status=status,
        message=_FIXED_MESSAGES[kind][status],
        normal_range=_FIXED_RANGES[kind],
    )


# --- Profile-adjusted thresholds ----------------------------------------------

_BMI_EFFECTS: dict[MetricKind, dict[BMICategory, tuple[BMIImpact, str | None]]] = {
    MetricKind.HEART_RATE: {
        BMICategory.UNDERWEIGHT: (
            BMIImpact.NEGATIVE,
            "Being underweight can affect heart function",
        ),
        BMICategory.NORMAL: (BMIImpact.POSITIVE, None),
        BMICategory.OVERWEIGHT: (BMIImpact.NEGATIVE, "Excess weight increases heart workload"),
        BMICategory.OBESE: (
            BMIImpact.NEGATIVE,
            "Obesity significantly increases cardiovascular risk",
        ),
    },
    MetricKind.BLOOD_PRESSURE: {
        BMICategory.UNDERWEIGHT: (BMIImpact.NEUTRAL, None),
        BMICategory.NORMAL: (BMIImpact.POSITIVE, None),
        BMICategory.OVERWEIGHT: (BMIImpact.NEGATIVE, "Excess weight increases blood pressure"),
        BMICategory.OBESE: (
            BMIImpact.NEGATIVE,
            "Obesity is a major risk factor for hypertension",
        ),
    },
    MetricKind.SPO2: {
        BMICategory.UNDERWEIGHT: (BMIImpact.POSITIVE, None),
        BMICategory.NORMAL: (BMIImpact.POSITIVE, None),
        BMICategory.OVERWEIGHT: (
            BMIImpact.NEGATIVE,
            "Excess weight can impact respiratory function",
        ),
        BMICategory.OBESE: (
            BMIImpact.NEGATIVE,
            "Obesity can affect breathing and oxygen levels",
        ),
    },
    MetricKind.BLOOD_SUGAR: {
        BMICategory.UNDERWEIGHT: (BMIImpact.POSITIVE, None),
        BMICategory.NORMAL: (BMIImpact.POSITIVE, None),
        BMICategory.OVERWEIGHT: (
            BMIImpact.NEGATIVE,
            "Excess weight increases insulin resistance",
        ),
        BMICategory.OBESE: (BMIImpact.NEGATIVE, "Obesity significantly increases diabetes risk"),
    },
}

# Message templates keyed by (kind, tier). Placeholders: reading, age, gender,
# direction, qualifier, weight_note.
_MESSAGES: dict[MetricKind, dict[StatusTier, str]] = {
    MetricKind.HEART_RATE: {
        StatusTier.EXCELLENT: (
            "Your heart rate of {reading} bpm is excellent for a {age}-year-old {gender}."
            "{weight_note}"
        ),
        StatusTier.GOOD: (
            "Your heart rate of {reading} bpm is acceptable for your age ({age}), "
            "though {weight_note}."
        ),
        StatusTier.BORDERLINE: (
            "Your heart rate of {reading} bpm is slightly {direction} for a {age}-year-old. "
            "Keep an eye on it."
        ),
        StatusTier.CONCERNING: (
            "Your heart rate of {reading} bpm is quite {direction} for a {age}-year-old. "
            "{weight_note}"
        ),
        StatusTier.CRITICAL: (
            "Your heart rate of {reading} bpm is very {direction} for your age. "
            "Please see a doctor promptly."
        ),
    },
    MetricKind.BLOOD_PRESSURE: {
        StatusTier.EXCELLENT: (
            "Your blood pressure of {reading} mmHg is ideal for a {age}-year-old.{weight_note}"
        ),
        StatusTier.GOOD: (
            "Your blood pressure of {reading} mmHg is good for a {age}-year-old. {weight_note}"
        ),
        StatusTier.BORDERLINE: (
            "Your blood pressure of {reading} mmHg is borderline for a {age}-year-old. "
            "{weight_note}"
        ),
        StatusTier.CONCERNING: (
            "Your blood pressure of {reading} mmHg is too high for your age ({age}). "
            "{weight_note}"
        ),
        StatusTier.CRITICAL: (
            "Your blood pressure of {reading} mmHg is in the crisis range. "
            "Seek medical care immediately."
        ),
    },
    MetricKind.SPO2: {
        StatusTier.EXCELLENT: (
            "Your oxygen level of {reading}% is excellent for a {age}-year-old. "
            "Your lungs are working well."
        ),
        StatusTier.GOOD: (
            "Your oxygen level of {reading}% is acceptable for a {age}-year-old, "
            "but could be better."
        ),
        StatusTier.BORDERLINE: (
            "Your oxygen level of {reading}% is at the edge of normal for a {age}-year-old."
        ),
        StatusTier.CONCERNING: (
            "Your oxygen level of {reading}% is too low{qualifier}. {weight_note}"
        ),
        StatusTier.CRITICAL: (
            "Your oxygen level of {reading}% is dangerously low. "
            "Seek medical attention immediately."
        ),
    },
    MetricKind.BLOOD_SUGAR: {
        StatusTier.EXCELLENT: (
            "Your blood sugar of {reading} mmol/L is ideal for a {age}-year-old.{weight_note}"
        ),
        StatusTier.GOOD: (
            "Your blood sugar of {reading} mmol/L is good for a {age}-year-old. {weight_note}"
        ),
        StatusTier.BORDERLINE: (
            "Your blood sugar of {reading} mmol/L is borderline for a {age}-year-old. "
            "{weight_note}"
        ),
        StatusTier.CONCERNING: (
            "Your blood sugar of {reading} mmol/L is very high{qualifier}. {weight_note}"
        ),
        StatusTier.CRITICAL: (
            "Your blood sugar of {reading} mmol/L is dangerously high{qualifier}. "
            "Seek medical attention immediately."
        ),
    },
}

_TIER_HINTS: dict[StatusTier, str] = {
    StatusTier.CRITICAL: "Seek medical attention promptly for this reading",
    StatusTier.CONCERNING: "Share this reading with your doctor at your next visit",
}

_AGE_HINTS: dict[MetricKind, dict[AgeGroup, list[str]]] = {
    MetricKind.HEART_RATE: {
        AgeGroup.SENIOR: [
            "At your age, gentle exercise like tai chi or walking is best",
            "Monitor for dizziness or chest discomfort",
        ],
        AgeGroup.YOUNG_ADULT: [
            "You can handle more vigorous exercise, so use it to your advantage",
        ],
    },
    MetricKind.BLOOD_PRESSURE: {
        AgeGroup.SENIOR: [
            "Slightly higher blood pressure may be acceptable at your age; agree targets "
            "with your doctor",
            "Be careful with sudden position changes to avoid dizziness",
        ],
        AgeGroup.YOUNG_ADULT: [
            "High blood pressure at your age is serious; lifestyle changes matter now",
        ],
    },
    MetricKind.SPO2: {
        AgeGroup.SENIOR: [
            "Lung function naturally declines with age, so regular monitoring is important",
            "Gentle breathing exercises can help maintain lung capacity",
        ],
    },
    MetricKind.BLOOD_SUGAR: {
        AgeGroup.SENIOR: [
            "Slightly higher targets may be safer at your age; discuss them with your doctor",
            "Avoid severe low blood sugar episodes, which are more dangerous for seniors",
        ],
        AgeGroup.MIDDLE_AGED: [
            "This is prime time for diabetes prevention; lifestyle changes are crucial",
        ],
    },
}

_BMI_HINTS: dict[MetricKind, dict[BMICategory, list[str]]] = {
    MetricKind.HEART_RATE: {
        BMICategory.OBESE: [
            "Weight loss will significantly improve your heart health",
            "Start with low-impact exercises like swimming or walking",
        ],
        BMICategory.OVERWEIGHT: ["Losing 5-10kg will help reduce your heart rate"],
        BMICategory.UNDERWEIGHT: [
            "Gaining healthy weight might help stabilise your heart rate",
        ],
    },
    MetricKind.BLOOD_PRESSURE: {
        BMICategory.OBESE: [
            "Weight loss is the most effective way to lower your blood pressure",
            "Even 5kg of weight loss can make a significant difference",
        ],
    },
    MetricKind.SPO2: {
        BMICategory.OBESE: [
            "Weight loss will significantly improve your breathing and oxygen levels",
            "Sleep apnea screening might be beneficial",
        ],
    },
    MetricKind.BLOOD_SUGAR: {
        BMICategory.OBESE: [
            "Weight loss is the most effective way to improve blood sugar control",
            "Even 10% weight loss can significantly reduce diabetes risk",
        ],
    },
}

_MENOPAUSE_HINTS: dict[MetricKind, str] = {
    MetricKind.HEART_RATE: "Menopause can affect heart rate; discuss it with your doctor",
    MetricKind.BLOOD_PRESSURE: "Menopause can affect blood pressure; monitor it regularly",
    MetricKind.BLOOD_SUGAR: "Menopause can affect blood sugar; monitor it more closely",
}


class _Verdict(NamedTuple):
    tier: StatusTier
    normal_range: str
    direction: str = ""
    qualifier: str = ""
    weight_note: str = ""


def _heart_rate_verdict(record: MetricRecord, profile: Profile) -> _Verdict:
    hr = record.primary_value
    base = HEART_RATE_BANDS[profile.age_group]
    adjusted = heart_rate_band(profile.age_group, profile.bmi_category)

    if hr < base.minimum - 10:
        tier = StatusTier.CRITICAL
    elif hr < base.minimum:
        tier = StatusTier.CONCERNING
    elif hr <= adjusted.maximum:
        tier = StatusTier.EXCELLENT if hr <= base.maximum else StatusTier.GOOD
    elif hr <= adjusted.maximum + 10:
        tier = StatusTier.BORDERLINE
    else:
        tier = StatusTier.CONCERNING

    direction = "high" if hr > adjusted.maximum else "low"
    if tier == StatusTier.EXCELLENT:
        weight_note = (
            " Your healthy weight is helping your heart work efficiently."
            if profile.bmi_category == BMICategory.NORMAL
            else ""
        )
    elif tier == StatusTier.GOOD:
        weight_note = (
            "it could be better"
            if profile.bmi_category == BMICategory.NORMAL
            else "your weight might be affecting it a bit"
        )
    else:
        weight_note = (
            "Your weight is likely making your heart work harder."
            if profile.bmi_category == BMICategory.OBESE
            else "This needs attention."
        )

    return _Verdict(
        tier=tier,
        normal_range=f"{base.minimum:g}-{base.maximum:g} bpm (adjusted for age)",
        direction=direction,
        weight_note=weight_note,
    )


def _blood_pressure_verdict(record: MetricRecord, profile: Profile) -> _Verdict:
    systolic, diastolic = record.blood_pressure
    sys_band, dia_band = BLOOD_PRESSURE_BANDS[profile.age_group]
    crisis_sys, crisis_dia = BLOOD_PRESSURE_CRISIS

    if systolic >= crisis_sys or diastolic >= crisis_dia:
        tier = StatusTier.CRITICAL
    elif systolic >= sys_band.maximum + 20 or diastolic >= dia_band.maximum + 10:
        tier = StatusTier.CONCERNING
    elif sys_band.contains(systolic) and dia_band.contains(diastolic):
        tier = StatusTier.EXCELLENT
    elif systolic <= sys_band.maximum + 10 and diastolic <= dia_band.maximum + 5:
        tier = StatusTier.GOOD
    else:
        tier = StatusTier.BORDERLINE

    if tier == StatusTier.EXCELLENT:
        weight_note = (
            " Your healthy weight is definitely helping."
            if profile.bmi_category == BMICategory.NORMAL
            else ""
        )
    elif tier == StatusTier.CONCERNING:
        weight_note = (
            "Your weight is making this worse, so act now."
            if profile.bmi_category == BMICategory.OBESE
            else "This needs immediate attention."
        )
    else:
        weight_note = (
            "Keep monitoring closely."
            if profile.bmi_category == BMICategory.NORMAL
            else "Your weight is affecting your blood pressure."
        )

    return _Verdict(
        tier=tier,
        normal_range=(
            f"{sys_band.minimum:g}-{sys_band.maximum:g}/"
            f"{dia_band.minimum:g}-{dia_band.maximum:g} mmHg (age-adjusted)"
        ),
        weight_note=weight_note,
    )


def _spo2_verdict(record: MetricRecord, profile: Profile) -> _Verdict:
    spo2 = record.primary_value
    band = SPO2_SENIOR_BAND if profile.age_group == AgeGroup.SENIOR else SPO2_BAND

    if spo2 < SPO2_CRITICAL_BELOW:
        tier = StatusTier.CRITICAL
    elif spo2 < band.minimum:
        tier = StatusTier.CONCERNING
    elif spo2 >= SPO2_EXCELLENT_FROM:
        tier = StatusTier.EXCELLENT
    else:
        tier = StatusTier.GOOD

    return _Verdict(
        tier=tier,
        normal_range=f"{band.minimum:g}-{band.maximum:g}% (age-adjusted)",
        qualifier=" even for your age" if profile.age_group == AgeGroup.SENIOR else "",
        weight_note=(
            "Your weight might be affecting your breathing."
            if profile.bmi_category == BMICategory.OBESE
            else "This needs immediate medical attention."
        ),
    )


def _blood_sugar_verdict(record: MetricRecord, profile: Profile) -> _Verdict:
    bs = record.primary_value
    band = BLOOD_SUGAR_SENIOR_BAND if profile.age_group == AgeGroup.SENIOR else BLOOD_SUGAR_BAND

    if bs > BLOOD_SUGAR_CRITICAL_ABOVE:
        tier = StatusTier.CRITICAL
    elif bs > band.maximum + 4:
        tier = StatusTier.CONCERNING
    elif band.contains(bs):
        tier = StatusTier.EXCELLENT
    elif bs <= band.maximum + 2:
        tier = StatusTier.GOOD
    else:
        tier = StatusTier.BORDERLINE

    if tier == StatusTier.EXCELLENT:
        weight_note = (
            " Your healthy weight is definitely helping."
            if profile.bmi_category == BMICategory.NORMAL
            else ""
        )
    elif tier == StatusTier.CONCERNING:
        weight_note = (
            "Your weight is making this much worse, so urgent action is needed."
            if profile.bmi_category == BMICategory.OBESE
            else "This needs immediate medical attention."
        )
    else:
        weight_note = (
            "Keep monitoring closely."
            if profile.bmi_category == BMICategory.NORMAL
            else "Your weight is affecting your sugar control."
        )

    return _Verdict(
        tier=tier,
        normal_range=f"{band.minimum:.1f}-{band.maximum:.1f} mmol/L (age-adjusted)",
        qualifier=" even considering your age" if profile.age_group == AgeGroup.SENIOR else "",
        weight_note=weight_note,
    )


def _recommendations(kind: MetricKind, tier: StatusTier, profile: Profile) -> list[str]:
    """All applicable hints, concatenated in a fixed order."""
    hints: list[str] = []
    if tier in _TIER_HINTS:
        hints.append(_TIER_HINTS[tier])
    hints.extend(_AGE_HINTS[kind].get(profile.age_group, []))
    hints.extend(_BMI_HINTS[kind].get(profile.bmi_category, []))
    if (
        profile.gender == Gender.FEMALE
        and profile.age_group == AgeGroup.MIDDLE_AGED
        and kind in _MENOPAUSE_HINTS
    ):
        hints.append(_MENOPAUSE_HINTS[kind])
    return hints


def _classify_with_profile(
    kind: MetricKind, record: MetricRecord, profile: Profile
) -> ClassificationResult:
    if kind == MetricKind.HEART_RATE:
        verdict = _heart_rate_verdict(record, profile)
    elif kind == MetricKind.BLOOD_PRESSURE:
        verdict = _blood_pressure_verdict(record, profile)
    elif kind == MetricKind.SPO2:
        verdict = _spo2_verdict(record, profile)
    elif kind == MetricKind.BLOOD_SUGAR:
        verdict = _blood_sugar_verdict(record, profile)
    else:
        assert_never(kind)

    impact, risk_factor = _BMI_EFFECTS[kind][profile.bmi_category]
    message = _MESSAGES[kind][verdict.tier].format(
        reading=record.display_value,
        age=profile.age,
        gender=profile.gender.value,
        direction=verdict.direction,
        qualifier=verdict.qualifier,
        weight_note=verdict.weight_note,
    )

    return ClassificationResult(
        record=record,
        status=verdict.tier,
        message=message.strip(),
        recommendations=_recommendations(kind, verdict.tier, profile),
        normal_range=verdict.normal_range,
        age_appropriate=verdict.tier in (StatusTier.EXCELLENT, StatusTier.GOOD),
        bmi_impact=impact,
        risk_factors=[risk_factor] if risk_factor else [],
        age_group=profile.age_group,
        bmi_category=profile.bmi_category,
    )
