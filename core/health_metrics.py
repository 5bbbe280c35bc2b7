"""
core/health_metrics.py
────────────────────────────────────────────────────────────────────────
Pure health-metric functions:

1. BMI              weight / height²
2. BMR              Mifflin–St Jeor
3. Body fat %       BMI-based population estimate (approximate, not a
                    measurement; DEXA or calipers are far more accurate)
4. Daily kcal need  BMR × activity multiplier
5. Risk level       additive score over BMI, age and conditions
6. Target kcal      linear 7700 kcal/kg model over the goal timeframe

`other` gender falls back to the female formulas for both BMR and body
fat. Nothing here clamps the target calories; callers apply
`apply_calorie_floor` themselves.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from config import settings
from core.errors import InvalidInput
from core.models.user import (
    MAX_AGE,
    MIN_AGE,
    ActivityLevel,
    BiometricProfile,
    Gender,
    HealthMetrics,
    RiskLevel,
)

_LOG = logging.getLogger(__name__)

KCAL_PER_KG = 7700

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    ActivityLevel.sedentary.value: 1.2,            # little or no exercise
    ActivityLevel.lightly_active.value: 1.375,     # light exercise 1-3 days/week
    ActivityLevel.moderately_active.value: 1.55,   # moderate exercise 3-5 days/week
    ActivityLevel.very_active.value: 1.725,        # hard exercise 6-7 days/week
    ActivityLevel.extremely_active.value: 1.9,     # very hard exercise, physical job
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

HIGH_RISK_CONDITIONS = frozenset(
    {"diabetes", "hypertension", "heart_disease", "high_cholesterol"}
)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _require_positive(**values: float) -> None:
    for name, v in values.items():
        if v is None or v <= 0:
            raise InvalidInput(f"{name} must be > 0, got {v!r}")


def _require_age(age: int) -> None:
    if age is None or not MIN_AGE <= age <= MAX_AGE:
        raise InvalidInput(f"age must be within {MIN_AGE}-{MAX_AGE}, got {age!r}")


# ──────────────────────────────────────────────────────────────────────
#  Individual metrics
# ──────────────────────────────────────────────────────────────────────
def compute_bmi(weight_kg: float, height_cm: float) -> float:
    _require_positive(weight_kg=weight_kg, height_cm=height_cm)
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def compute_bmr(age: int, weight_kg: float, height_cm: float, gender: Gender | str) -> int:
    _require_age(age)
    _require_positive(weight_kg=weight_kg, height_cm=height_cm)
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return _round_half_up(base + (5 if gender == Gender.male else -161))


def compute_body_fat_percentage(bmi: float, age: int, gender: Gender | str) -> float:
    _require_positive(bmi=bmi)
    _require_age(age)
    offset = -16.2 if gender == Gender.male else -5.4
    body_fat = round(1.20 * bmi + 0.23 * age + offset, 1)
    return max(5.0, min(50.0, body_fat))


def compute_daily_calorie_needs(bmr: float, activity_level: ActivityLevel | str) -> int:
    _require_positive(bmr=bmr)
    multiplier = ACTIVITY_MULTIPLIERS.get(getattr(activity_level, "value", activity_level))
    if multiplier is None:
        _LOG.info("unknown activity level %r, using %.2f", activity_level, DEFAULT_ACTIVITY_MULTIPLIER)
        multiplier = DEFAULT_ACTIVITY_MULTIPLIER
    return _round_half_up(bmr * multiplier)


def compute_risk_level(bmi: float, age: int, conditions: Iterable[str] = ()) -> RiskLevel:
    score = 0.0

    if bmi < 18.5 or bmi > 30:
        score += 2
    elif bmi > 25:
        score += 1

    if age > 65:
        score += 1
    elif age > 45:
        score += 0.5

    if any(c.lower() in HIGH_RISK_CONDITIONS for c in conditions or ()):
        score += 2

    if score >= 3:
        return RiskLevel.high
    if score >= 1.5:
        return RiskLevel.moderate
    return RiskLevel.low


def compute_target_calories(
    daily_calorie_needs: float,
    current_weight: float,
    target_weight: float,
    timeframe_weeks: int,
) -> int:
    _require_positive(
        current_weight=current_weight,
        target_weight=target_weight,
        timeframe_weeks=timeframe_weeks,
    )
    total_delta = (target_weight - current_weight) * KCAL_PER_KG
    return _round_half_up(daily_calorie_needs + total_delta / (timeframe_weeks * 7))


# ──────────────────────────────────────────────────────────────────────
#  Composition / helpers
# ──────────────────────────────────────────────────────────────────────
def compute_health_metrics(
    profile: BiometricProfile, conditions: Iterable[str] = ()
) -> HealthMetrics:
    bmi = compute_bmi(profile.weight, profile.height)
    bmr = compute_bmr(profile.age, profile.weight, profile.height, profile.gender)
    return HealthMetrics(
        bmi=bmi,
        bmr=bmr,
        body_fat_percentage=compute_body_fat_percentage(bmi, profile.age, profile.gender),
        daily_calorie_needs=compute_daily_calorie_needs(bmr, profile.activity_level),
        risk_level=compute_risk_level(bmi, profile.age, conditions),
    )


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal weight"
    if bmi < 30:
        return "Overweight"
    return "Obese"


def calorie_floor(gender: Gender | str) -> int:
    if gender == Gender.male:
        return settings.min_calories_male
    return settings.min_calories_female


def apply_calorie_floor(target_calories: int, gender: Gender | str) -> int:
    """Raise `target_calories` to the configured minimum for `gender`."""
    floor = calorie_floor(gender)
    if target_calories < floor:
        _LOG.warning(
            "target %d kcal below safety floor, clamping to %d", target_calories, floor
        )
        return floor
    return target_calories
