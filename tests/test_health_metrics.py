# tests/test_health_metrics.py
from __future__ import annotations

import math
import pytest
from pydantic import ValidationError

from core.errors import InvalidInput
from core.health_metrics import (
    apply_calorie_floor,
    bmi_category,
    compute_bmi,
    compute_bmr,
    compute_body_fat_percentage,
    compute_daily_calorie_needs,
    compute_health_metrics,
    compute_risk_level,
    compute_target_calories,
)
from core.models.user import ActivityLevel, BiometricProfile, Gender, RiskLevel

MALE_70KG = BiometricProfile(
    age=28,
    weight=70,
    height=175,
    gender=Gender.male,
    activity_level=ActivityLevel.moderately_active,
)


# ── BMI ──────────────────────────────────────────────────────────────
def test_bmi_reference_value():
    assert math.isclose(compute_bmi(70, 175), 22.9, abs_tol=0.05)


@pytest.mark.parametrize("weight,height", [(0, 175), (70, 0), (-1, 175), (70, -10)])
def test_bmi_rejects_non_positive(weight, height):
    with pytest.raises(InvalidInput):
        compute_bmi(weight, height)


# ── BMR ──────────────────────────────────────────────────────────────
def test_bmr_mifflin_male():
    expected = 10 * 70 + 6.25 * 175 - 5 * 28 + 5   # 1658.75
    assert compute_bmr(28, 70, 175, "male") == round(expected) == 1659


def test_bmr_mifflin_female():
    expected = 10 * 70 + 6.25 * 175 - 5 * 28 - 161  # 1492.75
    assert compute_bmr(28, 70, 175, Gender.female) == round(expected) == 1493


def test_bmr_other_uses_female_formula():
    assert compute_bmr(40, 82, 168, "other") == compute_bmr(40, 82, 168, "female")


def test_bmr_rounds_half_up():
    # 10*70 + 6.25*170 - 5*31 + 5 = 1612.5
    assert compute_bmr(31, 70, 170, "male") == 1613


def test_bmr_rejects_implausible_age():
    with pytest.raises(InvalidInput):
        compute_bmr(5, 70, 175, "male")


# ── body fat ─────────────────────────────────────────────────────────
def test_body_fat_by_gender():
    assert compute_body_fat_percentage(22.9, 28, "male") == 17.7
    assert compute_body_fat_percentage(22.9, 28, "female") == 28.5
    assert compute_body_fat_percentage(22.9, 28, "other") == 28.5


def test_body_fat_is_clamped():
    assert compute_body_fat_percentage(10, 13, "male") == 5.0
    assert compute_body_fat_percentage(45, 90, "female") == 50.0


# ── daily calories ───────────────────────────────────────────────────
def test_daily_calories_reference_value():
    assert compute_daily_calorie_needs(1673, "moderately_active") == 2593


def test_daily_calories_accepts_enum():
    assert compute_daily_calorie_needs(1500, ActivityLevel.sedentary) == 1800


def test_daily_calories_unknown_level_defaults_to_moderate():
    assert compute_daily_calorie_needs(1673, "couch_potato") == 2593


# ── risk ─────────────────────────────────────────────────────────────
def test_risk_reference_value():
    assert compute_risk_level(32, 70, ["diabetes"]) is RiskLevel.high


@pytest.mark.parametrize(
    "bmi,age,conditions,expected",
    [
        (22, 30, [], RiskLevel.low),
        (27, 50, [], RiskLevel.moderate),          # 1 + 0.5
        (22, 30, ["DIABETES"], RiskLevel.moderate),  # case-insensitive
        (22, 30, ["type 2 diabetes"], RiskLevel.low),  # exact match only
        (17, 30, [], RiskLevel.moderate),
        (26, 70, ["heart_disease"], RiskLevel.high),
    ],
)
def test_risk_scoring(bmi, age, conditions, expected):
    assert compute_risk_level(bmi, age, conditions) is expected


# ── target calories ──────────────────────────────────────────────────
def test_target_calories_reference_value():
    # 2593 + (70 - 80) * 7700 / 84 = 1676.33
    assert compute_target_calories(2593, 80, 70, 12) == 1676


def test_target_calories_surplus_and_maintenance():
    assert compute_target_calories(2000, 60, 65, 10) == 2550
    assert compute_target_calories(2000, 70, 70, 4) == 2000


def test_target_calories_is_not_clamped():
    # 20 kg in 2 weeks: far below any safe intake
    assert compute_target_calories(2500, 80, 60, 2) < 0


def test_target_calories_rejects_zero_timeframe():
    with pytest.raises(InvalidInput):
        compute_target_calories(2500, 80, 70, 0)


def test_calorie_floor():
    assert apply_calorie_floor(900, "male") == 1500
    assert apply_calorie_floor(900, Gender.other) == 1200
    assert apply_calorie_floor(2100, "female") == 2100


# ── composition ──────────────────────────────────────────────────────
def test_health_metrics_composition():
    m = compute_health_metrics(MALE_70KG)
    assert m.bmi == 22.9
    assert m.bmr == 1659
    assert m.body_fat_percentage == 17.7
    assert m.daily_calorie_needs == 2571   # 1659 * 1.55
    assert m.risk_level is RiskLevel.low


def test_health_metrics_are_immutable():
    m = compute_health_metrics(MALE_70KG, ["hypertension"])
    assert m.risk_level is RiskLevel.moderate
    with pytest.raises(ValidationError):
        m.bmi = 30.0


def test_profile_rejects_non_positive_weight():
    with pytest.raises(ValidationError):
        BiometricProfile(age=30, weight=0, height=175, gender="male")


def test_bmi_category():
    assert bmi_category(17.0) == "Underweight"
    assert bmi_category(22.9) == "Normal weight"
    assert bmi_category(27.0) == "Overweight"
    assert bmi_category(31.0) == "Obese"
