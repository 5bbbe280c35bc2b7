from __future__ import annotations
from enum import Enum

from pydantic import Field

from core.models.base import CamelModel

MIN_AGE = 13
MAX_AGE = 120


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class ActivityLevel(str, Enum):
    sedentary = "sedentary"
    lightly_active = "lightly_active"
    moderately_active = "moderately_active"
    very_active = "very_active"
    extremely_active = "extremely_active"


class PrimaryGoal(str, Enum):
    weight_loss = "weight_loss"
    weight_gain = "weight_gain"
    maintenance = "maintenance"
    muscle_gain = "muscle_gain"


class RiskLevel(str, Enum):
    low = "low"
    moderate = "moderate"
    high = "high"


class BiometricProfile(CamelModel):
    age: int = Field(..., ge=MIN_AGE, le=MAX_AGE)
    weight: float = Field(..., gt=0, description="kg")
    height: float = Field(..., gt=0, description="cm")
    gender: Gender
    activity_level: ActivityLevel = ActivityLevel.moderately_active


class HealthGoal(CamelModel):
    primary_goal: PrimaryGoal = PrimaryGoal.maintenance
    target_weight: float | None = Field(None, gt=0, description="kg")
    timeframe_weeks: int | None = Field(None, gt=0)


class MedicalConstraints(CamelModel):
    allergies: frozenset[str] = frozenset()
    conditions: frozenset[str] = frozenset()
    medications: frozenset[str] = frozenset()
    dietary_restrictions: frozenset[str] = frozenset()


class HealthMetrics(CamelModel):
    """Derived from a profile; replaced wholesale, never patched."""

    bmi: float
    bmr: int
    body_fat_percentage: float
    daily_calorie_needs: int
    risk_level: RiskLevel
