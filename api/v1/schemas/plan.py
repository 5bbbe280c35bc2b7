from __future__ import annotations
from typing import List

from pydantic import Field

from core.models.base import CamelModel
from core.models.meal import Meal, Slot
from core.models.plan import DietPlan
from core.models.user import BiometricProfile, HealthGoal, HealthMetrics, MedicalConstraints


class PlanIn(CamelModel):
    profile: BiometricProfile
    goal: HealthGoal = HealthGoal()
    medical: MedicalConstraints = MedicalConstraints()
    duration_days: int = Field(7, ge=1, le=365)
    preferences: List[str] = Field([], examples=[["mediterranean", "quick meals"]])


class DriftOut(CamelModel):
    target_calories: int
    meal_calories: int
    drift: float


class PlanOut(CamelModel):
    plan: DietPlan
    metrics: HealthMetrics
    drift: DriftOut | None = None


class SuggestionsIn(CamelModel):
    slot: Slot
    calorie_target: int = Field(..., gt=0)
    dietary_restrictions: List[str] = []
    preferences: List[str] = []
    count: int = Field(3, ge=1, le=10)


class SuggestionsOut(CamelModel):
    meals: List[Meal]
