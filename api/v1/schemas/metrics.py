from __future__ import annotations
from typing import List

from core.models.base import CamelModel
from core.models.user import BiometricProfile, HealthGoal, HealthMetrics


class MetricsIn(CamelModel):
    profile: BiometricProfile
    conditions: List[str] = []
    goal: HealthGoal | None = None


class MetricsOut(CamelModel):
    metrics: HealthMetrics
    bmi_category: str
    # only when the request carried a target weight + timeframe
    target_calories: int | None = None
    safe_target_calories: int | None = None
