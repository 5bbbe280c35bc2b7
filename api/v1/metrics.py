from __future__ import annotations

from fastapi import APIRouter, status

from core.health_metrics import (
    apply_calorie_floor,
    bmi_category,
    compute_health_metrics,
    compute_target_calories,
)
from api.v1.schemas import MetricsIn, MetricsOut

router = APIRouter()


@router.post("", response_model=MetricsOut, status_code=status.HTTP_200_OK)
def compute_metrics(body: MetricsIn) -> MetricsOut:
    metrics = compute_health_metrics(body.profile, body.conditions)

    target = safe = None
    goal = body.goal
    if goal is not None and goal.target_weight is not None and goal.timeframe_weeks:
        target = compute_target_calories(
            metrics.daily_calorie_needs,
            body.profile.weight,
            goal.target_weight,
            goal.timeframe_weeks,
        )
        safe = apply_calorie_floor(target, body.profile.gender)

    return MetricsOut(
        metrics=metrics,
        bmi_category=bmi_category(metrics.bmi),
        target_calories=target,
        safe_target_calories=safe,
    )
