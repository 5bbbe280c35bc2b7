# api/v1/plans.py
from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.diet_pipeline import DietPlanPipeline, TextGenerator, build_plan_request
from core.health_metrics import compute_health_metrics
from core.models.plan import DietPlan
from services.db import active_plan, get_session, log_failure_to_db, save_health_metrics, save_plan
from services.gemini import GeminiClient
from api.v1.schemas import DriftOut, PlanIn, PlanOut, SuggestionsIn, SuggestionsOut

router = APIRouter()


# ───────────────────────── deps ─────────────────────────────
@lru_cache
def get_generator() -> TextGenerator:
    return GeminiClient()


def get_pipeline(generator: TextGenerator = Depends(get_generator)) -> DietPlanPipeline:
    return DietPlanPipeline(generator)


# ───────────────────────── generate ─────────────────────────
@router.post(
    "/users/{user_id}/plans",
    response_model=PlanOut,
    status_code=status.HTTP_201_CREATED,
)
async def generate_plan(
    user_id: int,
    body: PlanIn,
    pipeline: DietPlanPipeline = Depends(get_pipeline),
    db: AsyncSession = Depends(get_session),
) -> PlanOut:
    metrics = compute_health_metrics(body.profile, body.medical.conditions)
    request = build_plan_request(
        body.profile, body.goal, body.medical, body.duration_days, body.preferences
    )

    # one blocking generator call; keep it off the event loop
    result = await run_in_threadpool(pipeline.run, request)

    if not result.ok:
        await log_failure_to_db(
            db,
            user_id,
            stage=result.failed_at.value if result.failed_at else "unknown",
            error=str(result.error),
            raw_input=result.prompt or "",
            raw_output=result.raw_response or "",
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"reason": result.failure.value, "message": str(result.error)},
        )

    await save_health_metrics(db, user_id, metrics)
    await save_plan(db, user_id, result.plan)

    drift = None
    if result.drift is not None:
        drift = DriftOut(
            target_calories=result.drift.target_calories,
            meal_calories=result.drift.meal_calories,
            drift=round(result.drift.drift, 3),
        )
    return PlanOut(plan=result.plan, metrics=metrics, drift=drift)


# ───────────────────────── fetch active ─────────────────────
@router.get("/users/{user_id}/plans/active", response_model=DietPlan)
async def fetch_active_plan(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> DietPlan:
    plan = await active_plan(db, user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No active plan")
    return plan


# ───────────────────────── suggestions ──────────────────────
@router.post("/suggestions", response_model=SuggestionsOut)
def suggest_meals(
    body: SuggestionsIn,
    pipeline: DietPlanPipeline = Depends(get_pipeline),
) -> SuggestionsOut:
    meals = pipeline.generate_meal_suggestions(
        body.slot,
        body.calorie_target,
        body.dietary_restrictions,
        body.preferences,
        body.count,
    )
    return SuggestionsOut(meals=meals)
