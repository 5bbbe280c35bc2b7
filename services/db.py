"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 setup
* Tables for generated plans, cached health metrics, failed generations
* Small helpers the API (or a worker) calls to hand values to storage

Exactly one active plan per user is kept here, not in the core: saving a
plan deactivates whatever was active before.
"""
from __future__ import annotations

from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, func, select, update
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from config import settings
from core.models.plan import DietPlan
from core.models.user import HealthMetrics

# ───────── connection helper ────────────────────────────────────────
_ENGINE: AsyncEngine | None = None


def _create_engine() -> AsyncEngine:
    if not settings.database_url:
        raise RuntimeError("Set the DATABASE_URL env var")
    return create_async_engine(settings.database_url, pool_pre_ping=True)


def engine() -> AsyncEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = _create_engine()
    return _ENGINE


# ───────── declarative base ──────────────────────────────────────────
Base = declarative_base(cls=AsyncAttrs)


class DietPlanRecord(Base):
    __tablename__ = "diet_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    plan_name: Mapped[str] = mapped_column(String)
    duration_days: Mapped[int] = mapped_column(Integer)
    total_calories: Mapped[int] = mapped_column(Integer)
    macronutrients: Mapped[dict] = mapped_column(JSON)
    meals: Mapped[dict] = mapped_column(JSON)
    ai_recommendations: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    def to_plan(self) -> DietPlan:
        return DietPlan.model_validate(
            {
                "planName": self.plan_name,
                "totalCalories": self.total_calories,
                "macronutrients": self.macronutrients,
                "meals": self.meals,
                "aiRecommendations": self.ai_recommendations or "",
                "durationDays": self.duration_days,
            }
        )


class HealthMetricsRecord(Base):
    __tablename__ = "user_health_metrics"

    user_id: Mapped[int] = mapped_column(primary_key=True)
    bmi: Mapped[float] = mapped_column(Float)
    bmr: Mapped[int] = mapped_column(Integer)
    body_fat_percentage: Mapped[float] = mapped_column(Float)
    daily_calorie_needs: Mapped[int] = mapped_column(Integer)
    risk_level: Mapped[str] = mapped_column(String)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class GenerationFailure(Base):
    __tablename__ = "generation_failures"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int]
    stage: Mapped[str]
    error_message: Mapped[str]
    raw_input: Mapped[str | None] = mapped_column(Text)
    raw_output: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


# ───────── storage helpers ───────────────────────────────────────────

async def save_plan(db: AsyncSession, user_id: int, plan: DietPlan) -> DietPlanRecord:
    """Store `plan` as the user's only active plan."""
    await db.execute(
        update(DietPlanRecord)
        .where(DietPlanRecord.user_id == user_id, DietPlanRecord.is_active.is_(True))
        .values(is_active=False)
    )
    dumped = plan.model_dump(mode="json", by_alias=True)
    record = DietPlanRecord(
        user_id=user_id,
        plan_name=plan.plan_name,
        duration_days=plan.duration_days,
        total_calories=plan.total_calories,
        macronutrients=dumped["macronutrients"],
        meals=dumped["meals"],
        ai_recommendations=plan.ai_recommendations,
        is_active=True,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def active_plan(db: AsyncSession, user_id: int) -> DietPlan | None:
    row = (
        await db.execute(
            select(DietPlanRecord)
            .where(DietPlanRecord.user_id == user_id, DietPlanRecord.is_active.is_(True))
            .order_by(DietPlanRecord.id.desc())
        )
    ).scalars().first()
    return row.to_plan() if row else None


async def save_health_metrics(
    db: AsyncSession, user_id: int, metrics: HealthMetrics
) -> HealthMetricsRecord:
    """Replace the cached metrics for `user_id` wholesale."""
    values = {
        "bmi": metrics.bmi,
        "bmr": metrics.bmr,
        "body_fat_percentage": metrics.body_fat_percentage,
        "daily_calorie_needs": metrics.daily_calorie_needs,
        "risk_level": metrics.risk_level.value,
    }
    row = await db.get(HealthMetricsRecord, user_id)
    if row is None:
        row = HealthMetricsRecord(user_id=user_id, **values)
        db.add(row)
    else:
        for k, v in values.items():
            setattr(row, k, v)
    await db.commit()
    return row


async def log_failure_to_db(
    db: AsyncSession,
    user_id: int,
    stage: str,
    error: str,
    raw_input: str = "",
    raw_output: str = "",
) -> None:
    """
    Persist a failed generation so the prompt and raw output can be inspected.
    """
    failure = GenerationFailure(
        user_id=user_id,
        stage=stage,
        error_message=error,
        raw_input=raw_input,
        raw_output=raw_output,
    )
    db.add(failure)
    await db.commit()


# ───────── session helper ────────────────────────────────────────────

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(engine(), expire_on_commit=False)
    async with async_session() as session:
        yield session
