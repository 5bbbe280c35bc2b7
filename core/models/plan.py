from __future__ import annotations
from typing import Iterable

from pydantic import Field, model_validator

from core.models.base import CamelModel
from core.models.meal import SLOTS, Meal, Slot

MACRO_TOLERANCE = 0.01


class Macronutrients(CamelModel):
    protein: float = 0.0
    carbs: float = 0.0
    fats: float = 0.0
    fiber: float = 0.0

    @classmethod
    def total_of(cls, meals: Iterable[Meal]) -> "Macronutrients":
        protein = carbs = fats = fiber = 0.0
        for m in meals:
            protein += m.macros.protein
            carbs += m.macros.carbs
            fats += m.macros.fats
            fiber += m.macros.fiber
        return cls(protein=protein, carbs=carbs, fats=fats, fiber=fiber)


class MealsBySlot(CamelModel):
    breakfast: tuple[Meal, ...] = ()
    lunch: tuple[Meal, ...] = ()
    dinner: tuple[Meal, ...] = ()
    snacks: tuple[Meal, ...] = ()

    def slot(self, slot: Slot | str) -> tuple[Meal, ...]:
        return getattr(self, Slot(slot).value)

    def all_meals(self) -> list[Meal]:
        return [m for s in SLOTS for m in self.slot(s)]


class DietPlan(CamelModel):
    """
    A generated plan. `macronutrients` must equal the sum over every meal
    in every slot; use `DietPlan.from_meals` to get it computed.
    """

    plan_name: str = Field(..., min_length=1)
    total_calories: int
    macronutrients: Macronutrients
    meals: MealsBySlot
    ai_recommendations: str = ""
    duration_days: int = Field(1, ge=1, le=365)

    @model_validator(mode="after")
    def _macros_match_meals(self) -> "DietPlan":
        expected = Macronutrients.total_of(self.meals.all_meals())
        for key in ("protein", "carbs", "fats", "fiber"):
            got, want = getattr(self.macronutrients, key), getattr(expected, key)
            if abs(got - want) > MACRO_TOLERANCE:
                raise ValueError(
                    f"macronutrients.{key}={got} does not match meal total {want}"
                )
        return self

    @classmethod
    def from_meals(
        cls,
        plan_name: str,
        total_calories: int,
        meals: MealsBySlot,
        ai_recommendations: str = "",
        duration_days: int = 1,
    ) -> "DietPlan":
        return cls(
            plan_name=plan_name,
            total_calories=total_calories,
            macronutrients=Macronutrients.total_of(meals.all_meals()),
            meals=meals,
            ai_recommendations=ai_recommendations,
            duration_days=duration_days,
        )

    @property
    def meal_calories(self) -> int:
        return sum(m.calories for m in self.meals.all_meals())
