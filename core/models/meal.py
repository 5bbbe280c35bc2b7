from __future__ import annotations
import math
from enum import Enum

from pydantic import Field, field_validator

from core.models.base import CamelModel


class Slot(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snacks = "snacks"


SLOTS: tuple[Slot, ...] = tuple(Slot)


class MealMacros(CamelModel):
    # strict: "35" or true from a generator is not a gram amount
    protein: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    carbs: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    fats: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    fiber: float = Field(0.0, ge=0, strict=True, allow_inf_nan=False)  # optional per meal


class Meal(CamelModel):
    name: str = Field(..., min_length=1)
    ingredients: tuple[str, ...] = ()
    calories: int = Field(..., gt=0)
    macros: MealMacros
    preparation_time_minutes: int = Field(0, ge=0, alias="preparationTime")
    instructions: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @field_validator("calories", "preparation_time_minutes", mode="before")
    @classmethod
    def _round_numbers(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        # generators happily emit 320.0 or 12.5 for integer fields
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError("must be a finite number")
            return round(v)
        return v

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(v))
