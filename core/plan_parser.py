"""
core/plan_parser.py
────────────────────────────────────────────────────────────────────────
Turns raw generator text into validated domain objects.

* `extract_json_object()` – strip code fences / chatter, decode one object
* `parse_diet_plan()`     – full plan, four slots, totals recomputed
* `parse_meals()`         – bare meal list for single-slot suggestions
* `check_calorie_drift()` – advisory comparison of meal kcal vs target

Nothing the generator says about totals is trusted: plan macronutrients
are always summed from the parsed meals, and `total_calories` is the
target the generator was asked to hit.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from config import settings
from core.errors import AggregationMismatch, InvalidInput, MalformedGenerationResponse
from core.models.meal import SLOTS, Meal, Slot
from core.models.plan import DietPlan, Macronutrients, MealsBySlot

_LOG = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_SLOT_ALIASES = {"snack": Slot.snacks.value}


# ──────────────────────────────── JSON ────────────────────────────────
def extract_json_object(raw: str | bytes | dict) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedGenerationResponse("empty generator response", raw or "")

    text = raw.strip()
    match = _FENCE_RE.search(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # model wrapped the object in prose; take the outermost braces
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise MalformedGenerationResponse("no JSON object in response", raw)
        try:
            data = json.loads(text[start:end + 1])
        except json.JSONDecodeError as exc:
            raise MalformedGenerationResponse(f"invalid JSON: {exc}", raw) from exc

    if not isinstance(data, dict):
        raise MalformedGenerationResponse(
            f"expected a JSON object, got {type(data).__name__}", raw
        )
    return data


# ──────────────────────────────── meals ───────────────────────────────
def normalise_slot(slot: Slot | str) -> Slot:
    name = str(getattr(slot, "value", slot)).strip().lower()
    try:
        return Slot(_SLOT_ALIASES.get(name, name))
    except ValueError as exc:
        raise InvalidInput(f"unknown meal slot {slot!r}") from exc


def _normalise_slots(meals: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in meals.items():
        name = str(key).strip().lower()
        out[_SLOT_ALIASES.get(name, name)] = value
    return out


def _parse_meal_list(entries: Any, where: str, raw: str) -> list[Meal]:
    if not isinstance(entries, list):
        raise MalformedGenerationResponse(f"{where} must be a list", raw)

    meals: list[Meal] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise MalformedGenerationResponse(f"{where}[{i}] is not an object", raw)
        if not isinstance(entry.get("macros"), dict):
            raise MalformedGenerationResponse(f"{where}[{i}] has no macros object", raw)
        try:
            meals.append(Meal.model_validate(entry))
        except ValidationError as exc:
            err = exc.errors()[0]
            loc = ".".join(str(p) for p in err["loc"])
            raise MalformedGenerationResponse(
                f"{where}[{i}].{loc}: {err['msg']}", raw
            ) from exc
    return meals


def aggregate_macros(meals: MealsBySlot) -> Macronutrients:
    return Macronutrients.total_of(meals.all_meals())


def parse_diet_plan(
    raw: str | dict,
    target_calories: int,
    duration_days: int = 1,
) -> DietPlan:
    raw_text = raw if isinstance(raw, str) else json.dumps(raw, default=str)
    data = extract_json_object(raw)

    missing = [k for k in ("planName", "meals") if k not in data]
    if missing:
        raise MalformedGenerationResponse(f"missing required fields: {missing}", raw_text)

    plan_name = data["planName"]
    if not isinstance(plan_name, str) or not plan_name.strip():
        raise MalformedGenerationResponse("planName must be a non-empty string", raw_text)

    if not isinstance(data["meals"], dict):
        raise MalformedGenerationResponse("meals must be an object keyed by slot", raw_text)
    meals = _normalise_slots(data["meals"])

    unknown = set(meals) - {s.value for s in SLOTS}
    if unknown:
        _LOG.debug("ignoring unknown meal slots: %s", sorted(unknown))

    by_slot: dict[str, list[Meal]] = {}
    for slot in SLOTS:
        if slot.value not in meals:
            raise MalformedGenerationResponse(f"meals.{slot.value} missing", raw_text)
        by_slot[slot.value] = _parse_meal_list(meals[slot.value], f"meals.{slot.value}", raw_text)

    if "macronutrients" in data:
        _LOG.debug("discarding generator-supplied macronutrients; totals are recomputed")

    recommendations = data.get("recommendations")
    if recommendations is None:
        recommendations = data.get("aiRecommendations", "")

    try:
        slots = MealsBySlot(**by_slot)
        return DietPlan(
            plan_name=plan_name.strip(),
            total_calories=target_calories,
            macronutrients=aggregate_macros(slots),
            meals=slots,
            ai_recommendations=str(recommendations),
            duration_days=duration_days,
        )
    except ValidationError as exc:
        raise MalformedGenerationResponse(f"plan failed validation: {exc}", raw_text) from exc


def parse_meals(raw: str | dict, slot: Slot | str) -> list[Meal]:
    raw_text = raw if isinstance(raw, str) else json.dumps(raw, default=str)
    slot_name = normalise_slot(slot).value
    data = extract_json_object(raw)

    if "meals" not in data:
        raise MalformedGenerationResponse("missing required field: meals", raw_text)

    entries = data["meals"]
    if isinstance(entries, dict):
        entries = _normalise_slots(entries).get(slot_name)
        if entries is None:
            raise MalformedGenerationResponse(f"meals.{slot_name} missing", raw_text)
    return _parse_meal_list(entries, f"meals.{slot_name}", raw_text)


# ──────────────────────────────── drift ───────────────────────────────
def check_calorie_drift(
    plan: DietPlan, tolerance: float | None = None
) -> AggregationMismatch | None:
    tol = settings.calorie_drift_tolerance if tolerance is None else tolerance
    mismatch = AggregationMismatch(plan.total_calories, plan.meal_calories, tol)
    return mismatch if mismatch.drift > tol else None
