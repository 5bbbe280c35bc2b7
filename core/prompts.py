"""
core/prompts.py
────────────────────────────────────────────────────────────────────────
Prompt text for the generative model.

Both builders are pure string formatting: no clock, no randomness, no
I/O. An empty constraint or preference list is always written out as
the literal `None` so the model can tell "nothing to avoid" apart from a
field that was left out.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from core.models.meal import Slot
from core.models.user import BiometricProfile, HealthGoal, MedicalConstraints

NONE = "None"

_MEAL_SHAPE = (
    "{\n"
    '  "name": "...",\n'
    '  "ingredients": ["..."],\n'
    '  "calories": 0,\n'
    '  "macros": {"protein": 0, "carbs": 0, "fats": 0, "fiber": 0},\n'
    '  "preparationTime": 0,\n'
    '  "instructions": ["..."],\n'
    '  "tags": ["..."]\n'
    "}"
)


def _join(values: Iterable[str] | None, *, ordered: bool = False) -> str:
    items = [v for v in (values or ()) if v and v.strip()]
    if not ordered:
        items = sorted(items)
    return ", ".join(items) if items else NONE


def _value(v) -> str:
    if v is None:
        return "Not specified"
    if isinstance(v, float):
        return f"{v:g}"
    return str(getattr(v, "value", v))


def build_diet_plan_prompt(
    profile: BiometricProfile,
    goal: HealthGoal,
    medical: MedicalConstraints,
    target_calories: int,
    duration_days: int,
    preferences: Sequence[str] = (),
) -> str:
    return (
        f"Create a personalized {duration_days}-day diet plan for a "
        f"{profile.age}-year-old {_value(profile.gender)} "
        "with the following characteristics:\n\n"
        "Physical Stats:\n"
        f"- Weight: {profile.weight:g}kg\n"
        f"- Height: {profile.height:g}cm\n"
        f"- Activity Level: {_value(profile.activity_level)}\n\n"
        "Health Goals:\n"
        f"- Primary Goal: {_value(goal.primary_goal)}\n"
        f"- Target Weight: {_value(goal.target_weight)}"
        f"{'kg' if goal.target_weight is not None else ''}\n"
        f"- Timeframe: {_value(goal.timeframe_weeks)}"
        f"{' weeks' if goal.timeframe_weeks is not None else ''}\n\n"
        "Medical Information:\n"
        f"- Allergies: {_join(medical.allergies)}\n"
        f"- Medical Conditions: {_join(medical.conditions)}\n"
        f"- Medications: {_join(medical.medications)}\n"
        f"- Dietary Restrictions: {_join(medical.dietary_restrictions)}\n\n"
        "Requirements:\n"
        f"- Target daily calories: {target_calories}\n"
        "- Balanced macronutrients (protein: 25-30%, carbs: 40-45%, fats: 25-30%)\n"
        "- Include breakfast, lunch, dinner, and 2 snacks\n"
        f"- Consider cultural preferences: {_join(preferences, ordered=True)}\n"
        "- Provide meal preparation instructions\n"
        "- Include nutritional breakdown for each meal\n\n"
        "Return ONLY a JSON object with this structure:\n"
        "{\n"
        '  "planName": "...",\n'
        '  "recommendations": "...",\n'
        '  "meals": {"breakfast": [...], "lunch": [...], '
        '"dinner": [...], "snacks": [...]}\n'
        "}\n\n"
        f"Each meal must look like:\n{_MEAL_SHAPE}"
    )


def build_meal_suggestions_prompt(
    slot: Slot | str,
    calorie_target: int,
    dietary_restrictions: Iterable[str] = (),
    preferences: Sequence[str] = (),
    count: int = 3,
) -> str:
    return (
        f"Generate {count} {_value(slot)} meal options with approximately "
        f"{calorie_target} calories each.\n"
        f"Dietary restrictions: {_join(dietary_restrictions)}\n"
        f"Preferences: {_join(preferences, ordered=True)}\n\n"
        "Include detailed nutritional information and preparation instructions.\n"
        'Return ONLY a JSON object of the form {"meals": [...]} where each meal '
        f"looks like:\n{_MEAL_SHAPE}"
    )
