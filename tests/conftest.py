# tests/conftest.py
from __future__ import annotations

import copy
import json

import pytest

# --- canned generator output (1500 kcal over four slots) ----------------
CANNED_PLAN = {
    "planName": "Balanced Nutrition Plan",
    "recommendations": "Adequate protein, complex carbohydrates and healthy fats.",
    "meals": {
        "breakfast": [
            {
                "name": "Greek Yogurt Parfait with Berries",
                "ingredients": ["200g Greek yogurt", "50g mixed berries", "30g granola"],
                "calories": 320,
                "macros": {"protein": 20, "carbs": 35, "fats": 8, "fiber": 4},
                "preparationTime": 5,
                "instructions": ["Layer yogurt with berries", "Top with granola"],
                "tags": ["vegetarian", "high-protein"],
            }
        ],
        "lunch": [
            {
                "name": "Grilled Chicken Salad",
                "ingredients": ["150g chicken breast", "100g mixed greens"],
                "calories": 420,
                "macros": {"protein": 35, "carbs": 12, "fats": 22},
                "preparationTime": 15,
                "instructions": ["Grill chicken", "Dress salad"],
                "tags": ["high-protein", "low-carb"],
            }
        ],
        "dinner": [
            {
                "name": "Baked Salmon with Quinoa",
                "ingredients": ["150g salmon", "100g quinoa", "150g broccoli"],
                "calories": 480,
                "macros": {"protein": 32, "carbs": 28, "fats": 24},
                "preparationTime": 25,
                "instructions": ["Bake salmon", "Cook quinoa", "Steam broccoli"],
                "tags": ["omega-3"],
            }
        ],
        "snacks": [
            {
                "name": "Apple with Almond Butter",
                "ingredients": ["1 apple", "2 tbsp almond butter"],
                "calories": 280,
                "macros": {"protein": 8, "carbs": 25, "fats": 16, "fiber": 5},
                "preparationTime": 2,
                "instructions": ["Slice apple"],
                "tags": ["fiber-rich"],
            }
        ],
    },
}


class StubGenerator:
    """Records prompts; replies with text or raises the given exception."""

    def __init__(self, reply: str | Exception) -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture()
def plan_dict() -> dict:
    return copy.deepcopy(CANNED_PLAN)


@pytest.fixture()
def plan_text(plan_dict) -> str:
    return json.dumps(plan_dict)


@pytest.fixture()
def stub():
    return StubGenerator
