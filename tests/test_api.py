"""
HTTP surface – generator and DB session swapped through dependency_overrides.
"""
from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from api.v1.plans import get_generator
from main import app
from services.db import DietPlanRecord, GenerationFailure, HealthMetricsRecord, get_session

PROFILE = {"age": 28, "weight": 70, "height": 175, "gender": "male", "activityLevel": "moderately_active"}


class _FakeResult:
    def scalars(self):
        return self

    def first(self):
        return None


class _FakeSession:
    def __init__(self):
        self.added = []
        self.commits = 0

    async def execute(self, stmt):
        return _FakeResult()

    async def get(self, model, key):
        return None

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.commits += 1

    async def refresh(self, obj):
        return None


@pytest.fixture()
def db():
    session = _FakeSession()

    async def _override():
        yield session

    app.dependency_overrides[get_session] = _override
    yield session
    app.dependency_overrides.clear()


@pytest.fixture()
def client(db):
    return TestClient(app)


def _use_generator(gen) -> None:
    app.dependency_overrides[get_generator] = lambda: gen


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


# ── metrics ──────────────────────────────────────────────────────────
def test_metrics(client):
    r = client.post("/api/v1/metrics", json={"profile": PROFILE, "conditions": ["diabetes"]})
    assert r.status_code == 200
    body = r.json()
    assert body["metrics"] == {
        "bmi": 22.9,
        "bmr": 1659,
        "bodyFatPercentage": 17.7,
        "dailyCalorieNeeds": 2571,
        "riskLevel": "moderate",
    }
    assert body["bmiCategory"] == "Normal weight"
    assert body["targetCalories"] is None


def test_metrics_with_goal_reports_raw_and_safe_targets(client):
    goal = {"primaryGoal": "weight_loss", "targetWeight": 55, "timeframeWeeks": 4}
    body = client.post("/api/v1/metrics", json={"profile": PROFILE, "goal": goal}).json()
    # 2571 - 15 * 7700 / 28 = -1554
    assert body["targetCalories"] == -1554
    assert body["safeTargetCalories"] == 1500


def test_metrics_rejects_bad_profile(client):
    bad = dict(PROFILE, weight=-3)
    assert client.post("/api/v1/metrics", json={"profile": bad}).status_code == 422


# ── plans ────────────────────────────────────────────────────────────
def test_generate_plan_persists(client, db, stub, plan_text):
    _use_generator(stub(plan_text))
    r = client.post(
        "/api/v1/users/7/plans",
        json={"profile": PROFILE, "durationDays": 3, "preferences": ["japanese"]},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["plan"]["planName"] == "Balanced Nutrition Plan"
    assert body["plan"]["totalCalories"] == 2571
    assert body["plan"]["macronutrients"]["protein"] == 95
    assert body["drift"]["mealCalories"] == 1500

    kinds = {type(o) for o in db.added}
    assert kinds == {DietPlanRecord, HealthMetricsRecord}
    record = next(o for o in db.added if isinstance(o, DietPlanRecord))
    assert record.user_id == 7
    assert record.is_active is True


def test_generate_plan_failure_is_logged(client, db, stub, plan_dict):
    plan_dict.pop("meals")
    _use_generator(stub(json.dumps(plan_dict)))
    r = client.post("/api/v1/users/7/plans", json={"profile": PROFILE})
    assert r.status_code == 502
    assert r.json()["detail"]["reason"] == "malformed_response"

    [failure] = db.added
    assert isinstance(failure, GenerationFailure)
    assert failure.stage == "response_parsed"
    assert "Target daily calories" in failure.raw_input


def test_active_plan_missing(client):
    assert client.get("/api/v1/users/7/plans/active").status_code == 404


# ── suggestions ──────────────────────────────────────────────────────
def test_suggestions(client, stub, plan_dict):
    _use_generator(stub(json.dumps({"meals": plan_dict["meals"]["lunch"]})))
    r = client.post("/api/v1/suggestions", json={"slot": "lunch", "calorieTarget": 450})
    assert r.status_code == 200
    assert r.json()["meals"][0]["name"] == "Grilled Chicken Salad"


def test_suggestions_degrade_to_empty(client, stub):
    _use_generator(stub("```json\n{oops\n```"))
    r = client.post("/api/v1/suggestions", json={"slot": "dinner", "calorieTarget": 600})
    assert r.status_code == 200
    assert r.json() == {"meals": []}
