"""
core/diet_pipeline.py
────────────────────────────────────────────────────────────────────────
Prompt → generator → parser, as an explicit state machine:

    requested → prompt_built → generation_called → response_parsed → plan_ready
                                      │                   │
                                      └──────► failed ◄───┘

No retries happen here. The generator owns its retry policy; this layer
only maps whatever escapes it into a typed `failed` result.

Two failure policies live side by side:

* `DietPlanPipeline.generate_diet_plan()` – strict, raises the typed error
* `DietPlanPipeline.generate_meal_suggestions()` – lenient, a bad or
  missing response degrades to an empty list
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol, Sequence, Union

from core.errors import (
    AggregationMismatch,
    DietPlanError,
    GenerationTransportFailure,
    InvalidInput,
    MalformedGenerationResponse,
)
from core.health_metrics import (
    apply_calorie_floor,
    compute_health_metrics,
    compute_target_calories,
)
from core.models.meal import Meal, Slot
from core.models.plan import DietPlan
from core.models.user import BiometricProfile, HealthGoal, MedicalConstraints
from core.plan_parser import check_calorie_drift, normalise_slot, parse_diet_plan, parse_meals
from core.prompts import build_diet_plan_prompt, build_meal_suggestions_prompt

_LOG = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


GeneratorLike = Union[TextGenerator, Callable[[str], str]]


class PipelineState(str, Enum):
    requested = "requested"
    prompt_built = "prompt_built"
    generation_called = "generation_called"
    response_parsed = "response_parsed"
    plan_ready = "plan_ready"
    failed = "failed"


class FailureReason(str, Enum):
    transport = "transport"
    malformed_response = "malformed_response"


@dataclass(frozen=True)
class DietPlanRequest:
    profile: BiometricProfile
    goal: HealthGoal
    medical: MedicalConstraints
    target_calories: int
    duration_days: int = 1
    preferences: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.target_calories <= 0:
            raise InvalidInput(f"target_calories must be > 0, got {self.target_calories}")
        if not 1 <= self.duration_days <= 365:
            raise InvalidInput(f"duration_days must be within 1-365, got {self.duration_days}")


@dataclass
class PipelineResult:
    state: PipelineState = PipelineState.requested
    trail: list[PipelineState] = field(default_factory=lambda: [PipelineState.requested])
    prompt: str | None = None
    raw_response: str | None = None
    plan: DietPlan | None = None
    failure: FailureReason | None = None
    failed_at: PipelineState | None = None
    error: DietPlanError | None = None
    drift: AggregationMismatch | None = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.plan_ready

    def advance(self, state: PipelineState) -> None:
        _LOG.debug("pipeline %s → %s", self.state.value, state.value)
        self.state = state
        self.trail.append(state)

    def fail(self, reason: FailureReason, error: DietPlanError) -> "PipelineResult":
        _LOG.error("pipeline failed at %s (%s): %s", self.state.value, reason.value, error)
        self.failed_at = self.state
        self.failure = reason
        self.error = error
        self.plan = None
        self.advance(PipelineState.failed)
        return self


# ──────────────────────────────────────────────────────────────────────
#  Request construction from user state
# ──────────────────────────────────────────────────────────────────────
def build_plan_request(
    profile: BiometricProfile,
    goal: HealthGoal,
    medical: MedicalConstraints | None = None,
    duration_days: int = 1,
    preferences: Sequence[str] = (),
) -> DietPlanRequest:
    """
    Derive the calorie target from the profile and goal, then apply the
    safety floor. Without a target weight and timeframe the target is
    simply the daily calorie need.
    """
    medical = medical or MedicalConstraints()
    metrics = compute_health_metrics(profile, medical.conditions)

    if goal.target_weight is not None and goal.timeframe_weeks:
        raw_target = compute_target_calories(
            metrics.daily_calorie_needs,
            profile.weight,
            goal.target_weight,
            goal.timeframe_weeks,
        )
    else:
        raw_target = metrics.daily_calorie_needs

    return DietPlanRequest(
        profile=profile,
        goal=goal,
        medical=medical,
        target_calories=apply_calorie_floor(raw_target, profile.gender),
        duration_days=duration_days,
        preferences=tuple(preferences),
    )


# ──────────────────────────────────────────────────────────────────────
#  Pipeline
# ──────────────────────────────────────────────────────────────────────
class DietPlanPipeline:
    def __init__(self, generator: GeneratorLike, drift_tolerance: float | None = None) -> None:
        self._generate: Callable[[str], str] = getattr(generator, "generate", generator)
        self._drift_tolerance = drift_tolerance

    def _call(self, prompt: str) -> str:
        try:
            raw = self._generate(prompt)
        except GenerationTransportFailure:
            raise
        except Exception as exc:
            # timeouts, connection resets, SDK errors: all transport faults
            raise GenerationTransportFailure(f"{type(exc).__name__}: {exc}") from exc
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return raw

    # ------------------------------------------------------- full plan
    def run(self, request: DietPlanRequest) -> PipelineResult:
        result = PipelineResult()

        result.prompt = build_diet_plan_prompt(
            request.profile,
            request.goal,
            request.medical,
            request.target_calories,
            request.duration_days,
            request.preferences,
        )
        result.advance(PipelineState.prompt_built)

        result.advance(PipelineState.generation_called)
        try:
            result.raw_response = self._call(result.prompt)
        except GenerationTransportFailure as exc:
            return result.fail(FailureReason.transport, exc)

        result.advance(PipelineState.response_parsed)
        try:
            plan = parse_diet_plan(
                result.raw_response, request.target_calories, request.duration_days
            )
        except MalformedGenerationResponse as exc:
            return result.fail(FailureReason.malformed_response, exc)

        result.drift = check_calorie_drift(plan, self._drift_tolerance)
        if result.drift is not None:
            _LOG.warning("generation drift for %r: %s", plan.plan_name, result.drift)

        result.plan = plan
        result.advance(PipelineState.plan_ready)
        return result

    def generate_diet_plan(self, request: DietPlanRequest) -> DietPlan:
        result = self.run(request)
        if not result.ok:
            raise result.error  # type: ignore[misc]
        return result.plan  # type: ignore[return-value]

    # ---------------------------------------------------- single slot
    def generate_meal_suggestions(
        self,
        slot: Slot | str,
        calorie_target: int,
        dietary_restrictions: Sequence[str] = (),
        preferences: Sequence[str] = (),
        count: int = 3,
    ) -> list[Meal]:
        slot = normalise_slot(slot)
        if calorie_target <= 0:
            raise InvalidInput(f"calorie_target must be > 0, got {calorie_target}")

        prompt = build_meal_suggestions_prompt(
            slot, calorie_target, dietary_restrictions, preferences, count
        )
        try:
            return parse_meals(self._call(prompt), slot)
        except (GenerationTransportFailure, MalformedGenerationResponse) as exc:
            _LOG.warning("%s suggestions degraded to empty list: %s", slot.value, exc)
            return []
