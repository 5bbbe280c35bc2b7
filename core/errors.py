"""
core/errors.py
────────────────────────────────────────────────────────────────────────
Error taxonomy shared by the metrics engine and the diet-plan pipeline.

    InvalidInput                 → caller error, never recovered
    GenerationTransportFailure   → generator unreachable / errored / timed out
    MalformedGenerationResponse  → text came back but is not a usable plan
    AggregationMismatch          → advisory only, the plan is still returned
"""

from __future__ import annotations


class DietPlanError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(DietPlanError, ValueError):
    """Biometric or goal values outside their documented domain."""


class GenerationTransportFailure(DietPlanError, RuntimeError):
    """The text generator could not be reached or returned an error."""


class MalformedGenerationResponse(DietPlanError, ValueError):
    """The generator's text does not decode to the expected plan shape."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class AggregationMismatch(UserWarning):
    """Meal calories drift from the requested target by more than the tolerance."""

    def __init__(self, target_calories: int, meal_calories: int, tolerance: float) -> None:
        self.target_calories = target_calories
        self.meal_calories = meal_calories
        self.tolerance = tolerance
        super().__init__(
            f"meal calories {meal_calories} differ from target {target_calories} "
            f"by {self.drift:.1%} (tolerance {tolerance:.0%})"
        )

    @property
    def drift(self) -> float:
        if not self.target_calories:
            return 0.0
        return abs(self.meal_calories - self.target_calories) / self.target_calories
