"""Re-export individual schema modules for easy imports."""

from .metrics import MetricsIn, MetricsOut
from .plan import DriftOut, PlanIn, PlanOut, SuggestionsIn, SuggestionsOut

__all__ = [
    "MetricsIn",
    "MetricsOut",
    "PlanIn",
    "PlanOut",
    "DriftOut",
    "SuggestionsIn",
    "SuggestionsOut",
]
