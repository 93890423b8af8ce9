from domain.steps.base import Step
from domain.steps.rest import FormField, PollSpec, RestStep
from domain.steps.expr import ConditionEvaluator, ConditionResult, evaluate_condition

__all__ = [
    "Step",
    "FormField",
    "PollSpec",
    "RestStep",
    "ConditionEvaluator",
    "ConditionResult",
    "evaluate_condition",
]
