from __future__ import annotations

from typing import Dict, Iterable, Type

from .evaluator import OperatorEvaluator
from .models import Operator


class OperatorRegistry:
    def __init__(self):
        self._evaluators: Dict[Operator, OperatorEvaluator] = {}

    def register(self, evaluator_cls: Type[OperatorEvaluator]) -> None:
        operator = getattr(evaluator_cls, "operator", None)
        if not operator:
            raise ValueError("Operator evaluator class missing operator")
        if operator.negated:
            raise ValueError(f"Register the positive form only, got: {operator.value}")
        if operator in self._evaluators:
            raise ValueError(f"Duplicate operator registered: {operator.value}")
        self._evaluators[operator] = evaluator_cls()

    def get(self, operator: Operator) -> OperatorEvaluator:
        return self._evaluators[operator.positive]

    def ids(self) -> Iterable[Operator]:
        return self._evaluators.keys()

    def ensure_complete(self) -> None:
        missing = sorted(op.value for op in Operator if op.positive not in self._evaluators)
        if missing:
            raise ValueError(f"Operators without an evaluator: {', '.join(missing)}")


registry = OperatorRegistry()


def register_operator(evaluator_cls: Type[OperatorEvaluator]) -> Type[OperatorEvaluator]:
    registry.register(evaluator_cls)
    return evaluator_cls
