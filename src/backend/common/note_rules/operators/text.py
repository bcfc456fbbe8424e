from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from ..evaluator import OperatorEvaluator
from ..models import Operator
from ..registry import register_operator


def _fold(values: List[str], target: str, case_sensitive: bool) -> Tuple[List[str], str]:
    if case_sensitive:
        return values, target
    return [v.lower() for v in values], target.lower()


@register_operator
class IsOperator(OperatorEvaluator):
    operator = Operator.IS
    label = "is"

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        if not target:
            return None
        folded, needle = _fold(values, target, case_sensitive)
        return any(v == needle for v in folded)


@register_operator
class ContainsOperator(OperatorEvaluator):
    operator = Operator.CONTAINS
    label = "contains"

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        if not target:
            return None
        folded, needle = _fold(values, target, case_sensitive)
        return any(needle in v for v in folded)


@register_operator
class StartsOperator(OperatorEvaluator):
    operator = Operator.STARTS
    label = "starts with"

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        if not target:
            return None
        folded, needle = _fold(values, target, case_sensitive)
        return any(v.startswith(needle) for v in folded)


@register_operator
class ExistsOperator(OperatorEvaluator):
    """Without a target: any value at all. With a target: substring presence."""

    operator = Operator.EXISTS
    label = "exists"

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        if not target:
            return len(values) > 0
        folded, needle = _fold(values, target, case_sensitive)
        return any(needle in v for v in folded)


@register_operator
class IsNotEmptyOperator(OperatorEvaluator):
    operator = Operator.IS_NOT_EMPTY
    label = "is not empty"

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        return any(v.strip() for v in values)
