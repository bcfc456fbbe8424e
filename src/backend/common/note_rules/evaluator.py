from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from .models import ConditionSource, Operator


class OperatorEvaluator(ABC):
    """Positive form of an operator. The registry derives the negated form as its complement."""

    operator: Operator
    label: str
    # Sources the authoring UI offers this operator for; empty means every source.
    sources: Tuple[ConditionSource, ...] = ()

    def __init__(self):
        if not getattr(self, "operator", None):
            raise ValueError("OperatorEvaluator must define operator")

    @abstractmethod
    def evaluate(
        self,
        values: List[str],
        target: str,
        *,
        now: datetime,
        case_sensitive: bool = False,
    ) -> Optional[bool]:  # pragma: no cover
        """Return True/False, or None when the target is unusable (neither polarity matches)."""
        raise NotImplementedError
