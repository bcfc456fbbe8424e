from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from ..evaluator import OperatorEvaluator
from ..models import ConditionSource, Operator
from ..registry import register_operator

# "- [ ] task" or "* [ ] task" at the start of any line.
OPEN_CHECKBOX = re.compile(r"^[ \t]*[-*]\s+\[\s\]", re.MULTILINE)


@register_operator
class HasOpenCheckboxesOperator(OperatorEvaluator):
    operator = Operator.HAS_OPEN_CHECKBOXES
    label = "has open checkboxes"
    sources = (ConditionSource.BODY,)

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        return any(OPEN_CHECKBOX.search(value) for value in values)
