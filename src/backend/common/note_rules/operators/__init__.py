"""Built-in operators. Importing this package registers every evaluator."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Union

from ..models import Operator
from ..registry import registry
from .checkbox import HasOpenCheckboxesOperator
from .temporal import (
    IsAfterTodayOperator,
    IsBeforeTodayOperator,
    IsTodayOperator,
    WithinNextDaysOperator,
)
from .text import (
    ContainsOperator,
    ExistsOperator,
    IsNotEmptyOperator,
    IsOperator,
    StartsOperator,
)

logger = logging.getLogger(__name__)

registry.ensure_complete()


def matches(
    values: Iterable[str],
    operator: Union[Operator, str],
    target: str,
    *,
    now: datetime,
    trim_target: bool = True,
    case_sensitive: bool = False,
) -> bool:
    """Decide whether resolved values satisfy `operator` against `target`.

    Unknown operators and unusable targets never match, for either polarity.
    """
    op = Operator.parse(operator)
    if op is None:
        logger.debug("Unknown operator %r never matches", operator)
        return False

    trimmed = [v for v in (str(v if v is not None else "").strip() for v in values) if v]
    text = str(target if target is not None else "")
    if trim_target:
        text = text.strip()

    result = registry.get(op).evaluate(trimmed, text, now=now, case_sensitive=case_sensitive)
    if result is None:
        return False
    return not result if op.negated else result


__all__ = [
    "ContainsOperator",
    "ExistsOperator",
    "HasOpenCheckboxesOperator",
    "IsAfterTodayOperator",
    "IsBeforeTodayOperator",
    "IsNotEmptyOperator",
    "IsOperator",
    "IsTodayOperator",
    "StartsOperator",
    "WithinNextDaysOperator",
    "matches",
]
