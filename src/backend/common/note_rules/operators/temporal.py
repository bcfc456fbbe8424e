from __future__ import annotations

from datetime import datetime
from typing import Iterator, List, Optional

from ..dates import day_window, parse_date_like, parse_day_count
from ..evaluator import OperatorEvaluator
from ..models import ConditionSource, Operator
from ..registry import register_operator

_DATE_SOURCES = (
    ConditionSource.FRONTMATTER,
    ConditionSource.DATE_CREATED,
    ConditionSource.DATE_MODIFIED,
)
_DAY_SOURCES = _DATE_SOURCES + (ConditionSource.NAME,)


def _parsed(values: List[str]) -> Iterator[datetime]:
    # Unparseable values are skipped; evaluation continues with the next candidate.
    for value in values:
        parsed = parse_date_like(value, allow_epoch=False)
        if parsed is not None:
            yield parsed


@register_operator
class WithinNextDaysOperator(OperatorEvaluator):
    operator = Operator.WITHIN_NEXT_DAYS
    label = "within next N days"
    sources = _DATE_SOURCES

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        days = parse_day_count(target)
        if days is None:
            return None
        start, limit = day_window(now, days)
        return any(start <= parsed <= limit for parsed in _parsed(values))


@register_operator
class IsTodayOperator(OperatorEvaluator):
    """Matches values on the current local day; unparseable values fall back to
    containing today's ISO date (e.g. "Standup 2026-02-17")."""

    operator = Operator.IS_TODAY
    label = "is today"
    sources = _DAY_SOURCES

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        today = now.date()
        today_iso = today.isoformat()
        for value in values:
            parsed = parse_date_like(value, allow_epoch=False)
            if parsed is not None:
                if parsed.date() == today:
                    return True
            elif today_iso in value:
                return True
        return False


@register_operator
class IsBeforeTodayOperator(OperatorEvaluator):
    operator = Operator.IS_BEFORE_TODAY
    label = "is before today"
    sources = _DAY_SOURCES

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        today = now.date()
        return any(parsed.date() < today for parsed in _parsed(values))


@register_operator
class IsAfterTodayOperator(OperatorEvaluator):
    operator = Operator.IS_AFTER_TODAY
    label = "is after today"
    sources = _DAY_SOURCES

    def evaluate(
        self, values: List[str], target: str, *, now: datetime, case_sensitive: bool = False
    ) -> Optional[bool]:
        today = now.date()
        return any(parsed.date() > today for parsed in _parsed(values))
