from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Union

from .config import HideRule, IconColorRule, RuleCondition, SmartSortSettings, SortBucket
from .context import RuleEvaluationContext
from .hide import compute_hide_changes
from .matcher import matches_bucket, matches_condition, matches_rule
from .models import ConditionSource, HideChanges, VisualRuleResult
from .sort_keys import SortKey, build_sort_key
from .values import resolve_values
from .visual import resolve_visual_outputs


class RuleEngine:
    """Stateless entry point over the rule modules.

    `now` pins the clock used by date-relative operators; left unset, each call
    reads the local wall clock.
    """

    def __init__(self, now: Optional[datetime] = None):
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now if self._now is not None else datetime.now()

    def resolve_values(
        self, source: Union[ConditionSource, str], field: str, ctx: RuleEvaluationContext
    ) -> List[str]:
        return resolve_values(source, field, ctx)

    def matches_condition(self, condition: RuleCondition, ctx: RuleEvaluationContext) -> bool:
        return matches_condition(condition, ctx, now=self.now)

    def matches_rule(self, rule: Union[IconColorRule, HideRule], ctx: RuleEvaluationContext) -> bool:
        return matches_rule(rule, ctx, now=self.now)

    def matches_bucket(self, bucket: SortBucket, ctx: RuleEvaluationContext) -> bool:
        return matches_bucket(bucket, ctx, now=self.now)

    def resolve_visual_outputs(
        self, rules: Sequence[IconColorRule], ctx: RuleEvaluationContext
    ) -> VisualRuleResult:
        return resolve_visual_outputs(rules, ctx, now=self.now)

    def build_sort_key(self, settings: SmartSortSettings, ctx: RuleEvaluationContext) -> SortKey:
        return build_sort_key(settings, ctx, now=self.now)

    def compose_sort_key(self, settings: SmartSortSettings, ctx: RuleEvaluationContext) -> str:
        return build_sort_key(settings, ctx, now=self.now).value

    def compute_hide_changes(
        self, hide_rules: Sequence[HideRule], ctx: RuleEvaluationContext
    ) -> HideChanges:
        return compute_hide_changes(hide_rules, ctx, now=self.now)
