"""Condition, group, rule and bucket matching.

Two empty-list policies live here and must not be conflated:
- `matches_group` on an explicit empty condition list is False (for "all" and "any").
- `has_no_conditions` marks a bucket/segment with nothing to test at all, which matches
  every note so a catch-all can sit last in an ordered list.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Sequence, Union

from .config import ConditionGroup, HideRule, IconColorRule, RuleCondition, SortBucket, SortSegmentRule
from .context import RuleEvaluationContext
from .models import ConditionSource, MatchMode, Operator
from .normalize import folder_path, normalize_path
from .operators import matches
from .values import FOLDER_PATH_FIELD, resolve_values

logger = logging.getLogger(__name__)


def has_no_conditions(
    conditions: Sequence[RuleCondition],
    groups: Sequence[ConditionGroup] = (),
) -> bool:
    return not conditions and not groups


def _match_path(values: Iterable[str], operator: Operator, target: str, now: datetime) -> bool:
    # Folder paths compare case-sensitively and keep the target verbatim.
    return matches(values, operator, target, now=now, trim_target=False, case_sensitive=True)


def matches_condition(condition: RuleCondition, ctx: RuleEvaluationContext, *, now: datetime) -> bool:
    operator = Operator.parse(condition.operator)
    if operator is None:
        logger.debug("Condition with unknown operator %r never matches", condition.operator)
        return False
    source = ConditionSource.parse(condition.source)
    if source is None:
        logger.debug("Condition with unknown source %r never matches", condition.source)
        return False

    if source == ConditionSource.FRONTMATTER:
        field = condition.field.strip()
        if not field:
            return False
        if field.lower() == FOLDER_PATH_FIELD:
            return _match_path(resolve_values(ConditionSource.PATH, "", ctx), operator, condition.value, now)
        if operator in (Operator.EXISTS, Operator.NOT_EXISTS) and not condition.value.strip():
            present = ctx.has_frontmatter_key(field)
            return present if operator == Operator.EXISTS else not present
        values = resolve_values(source, field, ctx)
        return matches(values, operator, condition.value, now=now)

    values = resolve_values(source, condition.field, ctx)
    if source == ConditionSource.PATH:
        return _match_path(values, operator, condition.value, now)
    if source == ConditionSource.TAG:
        # Tag values carry no leading "#", so "#work" and "work" both match.
        return matches(values, operator, condition.value.strip().lstrip("#"), now=now)
    return matches(values, operator, condition.value, now=now)


def matches_group(
    conditions: Sequence[RuleCondition],
    mode: MatchMode,
    ctx: RuleEvaluationContext,
    *,
    now: datetime,
) -> bool:
    if not conditions:
        return False
    if mode == MatchMode.ANY:
        return any(matches_condition(c, ctx, now=now) for c in conditions)
    return all(matches_condition(c, ctx, now=now) for c in conditions)


def matches_bucket(bucket: SortBucket, ctx: RuleEvaluationContext, *, now: datetime) -> bool:
    if has_no_conditions(bucket.conditions, bucket.condition_groups):
        return True

    def group_results() -> Iterable[bool]:
        return (matches_group(g.conditions, g.match, ctx, now=now) for g in bucket.condition_groups)

    if bucket.match == MatchMode.ALL:
        flat = matches_group(bucket.conditions, bucket.match, ctx, now=now) if bucket.conditions else True
        return flat and all(group_results())

    if bucket.conditions and matches_group(bucket.conditions, bucket.match, ctx, now=now):
        return True
    return any(group_results())


def matches_segment(segment: SortSegmentRule, ctx: RuleEvaluationContext, *, now: datetime) -> bool:
    if has_no_conditions(segment.conditions):
        return True
    return matches_group(segment.conditions, segment.match, ctx, now=now)


def matches_path_prefix(file_path: str, path_prefix: str) -> bool:
    prefix = normalize_path(path_prefix)
    if not prefix:
        return True
    folder = folder_path(file_path)
    if not folder:
        return False
    return folder == prefix or folder.startswith(f"{prefix}/")


def matches_rule(
    rule: Union[IconColorRule, HideRule],
    ctx: RuleEvaluationContext,
    *,
    now: datetime,
) -> bool:
    if rule.conditions:
        return matches_group(rule.conditions, rule.match, ctx, now=now)

    # Single-condition fields; hide rules never had them.
    if not isinstance(rule, IconColorRule):
        return False
    prop = rule.property.strip()
    if not prop:
        return False
    if not matches_path_prefix(ctx.file.path, rule.path_prefix):
        return False

    operator = Operator.parse(rule.operator) or Operator.IS
    if prop.lower() == FOLDER_PATH_FIELD:
        return _match_path(resolve_values(ConditionSource.PATH, "", ctx), operator, rule.value, now)
    if operator == Operator.EXISTS:
        return ctx.has_frontmatter_key(prop)
    values = resolve_values(ConditionSource.FRONTMATTER, prop, ctx)
    return matches(values, operator, rule.value, now=now)
