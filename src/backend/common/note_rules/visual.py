from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from .config import IconColorRule
from .context import RuleEvaluationContext
from .matcher import matches_rule
from .models import RuleFieldResult, VisualRuleResult

logger = logging.getLogger(__name__)


def resolve_visual_outputs(
    rules: Sequence[IconColorRule],
    ctx: RuleEvaluationContext,
    *,
    now: datetime,
) -> VisualRuleResult:
    """First matching rule wins, separately for the icon and the color channel."""
    icon: Optional[RuleFieldResult] = None
    color: Optional[RuleFieldResult] = None

    for rule in rules:
        if not rule.enabled:
            continue
        if not matches_rule(rule, ctx, now=now):
            continue

        if icon is None and rule.icon.strip():
            icon = RuleFieldResult(matched=True, value=rule.icon.strip(), rule_id=rule.id)
        if color is None and rule.color.strip():
            color = RuleFieldResult(matched=True, value=rule.color.strip(), rule_id=rule.id)

        if icon is not None and color is not None:
            break

    result = VisualRuleResult(icon=icon or RuleFieldResult(), color=color or RuleFieldResult())
    logger.debug(
        "Visual rules for %s: icon=%s color=%s",
        ctx.file.path,
        result.icon.rule_id,
        result.color.rule_id,
    )
    return result
