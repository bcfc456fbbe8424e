from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Sequence

from .config import HideRule
from .context import RuleEvaluationContext
from .matcher import matches_rule
from .models import HideChanges, HideMode
from .normalize import normalize_tag, parse_tag_list


def compute_hide_changes(
    hide_rules: Sequence[HideRule],
    ctx: RuleEvaluationContext,
    *,
    now: datetime,
) -> HideChanges:
    """Tags to add and remove. When rules disagree about a tag the later rule wins."""
    # dicts keep first-insertion order for stable output
    add: Dict[str, None] = {}
    remove: Dict[str, None] = {}

    for rule in hide_rules:
        if not rule.enabled or not matches_rule(rule, ctx, now=now):
            continue
        tag = normalize_tag(rule.tag_name)
        if not tag:
            continue
        if rule.mode == HideMode.ADD:
            add[tag] = None
            remove.pop(tag, None)
        else:
            remove[tag] = None
            add.pop(tag, None)

    return HideChanges(add=list(add), remove=list(remove))


def apply_tag_changes(current: Any, changes: HideChanges) -> tuple[List[str], bool]:
    """Apply hide changes to a frontmatter `tags` value. Returns (tags, changed)."""
    tags = parse_tag_list(current)
    changed = False
    for tag in changes.remove:
        if tag in tags:
            tags.remove(tag)
            changed = True
    for tag in changes.add:
        if tag not in tags:
            tags.append(tag)
            changed = True
    return tags, changed
