from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Sequence, Union

from .config import CompanionSettings, RuleCondition
from .context import RuleEvaluationContext
from .engine import RuleEngine
from .hide import apply_tag_changes
from .models import ConditionSource, FrontmatterUpdate, NoteEvaluation, RuleFieldResult, RuleRunReport

logger = logging.getLogger(__name__)

# Sentinel for "leave this field alone"; None already means "clear it".
_UNCHANGED = object()


def _conditions_use(conditions: Sequence[RuleCondition], source: ConditionSource) -> bool:
    return any(ConditionSource.parse(c.source) == source for c in conditions)


def settings_use_source(settings: CompanionSettings, source: Union[ConditionSource, str]) -> bool:
    """Whether any enabled rule reads `source`, so callers can skip building costly context parts."""
    kind = ConditionSource.parse(source)
    if kind is None:
        return False

    for rule in settings.rules:
        if rule.enabled and _conditions_use(rule.conditions, kind):
            return True
    for hide_rule in settings.hide_rules:
        if hide_rule.enabled and _conditions_use(hide_rule.conditions, kind):
            return True

    smart_sort = settings.smart_sort
    if not smart_sort.enabled:
        return False
    for bucket in smart_sort.buckets:
        if not bucket.enabled:
            continue
        if _conditions_use(bucket.conditions, kind):
            return True
        if any(_conditions_use(g.conditions, kind) for g in bucket.condition_groups):
            return True
        if any(c.source == kind for c in bucket.sort_criteria):
            return True
    for segment in smart_sort.segments:
        if segment.enabled and (segment.source == kind or _conditions_use(segment.conditions, kind)):
            return True
    return False


class NoteRulesRunner:
    def __init__(self, settings: CompanionSettings, *, now: Optional[datetime] = None):
        self._settings = settings
        self._now = now

    def _desired(self, result: RuleFieldResult, clear_when_no_match: bool) -> object:
        if result.matched:
            return result.value
        return None if clear_when_no_match else _UNCHANGED

    def evaluate(self, ctx: RuleEvaluationContext, engine: RuleEngine) -> NoteEvaluation:
        settings = self._settings
        updates: Dict[str, FrontmatterUpdate] = {}

        visual = engine.resolve_visual_outputs(settings.rules, ctx)
        icon = self._desired(visual.icon, settings.clear_icon_when_no_match)
        color = self._desired(visual.color, settings.clear_color_when_no_match)
        icon_field = settings.frontmatter_icon_field
        color_field = settings.frontmatter_color_field
        if icon_field.lower() == color_field.lower():
            # One shared field: the icon takes precedence.
            merged = icon if icon is not _UNCHANGED else color
            if merged is not _UNCHANGED:
                updates[icon_field] = merged
        else:
            if icon is not _UNCHANGED:
                updates[icon_field] = icon
            if color is not _UNCHANGED:
                updates[color_field] = color

        sort_key: Optional[str] = None
        bucket_index: Optional[int] = None
        if settings.smart_sort.enabled:
            key = engine.build_sort_key(settings.smart_sort, ctx)
            sort_key, bucket_index = key.value or None, key.bucket_index
            if sort_key:
                updates[settings.smart_sort.field] = sort_key
            elif settings.smart_sort.clear_when_no_match:
                updates[settings.smart_sort.field] = None

        hide_changes = engine.compute_hide_changes(settings.hide_rules, ctx)
        if not hide_changes.empty:
            tags, changed = apply_tag_changes(ctx.get_frontmatter_value("tags"), hide_changes)
            if changed:
                updates["tags"] = tags

        return NoteEvaluation(
            path=ctx.file.path,
            visual=visual,
            sort_key=sort_key,
            bucket_index=bucket_index,
            hide_changes=hide_changes,
            frontmatter_updates=updates,
        )

    def run(self, contexts: Iterable[RuleEvaluationContext]) -> RuleRunReport:
        now = self._now if self._now is not None else datetime.now()
        engine = RuleEngine(now=now)
        contexts = list(contexts)

        notes = []
        if self._settings.enabled:
            notes = [self.evaluate(ctx, engine) for ctx in contexts]
        else:
            logger.info("Note rules are disabled; skipping %d notes", len(contexts))

        uses_buckets = bool(self._settings.smart_sort.buckets)
        totals: dict[str, int] = {
            "notes": len(notes),
            "icon": sum(1 for n in notes if n.visual.icon.matched),
            "color": sum(1 for n in notes if n.visual.color.matched),
            "hidden": sum(1 for n in notes if n.hide_changes.add),
            "unmatched_sort": sum(
                1 for n in notes if uses_buckets and n.sort_key is not None and n.bucket_index is None
            ),
            "skipped": len(contexts) - len(notes),
        }

        report = RuleRunReport(
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            evaluated_at=now,
            notes=notes,
            totals=totals,
        )
        logger.debug("Rule run %s finished: %s", report.run_id, totals)
        return report
