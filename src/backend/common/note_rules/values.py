"""Resolve a condition source into the comparable string values of one note."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Iterable, List, Union

from .context import RuleEvaluationContext
from .dates import format_iso_timestamp
from .models import ConditionSource
from .normalize import normalize_tag, parse_tag_list

FOLDER_PATH_FIELD = "folderpath"


def _unique(values: Iterable[str]) -> List[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return list(seen)


def to_comparable_values(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        out: List[str] = []
        for item in value:
            out.extend(to_comparable_values(item))
        return out
    if isinstance(value, str):
        trimmed = value.strip()
        return [trimmed] if trimmed else []
    if isinstance(value, bool):
        return ["true" if value else "false"]
    if isinstance(value, float) and value.is_integer():
        return [str(int(value))]
    if isinstance(value, (int, float)):
        return [str(value)]
    if isinstance(value, (datetime, date)):
        return [value.isoformat()]
    try:
        return [json.dumps(value, separators=(",", ":"), default=str)]
    except (TypeError, ValueError):
        return [str(value)]


def collect_tags(ctx: RuleEvaluationContext) -> List[str]:
    tags = [normalize_tag(t) for t in ctx.tags]

    tags.extend(parse_tag_list(ctx.get_frontmatter_value("tags")))

    return _unique(tags)


def _backlink_values(ctx: RuleEvaluationContext, field: str) -> List[str]:
    target_field = (field or "").strip().lower()
    values: List[str] = []
    for link in ctx.backlinks:
        if target_field and (link.key or "").strip().lower() != target_field:
            continue
        values.append(link.source_path)
        values.append(link.source_basename)
    return _unique(values)


def resolve_values(
    source: Union[ConditionSource, str],
    field: str,
    ctx: RuleEvaluationContext,
) -> List[str]:
    """Return the values a condition on `source`/`field` compares against. Never raises."""
    kind = ConditionSource.parse(source)
    if kind is None:
        return []

    if kind == ConditionSource.PATH:
        folder = ctx.folder_path
        return [folder] if folder else []

    if kind == ConditionSource.EXTENSION:
        extension = (ctx.file.extension or "").strip()
        return [extension] if extension else []

    if kind == ConditionSource.NAME:
        return _unique([(ctx.file.name or "").strip(), (ctx.file.basename or "").strip()])

    if kind == ConditionSource.TAG:
        return collect_tags(ctx)

    if kind == ConditionSource.BODY:
        return [ctx.body] if ctx.body else []

    if kind == ConditionSource.BACKLINK:
        return _backlink_values(ctx, field)

    if kind == ConditionSource.DATE_CREATED:
        return [format_iso_timestamp(ctx.file.ctime)] if ctx.file.ctime else []

    if kind == ConditionSource.DATE_MODIFIED:
        return [format_iso_timestamp(ctx.file.mtime)] if ctx.file.mtime else []

    key = (field or "").strip()
    if not key:
        return []
    if key.lower() == FOLDER_PATH_FIELD:
        return resolve_values(ConditionSource.PATH, "", ctx)
    return to_comparable_values(ctx.get_frontmatter_value(key))
