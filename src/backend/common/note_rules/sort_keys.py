"""Composite sort keys.

A key is a list of fragments joined by the configured separator:

    <bucket index | 999> [criterion fragments...] [basename]

Lexicographic comparison of keys orders notes by bucket first, then by each
criterion of the matched bucket in declared order. Descending criteria are
encoded by complementing digits, which only orders correctly for fixed-width
digit fragments (dates and zero-padded numbers).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, Sequence

from .config import DEFAULT_SEPARATOR, SmartSortSettings, SortBucket, SortCriteria, SortSegmentRule, SortValueMapping
from .context import RuleEvaluationContext
from .dates import format_sort_timestamp, is_date_field, is_modified_field, looks_like_date_value, parse_date_like
from .matcher import matches_bucket, matches_segment
from .models import ConditionSource, MissingValuePlacement, SortDirection, SortFieldType
from .normalize import invert_sort_value, normalize_sort_key_part
from .values import resolve_values

logger = logging.getLogger(__name__)

UNMATCHED_BUCKET = "999"

_DATE_VALUE_SOURCES = (
    ConditionSource.FRONTMATTER,
    ConditionSource.DATE_CREATED,
    ConditionSource.DATE_MODIFIED,
)
_DATE_PLACEHOLDERS = {MissingValuePlacement.FIRST: "0000-00-00", MissingValuePlacement.LAST: "9999-12-31"}
_TEXT_PLACEHOLDERS = {MissingValuePlacement.FIRST: "000", MissingValuePlacement.LAST: "999"}


class SortKey(NamedTuple):
    value: str
    # Index of the matched bucket; None when no bucket matched or legacy segments were used.
    bucket_index: Optional[int]


def _first_value(values: Iterable[str]) -> str:
    for value in values:
        text = str(value or "").strip()
        if text:
            return text
    return ""


def _day_precision(source: ConditionSource, field: str) -> bool:
    # Writing a key bumps the modified time; second precision would rewrite the key on every pass.
    if source == ConditionSource.DATE_MODIFIED:
        return True
    return source == ConditionSource.FRONTMATTER and is_modified_field(field)


def apply_mapping(value: str, mappings: Sequence[SortValueMapping]) -> str:
    """Output of the first mapping whose input equals `value` ignoring case, else ""."""
    needle = str(value or "").strip().lower()
    if not needle:
        return ""
    for mapping in mappings:
        if mapping.input.strip().lower() == needle:
            return mapping.output.strip()
    return ""


def normalize_date_sort_value(
    source: ConditionSource,
    field: str,
    raw: str,
    *,
    explicit_date: bool = False,
) -> str:
    """Format a date-like value as YYYY-MM-DD-HH-MM-SS (local time), or "" if it is not one."""
    value = str(raw or "").strip()
    if not value or source not in _DATE_VALUE_SOURCES:
        return ""
    if not (explicit_date or is_date_field(field) or looks_like_date_value(value)):
        return ""

    parsed = parse_date_like(value)
    if parsed is None:
        return ""
    formatted = format_sort_timestamp(parsed)
    return formatted[:10] if _day_precision(source, field) else formatted


def is_date_criteria(criteria: SortCriteria) -> bool:
    """Criteria whose empty values may be recovered from a date-named file."""
    if criteria.source != ConditionSource.FRONTMATTER:
        return False
    return is_date_field(criteria.field) or criteria.type == SortFieldType.DATE


def missing_placeholder(criteria: SortCriteria) -> str:
    # Only an explicit date type gets date-shaped placeholders; date-named text fields use "000"/"999".
    if criteria.type == SortFieldType.DATE:
        return _DATE_PLACEHOLDERS[criteria.missing_value_placement]
    return _TEXT_PLACEHOLDERS[criteria.missing_value_placement]


def criterion_value(criteria: SortCriteria, ctx: RuleEvaluationContext) -> str:
    first = _first_value(resolve_values(criteria.source, criteria.field, ctx))
    explicit_date = criteria.type == SortFieldType.DATE

    value = apply_mapping(first, criteria.mappings)
    if not value:
        value = normalize_date_sort_value(criteria.source, criteria.field, first, explicit_date=explicit_date)
    if not value and is_date_criteria(criteria):
        value = normalize_date_sort_value(
            criteria.source, criteria.field, ctx.file.basename, explicit_date=explicit_date
        )
    if not value and first and not explicit_date:
        value = first[:10] if _day_precision(criteria.source, criteria.field) else first
    if not value:
        value = criteria.fallback.strip()
    if not value:
        value = missing_placeholder(criteria)

    return invert_sort_value(value) if criteria.direction == SortDirection.DESC else value


def segment_value(segment: SortSegmentRule, ctx: RuleEvaluationContext) -> str:
    first = _first_value(resolve_values(segment.source, segment.field, ctx))

    value = apply_mapping(first, segment.mappings)
    if not value:
        value = normalize_date_sort_value(segment.source, segment.field, first)
    if not value and segment.source == ConditionSource.FRONTMATTER and is_date_field(segment.field):
        value = normalize_date_sort_value(segment.source, segment.field, ctx.file.basename)
    return value or first or segment.fallback.strip()


def find_matching_bucket(
    buckets: Sequence[SortBucket],
    ctx: RuleEvaluationContext,
    *,
    now: datetime,
) -> Optional[int]:
    for index, bucket in enumerate(buckets):
        if bucket.enabled and matches_bucket(bucket, ctx, now=now):
            return index
    return None


def _separator(settings: SmartSortSettings) -> str:
    return settings.separator.strip() or DEFAULT_SEPARATOR


def _bucket_parts(
    settings: SmartSortSettings, ctx: RuleEvaluationContext, now: datetime
) -> tuple[List[str], Optional[int]]:
    index = find_matching_bucket(settings.buckets, ctx, now=now)
    if index is None:
        return [UNMATCHED_BUCKET], None
    parts = [f"{index:03d}"]
    parts.extend(criterion_value(c, ctx) for c in settings.buckets[index].sort_criteria)
    return parts, index


def _segment_parts(settings: SmartSortSettings, ctx: RuleEvaluationContext, now: datetime) -> List[str]:
    return [
        segment_value(segment, ctx)
        for segment in settings.segments
        if segment.enabled and matches_segment(segment, ctx, now=now)
    ]


def build_sort_key(settings: SmartSortSettings, ctx: RuleEvaluationContext, *, now: datetime) -> SortKey:
    separator = _separator(settings)

    # Settings that predate buckets only carry ordered segments.
    if not settings.buckets and settings.segments:
        raw_parts, index = _segment_parts(settings, ctx, now), None
    else:
        raw_parts, index = _bucket_parts(settings, ctx, now)

    if settings.append_basename:
        raw_parts.append(ctx.file.basename)

    parts = [p for p in (normalize_sort_key_part(raw, separator) for raw in raw_parts) if p]
    key = separator.join(parts)
    logger.debug("Sort key for %s: bucket=%s key=%r", ctx.file.path, index, key)
    return SortKey(value=key, bucket_index=index)


def compose_sort_key(settings: SmartSortSettings, ctx: RuleEvaluationContext, *, now: datetime) -> str:
    return build_sort_key(settings, ctx, now=now).value
