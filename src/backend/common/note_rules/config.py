from __future__ import annotations

import json
import logging
import os
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator

from .dates import parse_date_like
from .models import (
    LEGACY_OPERATORS,
    ConditionSource,
    HideMode,
    MatchMode,
    MissingValuePlacement,
    NoteRulesModel,
    Operator,
    SortDirection,
    SortFieldType,
)
from .normalize import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "_"
DEFAULT_SORT_FIELD = "navigator_sort"
# Host-owned keys that rule output must never overwrite.
PROTECTED_FRONTMATTER_KEYS = frozenset({"externaleventid", "tpscalendaruid"})

_MAPPING_PAIR = re.compile(r"^(?P<input>[^=:]+)[=:](?P<output>.+)$")


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value).strip()
    return str(value).strip()


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _safe_field(value: Any, default: str) -> str:
    normalized = re.sub(r"\s+", "", _as_str(value)) or default
    if normalized.lower() in PROTECTED_FRONTMATTER_KEYS:
        logger.warning(
            "Blocked protected frontmatter field %r in settings; falling back to %r", normalized, default
        )
        return default
    return normalized


def infer_field_type(field: str) -> SortFieldType:
    lower = field.lower()
    if "date" in lower or lower in ("scheduled", "due", "deadline"):
        return SortFieldType.DATE
    if lower == "status":
        return SortFieldType.STATUS
    if lower == "priority":
        return SortFieldType.PRIORITY
    return SortFieldType.TEXT


class RuleCondition(NoteRulesModel):
    # Source and operator stay raw text; the matcher parses them and fails closed on unknown values.
    source: str = ConditionSource.FRONTMATTER.value
    field: str = ""
    operator: str = Operator.IS.value
    value: str = ""

    @field_validator("source", "field", "operator", "value", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_str(value)

    @model_validator(mode="after")
    def _warn_unknown(self) -> "RuleCondition":
        if ConditionSource.parse(self.source) is None:
            logger.warning("Condition source %r is not supported; the condition will never match", self.source)
        if Operator.parse(self.operator) is None:
            logger.warning("Condition operator %r is not supported; the condition will never match", self.operator)
        return self


class _MatchModeMixin(NoteRulesModel):
    match: MatchMode = MatchMode.ALL

    @field_validator("match", mode="before")
    @classmethod
    def _coerce_match(cls, value: Any) -> MatchMode:
        return MatchMode.ANY if _as_str(value).lower() == MatchMode.ANY.value else MatchMode.ALL


class ConditionGroup(_MatchModeMixin):
    id: str = Field(default_factory=lambda: _new_id("group"))
    conditions: List[RuleCondition] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def _coerce_conditions(cls, value: Any) -> List[Any]:
        return _as_list(value)


class IconColorRule(_MatchModeMixin):
    id: str = Field(default_factory=lambda: _new_id("rule"))
    name: str = ""
    enabled: bool = True
    conditions: List[RuleCondition] = Field(default_factory=list)

    # Single-condition fields that predate `conditions`; only read when `conditions` is empty.
    property: str = ""
    operator: str = Operator.IS.value
    value: str = ""
    path_prefix: str = ""

    icon: str = ""
    color: str = ""

    @field_validator("conditions", mode="before")
    @classmethod
    def _coerce_conditions(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("name", "property", "value", "icon", "color", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_str(value)

    @field_validator("operator", mode="before")
    @classmethod
    def _coerce_legacy_operator(cls, value: Any) -> str:
        op = Operator.parse(value)
        return op.value if op in LEGACY_OPERATORS else Operator.IS.value

    @field_validator("path_prefix", mode="before")
    @classmethod
    def _coerce_path_prefix(cls, value: Any) -> str:
        return normalize_path(_as_str(value))


class HideRule(_MatchModeMixin):
    id: str = Field(default_factory=lambda: _new_id("hide-rule"))
    name: str = ""
    enabled: bool = True
    conditions: List[RuleCondition] = Field(default_factory=list)
    mode: HideMode = HideMode.ADD
    tag_name: str = "hide"

    @field_validator("conditions", mode="before")
    @classmethod
    def _coerce_conditions(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> HideMode:
        return HideMode.REMOVE if _as_str(value).lower() == HideMode.REMOVE.value else HideMode.ADD

    @field_validator("tag_name", mode="before")
    @classmethod
    def _coerce_tag_name(cls, value: Any) -> str:
        return _as_str(value) or "hide"


class SortValueMapping(NoteRulesModel):
    input: str
    output: str


def sanitize_mappings(raw: Any) -> List[Dict[str, str]]:
    """Accept `[{input, output}]`, `{input: output}` or `"high=1, low:3"`; drop blank pairs."""
    pairs: List[tuple[str, str]] = []
    if isinstance(raw, (list, tuple)):
        for entry in raw:
            if isinstance(entry, SortValueMapping):
                pairs.append((entry.input, entry.output))
            elif isinstance(entry, dict):
                pairs.append((_as_str(entry.get("input")), _as_str(entry.get("output"))))
    elif isinstance(raw, str):
        for chunk in raw.split(","):
            m = _MAPPING_PAIR.match(chunk.strip())
            if m:
                pairs.append((m.group("input").strip(), m.group("output").strip()))
    elif isinstance(raw, dict):
        pairs.extend((_as_str(k), _as_str(v)) for k, v in raw.items())
    return [{"input": i, "output": o} for i, o in pairs if i and o]


class _SortValueSourceMixin(NoteRulesModel):
    source: ConditionSource = ConditionSource.FRONTMATTER
    field: str = ""
    mappings: List[SortValueMapping] = Field(default_factory=list)

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> ConditionSource:
        return ConditionSource.parse(value) or ConditionSource.FRONTMATTER

    @field_validator("field", mode="before")
    @classmethod
    def _coerce_field(cls, value: Any) -> str:
        return _as_str(value)

    @field_validator("mappings", mode="before")
    @classmethod
    def _coerce_mappings(cls, value: Any) -> List[Dict[str, str]]:
        return sanitize_mappings(value)


class SortCriteria(_SortValueSourceMixin):
    type: SortFieldType = SortFieldType.TEXT
    direction: SortDirection = SortDirection.ASC
    missing_value_placement: MissingValuePlacement = MissingValuePlacement.LAST
    fallback: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> SortFieldType:
        try:
            return SortFieldType(_as_str(value).lower())
        except ValueError:
            return SortFieldType.TEXT

    @field_validator("direction", mode="before")
    @classmethod
    def _coerce_direction(cls, value: Any) -> SortDirection:
        return SortDirection.DESC if _as_str(value).lower() == SortDirection.DESC.value else SortDirection.ASC

    @field_validator("missing_value_placement", mode="before")
    @classmethod
    def _coerce_placement(cls, value: Any) -> MissingValuePlacement:
        if _as_str(value).lower() == MissingValuePlacement.FIRST.value:
            return MissingValuePlacement.FIRST
        return MissingValuePlacement.LAST

    @field_validator("fallback", mode="before")
    @classmethod
    def _coerce_fallback(cls, value: Any) -> str:
        return _as_str(value)


class SortBucket(_MatchModeMixin):
    id: str = Field(default_factory=lambda: _new_id("bucket"))
    name: str = ""
    enabled: bool = True
    conditions: List[RuleCondition] = Field(default_factory=list)
    condition_groups: List[ConditionGroup] = Field(default_factory=list)
    sort_criteria: List[SortCriteria] = Field(default_factory=list)

    @field_validator("conditions", "condition_groups", "sort_criteria", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class SortSegmentRule(_MatchModeMixin, _SortValueSourceMixin):
    """Legacy ordered segment: contributes one key part whenever its conditions match."""

    id: str = Field(default_factory=lambda: _new_id("sort-segment"))
    enabled: bool = True
    fallback: str = ""
    conditions: List[RuleCondition] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def _coerce_conditions(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("fallback", mode="before")
    @classmethod
    def _coerce_fallback(cls, value: Any) -> str:
        return _as_str(value)


def _is_legacy_segment(record: Any) -> bool:
    return (
        isinstance(record, dict)
        and "fallback" in record
        and "sortCriteria" not in record
        and "sort_criteria" not in record
    )


def migrate_legacy_segment(record: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a segment stored in the bucket list into a one-criterion bucket."""
    field = _as_str(record.get("field"))
    return {
        "id": _as_str(record.get("id")) or _new_id("bucket"),
        "enabled": record.get("enabled", True),
        "name": f"Migrated: {field or 'Unnamed'}",
        "match": record.get("match"),
        "conditions": record.get("conditions"),
        "sort_criteria": [
            {
                "source": record.get("source"),
                "field": field,
                "type": infer_field_type(field),
                "direction": SortDirection.ASC,
                "mappings": record.get("mappings", record.get("map")),
                "missing_value_placement": MissingValuePlacement.LAST,
            }
        ],
    }


class SmartSortSettings(NoteRulesModel):
    enabled: bool = False
    field: str = DEFAULT_SORT_FIELD
    separator: str = DEFAULT_SEPARATOR
    append_basename: bool = True
    clear_when_no_match: bool = False
    buckets: List[SortBucket] = Field(default_factory=list)
    segments: List[SortSegmentRule] = Field(default_factory=list)

    @field_validator("field", mode="before")
    @classmethod
    def _coerce_field(cls, value: Any) -> str:
        return _safe_field(value, DEFAULT_SORT_FIELD)

    @field_validator("separator", mode="before")
    @classmethod
    def _coerce_separator(cls, value: Any) -> str:
        return _as_str(value)[:3] or DEFAULT_SEPARATOR

    @field_validator("buckets", mode="before")
    @classmethod
    def _coerce_buckets(cls, value: Any) -> List[Any]:
        return [migrate_legacy_segment(b) if _is_legacy_segment(b) else b for b in _as_list(value)]

    @field_validator("segments", mode="before")
    @classmethod
    def _coerce_segments(cls, value: Any) -> List[Any]:
        return _as_list(value)


class CompanionSettings(NoteRulesModel):
    """The full persisted configuration consumed by the runner."""

    enabled: bool = True
    frontmatter_icon_field: str = "icon"
    frontmatter_color_field: str = "color"
    clear_icon_when_no_match: bool = False
    clear_color_when_no_match: bool = False
    debug_logging: bool = False
    rules: List[IconColorRule] = Field(default_factory=list)
    smart_sort: SmartSortSettings = Field(default_factory=SmartSortSettings)
    hide_rules: List[HideRule] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _migrate_sort_rules(cls, data: Any) -> Any:
        # Oldest settings kept sort segments in a top-level `sortRules` list.
        if not isinstance(data, dict) or not isinstance(data.get("sortRules"), list):
            return data
        data = dict(data)
        smart_sort = dict(data.get("smartSort") or data.get("smart_sort") or {})
        if not isinstance(smart_sort.get("segments"), list):
            smart_sort["segments"] = data["sortRules"]
        data.pop("smart_sort", None)
        data["smartSort"] = smart_sort
        return data

    @field_validator("frontmatter_icon_field", mode="before")
    @classmethod
    def _coerce_icon_field(cls, value: Any) -> str:
        return _safe_field(value, "icon")

    @field_validator("frontmatter_color_field", mode="before")
    @classmethod
    def _coerce_color_field(cls, value: Any) -> str:
        return _safe_field(value, "color")

    @field_validator("rules", "hide_rules", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("smart_sort", mode="before")
    @classmethod
    def _coerce_smart_sort(cls, value: Any) -> Any:
        return value if value is not None else {}


def load_settings(path: Path) -> CompanionSettings:
    """Load settings from a JSON or YAML file. A missing file yields defaults."""
    if not path.exists():
        return CompanionSettings()
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text) if text.strip() else {}
    if raw is None:
        return CompanionSettings()
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain an object: {path}")
    return CompanionSettings.model_validate(raw)


@dataclass(frozen=True)
class RuntimeConfig:
    log_level: str
    debug: bool
    now: Optional[datetime]

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


def get_runtime_config() -> RuntimeConfig:
    """
    Load runtime options from environment variables (a local .env is honored):
      NOTE_RULES_LOG_LEVEL, NOTE_RULES_DEBUG, NOTE_RULES_NOW
    """
    load_dotenv()
    log_level = os.getenv("NOTE_RULES_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    debug = os.getenv("NOTE_RULES_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")
    return RuntimeConfig(log_level=log_level, debug=debug, now=_optional_timestamp_env("NOTE_RULES_NOW"))


def _optional_timestamp_env(name: str) -> Optional[datetime]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    parsed = parse_date_like(value, allow_epoch=False)
    if parsed is None:
        raise ValueError(f"Invalid timestamp in environment variable: {name}")
    return parsed
