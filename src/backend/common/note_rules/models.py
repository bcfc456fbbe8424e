from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class NoteRulesModel(BaseModel):
    # Persisted settings use the host's camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ConditionSource(str, Enum):
    FRONTMATTER = "frontmatter"
    TAG = "tag"
    PATH = "path"
    EXTENSION = "extension"
    NAME = "name"
    BODY = "body"
    BACKLINK = "backlink"
    DATE_CREATED = "date-created"
    DATE_MODIFIED = "date-modified"

    @classmethod
    def parse(cls, value: Any) -> Optional["ConditionSource"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip())
        except ValueError:
            return None


class Operator(str, Enum):
    IS = "is"
    NOT_IS = "!is"
    CONTAINS = "contains"
    NOT_CONTAINS = "!contains"
    STARTS = "starts"
    NOT_STARTS = "!starts"
    EXISTS = "exists"
    NOT_EXISTS = "!exists"
    IS_NOT_EMPTY = "is-not-empty"
    WITHIN_NEXT_DAYS = "within-next-days"
    NOT_WITHIN_NEXT_DAYS = "!within-next-days"
    HAS_OPEN_CHECKBOXES = "has-open-checkboxes"
    NOT_HAS_OPEN_CHECKBOXES = "!has-open-checkboxes"
    IS_TODAY = "is-today"
    NOT_IS_TODAY = "!is-today"
    IS_BEFORE_TODAY = "is-before-today"
    NOT_IS_BEFORE_TODAY = "!is-before-today"
    IS_AFTER_TODAY = "is-after-today"
    NOT_IS_AFTER_TODAY = "!is-after-today"

    @classmethod
    def parse(cls, value: Any) -> Optional["Operator"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip())
        except ValueError:
            return None

    @property
    def negated(self) -> bool:
        return self.value.startswith("!")

    @property
    def positive(self) -> "Operator":
        if self.negated:
            return Operator(self.value[1:])
        return self


# Operators accepted by the single-condition fields that predate condition groups.
LEGACY_OPERATORS = frozenset(
    {
        Operator.IS,
        Operator.NOT_IS,
        Operator.CONTAINS,
        Operator.NOT_CONTAINS,
        Operator.EXISTS,
        Operator.NOT_EXISTS,
    }
)


class MatchMode(str, Enum):
    ALL = "all"
    ANY = "any"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class MissingValuePlacement(str, Enum):
    FIRST = "first"
    LAST = "last"


class SortFieldType(str, Enum):
    DATE = "date"
    STATUS = "status"
    PRIORITY = "priority"
    TEXT = "text"
    NUMBER = "number"


class HideMode(str, Enum):
    ADD = "add"
    REMOVE = "remove"


def _normalize_slashes(path: str) -> str:
    return str(path or "").replace("\\", "/")


class FileDescriptor(NoteRulesModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)

    path: str
    name: str = ""
    basename: str = ""
    extension: str = ""
    ctime: Optional[datetime] = None
    mtime: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        pure = PurePosixPath(_normalize_slashes(data.get("path", "")))
        if not data.get("name"):
            data["name"] = pure.name
        if not data.get("basename"):
            data["basename"] = pure.stem
        if not data.get("extension"):
            data["extension"] = pure.suffix.lstrip(".")
        return data


class Backlink(NoteRulesModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)

    source_path: str
    source_basename: str = ""
    # Frontmatter property the source note linked through; None for body links.
    key: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_basename(cls, data: Any) -> Any:
        if isinstance(data, str):
            data = {"source_path": data}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        path = data.get("source_path", data.get("sourcePath", ""))
        if not data.get("source_basename") and not data.get("sourceBasename"):
            data["source_basename"] = PurePosixPath(_normalize_slashes(path)).stem
        return data


class RuleFieldResult(NoteRulesModel):
    matched: bool = False
    value: str = ""
    rule_id: Optional[str] = None


class VisualRuleResult(NoteRulesModel):
    icon: RuleFieldResult = Field(default_factory=RuleFieldResult)
    color: RuleFieldResult = Field(default_factory=RuleFieldResult)


class HideChanges(NoteRulesModel):
    add: List[str] = Field(default_factory=list)
    remove: List[str] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.add and not self.remove


FrontmatterUpdate = Union[str, List[str], None]


class NoteEvaluation(NoteRulesModel):
    path: str
    visual: VisualRuleResult = Field(default_factory=VisualRuleResult)
    sort_key: Optional[str] = None
    bucket_index: Optional[int] = None
    hide_changes: HideChanges = Field(default_factory=HideChanges)
    # Desired frontmatter values; a None value means "clear the field". Absent keys are left untouched.
    frontmatter_updates: Dict[str, FrontmatterUpdate] = Field(default_factory=dict)


class RuleRunReport(NoteRulesModel):
    run_id: str
    generated_at: datetime
    evaluated_at: datetime

    notes: List[NoteEvaluation] = Field(default_factory=list)
    totals: Dict[str, int] = Field(default_factory=dict)

    def sorted_notes(self) -> List[NoteEvaluation]:
        return sorted(self.notes, key=lambda n: (n.sort_key is None, n.sort_key or "", n.path))
