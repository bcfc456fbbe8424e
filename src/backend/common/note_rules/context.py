from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from .models import Backlink, FileDescriptor
from .normalize import folder_path


@dataclass(frozen=True)
class RuleEvaluationContext:
    """One note under evaluation. Built by the caller; the engine only reads it."""

    file: FileDescriptor
    frontmatter: Mapping[str, Any] = field(default_factory=dict)
    tags: tuple[str, ...] = ()
    backlinks: tuple[Backlink, ...] = ()
    body: Optional[str] = None
    _frontmatter_keys: Dict[str, str] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.file is None:
            raise TypeError("RuleEvaluationContext requires a file descriptor")
        if isinstance(self.file, Mapping):
            object.__setattr__(self, "file", FileDescriptor.model_validate(self.file))

        frontmatter = self.frontmatter if isinstance(self.frontmatter, Mapping) else {}
        object.__setattr__(self, "frontmatter", frontmatter)
        object.__setattr__(self, "tags", tuple(str(t) for t in (self.tags or ()) if t is not None))
        object.__setattr__(self, "backlinks", _coerce_backlinks(self.backlinks or ()))

        # Case-insensitive key index; the first key in document order wins.
        keys: Dict[str, str] = {}
        for key in frontmatter:
            keys.setdefault(str(key).lower(), key)
        object.__setattr__(self, "_frontmatter_keys", keys)

    @property
    def folder_path(self) -> str:
        return folder_path(self.file.path)

    def has_frontmatter_key(self, key: str) -> bool:
        if key in self.frontmatter:
            return True
        return str(key).lower() in self._frontmatter_keys

    def get_frontmatter_value(self, key: str) -> Any:
        if key in self.frontmatter:
            return self.frontmatter[key]
        existing = self._frontmatter_keys.get(str(key).lower())
        if existing is None:
            return None
        return self.frontmatter[existing]


def _coerce_backlinks(raw: Iterable[Any]) -> tuple[Backlink, ...]:
    links = []
    for item in raw:
        if isinstance(item, Backlink):
            links.append(item)
        else:
            links.append(Backlink.model_validate(item))
    return tuple(links)
