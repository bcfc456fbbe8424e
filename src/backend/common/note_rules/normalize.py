"""String normalization shared by value resolution and sort key composition."""

from __future__ import annotations

import re
from typing import Any

_REPEATED_SLASHES = re.compile(r"/+")
_LINE_BREAKS = re.compile(r"[\r\n\t]+")
_WHITESPACE = re.compile(r"\s+")
_LEADING_HASHES = re.compile(r"^#+")
_TAG_SPLIT = re.compile(r"[\s,]+")


def normalize_path(path: str) -> str:
    normalized = _REPEATED_SLASHES.sub("/", str(path or "").replace("\\", "/"))
    return normalized.strip("/")


def folder_path(file_path: str) -> str:
    """Folder portion of a note path; empty for notes at the vault root."""
    normalized = normalize_path(file_path)
    if "/" not in normalized:
        return ""
    return normalized.rsplit("/", 1)[0]


def normalize_tag(raw: Any) -> str:
    value = str(raw if raw is not None else "").strip()
    if not value:
        return ""
    return _LEADING_HASHES.sub("", value).lower()


def invert_sort_value(value: str) -> str:
    # Only ASCII digits flip (d -> 9 - d); separators and letters are kept as-is.
    return "".join(chr(105 - ord(ch)) if "0" <= ch <= "9" else ch for ch in value)


def normalize_sort_key_part(raw: Any, separator: str) -> str:
    part = str(raw if raw is not None else "").strip()
    if not part:
        return ""
    part = _LINE_BREAKS.sub(" ", part)
    part = _WHITESPACE.sub("-", part)
    if separator:
        part = part.replace(separator, "-")
    return part.strip("-_")


def parse_tag_list(raw: Any) -> list[str]:
    """Normalized, de-duplicated tags from a frontmatter `tags` value (list or "a, b c" text)."""
    if isinstance(raw, (list, tuple)):
        tags = [normalize_tag(t) for t in raw]
    elif isinstance(raw, str):
        tags = [normalize_tag(t) for t in _TAG_SPLIT.split(raw)]
    else:
        tags = []
    return list(dict.fromkeys(t for t in tags if t))
