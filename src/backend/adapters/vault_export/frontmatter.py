from __future__ import annotations

import re
from typing import Any, Dict, Tuple

import yaml

# A YAML header delimited by "---" lines at the very start of the note.
_FRONTMATTER_BLOCK = re.compile(r"\A---[ \t]*\r?\n(?P<yaml>.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a markdown note into (frontmatter, body).

    Notes without a header return an empty mapping and the text unchanged.
    """
    match = _FRONTMATTER_BLOCK.match(text or "")
    if not match:
        return {}, text or ""

    try:
        data = yaml.safe_load(match.group("yaml"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML frontmatter: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Frontmatter must be a mapping of keys to values.")
    return {str(k): v for k, v in data.items()}, text[match.end():]
