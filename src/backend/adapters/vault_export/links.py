from __future__ import annotations

import re
from collections import defaultdict
from pathlib import PurePosixPath
from typing import Any, Dict, Iterable, List, Optional

from common.note_rules.normalize import normalize_path

# [[target]], [[target|alias]], [[target#heading]], [[target#heading|alias]]
WIKI_LINK = re.compile(r"\[\[(?P<target>[^\]|#]*)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]")


def extract_wiki_links(value: Any) -> List[str]:
    """Wiki link targets inside a frontmatter value (strings, lists and nested mappings)."""
    if isinstance(value, str):
        return [m.group("target").strip() for m in WIKI_LINK.finditer(value) if m.group("target").strip()]
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for item in value:
            out.extend(extract_wiki_links(item))
        return out
    if isinstance(value, dict):
        return extract_wiki_links(list(value.values()))
    return []


class LinkResolver:
    """Resolve link text to a note path: exact path, path without ".md", then unique basename."""

    def __init__(self, paths: Iterable[str]):
        self._paths: Dict[str, str] = {}
        self._basenames: Dict[str, List[str]] = defaultdict(list)
        for path in paths:
            normalized = normalize_path(path)
            self._paths[normalized.lower()] = path
            self._basenames[PurePosixPath(normalized).stem.lower()].append(path)

    def resolve(self, target: str) -> Optional[str]:
        key = normalize_path(target).lower()
        if not key:
            return None
        if key in self._paths:
            return self._paths[key]
        if f"{key}.md" in self._paths:
            return self._paths[f"{key}.md"]
        candidates = self._basenames.get(key, [])
        if len(candidates) == 1:
            return candidates[0]
        return None
