from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from common.note_rules.context import RuleEvaluationContext
from common.note_rules.dates import parse_date_like
from common.note_rules.models import Backlink, FileDescriptor

from .frontmatter import split_frontmatter
from .links import WIKI_LINK, LinkResolver, extract_wiki_links


def contexts_from_manifest(
    manifest: dict[str, Any],
    *,
    include_body: bool = True,
) -> List[RuleEvaluationContext]:
    """
    Build one RuleEvaluationContext per note of an exported vault manifest.

    Expected shape:
      {
        "notes": [
          {
            "path": "Folder/Note.md",
            "frontmatter": { ... },
            "content": "---\\nstatus: open\\n---\\nbody",
            "body": "...",
            "tags": ["#work"],
            "ctime": "2026-02-12T09:00:00",
            "mtime": 1770886800000,
            "links": ["Other Note", "Folder/Third.md"]
          }
        ]
      }

    Notes:
    - path is required; every other field is optional
    - "content" is split into frontmatter and body when those are not given
    - backlinks are derived across the whole manifest: wiki links inside a frontmatter
      value are keyed by that property, `links` (or body wiki links) are unkeyed
    """
    entries = _parse_entries(_select_notes(manifest))
    resolver = LinkResolver(e["path"] for e in entries)
    backlinks = _collect_backlinks(entries, resolver)

    contexts: List[RuleEvaluationContext] = []
    for entry in entries:
        path = entry["path"]
        contexts.append(
            RuleEvaluationContext(
                file=FileDescriptor(path=path, ctime=entry["ctime"], mtime=entry["mtime"]),
                frontmatter=entry["frontmatter"],
                tags=tuple(entry["tags"]),
                backlinks=tuple(backlinks.get(path, ())),
                body=entry["body"] if include_body else None,
            )
        )
    return contexts


def _select_notes(manifest: dict[str, Any]) -> Iterable[Any]:
    if not isinstance(manifest, dict):
        raise ValueError("Note manifest must be an object.")
    if "notes" in manifest:
        return manifest.get("notes") or []
    if "files" in manifest:
        return manifest.get("files") or []
    return []


def _parse_entries(raw_entries: Iterable[Any]) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw_entries):
        if not isinstance(entry, dict):
            raise ValueError("Note manifest entries must be objects.")
        path = str(entry.get("path") or "").strip()
        if not path:
            raise ValueError(f"Note entry {index} missing required field: path")
        if path in seen:
            raise ValueError(f"Duplicate note path in manifest: {path}")
        seen.add(path)

        frontmatter = entry.get("frontmatter")
        body = entry.get("body")
        content = entry.get("content")
        if isinstance(content, str):
            parsed_frontmatter, parsed_body = split_frontmatter(content)
            if frontmatter is None:
                frontmatter = parsed_frontmatter
            if body is None:
                body = parsed_body
        if frontmatter is None:
            frontmatter = {}
        if not isinstance(frontmatter, dict):
            raise ValueError(f"Note {path}: frontmatter must be an object")

        tags = entry.get("tags") or []
        if not isinstance(tags, list):
            raise ValueError(f"Note {path}: tags must be a list")

        links = entry.get("links")
        if links is not None and not isinstance(links, list):
            raise ValueError(f"Note {path}: links must be a list")

        entries.append(
            {
                "path": path,
                "frontmatter": frontmatter,
                "body": body if isinstance(body, str) else None,
                "tags": [str(t) for t in tags],
                "links": links,
                "ctime": _parse_timestamp(entry.get("ctime"), path, "ctime"),
                "mtime": _parse_timestamp(entry.get("mtime"), path, "mtime"),
            }
        )
    return entries


def _parse_timestamp(value: Any, path: str, field: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    parsed = parse_date_like(value)
    if parsed is None:
        raise ValueError(f"Note {path}: invalid {field} timestamp: {value!r}")
    return parsed


def _outgoing_links(entry: Dict[str, Any]) -> List[tuple[str, Optional[str]]]:
    links: List[tuple[str, Optional[str]]] = []
    for key, value in entry["frontmatter"].items():
        links.extend((target, str(key)) for target in extract_wiki_links(value))

    if entry["links"] is not None:
        links.extend((str(target), None) for target in entry["links"] if str(target).strip())
    elif entry["body"]:
        links.extend((m.group("target").strip(), None) for m in WIKI_LINK.finditer(entry["body"]))
    return links


def _collect_backlinks(entries: List[Dict[str, Any]], resolver: LinkResolver) -> Dict[str, List[Backlink]]:
    backlinks: Dict[str, List[Backlink]] = defaultdict(list)
    seen: set[tuple[str, str, Optional[str]]] = set()
    for entry in entries:
        source = entry["path"]
        for target, key in _outgoing_links(entry):
            resolved = resolver.resolve(target)
            if resolved is None or resolved == source:
                continue
            marker = (resolved, source, key)
            if marker in seen:
                continue
            seen.add(marker)
            backlinks[resolved].append(Backlink(source_path=source, key=key))
    return backlinks
