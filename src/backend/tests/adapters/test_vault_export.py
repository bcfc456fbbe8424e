from datetime import date, datetime

import pytest

from adapters.vault_export import LinkResolver, contexts_from_manifest, extract_wiki_links, split_frontmatter
from common.note_rules.config import RuleCondition
from common.note_rules.engine import RuleEngine
from common.note_rules.models import Backlink


TASK = "01 Action Items/My Task.md"
ALPHA = "Projects/Alpha.md"
REFERENCE = "Reference Note.md"


def test_contexts_from_manifest_parses_notes(vault_manifest):
    contexts = contexts_from_manifest(vault_manifest)
    assert [c.file.path for c in contexts] == [TASK, ALPHA, REFERENCE]

    task = contexts[0]
    assert task.frontmatter["status"] == "working"
    assert task.frontmatter["scheduled"] == date(2026, 2, 14)
    assert task.body.startswith("- [ ] call the supplier")
    assert task.tags == ("#work",)
    assert task.file.basename == "My Task"
    assert task.file.ctime == datetime(2026, 2, 1, 9, 0)
    assert task.file.mtime == datetime(2026, 2, 12, 8, 15)


def test_backlinks_are_derived_across_the_manifest(vault_manifest):
    by_path = {c.file.path: c for c in contexts_from_manifest(vault_manifest)}

    # Alpha lists explicit links, so the wiki link in its body is not used.
    assert by_path[TASK].backlinks == ()
    assert by_path[ALPHA].backlinks == (Backlink(source_path=TASK, key="project"),)
    # The self-link in Reference Note is dropped.
    assert [b.source_path for b in by_path[REFERENCE].backlinks] == [TASK, ALPHA]
    assert all(b.key is None for b in by_path[REFERENCE].backlinks)


def test_bodies_can_be_left_out(vault_manifest):
    contexts = contexts_from_manifest(vault_manifest, include_body=False)
    assert all(c.body is None for c in contexts)


def test_exported_notes_feed_the_engine(vault_manifest):
    task, alpha, _ = contexts_from_manifest(vault_manifest)
    engine = RuleEngine(now=datetime(2026, 2, 12, 10, 30))
    open_tasks = RuleCondition(source="body", operator="has-open-checkboxes")
    linked_from_project = RuleCondition(source="backlink", field="project", operator="contains", value="My Task")

    assert engine.matches_condition(open_tasks, task)
    assert not engine.matches_condition(open_tasks, alpha)
    assert engine.matches_condition(linked_from_project, alpha)


def test_files_key_is_accepted():
    contexts = contexts_from_manifest({"files": [{"path": "a.md"}]})
    assert contexts[0].frontmatter == {}
    assert contexts[0].body is None


@pytest.mark.parametrize(
    "manifest, message",
    [
        ({"notes": [{"frontmatter": {}}]}, "missing required field: path"),
        ({"notes": [{"path": "a.md"}, {"path": "a.md"}]}, "Duplicate note path"),
        ({"notes": [{"path": "a.md", "mtime": "yesterday"}]}, "invalid mtime"),
        ({"notes": [{"path": "a.md", "tags": "work"}]}, "tags must be a list"),
        ({"notes": [{"path": "a.md", "frontmatter": ["x"]}]}, "frontmatter must be an object"),
        ({"notes": ["a.md"]}, "must be objects"),
    ],
)
def test_invalid_manifests_are_rejected(manifest, message):
    with pytest.raises(ValueError, match=message):
        contexts_from_manifest(manifest)


def test_split_frontmatter():
    frontmatter, body = split_frontmatter("---\nstatus: open\ntags: [a, b]\n---\nbody text\n")
    assert frontmatter == {"status": "open", "tags": ["a", "b"]}
    assert body == "body text\n"


def test_split_frontmatter_without_header():
    assert split_frontmatter("just text") == ({}, "just text")
    assert split_frontmatter("---\n---\nbody") == ({}, "body")


@pytest.mark.parametrize("text", ["---\nkey: [unclosed\n---\n", "---\n- a\n- b\n---\nbody"])
def test_split_frontmatter_rejects_invalid_headers(text):
    with pytest.raises(ValueError):
        split_frontmatter(text)


def test_extract_wiki_links_walks_nested_values():
    value = {"a": ["[[One]]", {"b": "see [[Two#Heading|alias]]"}], "c": 3, "d": "[[ ]]"}
    assert extract_wiki_links(value) == ["One", "Two"]


def test_link_resolver():
    resolver = LinkResolver(["A/Note.md", "B/Note.md", "C/Other.md"])
    assert resolver.resolve("a/note") == "A/Note.md"
    assert resolver.resolve("C/Other.md") == "C/Other.md"
    assert resolver.resolve("Other") == "C/Other.md"
    assert resolver.resolve("Note") is None
    assert resolver.resolve("") is None
