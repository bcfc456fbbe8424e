from datetime import datetime

import pytest

from common.note_rules.context import RuleEvaluationContext
from common.note_rules.models import Backlink, ConditionSource
from common.note_rules.values import collect_tags, resolve_values, to_comparable_values


def test_path_source_returns_folder_portion(ctx):
    assert resolve_values(ConditionSource.PATH, "", ctx) == ["01 Action Items"]


def test_path_source_is_empty_for_root_notes(make_ctx):
    assert resolve_values("path", "", make_ctx(path="Inbox.md")) == []


def test_path_source_collapses_repeated_separators(make_ctx):
    ctx = make_ctx(path="/Projects//Alpha\\Sub///Note.md")
    assert resolve_values("path", "", ctx) == ["Projects/Alpha/Sub"]


def test_name_source_returns_filename_and_basename(ctx):
    assert resolve_values("name", "", ctx) == ["My Task.md", "My Task"]


def test_extension_source(ctx):
    assert resolve_values("extension", "", ctx) == ["md"]


def test_frontmatter_lookup_is_case_insensitive(ctx):
    assert resolve_values("frontmatter", "STATUS", ctx) == ["working"]


def test_frontmatter_exact_key_wins_over_case_insensitive_match(make_ctx):
    ctx = make_ctx(frontmatter={"Status": "first", "status": "exact"})
    assert resolve_values("frontmatter", "status", ctx) == ["exact"]
    assert resolve_values("frontmatter", "STATUS", ctx) == ["first"]


def test_frontmatter_blank_field_returns_nothing(ctx):
    assert resolve_values("frontmatter", "  ", ctx) == []


def test_frontmatter_missing_field_returns_nothing(ctx):
    assert resolve_values("frontmatter", "owner", ctx) == []


def test_frontmatter_folderpath_field_uses_the_real_path(ctx):
    assert resolve_values("frontmatter", "folderPath", ctx) == ["01 Action Items"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  padded  ", ["padded"]),
        ("", []),
        (None, []),
        (["a", ["b", " c "], ""], ["a", "b", "c"]),
        (3.0, ["3"]),
        (2.5, ["2.5"]),
        (7, ["7"]),
        (True, ["true"]),
        (False, ["false"]),
        ({"a": 1}, ['{"a":1}']),
    ],
)
def test_to_comparable_values(value, expected):
    assert to_comparable_values(value) == expected


def test_tags_merge_context_and_frontmatter_tags(make_ctx):
    ctx = make_ctx(tags=("#Work", "active"), extra_frontmatter={"tags": "urgent, #Later work"})
    assert collect_tags(ctx) == ["work", "active", "urgent", "later"]


def test_tags_accept_frontmatter_lists(make_ctx):
    ctx = make_ctx(tags=(), extra_frontmatter={"Tags": ["#Project/Alpha", "review"]})
    assert resolve_values("tag", "", ctx) == ["project/alpha", "review"]


def test_body_source(make_ctx):
    assert resolve_values("body", "", make_ctx()) == []
    assert resolve_values("body", "", make_ctx(body="- [ ] task")) == ["- [ ] task"]


def test_backlinks_without_field_return_every_source(make_ctx):
    ctx = make_ctx(
        backlinks=(
            Backlink(source_path="Projects/Alpha.md", key="parent"),
            "Inbox/Beta.md",
        )
    )
    assert resolve_values("backlink", "", ctx) == [
        "Projects/Alpha.md",
        "Alpha",
        "Inbox/Beta.md",
        "Beta",
    ]


def test_backlinks_with_field_filter_by_frontmatter_key(make_ctx):
    ctx = make_ctx(
        backlinks=(
            {"sourcePath": "Projects/Alpha.md", "key": "Parent"},
            {"source_path": "Inbox/Beta.md"},
        )
    )
    assert resolve_values("backlink", "parent", ctx) == ["Projects/Alpha.md", "Alpha"]


def test_date_sources_format_file_timestamps(make_ctx):
    ctx = make_ctx(ctime=datetime(2026, 2, 12, 14, 45), mtime=datetime(2026, 2, 13, 8, 0))
    (created,) = resolve_values("date-created", "", ctx)
    (modified,) = resolve_values("date-modified", "", ctx)
    assert created.startswith("2026-02-12T14:45:00")
    assert modified.startswith("2026-02-13T08:00:00")


def test_date_sources_without_timestamps_return_nothing(ctx):
    assert resolve_values("date-created", "", ctx) == []
    assert resolve_values("date-modified", "", ctx) == []


def test_unknown_source_returns_nothing(ctx):
    assert resolve_values("attachment", "", ctx) == []


def test_context_requires_a_file():
    with pytest.raises(TypeError):
        RuleEvaluationContext(file=None)


def test_context_accepts_file_mappings():
    ctx = RuleEvaluationContext(file={"path": "Daily/2026-02-09.md"})
    assert ctx.file.basename == "2026-02-09"
    assert ctx.file.extension == "md"
    assert ctx.folder_path == "Daily"
