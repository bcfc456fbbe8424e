from datetime import timedelta

import pytest

from common.note_rules.config import IconColorRule
from common.note_rules.visual import resolve_visual_outputs


def _rule(rule_id, *, icon="", color="", **fields):
    return IconColorRule(id=rule_id, icon=icon, color=color, **fields)


def test_first_matching_icon_and_color_are_independent(ctx, fixed_now):
    rules = [
        _rule("1", property="status", value="working", icon="lucide:clipboard-list"),
        _rule("2", property="priority", value="high", color="#ff0000"),
        _rule("3", property="status", value="working", icon="lucide:archive", color="#00ff00"),
    ]

    resolved = resolve_visual_outputs(rules, ctx, now=fixed_now)

    assert resolved.icon.matched
    assert resolved.icon.value == "lucide:clipboard-list"
    assert resolved.icon.rule_id == "1"
    assert resolved.color.matched
    assert resolved.color.value == "#ff0000"
    assert resolved.color.rule_id == "2"


@pytest.mark.parametrize("reverse", [False, True])
def test_icon_only_and_color_only_rules_both_apply_in_any_order(ctx, fixed_now, reverse):
    rules = [
        _rule("icon-only", property="status", value="working", icon="lucide:circle"),
        _rule("color-only", property="priority", value="high", color="red"),
    ]
    if reverse:
        rules.reverse()

    resolved = resolve_visual_outputs(rules, ctx, now=fixed_now)

    assert resolved.icon.value == "lucide:circle"
    assert resolved.color.value == "red"


def test_disabled_and_non_matching_rules_are_skipped(ctx, fixed_now):
    rules = [
        _rule("disabled", enabled=False, property="status", value="working", icon="lucide:x"),
        _rule("other", property="status", value="done", icon="lucide:check"),
        _rule("winner", property="status", value="working", icon="lucide:play"),
    ]

    resolved = resolve_visual_outputs(rules, ctx, now=fixed_now)

    assert resolved.icon.rule_id == "winner"
    assert not resolved.color.matched


def test_blank_outputs_do_not_freeze_a_channel(ctx, fixed_now):
    rules = [
        _rule("blank", property="status", value="working", icon="   "),
        _rule("real", property="status", value="working", icon="lucide:star"),
    ]

    resolved = resolve_visual_outputs(rules, ctx, now=fixed_now)

    assert resolved.icon.value == "lucide:star"


def test_no_match_returns_empty_results(ctx, fixed_now):
    resolved = resolve_visual_outputs(
        [_rule("1", property="status", value="done", icon="x")], ctx, now=fixed_now
    )

    assert not resolved.icon.matched
    assert resolved.icon.value == ""
    assert resolved.icon.rule_id is None
    assert not resolved.color.matched


def test_folderpath_property_uses_the_real_note_path(ctx, fixed_now):
    rules = [_rule("folder", property="folderPath", value="01 Action Items", icon="lucide:check-square-2")]

    resolved = resolve_visual_outputs(rules, ctx, now=fixed_now)

    assert resolved.icon.value == "lucide:check-square-2"


def test_condition_mode_with_any_match(ctx, fixed_now):
    rule = IconColorRule.model_validate(
        {
            "id": "cond-rule",
            "icon": "lucide:calendar",
            "match": "any",
            "conditions": [
                {"source": "frontmatter", "field": "status", "operator": "is", "value": "complete"},
                {"source": "tag", "field": "", "operator": "is", "value": "active"},
            ],
        }
    )

    resolved = resolve_visual_outputs([rule], ctx, now=fixed_now)

    assert resolved.icon.value == "lucide:calendar"


def test_negated_legacy_operators(ctx, fixed_now):
    rules = [
        _rule("not-complete", property="status", operator="!is", value="complete", icon="lucide:circle"),
        _rule("no-z", property="status", operator="!contains", value="zzz", color="#33aa33"),
    ]

    resolved = resolve_visual_outputs(rules, ctx, now=fixed_now)

    assert resolved.icon.value == "lucide:circle"
    assert resolved.color.value == "#33aa33"


@pytest.mark.parametrize("operator, near, far", [("within-next-days", True, False), ("!within-next-days", False, True)])
def test_date_window_conditions(make_ctx, fixed_now, operator, near, far):
    rule = IconColorRule.model_validate(
        {
            "id": "scheduled-window",
            "icon": "lucide:calendar",
            "conditions": [
                {"source": "frontmatter", "field": "scheduled", "operator": operator, "value": "7"},
            ],
        }
    )
    near_ctx = make_ctx(extra_frontmatter={"scheduled": (fixed_now + timedelta(days=3)).isoformat()})
    far_ctx = make_ctx(extra_frontmatter={"scheduled": (fixed_now + timedelta(days=10)).isoformat()})

    assert resolve_visual_outputs([rule], near_ctx, now=fixed_now).icon.matched is near
    assert resolve_visual_outputs([rule], far_ctx, now=fixed_now).icon.matched is far


def test_engine_facade_uses_its_clock(engine, make_ctx, fixed_now):
    rule = IconColorRule.model_validate(
        {
            "id": "today",
            "color": "orange",
            "conditions": [{"source": "name", "operator": "is-today"}],
        }
    )
    ctx = make_ctx(path="Daily/2026-02-12.md")

    assert engine.resolve_visual_outputs([rule], ctx).color.value == "orange"
