from __future__ import annotations

import argparse
import csv
import io
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import yaml


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _load_manifest(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Note manifest must contain an object: {path}")
    return data


def _parse_now(value: str | None) -> datetime | None:
    if not value:
        return None
    _ensure_backend_on_path()
    from common.note_rules.dates import parse_date_like

    parsed = parse_date_like(value, allow_epoch=False)
    if parsed is None:
        raise SystemExit(f"Invalid --now timestamp: {value}")
    return parsed


def run_note_rules(settings_path: Path, notes_path: Path, *, now: datetime | None = None):
    _ensure_backend_on_path()
    from adapters.vault_export import contexts_from_manifest
    from common.note_rules.config import load_settings
    from common.note_rules.runner import NoteRulesRunner, settings_use_source
    from common.note_rules.models import ConditionSource

    settings = load_settings(settings_path)
    if settings.debug_logging:
        logging.getLogger("common.note_rules").setLevel(logging.DEBUG)
    contexts = contexts_from_manifest(
        _load_manifest(notes_path),
        include_body=settings_use_source(settings, ConditionSource.BODY),
    )
    return NoteRulesRunner(settings, now=now).run(contexts)


def _render_json(report) -> str:
    return json.dumps(report.model_dump(mode="json"), indent=2)


def _render_markdown(report) -> str:
    lines = [
        f"# Note Rules {report.evaluated_at.isoformat(timespec='seconds')}",
        "",
        f"Generated at: {report.generated_at.isoformat()}",
        "",
        "## Totals",
    ]
    for name, count in report.totals.items():
        lines.append(f"- {name}: {count}")
    lines.append("")
    lines.append("## Notes")
    for note in report.sorted_notes():
        lines.append("")
        lines.append(f"### {note.path}")
        if note.sort_key is not None:
            lines.append(f"- Sort key: `{note.sort_key}`")
        if note.visual.icon.matched:
            lines.append(f"- Icon: {note.visual.icon.value} (rule {note.visual.icon.rule_id})")
        if note.visual.color.matched:
            lines.append(f"- Color: {note.visual.color.value} (rule {note.visual.color.rule_id})")
        if note.hide_changes.add:
            lines.append(f"- Hide tags added: {', '.join(note.hide_changes.add)}")
        if note.hide_changes.remove:
            lines.append(f"- Hide tags removed: {', '.join(note.hide_changes.remove)}")
        if note.frontmatter_updates:
            lines.append("- Frontmatter updates:")
            for key, value in note.frontmatter_updates.items():
                lines.append(f"  - {key}: {json.dumps(value)}")
    return "\n".join(lines) + "\n"


def _render_csv(report) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["path", "sort_key", "bucket", "icon", "icon_rule", "color", "color_rule", "hide_add", "hide_remove"])
    for note in report.sorted_notes():
        writer.writerow(
            [
                note.path,
                note.sort_key or "",
                "" if note.bucket_index is None else note.bucket_index,
                note.visual.icon.value,
                note.visual.icon.rule_id or "",
                note.visual.color.value,
                note.visual.color.rule_id or "",
                " ".join(note.hide_changes.add),
                " ".join(note.hide_changes.remove),
            ]
        )
    return buffer.getvalue()


_RENDERERS = {
    "json": _render_json,
    "markdown": _render_markdown,
    "csv": _render_csv,
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Evaluate icon/color, sort key and hide rules against an exported note manifest."
    )
    parser.add_argument("--settings", required=True, help="Settings file (.json, .yaml or .yml).")
    parser.add_argument("--notes", required=True, help="Note manifest exported from the vault (.json or .yaml).")
    parser.add_argument(
        "--now",
        default=None,
        help="Evaluation clock as an ISO timestamp (defaults to NOTE_RULES_NOW, then the local time).",
    )
    parser.add_argument(
        "--format",
        choices=tuple(_RENDERERS),
        default="json",
        help="Output format (default: json).",
    )
    parser.add_argument("--out", default=None, help="Write the report here instead of stdout.")
    args = parser.parse_args(argv)

    _ensure_backend_on_path()
    from common.note_rules.config import get_runtime_config

    runtime = get_runtime_config()
    logging.basicConfig(level=runtime.effective_log_level, format="%(levelname)s %(name)s: %(message)s")

    now = _parse_now(args.now) or runtime.now
    report = run_note_rules(Path(args.settings), Path(args.notes), now=now)
    rendered = _RENDERERS[args.format](report)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(rendered, encoding="utf-8")
        print(f"Wrote {out_path}")
    else:
        sys.stdout.write(rendered)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
