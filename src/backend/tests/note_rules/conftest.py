import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from datetime import datetime

import pytest

from common.note_rules.context import RuleEvaluationContext
from common.note_rules.engine import RuleEngine
from common.note_rules.models import FileDescriptor

BASE_PATH = "01 Action Items/My Task.md"
BASE_FRONTMATTER = {
    "status": "working",
    "priority": "high",
    "folderPath": "wrong/path",
}
BASE_TAGS = ("work", "active")


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 12, 10, 30, 0)


@pytest.fixture
def engine(fixed_now) -> RuleEngine:
    return RuleEngine(now=fixed_now)


@pytest.fixture
def make_ctx():
    def _make(
        *,
        path: str = BASE_PATH,
        basename: str | None = None,
        frontmatter: dict | None = None,
        extra_frontmatter: dict | None = None,
        tags=BASE_TAGS,
        backlinks=(),
        body: str | None = None,
        ctime: datetime | None = None,
        mtime: datetime | None = None,
    ) -> RuleEvaluationContext:
        fm = dict(BASE_FRONTMATTER if frontmatter is None else frontmatter)
        fm.update(extra_frontmatter or {})
        file_fields = {"path": path, "ctime": ctime, "mtime": mtime}
        if basename is not None:
            file_fields["basename"] = basename
        return RuleEvaluationContext(
            file=FileDescriptor(**file_fields),
            frontmatter=fm,
            tags=tuple(tags),
            backlinks=tuple(backlinks),
            body=body,
        )

    return _make


@pytest.fixture
def ctx(make_ctx) -> RuleEvaluationContext:
    return make_ctx()
