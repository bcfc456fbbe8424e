import json
from pathlib import Path

import pytest


FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture():
    def _load(*parts: str):
        return json.loads(FIXTURE_DIR.joinpath(*parts).read_text(encoding="utf-8"))

    return _load


@pytest.fixture
def vault_manifest(load_fixture):
    return load_fixture("vault_export", "manifest.json")
