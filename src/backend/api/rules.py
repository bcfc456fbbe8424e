from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from adapters.vault_export import contexts_from_manifest
from common.note_rules.catalog import build_catalog
from common.note_rules.config import CompanionSettings
from common.note_rules.dates import to_local_naive
from common.note_rules.models import ConditionSource
from common.note_rules.runner import NoteRulesRunner, settings_use_source


router = APIRouter(prefix="/rules", tags=["rules"])


class EvaluateRequest(BaseModel):
    settings: CompanionSettings = Field(default_factory=CompanionSettings)
    notes: list[dict[str, Any]] = Field(default_factory=list)
    now: Optional[datetime] = None


@router.post("/evaluate")
def evaluate_notes(request: EvaluateRequest):
    try:
        contexts = contexts_from_manifest(
            {"notes": request.notes},
            include_body=settings_use_source(request.settings, ConditionSource.BODY),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    now = to_local_naive(request.now) if request.now is not None else None
    report = NoteRulesRunner(request.settings, now=now).run(contexts)
    return report.model_dump(mode="json")


@router.get("/catalog")
def operator_catalog():
    return [entry.model_dump() for entry in build_catalog()]
