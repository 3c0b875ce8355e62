"""REST API routes serving the camp dataset to the browsing application."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from summer_camps.config import settings
from summer_camps.ingestion.pipeline import read_dataset_payload

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str
    dataset_loaded: bool
    sheets: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_payload() -> dict[str, Any] | None:
    """Enriched dataset if present, otherwise the plain geocoded one."""
    for path in (settings.enriched_dataset_path, settings.dataset_path):
        payload = read_dataset_payload(path)
        if payload is not None:
            logger.debug("Serving camps from %s", path)
            return payload
    return None


def _require_payload() -> dict[str, Any]:
    payload = load_payload()
    if payload is None:
        raise HTTPException(status_code=404, detail="Camp dataset has not been generated yet.")
    return payload


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check():
    """Return service health and data-readiness status."""
    payload = load_payload()
    return HealthResponse(
        status="ok",
        dataset_loaded=payload is not None,
        sheets=len(payload) if payload else 0,
    )


@router.get("/sheets", response_model=list[str], tags=["camps"])
async def list_sheets():
    return list(_require_payload().keys())


@router.get("/camps", tags=["camps"])
async def get_default_camps():
    """Camps and filter vocabularies of the default sheet."""
    payload = _require_payload()
    sheet_name = settings.default_sheet or next(iter(payload), None)
    if sheet_name is None or sheet_name not in payload:
        raise HTTPException(status_code=404, detail=f"Sheet not found: {sheet_name}")
    return payload[sheet_name]


@router.get("/camps/{sheet_name}", tags=["camps"])
async def get_sheet_camps(sheet_name: str):
    payload = _require_payload()
    if sheet_name not in payload:
        raise HTTPException(status_code=404, detail=f"Sheet not found: {sheet_name}")
    return payload[sheet_name]
