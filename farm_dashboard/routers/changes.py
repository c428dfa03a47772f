from __future__ import annotations

from fastapi import APIRouter

from ..reporter import build_report
from ..schemas import ChangeReport, CompareRequest

router = APIRouter(prefix="/changes", tags=["changes"])


@router.post("/compare", response_model=ChangeReport)
def compare_snapshots(payload: CompareRequest):
    """Compare two supplied snapshots without touching the stored comparison context."""
    return build_report(payload.old, payload.new)
