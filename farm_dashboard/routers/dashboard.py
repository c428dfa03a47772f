from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from ..dependencies import get_session
from ..differ import has_significant_status_changes
from ..ingest import IngestError, parse_environment_xml, parse_farms_xml, parse_live_feed, parse_placeables_xml
from ..pastures import build_snapshot
from ..relay import GameDataRelay, get_relay
from ..reporter import ComparisonSession, significant_only, summarize
from ..schemas import ChangeReport, DashboardUpdate, Farm, SavegameUpload, Snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _update(session: ComparisonSession, snapshot: Snapshot, check_status: bool = False) -> DashboardUpdate:
    status_changed = True
    if check_status:
        previous = session.last()
        if previous is not None:
            status_changed = has_significant_status_changes(previous.animals, snapshot.animals)
            if not status_changed:
                logger.debug("Live update carries no significant status changes")

    report = session.advance(snapshot)
    # live feeds refresh constantly; only breeding and large health updates are surfaced
    if check_status and report is not None:
        report = significant_only(report)
    return DashboardUpdate(snapshot=summarize(snapshot), report=report, status_changed=status_changed)


def _live_snapshot(document: Dict[str, Any]) -> Snapshot:
    try:
        feed = parse_live_feed(document)
    except IngestError as e:
        raise HTTPException(400, str(e))
    logger.info("Live feed: %d animals, %d buildings", len(feed.animals), len(feed.placeables))
    return build_snapshot(feed.animals, feed.placeables, feed.farms, feed.game_time)


def _select_farm(farms: List[Farm], farm_id: Optional[str]) -> Optional[Farm]:
    if farm_id and not farms:
        return Farm(id=farm_id, internal_id=farm_id, name=f"Farm {farm_id}")
    if farm_id:
        farm = next((f for f in farms if f.id == farm_id or f.internal_id == farm_id), None)
        if not farm:
            raise HTTPException(404, "Farm not found")
        return farm
    return next((f for f in farms if f.is_default), None)


@router.post("/live", response_model=DashboardUpdate)
def post_live(
    document: Dict[str, Any] = Body(...),
    session: ComparisonSession = Depends(get_session),
):
    return _update(session, _live_snapshot(document), check_status=True)


@router.post("/savegame", response_model=DashboardUpdate)
def post_savegame(payload: SavegameUpload, session: ComparisonSession = Depends(get_session)):
    try:
        farms = parse_farms_xml(payload.farms_xml) if payload.farms_xml else []
        farm = _select_farm(farms, payload.farm_id)
        animals, placeables = parse_placeables_xml(payload.placeables_xml, farm)
        game_time = parse_environment_xml(payload.environment_xml) if payload.environment_xml else None
    except IngestError as e:
        raise HTTPException(400, str(e))

    snapshot = build_snapshot(animals, placeables, farms, game_time)
    logger.info(
        "Save game: %d animals in %d pastures for farm %s",
        len(snapshot.animals),
        len(snapshot.pastures),
        farm.id if farm else "(all)",
    )
    return _update(session, snapshot)


@router.post("/sync", response_model=DashboardUpdate)
def sync_from_relay(
    session: ComparisonSession = Depends(get_session),
    relay: GameDataRelay = Depends(get_relay),
):
    relay.refresh()
    if not relay.has_data:
        raise HTTPException(503, "No data available yet; make sure the game is running with the dashboard mod")
    return _update(session, _live_snapshot(relay.raw), check_status=True)


@router.get("/report", response_model=ChangeReport)
def get_latest_report(session: ComparisonSession = Depends(get_session)):
    report = session.latest_report()
    if report is None:
        raise HTTPException(404, "No earlier update to compare with")
    return report


@router.delete("/comparison", status_code=204)
def clear_comparison(session: ComparisonSession = Depends(get_session)):
    session.clear()
    return None
