from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect

from ..config import RELAY_POLL_SECONDS
from ..relay import GameDataRelay, get_relay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["relay"])
ws_router = APIRouter(tags=["relay"])


@router.get("/status", response_model=dict)
def relay_status(relay: GameDataRelay = Depends(get_relay)):
    return relay.status()


@router.get("/data", response_model=dict)
def relay_data(relay: GameDataRelay = Depends(get_relay)):
    relay.refresh()
    if not relay.has_data:
        raise HTTPException(503, "No data available yet; make sure the game is running with the dashboard mod")
    return {**relay.latest, "timestamp": datetime.now(timezone.utc).isoformat()}


def _section(relay: GameDataRelay, name: str):
    data = relay.section(name)
    if data is None:
        raise HTTPException(503, f"No {name} data available")
    return data


@router.get("/animals")
def relay_animals(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "animals")


@router.get("/vehicles")
def relay_vehicles(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "vehicles")


@router.get("/fields")
def relay_fields(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "fields")


@router.get("/finance")
def relay_finance(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "finance")


@router.get("/weather")
def relay_weather(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "weather")


@router.get("/economy")
def relay_economy(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "economy")


@router.get("/production")
def relay_production(relay: GameDataRelay = Depends(get_relay)):
    return _section(relay, "production")


@ws_router.websocket("/ws")
async def relay_socket(websocket: WebSocket, relay: GameDataRelay = Depends(get_relay)):
    """Push {"type": "data", "data": ...} on connect and whenever the data file changes."""
    await websocket.accept()
    logger.info("WebSocket client connected")
    sent = None
    try:
        while True:
            relay.refresh()
            if relay.has_data and relay.last_update != sent:
                await websocket.send_json({"type": "data", "data": relay.latest})
                sent = relay.last_update
            try:
                # Clients don't send anything; this only notices a disconnect.
                await asyncio.wait_for(websocket.receive_text(), timeout=RELAY_POLL_SECONDS)
            except asyncio.TimeoutError:
                pass
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
