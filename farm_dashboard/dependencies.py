from __future__ import annotations

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from .database import get_db
from .reporter import ComparisonSession
from .schemas import Snapshot
from .store import SnapshotStore


def get_store(db: Session = Depends(get_db)) -> SnapshotStore:
    return SnapshotStore(db)


def get_session(store: SnapshotStore = Depends(get_store)) -> ComparisonSession:
    return ComparisonSession(store)


def current_snapshot(session: ComparisonSession = Depends(get_session)) -> Snapshot:
    snapshot = session.last()
    if snapshot is None:
        raise HTTPException(404, "No snapshot yet; post live or save game data first")
    return snapshot
