from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import models
from .schemas import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Key-value storage for serialized snapshots."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[Snapshot]:
        record = self.db.get(models.SnapshotRecord, key)
        if not record:
            return None
        try:
            return Snapshot.model_validate(json.loads(record.payload))
        except (ValueError, ValidationError):
            logger.warning("Discarding unreadable snapshot %r", key)
            return None

    def put(self, key: str, snapshot: Snapshot) -> None:
        payload = json.dumps(snapshot.dump())
        record = self.db.get(models.SnapshotRecord, key)
        if record is None:
            record = models.SnapshotRecord(key=key)
            self.db.add(record)
        record.payload = payload
        record.animal_count = len(snapshot.animals)
        record.game_day = snapshot.game_time.current_day if snapshot.game_time else None
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def delete(self, key: str) -> bool:
        record = self.db.get(models.SnapshotRecord, key)
        if not record:
            return False
        self.db.delete(record)
        self.db.commit()
        return True
