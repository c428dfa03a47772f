from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from .database import Base


def _now():
    return datetime.now(timezone.utc)


class SnapshotRecord(Base):
    __tablename__ = "snapshots"

    key = Column(String, primary_key=True, index=True)   # current / previous
    payload = Column(Text, nullable=False)               # Snapshot as camelCase JSON
    animal_count = Column(Integer, nullable=False, default=0)
    game_day = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
