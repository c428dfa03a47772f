"""
farm_dashboard/seed_db.py
-------------------------
Loads two demo live-feed updates so the dashboard has a stored snapshot
and a change report to show without a running game.

Run from the project root:
    python -m farm_dashboard.seed_db

Pass --reset to wipe the database first:
    python -m farm_dashboard.seed_db --reset
"""
from __future__ import annotations

import copy
import os
import sys
from urllib.parse import urlparse

from .database import Base, engine, SessionLocal, DATABASE_URL
from .ingest import parse_live_feed
from .pastures import build_snapshot
from .reporter import ComparisonSession
from .schemas import Snapshot
from .store import SnapshotStore


def sqlite_path(url: str) -> str:
    """File path of a sqlite URL: sqlite:///rel.db is relative, sqlite:////abs.db absolute."""
    path = urlparse(url).path
    return path[1:] if path.startswith("/") else path


def _remove_sqlite_file_if_local() -> None:
    path = sqlite_path(DATABASE_URL)
    if path and path != ":memory:" and os.path.exists(path):
        os.remove(path)
        print(f"  Removed existing database: {path}")


def _cow(i: int, **overrides) -> dict:
    cow = {
        "id": f"demo-cow-{i}",
        "uniqueId": f"demo-cow-{i}",
        "name": f"Daisy {i}",
        "subType": "COW_HOLSTEIN",
        "gender": "female",
        "age": 30 + i * 7,
        "health": 95 - i,
        "weight": 600 + i * 5,
        "genetics": {"metabolism": 1, "quality": 1.1, "health": 1, "fertility": 1, "productivity": 0.9},
    }
    cow.update(overrides)
    return cow


def demo_document() -> dict:
    """Day 1: a small dairy barn, a pig barn and a sheep pasture."""
    cows = [_cow(i, isLactating=i < 7) for i in range(14)]
    cows.append(_cow(14, name="Bruno", subType="BULL_HOLSTEIN", gender="male", age=40, weight=950))
    cows.append(_cow(15, name="Clover", age=6, weight=180))
    cows[3].update(isPregnant=True, reproduction=0.9)
    return {
        "gameTime": {"currentDay": 1, "dayTime": 480},
        "farmInfo": [{"id": "1", "name": "Demo Farm"}],
        "animals": {
            "husbandries": [
                {
                    "id": "barn-1",
                    "name": "Dairy Barn",
                    "ownerFarmId": "1",
                    "filename": "data/placeables/cowBarnMedium.xml",
                    "animals": cows,
                    "food": {"totalCapacity": 1000, "mixedRation": 600, "hay": 150, "silage": 300, "grass": 400},
                },
                {
                    "id": "barn-2",
                    "name": "Pig Barn",
                    "ownerFarmId": "1",
                    "animals": [{"subType": "PIG_LANDRACE", "numAnimals": 12, "age": 10}],
                },
                {"id": "pasture-3", "name": "Sheep Pasture", "ownerFarmId": "1", "animalCount": 6},
            ]
        },
    }


def next_day(document: dict) -> dict:
    """Day 2: one cow sold, one got sick, one calf born, everyone a little older."""
    doc = copy.deepcopy(document)
    doc["gameTime"] = {"currentDay": 2, "dayTime": 480}
    barn = doc["animals"]["husbandries"][0]
    barn["animals"] = [a for a in barn["animals"] if a["id"] != "demo-cow-13"]
    for a in barn["animals"]:
        a["age"] += 0.1
    barn["animals"][1]["health"] = 40
    barn["animals"][3]["isPregnant"] = False
    barn["animals"].append(_cow(20, name="Newborn", age=1, weight=45))
    barn["food"]["hay"] = 50
    return doc


def _snapshot(document: dict) -> Snapshot:
    feed = parse_live_feed(document)
    return build_snapshot(feed.animals, feed.placeables, feed.farms, feed.game_time)


def seed(db) -> None:
    session = ComparisonSession(SnapshotStore(db))
    session.clear()

    day_one = demo_document()
    print("  Loading day 1...")
    session.advance(_snapshot(day_one))

    print("  Loading day 2...")
    report = session.advance(_snapshot(next_day(day_one)))

    snapshot = session.last()
    print(f"\n  ✓ Animals:    {len(snapshot.animals)}")
    print(f"  ✓ Pastures:   {len(snapshot.pastures)}")
    if report is not None:
        print(f"  ✓ Added:      {len(report.livestock.added)}")
        print(f"  ✓ Removed:    {len(report.livestock.removed)}")
        print(f"  ✓ Updated:    {len(report.livestock.updated)}")
        print(f"  ✓ New warnings: {len(report.warnings.new)}")


def main() -> None:
    reset = "--reset" in sys.argv

    if reset:
        print("Resetting database...")
        _remove_sqlite_file_if_local()

    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    print("Seeding data...")
    db = SessionLocal()
    try:
        seed(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print("\nDone. Run the app with:")
    print("  python -m uvicorn farm_dashboard.main:app --reload")


if __name__ == "__main__":
    main()
