"""
Tails the JSON file the in-game mod writes and keeps the latest document.

The file is looked up in the usual modSettings folders (standard and
Microsoft Store installs) unless FARM_DATA_PATH points at it directly.
A read only happens when the file's modification time has changed.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import FARM_DATA_PATH, VERSION

logger = logging.getLogger(__name__)

MOD_FOLDER = "FS25_FarmDashboard"
MINIMAL_MOD_FOLDER = "FS25_FarmDashboard_Minimal"
MS_STORE_PACKAGE = "GIANTSSoftware.FarmingSimulator25PC_fa8jxm5fj0esw"


def candidate_paths(home: Optional[Path] = None) -> List[Tuple[Path, str]]:
    home = home or Path.home()
    standard = home / "Documents" / "My Games" / "FarmingSimulator2025" / "modSettings"
    ms_store = home / "AppData" / "Local" / "Packages" / MS_STORE_PACKAGE / "LocalCache" / "Local" / "modSettings"
    return [
        (standard / MOD_FOLDER / "data.json", "Standard location (data.json)"),
        (standard / MOD_FOLDER / "farmdata.json", "Standard location (farmdata.json)"),
        (ms_store / MOD_FOLDER / "data.json", "MS Store (data.json)"),
        (ms_store / MOD_FOLDER / "farmdata.json", "MS Store (farmdata.json)"),
        (ms_store / MINIMAL_MOD_FOLDER / "farmdata.json", "MS Store minimal mod"),
    ]


def find_data_file(home: Optional[Path] = None) -> Optional[Path]:
    paths = candidate_paths(home)
    for path, name in paths:
        if path.exists():
            logger.info("Found data file at %s: %s", name, path)
            return path
    logger.debug("Data file not found yet, checked: %s", ", ".join(str(p) for p, _ in paths))
    return None


def with_production(document: Dict[str, Any]) -> Dict[str, Any]:
    """Document plus a `production` section; the whole document stands in when the mod sent none."""
    production = document.get("production")
    if not isinstance(production, dict):
        production = dict(document)
    else:
        production = dict(production)
    production.setdefault("chains", [])
    production.setdefault("husbandryTotals", {})

    out = dict(document)
    out["vehicles"] = document.get("vehicles") or []
    out["production"] = production
    return out


class GameDataRelay:
    def __init__(self, data_path: Optional[str] = None, home: Optional[Path] = None):
        self.explicit_path = Path(data_path) if data_path else None
        self.home = home
        self.data_path: Optional[Path] = self.explicit_path
        self.raw: Optional[Dict[str, Any]] = None
        self.latest: Optional[Dict[str, Any]] = None
        self.last_update: Optional[datetime] = None
        self._mtime: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.raw is not None

    def locate(self) -> Optional[Path]:
        if self.data_path is None:
            self.data_path = self.explicit_path or find_data_file(self.home)
        return self.data_path

    def refresh(self) -> bool:
        """Re-read the data file if it changed. Returns True when new data was loaded."""
        path = self.locate()
        if path is None:
            return False
        try:
            mtime = os.stat(path).st_mtime
        except FileNotFoundError:
            logger.warning("Data file not found: %s", path)
            return False
        if self._mtime is not None and mtime == self._mtime:
            return False

        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            # Mod may be mid-write; the next change retries.
            logger.warning("Could not read game data from %s: %s", path, e)
            return False
        if not isinstance(document, dict):
            logger.warning("Ignoring game data in %s: top level is not an object", path)
            return False

        self._mtime = mtime
        self.raw = document
        self.last_update = datetime.now(timezone.utc)
        self.latest = with_production(document)
        self.latest["lastUpdated"] = self.last_update.isoformat()
        logger.info("Game data updated from %s", path)
        return True

    def section(self, name: str) -> Optional[Any]:
        self.refresh()
        if self.raw is None:
            return None
        if name == "production":
            return self.latest["production"]
        return self.raw.get(name)

    def status(self) -> Dict[str, Any]:
        return {
            "status": "online",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "dataAvailable": self.has_data,
            "lastUpdate": self.last_update.isoformat() if self.last_update else None,
            "dataPath": str(self.data_path) if self.data_path else None,
        }


relay = GameDataRelay(FARM_DATA_PATH)


def get_relay() -> GameDataRelay:
    return relay
