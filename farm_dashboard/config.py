from __future__ import annotations

import os

# Everything is read from the environment once, at import.
#
# - Default DB file: ./farm_dashboard.db (relative to current working directory)
# - Override with env var, e.g.
#     DATABASE_URL=sqlite:////data/farm_dashboard.db
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./farm_dashboard.db")

# Live-feed file written by the in-game mod. When unset the relay searches
# the usual modSettings locations under the user's home directory.
FARM_DATA_PATH = os.getenv("FARM_DATA_PATH") or None

# How often a WebSocket connection checks the live-feed file for changes.
RELAY_POLL_SECONDS = float(os.getenv("RELAY_POLL_SECONDS", "1.0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

VERSION = "1.0.0"
