from __future__ import annotations

# IMPORTANT:
# Correct command:
#   python -m uvicorn farm_dashboard.main:app --reload

import logging

from fastapi import FastAPI

from .config import LOG_LEVEL, VERSION
from .database import Base, engine
from .routers import animals, changes, dashboard, pastures
from .routers import relay as relay_router
from . import models  # noqa: F401  (registers tables)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Farm Dashboard", version=VERSION)


# -----------------------------
# API ROUTERS
# -----------------------------
app.include_router(dashboard.router)
app.include_router(changes.router)
app.include_router(pastures.router)
app.include_router(animals.router)
app.include_router(relay_router.router)
app.include_router(relay_router.ws_router)


@app.get("/")
def root():
    return {"status": "ok", "version": VERSION, "docs": "/docs"}
