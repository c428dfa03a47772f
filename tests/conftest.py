import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from farm_dashboard.database import Base, get_db
from farm_dashboard.main import app
from farm_dashboard.relay import GameDataRelay, get_relay


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def data_file(tmp_path):
    return tmp_path / "farmdata.json"


@pytest.fixture()
def relay(data_file):
    return GameDataRelay(str(data_file))


@pytest.fixture()
def client(db_session, relay):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_relay] = lambda: relay
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
