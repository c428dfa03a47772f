from farm_dashboard.seed_db import sqlite_path


def test_relative_sqlite_path():
    assert sqlite_path("sqlite:///./farm_dashboard.db") == "./farm_dashboard.db"
    assert sqlite_path("sqlite:///farm.db") == "farm.db"


def test_absolute_sqlite_path_keeps_its_root():
    assert sqlite_path("sqlite:////data/farm.db") == "/data/farm.db"


def test_in_memory_sqlite_has_no_file():
    assert sqlite_path("sqlite://") == ""
    assert sqlite_path("sqlite:///:memory:") == ":memory:"
