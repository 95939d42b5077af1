import logging
import os
import sqlite3
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from servicehub.config import SERVICE_PORT, Settings
from servicehub.db import Database
from servicehub.errors import StoreUnavailableError
from servicehub.logging_config import setup_logging


def test_session_ttl_invalid_env_falls_back(monkeypatch):
    monkeypatch.setenv("SESSION_TTL_HOURS", "not-a-number")
    assert Settings.from_env().session_ttl_hours == 24


def test_session_ttl_non_positive_env_falls_back(monkeypatch):
    monkeypatch.setenv("SESSION_TTL_HOURS", "0")
    monkeypatch.setenv("PASSWORD_HASH_ITERATIONS", "-5")
    settings = Settings.from_env()
    assert settings.session_ttl_hours == 24
    assert settings.password_hash_iterations == 390_000


def test_settings_read_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SERVICEHUB_DB_PATH", str(tmp_path / "env.sqlite3"))
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("SESSION_TTL_HOURS", "6")
    settings = Settings.from_env()
    assert settings.database_path == str(tmp_path / "env.sqlite3")
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.session_ttl_hours == 6
    assert settings.port == SERVICE_PORT == 8080


def test_closed_database_is_store_unavailable(tmp_path):
    db = Database(str(tmp_path / "closed.sqlite3"))
    db.open()
    db.close()
    db.close()
    with pytest.raises(StoreUnavailableError):
        with db.transaction() as conn:
            conn.execute("SELECT 1")


def test_driver_errors_become_store_unavailable(tmp_path):
    db = Database(str(tmp_path / "broken.sqlite3"))
    db.open()
    try:
        with pytest.raises(StoreUnavailableError):
            with db.transaction() as conn:
                conn.execute("SELECT * FROM table_that_does_not_exist")
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO users (id) VALUES ('x')")
    finally:
        db.close()


def test_setup_logging_leaves_existing_handlers_alone():
    root = logging.getLogger()
    before = list(root.handlers)
    sentinel = logging.NullHandler()
    root.addHandler(sentinel)
    try:
        setup_logging("DEBUG")
        assert root.handlers == before + [sentinel]
    finally:
        root.removeHandler(sentinel)
