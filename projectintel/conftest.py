# projectintel/conftest.py
import os
import pytest

os.environ.setdefault("ENV", "test")

from projectintel.core.config import settings


ADMIN_KEY = "test-admin-key"


@pytest.fixture(scope="function")
def sqlite_db():
    """
    Fresh in-memory SQLite database for one test.
    
    All sessions share a single connection, so data written through
    get_db_session() is visible to later sessions in the same test.
    """
    from projectintel.core.database import init_engine, create_all_tables, drop_all_tables, dispose_engine

    init_engine("sqlite://")
    create_all_tables()
    yield
    drop_all_tables()
    dispose_engine()


@pytest.fixture(scope="function")
def seeded_db(sqlite_db):
    """Database with default plans, states and sectors."""
    from projectintel.features.master_data.service import seed_master_data
    from projectintel.features.plans.service import seed_plans

    seed_plans()
    seed_master_data()
    yield


@pytest.fixture(scope="function")
def admin_key(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_KEY", ADMIN_KEY)
    return ADMIN_KEY


@pytest.fixture(scope="function")
def client(seeded_db, admin_key):
    from fastapi.testclient import TestClient
    from projectintel.main import app

    with TestClient(app) as test_client:
        yield test_client
