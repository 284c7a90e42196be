import os
import sys
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from itdash.core.config import Settings, get_settings
from itdash.database.connection import get_database
from tests.fakes import make_session_factory

@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 8, 0, 0, tzinfo=timezone.utc)

@pytest.fixture
def mock_env_vars(monkeypatch):
    monkeypatch.setenv("SE_AZURE_TENANT_ID", "se-tenant")
    monkeypatch.setenv("SE_AZURE_CLIENT_ID", "se-client")
    monkeypatch.setenv("SE_AZURE_CLIENT_SECRET", "se-secret")
    monkeypatch.setenv("EPC_AZURE_TENANT_ID", "epc-tenant")
    monkeypatch.setenv("EPC_AZURE_CLIENT_ID", "epc-client")
    monkeypatch.setenv("EPC_AZURE_CLIENT_SECRET", "epc-secret")
    monkeypatch.setenv("FRESH_SERVICE_API_KEY", "fs-key")
    monkeypatch.setenv("FRESH_SERVICE_DOMAIN", "example.freshservice.com")
    monkeypatch.setenv("MERAKI_API_KEY", "meraki-key")

@pytest.fixture
def test_settings():
    """Settings with every integration configured, independent of the environment"""
    return Settings(
        database_url="sqlite://",
        se_azure_tenant_id="se-tenant",
        se_azure_client_id="se-client",
        se_azure_client_secret="se-secret",
        epc_azure_tenant_id="epc-tenant",
        epc_azure_client_id="epc-client",
        epc_azure_client_secret="epc-secret",
        fresh_service_api_key="fs-key",
        fresh_service_domain="example.freshservice.com",
        meraki_api_key="meraki-key",
    )

@pytest.fixture
def session_factory():
    return make_session_factory()

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(session_factory, test_settings):
    """TestClient over the app with an in-memory database"""
    from itdash.main import app

    def override_database():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_database] = override_database
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
