import pytest

from itdash.core.config import Settings
from itdash.core.errors import ConfigurationError


def test_database_url_built_from_parts():
    cfg = Settings(_env_file=None, db_host="db", db_port="6543", db_name="dash", db_user="u", db_password="p")
    assert cfg.database_url == "postgresql+psycopg2://u:p@db:6543/dash"


def test_explicit_database_url_kept():
    cfg = Settings(_env_file=None, database_url="sqlite:///dashboard.db")
    assert cfg.database_url == "sqlite:///dashboard.db"


def test_azure_tenants_from_environment(mock_env_vars):
    cfg = Settings(_env_file=None)
    se, epc = cfg.azure_tenants()

    assert se.prefix == "SE"
    assert se.tenant_id == "se-tenant"
    assert se.company_name == "Samuel Engineering"
    assert epc.client_secret == "epc-secret"
    assert epc.company_name == "Samuel EPC"


def test_missing_azure_variable_named(monkeypatch, mock_env_vars):
    monkeypatch.delenv("EPC_AZURE_CLIENT_SECRET")
    cfg = Settings(_env_file=None)

    cfg.azure_tenant("SE")
    with pytest.raises(ConfigurationError) as excinfo:
        cfg.azure_tenant("EPC")
    assert excinfo.value.field == "EPC_AZURE_CLIENT_SECRET"


def test_freshservice_and_meraki_credentials(mock_env_vars):
    cfg = Settings(_env_file=None)
    assert cfg.freshservice_credentials() == ("fs-key", "example.freshservice.com")
    assert cfg.meraki_credentials() == "meraki-key"


@pytest.mark.parametrize("method, field", [
    ("freshservice_credentials", "FRESH_SERVICE_API_KEY"),
    ("meraki_credentials", "MERAKI_API_KEY"),
])
def test_missing_credentials(monkeypatch, method, field):
    for name in ("FRESH_SERVICE_API_KEY", "FRESH_SERVICE_DOMAIN", "MERAKI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    cfg = Settings(_env_file=None)

    with pytest.raises(ConfigurationError) as excinfo:
        getattr(cfg, method)()
    assert excinfo.value.field == field


def test_uptime_window_from_environment(monkeypatch):
    monkeypatch.setenv("UPTIME_WINDOW_DAYS", "30")
    assert Settings(_env_file=None).uptime_window_days == 30
