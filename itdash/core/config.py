"""
Configuration settings for the IT dashboard sync service
"""

from dataclasses import dataclass
from pydantic_settings import BaseSettings
from typing import List, Optional

from itdash.core.errors import ConfigurationError


@dataclass(frozen=True)
class AzureTenant:
    """Credentials and company filter for one Azure AD tenant"""
    prefix: str
    tenant_id: str
    client_id: str
    client_secret: str
    company_name: str


class Settings(BaseSettings):
    """Application settings"""

    # Database
    db_host: str = "postgres"
    db_port: str = "5432"
    db_name: str = "it_dashboard"
    db_user: str = "dashboard"
    db_password: str = "dashboard"
    database_url: str = ""

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Azure AD (one block per tenant prefix)
    se_azure_tenant_id: Optional[str] = None
    se_azure_client_id: Optional[str] = None
    se_azure_client_secret: Optional[str] = None
    se_company_name: str = "Samuel Engineering"
    epc_azure_tenant_id: Optional[str] = None
    epc_azure_client_id: Optional[str] = None
    epc_azure_client_secret: Optional[str] = None
    epc_company_name: str = "Samuel EPC"
    azure_tenant_prefixes: List[str] = ["SE", "EPC"]
    graph_max_pages: int = 50

    # Freshservice
    fresh_service_api_key: Optional[str] = None
    fresh_service_domain: Optional[str] = None
    freshservice_lookback_days: int = 7

    # Meraki
    meraki_api_key: Optional[str] = None
    meraki_base_url: str = "https://api.meraki.com/api/v1"
    meraki_product_types: List[str] = ["switch", "wireless", "sensor"]
    uptime_window_days: float = 7

    # HTTP
    http_timeout_seconds: int = 30

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Build database_url from components unless given outright
        if not self.database_url:
            self.database_url = f"postgresql+psycopg2://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    def azure_tenant(self, prefix: str) -> AzureTenant:
        """Credentials for the tenant registered under ``prefix``.

        Raises ConfigurationError naming the first missing variable.
        """
        key = prefix.lower()
        values = {}
        for name in ("azure_tenant_id", "azure_client_id", "azure_client_secret"):
            field = f"{key}_{name}"
            value = getattr(self, field, None)
            if not value:
                raise ConfigurationError(
                    f"Missing {prefix} Azure environment variables.",
                    field=field.upper(),
                )
            values[name] = value

        return AzureTenant(
            prefix=prefix,
            tenant_id=values["azure_tenant_id"],
            client_id=values["azure_client_id"],
            client_secret=values["azure_client_secret"],
            company_name=getattr(self, f"{key}_company_name", None) or prefix,
        )

    def azure_tenants(self) -> List[AzureTenant]:
        return [self.azure_tenant(prefix) for prefix in self.azure_tenant_prefixes]

    def freshservice_credentials(self) -> tuple[str, str]:
        """(api_key, domain) for Freshservice"""
        if not self.fresh_service_api_key:
            raise ConfigurationError("Missing Fresh Service environment variables", field="FRESH_SERVICE_API_KEY")
        if not self.fresh_service_domain:
            raise ConfigurationError("Missing Fresh Service environment variables", field="FRESH_SERVICE_DOMAIN")
        return self.fresh_service_api_key, self.fresh_service_domain

    def meraki_credentials(self) -> str:
        if not self.meraki_api_key:
            raise ConfigurationError("Missing Meraki environment variables", field="MERAKI_API_KEY")
        return self.meraki_api_key


# Global settings instance
settings = Settings()

def get_settings() -> Settings:
    """FastAPI dependency handing the process settings to a route"""
    return settings
