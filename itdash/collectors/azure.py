"""
Azure AD (Microsoft Graph) collector

Fetches enabled users for each configured tenant, derives office locations
from their city/state, and maps both into database rows.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from itdash.collectors.base import BaseCollector, parse_timestamp
from itdash.collectors.locations import DEFAULT_LOCATION, lookup_location
from itdash.core.config import AzureTenant, Settings
from itdash.core.errors import ExternalServiceError, MappingError

logger = structlog.get_logger(__name__)

LOGIN_URL = "https://login.microsoftonline.com"
GRAPH_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
USER_FIELDS = (
    "id", "displayName", "userPrincipalName", "jobTitle", "department",
    "companyName", "city", "state", "accountEnabled", "createdDateTime",
)


def _optional(value: Optional[str]) -> Optional[str]:
    return value or None


def _clean_city(city: Optional[str]) -> Optional[str]:
    if not city:
        return None
    city = city.strip()
    if not city or city == "None":
        return None
    return city


def create_locations_from_users(users: Sequence[Dict[str, Any]]) -> Tuple[List[Dict[str, str]], List[str]]:
    """Unique locations from the users' cities, plus one note per unresolved city.

    A city that can't be resolved is still returned, on the default timezone.
    """
    locations: Dict[str, Dict[str, str]] = {}
    errors: List[str] = []

    for user in users:
        city = _clean_city(user.get("city"))
        if city is None or city in locations:
            continue

        info = lookup_location(city, user.get("state"))
        if info is None:
            logger.warning("Location lookup failed, using default timezone",
                           city=city, state=user.get("state"), timezone=DEFAULT_LOCATION[1])
            errors.append(f"Could not find location info for: {city}")
            info = DEFAULT_LOCATION

        state, timezone = info
        locations[city] = {"name": city, "state": state, "timezone": timezone}

    return list(locations.values()), errors


def map_location_to_record(location: Dict[str, str]) -> Dict[str, Any]:
    return {
        "name": location["name"],
        "state": location.get("state") or None,
        "timezone": location["timezone"],
    }


def map_user_to_record(user: Dict[str, Any], location_id: Optional[int] = None) -> Dict[str, Any]:
    """Column values for the users row of a Graph user"""
    try:
        created = user.get("createdDateTime")
        azure_created_at: Optional[datetime] = None
        if created and created != "None":
            azure_created_at = parse_timestamp(created)

        return {
            "azure_id": user["id"],
            "name": user["displayName"],
            "email": user.get("userPrincipalName") or "",
            "job_title": _optional(user.get("jobTitle")),
            "department": _optional(user.get("department")),
            "company_name": _optional(user.get("companyName")),
            "city": _clean_city(user.get("city")),
            "location_id": location_id,
            "azure_created_at": azure_created_at,
        }
    except (KeyError, TypeError, ValueError) as e:
        raise MappingError(f"user {user.get('displayName', 'unknown')}", repr(e)) from e


def user_city(user: Dict[str, Any]) -> Optional[str]:
    return _clean_city(user.get("city"))


class AzureCollector(BaseCollector):
    """Client for the Microsoft identity platform and Graph users endpoint"""

    service = "Graph API"

    def __init__(self, session=None, timeout: int = 30, max_pages: int = 50,
                 login_url: str = LOGIN_URL, graph_url: str = GRAPH_URL):
        super().__init__(session=session, timeout=timeout)
        self.max_pages = max_pages
        self.login_url = login_url.rstrip("/")
        self.graph_url = graph_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings, session=None) -> "AzureCollector":
        return cls(session=session, timeout=settings.http_timeout_seconds, max_pages=settings.graph_max_pages)

    async def get_access_token(self, tenant: AzureTenant) -> str:
        """Client-credentials token for one tenant"""
        url = f"{self.login_url}/{tenant.tenant_id}/oauth2/v2.0/token"
        form = {
            "client_id": tenant.client_id,
            "client_secret": tenant.client_secret,
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        }
        payload, _ = await self._request(
            "POST", url, data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            service=f"Token request for {tenant.prefix}",
        )
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise ExternalServiceError(f"Token request for {tenant.prefix}", "response carried no access_token")
        logger.info("Azure token acquired", tenant=tenant.prefix)
        return token

    async def fetch_users(self, token: str, company_name: str) -> List[Dict[str, Any]]:
        """Enabled users whose companyName matches, following @odata.nextLink"""
        url = f"{self.graph_url}/users?$select={','.join(USER_FIELDS)}"
        headers = {"Authorization": f"Bearer {token}"}
        all_users: List[Dict[str, Any]] = []
        page_count = 0

        while url and page_count < self.max_pages:
            page_count += 1
            payload, _ = await self._request("GET", url, headers=headers)
            all_users.extend(payload.get("value", []))
            url = payload.get("@odata.nextLink")

        if url:
            logger.warning("Graph paging stopped at page limit", company=company_name, pages=page_count)

        users = [
            user for user in all_users
            if user.get("companyName") == company_name and user.get("accountEnabled") is True
        ]
        logger.info("Azure users fetched", company=company_name, total=len(all_users), kept=len(users))
        return users

    async def fetch_tenant_users(self, tenant: AzureTenant) -> List[Dict[str, Any]]:
        token = await self.get_access_token(tenant)
        return await self.fetch_users(token, tenant.company_name)

    async def fetch_all_users(self, tenants: Sequence[AzureTenant]) -> List[Dict[str, Any]]:
        """Users of every tenant, fetched concurrently, in tenant order"""
        per_tenant = await asyncio.gather(*(self.fetch_tenant_users(tenant) for tenant in tenants))
        return [user for users in per_tenant for user in users]
