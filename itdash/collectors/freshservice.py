"""
Freshservice collector

Fetches tickets, agents and assets from the Freshservice v2 API and maps them
into database rows.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import structlog

from itdash.collectors.base import BaseCollector, parse_timestamp
from itdash.core.config import Settings
from itdash.core.errors import ExternalServiceError, MappingError

logger = structlog.get_logger(__name__)

STATUS_MESSAGES = {
    2: "Open",
    3: "Pending",
    4: "Resolved",
    5: "Closed",
}

PRIORITY_MESSAGES = {
    1: "Low",
    2: "Medium",
    3: "High",
    4: "Urgent",
}

SOURCE_MESSAGES = {
    1: "Email",
    2: "Portal",
    3: "Phone",
    4: "Chat",
    5: "Feedback widget",
    6: "Yammer",
    7: "AWS Cloudwatch",
    8: "Pagerduty",
    9: "Walkup",
    10: "Slack",
    11: "Chatbot",
    12: "Workplace",
    13: "Employee Onboarding",
    14: "Alerts",
    15: "MS Teams",
    18: "Employee Offboarding",
}


def convert_status(status: Optional[int]) -> str:
    return STATUS_MESSAGES.get(status, "Unknown")


def convert_priority(priority: Optional[int]) -> str:
    return PRIORITY_MESSAGES.get(priority, "Unknown")


def convert_source(source: Optional[int]) -> str:
    return SOURCE_MESSAGES.get(source, "Unknown")


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


def _optional_id(value) -> Optional[str]:
    return str(value) if value else None


def create_agent_email_map(agents: Sequence[Dict[str, Any]]) -> Dict[Any, str]:
    """Agent id -> agent e-mail"""
    return {agent["id"]: agent["email"] for agent in agents if agent.get("email")}


def requester_email(ticket: Dict[str, Any]) -> Optional[str]:
    return (ticket.get("requester") or {}).get("email")


def map_ticket_to_record(ticket: Dict[str, Any], requester_id: int, assignee_id: Optional[int] = None) -> Dict[str, Any]:
    """Column values for the tickets row of a Freshservice ticket"""
    try:
        stats = ticket.get("stats") or {}
        ticket_id = stats.get("ticket_id", ticket.get("id"))
        if ticket_id is None:
            raise KeyError("ticket_id")

        return {
            "fs_ticket_id": str(ticket_id),
            "subject": ticket["subject"],
            "category": ticket.get("category") or None,
            "description": ticket.get("description_text") or None,
            "status": convert_status(ticket.get("status")),
            "priority": convert_priority(ticket.get("priority")),
            "source": convert_source(ticket.get("source")),
            "department_id": _optional_id(ticket.get("department_id")),
            "workspace_id": ticket.get("workspace_id"),
            "created_at": parse_timestamp(ticket["created_at"]),
            "assigned_at": _optional_timestamp(stats.get("first_assigned_at")),
            "resolved_at": _optional_timestamp(stats.get("resolved_at")),
            "first_response_time": stats.get("first_resp_time_in_secs") or None,
            "resolution_time": stats.get("resolution_time_in_secs") or None,
            "requester_id": requester_id,
            "assignee_id": assignee_id,
        }
    except (KeyError, TypeError, ValueError) as e:
        raise MappingError(f"ticket {ticket.get('subject', 'unknown')}", repr(e)) from e


def map_asset_to_record(asset: Dict[str, Any]) -> Dict[str, Any]:
    """Column values for the assets row of a Freshservice asset"""
    try:
        return {
            "fs_asset_id": str(asset["id"]),
            "asset_name": asset["name"],
            "asset_type": _optional_id(asset.get("asset_type_id")),
            "asset_tag": asset.get("asset_tag") or None,
            "location_id": _optional_id(asset.get("location_id")),
            "user_id": _optional_id(asset.get("user_id")),
            "lender_id": _optional_id(asset.get("agent_id")),
        }
    except (KeyError, TypeError) as e:
        raise MappingError(f"asset {asset.get('name', 'unknown')}", repr(e)) from e


class FreshserviceCollector(BaseCollector):
    """Client for the Freshservice v2 REST API"""

    service = "FreshService"

    def __init__(self, api_key: str, domain: str, session=None, timeout: int = 30, per_page: int = 100):
        super().__init__(session=session, timeout=timeout)
        self.auth = aiohttp.BasicAuth(api_key, "")
        self.base_url = f"https://{domain}/api/v2"
        self.per_page = per_page

    @classmethod
    def from_settings(cls, settings: Settings, session=None) -> "FreshserviceCollector":
        api_key, domain = settings.freshservice_credentials()
        return cls(api_key, domain, session=session, timeout=settings.http_timeout_seconds)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get_pages(self, resource: str, params: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        """Walk ``/resource`` from page 1 until a page comes back empty"""
        items: List[Dict[str, Any]] = []
        page = 1

        while True:
            query = {"per_page": str(self.per_page), "page": str(page)}
            if params:
                query.update(params)

            payload, _ = await self._request("GET", f"{self.base_url}/{resource}", params=query, auth=self.auth)
            if not isinstance(payload, dict):
                raise ExternalServiceError(self.service, f"unexpected {resource} payload on page {page}")

            batch = payload.get(resource) or []
            if not batch:
                break

            items.extend(batch)
            logger.debug("Page fetched", resource=resource, page=page, count=len(batch))
            page += 1

        logger.info("Fetch complete", resource=resource, total=len(items))
        return items

    async def fetch_tickets(self, updated_since: datetime) -> List[Dict[str, Any]]:
        """Tickets updated since ``updated_since``, with requester and stats embedded"""
        logger.info("Fetching tickets", updated_since=updated_since.isoformat())
        return await self._get_pages("tickets", {
            "include": "requester,stats",
            "updated_since": updated_since.strftime("%Y-%m-%dT%H:%M:%SZ"),
        })

    async def fetch_agents(self) -> List[Dict[str, Any]]:
        return await self._get_pages("agents", {"active": "true"})

    async def fetch_assets(self) -> List[Dict[str, Any]]:
        return await self._get_pages("assets")
