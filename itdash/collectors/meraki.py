"""
Meraki Dashboard collector

Fetches monitored devices and their availability change history, and maps
devices with a computed uptime into network_devices rows.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from itdash.collectors.base import BaseCollector, parse_timestamp
from itdash.core.config import Settings
from itdash.core.errors import ExternalServiceError, MappingError
from itdash.core.uptime import DEFAULT_WINDOW_DAYS, MerakiDevice, StatusChangeEvent, reporting_window

logger = structlog.get_logger(__name__)

DEFAULT_PRODUCT_TYPES = ("switch", "wireless", "sensor")
PER_PAGE = 1000


def _status_value(changes: Sequence[Dict[str, Any]]) -> str:
    for change in changes:
        if change.get("name", "status") == "status":
            return change["value"]
    raise KeyError("status")


def parse_change_history(entry: Dict[str, Any]) -> Tuple[str, StatusChangeEvent]:
    """Turn one changeHistory entry into ``(serial, event)``"""
    try:
        serial = entry["device"]["serial"]
        event = StatusChangeEvent(
            timestamp=parse_timestamp(entry["ts"]),
            previous_state=_status_value(entry["details"]["old"]),
            new_state=_status_value(entry["details"]["new"]),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise MappingError(f"change history entry at {entry.get('ts', 'unknown')}", repr(e)) from e
    return serial, event


def parse_device(entry: Dict[str, Any]) -> MerakiDevice:
    try:
        return MerakiDevice(
            serial=entry["serial"],
            status=entry.get("status") or "unknown",
            name=entry.get("name") or entry["serial"],
            product_type=entry.get("productType") or "",
            network_name=(entry.get("network") or {}).get("name"),
        )
    except (KeyError, TypeError) as e:
        raise MappingError(f"device {entry.get('name', 'unknown')}", repr(e)) from e


def map_device_to_record(device: MerakiDevice) -> Dict[str, Any]:
    """Column values for the network_devices row of ``device``"""
    return {
        "meraki_device_id": device.serial,
        "name": device.name,
        "product_type": device.product_type,
        "network_name": device.network_name,
        "status": device.status,
        "uptime_percentage": device.uptime_percentage if device.uptime_percentage is not None else 0.0,
    }


class MerakiCollector(BaseCollector):
    """Client for the Meraki Dashboard API v1"""

    service = "Meraki"

    def __init__(self, api_key: str,
                 base_url: str = "https://api.meraki.com/api/v1",
                 product_types: Sequence[str] = DEFAULT_PRODUCT_TYPES,
                 session=None,
                 timeout: int = 30):
        super().__init__(session=session, timeout=timeout)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.product_types = list(product_types)

    @classmethod
    def from_settings(cls, settings: Settings, session=None) -> "MerakiCollector":
        return cls(
            settings.meraki_credentials(),
            base_url=settings.meraki_base_url,
            product_types=settings.meraki_product_types,
            session=session,
            timeout=settings.http_timeout_seconds,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def _product_type_params(self) -> List[Tuple[str, str]]:
        return [("productTypes[]", product_type) for product_type in self.product_types]

    async def _get_all(self, path: str, params: Optional[List[Tuple[str, str]]] = None) -> List[Dict[str, Any]]:
        """GET a list endpoint, following Link rel=next until exhausted"""
        url = f"{self.base_url}{path}"
        items: List[Dict[str, Any]] = []
        page = 0

        while url:
            page += 1
            payload, next_url = await self._request("GET", url, params=params)
            if not isinstance(payload, list):
                raise ExternalServiceError(self.service, f"expected a list from {path}, got {type(payload).__name__}")
            items.extend(payload)
            logger.debug("Page fetched", path=path, page=page, count=len(payload))
            url = next_url
            # next links already carry the query string
            params = None

        return items

    async def get_org_id(self) -> str:
        """Id of the first organization the API key can see"""
        organizations = await self._get_all("/organizations")
        if not organizations:
            raise ExternalServiceError(self.service, "No organizations found")

        org_id = str(organizations[0]["id"])
        logger.info("Meraki organization resolved", org_id=org_id, name=organizations[0].get("name"))
        return org_id

    async def fetch_devices(self, org_id: str) -> List[MerakiDevice]:
        """Current availability of every device of the configured product types"""
        params = [("perPage", str(PER_PAGE))] + self._product_type_params()
        entries = await self._get_all(f"/organizations/{org_id}/devices/availabilities", params)
        if not entries:
            raise ExternalServiceError(self.service, "No devices found")

        devices = [parse_device(entry) for entry in entries]
        logger.info("Meraki devices fetched", count=len(devices))
        return devices

    async def fetch_device_histories(self, org_id: str,
                                     devices: Sequence[MerakiDevice],
                                     window_days=DEFAULT_WINDOW_DAYS,
                                     now: Optional[datetime] = None) -> List[MerakiDevice]:
        """Return new devices carrying their window-clipped, ascending history.

        The API lists changes newest first; entries are reversed into
        chronological order, grouped by serial and clipped to
        ``[now - window_days, now]``.
        """
        window_start, window_end = reporting_window(window_days, now)
        params = [
            ("t0", window_start.isoformat()),
            ("t1", window_end.isoformat()),
            ("perPage", str(PER_PAGE)),
        ] + self._product_type_params()

        entries = await self._get_all(f"/organizations/{org_id}/devices/availabilities/changeHistory", params)

        histories: Dict[str, List[StatusChangeEvent]] = defaultdict(list)
        network_names: Dict[str, str] = {}
        skipped = 0
        for entry in reversed(entries):
            try:
                serial, event = parse_change_history(entry)
            except MappingError as e:
                logger.warning("Skipping change history entry", error=str(e))
                skipped += 1
                continue
            if event.timestamp < window_start or event.timestamp > window_end:
                skipped += 1
                continue
            histories[serial].append(event)
            network_name = (entry.get("network") or {}).get("name")
            if network_name:
                network_names[serial] = network_name

        result = []
        for device in devices:
            # stable sort keeps the API order for equal timestamps
            history = tuple(sorted(histories.get(device.serial, ()), key=lambda event: event.timestamp))
            result.append(replace(
                device,
                status_history=history,
                network_name=device.network_name or network_names.get(device.serial),
            ))

        logger.info("Meraki device histories attached",
                    entries=len(entries),
                    skipped=skipped,
                    devices_with_history=sum(1 for device in result if device.status_history))
        return result
