"""
Shared aiohttp plumbing for the platform collectors
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import aiohttp
import structlog

from itdash.core.errors import ExternalServiceError

logger = structlog.get_logger(__name__)

# Longest slice of an error body kept in messages
ERROR_TEXT_LIMIT = 500


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, treating a trailing Z as UTC"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class BaseCollector:
    """Owns one HTTP session and turns error responses into ExternalServiceError"""

    service = "API"

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, timeout: int = 30):
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this collector opened it"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    async def _request(self, method: str, url: str, *,
                       params=None,
                       data=None,
                       headers: Optional[Dict[str, str]] = None,
                       auth: Optional[aiohttp.BasicAuth] = None,
                       service: Optional[str] = None) -> Tuple[Any, Optional[str]]:
        """Send one request and return ``(payload, next_url)``.

        ``next_url`` comes from a ``Link: <...>; rel=next`` header when the
        platform paginates that way.
        """
        service = service or self.service
        session = await self._get_session()
        request_headers = dict(self._headers())
        if headers:
            request_headers.update(headers)

        try:
            async with session.request(method, url, params=params, data=data,
                                       headers=request_headers, auth=auth) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    logger.error("API error", service=service, status=resp.status,
                                 url=str(url), body=error_text[:ERROR_TEXT_LIMIT])
                    raise ExternalServiceError(service, error_text[:ERROR_TEXT_LIMIT],
                                               status=resp.status, body=error_text)

                payload = await resp.json(content_type=None)
                next_link = resp.links.get("next") if resp.links else None
                next_url = str(next_link["url"]) if next_link else None
                return payload, next_url

        except aiohttp.ClientError as e:
            logger.error("Request failed", service=service, url=str(url), error=str(e))
            raise ExternalServiceError(service, str(e)) from e
