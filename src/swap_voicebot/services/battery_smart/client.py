"""
Battery Smart driver-data API client.
Thin httpx wrapper used by the intent handlers for swap, scheme,
subscription and driver lookups.
"""

import time
from typing import Any

import httpx
import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.errors import DomainAPIError
from swap_voicebot.utils.logging import log_api_call

logger = structlog.get_logger(__name__)


class BatterySmartClient:
    """
    Client for the driver-data REST API.

    Every call is a GET returning a JSON envelope, either
    {"success": true, "data": ...} or {"status": "success", "data": ...}.
    Envelope interpretation is left to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = get_settings()
        self.base_url = base_url or self.settings.battery_smart.api_base
        self.timeout = self.settings.battery_smart.timeout_seconds
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.settings.battery_smart.api_key:
                headers["Authorization"] = f"Bearer {self.settings.battery_smart.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout
            )
        return self._client

    async def call_domain_api(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        GET an endpoint and return its decoded JSON body.

        Raises:
            DomainAPIError: transport failure, timeout, non-2xx status or non-JSON body
        """
        client = await self._get_client()
        start = time.monotonic()
        try:
            response = await client.get(endpoint, params=params)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log_api_call(
                "battery_smart", endpoint,
                success=False, status=status,
                duration_ms=int((time.monotonic() - start) * 1000),
                params=params,
            )
            raise DomainAPIError(endpoint, f"HTTP {status}", status) from e
        except httpx.HTTPError as e:
            log_api_call(
                "battery_smart", endpoint,
                success=False,
                duration_ms=int((time.monotonic() - start) * 1000),
                error=str(e) or type(e).__name__,
                params=params,
            )
            raise DomainAPIError(endpoint, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise DomainAPIError(endpoint, "Response is not JSON") from e

        log_api_call(
            "battery_smart", endpoint,
            success=True, status=response.status_code,
            duration_ms=int((time.monotonic() - start) * 1000),
            params=params,
        )
        if not isinstance(body, dict):
            raise DomainAPIError(endpoint, "Unexpected response shape")
        return body

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
