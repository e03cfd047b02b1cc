# Bridge client: fetches API keys from the credential bridge.
# Created: 2026-10-19

from __future__ import annotations

import logging
import urllib.parse

import httpx

from cortex.config import Settings, get_settings
from cortex.errors import BridgeError

logger = logging.getLogger(__name__)


class BridgeClient:
    """HTTP client for the credential bridge, authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._http = http_client
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> BridgeClient:
        settings = settings or get_settings()
        return cls(settings.bridge_url, settings.bridge_token)

    async def get_api_key(self, service: str) -> str | None:
        """Fetch the API key for *service*.

        Returns None when the bridge has no key for it (HTTP 404).
        Raises BridgeError for any other non-success status.
        """
        url = f"{self.base_url}/api-key/{urllib.parse.quote(service, safe='')}"
        headers = {"Authorization": f"Bearer {self._token}"}

        if self._http is not None:
            resp = await self._http.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.get(url, headers=headers)

        if resp.status_code == 404:
            logger.debug("No API key stored for %s", service)
            return None
        if not resp.is_success:
            raise BridgeError(resp.status_code, service)

        try:
            return resp.json()["key"]
        except (ValueError, KeyError, TypeError) as e:
            raise BridgeError(resp.status_code, service, "malformed response body") from e
