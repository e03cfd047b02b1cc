# Credential store used by the bridge.
# Created: 2026-10-19
#
# The OS keychain lives outside this package; anything implementing
# CredentialStore can back the bridge. MemoryCredentialStore keeps keys for
# the lifetime of the process only.

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

KEYCHAIN_SERVICE_PREFIX = "com.cortex"
KEYCHAIN_ACCOUNT = "api-key"

# Known API key services and their display names
KNOWN_SERVICES: tuple[tuple[str, str], ...] = (
    ("openai", "OpenAI"),
    ("anthropic", "Anthropic"),
    ("google", "Google AI"),
)


class ApiKeyEntry(BaseModel):
    """An API key service and whether a key is stored (never the key itself)."""

    service: str
    display_name: str
    has_key: bool


def keychain_service(service: str) -> str:
    """Full keychain service name for a service ID, e.g. ``com.cortex.api-key.openai``."""
    return f"{KEYCHAIN_SERVICE_PREFIX}.api-key.{service}"


class CredentialStore(Protocol):
    def get(self, service: str) -> str | None: ...

    def set(self, service: str, key: str) -> None: ...

    def delete(self, service: str) -> bool: ...


class MemoryCredentialStore:
    """Process-local credential store keyed by keychain service name."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._keys: dict[str, str] = {}
        for service, key in (initial or {}).items():
            self.set(service, key)

    def get(self, service: str) -> str | None:
        return self._keys.get(keychain_service(service))

    def set(self, service: str, key: str) -> None:
        if not key:
            raise ValueError("API key must not be empty")
        self._keys[keychain_service(service)] = key
        logger.info("API key stored for service: %s", service)

    def delete(self, service: str) -> bool:
        removed = self._keys.pop(keychain_service(service), None) is not None
        if removed:
            logger.info("API key deleted for service: %s", service)
        return removed


def has_api_key(store: CredentialStore, service: str) -> bool:
    return store.get(service) is not None


def list_api_key_services(store: CredentialStore) -> list[ApiKeyEntry]:
    """List the known services with their storage status."""
    entries = []
    for service, display_name in KNOWN_SERVICES:
        try:
            has_key = has_api_key(store, service)
        except Exception:
            logger.warning("Failed to check API key for %s", service, exc_info=True)
            has_key = False
        entries.append(ApiKeyEntry(service=service, display_name=display_name, has_key=has_key))
    return entries
