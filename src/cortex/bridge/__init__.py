# Credential bridge: a localhost HTTP broker for API keys.
# Created: 2026-10-19
#
# Only the sidecar talks to the bridge, using a per-session bearer token.
# The frontend never sees the bridge port or token.

from cortex.bridge.client import BridgeClient
from cortex.bridge.server import BridgeHandle, create_bridge_app, start_bridge
from cortex.bridge.store import (
    KNOWN_SERVICES,
    ApiKeyEntry,
    CredentialStore,
    MemoryCredentialStore,
)

__all__ = [
    "KNOWN_SERVICES",
    "ApiKeyEntry",
    "BridgeClient",
    "BridgeHandle",
    "CredentialStore",
    "MemoryCredentialStore",
    "create_bridge_app",
    "start_bridge",
]
