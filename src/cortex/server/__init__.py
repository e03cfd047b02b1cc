# Sidecar HTTP server.
# Created: 2026-10-19
#
# Started by the host on an ephemeral port; the port is announced on stdout
# as a CORTEX_PORT:<port> marker.

from cortex.server.app import (
    create_app,
    format_port_marker,
    parse_port_marker,
    run_server,
)

__all__ = ["create_app", "format_port_marker", "parse_port_marker", "run_server"]
