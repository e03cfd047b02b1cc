"""Cortex sidecar integration layer.

Local HTTP sidecar, readiness-gated client and credential bridge for the
Cortex desktop application.
"""

__version__ = "0.1.0"
