# Host-side services: process state, event channel, sidecar launcher, startup.
# Created: 2026-10-19
#
# These play the desktop application's part: they start the bridge and the
# sidecar, answer the status query and emit "server-ready".
