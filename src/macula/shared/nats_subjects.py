"""Canonical NATS subject names for the Macula node bus.

Keep these as the single source of truth to avoid drift between the node
services and the operator console.
"""

from __future__ import annotations

# Node subjects (published by macula-node)
NODE_STATUS = "macula.node.status"

# Mesh subjects
PEER_DISCOVERED = "macula.mesh.peer.discovered"
PEER_DISCONNECTED = "macula.mesh.peer.disconnected"

# Log subjects, one subtree per service: macula.logs.<service>
LOGS_PREFIX = "macula.logs"
LOGS_WILDCARD = "macula.logs.>"

# App subjects
APP_STATUS = "macula.apps.status"

# Control subjects
COMMANDS = "macula.commands"

CONSOLE_SUBSCRIPTIONS = (
    NODE_STATUS,
    PEER_DISCOVERED,
    PEER_DISCONNECTED,
    LOGS_WILDCARD,
    APP_STATUS,
)
