#!/usr/bin/env python3
"""Inbound listener for clipmesh.

Every node listens on a TCP port and accepts any number of peers. Each
accepted connection is handed to handle_inbound, which enforces the
shared-secret gate before any sync message is read.

A node cannot usefully run without its listener, so failing to bind is the
one fatal startup error.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from clipmesh.server_handler import handle_inbound

if TYPE_CHECKING:
    from clipmesh.sync_state import NodeState


class ListenError(Exception):
    """Raised when the inbound listener cannot bind its address."""

    pass


async def start_listener(state: NodeState) -> asyncio.Server:
    """Bind the inbound listener.

    Args:
        state: The node synchronization state.

    Returns:
        The running asyncio server.

    Raises:
        ListenError: If the configured host and port cannot be bound.
    """
    host = state.config.host
    port = state.config.port
    try:
        return await asyncio.start_server(
            lambda r, w: handle_inbound(state, r, w),
            host=host,
            port=port,
        )
    except OSError as e:
        raise ListenError(f"Cannot listen on {host}:{port}: {e}") from e


def bound_port(server: asyncio.Server) -> int:
    """Return the port the listener actually bound (useful with port 0)."""
    for sock in server.sockets:
        return sock.getsockname()[1]
    raise ListenError("Listener has no bound sockets")
