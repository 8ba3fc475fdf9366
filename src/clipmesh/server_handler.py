#!/usr/bin/env python3
"""Inbound peer connection handler.

This module provides the handler for peers that dial this node. Each
connection must pass the handshake, including the shared-secret gate when
one is configured, before it is registered for fanout and its messages are
read. A failing connection is logged and closed; it never affects the
listener or other connections.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from clipmesh.connection import PeerConnection
from clipmesh.peer_constants import HANDSHAKE_TIMEOUT
from clipmesh.protocol import (
    HANDSHAKE_FRAME_LIMIT,
    AuthenticationError,
    ProtocolError,
    check_secret,
    encode_welcome,
    frame_limit,
    parse_hello,
    read_netstring,
)
from clipmesh.sync_handlers import receive_loop

if TYPE_CHECKING:
    from clipmesh.sync_state import NodeState

logger = logging.getLogger(__name__)


async def accept_handshake(
    state: NodeState,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> dict[str, Any]:
    """Read the hello frame and answer with a welcome.

    Args:
        state: The node synchronization state.
        reader: The asyncio StreamReader for the new connection.
        writer: The asyncio StreamWriter for the new connection.

    Returns:
        The hello fields sent by the remote.

    Raises:
        AuthenticationError: If a secret is configured and the remote did
            not present it.
        ProtocolError: If the first frame is not a valid hello.
    """
    content = await read_netstring(reader, HANDSHAKE_FRAME_LIMIT)
    hello = parse_hello(content)
    if not check_secret(state.config.key, hello.get("auth")):
        raise AuthenticationError("missing or wrong key")
    writer.write(encode_welcome(state.node_id))
    await writer.drain()
    return hello


def describe_peer(writer: asyncio.StreamWriter) -> str:
    """Format the remote address of a connection for log lines."""
    peername = writer.get_extra_info("peername")
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return "unknown"


async def handle_inbound(
    state: NodeState,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    """Handle a single inbound peer connection.

    Runs the handshake, registers the connection, and feeds its messages to
    the sync handlers until the peer disconnects. Always unregisters and
    closes the connection on exit.

    Args:
        state: The node synchronization state.
        reader: The asyncio StreamReader for the socket connection.
        writer: The asyncio StreamWriter for the socket connection.
    """
    address = describe_peer(writer)
    try:
        hello = await asyncio.wait_for(
            accept_handshake(state, reader, writer), timeout=HANDSHAKE_TIMEOUT
        )
    except AuthenticationError as e:
        logger.warning("Rejected peer %s: %s", address, e)
        await _close_writer(writer)
        return
    except (ProtocolError, ConnectionError, OSError, asyncio.TimeoutError) as e:
        logger.debug("Handshake with %s failed: %s", address, e)
        await _close_writer(writer)
        return

    source = hello.get("source")
    label = f"{address} ({source})" if isinstance(source, str) and source else address
    conn = PeerConnection(
        reader, writer, label, frame_limit(state.config.max_bytes), inbound=True
    )
    state.registry.add(conn)
    logger.info("peer connected: %s", label)

    try:
        await receive_loop(state, conn)
        logger.debug("Peer %s disconnected cleanly", label)
    except ProtocolError as e:
        logger.debug("Protocol error from %s: %s", label, e)
    except (ConnectionError, OSError) as e:
        logger.debug("Connection error from %s: %s", label, e)
    finally:
        state.registry.discard(conn)
        await conn.close(goodbye=False)
        logger.info("peer disconnected: %s", label)


async def _close_writer(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except (ConnectionError, OSError):
        pass
