#!/usr/bin/env python3
"""Outbound peer links with automatic reconnection.

This module provides PeerLink, one supervised connection to a configured
peer address. The link retries forever with a fixed backoff using tenacity,
re-registering each new connection with the node's registry so fanout always
addresses the current connection and never a stale one. Connection loss,
handshake refusal and a clean goodbye from the remote all lead to another
attempt after the delay; only cancellation stops the link.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from tenacity import AsyncRetrying, retry_if_exception_type, stop_never, wait_fixed

from clipmesh.config import split_address
from clipmesh.connection import PeerConnection
from clipmesh.peer_constants import HANDSHAKE_TIMEOUT, RECONNECT_DELAY
from clipmesh.protocol import (
    HANDSHAKE_FRAME_LIMIT,
    AuthenticationError,
    ProtocolError,
    encode_hello,
    frame_limit,
    parse_welcome,
    read_netstring,
)
from clipmesh.sync_handlers import receive_loop

if TYPE_CHECKING:
    from clipmesh.sync_state import NodeState

logger = logging.getLogger(__name__)

# Failures that lead to another connection attempt.
RETRY_ERRORS = (ConnectionError, OSError, ProtocolError, asyncio.TimeoutError)


async def offer_handshake(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    node_id: str,
    key: str | None,
) -> dict[str, Any]:
    """Send the hello frame and wait for the welcome.

    Args:
        reader: The asyncio StreamReader for the new connection.
        writer: The asyncio StreamWriter for the new connection.
        node_id: This node's id.
        key: Shared secret to present, or None.

    Returns:
        The welcome fields sent by the remote.

    Raises:
        AuthenticationError: If the remote closed the connection instead of
            answering, which is how a refused secret looks from this side.
        ProtocolError: If the answer is not a welcome frame.
    """
    writer.write(encode_hello(node_id, key))
    await writer.drain()
    try:
        content = await read_netstring(reader, HANDSHAKE_FRAME_LIMIT)
    except ProtocolError as e:
        raise AuthenticationError(f"connection refused before welcome ({e})") from e
    return parse_welcome(content)


class PeerLink:
    """Supervised outbound connection to one configured peer.

    Attributes:
        address: The configured "host:port" string.
        host: Host part of the address.
        port: Port part of the address.
        connection: The current live connection, or None while reconnecting.
        reconnect_delay: Seconds between connection attempts.
    """

    def __init__(
        self, state: NodeState, address: str, reconnect_delay: float = RECONNECT_DELAY
    ) -> None:
        self.state = state
        self.address = address
        self.host, self.port = split_address(address)
        self.connection: PeerConnection | None = None
        self.reconnect_delay = reconnect_delay
        self._failures = 0

    async def run(self) -> None:
        """Keep the link connected until cancelled."""
        retrying = AsyncRetrying(
            wait=wait_fixed(self.reconnect_delay),
            retry=retry_if_exception_type(RETRY_ERRORS),
            stop=stop_never,
        )
        async for attempt in retrying:
            with attempt:
                await self.connect_once()

    async def connect_once(self) -> None:
        """Make one connection attempt and serve it until it ends.

        Raises:
            ConnectionError: When the connection could not be opened or has
                ended, so the retry loop tries again.
            ProtocolError: On handshake refusal or framing violations.
        """
        logger.debug("connecting -> %s", self.address)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), timeout=HANDSHAKE_TIMEOUT
            )
        except (OSError, asyncio.TimeoutError) as e:
            self._log_failure(f"connect error <- {self.address}: {e}")
            raise ConnectionError(f"Failed to connect to {self.address}: {e}") from e

        try:
            await asyncio.wait_for(
                offer_handshake(reader, writer, self.state.node_id, self.state.config.key),
                timeout=HANDSHAKE_TIMEOUT,
            )
        except AuthenticationError as e:
            self._log_failure(f"handshake refused by {self.address}: {e}")
            writer.close()
            raise
        except BaseException:
            writer.close()
            raise

        conn = PeerConnection(
            reader, writer, self.address, frame_limit(self.state.config.max_bytes)
        )
        self._failures = 0
        self.connection = conn
        self.state.registry.add(conn)
        logger.info("connected -> %s", self.address)
        try:
            await receive_loop(self.state, conn)
        except ProtocolError as e:
            logger.info("disconnected <- %s: %s", self.address, e)
            raise
        finally:
            self.state.registry.discard(conn)
            self.connection = None
            await conn.close()

        logger.info("disconnected <- %s: goodbye", self.address)
        raise ConnectionError(f"{self.address} closed the connection")

    def _log_failure(self, message: str) -> None:
        # First failure in a row at INFO, repeats at DEBUG.
        self._failures += 1
        if self._failures == 1:
            logger.info(message)
        else:
            logger.debug(message)
