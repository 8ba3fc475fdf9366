#!/usr/bin/env python3
"""Fanout broadcaster.

Sends one SyncMessage to every live connection, inbound and outbound alike,
except the connection it arrived on. Delivery is best-effort and
fire-and-forget: the frame is encoded once and queued on each connection,
and a failure on one connection never reaches the others or the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipmesh.message import encode_message
from clipmesh.protocol import encode_netstring

if TYPE_CHECKING:
    from clipmesh.connection import PeerConnection
    from clipmesh.message import SyncMessage
    from clipmesh.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def broadcast(
    registry: ConnectionRegistry,
    msg: SyncMessage,
    exclude: PeerConnection | None = None,
) -> int:
    """Queue msg on every current connection except exclude.

    Args:
        registry: The node's live connections.
        msg: The message to send.
        exclude: Connection the message arrived on, or None for locally
            originated messages.

    Returns:
        Number of connections the frame was queued on.
    """
    frame = encode_netstring(encode_message(msg))
    queued = 0
    for conn in registry.snapshot():
        if conn is exclude:
            continue
        try:
            if conn.send(frame):
                queued += 1
        except Exception as e:
            logger.debug("Send to %s failed: %s", getattr(conn, "label", conn), e)
    return queued
