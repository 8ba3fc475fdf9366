#!/usr/bin/env python3
"""Clipboard synchronization event handlers.

This module provides handlers for the two event sources of a node:
- handle_local_snapshot: a poll tick observed clipboard content; broadcast
  it if it is new
- handle_incoming_message: a peer delivered a message; apply it locally and
  forward it to every other peer if it is new
- receive_loop: feed every frame from one connection to the inbound handler

The first two consult the dedup ledger first. The ledger is marked before the
local clipboard is written, so when the next poll tick reads back the same
bytes it finds the hash already seen and does not echo them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from clipmesh.apply import apply_message, exceeds_limit
from clipmesh.fanout import broadcast
from clipmesh.message import SyncMessage, parse_message

if TYPE_CHECKING:
    from clipmesh.connection import PeerConnection
    from clipmesh.snapshot import ContentSnapshot
    from clipmesh.sync_state import NodeState

logger = logging.getLogger(__name__)


def handle_local_snapshot(state: NodeState, snapshot: ContentSnapshot) -> bool:
    """Broadcast a locally captured snapshot if it has not been seen.

    Args:
        state: The node synchronization state.
        snapshot: Snapshot from the latest poll tick.

    Returns:
        True if the snapshot was broadcast.
    """
    if snapshot.hash == state.last_observed_hash:
        return False
    state.last_observed_hash = snapshot.hash

    if not state.ledger.claim(snapshot.hash):
        logger.debug("Skipping %s already seen in mesh", snapshot.kind.value)
        return False

    max_bytes = state.config.max_bytes
    if exceeds_limit(snapshot.data, max_bytes):
        logger.info(
            "skip broadcast > %s MB (%.2f MB)", f"{state.config.max_mb:g}", snapshot.size_mb
        )
        return False

    msg = SyncMessage.from_snapshot(snapshot, state.node_id)
    queued = broadcast(state.registry, msg)
    logger.info(
        "broadcast %s (%.2f MB) to %d peer(s)", snapshot.kind.value, snapshot.size_mb, queued
    )
    return True


async def handle_incoming_message(
    state: NodeState, conn: PeerConnection | None, msg: SyncMessage
) -> bool:
    """Apply a message from a peer and forward it through the mesh.

    The hash is marked before anything else, including for oversized
    payloads, so the same item arriving again over another path is not
    reprocessed. Oversized payloads are neither applied nor forwarded.
    A failing clipboard write is logged and the message is still forwarded
    so the rest of the mesh converges.

    Args:
        state: The node synchronization state.
        conn: Connection the message arrived on, excluded from the fanout.
        msg: The parsed message.

    Returns:
        True if the message was new and within the size ceiling.
    """
    if not state.ledger.claim(msg.hash):
        logger.debug("Dropping already seen %s from %s", msg.kind.value, _label(conn))
        return False

    max_bytes = state.config.max_bytes
    if exceeds_limit(msg.data, max_bytes):
        logger.warning(
            "Dropping %s from %s: %.2f MB exceeds %s MB limit",
            msg.kind.value,
            _label(conn),
            len(msg.data) / (1024 * 1024),
            f"{state.config.max_mb:g}",
        )
        return False

    try:
        written = await asyncio.to_thread(apply_message, state.clipboard, msg, max_bytes)
    except Exception as e:
        logger.warning("apply failed for %s from %s: %s", msg.kind.value, _label(conn), e)
    else:
        if written:
            logger.info(
                "applied %s from %s (%.1f KiB)", msg.kind.value, _label(conn), msg.size_kib
            )
        else:
            logger.debug("Nothing written for %s from %s", msg.kind.value, _label(conn))

    broadcast(state.registry, msg, exclude=conn)
    return True


async def receive_loop(state: NodeState, conn: PeerConnection) -> None:
    """Handle every message arriving on one connection, in arrival order.

    Malformed frames are discarded silently. Returns when the remote says
    goodbye.

    Args:
        state: The node synchronization state.
        conn: A handshaken connection.

    Raises:
        ProtocolError: On framing violations or an unannounced disconnect.
    """
    async for frame in conn.frames():
        msg = parse_message(frame)
        if msg is None:
            continue
        await handle_incoming_message(state, conn, msg)


def _label(conn: PeerConnection | None) -> str:
    return conn.label if conn is not None else "peer"
