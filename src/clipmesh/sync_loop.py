#!/usr/bin/env python3
"""Clipboard polling loop.

This module provides run_poll_loop, the fixed-interval timer that drives
capture on a node. Capture runs on a worker thread so slow clipboard queries
and zip construction never block connection handling on the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING

from clipmesh.capture import capture
from clipmesh.sync_handlers import handle_local_snapshot

if TYPE_CHECKING:
    from clipmesh.sync_state import NodeState

logger = logging.getLogger(__name__)


async def poll_once(state: NodeState) -> bool:
    """Run one poll tick.

    Args:
        state: The node synchronization state.

    Returns:
        True if the tick broadcast a new snapshot.
    """
    snapshot = await asyncio.to_thread(capture, state.clipboard)
    if snapshot is None:
        return False
    return handle_local_snapshot(state, snapshot)


async def run_poll_loop(state: NodeState, shutdown_requested: asyncio.Event) -> None:
    """Poll the clipboard until shutdown is requested.

    A failing tick is logged and the loop carries on; one bad tick never
    stops polling.

    Args:
        state: The node synchronization state.
        shutdown_requested: Event set when the node should stop.
    """
    interval = state.config.poll_interval
    while not shutdown_requested.is_set():
        try:
            await poll_once(state)
        except Exception as e:
            logger.error("poll error: %s", e)
        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(shutdown_requested.wait(), timeout=interval)
