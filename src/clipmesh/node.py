#!/usr/bin/env python3
"""Node lifecycle for clipmesh.

A node binds its inbound listener, starts one PeerLink per configured peer,
and runs the poll loop. All three share one NodeState. On SIGINT/SIGTERM the
node stops polling, cancels its peer links, says goodbye on every open
connection and closes the listener, bounded by a grace period.

Usage:
    clipmesh --port 3030 --peers 192.168.1.20:3030 --key SECRET
"""

from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from typing import TYPE_CHECKING

from clipmesh.clipboard import create_clipboard
from clipmesh.config import SyncConfig, make_node_id
from clipmesh.peer_constants import SHUTDOWN_GRACE
from clipmesh.peer_link import PeerLink
from clipmesh.server import bound_port, start_listener
from clipmesh.sync_loop import run_poll_loop
from clipmesh.sync_state import NodeState

if TYPE_CHECKING:
    from clipmesh.clipboard import ClipboardCapability

logger = logging.getLogger(__name__)


class Node:
    """One member of the clipboard mesh.

    Attributes:
        state: Shared synchronization state.
        links: Outbound peer links, one per configured peer.
        port: The listener's bound port once started.
    """

    def __init__(
        self,
        config: SyncConfig,
        clipboard: ClipboardCapability,
        node_id: str | None = None,
    ) -> None:
        self.state = NodeState(
            clipboard=clipboard, node_id=node_id or make_node_id(), config=config
        )
        self.links = [PeerLink(self.state, address) for address in config.peers]
        self.port: int | None = None
        self._server: asyncio.Server | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Bind the listener and start peer links and polling.

        Raises:
            ListenError: If the listener cannot bind.
        """
        config = self.state.config
        self._server = await start_listener(self.state)
        self.port = bound_port(self._server)

        logger.info("Clipboard mesh node on %s:%d", config.host, self.port)
        logger.info("Instance: %s", self.state.node_id)
        if config.key:
            logger.info("Auth key enabled")
        if self.links:
            logger.info("Peers: %s", ", ".join(link.address for link in self.links))
        else:
            logger.info("No peers configured (use --peers host:port,host:port)")

        for link in self.links:
            self._tasks.append(asyncio.create_task(link.run()))
        self._tasks.append(asyncio.create_task(run_poll_loop(self.state, self._stopping)))

    async def stop(self) -> None:
        """Shut the node down within SHUTDOWN_GRACE seconds."""
        logger.info("Shutting down...")
        self._stopping.set()
        try:
            await asyncio.wait_for(self._teardown(), timeout=SHUTDOWN_GRACE)
        except asyncio.TimeoutError:
            logger.warning("Shutdown grace period expired, closing anyway")

    async def _teardown(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._server is not None:
            self._server.close()
        await asyncio.gather(
            *(conn.close() for conn in self.state.registry.snapshot()),
            return_exceptions=True,
        )
        if self._server is not None:
            with suppress(OSError):
                await self._server.wait_closed()
            self._server = None


async def run_node(
    config: SyncConfig,
    clipboard: ClipboardCapability | None = None,
    shutdown_requested: asyncio.Event | None = None,
) -> None:
    """Run a node until SIGINT/SIGTERM or shutdown_requested is set.

    Args:
        config: Node configuration.
        clipboard: Clipboard capability; created from config.backend if None.
        shutdown_requested: Event that stops the node; signal handlers set
            it when the node creates its own.

    Raises:
        ListenError: If the listener cannot bind.
        BackendError: If config.backend names an unknown clipboard backend.
    """
    if clipboard is None:
        clipboard = create_clipboard(config.backend)

    if shutdown_requested is None:
        shutdown_requested = asyncio.Event()
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)
        loop.add_signal_handler(signal.SIGTERM, shutdown_requested.set)

    node = Node(config, clipboard)
    await node.start()
    try:
        await shutdown_requested.wait()
    finally:
        await node.stop()
