#!/usr/bin/env python3
"""A single live peer connection.

PeerConnection wraps one handshaken asyncio stream pair, inbound or
outbound, and gives the rest of the node two operations: send a frame
without waiting, and iterate over received frames.

Sends go through a bounded queue drained by a dedicated writer task, so a
slow or stalled peer never holds up the poll loop or fanout to other peers.
A write failure closes the connection; reconnection is the peer link's job.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import suppress

from clipmesh.protocol import is_goodbye, read_netstring, send_goodbye

logger = logging.getLogger(__name__)

# Frames buffered per connection before new frames are dropped.
SEND_QUEUE_SIZE: int = 256


class PeerConnection:
    """One duplex channel to a peer after a successful handshake.

    Attributes:
        label: Human-readable peer description for log lines.
        inbound: True if the remote dialed us.
        max_frame: Largest frame accepted from the remote.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        label: str,
        max_frame: int,
        inbound: bool = False,
    ) -> None:
        self.label = label
        self.inbound = inbound
        self.max_frame = max_frame
        self._reader = reader
        self._writer = writer
        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=SEND_QUEUE_SIZE)
        self._closed = False
        self._writer_task = asyncio.create_task(self._drain_queue())

    @property
    def closed(self) -> bool:
        """True once close() has run or a write failed."""
        return self._closed

    def send(self, frame: bytes) -> bool:
        """Queue an encoded frame for delivery without waiting.

        Args:
            frame: Netstring-encoded frame.

        Returns:
            True if the frame was queued, False if the connection is closed
            or its queue is full.
        """
        if self._closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("Send queue full for %s, dropping frame", self.label)
            return False
        return True

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield received frames until the remote says goodbye.

        Raises:
            ProtocolError: On framing violations or when the connection
                closes without a goodbye.
        """
        while True:
            content = await read_netstring(self._reader, self.max_frame)
            if is_goodbye(content):
                logger.debug("Goodbye received from %s", self.label)
                return
            yield content

    async def _drain_queue(self) -> None:
        while True:
            frame = await self._queue.get()
            try:
                self._writer.write(frame)
                await self._writer.drain()
            except (ConnectionError, OSError) as e:
                logger.debug("Write to %s failed: %s", self.label, e)
                self._closed = True
                self._writer.close()
                return

    async def close(self, goodbye: bool = True) -> None:
        """Stop the writer task, optionally say goodbye, and close the stream.

        Safe to call more than once.

        Args:
            goodbye: Send the goodbye frame before closing.
        """
        already_closed = self._closed
        self._closed = True
        self._writer_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._writer_task
        if goodbye and not already_closed:
            await send_goodbye(self._writer)
        self._writer.close()
        with suppress(ConnectionError, OSError):
            await self._writer.wait_closed()
