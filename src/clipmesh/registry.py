#!/usr/bin/env python3
"""Set of currently live peer connections.

Inbound handlers and outbound peer links add and remove connections as they
come and go. Fanout never walks the live set; it asks for a snapshot, so a
reconnect happening mid-broadcast cannot disturb the iteration.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clipmesh.connection import PeerConnection


class ConnectionRegistry:
    """Thread-safe registry of live PeerConnection objects."""

    def __init__(self) -> None:
        self._connections: set[PeerConnection] = set()
        self._lock = threading.Lock()

    def add(self, conn: PeerConnection) -> None:
        with self._lock:
            self._connections.add(conn)

    def discard(self, conn: PeerConnection) -> None:
        with self._lock:
            self._connections.discard(conn)

    def snapshot(self) -> list[PeerConnection]:
        """Return a copy of the current connections."""
        with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
