#!/usr/bin/env python3
"""Node configuration.

SyncConfig carries the plain values the CLI collects: where to listen,
which peers to dial, the shared secret, and the payload and polling limits.
The synchronization core only reads these values.
"""

from __future__ import annotations

import socket
import uuid
from dataclasses import dataclass

from clipmesh.ledger import DEFAULT_CAPACITY
from clipmesh.peer_constants import DEFAULT_PORT

# Default cap on payload size in megabytes.
DEFAULT_MAX_MB: float = 100.0

# Default poll interval in seconds.
DEFAULT_POLL_INTERVAL: float = 0.9


@dataclass(frozen=True)
class SyncConfig:
    """Runtime configuration for one node.

    Attributes:
        port: TCP port for inbound peers.
        host: Address to bind the listener to.
        key: Shared secret required from inbound peers and presented to
            outbound peers, or None for an open mesh.
        peers: Outbound peer addresses as "host:port" strings.
        max_mb: Largest payload broadcast or applied, in megabytes.
        poll_interval: Seconds between clipboard polls.
        ledger_capacity: Number of content hashes remembered for dedup.
        backend: Clipboard backend name.
    """

    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    key: str | None = None
    peers: tuple[str, ...] = ()
    max_mb: float = DEFAULT_MAX_MB
    poll_interval: float = DEFAULT_POLL_INTERVAL
    ledger_capacity: int = DEFAULT_CAPACITY
    backend: str = "auto"

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {self.port}")
        if self.max_mb <= 0:
            raise ValueError(f"Maximum payload size must be positive, got {self.max_mb}")
        if self.poll_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {self.poll_interval}")
        if self.ledger_capacity < 1:
            raise ValueError(f"Ledger capacity must be positive, got {self.ledger_capacity}")

    @property
    def max_bytes(self) -> int:
        """Payload ceiling in bytes."""
        return int(self.max_mb * 1024 * 1024)


def make_node_id() -> str:
    """Build a node id from the hostname and a random suffix."""
    return f"{socket.gethostname()}-{uuid.uuid4().hex[:8]}"


def split_address(address: str) -> tuple[str, int]:
    """Split a "host:port" peer address.

    IPv6 literals are written in brackets, e.g. "[::1]:3030".

    Args:
        address: Peer address string.

    Returns:
        Tuple of (host, port).

    Raises:
        ValueError: If the address has no valid port or no host.
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Peer address must be host:port, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"Invalid port in peer address {address!r}") from None
    if not 0 < port <= 65535:
        raise ValueError(f"Port out of range in peer address {address!r}")
    return host, port
