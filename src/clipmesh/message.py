#!/usr/bin/env python3
"""Sync message wire records.

A SyncMessage is created by the node that first observes a snapshot and is
forwarded unchanged across the mesh. On the wire it is a UTF-8 JSON object:

    {"kind": "text", "hash": "<sha256 hex>", "data": "<base64>",
     "meta": {...}, "ts": <epoch millis>, "source": "<node id>"}

Parsing is strict at the connection boundary: a frame missing kind, hash or
data, or carrying an unknown kind or undecodable payload, is discarded as a
whole. Version-mismatched peers may legitimately send such frames, so they
are dropped quietly rather than treated as errors.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from clipmesh.snapshot import ContentKind

if TYPE_CHECKING:
    from clipmesh.snapshot import ContentSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncMessage:
    """One clipboard payload as it travels between nodes.

    Attributes:
        kind: Content kind of the payload.
        hash: SHA-256 hex digest of data, used for dedup across the mesh.
        data: Raw payload bytes.
        meta: Kind-specific metadata from the originating snapshot.
        ts: Epoch milliseconds when the originating node captured it.
        source: Node id of the originating node, for diagnostics only.
    """

    kind: ContentKind
    hash: str
    data: bytes
    meta: dict[str, Any] = field(default_factory=dict)
    ts: int = 0
    source: str = ""

    @classmethod
    def from_snapshot(cls, snapshot: ContentSnapshot, source: str) -> SyncMessage:
        """Wrap a locally captured snapshot for broadcast."""
        return cls(
            kind=snapshot.kind,
            hash=snapshot.hash,
            data=snapshot.data,
            meta=dict(snapshot.meta),
            ts=int(time.time() * 1000),
            source=source,
        )

    @property
    def size_kib(self) -> float:
        """Payload size in KiB."""
        return len(self.data) / 1024


def encode_message(msg: SyncMessage) -> bytes:
    """Serialize a SyncMessage to its JSON wire form."""
    body = {
        "kind": msg.kind.value,
        "hash": msg.hash,
        "data": base64.b64encode(msg.data).decode("ascii"),
        "meta": msg.meta,
        "ts": msg.ts,
        "source": msg.source,
    }
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def parse_message(raw: bytes) -> SyncMessage | None:
    """Parse a wire frame into a SyncMessage.

    Args:
        raw: Frame content received from a peer.

    Returns:
        The parsed message, or None if the frame is malformed in any way.
    """
    try:
        body = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        logger.debug("Discarding frame that is not JSON")
        return None
    if not isinstance(body, dict):
        return None

    kind_value = body.get("kind")
    hash_value = body.get("hash")
    data_value = body.get("data")
    if not kind_value or not hash_value or not data_value:
        logger.debug("Discarding message missing required fields")
        return None
    if not isinstance(hash_value, str) or not isinstance(data_value, str):
        return None
    try:
        kind = ContentKind(kind_value)
    except ValueError:
        logger.debug("Discarding message with unknown kind %r", kind_value)
        return None
    try:
        data = base64.b64decode(data_value, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("Discarding message with undecodable data")
        return None

    meta = body.get("meta")
    ts = body.get("ts")
    source = body.get("source")
    return SyncMessage(
        kind=kind,
        hash=hash_value,
        data=data,
        meta=meta if isinstance(meta, dict) else {},
        ts=ts if isinstance(ts, int) and not isinstance(ts, bool) else 0,
        source=source if isinstance(source, str) else "",
    )
