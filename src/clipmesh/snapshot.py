#!/usr/bin/env python3
"""Normalized clipboard snapshots.

A snapshot is one observation of whatever is on a clipboard, reduced to a
uniform shape: a kind, the raw payload bytes, kind-specific metadata and the
content hash. Snapshots are created fresh on every poll tick and never
mutated.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from clipmesh.hashing import compute_hash


class ContentKind(str, enum.Enum):
    """Closed set of clipboard content kinds carried on the wire."""

    TEXT = "text"
    IMAGE = "image"
    FILES = "files"


@dataclass(frozen=True)
class ContentSnapshot:
    """One normalized observation of clipboard content.

    Attributes:
        kind: Which clipboard format the payload came from.
        data: UTF-8 text bytes, encoded image bytes, or a zip archive of files.
        meta: Kind-specific auxiliary data, opaque to the transport.
        hash: SHA-256 hex digest of data; the identity of the snapshot.
    """

    kind: ContentKind
    data: bytes
    meta: dict[str, Any] = field(default_factory=dict)
    hash: str = ""

    @classmethod
    def from_bytes(
        cls, kind: ContentKind, data: bytes, meta: dict[str, Any] | None = None
    ) -> ContentSnapshot:
        """Build a snapshot, computing its hash from data."""
        return cls(kind=kind, data=data, meta=dict(meta or {}), hash=compute_hash(data))

    @property
    def size_mb(self) -> float:
        """Payload size in megabytes."""
        return len(self.data) / (1024 * 1024)
