#!/usr/bin/env python3
"""
Tests for SyncMessage wire records.

Tests the JSON wire form and strict parsing that discards malformed frames.
"""
import base64
import json

import pytest

from clipmesh.hashing import compute_hash
from clipmesh.message import SyncMessage, encode_message, parse_message
from clipmesh.snapshot import ContentKind, ContentSnapshot


def wire(**fields: object) -> bytes:
    """Encode a dict as a wire frame body."""
    return json.dumps(fields).encode("utf-8")


def test_from_snapshot_stamps_source_and_time() -> None:
    """Test messages built from snapshots carry node id and epoch millis."""
    snapshot = ContentSnapshot.from_bytes(ContentKind.TEXT, b"hello")
    msg = SyncMessage.from_snapshot(snapshot, "node-a")

    assert msg.hash == snapshot.hash
    assert msg.data == b"hello"
    assert msg.source == "node-a"
    assert msg.ts > 1_600_000_000_000


def test_encode_message_wire_fields() -> None:
    """Test the wire form uses base64 data and the documented field names."""
    msg = SyncMessage(
        kind=ContentKind.FILES,
        hash="abc",
        data=b"\x00\x01",
        meta={"count": 1},
        ts=42,
        source="node-a",
    )
    body = json.loads(encode_message(msg))

    assert body == {
        "kind": "files",
        "hash": "abc",
        "data": base64.b64encode(b"\x00\x01").decode("ascii"),
        "meta": {"count": 1},
        "ts": 42,
        "source": "node-a",
    }


def test_parse_message_reads_encoded_message() -> None:
    """Test a frame produced by encode_message parses back to the same message."""
    msg = SyncMessage(
        kind=ContentKind.IMAGE,
        hash=compute_hash(b"img"),
        data=b"img",
        meta={"format": "png"},
        ts=7,
        source="node-b",
    )
    assert parse_message(encode_message(msg)) == msg


def test_parse_message_defaults_optional_fields() -> None:
    """Test missing meta, ts and source get neutral defaults."""
    msg = parse_message(wire(kind="text", hash="abc", data="aGk="))

    assert msg is not None
    assert msg.data == b"hi"
    assert msg.meta == {}
    assert msg.ts == 0
    assert msg.source == ""


@pytest.mark.parametrize(
    "raw",
    [
        wire(hash="abc", data="aGk="),
        wire(kind="text", data="aGk="),
        wire(kind="text", hash="abc"),
        wire(kind="text", hash="abc", data=""),
        wire(kind="html", hash="abc", data="aGk="),
        wire(kind="text", hash=123, data="aGk="),
        wire(kind="text", hash="abc", data="not base64!"),
        b"[1, 2, 3]",
        b"\xff\xfe not utf-8",
        b"{not json",
    ],
)
def test_parse_message_discards_malformed(raw: bytes) -> None:
    """Test malformed frames are discarded as a whole."""
    assert parse_message(raw) is None


def test_parse_message_ignores_non_dict_meta() -> None:
    """Test a meta field of the wrong type is replaced by an empty dict."""
    msg = parse_message(wire(kind="text", hash="abc", data="aGk=", meta=[1], ts="soon"))
    assert msg is not None
    assert msg.meta == {}
    assert msg.ts == 0
