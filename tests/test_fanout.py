#!/usr/bin/env python3
"""Tests for fanout broadcasting and the connection registry."""
from clipmesh.fanout import broadcast
from clipmesh.message import SyncMessage, parse_message
from clipmesh.registry import ConnectionRegistry
from clipmesh.snapshot import ContentKind, ContentSnapshot
from conftest_fakes import RecordingConnection, unframe


def make_message(text: bytes = b"hello") -> SyncMessage:
    snapshot = ContentSnapshot.from_bytes(ContentKind.TEXT, text)
    return SyncMessage.from_snapshot(snapshot, "origin")


class ExplodingConnection(RecordingConnection):
    """Connection whose send raises."""

    def send(self, frame: bytes) -> bool:
        raise RuntimeError("boom")


def test_broadcast_reaches_every_connection() -> None:
    """Test each connection gets one copy of the frame."""
    registry = ConnectionRegistry()
    first, second = RecordingConnection("a"), RecordingConnection("b")
    registry.add(first)
    registry.add(second)
    msg = make_message()

    assert broadcast(registry, msg) == 2
    assert parse_message(unframe(first.sent[0])) == msg
    assert first.sent == second.sent


def test_broadcast_excludes_arrival_connection() -> None:
    """Test the connection a message came in on does not get it back."""
    registry = ConnectionRegistry()
    origin, other = RecordingConnection("origin"), RecordingConnection("other")
    registry.add(origin)
    registry.add(other)

    assert broadcast(registry, make_message(), exclude=origin) == 1
    assert origin.sent == []
    assert len(other.sent) == 1


def test_broadcast_isolates_failing_connection() -> None:
    """Test a raising or full connection does not stop the others."""
    registry = ConnectionRegistry()
    healthy = RecordingConnection("healthy")
    registry.add(ExplodingConnection("broken"))
    registry.add(RecordingConnection("full", accept=False))
    registry.add(healthy)

    assert broadcast(registry, make_message()) == 1
    assert len(healthy.sent) == 1


def test_broadcast_with_no_connections() -> None:
    assert broadcast(ConnectionRegistry(), make_message()) == 0


def test_registry_snapshot_is_a_copy() -> None:
    """Test changing the registry does not alter an earlier snapshot."""
    registry = ConnectionRegistry()
    conn = RecordingConnection()
    registry.add(conn)
    snapshot = registry.snapshot()

    registry.discard(conn)
    registry.discard(conn)

    assert snapshot == [conn]
    assert len(registry) == 0
