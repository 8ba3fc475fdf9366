#!/usr/bin/env python3
"""Pytest fixtures for clipmesh tests.

Provides an in-memory clipboard and node state built on it.
"""

import pytest

from clipmesh.config import SyncConfig
from clipmesh.sync_state import NodeState
from conftest_fakes import FakeClipboard


@pytest.fixture
def fake_clipboard() -> FakeClipboard:
    """Create an empty in-memory clipboard."""
    return FakeClipboard()


@pytest.fixture
def node_state(fake_clipboard: FakeClipboard) -> NodeState:
    """Create node state on the fake clipboard with a 1 MB payload cap."""
    return NodeState(
        clipboard=fake_clipboard,
        node_id="test-node",
        config=SyncConfig(max_mb=1.0, poll_interval=0.01),
    )
