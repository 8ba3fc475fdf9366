#!/usr/bin/env python3
"""Node synchronization state.

This module provides the NodeState dataclass that groups all state shared
between the poll loop, inbound connection handlers and outbound peer links.
The state is created once per node and passed explicitly to every
component; nothing here is a module-level global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clipmesh.config import SyncConfig
from clipmesh.ledger import DedupLedger
from clipmesh.registry import ConnectionRegistry

if TYPE_CHECKING:
    from clipmesh.clipboard import ClipboardCapability


@dataclass
class NodeState:
    """State for one node in the mesh.

    Attributes:
        clipboard: Platform clipboard capability.
        node_id: This node's id, stamped on locally originated messages.
        config: Runtime configuration.
        ledger: Recently seen content hashes, guarded internally.
        registry: Live inbound and outbound connections.
        last_observed_hash: Hash seen on the previous poll tick; a fast path
            only, the ledger decides what is new.
    """

    clipboard: ClipboardCapability
    node_id: str
    config: SyncConfig = field(default_factory=SyncConfig)
    ledger: DedupLedger = field(init=False)
    registry: ConnectionRegistry = field(default_factory=ConnectionRegistry)
    last_observed_hash: str | None = None

    def __post_init__(self) -> None:
        self.ledger = DedupLedger(self.config.ledger_capacity)
