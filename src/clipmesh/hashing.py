#!/usr/bin/env python3
"""
SHA-256 hashing and the dedup ledger for loop prevention.

Every node in the mesh both re-broadcasts what it receives and polls its own
clipboard. Without tracking, content received from one peer would be written
locally, observed by the next poll tick, and sent back out forever. Identity
of a clipboard snapshot is its content hash, so suppressing loops reduces to
remembering which hashes have already been seen.

This module provides:
- compute_hash(): SHA-256 hex digest of clipboard content
- DedupLedger: bounded set of recently seen hashes

Hash-based dedup is origin-independent: a message may re-enter a node through
a different path of the mesh and is still recognised.
"""
import hashlib
from clipmesh.ledger import DedupLedger

__all__ = ["compute_hash", "DedupLedger"]


def compute_hash(data: bytes) -> str:
    """
    Compute SHA-256 hash of clipboard content.

    Args:
        data: Raw clipboard content bytes to hash.

    Returns:
        Hexadecimal string representation of the SHA-256 digest.
    """
    return hashlib.sha256(data).hexdigest()
