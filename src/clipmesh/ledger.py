#!/usr/bin/env python3
"""
Bounded ledger of recently seen content hashes.

The ledger gates both local re-broadcast (the poll loop skips hashes it has
already seen) and inbound re-application (a message whose hash is already
marked is dropped without being written or forwarded).

The ledger only has to suppress loops over a short window, so eviction is
approximate FIFO: when a mark pushes the size above capacity, the oldest
entries are discarded in one pass until half the capacity remains.

Both the poll loop and every connection's message handler touch the ledger,
and clipboard work runs on worker threads, so every operation takes a lock.
"""
import threading

# Default number of hashes remembered before eviction.
DEFAULT_CAPACITY: int = 500


class DedupLedger:
    """
    Track recently seen content hashes.

    Backed by an insertion-ordered dict, which gives O(1) membership tests
    and cheap access to the oldest entries for eviction.

    Attributes:
        capacity: Maximum number of hashes held at any time.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Ledger capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._seen: dict[str, None] = {}
        self._lock = threading.Lock()

    def has(self, hash_value: str) -> bool:
        """
        Check whether a hash has been seen recently.

        Args:
            hash_value: SHA-256 hex digest to look up.

        Returns:
            True if the hash is in the ledger.
        """
        with self._lock:
            return hash_value in self._seen

    def mark(self, hash_value: str) -> None:
        """
        Record a hash as seen.

        Safe to call redundantly: marking a hash that is already present
        leaves the ledger unchanged.

        Args:
            hash_value: SHA-256 hex digest to record.
        """
        with self._lock:
            self._mark_locked(hash_value)

    def claim(self, hash_value: str) -> bool:
        """
        Mark a hash and report whether it was new, as one atomic step.

        Use this instead of has() followed by mark() when two event sources
        may race on the same hash; only one of them gets True.

        Args:
            hash_value: SHA-256 hex digest to claim.

        Returns:
            True if the hash was not seen before and is now marked,
            False if it was already present.
        """
        with self._lock:
            if hash_value in self._seen:
                return False
            self._mark_locked(hash_value)
            return True

    def clear(self) -> None:
        """Forget every recorded hash."""
        with self._lock:
            self._seen.clear()

    def _mark_locked(self, hash_value: str) -> None:
        if hash_value in self._seen:
            return
        self._seen[hash_value] = None
        if len(self._seen) > self.capacity:
            self._evict_locked()

    def _evict_locked(self) -> None:
        # Keep the newest half; dict iteration order is insertion order.
        keep = max(1, self.capacity // 2)
        drop = len(self._seen) - keep
        for stale in list(self._seen)[:drop]:
            del self._seen[stale]

    def __contains__(self, hash_value: object) -> bool:
        with self._lock:
            return hash_value in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
