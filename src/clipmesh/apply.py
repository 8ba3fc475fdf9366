#!/usr/bin/env python3
"""Apply received payloads to the local clipboard.

Called only after the dedup ledger has confirmed the message is new. Text
and image payloads go straight to the clipboard capability. A file-set
payload is a zip archive: it is expanded into a fresh temporary directory
and the extracted top-level paths become the clipboard selection.

Payloads above the configured ceiling are refused here as well as before
broadcast, so one oversized item cannot flood every downstream peer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipmesh.archive import extract_archive
from clipmesh.snapshot import ContentKind

if TYPE_CHECKING:
    from clipmesh.clipboard import ClipboardCapability
    from clipmesh.message import SyncMessage

logger = logging.getLogger(__name__)


def exceeds_limit(data: bytes, max_bytes: int) -> bool:
    """Check whether a payload is larger than the configured ceiling."""
    return len(data) > max_bytes


def apply_message(
    clipboard: ClipboardCapability, msg: SyncMessage, max_bytes: int
) -> bool:
    """Write a received message to the local clipboard.

    Blocking: runs clipboard writes and archive extraction.

    Args:
        clipboard: The platform clipboard capability.
        msg: A message whose hash the ledger has just marked.
        max_bytes: Maximum payload size in bytes.

    Returns:
        True if the clipboard was written, False if the payload was refused.

    Raises:
        Exception: Whatever the clipboard capability or zip extraction
            raises; the caller logs it.
    """
    if exceeds_limit(msg.data, max_bytes):
        logger.warning(
            "Refusing to set clipboard > %.0f MB (%.2f MB)",
            max_bytes / (1024 * 1024),
            len(msg.data) / (1024 * 1024),
        )
        return False

    if msg.kind is ContentKind.TEXT:
        clipboard.write_text(msg.data.decode("utf-8"))
    elif msg.kind is ContentKind.IMAGE:
        clipboard.write_image(msg.data)
    else:
        paths = extract_archive(msg.data)
        if not paths:
            logger.debug("Received file archive was empty")
            return False
        clipboard.write_files(paths)
    return True
