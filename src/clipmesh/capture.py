#!/usr/bin/env python3
"""Content snapshot capture.

Queries the clipboard capability for each content kind in a fixed
precedence order, files first, then image, then text, and normalizes the
first one present into a ContentSnapshot.

OS clipboards are racy: content can change between two format queries, and
a query can fail with permission or decode errors. A failing tier is logged
at DEBUG and treated as absent so the next tier still gets its turn.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipmesh.archive import bundle_paths
from clipmesh.snapshot import ContentKind, ContentSnapshot

if TYPE_CHECKING:
    from clipmesh.clipboard import ClipboardCapability

logger = logging.getLogger(__name__)


def capture(clipboard: ClipboardCapability) -> ContentSnapshot | None:
    """Take one snapshot of the local clipboard.

    Blocking: runs clipboard queries and zip construction, so callers on
    the event loop should run it via asyncio.to_thread().

    Args:
        clipboard: The platform clipboard capability.

    Returns:
        The highest-precedence snapshot available, or None when every tier
        is absent or failed.
    """
    for tier in (_capture_files, _capture_image, _capture_text):
        try:
            snapshot = tier(clipboard)
        except Exception as e:
            logger.debug("%s failed: %s", tier.__name__, e)
            continue
        if snapshot is not None:
            return snapshot
    return None


def _capture_files(clipboard: ClipboardCapability) -> ContentSnapshot | None:
    paths = clipboard.read_files()
    if not paths:
        return None
    data, bundled = bundle_paths(paths)
    if bundled == 0:
        logger.debug("None of %d clipboard paths could be read", len(paths))
        return None
    return ContentSnapshot.from_bytes(ContentKind.FILES, data, {"count": len(paths)})


def _capture_image(clipboard: ClipboardCapability) -> ContentSnapshot | None:
    data = clipboard.read_image()
    if not data:
        return None
    return ContentSnapshot.from_bytes(ContentKind.IMAGE, bytes(data), {"format": "png"})


def _capture_text(clipboard: ClipboardCapability) -> ContentSnapshot | None:
    text = clipboard.read_text()
    if not isinstance(text, str):
        return None
    return ContentSnapshot.from_bytes(ContentKind.TEXT, text.encode("utf-8"))
