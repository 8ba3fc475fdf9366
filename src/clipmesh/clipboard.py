"""Clipboard capability interface and backend selection.

The synchronization core never talks to an OS clipboard directly. It only
needs three read queries, one per content kind, and three matching writes.
Each read returns None when its format is not present; reads may also raise,
since OS clipboards are racy and content can change between queries. Capture
treats both outcomes as "format absent".

Writes must be safe to repeat with identical content, and reads must be cheap
enough to call on every poll tick.

Backends:
- command: wl-clipboard (Wayland) or xclip (X11) via subprocess
- pyperclip: text only, works wherever pyperclip finds a clipboard
"""

from __future__ import annotations

import shutil
from typing import Protocol

BACKENDS: tuple[str, ...] = ("auto", "command", "pyperclip")


class BackendError(ValueError):
    """Raised when a clipboard backend name is unknown."""

    pass


class UnsupportedContentError(Exception):
    """Raised by a backend asked to write a content kind it cannot hold."""

    pass


class ClipboardCapability(Protocol):
    """Platform clipboard access used by capture and apply."""

    def read_files(self) -> list[str] | None:
        """Return the file paths on the clipboard, or None if absent."""
        ...

    def read_image(self) -> bytes | None:
        """Return encoded image bytes on the clipboard, or None if absent."""
        ...

    def read_text(self) -> str | None:
        """Return the clipboard text, or None if absent."""
        ...

    def write_text(self, text: str) -> None:
        """Place text on the clipboard."""
        ...

    def write_image(self, data: bytes) -> None:
        """Place encoded image bytes on the clipboard."""
        ...

    def write_files(self, paths: list[str]) -> None:
        """Place a file selection on the clipboard."""
        ...


def create_clipboard(backend: str = "auto") -> ClipboardCapability:
    """Create a clipboard backend by name.

    "auto" picks the command backend when wl-clipboard or xclip is
    installed and falls back to pyperclip otherwise.

    Args:
        backend: One of BACKENDS.

    Returns:
        A ClipboardCapability implementation.

    Raises:
        BackendError: If backend is not a known backend name.
    """
    if backend not in BACKENDS:
        raise BackendError(
            f"Unknown clipboard backend {backend!r}; choose from {', '.join(BACKENDS)}"
        )
    if backend == "auto":
        has_tools = shutil.which("wl-paste") or shutil.which("xclip")
        backend = "command" if has_tools else "pyperclip"

    if backend == "command":
        from clipmesh.clipboard_command import CommandClipboard
        return CommandClipboard()

    from clipmesh.clipboard_pyperclip import PyperclipClipboard
    return PyperclipClipboard()
