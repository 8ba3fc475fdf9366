"""Text-only clipboard backend built on pyperclip.

Used where neither wl-clipboard nor xclip is available. pyperclip only
exposes plain text, so image and file queries always report "not present"
and image/file writes raise UnsupportedContentError.
"""

from __future__ import annotations

import pyperclip

from clipmesh.clipboard import UnsupportedContentError


class PyperclipClipboard:
    """ClipboardCapability limited to plain text."""

    def read_files(self) -> list[str] | None:
        return None

    def read_image(self) -> bytes | None:
        return None

    def read_text(self) -> str | None:
        text = pyperclip.paste()
        if not isinstance(text, str):
            return None
        return text

    def write_text(self, text: str) -> None:
        pyperclip.copy(text)

    def write_image(self, data: bytes) -> None:
        raise UnsupportedContentError(
            f"pyperclip backend cannot hold images ({len(data)} bytes dropped)"
        )

    def write_files(self, paths: list[str]) -> None:
        raise UnsupportedContentError(
            f"pyperclip backend cannot hold files ({len(paths)} paths dropped)"
        )
