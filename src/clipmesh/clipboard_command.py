"""Clipboard backend driven by wl-clipboard or xclip.

Under Wayland (WAYLAND_DISPLAY set and wl-paste installed) the backend shells
out to wl-paste/wl-copy; otherwise it uses xclip on the X11 CLIPBOARD
selection. Each read first lists the offered targets so that a format is
only requested when the current owner actually advertises it.

File selections travel as text/uri-list (or GNOME's x-special variant),
images as image/png, text through the UTF-8 text targets.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

# Timeout in seconds for each clipboard command, so an unresponsive
# clipboard owner cannot stall a poll tick.
COMMAND_TIMEOUT: float = 2.0

FILE_TARGETS: tuple[str, ...] = ("text/uri-list", "x-special/gnome-copied-files")
IMAGE_TARGET: str = "image/png"
TEXT_TARGETS: tuple[str, ...] = (
    "text/plain;charset=utf-8",
    "UTF8_STRING",
    "text/plain",
    "STRING",
)


class CommandClipboard:
    """ClipboardCapability backed by wl-clipboard or xclip commands."""

    def __init__(self, wayland: bool | None = None) -> None:
        if wayland is None:
            wayland = bool(os.environ.get("WAYLAND_DISPLAY")) and bool(shutil.which("wl-paste"))
        self.wayland = wayland

    def read_files(self) -> list[str] | None:
        target = self._first_offered(FILE_TARGETS)
        if target is None:
            return None
        data = self._read_target(target)
        if not data:
            return None
        paths = parse_uri_list(data)
        return paths or None

    def read_image(self) -> bytes | None:
        if self._first_offered((IMAGE_TARGET,)) is None:
            return None
        return self._read_target(IMAGE_TARGET) or None

    def read_text(self) -> str | None:
        target = self._first_offered(TEXT_TARGETS)
        if target is None:
            return None
        data = self._read_target(target)
        if data is None:
            return None
        return data.decode("utf-8")

    def write_text(self, text: str) -> None:
        self._write("text/plain;charset=utf-8", text.encode("utf-8"))

    def write_image(self, data: bytes) -> None:
        self._write(IMAGE_TARGET, data)

    def write_files(self, paths: list[str]) -> None:
        uris = "\n".join(Path(path).as_uri() for path in paths)
        self._write("text/uri-list", uris.encode("utf-8"))

    def _first_offered(self, candidates: tuple[str, ...]) -> str | None:
        offered = self._list_targets()
        lowered = {target.lower(): target for target in offered}
        for candidate in candidates:
            match = lowered.get(candidate.lower())
            if match is not None:
                return match
        return None

    def _list_targets(self) -> list[str]:
        if self.wayland:
            command = ["wl-paste", "--list-types"]
        else:
            command = ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"]
        output = _run_read(command)
        if not output:
            return []
        text = output.decode("utf-8", errors="ignore")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _read_target(self, target: str) -> bytes | None:
        if self.wayland:
            command = ["wl-paste", "--no-newline", "--type", target]
        else:
            command = ["xclip", "-selection", "clipboard", "-t", target, "-o"]
        return _run_read(command)

    def _write(self, target: str, payload: bytes) -> None:
        if self.wayland:
            command = ["wl-copy", "--type", target]
        else:
            command = ["xclip", "-selection", "clipboard", "-t", target, "-i"]
        # Both tools fork to keep serving the selection, so their output
        # streams must not be pipes or run() would wait for the child.
        subprocess.run(
            command,
            input=payload,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
            timeout=COMMAND_TIMEOUT,
        )


def _run_read(command: list[str]) -> bytes | None:
    """Run a clipboard read command, returning stdout or None on failure."""
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            timeout=COMMAND_TIMEOUT,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug("Clipboard command %s failed: %s", command[0], e)
        return None
    return result.stdout


def parse_uri_list(data: bytes) -> list[str]:
    """Parse a text/uri-list (or gnome-copied-files) payload into paths.

    Comment lines and the leading "copy"/"cut" verb used by GNOME are
    skipped. Non-file URIs are ignored.

    Args:
        data: Raw bytes read from the clipboard target.

    Returns:
        Local filesystem paths in clipboard order.
    """
    text = data.decode("utf-8", errors="ignore")
    lines = [line.strip() for line in text.replace("\r", "\n").split("\n") if line.strip()]
    if lines and lines[0].lower() in {"copy", "cut"}:
        lines = lines[1:]

    paths: list[str] = []
    for entry in lines:
        if entry.startswith("#"):
            continue
        parsed = urlparse(entry)
        if parsed.scheme == "file":
            paths.append(unquote(parsed.path))
        elif not parsed.scheme and entry.startswith("/"):
            paths.append(unquote(entry))
    return paths
