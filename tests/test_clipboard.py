#!/usr/bin/env python3
"""
Tests for clipboard backends.

Tests backend selection, the wl-clipboard/xclip command backend with
subprocess replaced, URI list parsing and the pyperclip text backend.
"""
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from clipmesh.clipboard import BackendError, UnsupportedContentError, create_clipboard
from clipmesh.clipboard_command import CommandClipboard, parse_uri_list
from clipmesh.clipboard_pyperclip import PyperclipClipboard


def fake_run(outputs: dict[str, bytes]):
    """Build a subprocess.run replacement keyed on the requested target."""

    def run(command, **kwargs):
        if "--list-types" in command or "TARGETS" in command:
            key = "TARGETS"
        elif "-i" in command or command[0] == "wl-copy":
            return subprocess.CompletedProcess(command, 0)
        else:
            key = command[command.index("-t" if "-t" in command else "--type") + 1]
        if key not in outputs:
            raise subprocess.CalledProcessError(1, command)
        return subprocess.CompletedProcess(command, 0, stdout=outputs[key], stderr=b"")

    return run


class TestCreateClipboard:
    """Tests for backend selection."""

    def test_unknown_backend(self) -> None:
        with pytest.raises(BackendError, match="Unknown clipboard backend"):
            create_clipboard("xlib")

    def test_auto_prefers_command_tools(self) -> None:
        with patch("clipmesh.clipboard.shutil.which", return_value="/usr/bin/xclip"):
            assert isinstance(create_clipboard("auto"), CommandClipboard)

    def test_auto_falls_back_to_pyperclip(self) -> None:
        with patch("clipmesh.clipboard.shutil.which", return_value=None):
            assert isinstance(create_clipboard("auto"), PyperclipClipboard)

    def test_explicit_backend(self) -> None:
        assert isinstance(create_clipboard("pyperclip"), PyperclipClipboard)


class TestCommandClipboard:
    """Tests for CommandClipboard on X11 and Wayland."""

    def test_read_text_via_xclip(self) -> None:
        clipboard = CommandClipboard(wayland=False)
        outputs = {"TARGETS": b"TARGETS\nUTF8_STRING\nSTRING\n", "UTF8_STRING": "naïve".encode()}
        with patch("clipmesh.clipboard_command.subprocess.run", side_effect=fake_run(outputs)):
            assert clipboard.read_text() == "naïve"
            assert clipboard.read_image() is None
            assert clipboard.read_files() is None

    def test_read_image_via_wl_paste(self) -> None:
        clipboard = CommandClipboard(wayland=True)
        outputs = {"TARGETS": b"image/png\ntext/plain\n", "image/png": b"\x89PNG"}
        with patch("clipmesh.clipboard_command.subprocess.run", side_effect=fake_run(outputs)):
            assert clipboard.read_image() == b"\x89PNG"

    def test_read_files_from_uri_list(self) -> None:
        clipboard = CommandClipboard(wayland=False)
        outputs = {
            "TARGETS": b"text/uri-list\nUTF8_STRING\n",
            "text/uri-list": b"file:///tmp/a%20b.txt\r\nfile:///tmp/dir\r\n",
        }
        with patch("clipmesh.clipboard_command.subprocess.run", side_effect=fake_run(outputs)):
            assert clipboard.read_files() == ["/tmp/a b.txt", "/tmp/dir"]

    def test_missing_tool_reads_as_absent(self) -> None:
        clipboard = CommandClipboard(wayland=False)
        with patch(
            "clipmesh.clipboard_command.subprocess.run",
            side_effect=FileNotFoundError("xclip"),
        ):
            assert clipboard.read_text() is None

    def test_read_timeout_reads_as_absent(self) -> None:
        clipboard = CommandClipboard(wayland=True)
        with patch(
            "clipmesh.clipboard_command.subprocess.run",
            side_effect=subprocess.TimeoutExpired("wl-paste", 2.0),
        ):
            assert clipboard.read_image() is None

    def test_write_text_wayland(self) -> None:
        clipboard = CommandClipboard(wayland=True)
        with patch("clipmesh.clipboard_command.subprocess.run") as run:
            clipboard.write_text("hello")
        command = run.call_args.args[0]
        assert command == ["wl-copy", "--type", "text/plain;charset=utf-8"]
        assert run.call_args.kwargs["input"] == b"hello"
        assert run.call_args.kwargs["stdout"] is subprocess.DEVNULL

    def test_write_files_as_uri_list(self) -> None:
        clipboard = CommandClipboard(wayland=False)
        with patch("clipmesh.clipboard_command.subprocess.run") as run:
            clipboard.write_files(["/tmp/x y.txt", "/tmp/dir"])
        command = run.call_args.args[0]
        assert command[-3:] == ["-t", "text/uri-list", "-i"]
        assert run.call_args.kwargs["input"] == b"file:///tmp/x%20y.txt\nfile:///tmp/dir"

    def test_write_failure_raises(self) -> None:
        clipboard = CommandClipboard(wayland=False)
        with patch(
            "clipmesh.clipboard_command.subprocess.run",
            side_effect=subprocess.CalledProcessError(1, ["xclip"]),
        ):
            with pytest.raises(subprocess.CalledProcessError):
                clipboard.write_image(b"\x89PNG")


class TestParseUriList:
    """Tests for parse_uri_list."""

    def test_gnome_copied_files(self) -> None:
        data = b"copy\nfile:///home/user/a.png\nfile:///home/user/b.png"
        assert parse_uri_list(data) == ["/home/user/a.png", "/home/user/b.png"]

    def test_skips_comments_and_remote_uris(self) -> None:
        data = b"# from file manager\r\nhttps://example.com/x\r\nfile:///srv/data\r\n"
        assert parse_uri_list(data) == ["/srv/data"]

    def test_plain_paths(self) -> None:
        assert parse_uri_list(b"/etc/hosts\n") == ["/etc/hosts"]

    def test_empty(self) -> None:
        assert parse_uri_list(b"\n\n") == []


class TestPyperclipClipboard:
    """Tests for the text-only backend."""

    def test_text_round_trip_through_pyperclip(self) -> None:
        with patch("clipmesh.clipboard_pyperclip.pyperclip") as pyperclip:
            pyperclip.paste.return_value = "pasted"
            clipboard = PyperclipClipboard()
            assert clipboard.read_text() == "pasted"
            clipboard.write_text("copied")
            pyperclip.copy.assert_called_once_with("copied")

    def test_images_and_files_unsupported(self) -> None:
        """Test image and file writes fail loudly instead of being dropped."""
        clipboard = PyperclipClipboard()
        assert clipboard.read_image() is None
        assert clipboard.read_files() is None
        with pytest.raises(UnsupportedContentError, match="cannot hold images"):
            clipboard.write_image(b"\x89PNG")
        with pytest.raises(UnsupportedContentError, match="cannot hold files"):
            clipboard.write_files(["/tmp/a"])

    def test_non_string_paste_is_absent(self) -> None:
        with patch("clipmesh.clipboard_pyperclip.pyperclip", MagicMock()) as pyperclip:
            pyperclip.paste.return_value = None
            assert PyperclipClipboard().read_text() is None
