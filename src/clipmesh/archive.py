#!/usr/bin/env python3
"""Zip bundling for file-set clipboard content.

A file selection on the clipboard is a list of paths, which may include
directories. To travel as one payload the whole selection is packed into a
single in-memory zip archive, with each top-level path stored under its base
name. On the receiving side the archive is expanded into a fresh temporary
directory and the top-level entries become the new clipboard selection.
"""

from __future__ import annotations

import io
import logging
import os
import stat
import tempfile
import zipfile
from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Prefix for directories that receive extracted file sets.
EXTRACT_PREFIX: str = "clipmesh-"

# Fixed entry metadata so equal trees always bundle to equal bytes.
ENTRY_DATE_TIME: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
FILE_ATTR: int = (stat.S_IFREG | 0o644) << 16
DIR_ATTR: int = ((stat.S_IFDIR | 0o755) << 16) | 0x10


def bundle_paths(paths: Iterable[str]) -> tuple[bytes, int]:
    """Pack files and directories into a zip archive.

    Directories are added recursively under their base name, and of several
    paths sharing a base name only the first in sorted order is kept. Paths
    that cannot be read are skipped, matching how a racy clipboard selection
    may point at files that vanished since they were copied.

    The archive depends only on names and file contents: entries are added
    in sorted order with a fixed timestamp and fixed permissions. A node
    that extracts a received file set and later bundles the extracted copy
    therefore produces the same bytes, and the same hash, as the sender.

    Args:
        paths: Filesystem paths taken from the clipboard.

    Returns:
        Tuple of (archive bytes, number of top-level paths bundled).
    """
    roots = sorted((_root_name(path), os.path.abspath(path)) for path in paths)
    buffer = io.BytesIO()
    bundled = 0
    seen: set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for root_name, path in roots:
            if root_name in seen:
                logger.debug("Skipping %s: name %s already bundled", path, root_name)
                continue
            try:
                entries = _collect_entries(path, root_name)
            except OSError as e:
                logger.debug("Skipping unreadable path %s: %s", path, e)
                continue
            for name, data in entries:
                _write_entry(archive, name, data)
            bundled += 1
            seen.add(root_name)
    return buffer.getvalue(), bundled


def _root_name(path: str) -> str:
    return os.path.basename(os.path.abspath(path).rstrip(os.sep)) or "root"


def _collect_entries(path: str, root_name: str) -> list[tuple[str, bytes | None]]:
    """Read one top-level path into (archive name, content) pairs.

    Directories map to None content. Everything is read before anything is
    written, so a path that fails halfway leaves no partial entries behind.
    """
    if not os.path.isdir(path):
        if not os.path.isfile(path):
            raise FileNotFoundError(path)
        with open(path, "rb") as f:
            return [(root_name, f.read())]

    entries: list[tuple[str, bytes | None]] = [(root_name + "/", None)]
    for dirpath, dirnames, filenames in os.walk(path):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, path)
        prefix = root_name if rel_dir == "." else f"{root_name}/{rel_dir.replace(os.sep, '/')}"
        for dirname in dirnames:
            entries.append((f"{prefix}/{dirname}/", None))
        for filename in sorted(filenames):
            with open(os.path.join(dirpath, filename), "rb") as f:
                entries.append((f"{prefix}/{filename}", f.read()))
    return entries


def _write_entry(archive: zipfile.ZipFile, name: str, data: bytes | None) -> None:
    info = zipfile.ZipInfo(name, date_time=ENTRY_DATE_TIME)
    info.create_system = 3
    if data is None:
        info.external_attr = DIR_ATTR
        info.compress_type = zipfile.ZIP_STORED
        archive.writestr(info, b"")
    else:
        info.external_attr = FILE_ATTR
        info.compress_type = zipfile.ZIP_DEFLATED
        archive.writestr(info, data)


def extract_archive(data: bytes, prefix: str = EXTRACT_PREFIX) -> list[str]:
    """Expand an archive into a freshly created temporary directory.

    zipfile.extractall() strips absolute paths and parent-directory
    components from member names, so entries cannot escape the target.

    Args:
        data: Zip archive bytes received from a peer.
        prefix: Prefix for the temporary directory name.

    Returns:
        Sorted absolute paths of the top-level entries that were extracted.

    Raises:
        zipfile.BadZipFile: If data is not a valid zip archive.
    """
    target = tempfile.mkdtemp(prefix=prefix)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        archive.extractall(target)
    return sorted(os.path.join(target, name) for name in os.listdir(target))
