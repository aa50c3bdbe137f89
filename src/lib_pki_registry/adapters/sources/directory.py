"""Filesystem-backed snapshot source.

Purpose
-------
Implement :class:`lib_pki_registry.application.ports.SnapshotSource` for a
directory tree of snapshot documents, such as the ``rawTLSInfo`` artifacts
collected from many CI runs.

Contents
--------
* :class:`DirectorySource` – strict source; every failure propagates.
* :func:`_collect_files` – deterministic recursive listing.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from ...application.ports import SnapshotPayload
from ...observability import log_debug


class DirectorySource:
    """Yield every regular file below *root*, in sorted path order.

    Why
    ----
    Directory contents are ad-hoc collections; a stray or broken file should
    fail the run loudly rather than silently shrink the registry.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> _ = (Path(tmp.name) / "b.json").write_bytes(b"{}")
    >>> _ = (Path(tmp.name) / "nested").mkdir()
    >>> _ = (Path(tmp.name) / "nested" / "a.json").write_bytes(b"{}")
    >>> [Path(item.origin).name for item in DirectorySource(tmp.name).payloads()]
    ['b.json', 'a.json']
    >>> tmp.cleanup()
    """

    name = "directory"
    lenient = False

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)

    def payloads(self) -> Iterator[SnapshotPayload]:
        files = _collect_files(self.root)
        log_debug("source_enumerated", source=self.name, path=str(self.root), files=len(files))
        for path in files:
            payload = path.read_bytes()
            log_debug("snapshot_read", source=self.name, path=str(path), size=len(payload))
            yield SnapshotPayload(origin=str(path), payload=payload)


def _collect_files(root: Path) -> list[Path]:
    """Return regular files below *root*, raising on unreadable directories."""

    if not root.is_dir():
        raise NotADirectoryError(f"Snapshot directory not found: {root}")
    collected: list[Path] = []
    for current, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(current) / filename
            if path.is_file():
                collected.append(path)
    return collected


def _raise(error: OSError) -> None:
    raise error
