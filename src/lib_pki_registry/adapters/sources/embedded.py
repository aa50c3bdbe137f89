"""Packaged baseline snapshot source.

Purpose
-------
Implement :class:`lib_pki_registry.application.ports.SnapshotSource` over the
``raw_data`` resource directory shipped inside the wheel. Each file there is
the recorded inventory of one historical cluster profile; together they form
the known-good baseline live clusters are compared against.

The directory is curated at build time, so this source is *lenient*: an entry
that cannot be read is logged and skipped, and the composition root likewise
skips entries that fail to decode. Conflicts between entries still abort.
"""

from __future__ import annotations

from importlib import resources
from importlib.resources.abc import Traversable
from typing import Iterator

from ...application.ports import SnapshotPayload
from ...observability import log_debug, log_warning

#: Resource directory (relative to the package) holding baseline snapshots.
RAW_DATA_DIR = "raw_data"


def default_raw_data_root() -> Traversable:
    """Return the packaged ``raw_data`` directory."""

    return resources.files("lib_pki_registry").joinpath(RAW_DATA_DIR)


class EmbeddedSource:
    """Yield each regular entry of a resource directory.

    Parameters
    ----------
    root:
        Any :class:`~importlib.resources.abc.Traversable` (a
        :class:`pathlib.Path` works too). Defaults to the packaged baseline.
    """

    name = "embedded"
    lenient = True

    def __init__(self, root: Traversable | None = None) -> None:
        self.root = root if root is not None else default_raw_data_root()

    def payloads(self) -> Iterator[SnapshotPayload]:
        entries = sorted(self.root.iterdir(), key=lambda entry: entry.name)
        log_debug("source_enumerated", source=self.name, path=str(self.root), files=len(entries))
        for entry in entries:
            if entry.is_dir():
                continue
            origin = f"{self.root.name}/{entry.name}"
            if entry.name.startswith("."):
                log_debug("snapshot_skipped", source=self.name, path=origin, reason="hidden")
                continue
            try:
                payload = entry.read_bytes()
            except OSError as exc:
                log_warning("snapshot_skipped", source=self.name, path=origin, error=str(exc))
                continue
            log_debug("snapshot_read", source=self.name, path=origin, size=len(payload))
            yield SnapshotPayload(origin=origin, payload=payload)
