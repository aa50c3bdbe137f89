"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the composition
root can orchestrate behaviour without depending on concrete implementations.

Contents
--------
* :class:`SnapshotPayload` – one raw snapshot buffer plus its origin.
* :class:`SnapshotSource` – bounded enumeration of snapshot buffers.
* :class:`SnapshotDecoder` – turns a buffer into a :class:`PKISnapshot`.

System Role
-----------
These protocols keep :mod:`lib_pki_registry.core` independent of the
filesystem and of packaged resources. Each adapter implements one protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol, runtime_checkable

from ..domain.model import PKISnapshot


@dataclass(frozen=True, slots=True)
class SnapshotPayload:
    """Raw bytes of one snapshot document and where they came from."""

    origin: str
    payload: bytes


@runtime_checkable
class SnapshotSource(Protocol):
    """Enumerate snapshot buffers, one per source document.

    Why
    ----
    Directory walks and packaged baselines differ only in discovery and in how
    forgiving they are. ``lenient`` sources have unreadable or undecodable
    entries skipped; strict ones propagate every failure.

    The enumeration is finite and materialised before iteration begins; each
    call to :meth:`payloads` yields a fresh, single-use iterator.
    """

    name: str
    lenient: bool

    def payloads(self) -> Iterator[SnapshotPayload]:
        """Yield every snapshot buffer of the source."""


@runtime_checkable
class SnapshotDecoder(Protocol):
    """Parse one buffer into records or raise ``DecodeError``."""

    def decode(self, payload: bytes, *, origin: str | None = None) -> PKISnapshot:
        """Return the snapshot encoded in *payload*."""
