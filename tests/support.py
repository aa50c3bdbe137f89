"""Shared helpers for shaping snapshot documents in tests.

The helpers speak the wire format (camelCase keys) so tests exercise the
decoders exactly as real collector output would.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping


def cert(namespace: str, name: str, **info: Any) -> dict[str, Any]:
    """Return one ``certKeyPairs`` wire record."""

    return {"secretLocation": {"namespace": namespace, "name": name}, "certKeyInfo": dict(info)}


def bundle(namespace: str, name: str, **info: Any) -> dict[str, Any]:
    """Return one ``certificateAuthorityBundles`` wire record."""

    return {
        "configMapLocation": {"namespace": namespace, "name": name},
        "certificateAuthorityBundleInfo": dict(info),
    }


def snapshot_document(
    certs: Iterable[Mapping[str, Any]] = (),
    bundles: Iterable[Mapping[str, Any]] = (),
) -> dict[str, Any]:
    return {
        "inClusterResourceData": {
            "certKeyPairs": list(certs),
            "certificateAuthorityBundles": list(bundles),
        }
    }


def write_snapshot(
    directory: Path,
    filename: str,
    certs: Iterable[Mapping[str, Any]] = (),
    bundles: Iterable[Mapping[str, Any]] = (),
) -> Path:
    """Write a JSON snapshot into *directory* (created when needed)."""

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(json.dumps(snapshot_document(certs, bundles)), encoding="utf-8")
    return path


@dataclass
class FakeEntry:
    """Resource entry that can be told to fail when read."""

    name: str
    payload: bytes = b""
    error: OSError | None = None
    directory: bool = False

    def is_dir(self) -> bool:
        return self.directory

    def read_bytes(self) -> bytes:
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeResourceRoot:
    """Minimal traversable standing in for a packaged resource directory."""

    entries: list[FakeEntry] = field(default_factory=list)
    name: str = "raw_data"

    def iterdir(self) -> Iterator[FakeEntry]:
        return iter(self.entries)

    def add_snapshot(self, filename: str, certs=(), bundles=()) -> None:
        payload = json.dumps(snapshot_document(certs, bundles)).encode("utf-8")
        self.entries.append(FakeEntry(filename, payload))
