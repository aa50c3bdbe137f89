"""Composition root for ``lib_pki_registry``.

Purpose
-------
Provide the entry points that drive a snapshot source through decoding, merge
and export while emitting structured observability signals.

Contents
--------
* :func:`load_registry` – generic driver over any
  :class:`~lib_pki_registry.application.ports.SnapshotSource`.
* :func:`load_registry_from_directory` – strict loader for a directory tree.
* :func:`load_registry_from_embedded` – lenient loader for the packaged
  baseline (or the ``LIB_PKI_REGISTRY_BASELINE_DIR`` override).
* :func:`load_snapshot` / :func:`load_document` – read a single live snapshot
  file.

System Role
-----------
This module connects adapters (sources, decoders, environment) with the merge
builder. It is the canonical place to change how failures of a source are
treated: strict sources propagate every error, lenient sources skip entries
that cannot be decoded. Merge conflicts abort both.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Any, Mapping

from .adapters.decoders.structured import decode_snapshot, decoder_for
from .adapters.env.default import DefaultEnvLoader
from .adapters.sources.directory import DirectorySource
from .adapters.sources.embedded import EmbeddedSource
from .application.merge import RegistryBuilder
from .application.ports import SnapshotSource
from .domain.errors import ConflictError, DecodeError, LookupMiss, RegistryError
from .domain.model import PKIRegistry, PKISnapshot
from .observability import bind_trace_id, log_debug, log_info, log_warning, make_event


def load_registry(source: SnapshotSource) -> PKIRegistry:
    """Merge every snapshot *source* yields and return the sorted registry.

    Why
    ----
    Both source variants share one pipeline; only their leniency differs.

    What
    ----
    Binds a fresh trace identifier, decodes each payload, folds it into a new
    :class:`RegistryBuilder`, and exports the result. The trace identifier is
    cleared again once the run ends, whether it succeeded or not.

    Raises
    ------
    DecodeError
        From strict sources when a payload is malformed.
    ConflictError
        From any source when two payloads disagree about a location.
    OSError
        From strict sources when a file cannot be read.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> doc = '{"inClusterResourceData": {"certKeyPairs": [{"secretLocation": {"namespace": "ns1", "name": "secret-a"}, "certKeyInfo": {"issuer": "X"}}]}}'
    >>> _ = (Path(tmp.name) / "a.json").write_text(doc, encoding="utf-8")
    >>> _ = (Path(tmp.name) / "b.json").write_text("{}", encoding="utf-8")
    >>> registry = load_registry(DirectorySource(tmp.name))
    >>> [str(record.location) for record in registry.cert_key_pairs]
    ['ns1/secret-a']
    >>> tmp.cleanup()
    """

    bind_trace_id(uuid.uuid4().hex)
    try:
        return _merge_source(source)
    finally:
        bind_trace_id(None)


def _merge_source(source: SnapshotSource) -> PKIRegistry:
    builder = RegistryBuilder()
    skipped = 0
    for item in source.payloads():
        try:
            snapshot = decode_snapshot(item.payload, origin=item.origin)
        except DecodeError as exc:
            if not source.lenient:
                raise
            skipped += 1
            log_warning("snapshot_skipped", **make_event(source.name, item.origin, {"error": str(exc)}))
            continue
        builder.add_snapshot(snapshot, origin=item.origin)

    registry = builder.build()
    log_info(
        "registry_built",
        **make_event(
            source.name,
            None,
            {
                "snapshots": builder.snapshots,
                "skipped": skipped,
                "cert_key_pairs": len(registry.cert_key_pairs),
                "ca_bundles": len(registry.ca_bundles),
            },
        ),
    )
    return registry


def load_registry_from_directory(path: str | os.PathLike[str]) -> PKIRegistry:
    """Strictly merge every file below *path*."""

    return load_registry(DirectorySource(path))


def load_registry_from_embedded(
    root: Any | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> PKIRegistry:
    """Leniently merge the packaged baseline.

    *root* overrides the resource directory explicitly; otherwise
    ``LIB_PKI_REGISTRY_BASELINE_DIR`` is consulted before falling back to the
    packaged ``raw_data`` directory.
    """

    if root is None:
        settings = DefaultEnvLoader(environ=environ).settings()
        if settings.baseline_dir is not None:
            root = settings.baseline_dir
            log_debug("baseline_override", **make_event("embedded", str(root)))
    return load_registry(EmbeddedSource(root))


def load_document(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Read and parse a single snapshot file into its raw document mapping."""

    origin = str(path)
    return decoder_for(origin).parse(Path(path).read_bytes(), origin=origin)


def load_snapshot(path: str | os.PathLike[str]) -> PKISnapshot:
    """Read and decode a single snapshot file, such as a freshly gathered live inventory."""

    origin = str(path)
    return decode_snapshot(Path(path).read_bytes(), origin=origin)


__all__ = [
    "ConflictError",
    "DecodeError",
    "LookupMiss",
    "RegistryError",
    "load_document",
    "load_registry",
    "load_registry_from_directory",
    "load_registry_from_embedded",
    "load_snapshot",
]
