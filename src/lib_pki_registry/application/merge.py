"""Application-layer merge policy.

Purpose
-------
Fold a sequence of decoded snapshots into one canonical registry keyed by
resource location, rejecting conflicting observations and exporting a sorted,
deterministic result. The module is free of I/O so alternative composition
roots can reuse it.

Contents
    - ``RegistryBuilder``: per-run accumulator (``add_snapshot`` / ``build``).
    - ``merge_snapshots``: functional entry point driven by a simple loop.
    - ``_absorb``: the insert-if-absent, compare-if-present rule shared by
      certificates and CA bundles.

System Role
-----------
Receives snapshots from :mod:`lib_pki_registry.core` and returns the
:class:`~lib_pki_registry.domain.model.PKIRegistry` consumed by comparison and
serialisation.
"""

from __future__ import annotations

from typing import Hashable, Iterable, TypeVar

from ..domain.errors import ConflictError
from ..domain.model import (
    CABundleInfo,
    CABundleRecord,
    CertKeyInfo,
    CertKeyPairRecord,
    ConfigMapLocation,
    PKIRegistry,
    PKISnapshot,
    SecretLocation,
)
from ..observability import log_debug, log_error

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class RegistryBuilder:
    """Accumulate snapshot records for a single merge run.

    Why
    ----
    Each location may carry exactly one metadata value across every snapshot
    of a run. Keeping the mappings on an explicit builder avoids shared state
    between runs; a builder is created empty, fed snapshots, and discarded
    after :meth:`build`.

    Examples
    --------
    >>> record = CertKeyPairRecord(SecretLocation("ns1", "secret-a"), CertKeyInfo({"issuer": "X"}))
    >>> builder = RegistryBuilder()
    >>> builder.add_snapshot(PKISnapshot(cert_key_pairs=(record,)))
    >>> builder.add_snapshot(PKISnapshot(cert_key_pairs=(record,)))
    >>> len(builder.build().cert_key_pairs)
    1
    """

    def __init__(self) -> None:
        self.certs: dict[SecretLocation, CertKeyInfo] = {}
        self.ca_bundles: dict[ConfigMapLocation, CABundleInfo] = {}
        self._cert_origins: dict[SecretLocation, str | None] = {}
        self._ca_bundle_origins: dict[ConfigMapLocation, str | None] = {}
        self.snapshots = 0

    def add_snapshot(self, snapshot: PKISnapshot, *, origin: str | None = None) -> None:
        """Fold *snapshot* into the accumulated mappings in place.

        Raises
        ------
        ConflictError
            When a location already holds a structurally different value.
            Processing of the snapshot stops at the first conflict.
        """

        for cert in snapshot.cert_key_pairs:
            _absorb(self.certs, self._cert_origins, cert.location, cert.info, origin, kind="secret")
        for bundle in snapshot.ca_bundles:
            _absorb(self.ca_bundles, self._ca_bundle_origins, bundle.location, bundle.info, origin, kind="configmap")
        self.snapshots += 1
        log_debug(
            "snapshot_merged",
            path=origin,
            cert_key_pairs=len(self.certs),
            ca_bundles=len(self.ca_bundles),
        )

    def origin_of(self, location: SecretLocation | ConfigMapLocation) -> str | None:
        """Return the source that first registered *location*, if any."""

        if isinstance(location, SecretLocation):
            return self._cert_origins.get(location)
        return self._ca_bundle_origins.get(location)

    def build(self) -> PKIRegistry:
        """Export the mappings as a registry sorted by ``(namespace, name)``.

        Total: the mappings are conflict-free by construction.
        """

        return PKIRegistry(
            cert_key_pairs=tuple(CertKeyPairRecord(key, self.certs[key]) for key in sorted(self.certs)),
            ca_bundles=tuple(CABundleRecord(key, self.ca_bundles[key]) for key in sorted(self.ca_bundles)),
        )


def merge_snapshots(snapshots: Iterable[PKISnapshot | tuple[PKISnapshot, str | None]]) -> PKIRegistry:
    """Merge *snapshots* into a fresh registry.

    Items may be bare snapshots or ``(snapshot, origin)`` tuples; origins only
    enrich conflict messages.

    Examples
    --------
    >>> a = PKISnapshot(cert_key_pairs=(CertKeyPairRecord(SecretLocation("b", "z"), CertKeyInfo()),))
    >>> b = PKISnapshot(cert_key_pairs=(
    ...     CertKeyPairRecord(SecretLocation("a", "y"), CertKeyInfo()),
    ...     CertKeyPairRecord(SecretLocation("a", "x"), CertKeyInfo()),
    ... ))
    >>> [str(record.location) for record in merge_snapshots([a, b]).cert_key_pairs]
    ['a/x', 'a/y', 'b/z']
    """

    builder = RegistryBuilder()
    for item in snapshots:
        if isinstance(item, tuple):
            snapshot, origin = item
        else:
            snapshot, origin = item, None
        builder.add_snapshot(snapshot, origin=origin)
    return builder.build()


def _absorb(
    target: dict[K, V],
    origins: dict[K, str | None],
    location: K,
    info: V,
    origin: str | None,
    *,
    kind: str,
) -> None:
    """Insert *info* at *location* unless an equal value is present; conflict otherwise."""

    if location not in target:
        target[location] = info
        origins[location] = origin
        return
    existing = target[location]
    if existing == info:
        return
    existing_origin = origins.get(location)
    log_error(
        "registry_conflict",
        kind=kind,
        location=str(location),
        existing_origin=existing_origin,
        incoming_origin=origin,
    )
    raise ConflictError(
        kind,
        location,
        existing,
        info,
        existing_origin=existing_origin,
        incoming_origin=origin,
    )
