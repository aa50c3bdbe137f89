"""Domain value objects for certificate and CA-bundle inventories.

Purpose
-------
Anchor the immutable types that flow between decoders, the merge builder, and
consumers. This module belongs to the domain layer and contains no I/O.

Contents
--------
* :class:`SecretLocation` / :class:`ConfigMapLocation` – hashable, ordered
  ``(namespace, name)`` keys.
* :class:`CertKeyInfo` / :class:`CABundleInfo` – opaque metadata blocks with
  structural equality over their canonical JSON form.
* :class:`CertKeyPairRecord` / :class:`CABundleRecord` – location/info pairs.
* :class:`PKISnapshot` – the records of one decoded snapshot document.
* :class:`PKIRegistry` – the sorted, merged result with binary-search lookups.

System Role
-----------
Every call to :func:`lib_pki_registry.core.load_registry` ultimately returns a
:class:`PKIRegistry`. The types guarantee immutability and value semantics so
conflict detection never depends on object identity.
"""

from __future__ import annotations

import json
from bisect import bisect_left
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Sequence

from .errors import LookupMiss


@dataclass(frozen=True, slots=True, order=True)
class SecretLocation:
    """Namespace and name of the secret holding a certificate/key pair.

    Examples
    --------
    >>> sorted([SecretLocation("b", "z"), SecretLocation("a", "y"), SecretLocation("a", "x")])[0]
    SecretLocation(namespace='a', name='x')
    >>> str(SecretLocation("ns1", "secret-a"))
    'ns1/secret-a'
    """

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    def as_dict(self) -> dict[str, str]:
        return {"namespace": self.namespace, "name": self.name}


@dataclass(frozen=True, slots=True, order=True)
class ConfigMapLocation:
    """Namespace and name of the configmap holding a CA bundle."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    def as_dict(self) -> dict[str, str]:
        return {"namespace": self.namespace, "name": self.name}


@dataclass(frozen=True, slots=True, eq=False)
class OpaqueInfo:
    """Immutable metadata block compared by value.

    Why
    ----
    The registry never interprets certificate metadata, yet conflict detection
    depends entirely on equality. Content is frozen on construction and compared
    through its canonical JSON text so key order does not matter while ``1``,
    ``1.0`` and ``true`` remain distinct values.

    Examples
    --------
    >>> CertKeyInfo({"a": 1, "b": [1, 2]}) == CertKeyInfo({"b": [1, 2], "a": 1})
    True
    >>> CertKeyInfo({"a": 1}) == CertKeyInfo({"a": True})
    False
    >>> CertKeyInfo({"a": 1}) == CABundleInfo({"a": 1})
    False
    """

    content: Mapping[str, Any] = field(default_factory=dict)
    _canonical: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", _freeze(dict(self.content)))
        object.__setattr__(self, "_canonical", _canonical_json(self.content))

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._canonical == other._canonical  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._canonical))

    def get(self, key: str, default: Any = None) -> Any:
        return self.content.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy suitable for serialisation."""

        return _thaw(self.content)


class CertKeyInfo(OpaqueInfo):
    """Metadata describing a certificate/key pair (owner, description, ...)."""

    __slots__ = ()


class CABundleInfo(OpaqueInfo):
    """Metadata describing a CA bundle."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class CertKeyPairRecord:
    location: SecretLocation
    info: CertKeyInfo

    def as_dict(self) -> dict[str, Any]:
        return {"secretLocation": self.location.as_dict(), "certKeyInfo": self.info.as_dict()}


@dataclass(frozen=True, slots=True)
class CABundleRecord:
    location: ConfigMapLocation
    info: CABundleInfo

    def as_dict(self) -> dict[str, Any]:
        return {
            "configMapLocation": self.location.as_dict(),
            "certificateAuthorityBundleInfo": self.info.as_dict(),
        }


@dataclass(frozen=True, slots=True)
class PKISnapshot:
    """Records decoded from one snapshot document, in document order."""

    cert_key_pairs: tuple[CertKeyPairRecord, ...] = ()
    ca_bundles: tuple[CABundleRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class PKIRegistry:
    """Merged inventory sorted by ``(namespace, name)``.

    Why
    ----
    Sorted, duplicate-free sequences make serialisation byte-stable and allow
    downstream comparison to locate records by binary search.

    Examples
    --------
    >>> registry = PKIRegistry(
    ...     cert_key_pairs=(CertKeyPairRecord(SecretLocation("ns1", "secret-a"), CertKeyInfo({"issuer": "X"})),),
    ... )
    >>> registry.locate_cert_key_pair(SecretLocation("ns1", "secret-a")).info.get("issuer")
    'X'
    >>> registry.to_json()
    '{"certKeyPairs":[{"certKeyInfo":{"issuer":"X"},"secretLocation":{"name":"secret-a","namespace":"ns1"}}],"certificateAuthorityBundles":[]}'
    """

    cert_key_pairs: tuple[CertKeyPairRecord, ...] = ()
    ca_bundles: tuple[CABundleRecord, ...] = ()

    def locate_cert_key_pair(self, location: SecretLocation) -> CertKeyPairRecord:
        """Return the record stored at *location* or raise :class:`LookupMiss`."""

        return _locate(self.cert_key_pairs, location, kind="secret")

    def locate_ca_bundle(self, location: ConfigMapLocation) -> CABundleRecord:
        """Return the CA bundle stored at *location* or raise :class:`LookupMiss`."""

        return _locate(self.ca_bundles, location, kind="configmap")

    def as_dict(self) -> dict[str, Any]:
        return {
            "certKeyPairs": [record.as_dict() for record in self.cert_key_pairs],
            "certificateAuthorityBundles": [record.as_dict() for record in self.ca_bundles],
        }

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the registry with sorted keys so equal registries yield equal bytes."""

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _locate(records: Sequence[Any], location: Any, *, kind: str) -> Any:
    """Binary-search *records* (sorted by location) for *location*."""

    index = bisect_left(records, location, key=lambda record: record.location)
    if index < len(records) and records[index].location == location:
        return records[index]
    raise LookupMiss(kind, location)


def _freeze(value: Any) -> Any:
    """Recursively convert dicts to mapping proxies and lists to tuples."""

    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Inverse of :func:`_freeze`, producing plain JSON-compatible containers."""

    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


def _canonical_json(value: Any) -> str:
    return json.dumps(_thaw(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
