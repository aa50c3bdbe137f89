"""Structured snapshot decoders.

Purpose
-------
Convert raw snapshot buffers into :class:`~lib_pki_registry.domain.model.PKISnapshot`
values the merge builder understands. Decoders are small wrappers around
``json.loads``/``yaml.safe_load`` so error handling, observability, and schema
checks live in one place.

Contents
--------
* :class:`BaseSnapshotDecoder` – shared schema walk from parsed document to
  records.
* :class:`JSONSnapshotDecoder` – decoder for the canonical JSON documents.
* :class:`YAMLSnapshotDecoder` – decoder for hand-curated YAML documents.
* :func:`decoder_for` / :func:`decode_snapshot` – suffix-based dispatch.

System Role
-----------
Invoked by :func:`lib_pki_registry.core.load_registry` for every payload a
source yields, before the records reach the merge builder.

Schema
------
Only ``inClusterResourceData`` is read. Unknown keys are ignored and absent or
``null`` values decode to empty ones, matching the producer's own decoder. A
value of the wrong JSON type raises :class:`DecodeError`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import PurePath
from typing import Any, Callable

import yaml

from ...domain.errors import DecodeError
from ...domain.model import (
    CABundleInfo,
    CABundleRecord,
    CertKeyInfo,
    CertKeyPairRecord,
    ConfigMapLocation,
    PKISnapshot,
    SecretLocation,
)
from ...observability import log_debug, log_error


class BaseSnapshotDecoder:
    """Common schema handling shared by the structured decoders."""

    format: str = ""
    errors: tuple[type[Exception], ...] = ()

    def parse(self, payload: bytes, *, origin: str | None = None) -> dict[str, Any]:
        """Parse *payload* into a raw document mapping without schema checks.

        Returns an empty mapping for an empty (``null``) document.

        Examples
        --------
        >>> JSONSnapshotDecoder().parse(b'{"certKeyPairs": {"items": []}}')
        {'certKeyPairs': {'items': []}}
        >>> JSONSnapshotDecoder().parse(b'null')
        {}
        """

        try:
            data = self._load(payload)
        except self.errors as exc:
            log_error("snapshot_invalid", path=origin, format=self.format, error=str(exc))
            raise DecodeError(f"Invalid {self.format.upper()} in {origin or '<buffer>'}: {exc}", origin=origin) from exc
        if data is None:
            return {}
        return dict(_expect_mapping(data, "document", origin))

    def decode(self, payload: bytes, *, origin: str | None = None) -> PKISnapshot:
        """Decode *payload* into a :class:`PKISnapshot`.

        Raises
        ------
        DecodeError
            When the buffer is not a well-formed document of the expected
            schema. No partial snapshot is returned.

        Examples
        --------
        >>> doc = b'{"inClusterResourceData": {"certKeyPairs": [{"secretLocation": {"namespace": "ns1", "name": "secret-a"}, "certKeyInfo": {"issuer": "X"}}]}}'
        >>> snapshot = JSONSnapshotDecoder().decode(doc)
        >>> [str(record.location) for record in snapshot.cert_key_pairs]
        ['ns1/secret-a']
        >>> snapshot.ca_bundles
        ()
        """

        document = self.parse(payload, origin=origin)
        try:
            snapshot = snapshot_from_document(document, origin=origin)
        except DecodeError as exc:
            log_error("snapshot_invalid", path=origin, format=self.format, error=str(exc))
            raise
        log_debug(
            "snapshot_decoded",
            path=origin,
            format=self.format,
            cert_key_pairs=len(snapshot.cert_key_pairs),
            ca_bundles=len(snapshot.ca_bundles),
        )
        return snapshot

    def _load(self, payload: bytes) -> Any:  # pragma: no cover - overridden
        raise NotImplementedError


class JSONSnapshotDecoder(BaseSnapshotDecoder):
    """Decode JSON snapshot documents."""

    format = "json"
    # JSONDecodeError and UnicodeDecodeError are both ValueErrors.
    errors = (ValueError,)

    def _load(self, payload: bytes) -> Any:
        return json.loads(payload)


class YAMLSnapshotDecoder(BaseSnapshotDecoder):
    """Decode YAML snapshot documents with ``yaml.safe_load``."""

    format = "yaml"
    errors = (yaml.YAMLError, UnicodeDecodeError)

    def _load(self, payload: bytes) -> Any:
        return yaml.safe_load(payload)


# Decoders keyed by file suffix; anything else is treated as JSON.
_DECODERS: dict[str, BaseSnapshotDecoder] = {
    ".json": JSONSnapshotDecoder(),
    ".yaml": YAMLSnapshotDecoder(),
    ".yml": YAMLSnapshotDecoder(),
}
_FORMATS: dict[str, BaseSnapshotDecoder] = {
    "json": _DECODERS[".json"],
    "yaml": _DECODERS[".yaml"],
}


def decoder_for(origin: str | None = None, *, format: str | None = None) -> BaseSnapshotDecoder:
    """Select a decoder by explicit *format* or by the suffix of *origin*.

    Examples
    --------
    >>> decoder_for("raw-data/ha.yaml").format
    'yaml'
    >>> decoder_for("raw-data/ha.txt").format
    'json'
    >>> decoder_for(None, format="yaml").format
    'yaml'
    """

    if format is not None:
        try:
            return _FORMATS[format.lower()]
        except KeyError as exc:
            raise ValueError(f"Unsupported snapshot format: {format}") from exc
    if origin is None:
        return _DECODERS[".json"]
    return _DECODERS.get(PurePath(origin).suffix.lower(), _DECODERS[".json"])


def decode_snapshot(payload: bytes, *, origin: str | None = None, format: str | None = None) -> PKISnapshot:
    """Decode *payload* with the decoder chosen by :func:`decoder_for`."""

    return decoder_for(origin, format=format).decode(payload, origin=origin)


def snapshot_from_document(document: Mapping[str, Any], *, origin: str | None = None) -> PKISnapshot:
    """Walk an already parsed document and build its records."""

    root = _expect_mapping(document, "document", origin)
    data = _expect_mapping(root.get("inClusterResourceData"), "inClusterResourceData", origin)
    prefix = "inClusterResourceData"

    cert_key_pairs = tuple(
        _record(item, f"{prefix}.certKeyPairs[{index}]", origin, _cert_key_pair)
        for index, item in enumerate(_expect_list(data.get("certKeyPairs"), f"{prefix}.certKeyPairs", origin))
    )
    ca_bundles = tuple(
        _record(item, f"{prefix}.certificateAuthorityBundles[{index}]", origin, _ca_bundle)
        for index, item in enumerate(
            _expect_list(data.get("certificateAuthorityBundles"), f"{prefix}.certificateAuthorityBundles", origin)
        )
    )
    return PKISnapshot(cert_key_pairs=cert_key_pairs, ca_bundles=ca_bundles)


def _record(item: Any, where: str, origin: str | None, build: Callable[[Mapping[str, Any], str, str | None], Any]) -> Any:
    return build(_expect_mapping(item, where, origin), where, origin)


def _cert_key_pair(item: Mapping[str, Any], where: str, origin: str | None) -> CertKeyPairRecord:
    location = _expect_mapping(item.get("secretLocation"), f"{where}.secretLocation", origin)
    info = _expect_mapping(item.get("certKeyInfo"), f"{where}.certKeyInfo", origin)
    return CertKeyPairRecord(
        location=SecretLocation(
            namespace=_expect_str(location.get("namespace"), f"{where}.secretLocation.namespace", origin),
            name=_expect_str(location.get("name"), f"{where}.secretLocation.name", origin),
        ),
        info=CertKeyInfo(_expect_json_object(info, f"{where}.certKeyInfo", origin)),
    )


def _ca_bundle(item: Mapping[str, Any], where: str, origin: str | None) -> CABundleRecord:
    location = _expect_mapping(item.get("configMapLocation"), f"{where}.configMapLocation", origin)
    info = _expect_mapping(item.get("certificateAuthorityBundleInfo"), f"{where}.certificateAuthorityBundleInfo", origin)
    return CABundleRecord(
        location=ConfigMapLocation(
            namespace=_expect_str(location.get("namespace"), f"{where}.configMapLocation.namespace", origin),
            name=_expect_str(location.get("name"), f"{where}.configMapLocation.name", origin),
        ),
        info=CABundleInfo(_expect_json_object(info, f"{where}.certificateAuthorityBundleInfo", origin)),
    )


def _expect_mapping(value: Any, where: str, origin: str | None) -> Mapping[str, Any]:
    """Return *value* as a mapping, treating ``None`` as empty.

    Examples
    --------
    >>> _expect_mapping(None, "x", None)
    {}
    >>> _expect_mapping(42, "x", "a.json")
    Traceback (most recent call last):
    ...
    lib_pki_registry.domain.errors.DecodeError: a.json: x must be an object, got int
    """

    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DecodeError(f"{origin or '<buffer>'}: {where} must be an object, got {type(value).__name__}", origin=origin)
    return value


def _expect_list(value: Any, where: str, origin: str | None) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{origin or '<buffer>'}: {where} must be a list, got {type(value).__name__}", origin=origin)
    return value


def _expect_str(value: Any, where: str, origin: str | None) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{origin or '<buffer>'}: {where} must be a string, got {type(value).__name__}", origin=origin)
    return value


def _expect_json_object(value: Mapping[str, Any], where: str, origin: str | None) -> Mapping[str, Any]:
    """Reject values that have no JSON representation (YAML dates, non-string keys)."""

    _check_json_value(value, where, origin)
    return value


def _check_json_value(value: Any, where: str, origin: str | None) -> None:
    if value is None or isinstance(value, (str, int, float)):
        return
    if isinstance(value, list):
        for index, item in enumerate(value):
            _check_json_value(item, f"{where}[{index}]", origin)
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise DecodeError(f"{origin or '<buffer>'}: {where} has non-string key {key!r}", origin=origin)
            _check_json_value(item, f"{where}.{key}", origin)
        return
    raise DecodeError(f"{origin or '<buffer>'}: {where} holds unsupported value of type {type(value).__name__}", origin=origin)
