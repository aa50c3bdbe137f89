from __future__ import annotations

import json

import pytest

from lib_pki_registry.adapters.decoders.structured import (
    JSONSnapshotDecoder,
    YAMLSnapshotDecoder,
    decode_snapshot,
    decoder_for,
)
from lib_pki_registry.domain.errors import DecodeError
from lib_pki_registry.domain.model import CABundleInfo, CertKeyInfo, ConfigMapLocation, SecretLocation
from tests.support import bundle, cert, snapshot_document


def _encode(document: object) -> bytes:
    return json.dumps(document).encode("utf-8")


def test_json_decoder_preserves_document_order() -> None:
    payload = _encode(
        snapshot_document(
            certs=[cert("b", "z", issuer="Z"), cert("a", "x", issuer="X")],
            bundles=[bundle("ns1", "ca", owningJiraComponent="etcd")],
        )
    )
    snapshot = JSONSnapshotDecoder().decode(payload, origin="a.json")
    assert [record.location for record in snapshot.cert_key_pairs] == [SecretLocation("b", "z"), SecretLocation("a", "x")]
    assert snapshot.cert_key_pairs[0].info == CertKeyInfo({"issuer": "Z"})
    assert snapshot.ca_bundles[0].location == ConfigMapLocation("ns1", "ca")
    assert snapshot.ca_bundles[0].info == CABundleInfo({"owningJiraComponent": "etcd"})


def test_unknown_keys_are_ignored() -> None:
    document = snapshot_document(certs=[cert("ns", "n")])
    document["certKeyPairs"] = {"items": [{"name": "ignored"}]}
    document["inClusterResourceData"]["somethingNew"] = True
    snapshot = decode_snapshot(_encode(document))
    assert len(snapshot.cert_key_pairs) == 1


@pytest.mark.parametrize(
    "document",
    [
        {},
        {"inClusterResourceData": None},
        {"inClusterResourceData": {"certKeyPairs": None, "certificateAuthorityBundles": None}},
    ],
)
def test_missing_sections_decode_empty(document: dict) -> None:
    snapshot = decode_snapshot(_encode(document))
    assert snapshot.cert_key_pairs == ()
    assert snapshot.ca_bundles == ()


def test_missing_fields_decode_to_empty_values() -> None:
    document = {"inClusterResourceData": {"certKeyPairs": [{"secretLocation": {"name": "n"}}]}}
    record = decode_snapshot(_encode(document)).cert_key_pairs[0]
    assert record.location == SecretLocation("", "n")
    assert record.info == CertKeyInfo({})


@pytest.mark.parametrize(
    "payload",
    [
        b"{invalid}",
        b"",
        b"\xff\xfe\x00garbage",
        b"[]",
        b'{"inClusterResourceData": []}',
        b'{"inClusterResourceData": {"certKeyPairs": {}}}',
        b'{"inClusterResourceData": {"certKeyPairs": ["oops"]}}',
        b'{"inClusterResourceData": {"certKeyPairs": [{"secretLocation": {"namespace": 3}}]}}',
        b'{"inClusterResourceData": {"certificateAuthorityBundles": [{"certificateAuthorityBundleInfo": "x"}]}}',
    ],
)
def test_malformed_documents_raise_decode_error(payload: bytes) -> None:
    with pytest.raises(DecodeError) as excinfo:
        decode_snapshot(payload, origin="broken.json")
    assert excinfo.value.origin == "broken.json"


def test_yaml_decoder_reads_same_schema() -> None:
    payload = b"""
inClusterResourceData:
  certKeyPairs:
    - secretLocation: {namespace: ns1, name: secret-a}
      certKeyInfo: {issuer: X}
"""
    snapshot = YAMLSnapshotDecoder().decode(payload)
    assert snapshot.cert_key_pairs[0].location == SecretLocation("ns1", "secret-a")
    assert snapshot.cert_key_pairs[0].info == CertKeyInfo({"issuer": "X"})


def test_yaml_decoder_treats_empty_document_as_empty_snapshot() -> None:
    snapshot = YAMLSnapshotDecoder().decode(b"# nothing recorded\n")
    assert snapshot.cert_key_pairs == ()


def test_yaml_values_without_json_form_are_rejected() -> None:
    payload = b"""
inClusterResourceData:
  certKeyPairs:
    - secretLocation: {namespace: ns1, name: secret-a}
      certKeyInfo: {notAfter: 2024-01-01}
"""
    with pytest.raises(DecodeError, match="notAfter"):
        YAMLSnapshotDecoder().decode(payload)


def test_invalid_yaml_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_snapshot(b"inClusterResourceData: [unclosed", origin="snap.yaml")


def test_decoder_for_suffix_and_format() -> None:
    assert isinstance(decoder_for("x.YML"), YAMLSnapshotDecoder)
    assert isinstance(decoder_for("x.json"), JSONSnapshotDecoder)
    assert isinstance(decoder_for("no-suffix"), JSONSnapshotDecoder)
    with pytest.raises(ValueError):
        decoder_for(format="toml")
