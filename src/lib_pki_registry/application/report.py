"""Inventory comparison and artifact helpers.

Purpose
-------
Check a live snapshot against a baseline :class:`PKIRegistry` and prepare the
live snapshot for publication as a CI artifact.

Contents
--------
* :class:`Mismatch` / :class:`Unregistered` – individual findings.
* :class:`InventoryReport` – aggregated findings plus message rendering.
* :func:`compare_inventory` – look every live record up in the baseline.
* :func:`prune_system_trust` – collapse an oversized ``proxy-ca`` bundle.
* :func:`artifact_filename` / :func:`write_artifact` – name and write the
  per-run artifact.

System Role
-----------
Findings are aggregated, never fail-fast, so a single run surfaces every
discrepancy. Whether findings fail a run is the caller's decision (see the
``check --strict`` CLI flag).
"""

from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..domain.errors import LookupMiss
from ..domain.model import (
    CABundleInfo,
    CertKeyInfo,
    ConfigMapLocation,
    PKIRegistry,
    PKISnapshot,
    SecretLocation,
)
from ..observability import log_debug, log_info

PROXY_CA_LOGICAL_NAME = "proxy-ca"
ARTIFACT_SUBDIR = "rawTLSInfo"

_SYNTHETIC_PROXY_CA = {
    "certIdentifier": {
        "commonName": "synthetic-proxy-ca",
        "serialNumber": "0",
        "issuer": None,
    }
}


@dataclass(frozen=True, slots=True)
class Mismatch:
    """A live record whose metadata differs from the baseline."""

    kind: str
    location: SecretLocation | ConfigMapLocation
    expected: CertKeyInfo | CABundleInfo
    actual: CertKeyInfo | CABundleInfo

    def message(self) -> str:
        expected = json.dumps(self.expected.as_dict(), indent=4, sort_keys=True)
        actual = json.dumps(self.actual.as_dict(), indent=4, sort_keys=True)
        return (
            f"--namespace={self.location.namespace}, {self.kind}/{self.location.name}:\n"
            f"Expected\n{_indent(actual)}\nto equal\n{_indent(expected)}\n"
        )


@dataclass(frozen=True, slots=True)
class Unregistered:
    """A live record whose location is unknown to the baseline."""

    kind: str
    location: SecretLocation | ConfigMapLocation

    def message(self) -> str:
        return f"Unregistered TLS artifact: --namespace={self.location.namespace}, {self.kind}/{self.location.name}\n"


@dataclass(frozen=True, slots=True)
class InventoryReport:
    mismatches: tuple[Mismatch, ...] = ()
    unregistered: tuple[Unregistered, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.mismatches and not self.unregistered

    def messages(self) -> list[str]:
        """Mismatches in live order, then unregistered artifacts (secrets first, sorted)."""

        return [item.message() for item in self.mismatches] + [item.message() for item in self.unregistered]

    def render(self) -> str:
        return "\n".join(self.messages())


def compare_inventory(live: PKISnapshot, baseline: PKIRegistry) -> InventoryReport:
    """Compare every record of *live* with its counterpart in *baseline*.

    Examples
    --------
    >>> from lib_pki_registry.domain.model import CertKeyPairRecord
    >>> known = CertKeyPairRecord(SecretLocation("ns1", "secret-a"), CertKeyInfo({"issuer": "X"}))
    >>> fresh = CertKeyPairRecord(SecretLocation("ns1", "secret-b"), CertKeyInfo({"issuer": "X"}))
    >>> report = compare_inventory(PKISnapshot(cert_key_pairs=(known, fresh)), PKIRegistry(cert_key_pairs=(known,)))
    >>> report.messages()
    ['Unregistered TLS artifact: --namespace=ns1, secret/secret-b\\n']
    """

    mismatches: list[Mismatch] = []
    unregistered_secrets: dict[SecretLocation, Unregistered] = {}
    unregistered_config_maps: dict[ConfigMapLocation, Unregistered] = {}

    for cert in live.cert_key_pairs:
        try:
            expected = baseline.locate_cert_key_pair(cert.location)
        except LookupMiss:
            unregistered_secrets[cert.location] = Unregistered("secret", cert.location)
            continue
        if expected.info != cert.info:
            mismatches.append(Mismatch("secret", cert.location, expected.info, cert.info))

    for bundle in live.ca_bundles:
        try:
            expected_bundle = baseline.locate_ca_bundle(bundle.location)
        except LookupMiss:
            unregistered_config_maps[bundle.location] = Unregistered("configmap", bundle.location)
            continue
        if expected_bundle.info != bundle.info:
            mismatches.append(Mismatch("configmap", bundle.location, expected_bundle.info, bundle.info))

    report = InventoryReport(
        mismatches=tuple(mismatches),
        unregistered=tuple(unregistered_secrets[key] for key in sorted(unregistered_secrets))
        + tuple(unregistered_config_maps[key] for key in sorted(unregistered_config_maps)),
    )
    log_info(
        "inventory_compared",
        source="live",
        path=None,
        mismatches=len(report.mismatches),
        unregistered=len(report.unregistered),
    )
    return report


def prune_system_trust(document: Mapping[str, Any], *, threshold: int = 10) -> dict[str, Any]:
    """Return a copy of *document* with an oversized ``proxy-ca`` bundle collapsed.

    The proxy CA bundle usually carries the whole system trust store, which
    drowns the cluster-issued certificates when the inventory is visualised.
    The first ``proxy-ca`` bundle listing more than *threshold* certificates is
    renamed ``proxy-ca`` and its certificate list replaced by one synthetic
    entry.

    Examples
    --------
    >>> doc = {"certificateAuthorityBundles": {"items": [
    ...     {"logicalName": "proxy-ca", "name": "trusted-ca-bundle", "spec": {"certificates": [{}, {}, {}]}},
    ... ]}}
    >>> pruned = prune_system_trust(doc, threshold=2)
    >>> item = pruned["certificateAuthorityBundles"]["items"][0]
    >>> item["name"], item["spec"]["certificates"][0]["certIdentifier"]["commonName"]
    ('proxy-ca', 'synthetic-proxy-ca')
    >>> len(doc["certificateAuthorityBundles"]["items"][0]["spec"]["certificates"])
    3
    """

    pruned = deepcopy(dict(document))
    bundles = pruned.get("certificateAuthorityBundles")
    if not isinstance(bundles, dict):
        return pruned
    for item in bundles.get("items") or []:
        if not isinstance(item, dict) or item.get("logicalName") != PROXY_CA_LOGICAL_NAME:
            continue
        spec = item.get("spec")
        if not isinstance(spec, dict):
            continue
        certificates = spec.get("certificates")
        if isinstance(certificates, list) and len(certificates) > threshold:
            item["name"] = PROXY_CA_LOGICAL_NAME
            item["spec"] = {**spec, "certificates": [deepcopy(_SYNTHETIC_PROXY_CA)]}
            log_debug("system_trust_pruned", source="live", path=None, certificates=len(certificates))
            break
    return pruned


def artifact_filename(topology: str, architecture: str, platform: str, network: str) -> str:
    """Name the artifact for one cluster profile.

    Examples
    --------
    >>> artifact_filename("ha", "amd64", "aws", "ovn")
    'raw-tls-artifacts-ha-amd64-aws-ovn.json'
    """

    return f"raw-tls-artifacts-{topology}-{architecture}-{platform}-{network}.json"


def write_artifact(document: Mapping[str, Any], directory: str | os.PathLike[str], filename: str) -> Path:
    """Write *document* as indented JSON to ``<directory>/rawTLSInfo/<filename>``."""

    target_dir = Path(directory) / ARTIFACT_SUBDIR
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / filename
    target.write_text(json.dumps(document, indent=2), encoding="utf-8")
    log_info("artifact_written", source="live", path=str(target))
    return target


def _indent(text: str) -> str:
    return "\n".join(f"    {line}" for line in text.splitlines())
