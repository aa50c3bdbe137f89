"""End-to-end CLI coverage for the public commands exposed by lib-pki-registry."""

from __future__ import annotations

import json
from pathlib import Path

import lib_cli_exit_tools
import pytest
from click.testing import CliRunner

from lib_pki_registry import cli
from lib_pki_registry.domain.errors import ConflictError, DecodeError
from tests.support import bundle, cert, snapshot_document, write_snapshot


@pytest.fixture(autouse=True)
def _no_baseline_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LIB_PKI_REGISTRY_BASELINE_DIR", raising=False)
    monkeypatch.delenv("LIB_PKI_REGISTRY_PRUNE_THRESHOLD", raising=False)
    monkeypatch.delenv("LIB_PKI_REGISTRY_ARTIFACT_DIR", raising=False)


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def test_cli_merge_outputs_sorted_registry(tmp_path: Path) -> None:
    write_snapshot(tmp_path, "a.json", certs=[cert("b", "z")])
    write_snapshot(tmp_path, "b.json", certs=[cert("a", "x", issuer="X")], bundles=[bundle("a", "ca")])

    result = _runner().invoke(cli.cli, ["merge", str(tmp_path), "--indent", "2"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert [item["secretLocation"]["name"] for item in payload["certKeyPairs"]] == ["x", "z"]
    assert payload["certificateAuthorityBundles"][0]["configMapLocation"] == {"namespace": "a", "name": "ca"}


def test_cli_merge_rejects_malformed_file(tmp_path: Path) -> None:
    (tmp_path / "broken.json").write_text("[", encoding="utf-8")

    result = _runner().invoke(cli.cli, ["merge", str(tmp_path)])

    assert result.exit_code != 0
    assert isinstance(result.exception, DecodeError)


def test_cli_merge_rejects_conflict(tmp_path: Path) -> None:
    write_snapshot(tmp_path, "a.json", certs=[cert("ns1", "secret-a", issuer="X")])
    write_snapshot(tmp_path, "b.json", certs=[cert("ns1", "secret-a", issuer="Y")])

    result = _runner().invoke(cli.cli, ["merge", str(tmp_path)])

    assert result.exit_code != 0
    assert isinstance(result.exception, ConflictError)


def test_cli_baseline_prints_packaged_registry() -> None:
    result = _runner().invoke(cli.cli, ["baseline"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    names = [(item["secretLocation"]["namespace"], item["secretLocation"]["name"]) for item in payload["certKeyPairs"]]
    assert names == sorted(names)
    assert ("openshift-etcd", "etcd-signer") in names


def test_cli_check_reports_unregistered_artifacts(tmp_path: Path) -> None:
    baseline = tmp_path / "baseline"
    write_snapshot(baseline, "profile.json", certs=[cert("ns", "known", issuer="X")])
    live = write_snapshot(tmp_path, "live.json", certs=[cert("ns", "known", issuer="X"), cert("ns", "new")])
    command = ["check", str(live), "--baseline-dir", str(baseline)]

    lenient = _runner().invoke(cli.cli, command)
    strict = _runner().invoke(cli.cli, command + ["--strict"])

    assert lenient.exit_code == 0
    assert "Unregistered TLS artifact: --namespace=ns, secret/new" in lenient.output
    assert strict.exit_code == 1


def test_cli_check_clean_inventory(tmp_path: Path) -> None:
    baseline = tmp_path / "baseline"
    write_snapshot(baseline, "profile.json", certs=[cert("ns", "known", issuer="X")])
    live = write_snapshot(tmp_path, "live.json", certs=[cert("ns", "known", issuer="X")])

    result = _runner().invoke(cli.cli, ["check", str(live), "--baseline-dir", str(baseline), "--strict"])

    assert result.exit_code == 0
    assert "All TLS artifacts are registered." in result.output


def test_cli_artifact_prunes_and_writes(tmp_path: Path) -> None:
    document = snapshot_document(certs=[cert("ns", "a")])
    document["certificateAuthorityBundles"] = {
        "items": [{"logicalName": "proxy-ca", "name": "trusted-ca-bundle", "spec": {"certificates": [{}, {}, {}]}}]
    }
    live = tmp_path / "live.json"
    live.write_text(json.dumps(document), encoding="utf-8")

    result = _runner().invoke(
        cli.cli,
        [
            "artifact",
            str(live),
            "--topology",
            "ha",
            "--architecture",
            "amd64",
            "--platform",
            "aws",
            "--network",
            "ovn",
            "--artifact-dir",
            str(tmp_path / "artifacts"),
            "--threshold",
            "2",
        ],
    )

    assert result.exit_code == 0
    target = Path(result.output.strip())
    assert target == tmp_path / "artifacts" / "rawTLSInfo" / "raw-tls-artifacts-ha-amd64-aws-ovn.json"
    written = json.loads(target.read_text(encoding="utf-8"))
    assert written["certificateAuthorityBundles"]["items"][0]["name"] == "proxy-ca"
    assert len(written["certificateAuthorityBundles"]["items"][0]["spec"]["certificates"]) == 1


def test_cli_info_handles_missing_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag(tmp_path: Path) -> None:
    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    write_snapshot(tmp_path, "a.json", certs=[cert("ns", "a")])

    exit_code = cli.main(["--traceback", "merge", str(tmp_path)], restore_traceback=True)

    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_main_returns_non_zero_on_decode_error(tmp_path: Path) -> None:
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")

    assert cli.main(["merge", str(tmp_path)]) != 0
