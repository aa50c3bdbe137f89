"""CLI adapter for ``lib_pki_registry`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose registry aggregation and inventory checks via a command line interface
so CI jobs and operators can build baselines, inspect them, and compare live
inventories without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_merge` – strictly merges a directory of snapshots.
* :func:`cli_baseline` – prints the packaged baseline registry.
* :func:`cli_check` – compares a live snapshot against the baseline.
* :func:`cli_artifact` – prunes and writes a live snapshot artifact.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root and never
reaches into adapter implementation details directly. ``lib_cli_exit_tools``
centralises the exit code strategy so decode errors and conflicts surface as
non-zero exits.
"""

from __future__ import annotations

import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import load_settings
from .application.report import artifact_filename, compare_inventory, prune_system_trust, write_artifact
from .core import load_document, load_registry_from_directory, load_registry_from_embedded, load_snapshot

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_pki_registry"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Aggregate and check TLS certificate inventories",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_pki_registry version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo("lib_pki_registry (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.11')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("merge", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument(
    "directory",
    type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True),
)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_merge(directory: Path, indent: Optional[int]) -> None:
    """Merge every snapshot below DIRECTORY and print the registry as JSON.

    Any malformed file or conflicting location aborts the run.
    """

    click.echo(load_registry_from_directory(directory).to_json(indent=indent))


@cli.command("baseline", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_baseline(indent: Optional[int]) -> None:
    """Print the packaged baseline registry as JSON."""

    click.echo(load_registry_from_embedded().to_json(indent=indent))


@cli.command("check", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument(
    "snapshot",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.option(
    "--baseline-dir",
    type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True),
    default=None,
    help="Use this directory (leniently) instead of the packaged baseline",
)
@click.option(
    "--strict/--no-strict",
    default=False,
    show_default=True,
    help="Exit with status 1 when mismatches or unregistered artifacts are found",
)
@click.pass_context
def cli_check(ctx: click.Context, snapshot: Path, baseline_dir: Optional[Path], strict: bool) -> None:
    """Compare the live SNAPSHOT against the baseline and print every finding."""

    live = load_snapshot(snapshot)
    baseline = load_registry_from_embedded(baseline_dir)
    report = compare_inventory(live, baseline)
    if report.is_clean:
        click.echo("All TLS artifacts are registered.")
        return
    click.echo(report.render())
    if strict:
        ctx.exit(1)


@cli.command("artifact", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument(
    "snapshot",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.option("--topology", required=True, help="Cluster topology (e.g. ha, single)")
@click.option("--architecture", required=True, help="CPU architecture (e.g. amd64)")
@click.option("--platform", required=True, help="Infrastructure platform (e.g. aws)")
@click.option("--network", required=True, help="Network plugin (e.g. ovn)")
@click.option(
    "--artifact-dir",
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True),
    default=None,
    help="Artifact root directory (defaults to LIB_PKI_REGISTRY_ARTIFACT_DIR or '.')",
)
@click.option("--threshold", type=int, default=None, help="Collapse proxy-ca bundles above this many certificates")
def cli_artifact(
    snapshot: Path,
    topology: str,
    architecture: str,
    platform: str,
    network: str,
    artifact_dir: Optional[Path],
    threshold: Optional[int],
) -> None:
    """Prune SNAPSHOT and write it as the artifact for one cluster profile."""

    settings = load_settings()
    document = load_document(snapshot)
    pruned = prune_system_trust(document, threshold=threshold if threshold is not None else settings.prune_threshold)
    target = write_artifact(
        pruned,
        artifact_dir if artifact_dir is not None else settings.artifact_dir,
        artifact_filename(topology, architecture, platform, network),
    )
    click.echo(str(target))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
