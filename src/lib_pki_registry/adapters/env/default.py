"""Environment variable adapter.

Purpose
-------
Translate process environment variables into the frozen
:class:`RegistrySettings` consumed by the composition root and the CLI.

Key behaviours
--------------
* Enforces the prefix returned by :func:`default_env_prefix` so only relevant
  keys are captured (``LIB_PKI_REGISTRY_*``).
* Performs light type coercion for common scalar types (bools, ints, floats,
  ``null``/``none``).
* Emits structured logging via :mod:`lib_pki_registry.observability` to aid
  troubleshooting.

Recognised variables
--------------------
``<PREFIX>_BASELINE_DIR``
    Directory that replaces the packaged baseline for the lenient loader.
``<PREFIX>_PRUNE_THRESHOLD``
    Number of proxy-ca certificates above which the bundle is collapsed.
``<PREFIX>_ARTIFACT_DIR``
    Default directory for written inventory artifacts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ...observability import log_debug

DEFAULT_SLUG = "lib-pki-registry"
DEFAULT_PRUNE_THRESHOLD = 10


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-pki-registry')
    'LIB_PKI_REGISTRY'
    """

    return slug.replace("-", "_").upper()


@dataclass(frozen=True, slots=True)
class RegistrySettings:
    """Runtime knobs resolved from the environment."""

    baseline_dir: Path | None = None
    prune_threshold: int = DEFAULT_PRUNE_THRESHOLD
    artifact_dir: Path = Path(".")


class DefaultEnvLoader:
    """Load environment variables that belong to the registry namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def load(self, prefix: str) -> dict[str, object]:
        """Return lower-cased keys for variables carrying *prefix*, values coerced.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={'DEMO_PRUNE_THRESHOLD': '5', 'OTHER': 'x'})
        >>> loader.load('DEMO')
        {'prune_threshold': 5}
        """

        collected = {key: _coerce(value) for key, value in self._raw(prefix).items()}
        log_debug("env_variables_loaded", source="env", path=None, keys=sorted(collected.keys()))
        return collected

    def _raw(self, prefix: str) -> dict[str, str]:
        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, str] = {}
        for key, value in self._environ.items():
            if prefix and not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :] if prefix else key
            if not stripped:
                continue
            collected[stripped.lower()] = value
        return collected

    def settings(self, slug: str = DEFAULT_SLUG) -> RegistrySettings:
        """Resolve :class:`RegistrySettings` from the variables under *slug*'s prefix.

        Examples
        --------
        >>> DefaultEnvLoader(environ={}).settings().prune_threshold
        10
        >>> env = {'LIB_PKI_REGISTRY_BASELINE_DIR': '/srv/baseline'}
        >>> str(DefaultEnvLoader(environ=env).settings().baseline_dir)
        '/srv/baseline'
        """

        prefix = default_env_prefix(slug)
        raw = self._raw(prefix)
        log_debug("env_variables_loaded", source="env", path=None, keys=sorted(raw.keys()))
        # Paths are taken verbatim; only the threshold is coerced.
        baseline_dir = raw.get("baseline_dir")
        threshold = _coerce(raw["prune_threshold"]) if "prune_threshold" in raw else DEFAULT_PRUNE_THRESHOLD
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ValueError(f"{prefix}_PRUNE_THRESHOLD must be an integer, got {threshold!r}")
        artifact_dir = raw.get("artifact_dir")
        return RegistrySettings(
            baseline_dir=Path(baseline_dir) if baseline_dir else None,
            prune_threshold=threshold,
            artifact_dir=Path(artifact_dir) if artifact_dir else Path("."),
        )


def load_settings(environ: Mapping[str, str] | None = None) -> RegistrySettings:
    """Shortcut for ``DefaultEnvLoader(environ=environ).settings()``."""

    return DefaultEnvLoader(environ=environ).settings()


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('3.5'), _coerce('hello')
    (True, 10, 3.5, 'hello')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        return float(value)
    except ValueError:
        return value
