"""Trace-aware logging for snapshot loading, merging and inventory checks.

Every record goes to the ``lib_pki_registry`` logger with a ``context``
mapping attached (``record.context``). That mapping always carries the
``trace_id`` of the registry run in progress, plus the ``source`` and ``path``
of the snapshot concerned where one applies. The logger only has a
``NullHandler``, so nothing is printed unless the host application configures
logging.

Events by stage:

* sources: ``source_enumerated``, ``snapshot_read``, ``snapshot_skipped``
* decoding: ``snapshot_decoded``, ``snapshot_invalid``
* merging: ``snapshot_merged``, ``registry_conflict``, ``registry_built``
* checks and artifacts: ``inventory_compared``, ``system_trust_pruned``,
  ``artifact_written``
* settings: ``env_variables_loaded``, ``baseline_override``

``load_registry`` binds a fresh trace id per run and clears it when the run
ends.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_pki_registry_trace_id", default=None)
"""Current trace identifier propagated through logging helpers."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_pki_registry")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(
    source: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for snapshot lifecycle events.

    Inputs
        source: Name of the snapshot source (``"directory"``, ``"embedded"``).
        path: Origin of the snapshot, if available.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('embedded', None, {'records': 3})
    {'source': 'embedded', 'path': None, 'records': 3}
    """

    event: dict[str, Any] = {"source": source, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
