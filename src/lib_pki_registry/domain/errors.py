"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by decoders, sources, the merge
builder, and consuming applications. The hierarchy lives in the domain layer so
outer layers may depend on it without the domain depending on them.

Contents
--------
* :class:`RegistryError` – umbrella base class for all registry issues.
* :class:`DecodeError` – a snapshot document is not well-formed.
* :class:`ConflictError` – two snapshots disagree about one location.
* :class:`LookupMiss` – a location has no counterpart in a registry.

System Role
-----------
Decoders raise :class:`DecodeError`, :class:`lib_pki_registry.application.merge.RegistryBuilder`
raises :class:`ConflictError`, and registry lookups raise :class:`LookupMiss`.
Callers catch :class:`RegistryError` to handle all library failures uniformly.
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base type for all exceptions emitted by ``lib_pki_registry``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class DecodeError(RegistryError):
    """Raised when a snapshot buffer cannot be decoded into records.

    Why
    ----
    Distinguish malformed documents from merge conflicts so the embedded loader
    can skip the former while still aborting on the latter.

    Attributes
    ----------
    origin:
        Name of the source the buffer came from, when known.
    """

    def __init__(self, message: str, *, origin: str | None = None) -> None:
        super().__init__(message)
        self.origin = origin


class ConflictError(RegistryError):
    """Raised when one location is observed with two different metadata values.

    Why
    ----
    A conflict means either the collector produced inconsistent data or two
    unrelated resources were mapped to the same location. Silently picking one
    side would make the registry order-dependent.

    Attributes
    ----------
    kind:
        ``"secret"`` or ``"configmap"``.
    location:
        The contested location (namespace, name).
    existing / incoming:
        The value already registered and the value that disagreed with it.
    existing_origin / incoming_origin:
        Sources that supplied each value, when known.

    Examples
    --------
    >>> from lib_pki_registry.domain.model import SecretLocation
    >>> err = ConflictError("secret", SecretLocation("ns1", "secret-a"), {"issuer": "X"}, {"issuer": "Y"})
    >>> str(err)
    'conflicting metadata for secret ns1/secret-a'
    """

    def __init__(
        self,
        kind: str,
        location: Any,
        existing: Any,
        incoming: Any,
        *,
        existing_origin: str | None = None,
        incoming_origin: str | None = None,
    ) -> None:
        message = f"conflicting metadata for {kind} {location}"
        if existing_origin or incoming_origin:
            message += f" (seen in {existing_origin or '<unknown>'} and {incoming_origin or '<unknown>'})"
        super().__init__(message)
        self.kind = kind
        self.location = location
        self.existing = existing
        self.incoming = incoming
        self.existing_origin = existing_origin
        self.incoming_origin = incoming_origin


class LookupMiss(RegistryError, LookupError):
    """A location has no record in the registry being searched.

    Downstream comparison treats this as an *unregistered artifact*, not as a
    fatal condition.
    """

    def __init__(self, kind: str, location: Any) -> None:
        super().__init__(f"no {kind} registered at {location}")
        self.kind = kind
        self.location = location
