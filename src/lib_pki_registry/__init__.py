"""Aggregate TLS certificate inventories into a sorted, conflict-free registry.

The public surface re-exports the composition root loaders, the domain value
objects, the error taxonomy, and the logging hooks so ``import
lib_pki_registry`` is enough for typical consumers.
"""

from __future__ import annotations

from .application.merge import RegistryBuilder, merge_snapshots
from .application.report import InventoryReport, compare_inventory, prune_system_trust
from .core import (
    load_document,
    load_registry,
    load_registry_from_directory,
    load_registry_from_embedded,
    load_snapshot,
)
from .domain.errors import ConflictError, DecodeError, LookupMiss, RegistryError
from .domain.model import (
    CABundleInfo,
    CABundleRecord,
    CertKeyInfo,
    CertKeyPairRecord,
    ConfigMapLocation,
    PKIRegistry,
    PKISnapshot,
    SecretLocation,
)
from .observability import bind_trace_id, get_logger

__all__ = [
    "CABundleInfo",
    "CABundleRecord",
    "CertKeyInfo",
    "CertKeyPairRecord",
    "ConfigMapLocation",
    "ConflictError",
    "DecodeError",
    "InventoryReport",
    "LookupMiss",
    "PKIRegistry",
    "PKISnapshot",
    "RegistryBuilder",
    "RegistryError",
    "SecretLocation",
    "bind_trace_id",
    "compare_inventory",
    "get_logger",
    "load_document",
    "load_registry",
    "load_registry_from_directory",
    "load_registry_from_embedded",
    "load_snapshot",
    "merge_snapshots",
    "prune_system_trust",
]
