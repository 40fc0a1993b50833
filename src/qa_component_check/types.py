from __future__ import annotations

"""Shared data structures for the component check.

The definitions live in domain-focused modules (lock file, registry,
verdicts); this module re-exports them so callers have one stable import
path.
"""

from .types_manifest import (
    CUSTOM_TYPES,
    REQUIRE,
    REQUIRE_DEV,
    ManifestSnapshot,
    PackageRecord,
)
from .types_registry import (
    Cleared,
    RegistryEntry,
    RegistrySnapshot,
    RestrictedTo,
    RestrictedUse,
    Unset,
)
from .types_verdict import CATEGORY_ORDER, AggregateVerdict, CheckVerdict

__all__ = [
    "AggregateVerdict",
    "CATEGORY_ORDER",
    "CUSTOM_TYPES",
    "CheckVerdict",
    "Cleared",
    "ManifestSnapshot",
    "PackageRecord",
    "REQUIRE",
    "REQUIRE_DEV",
    "RegistryEntry",
    "RegistrySnapshot",
    "RestrictedTo",
    "RestrictedUse",
    "Unset",
]
