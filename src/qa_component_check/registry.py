from __future__ import annotations

import logging
from typing import Any, Iterable

from .types import RegistryEntry, RegistrySnapshot

logger = logging.getLogger(__name__)


def build_registry(raw_entries: Iterable[Any] | dict | None) -> RegistrySnapshot:
    """Normalize the ``package-reviews`` payload into a snapshot keyed by name.

    The endpoint returns a list of records; a mapping of records is accepted
    as well. Records without a name are dropped, and a later record with the
    same name replaces an earlier one.
    """

    if not raw_entries:
        return RegistrySnapshot()
    if isinstance(raw_entries, dict):
        raw_entries = raw_entries.values()

    entries: dict[str, RegistryEntry] = {}
    for raw in raw_entries:
        if not isinstance(raw, dict):
            logger.warning("Ignoring registry record of type %s", type(raw).__name__)
            continue
        entry = RegistryEntry.from_raw(raw)
        if not entry.name:
            continue
        entries[entry.name] = entry
    return RegistrySnapshot(entries)
