from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List

from .errors import MalformedManifest
from .types import REQUIRE, REQUIRE_DEV, ManifestSnapshot, PackageRecord

# Lock entries that trip each evaluation failure type, used by --test-command.
TEST_PACKAGES: list[dict[str, Any]] = [
    {"type": "drupal-module", "version": "1.0", "name": "drupal/unreviewed"},
    {"type": "drupal-module", "version": "1.0", "name": "drupal/devel"},
    {"type": "drupal-module", "version": "1.0-alpha1", "name": "drupal/xmlsitemap"},
    # Allowed for a single project only.
    {"type": "drupal-module", "version": "1.0", "name": "drupal/active_facet_pills"},
    # Dev branch whose release tag meets the version constraints.
    {
        "type": "drupal-module",
        "version": "dev-1.x",
        "name": "drupal/views_bulk_operations",
        "extra": {"drupal": {"version": "8.x-3.4+15-dev"}},
    },
]


def _extra_version(details: dict) -> str | None:
    extra = details.get("extra") or {}
    drupal = extra.get("drupal") if isinstance(extra, dict) else None
    if isinstance(drupal, dict) and drupal.get("version"):
        return str(drupal["version"])
    return None


def parse_package(details: dict, section: str = REQUIRE) -> PackageRecord:
    name = details.get("name")
    if not name:
        raise MalformedManifest("Lock file entry without a package name")
    return PackageRecord(
        name=str(name),
        version=str(details.get("version") or ""),
        type=str(details.get("type") or "library"),
        section=section,
        extra_version=_extra_version(details),
    )


def build_manifest(
    packages: Iterable[dict], dev_packages: Iterable[dict] | None = None
) -> ManifestSnapshot:
    records: List[PackageRecord] = []
    seen: set[str] = set()
    for section, block in ((REQUIRE, packages), (REQUIRE_DEV, dev_packages or [])):
        for details in block:
            record = parse_package(details, section)
            if record.name in seen:
                raise MalformedManifest(f"Package {record.name} is listed more than once in the lock file")
            seen.add(record.name)
            records.append(record)
    return ManifestSnapshot(records)


def load_lock_data(path: Path) -> dict:
    if not path.exists():
        raise MalformedManifest(f"No packages found in the {path.name} file.")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise MalformedManifest(f"Unable to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
        raise MalformedManifest(f"No packages found in the {path.name} file.")
    return data


def scan_composer_lock(path: Path, test_packages: bool = False) -> ManifestSnapshot:
    """Read ``composer.lock`` into a manifest snapshot.

    ``packages`` map to the require section and ``packages-dev`` to
    require-dev. A lock file without a package list is fatal.
    """

    data = load_lock_data(path)
    packages = data["packages"]
    dev_packages = data.get("packages-dev") or []
    if test_packages:
        packages = TEST_PACKAGES
        # Test packages take precedence over require-dev entries of the same name.
        replaced = {details["name"] for details in TEST_PACKAGES}
        dev_packages = [details for details in dev_packages if details.get("name") not in replaced]
    return build_manifest(packages, dev_packages)
