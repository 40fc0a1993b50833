from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

REQUIRE = "require"
REQUIRE_DEV = "require-dev"

CUSTOM_TYPES = {
    "drupal-custom-module",
    "drupal-custom-theme",
    "drupal-custom-profile",
}

# Drupal core's release tags carry the core compatibility prefix.
PLATFORM_VERSION_PREFIX = "8.x-"


@dataclass
class PackageRecord:
    name: str
    version: str
    type: str = "library"
    section: str = REQUIRE
    extra_version: Optional[str] = None

    @property
    def vendor(self) -> str:
        return self.name.split("/", 1)[0]

    @property
    def project(self) -> str:
        return self.name.split("/", 1)[-1]

    @property
    def is_custom(self) -> bool:
        return self.type in CUSTOM_TYPES

    def effective_version(self, invalid_tokens: set[str] | frozenset[str] = frozenset()) -> str:
        """Return the version to evaluate against registry constraints.

        Packages installed from a branch expose the upstream release tag in
        ``extra.drupal.version`` (``8.x-3.4+15-dev``). The core prefix and the
        build suffix are dropped (``3.4``) unless the result is a known invalid
        token, in which case the raw lock version is used.
        """

        if not self.extra_version:
            return self.version
        stripped = self.extra_version.replace(PLATFORM_VERSION_PREFIX, "").split("+", 1)[0]
        if stripped in invalid_tokens:
            return self.version
        return stripped


@dataclass
class ManifestSnapshot:
    packages: List[PackageRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[PackageRecord]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    @property
    def names(self) -> list[str]:
        return [package.name for package in self.packages]

    def get(self, name: str, section: str | None = None) -> PackageRecord | None:
        for package in self.packages:
            if package.name == name and (section is None or package.section == section):
                return package
        return None

    def in_section(self, section: str) -> list[PackageRecord]:
        return [package for package in self.packages if package.section == section]
