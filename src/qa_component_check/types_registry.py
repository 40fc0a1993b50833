from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterator, Mapping, Optional, Union

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Unset:
    """The registry says nothing about restricted use."""


@dataclass(frozen=True)
class Cleared:
    """Restricted use explicitly lifted (``"0"`` in the registry)."""


@dataclass(frozen=True)
class RestrictedTo:
    """Restricted to the listed project ids; an empty list blocks every project."""

    project_ids: FrozenSet[str] = frozenset()

    def allows(self, project_id: str | None) -> bool:
        return bool(project_id) and project_id in self.project_ids


RestrictedUse = Union[Unset, Cleared, RestrictedTo]


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


def parse_csv(value: Any) -> frozenset[str]:
    if not value:
        return frozenset()
    if isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        items = str(value).split(",")
    return frozenset(str(item).strip() for item in items if str(item).strip())


def parse_restricted_use(value: Any) -> RestrictedUse:
    if value is None:
        return Unset()
    raw = str(value).strip()
    if raw == "0":
        return Cleared()
    return RestrictedTo(parse_csv(raw))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class RegistryEntry:
    name: str
    machine_name: Optional[str] = None
    mandatory: bool = False
    mandatory_since: Optional[str] = None
    usage: str = ""
    restricted_use: RestrictedUse = field(default_factory=Unset)
    status: str = ""
    allowed_project_types: frozenset[str] = frozenset()
    allowed_profiles: frozenset[str] = frozenset()
    allow_list_versions: Optional[str] = None
    deny_list_versions: Optional[str] = None
    secure_versions: Optional[str] = None
    dev_component: bool = False

    @property
    def is_recommended(self) -> bool:
        return self.usage == "recommended"

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "RegistryEntry":
        """Normalize one ``package-reviews`` record from the QA website."""

        return cls(
            name=str(raw.get("name", "")).strip(),
            machine_name=_optional_text(raw.get("machine_name")),
            mandatory=parse_flag(raw.get("mandatory")),
            mandatory_since=_optional_text(raw.get("mandatory_date")),
            usage=str(raw.get("usage") or "").strip().lower(),
            restricted_use=parse_restricted_use(raw.get("restricted_use")),
            status=str(raw.get("status") or "restricted").strip(),
            allowed_project_types=parse_csv(raw.get("allowed_project_types")),
            allowed_profiles=parse_csv(raw.get("allowed_profiles")),
            allow_list_versions=_optional_text(raw.get("whitelist")),
            deny_list_versions=_optional_text(raw.get("blacklist")),
            secure_versions=_optional_text(raw.get("secure")),
            dev_component=parse_flag(raw.get("dev_component")),
        )


@dataclass
class RegistrySnapshot:
    entries: dict[str, RegistryEntry] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, name: str) -> RegistryEntry | None:
        return self.entries.get(name)

    @property
    def mandatory(self) -> list[RegistryEntry]:
        return [entry for entry in self if entry.mandatory]

    @property
    def recommended(self) -> list[RegistryEntry]:
        return [entry for entry in self if entry.is_recommended]

    @property
    def dev_components(self) -> list[RegistryEntry]:
        return [entry for entry in self if entry.dev_component]
