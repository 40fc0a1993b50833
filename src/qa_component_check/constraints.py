"""Composer-style version constraint matching on top of ``packaging``.

Registry data carries constraints written for Composer (``^1.2``,
``~3.0``, ``8.x-1.*``, ``>=1.0 <2.0 || ^3``). Each OR branch is translated
into a :class:`packaging.specifiers.SpecifierSet`; a version satisfies the
constraint when any branch contains it.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from .errors import MalformedConstraint

CORE_PREFIX = re.compile(r"^\d+\.x-")
STABILITY_FLAG = re.compile(r"@[A-Za-z]+$")
OR_SPLIT = re.compile(r"\s*\|\|?\s*")
AND_SPLIT = re.compile(r"\s*,\s*|\s+")
HYPHEN_RANGE = re.compile(r"^(?P<low>\S+)\s+-\s+(?P<high>\S+)$")
OPERATOR_GAP = re.compile(r"(>=|<=|!=|==|<>|>|<|=|\^|~)\s+")
ATOM = re.compile(r"^(?P<op>>=|<=|!=|==|<>|>|<|=|\^|~)?(?P<version>[0-9A-Za-z.*+\-_]+)$")
WILDCARD = re.compile(r"^(?P<base>(?:\d+\.)*)(?:\*|x|X)$")


def normalize_version(version: str | None) -> str:
    """Drop a leading ``v``, a Drupal core prefix and stability flags."""

    if not version:
        return ""
    cleaned = STABILITY_FLAG.sub("", version.strip())
    cleaned = CORE_PREFIX.sub("", cleaned)
    if cleaned[:1] in {"v", "V"} and cleaned[1:2].isdigit():
        cleaned = cleaned[1:]
    return cleaned


def parse_version(version: str | None) -> Optional[Version]:
    """Return a comparable version, or None for branch aliases like ``dev-1.x``."""

    cleaned = normalize_version(version)
    if not cleaned:
        return None
    try:
        return Version(cleaned)
    except InvalidVersion:
        return None


def _bound(raw: str, constraint: str) -> Version:
    parsed = parse_version(raw)
    if parsed is None:
        raise MalformedConstraint(constraint, f"'{raw}' is not a version")
    return parsed


def _release(raw: str, constraint: str) -> tuple[int, ...]:
    return _bound(raw, constraint).release


def _public(raw: str, constraint: str) -> str:
    # Local segments are only allowed on == and != specifiers.
    return _bound(raw, constraint).public


def _join(parts: tuple[int, ...] | list[int]) -> str:
    return ".".join(str(part) for part in parts)


def _caret(raw: str, constraint: str) -> list[str]:
    release = _release(raw, constraint)
    upper: list[int] = []
    for index, part in enumerate(release):
        if part != 0 or index == len(release) - 1:
            upper = list(release[:index]) + [part + 1]
            break
    return [f">={_public(raw, constraint)}", f"<{_join(upper)}"]


def _tilde(raw: str, constraint: str) -> list[str]:
    release = _release(raw, constraint)
    if len(release) == 1:
        upper = [release[0] + 1]
    else:
        upper = list(release[:-2]) + [release[-2] + 1]
    return [f">={_public(raw, constraint)}", f"<{_join(upper)}"]


def _wildcard(base: str, operator: str, constraint: str) -> list[str]:
    base = base.rstrip(".")
    if not base:
        if operator in {"", "=", "=="}:
            return []
        raise MalformedConstraint(constraint, "wildcard cannot be combined with an operator")
    if operator in {"", "=", "=="}:
        return [f"=={base}.*"]
    if operator in {"!=", "<>"}:
        return [f"!={base}.*"]
    return [f"{operator}{base}"]


def _hyphen(low: str, high: str, constraint: str) -> list[str]:
    high_release = _release(high, constraint)
    if len(high_release) < 3:
        upper = list(high_release[:-1]) + [high_release[-1] + 1]
        return [f">={_public(low, constraint)}", f"<{_join(upper)}"]
    return [f">={_public(low, constraint)}", f"<={_public(high, constraint)}"]


def _atom(token: str, constraint: str) -> list[str]:
    match = ATOM.match(token)
    if not match:
        raise MalformedConstraint(constraint, f"unexpected token '{token}'")
    operator = match.group("op") or ""
    raw = CORE_PREFIX.sub("", match.group("version"))

    wildcard = WILDCARD.match(raw)
    if wildcard:
        return _wildcard(wildcard.group("base"), operator, constraint)
    if operator == "^":
        return _caret(raw, constraint)
    if operator == "~":
        return _tilde(raw, constraint)

    if operator in {"", "=", "=="}:
        return [f"=={_bound(raw, constraint)}"]
    if operator in {"!=", "<>"}:
        return [f"!={_bound(raw, constraint)}"]
    return [f"{operator}{_public(raw, constraint)}"]


def _branch(group: str, constraint: str) -> SpecifierSet:
    group = OPERATOR_GAP.sub(r"\1", group.strip())
    if not group:
        raise MalformedConstraint(constraint, "empty constraint group")

    hyphen = HYPHEN_RANGE.match(group)
    if hyphen:
        specifiers = _hyphen(hyphen.group("low"), hyphen.group("high"), constraint)
    else:
        specifiers = []
        for token in AND_SPLIT.split(group):
            if token:
                specifiers.extend(_atom(STABILITY_FLAG.sub("", token), constraint))

    try:
        return SpecifierSet(",".join(specifiers))
    except InvalidSpecifier as exc:
        raise MalformedConstraint(constraint, str(exc)) from exc


@lru_cache(maxsize=256)
def parse_constraint(constraint: str) -> tuple[SpecifierSet, ...]:
    """Translate a Composer constraint into OR-ed specifier sets.

    Raises :class:`MalformedConstraint` when the expression cannot be parsed.
    """

    if constraint is None or not str(constraint).strip():
        raise MalformedConstraint(str(constraint or ""), "empty constraint")
    return tuple(_branch(group, constraint) for group in OR_SPLIT.split(str(constraint).strip()))


def satisfies(version: str | None, constraint: str) -> bool:
    """Return True if ``version`` falls inside ``constraint``.

    Versions that are not numeric (dev branches) never satisfy a range.
    """

    branches = parse_constraint(constraint)
    parsed = parse_version(version)
    if parsed is None:
        return False
    return any(branch.contains(parsed, prereleases=True) for branch in branches)
