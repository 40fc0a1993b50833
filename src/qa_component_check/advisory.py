"""Cross-check insecure flags against the drupal.org release history feed.

Local advisory tools occasionally flag a version that upstream never marked
as insecure. Before failing a package, its release entry is looked up in
the feed and its classification terms are inspected.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional

import requests  # type: ignore[import-untyped]

from .constraints import normalize_version, parse_version
from .qa_client import TIMEOUT

logger = logging.getLogger(__name__)

RELEASE_HISTORY_URL = "https://updates.drupal.org/release-history"
CORE_PACKAGE = "drupal/core"
INSECURE_TERM = "insecure"


@dataclass
class ReleaseTerms:
    name: str
    version: Optional[str] = None
    terms: frozenset[str] = field(default_factory=frozenset)
    date: Optional[str] = None
    matched: bool = True

    @property
    def confirms_insecure(self) -> bool:
        return INSECURE_TERM in self.terms


def release_history_url(package_name: str, core_branch: str) -> str:
    if package_name == CORE_PACKAGE:
        return f"{RELEASE_HISTORY_URL}/drupal/current"
    project = package_name.split("/", 1)[-1]
    return f"{RELEASE_HISTORY_URL}/{project}/{core_branch}"


def _same_version(candidate: str, installed: str) -> bool:
    left, right = parse_version(candidate), parse_version(installed)
    if left is not None and right is not None:
        return left == right
    return normalize_version(candidate) == normalize_version(installed)


def parse_release_history(
    document: str, package_name: str, installed_version: str, core_branch: str
) -> ReleaseTerms:
    """Extract the terms of the release matching ``installed_version``.

    Raises :class:`xml.etree.ElementTree.ParseError` on malformed XML.
    """

    project = package_name.split("/", 1)[-1]
    root = ET.fromstring(document)
    terms: set[str] = set()
    found: ReleaseTerms | None = None

    for release in root.iter("release"):
        raw_version = (release.findtext("version") or "").strip()
        candidate = raw_version.replace(f"{core_branch}-", "")
        if not candidate or not _same_version(candidate, installed_version):
            continue
        for value in release.iterfind("terms/term/value"):
            if value.text:
                terms.add(value.text.strip().lower())
        found = ReleaseTerms(
            name=project,
            version=raw_version,
            date=(release.findtext("date") or "").strip() or None,
        )

    if found is None:
        return ReleaseTerms(name=project, matched=False)
    found.terms = frozenset(terms)
    return found


def confirm_insecure(
    package_name: str,
    installed_version: str,
    core_branch: str = "8.x",
    http: Optional[requests.Session] = None,
    timeout: tuple[int, int] = TIMEOUT,
) -> ReleaseTerms | None:
    """Return the release terms for the installed version, or None if unavailable."""

    url = release_history_url(package_name, core_branch)
    client = http or requests
    try:
        response = client.get(url, headers={"Accept": "application/xml"}, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("No release history found for %s: %s", package_name, exc)
        return None
    if response.status_code != 200:
        logger.warning("No release history found for %s (HTTP %s)", package_name, response.status_code)
        return None
    try:
        return parse_release_history(response.text, package_name, installed_version, core_branch)
    except ET.ParseError as exc:
        logger.warning("Release history for %s is not valid XML: %s", package_name, exc)
        return None
