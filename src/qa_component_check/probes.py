"""Thin wrappers around the command-line tools the check reads data from.

Each probe runs one command, parses its JSON output and returns plain
data. A missing binary, a non-JSON answer or empty output yields ``None``
(or an empty container) so the calling check can degrade instead of crash.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)


def bin_path(name: str, bin_dir: Path | str = "vendor/bin") -> str:
    candidate = Path(bin_dir) / name
    return str(candidate) if candidate.exists() else name


def run_json(command: list[str]) -> Any | None:
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        logger.warning("Unable to run %s: %s", command[0], exc)
        return None
    output = result.stdout.strip()
    if not output or output == "[]":
        return None
    try:
        return json.loads(output)
    except json.JSONDecodeError as exc:
        logger.warning("%s did not return JSON: %s", " ".join(command), exc)
        return None


def enabled_from_drush(drush: str) -> Optional[list[str]]:
    """Return enabled extensions, or None when the site is not installed."""

    status = run_json([drush, "status", "--format=json"])
    if not isinstance(status, dict) or not status.get("db-name"):
        return None
    listing = run_json([drush, "pm-list", "--fields=status", "--format=json"])
    if not isinstance(listing, dict):
        return []
    return [name for name, item in listing.items() if isinstance(item, dict) and item.get("status") == "Enabled"]


def enabled_from_config(path: Path) -> Optional[list[str]]:
    """Read enabled modules and themes from an exported ``core.extension.yml``.

    Returns None when the file is missing and raises
    :class:`InvalidConfiguration` when it cannot be read as a mapping.
    """

    if not path.exists():
        return None
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise InvalidConfiguration(f"Unable to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path} must contain a mapping at the top level.")
    modules = data.get("module") or {}
    themes = data.get("theme") or {}
    return list(modules) + [theme for theme in themes if theme not in modules]


def drush_security(drush: str) -> dict:
    data = run_json([drush, "pm:security", "--format=json"])
    return data if isinstance(data, dict) else {}


def security_checker(checker: str) -> dict:
    data = run_json([checker, "security:check", "--no-dev", "--format=json"])
    return data if isinstance(data, dict) else {}


def composer_outdated(composer: str = "composer") -> list[dict]:
    data = run_json([composer, "outdated", "--direct", "--minor-only", "--format=json"])
    if not isinstance(data, dict):
        return []
    return [record for record in data.get("installed") or [] if isinstance(record, dict)]


def git_commit_message() -> str:
    try:
        result = subprocess.run(
            ["git", "log", "-1", "--pretty=%B"], capture_output=True, text=True, check=False
        )
    except OSError:
        return ""
    return result.stdout.strip() if result.returncode == 0 else ""
