from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .errors import AuthenticationMissing, InvalidConfiguration
from .qa_client import DEFAULT_WEBSITE_URL

DEFAULT_CONFIG_FILES = ("runner.yml", "runner.yml.dist")
DEFAULT_ENABLED_CONFIG = Path("config/sync/core.extension.yml")
CORE_VERSION_PATTERN = re.compile(r"^\d+\.x$")
BASIC_AUTH_ENV = "QA_API_BASIC_AUTH"
WEBSITE_URL_ENV = "QA_WEBSITE_URL"


@dataclass
class Settings:
    website_url: str = DEFAULT_WEBSITE_URL
    project_id: Optional[str] = None
    invalid_versions: frozenset[str] = field(default_factory=frozenset)
    enabled_config_file: Path = DEFAULT_ENABLED_CONFIG
    core_version: str = "8.x"
    bin_dir: Path = Path("vendor/bin")


def _load_yaml(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise InvalidConfiguration(f"Unable to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path} must contain a mapping at the top level.")
    return data


def _section(data: Mapping[str, Any], key: str) -> dict:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise InvalidConfiguration(f"'{key}' must be a mapping.")
    return value


def validate_core_version(value: str) -> str:
    if not CORE_VERSION_PATTERN.match(value):
        raise InvalidConfiguration(f"Unsupported core version '{value}', expected a value like '8.x'.")
    return value


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from a runner-style YAML file and the environment.

    Without an explicit path, ``runner.yml`` then ``runner.yml.dist`` are
    tried in the working directory. ``QA_WEBSITE_URL`` overrides the URL.
    """

    env = environ if environ is not None else os.environ
    data: dict = {}
    if path is not None:
        data = _load_yaml(path)
    else:
        for candidate in DEFAULT_CONFIG_FILES:
            if Path(candidate).exists():
                data = _load_yaml(Path(candidate))
                break

    toolkit = _section(data, "toolkit")
    clean = _section(toolkit, "clean")
    website = _section(toolkit, "website")

    invalid_versions = toolkit.get("invalid-versions") or []
    if not isinstance(invalid_versions, list):
        raise InvalidConfiguration("'toolkit.invalid-versions' must be a list.")

    project_id = toolkit.get("project_id")
    settings = Settings(
        website_url=env.get(WEBSITE_URL_ENV) or website.get("url") or DEFAULT_WEBSITE_URL,
        project_id=str(project_id) if project_id else None,
        invalid_versions=frozenset(str(v) for v in invalid_versions),
        enabled_config_file=Path(clean.get("config_file") or DEFAULT_ENABLED_CONFIG),
        core_version=validate_core_version(str(toolkit.get("core_version") or "8.x")),
        bin_dir=Path(toolkit.get("bin_dir") or "vendor/bin"),
    )
    return settings


def resolve_basic_auth(explicit: Optional[str] = None, environ: Mapping[str, str] | None = None) -> str:
    env = environ if environ is not None else os.environ
    auth = explicit or env.get(BASIC_AUTH_ENV, "")
    if not auth:
        raise AuthenticationMissing(
            f"Missing env var {BASIC_AUTH_ENV}; export a base64 encoded 'user:password' token."
        )
    return auth
