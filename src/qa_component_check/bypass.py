from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

SKIP_INSECURE_TOKEN = "[SKIP-INSECURE]"
SKIP_OUTDATED_TOKEN = "[SKIP-OUTDATED]"
FORCE_SKIP_INSECURE_ENV = "QA_SKIP_INSECURE"
FORCE_SKIP_OUTDATED_ENV = "QA_SKIP_OUTDATED"
COMMIT_MESSAGE_ENVS = ("CI_COMMIT_MESSAGE", "DRONE_COMMIT_MESSAGE")

TOKEN_PATTERN = re.compile(r"\[([A-Za-z0-9_-]+)\]")


@dataclass
class BypassFlags:
    """Operator overrides for the insecure and outdated checks.

    Commit tokens make a failing category non-blocking. The environment
    force flags clear the category outright; both stay visible in the report.
    """

    skip_insecure: bool = False
    skip_outdated: bool = False
    force_skip_insecure: bool = False
    force_skip_outdated: bool = False


def parse_commit_tokens(message: Optional[str]) -> set[str]:
    if not message:
        return set()
    return {f"[{token.upper()}]" for token in TOKEN_PATTERN.findall(message)}


def env_flag(name: str, environ: Mapping[str, str] | None = None) -> bool:
    value = (environ if environ is not None else os.environ).get(name, "")
    return bool(value) and value.strip().lower() not in {"0", "false", "no", "off"}


def commit_message_from_env(environ: Mapping[str, str] | None = None) -> Optional[str]:
    env = environ if environ is not None else os.environ
    for name in COMMIT_MESSAGE_ENVS:
        if env.get(name):
            return env[name]
    return None


def resolve_bypass(commit_message: Optional[str], environ: Mapping[str, str] | None = None) -> BypassFlags:
    tokens = parse_commit_tokens(commit_message)
    return BypassFlags(
        skip_insecure=SKIP_INSECURE_TOKEN in tokens,
        skip_outdated=SKIP_OUTDATED_TOKEN in tokens,
        force_skip_insecure=env_flag(FORCE_SKIP_INSECURE_ENV, environ),
        force_skip_outdated=env_flag(FORCE_SKIP_OUTDATED_ENV, environ),
    )
