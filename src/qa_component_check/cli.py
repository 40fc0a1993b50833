from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from . import probes
from .bypass import commit_message_from_env, resolve_bypass
from .config import load_settings, resolve_basic_auth, validate_core_version
from .context import ProjectContext
from .errors import ComponentCheckError
from .evaluator import default_sources, evaluate_components
from .manifest import scan_composer_lock
from .qa_client import QaClient
from .reporting import REPORT_FORMATS, write_report


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log diagnostics (HTTP retries, ignored constraints).")
def main(verbose: bool) -> None:
    """QA component check CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("component-check")
@click.option(
    "--lock-file",
    type=click.Path(dir_okay=False, path_type=str),
    default="composer.lock",
    show_default=True,
    help="Path to the composer.lock file to evaluate.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="Runner YAML file (defaults to runner.yml or runner.yml.dist when present).",
)
@click.option(
    "--endpoint",
    type=str,
    help="Override the QA website base URL (defaults to QA_WEBSITE_URL or the public QA website).",
)
@click.option(
    "--basic-auth",
    type=str,
    help="Base64 'user:password' token for the QA API; defaults to QA_API_BASIC_AUTH.",
)
@click.option("--project-id", type=str, help="Project id; overrides toolkit.project_id.")
@click.option("--core-version", type=str, help="Registry scope to evaluate against, e.g. 8.x.")
@click.option(
    "--commit-message",
    type=str,
    help="Text scanned for bypass tokens; defaults to CI_COMMIT_MESSAGE, DRONE_COMMIT_MESSAGE or the last git commit.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(list(REPORT_FORMATS), case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format for the report.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=str),
    help="Write the report to a file instead of stdout.",
)
@click.option(
    "--test-command",
    is_flag=True,
    help="Replace the lock file packages with a built-in set that trips each evaluation failure.",
)
def component_check(
    lock_file: str,
    config_path: Optional[str],
    endpoint: Optional[str],
    basic_auth: Optional[str],
    project_id: Optional[str],
    core_version: Optional[str],
    commit_message: Optional[str],
    fmt: str,
    output: Optional[str],
    test_command: bool,
) -> None:
    """Check composer.lock components against the QA package reviews."""

    try:
        settings = load_settings(Path(config_path) if config_path else None)
        if endpoint:
            settings.website_url = endpoint
        if project_id:
            settings.project_id = project_id
        if core_version:
            settings.core_version = validate_core_version(core_version)
        auth = resolve_basic_auth(basic_auth)
        manifest = scan_composer_lock(Path(lock_file), test_packages=test_command)
    except ComponentCheckError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)

    if commit_message is None:
        commit_message = commit_message_from_env() or probes.git_commit_message()
    bypass = resolve_bypass(commit_message)

    client = QaClient(settings.website_url, auth)
    context = ProjectContext(
        project_id=settings.project_id,
        invalid_version_tokens=settings.invalid_versions,
    )
    verdict = evaluate_components(
        manifest,
        default_sources(client, settings),
        context,
        bypass=bypass,
        core_version=settings.core_version,
    )

    destination = Path(output) if output else None
    rendered = write_report(verdict, fmt, destination)
    if not destination:
        click.echo(rendered)

    if verdict.exit_code:
        raise SystemExit(verdict.exit_code)


if __name__ == "__main__":
    main()
