from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from . import probes
from .advisory import ReleaseTerms, confirm_insecure
from .bypass import BypassFlags
from .checks import (
    check_dev_require,
    check_dev_versions,
    check_evaluation,
    check_insecure,
    check_mandatory,
    check_outdated,
    check_recommended,
    check_tool_require,
    merge_advisories,
)
from .config import Settings
from .context import ProjectContext
from .errors import DataUnavailable, InvalidConfiguration
from .qa_client import QaClient
from .registry import build_registry
from .types import AggregateVerdict, ManifestSnapshot, RegistrySnapshot

logger = logging.getLogger(__name__)


@dataclass
class EvaluationSources:
    """Everything the evaluator reads from outside the lock file.

    Remote callables may raise :class:`DataUnavailable`; local probes return
    None or empty data when their tool cannot answer.
    """

    package_reviews: Callable[[str], list]
    vendor_list: Callable[[], Iterable[str]]
    enabled_packages: Callable[[], Optional[list[str]]]
    enabled_fallback: Callable[[], Optional[list[str]]]
    insecure_probes: Sequence[Callable[[], dict]] = field(default_factory=list)
    outdated: Callable[[], list[dict]] = list
    advisory: Callable[[str, str, str], Optional[ReleaseTerms]] = confirm_insecure
    project_information: Optional[Callable[[str], dict]] = None
    enabled_fallback_label: str = "the static configuration file"


def default_sources(client: QaClient, settings: Settings) -> EvaluationSources:
    drush = probes.bin_path("drush", settings.bin_dir)
    checker = probes.bin_path("security-checker", settings.bin_dir)
    return EvaluationSources(
        package_reviews=client.package_reviews,
        vendor_list=client.vendor_list,
        enabled_packages=lambda: probes.enabled_from_drush(drush),
        enabled_fallback=lambda: probes.enabled_from_config(settings.enabled_config_file),
        insecure_probes=[
            lambda: probes.drush_security(drush),
            lambda: probes.security_checker(checker),
        ],
        outdated=probes.composer_outdated,
        advisory=confirm_insecure,
        project_information=client.project_information,
        enabled_fallback_label=str(settings.enabled_config_file),
    )


def _resolve_enabled(sources: EvaluationSources) -> tuple[list[str], list[str]]:
    notes: list[str] = []
    enabled = sources.enabled_packages()
    if enabled is not None:
        return enabled, notes
    notes.append(f"Website not installed, using {sources.enabled_fallback_label} file.")
    try:
        fallback = sources.enabled_fallback()
    except InvalidConfiguration as exc:
        logger.warning("Enabled extensions fallback unreadable: %s", exc)
        notes.append(str(exc))
        return [], notes
    if fallback is None:
        notes.append(f"Config file not found at {sources.enabled_fallback_label}.")
        return [], notes
    return fallback, notes


def _fetch_registry(sources: EvaluationSources, core_version: str) -> tuple[RegistrySnapshot, list[str]]:
    try:
        return build_registry(sources.package_reviews(core_version)), []
    except DataUnavailable as exc:
        logger.warning("Package reviews unavailable: %s", exc)
        return RegistrySnapshot(), [f"Could not fetch the package reviews: {exc}"]


def _fetch_vendors(sources: EvaluationSources) -> tuple[list[str], list[str]]:
    try:
        return list(sources.vendor_list()), []
    except DataUnavailable as exc:
        logger.warning("Vendor list unavailable: %s", exc)
        return [], [f"Could not fetch the monitored vendor list: {exc}"]


def evaluate_components(
    manifest: ManifestSnapshot,
    sources: EvaluationSources,
    context: ProjectContext,
    bypass: BypassFlags | None = None,
    core_version: str = "8.x",
) -> AggregateVerdict:
    """Run every check against the manifest and collect the verdicts.

    Checks run one after another; a failure in one category never stops the
    others. Remote data that cannot be fetched is reported inside the
    category that needed it.
    """

    bypass = bypass or BypassFlags()
    if context.fetch_information is None:
        context.fetch_information = sources.project_information

    verdict = AggregateVerdict(
        skip_insecure=bypass.skip_insecure,
        skip_outdated=bypass.skip_outdated,
        project_id=context.project_id,
    )

    registry, registry_errors = _fetch_registry(sources, core_version)

    enabled, enabled_notes = _resolve_enabled(sources)
    verdict.checks.append(check_mandatory(registry, enabled, enabled_notes))
    verdict.checks.append(check_recommended(registry, manifest))

    flagged = merge_advisories(*(probe() for probe in sources.insecure_probes))
    insecure = check_insecure(
        registry, flagged, sources.advisory, core_version, force_skip=bypass.force_skip_insecure
    )
    insecure.skipped = insecure.skipped or bypass.skip_insecure
    verdict.checks.append(insecure)

    outdated = check_outdated(sources.outdated(), force_skip=bypass.force_skip_outdated)
    outdated.skipped = outdated.skipped or bypass.skip_outdated
    verdict.checks.append(outdated)

    vendors, vendor_errors = _fetch_vendors(sources)
    verdict.checks.append(
        check_evaluation(manifest, registry, vendors, context, registry_errors + vendor_errors)
    )

    verdict.checks.append(check_dev_versions(manifest, context.invalid_version_tokens))
    verdict.checks.append(check_dev_require(registry, manifest))
    verdict.checks.append(check_tool_require(manifest))
    return verdict
