from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Mapping, Optional

from .advisory import ReleaseTerms
from .constraints import satisfies
from .context import ProjectContext
from .errors import DataUnavailable, MalformedConstraint
from .types import (
    REQUIRE,
    REQUIRE_DEV,
    Cleared,
    CheckVerdict,
    ManifestSnapshot,
    PackageRecord,
    RegistryEntry,
    RegistrySnapshot,
    RestrictedTo,
)
from .types_verdict import (
    DEV_REQUIRE,
    DEV_VERSION,
    EVALUATION,
    INSECURE,
    MANDATORY,
    OUTDATED,
    RECOMMENDED,
    TOOL_REQUIRE,
)

logger = logging.getLogger(__name__)

DEV_VERSION_PATTERN = re.compile(r"^dev-|-dev$")
EVALUATED_TYPE = "drupal-module"
REQUIRED_TOOL = "drush/drush"

AdvisoryLookup = Callable[[str, str, str], Optional[ReleaseTerms]]


def _constraint_hit(
    verdict: CheckVerdict, subject: str, version: str, constraint: str
) -> Optional[bool]:
    """Evaluate a registry constraint; None means the constraint is unusable."""

    try:
        return satisfies(version, constraint)
    except MalformedConstraint as exc:
        logger.warning("%s: %s", subject, exc)
        verdict.note(f"Package {subject}: {exc}; constraint ignored.")
        return None


def check_mandatory(
    registry: RegistrySnapshot, enabled: Iterable[str], notes: Iterable[str] = ()
) -> CheckVerdict:
    """Every mandatory component must be enabled, matched by machine name."""

    verdict = CheckVerdict(MANDATORY)
    for note in notes:
        verdict.note(note)
    enabled_set = set(enabled)
    for entry in registry.mandatory:
        if not entry.machine_name:
            logger.warning("Mandatory package %s has no machine name, skipping", entry.name)
            verdict.note(f"Package {entry.name} is mandatory but has no machine name, skipping.")
            continue
        if entry.machine_name in enabled_set:
            continue
        since = f" (since {entry.mandatory_since})" if entry.mandatory_since else ""
        verdict.fail(f"Package {entry.machine_name} is mandatory{since} and is not present on the project.")
    if verdict.passed:
        verdict.note("Mandatory components check passed.")
    return verdict


def check_recommended(registry: RegistrySnapshot, manifest: ManifestSnapshot) -> CheckVerdict:
    """Report recommended components missing from the lock file; never blocks."""

    verdict = CheckVerdict(RECOMMENDED, blocking=False)
    installed = set(manifest.names)
    for entry in registry.recommended:
        if entry.name in installed:
            continue
        later = f" (and will be mandatory at {entry.mandatory_since})" if entry.mandatory_since else ""
        verdict.fail(f"Package {entry.name} is recommended{later} but is not present on the project.")
    verdict.note("This step is in reporting mode, skipping.")
    return verdict


def merge_advisories(*reports: Mapping[str, dict] | None) -> dict[str, dict]:
    """Merge advisory tool results by package name; later reports win."""

    merged: dict[str, dict] = {}
    for report in reports:
        if report:
            merged.update(report)
    return merged


def check_insecure(
    registry: RegistrySnapshot,
    flagged: Mapping[str, dict],
    advisory: AdvisoryLookup,
    core_version: str = "8.x",
    force_skip: bool = False,
) -> CheckVerdict:
    verdict = CheckVerdict(INSECURE)
    for name, details in flagged.items():
        version = str((details or {}).get("version") or "")
        message = f"Package {name} has a security update, please update to a safe version."

        entry = registry.get(name)
        if entry and entry.secure_versions:
            if _constraint_hit(verdict, name, version, entry.secure_versions):
                verdict.note(f"{message} (Version marked as secure)")
                continue

        release = advisory(name, version, core_version)
        if release is None or (release.matched and not release.confirms_insecure):
            verdict.note(f"{message} (Confirmation failed, ignored)")
            continue

        verdict.fail(message)

    if force_skip:
        verdict.passed = True
        verdict.skipped = True
        verdict.note("Globally skipping security check for components.")
    elif verdict.passed:
        verdict.note("Insecure components check passed.")
    return verdict


def check_outdated(records: Iterable[dict], force_skip: bool = False) -> CheckVerdict:
    verdict = CheckVerdict(OUTDATED)
    for record in records:
        name = record.get("name", "unknown")
        if "latest" not in record:
            verdict.note(f"Package {name} does not provide information about last version.")
        elif "warning" in record:
            verdict.fail(str(record["warning"]))
        else:
            verdict.fail(
                f"Package {name} with version installed {record.get('version')} is outdated, "
                f"please update to last version - {record['latest']}"
            )

    if force_skip:
        verdict.passed = True
        verdict.skipped = True
        verdict.note("Globally skipping outdated check for components.")
    elif verdict.passed:
        verdict.note("Outdated components check passed.")
    return verdict


def _allowed_in_project(
    entry: RegistryEntry, restriction: RestrictedTo, context: ProjectContext, verdict: CheckVerdict
) -> bool:
    if restriction.allows(context.project_id):
        return True
    try:
        if entry.allowed_project_types and context.project_type in entry.allowed_project_types:
            return True
        if entry.allowed_profiles and context.project_profile in entry.allowed_profiles:
            return True
    except DataUnavailable as exc:
        verdict.note(f"Could not fetch project information for {entry.name}: {exc}")
    return False


def evaluate_package(
    package: PackageRecord,
    registry: RegistrySnapshot,
    context: ProjectContext,
    verdict: CheckVerdict,
) -> None:
    """Apply the review status of one monitored package to ``verdict``."""

    if package.type != EVALUATED_TYPE:
        return
    name = package.name
    version = package.effective_version(context.invalid_version_tokens)
    entry = registry.get(name)

    if entry is None:
        verdict.fail(f"Package {name}:{version} has not been reviewed by QA.")
        return

    restriction = entry.restricted_use
    if isinstance(restriction, RestrictedTo):
        if not _allowed_in_project(entry, restriction, context, verdict):
            verdict.fail(f"The use of {name}:{version} is {entry.status}. Contact QA Team.")
    elif isinstance(restriction, Cleared):
        for label, constraint, failing_result in (
            ("allow-list", entry.allow_list_versions, False),
            ("deny-list", entry.deny_list_versions, True),
        ):
            if not constraint:
                continue
            hit = _constraint_hit(verdict, f"{name}:{version}", version, constraint)
            if hit is not None and hit is failing_result:
                verdict.fail(
                    f"Package {name}:{version} does not meet the {label} version constraint: {constraint}."
                )


def check_evaluation(
    manifest: ManifestSnapshot,
    registry: RegistrySnapshot,
    vendors: Iterable[str],
    context: ProjectContext,
    unavailable: Iterable[str] = (),
) -> CheckVerdict:
    verdict = CheckVerdict(EVALUATION)
    for reason in unavailable:
        verdict.fail(reason)
    if not verdict.passed:
        # Packages are not evaluated without review data.
        return verdict
    monitored = set(vendors)
    for package in manifest:
        if package.vendor in monitored:
            evaluate_package(package, registry, context, verdict)
    if verdict.passed:
        verdict.note("Evaluation module check passed.")
    return verdict


def is_dev_version(version: str) -> bool:
    return bool(DEV_VERSION_PATTERN.search(version))


def check_dev_versions(
    manifest: ManifestSnapshot, invalid_tokens: frozenset[str] = frozenset()
) -> CheckVerdict:
    verdict = CheckVerdict(DEV_VERSION)
    for package in manifest:
        if package.is_custom:
            continue
        version = package.effective_version(invalid_tokens)
        if is_dev_version(version):
            verdict.fail(f"Package {package.name}:{version} cannot be used in dev version.")
    if verdict.passed:
        verdict.note("Dev components check passed.")
    return verdict


def check_dev_require(registry: RegistrySnapshot, manifest: ManifestSnapshot) -> CheckVerdict:
    verdict = CheckVerdict(DEV_REQUIRE)
    for entry in registry.dev_components:
        if manifest.get(entry.name, REQUIRE):
            verdict.fail(
                f"Package {entry.name} cannot be used on require section, must be on require-dev section."
            )
    if verdict.passed:
        verdict.note("Dev components in require section check passed")
    return verdict


def check_tool_require(manifest: ManifestSnapshot, tool: str = REQUIRED_TOOL) -> CheckVerdict:
    verdict = CheckVerdict(TOOL_REQUIRE)
    if manifest.get(tool, REQUIRE_DEV):
        verdict.fail(f"Package '{tool}' cannot be used in require-dev, must be on require section.")
    elif manifest.get(tool, REQUIRE):
        verdict.note("Drush require section check passed.")
    return verdict
