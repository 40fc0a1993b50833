from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

MANDATORY = "mandatory"
RECOMMENDED = "recommended"
INSECURE = "insecure"
OUTDATED = "outdated"
DEV_VERSION = "dev_version"
EVALUATION = "evaluation"
DEV_REQUIRE = "dev_require"
TOOL_REQUIRE = "tool_require"

# Fixed report order, independent of the order checks complete in.
CATEGORY_ORDER = [
    MANDATORY,
    RECOMMENDED,
    INSECURE,
    OUTDATED,
    DEV_VERSION,
    EVALUATION,
    DEV_REQUIRE,
    TOOL_REQUIRE,
]

CATEGORY_TITLES = {
    MANDATORY: "Mandatory module check",
    RECOMMENDED: "Recommended module check",
    INSECURE: "Insecure module check",
    OUTDATED: "Outdated module check",
    DEV_VERSION: "Dev module check",
    EVALUATION: "Evaluation module check",
    DEV_REQUIRE: "Dev module in require-dev check",
    TOOL_REQUIRE: "Drush require section check",
}


@dataclass
class CheckVerdict:
    category: str
    passed: bool = True
    messages: List[str] = field(default_factory=list)
    blocking: bool = True
    skipped: bool = False

    @property
    def title(self) -> str:
        return CATEGORY_TITLES.get(self.category, self.category)

    def fail(self, message: str) -> None:
        self.passed = False
        self.messages.append(message)

    def note(self, message: str) -> None:
        self.messages.append(message)

    @property
    def status(self) -> str:
        label = "passed" if self.passed else "failed"
        if not self.blocking:
            label += " (report only)"
        elif self.skipped:
            label += " (Skipping)"
        return label

    def as_dict(self) -> dict:
        return {
            "category": self.category,
            "title": self.title,
            "passed": self.passed,
            "blocking": self.blocking,
            "skipped": self.skipped,
            "status": self.status,
            "messages": list(self.messages),
        }


@dataclass
class AggregateVerdict:
    checks: List[CheckVerdict] = field(default_factory=list)
    skip_insecure: bool = False
    skip_outdated: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    project_id: Optional[str] = None

    def get(self, category: str) -> CheckVerdict | None:
        for check in self.checks:
            if check.category == category:
                return check
        return None

    @property
    def ordered(self) -> list[CheckVerdict]:
        rank = {category: index for index, category in enumerate(CATEGORY_ORDER)}
        return sorted(self.checks, key=lambda check: rank.get(check.category, len(rank)))

    def is_blocking_failure(self, check: CheckVerdict) -> bool:
        if check.passed or not check.blocking:
            return False
        if check.category == INSECURE and self.skip_insecure:
            return False
        if check.category == OUTDATED and self.skip_outdated:
            return False
        return True

    @property
    def failed_checks(self) -> list[CheckVerdict]:
        return [check for check in self.ordered if self.is_blocking_failure(check)]

    @property
    def passed(self) -> bool:
        return not self.failed_checks

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def as_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "project_id": self.project_id,
            "passed": self.passed,
            "exit_code": self.exit_code,
            "skip_insecure": self.skip_insecure,
            "skip_outdated": self.skip_outdated,
            "checks": [check.as_dict() for check in self.ordered],
        }
