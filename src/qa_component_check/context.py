from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import DataUnavailable


@dataclass
class ProjectContext:
    """Per-run facts about the project under evaluation.

    Project type and profile come from the QA website and are fetched at
    most once per run, the first time a restricted package needs them. A
    failed fetch is remembered too, so later packages do not retry it.
    """

    project_id: Optional[str] = None
    invalid_version_tokens: frozenset[str] = frozenset()
    fetch_information: Optional[Callable[[str], dict]] = None
    _information: Optional[dict] = field(default=None, init=False, repr=False)
    _error: Optional[DataUnavailable] = field(default=None, init=False, repr=False)

    def information(self) -> dict:
        if self._information is not None:
            return self._information
        if self._error is not None:
            raise self._error
        if not self.project_id or self.fetch_information is None:
            self._error = DataUnavailable("No project id configured; project information unavailable.")
            raise self._error
        try:
            self._information = self.fetch_information(self.project_id) or {}
        except DataUnavailable as exc:
            self._error = exc
            raise
        return self._information

    @property
    def project_type(self) -> Optional[str]:
        return self.information().get("type")

    @property
    def project_profile(self) -> Optional[str]:
        return self.information().get("profile")
