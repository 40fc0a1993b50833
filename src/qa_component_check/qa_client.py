from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests  # type: ignore[import-untyped]

from .errors import DataUnavailable

logger = logging.getLogger(__name__)

DEFAULT_WEBSITE_URL = "https://webgate.ec.europa.eu/fpfis/qa"
PACKAGE_REVIEWS_URL = "https://webgate.ec.europa.eu/fpfis/qa/package-reviews"
USER_AGENT = "Quality Assurance pipeline"
# (connect, read) seconds
TIMEOUT = (120, 120)


class QaClient:
    """Talks to the QA website API.

    One instance lives for one run: the session token is fetched once and
    reused for every authenticated request. An authenticated request that
    does not return 200 is retried once without credentials; any other
    failure raises :class:`DataUnavailable`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_WEBSITE_URL,
        basic_auth: str = "",
        http: Optional[requests.Session] = None,
        timeout: tuple[int, int] = TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.basic_auth = basic_auth
        self.http = http or requests.Session()
        self.timeout = timeout
        self._session_token: str | None = None
        self._session_error: DataUnavailable | None = None

    def session_token(self) -> str:
        if self._session_token is not None:
            return self._session_token
        if self._session_error is not None:
            raise self._session_error
        url = f"{self.base_url}/session/token"
        try:
            response = self.http.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            self._session_error = DataUnavailable(f'Request to endpoint "{url}" failed: {exc}')
            raise self._session_error from exc
        token = response.text.strip() if response.status_code == 200 else ""
        self._session_token = token
        return token

    def get(self, url: str, authenticated: bool = True) -> str:
        token = self.session_token()
        if not token:
            raise DataUnavailable("Unable to obtain a session token from the QA website.")

        headers = {"User-Agent": USER_AGENT}
        use_auth = authenticated and bool(self.basic_auth)
        if use_auth:
            headers["Authorization"] = f"Basic {self.basic_auth}"
            headers["X-CSRF-Token"] = token

        try:
            response = self.http.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DataUnavailable(f'Request to endpoint "{url}" failed: {exc}') from exc

        if response.status_code == 200:
            return response.text
        if use_auth:
            logger.info("Authenticated request to %s returned %s, retrying without credentials", url, response.status_code)
            return self.get(url, authenticated=False)
        raise DataUnavailable(f'Request to endpoint "{url}" returned a {response.status_code}.')

    def get_json(self, url: str, authenticated: bool = True) -> Any:
        text = self.get(url, authenticated=authenticated)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise DataUnavailable(f'Endpoint "{url}" did not return JSON: {exc}') from exc

    def package_reviews(self, core_version: str = "8.x") -> list[dict]:
        data = self.get_json(f"{self.base_url}/api/v1/package-reviews?version={core_version}")
        if isinstance(data, dict):
            return list(data.values())
        return list(data or [])

    def vendor_list(self) -> list[str]:
        data = self.get_json(f"{self.base_url}/api/v1/toolkit-requirements")
        if not isinstance(data, dict):
            return []
        return [str(vendor) for vendor in data.get("vendor_list") or []]

    def project_information(self, project_id: str) -> dict:
        """Return ``{"type": ..., "profile": ...}`` for a project id."""

        url = f"{self.base_url}/api/v1/project/ec-europa/{project_id}-reference/information"
        data = self.get_json(url)
        if isinstance(data, dict):
            records = list(data.values())
        else:
            records = list(data or [])
        project = records[0] if records else None
        if isinstance(project, dict) and project.get("name") == f"{project_id}-reference":
            return project
        raise DataUnavailable(f"No project information found for {project_id}.")
