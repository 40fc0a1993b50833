import json

import pytest
import requests

from qa_component_check.errors import DataUnavailable
from qa_component_check.qa_client import QaClient


class DummyResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class DummySession:
    """Answers by URL suffix; records every request with its headers."""

    def __init__(self, routes, token="csrf-token"):
        self.routes = routes
        self.token = token
        self.calls = []

    def get(self, url, headers=None, timeout=None, allow_redirects=False):
        self.calls.append((url, dict(headers or {})))
        if url.endswith("/session/token"):
            return DummyResponse(200 if self.token else 403, self.token)
        for suffix, answer in self.routes.items():
            if suffix in url:
                if isinstance(answer, Exception):
                    raise answer
                if callable(answer):
                    return answer(headers or {})
                return answer
        return DummyResponse(404)


def _client(routes, **kwargs):
    session = DummySession(routes, **kwargs)
    return QaClient("https://qa.example", "dXNlcjpwYXNz", http=session), session


def test_package_reviews_sends_credentials_and_reuses_token():
    reviews = [{"name": "drupal/token"}]
    client, session = _client(
        {
            "package-reviews": DummyResponse(200, json.dumps(reviews)),
            "toolkit-requirements": DummyResponse(200, json.dumps({"vendor_list": ["drupal", "ec-europa"]})),
        }
    )

    assert client.package_reviews("8.x") == reviews
    assert client.vendor_list() == ["drupal", "ec-europa"]

    token_calls = [url for url, _ in session.calls if url.endswith("/session/token")]
    assert len(token_calls) == 1
    url, headers = session.calls[1]
    assert url == "https://qa.example/api/v1/package-reviews?version=8.x"
    assert headers["Authorization"] == "Basic dXNlcjpwYXNz"
    assert headers["X-CSRF-Token"] == "csrf-token"


def test_rejected_credentials_retry_once_without_auth():
    def answer(headers):
        if "Authorization" in headers:
            return DummyResponse(401)
        return DummyResponse(200, "[]")

    client, session = _client({"package-reviews": answer})

    assert client.package_reviews() == []
    review_calls = [headers for url, headers in session.calls if "package-reviews" in url]
    assert len(review_calls) == 2
    assert "Authorization" not in review_calls[1]


def test_server_error_raises_data_unavailable():
    client, _ = _client({"package-reviews": DummyResponse(500)})
    with pytest.raises(DataUnavailable):
        client.package_reviews()


def test_transport_error_raises_data_unavailable():
    client, _ = _client({"toolkit-requirements": requests.ConnectionError("offline")})
    with pytest.raises(DataUnavailable, match="failed"):
        client.vendor_list()


def test_missing_session_token_raises_data_unavailable():
    client, _ = _client({}, token="")
    with pytest.raises(DataUnavailable, match="session token"):
        client.vendor_list()


def test_project_information_requires_matching_reference():
    record = {"name": "digit-qa-reference", "type": "openeuropa", "profile": "minimal"}
    client, _ = _client({"digit-qa-reference/information": DummyResponse(200, json.dumps([record]))})
    assert client.project_information("digit-qa") == record

    other, _ = _client({"information": DummyResponse(200, json.dumps([{"name": "other-reference"}]))})
    with pytest.raises(DataUnavailable, match="No project information"):
        other.project_information("digit-qa")


def test_failed_session_token_is_not_retried():
    class OfflineSession(DummySession):
        def get(self, url, headers=None, timeout=None, allow_redirects=False):
            self.calls.append((url, dict(headers or {})))
            raise requests.ConnectionError("offline")

    session = OfflineSession({})
    client = QaClient("https://qa.example", "dXNlcjpwYXNz", http=session)

    with pytest.raises(DataUnavailable, match="session/token"):
        client.package_reviews()
    with pytest.raises(DataUnavailable, match="session/token"):
        client.vendor_list()
    assert len(session.calls) == 1
