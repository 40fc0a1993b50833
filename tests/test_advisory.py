import requests

from qa_component_check.advisory import (
    confirm_insecure,
    parse_release_history,
    release_history_url,
)

RELEASE_HISTORY = """<?xml version="1.0" encoding="utf-8"?>
<project>
  <short_name>token</short_name>
  <releases>
    <release>
      <name>token 8.x-1.7</name>
      <version>8.x-1.7</version>
      <date>1590000000</date>
      <terms>
        <term><name>Release type</name><value>Bug fixes</value></term>
      </terms>
    </release>
    <release>
      <name>token 8.x-1.5</name>
      <version>8.x-1.5</version>
      <date>1560000000</date>
      <terms>
        <term><name>Release type</name><value>Security update</value></term>
        <term><name>Release type</name><value>Insecure</value></term>
      </terms>
    </release>
  </releases>
</project>
"""


class DummyResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class DummyHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append(url)
        if self.error:
            raise self.error
        return self.response


def test_release_history_url():
    assert release_history_url("drupal/core", "8.x").endswith("/drupal/current")
    assert release_history_url("drupal/token", "8.x").endswith("/token/8.x")


def test_parse_release_history_collects_terms_of_installed_release():
    insecure = parse_release_history(RELEASE_HISTORY, "drupal/token", "1.5", "8.x")
    assert insecure.matched
    assert insecure.version == "8.x-1.5"
    assert insecure.terms == {"security update", "insecure"}
    assert insecure.confirms_insecure

    current = parse_release_history(RELEASE_HISTORY, "drupal/token", "8.x-1.7", "8.x")
    assert not current.confirms_insecure

    missing = parse_release_history(RELEASE_HISTORY, "drupal/token", "1.9", "8.x")
    assert not missing.matched


def test_confirm_insecure_fetches_feed():
    http = DummyHttp(DummyResponse(200, RELEASE_HISTORY))
    terms = confirm_insecure("drupal/token", "1.5", "8.x", http=http)
    assert terms.confirms_insecure
    assert http.requests == ["https://updates.drupal.org/release-history/token/8.x"]


def test_confirm_insecure_unavailable_returns_none():
    assert confirm_insecure("drupal/token", "1.5", http=DummyHttp(DummyResponse(404))) is None
    assert confirm_insecure("drupal/token", "1.5", http=DummyHttp(DummyResponse(200, "<not-xml"))) is None
    failing = DummyHttp(error=requests.ConnectionError("offline"))
    assert confirm_insecure("drupal/token", "1.5", http=failing) is None
