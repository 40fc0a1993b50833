import json

import pytest

from qa_component_check import probes
from qa_component_check.errors import InvalidConfiguration


class Completed:
    def __init__(self, stdout="", returncode=0):
        self.stdout = stdout
        self.returncode = returncode


def _fake_run(outputs, monkeypatch):
    calls = []

    def run(command, **kwargs):
        calls.append(command)
        for key, value in outputs.items():
            if key in command:
                if isinstance(value, Exception):
                    raise value
                return Completed(value)
        return Completed("")

    monkeypatch.setattr(probes.subprocess, "run", run)
    return calls


def test_enabled_from_drush_lists_enabled_extensions(monkeypatch):
    _fake_run(
        {
            "status": json.dumps({"db-name": "drupal"}),
            "pm-list": json.dumps(
                {"node": {"status": "Enabled"}, "toolbar": {"status": "Disabled"}, "olivero": {"status": "Enabled"}}
            ),
        },
        monkeypatch,
    )
    assert probes.enabled_from_drush("drush") == ["node", "olivero"]


def test_enabled_from_drush_not_installed(monkeypatch):
    _fake_run({"status": json.dumps({"drush-version": "10"})}, monkeypatch)
    assert probes.enabled_from_drush("drush") is None


def test_enabled_from_config(tmp_path):
    config = tmp_path / "core.extension.yml"
    config.write_text("module:\n  node: 0\n  oe_authentication: 0\ntheme:\n  olivero: 0\n")
    assert probes.enabled_from_config(config) == ["node", "oe_authentication", "olivero"]
    assert probes.enabled_from_config(tmp_path / "missing.yml") is None


def test_run_json_degrades_on_missing_binary_and_bad_output(monkeypatch):
    _fake_run({"missing": FileNotFoundError("missing"), "broken": "not json", "empty": "[]"}, monkeypatch)
    assert probes.run_json(["missing"]) is None
    assert probes.run_json(["broken"]) is None
    assert probes.run_json(["empty"]) is None


def test_composer_outdated_returns_installed_records(monkeypatch):
    payload = {"installed": [{"name": "drupal/core", "version": "8.9.1", "latest": "8.9.2"}]}
    calls = _fake_run({"outdated": json.dumps(payload)}, monkeypatch)
    assert probes.composer_outdated() == payload["installed"]
    assert calls[0][:2] == ["composer", "outdated"]


def test_security_probes_return_mappings(monkeypatch):
    _fake_run({"pm:security": json.dumps({"drupal/core": {"version": "8.9.1"}}), "security:check": "[]"}, monkeypatch)
    assert probes.drush_security("drush") == {"drupal/core": {"version": "8.9.1"}}
    assert probes.security_checker("security-checker") == {}


def test_git_commit_message(monkeypatch):
    _fake_run({"log": "Release [SKIP-OUTDATED]\n"}, monkeypatch)
    assert probes.git_commit_message() == "Release [SKIP-OUTDATED]"

    monkeypatch.setattr(probes.subprocess, "run", lambda *a, **k: Completed("", returncode=128))
    assert probes.git_commit_message() == ""


def test_enabled_from_config_rejects_unreadable_exports(tmp_path):
    broken = tmp_path / "broken.yml"
    broken.write_text("module: [unclosed\n")
    with pytest.raises(InvalidConfiguration, match="Unable to parse"):
        probes.enabled_from_config(broken)

    listing = tmp_path / "listing.yml"
    listing.write_text("- node\n- system\n")
    with pytest.raises(InvalidConfiguration, match="mapping"):
        probes.enabled_from_config(listing)
