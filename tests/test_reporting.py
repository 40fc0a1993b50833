import json

import pytest

from qa_component_check.errors import InvalidConfiguration
from qa_component_check.reporting import render_html, render_json, render_markdown, render_report, render_text, write_report
from qa_component_check.types import AggregateVerdict, CheckVerdict
from qa_component_check.types_verdict import EVALUATION, INSECURE, MANDATORY, RECOMMENDED


def _verdict(**kwargs):
    evaluation = CheckVerdict(EVALUATION)
    evaluation.fail("Package drupal/devel:1.0 has not been reviewed by QA.")
    recommended = CheckVerdict(RECOMMENDED, blocking=False)
    recommended.fail("Package drupal/pathauto is recommended but is not present on the project.")
    mandatory = CheckVerdict(MANDATORY, messages=["Mandatory components check passed."])
    return AggregateVerdict(checks=[evaluation, recommended, mandatory], project_id="digit-qa", **kwargs)


def test_render_json_lists_checks_in_report_order():
    payload = json.loads(render_json(_verdict()))
    assert payload["passed"] is False
    assert payload["exit_code"] == 1
    assert [check["category"] for check in payload["checks"]] == [MANDATORY, RECOMMENDED, EVALUATION]
    assert payload["checks"][1]["status"] == "failed (report only)"


def test_render_text_shows_results_table_and_bypass_tokens():
    text = render_text(_verdict())
    assert "Checking Evaluation module check." in text
    assert "Results:" in text
    assert "[ERROR] Failed the components check" in text
    assert "[SKIP-OUTDATED]" in text and "[SKIP-INSECURE]" in text


def test_render_text_success_banner():
    verdict = AggregateVerdict(checks=[CheckVerdict(MANDATORY)])
    assert render_text(verdict).endswith("Components checked, nothing to report.")


def test_skipped_category_is_labelled():
    insecure = CheckVerdict(INSECURE)
    insecure.fail("Package drupal/core has a security update, please update to a safe version.")
    verdict = AggregateVerdict(checks=[insecure], skip_insecure=True)
    insecure.skipped = True

    assert verdict.passed
    assert "failed (Skipping)" in render_markdown(verdict)


def test_render_html_escapes_messages():
    verdict = AggregateVerdict(checks=[CheckVerdict(EVALUATION, passed=False, messages=["<script>x</script>"])])
    html = render_html(verdict)
    assert "&lt;script&gt;" in html
    assert "<script>x" not in html


def test_render_report_rejects_unknown_format():
    with pytest.raises(InvalidConfiguration):
        render_report(_verdict(), "pdf")


def test_write_report_creates_parent_directories(tmp_path):
    destination = tmp_path / "reports" / "check.md"
    output = write_report(_verdict(), "md", destination)
    assert destination.read_text() == output
    assert output.startswith("# Component check")
