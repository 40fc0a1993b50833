from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, select_autoescape

from .bypass import SKIP_INSECURE_TOKEN, SKIP_OUTDATED_TOKEN
from .errors import InvalidConfiguration
from .qa_client import PACKAGE_REVIEWS_URL
from .types import AggregateVerdict

env = Environment(autoescape=select_autoescape(["html", "xml"]))

REPORT_FORMATS = ("text", "markdown", "md", "json", "html")

FAILURE_BANNER = [
    "Failed the components check, please verify the report and update the project.",
    f"See the list of packages at {PACKAGE_REVIEWS_URL}.",
]
SUCCESS_BANNER = "Components checked, nothing to report."
BYPASS_HINTS = [
    "NOTE: It is possible to bypass the insecure and outdated check by providing a token in the commit message.",
    "The available tokens are:",
    f"    - {SKIP_OUTDATED_TOKEN}",
    f"    - {SKIP_INSECURE_TOKEN}",
]


def _check_rows(verdict: AggregateVerdict) -> Iterable[dict]:
    for check in verdict.ordered:
        row = check.as_dict()
        row["blocking_failure"] = verdict.is_blocking_failure(check)
        yield row


def render_json(verdict: AggregateVerdict) -> str:
    return json.dumps(verdict.as_dict(), indent=2)


def render_text(verdict: AggregateVerdict) -> str:
    lines: list[str] = []
    for row in _check_rows(verdict):
        lines.append(f"Checking {row['title']}.")
        lines.extend(f"  {message}" for message in row["messages"])
        lines.append("")

    lines.append("Results:")
    width = max((len(row["title"]) for row in _check_rows(verdict)), default=0)
    for row in _check_rows(verdict):
        lines.append(f"  {row['title'].ljust(width)}  {row['status']}")
    lines.append("")

    if verdict.passed:
        lines.append(SUCCESS_BANNER)
    else:
        lines.extend(f"[ERROR] {line}" for line in FAILURE_BANNER)
        lines.append("")
        lines.extend(BYPASS_HINTS)
    return "\n".join(lines)


def render_markdown(verdict: AggregateVerdict) -> str:
    lines = [
        "# Component check",
        "",
        f"Generated at: {verdict.generated_at.isoformat()}",
        f"Project: {verdict.project_id or 'unknown'}",
        f"Result: {'passed' if verdict.passed else 'failed'}",
        "",
        "| Check | Status | Messages |",
        "| --- | --- | --- |",
    ]
    for row in _check_rows(verdict):
        messages = "<br>".join(row["messages"]) or "None"
        lines.append(f"| {row['title']} | {row['status']} | {messages} |")

    if not verdict.passed:
        lines.append("")
        lines.extend(FAILURE_BANNER)
        lines.append("")
        lines.append(
            f"Bypass tokens for the commit message: `{SKIP_OUTDATED_TOKEN}`, `{SKIP_INSECURE_TOKEN}`."
        )
    return "\n".join(lines)


def render_html(verdict: AggregateVerdict) -> str:
    template = env.from_string(
        """
<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <title>Component check</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 2rem; }
    h1, h2 { color: #1f2937; }
    table { border-collapse: collapse; width: 100%; margin-bottom: 1.5rem; }
    th, td { border: 1px solid #d1d5db; padding: 0.5rem; vertical-align: top; }
    th { background: #f3f4f6; text-align: left; }
    .badge { display: inline-block; padding: 0.35rem 0.6rem; border-radius: 0.4rem; font-weight: 600; }
    .badge.good { background: #d1fae5; color: #065f46; }
    .badge.warn { background: #fef3c7; color: #92400e; }
    .badge.bad { background: #fee2e2; color: #991b1b; }
  </style>
</head>
<body>
  <h1>Component check</h1>
  <p>Generated at: {{ generated_at }}</p>
  <p>Project: {{ project_id or "unknown" }}</p>
  <p>Result: <span class=\"badge {{ 'good' if passed else 'bad' }}\">{{ 'passed' if passed else 'failed' }}</span></p>
  <table>
    <thead><tr><th>Check</th><th>Status</th><th>Messages</th></tr></thead>
    <tbody>
      {% for row in checks %}
      <tr>
        <td>{{ row.title }}</td>
        <td><span class=\"badge {{ 'bad' if row.blocking_failure else ('good' if row.passed else 'warn') }}\">{{ row.status }}</span></td>
        <td>
          {% for message in row.messages %}{{ message }}{% if not loop.last %}<br />{% endif %}{% else %}None{% endfor %}
        </td>
      </tr>
      {% endfor %}
    </tbody>
  </table>
  {% if not passed %}
  <section>
    {% for line in banner %}<p>{{ line }}</p>{% endfor %}
    <p>Bypass tokens for the commit message: {{ tokens | join(", ") }}</p>
  </section>
  {% endif %}
</body>
</html>
"""
    )
    return template.render(
        generated_at=verdict.generated_at.isoformat(),
        project_id=verdict.project_id,
        passed=verdict.passed,
        checks=list(_check_rows(verdict)),
        banner=FAILURE_BANNER,
        tokens=[SKIP_OUTDATED_TOKEN, SKIP_INSECURE_TOKEN],
    )


def render_report(verdict: AggregateVerdict, fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "text":
        return render_text(verdict)
    if fmt == "json":
        return render_json(verdict)
    if fmt in {"md", "markdown"}:
        return render_markdown(verdict)
    if fmt == "html":
        return render_html(verdict)
    raise InvalidConfiguration(f"Unknown report format: {fmt}")


def write_report(verdict: AggregateVerdict, fmt: str, destination: Path | None) -> str:
    output = render_report(verdict, fmt)
    if destination:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(output)
    return output
