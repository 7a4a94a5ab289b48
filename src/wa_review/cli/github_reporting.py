"""Publish a ``wa-review analyze --format json`` report to GitHub Actions.

Writes a Markdown job summary to ``$GITHUB_STEP_SUMMARY`` (or ``--summary-path``)
and prints one workflow annotation command per finding.
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

from ..models import Severity
from ..normalization.plan_normalizer import PLAN_SOURCE

ANNOTATION_LEVELS = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "notice",
    Severity.INFO: "notice",
}
DISPLAY_LIMIT = 10

Report = Mapping[str, Any]


def _severity(value: object) -> Severity:
    try:
        return Severity.parse(str(value))
    except ValueError:
        return Severity.INFO


def _location(finding: Mapping[str, Any]) -> tuple[str, int]:
    """Return ``(file, line)``; plan findings have no source location."""

    file_path = str(finding.get("file") or "").strip()
    if not file_path or file_path == PLAN_SOURCE:
        return "", 0
    line = finding.get("line")
    if isinstance(line, bool) or not isinstance(line, (int, float)) or line < 1:
        return file_path, 0
    return file_path, int(line)


def _cell(value: object) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ").strip()


def format_summary(report: Report) -> str:
    """Render a Markdown job summary for the provided report."""

    summary: Mapping[str, Any] = report.get("summary") or {}
    findings: Sequence[Mapping[str, Any]] = report.get("findings") or []
    counts: Mapping[str, Any] = summary.get("counts") or {}
    highest = summary.get("highest_severity")

    lines: List[str] = [
        "# Well-Architected Review",
        "",
        f"**Resources scanned:** {int(summary.get('total_resources', 0))}",
        f"**Total findings:** {int(summary.get('total_findings', 0))}",
        f"**Suppressed findings:** {int(summary.get('suppressed_findings', 0))}",
        f"**Highest severity:** {_severity(highest).value.title() if highest else 'None'}",
        "",
        "| Severity | Findings |",
        "| --- | ---: |",
    ]
    lines.extend(f"| {severity.value.title()} | {int(counts.get(severity.value, 0))} |" for severity in Severity)

    pillars: Mapping[str, Any] = summary.get("by_pillar") or {}
    if pillars:
        lines.extend(["", "| Pillar | Findings |", "| --- | ---: |"])
        lines.extend(f"| {pillar} | {pillars[pillar]} |" for pillar in sorted(pillars))

    metadata: Mapping[str, Any] = report.get("metadata") or {}
    if metadata:
        lines.extend(["", "## Metadata", ""])
        lines.extend(f"- **{key}:** {metadata[key]}" for key in sorted(metadata))

    expired: Sequence[str] = summary.get("expired_suppressions") or []
    if expired:
        lines.extend(["", "## Expired suppressions", ""])
        lines.extend(f"- {entry}" for entry in expired)

    if findings:
        lines.extend(
            [
                "",
                "## Findings",
                "",
                "| Severity | Rule | Resource | Location | Description |",
                "| --- | --- | --- | --- | --- |",
            ]
        )
        for finding in findings[:DISPLAY_LIMIT]:
            file_path, line = _location(finding)
            location = f"{file_path}:{line}" if line else file_path
            lines.append(
                "| {severity} | `{rule}` | `{resource}` | {location} | {description} |".format(
                    severity=_severity(finding.get("severity")).value.title(),
                    rule=_cell(finding.get("rule_id", "")),
                    resource=_cell(finding.get("resource", "")),
                    location=_cell(location) or "plan",
                    description=_cell(finding.get("description", "")),
                )
            )

        remaining = len(findings) - DISPLAY_LIMIT
        if remaining > 0:
            lines.append("")
            lines.append(f"...and {remaining} more findings.")

    lines.append("")
    return "\n".join(lines)


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def iter_annotations(report: Report) -> Iterable[str]:
    """Generate GitHub Actions workflow command annotations for the findings."""

    for finding in report.get("findings") or []:
        severity = _severity(finding.get("severity"))
        rule_id = str(finding.get("rule_id", "")).strip()
        rule_name = str(finding.get("rule_name", "")).strip()

        title = " - ".join(part for part in (severity.value.title(), rule_id, rule_name) if part)
        body = "; ".join(
            part
            for part in (
                str(finding.get("description", "")).strip(),
                f"Resource: {finding['resource']}" if finding.get("resource") else "",
                f"Remediation: {finding['remediation']}" if finding.get("remediation") else "",
            )
            if part
        ) or "Finding reported without description."

        properties: List[str] = []
        file_path, line = _location(finding)
        if file_path:
            properties.append(f"file={_escape_property(file_path)}")
            if line:
                properties.append(f"line={line}")
        properties.append(f"title={_escape_property(title)}")

        yield f"::{ANNOTATION_LEVELS[severity]} {','.join(properties)}::{_escape_data(body)}"


def _load_report(path: Path) -> Report:
    raw = path.read_text(encoding="utf-8-sig")
    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse report JSON from '{path}': {exc.msg}.") from exc

    if not isinstance(data, Mapping):
        raise ValueError("Report JSON must be an object.")
    return data


def _write_summary(report: Report, destination: Path | None) -> None:
    if destination is None:
        return

    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("a", encoding="utf-8") as handle:
        handle.write(format_summary(report))


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wa-review-github",
        description="Publish review findings as GitHub job summary and annotations.",
    )
    parser.add_argument("report", type=Path, help="Path to a report written with `wa-review analyze --format json`.")
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Job summary file; defaults to $GITHUB_STEP_SUMMARY when set.",
    )
    args = parser.parse_args(argv)

    summary_path = args.summary_path
    if summary_path is None and os.getenv("GITHUB_STEP_SUMMARY"):
        summary_path = Path(os.environ["GITHUB_STEP_SUMMARY"])

    report = _load_report(args.report)
    _write_summary(report, summary_path)
    for command in iter_annotations(report):
        print(command)
    return 0


def run() -> None:  # pragma: no cover - wrapper for console entry point
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
