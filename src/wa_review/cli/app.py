"""Command-line interface implementation for the well-architected review tooling."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Sequence

from ..config import DEFAULT_CONFIG_FILE, Suppression
from ..engine import EngineConfig, build_registry
from ..errors import ConfigError, InputError
from ..models import CheckMetadata, Finding, Pillar, Severity, severity_rank
from ..service import AnalysisResult, AnalysisService

FAIL_ON_ANY = "any"
FAIL_ON_NONE = "none"
FAIL_ON_CHOICES = [FAIL_ON_ANY, FAIL_ON_NONE] + [severity.value.lower() for severity in Severity]
OUTPUT_FORMATS = ("table", "json", "markdown")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(slots=True)
class AnalysisReport:
    """Kept findings plus the counts and context shown to users."""

    findings: Sequence[Finding]
    metadata: Mapping[str, Any]
    total_resources: int = 0
    suppressed_findings: int = 0
    expired_suppressions: Sequence[Suppression] = field(default_factory=list)
    active_checks: Sequence[CheckMetadata] = field(default_factory=list)
    faults: Sequence[str] = field(default_factory=list)
    parse_errors: Sequence[str] = field(default_factory=list)

    @property
    def sorted_findings(self) -> List[Finding]:
        """Findings ordered most severe first, then by rule id."""

        return sorted(self.findings, key=lambda finding: (-finding.severity.rank, finding.rule_id))

    @property
    def highest_severity(self) -> Severity | None:
        if not self.findings:
            return None
        return max(self.findings, key=lambda finding: finding.severity.rank).severity

    def counts_by_severity(self) -> dict[str, int]:
        counts: MutableMapping[Severity, int] = {severity: 0 for severity in Severity}
        for finding in self.findings:
            counts[finding.severity] += 1
        return {severity.value: count for severity, count in counts.items()}

    def counts_by_pillar(self) -> dict[str, int]:
        counts: MutableMapping[Pillar, int] = {pillar: 0 for pillar in Pillar}
        for finding in self.findings:
            counts[finding.pillar] += 1
        return {pillar.value: count for pillar, count in counts.items() if count}

    def expired_descriptions(self) -> List[str]:
        return [
            f"{suppression.rule_id}/{suppression.resource} (expired {suppression.expires})"
            for suppression in self.expired_suppressions
        ]

    def to_dict(self) -> dict[str, Any]:
        highest = self.highest_severity
        return {
            "metadata": dict(self.metadata),
            "summary": {
                "total_resources": self.total_resources,
                "total_findings": len(self.findings),
                "suppressed_findings": self.suppressed_findings,
                "expired_suppressions": self.expired_descriptions(),
                "highest_severity": highest.value if highest else None,
                "counts": self.counts_by_severity(),
                "by_pillar": self.counts_by_pillar(),
            },
            "findings": [finding.to_dict() for finding in self.sorted_findings],
            "rule_metadata": [metadata.to_dict() for metadata in self.active_checks],
            "faults": list(self.faults),
            "parse_errors": list(self.parse_errors),
        }


def render_table(report: AnalysisReport) -> str:
    """Render findings as a simple text table for terminal output."""

    lines = _render_notes(report)
    if not report.findings:
        lines.append(f"No findings detected. Scanned {report.total_resources} resources.")
        return "\n".join(lines)

    headers = ("Severity", "Rule ID", "Resource", "Location", "Description")
    rows = [headers]
    for finding in report.sorted_findings:
        rows.append(
            (
                finding.severity.value,
                finding.rule_id,
                finding.resource,
                f"{finding.file}:{finding.line}",
                finding.description,
            )
        )

    lines.extend(_format_columns(rows))
    lines.append("")
    lines.append(
        f"Resources scanned: {report.total_resources}  Findings: {len(report.findings)}  "
        f"Suppressed: {report.suppressed_findings}"
    )
    return "\n".join(lines)


def render_markdown(report: AnalysisReport) -> str:
    """Render the report as a Markdown document."""

    lines = [
        "# AWS Well-Architected Analysis Report",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "| --- | ---: |",
        f"| Resources Scanned | {report.total_resources} |",
        f"| Total Findings | {len(report.findings)} |",
    ]
    if report.suppressed_findings:
        lines.append(f"| Suppressed Findings | {report.suppressed_findings} |")
    lines.append("")

    if report.expired_suppressions:
        lines.extend(["## Expired Suppressions", ""])
        lines.extend(f"- {description}" for description in report.expired_descriptions())
        lines.append("")

    if not report.findings:
        lines.append("No findings. Your Terraform configuration looks good!")
        lines.append("")
        return "\n".join(lines)

    lines.extend(["## Findings by Severity", "", "| Severity | Count |", "| --- | ---: |"])
    for severity, count in report.counts_by_severity().items():
        if count:
            lines.append(f"| {severity} | {count} |")

    lines.extend(["", "## Findings by Pillar", "", "| Pillar | Count |", "| --- | ---: |"])
    for pillar, count in report.counts_by_pillar().items():
        lines.append(f"| {pillar} | {count} |")

    lines.extend(["", "## Detailed Findings", ""])
    for index, finding in enumerate(report.sorted_findings, start=1):
        lines.append(f"### {index}. [{finding.rule_id}] {finding.rule_name} ({finding.severity.value})")
        lines.append("")
        lines.append(f"- **Resource:** `{finding.resource}`")
        lines.append(f"- **Location:** `{finding.file}:{finding.line}`")
        lines.append(f"- **Pillar:** {finding.pillar.value}")
        lines.append(f"- **Description:** {finding.description}")
        lines.append(f"- **Remediation:** {finding.remediation}")
        if finding.doc_url:
            lines.append(f"- **Documentation:** [AWS Docs]({finding.doc_url})")
        lines.append("")

    return "\n".join(lines)


def render_rule_table(metadata: Sequence[CheckMetadata]) -> str:
    """Render the check catalog as an aligned listing."""

    rows = [("ID", "NAME", "SEVERITY", "PILLAR", "RESOURCES")]
    for meta in metadata:
        rows.append(
            (
                meta.id,
                meta.name,
                meta.severity.value,
                meta.pillar.short_name,
                ", ".join(meta.resource_types),
            )
        )
    return "\n".join(_format_columns(rows))


def _format_columns(rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [max(len(str(row[idx])) for row in rows) for idx in range(len(rows[0]))]

    def format_row(values: Sequence[str]) -> str:
        return "  ".join(str(value).ljust(width) for value, width in zip(values, widths, strict=True)).rstrip()

    lines = [format_row(rows[0])]
    lines.append("  ".join("=" * width for width in widths))
    for row in rows[1:]:
        lines.append(format_row(row))
    return lines


def _render_notes(report: AnalysisReport) -> List[str]:
    notes: List[str] = []
    for description in report.expired_descriptions():
        notes.append(f"WARN: suppression for {description}")
    for error in report.parse_errors:
        notes.append(f"WARN: skipped file: {error}")
    for fault in report.faults:
        notes.append(f"WARN: check fault: {fault}")
    if notes:
        notes.append("")
    return notes


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="wa-review",
        description="Review Terraform against the AWS Well-Architected Framework",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default="WARNING",
        help="Verbosity of diagnostic logging written to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command")

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze Terraform source or a plan and report findings."
    )
    analyze_parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=Path.cwd(),
        help="Directory or .tf file with Terraform source, or a plan exported with `terraform show -json`.",
    )
    analyze_parser.add_argument(
        "--plan-file",
        type=Path,
        default=None,
        help="Path to a binary Terraform plan file generated via `terraform plan -out`.",
    )
    analyze_parser.add_argument(
        "--terraform-bin",
        default="terraform",
        help="Name or path of the Terraform executable used to render binary plans.",
    )
    analyze_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format for analysis results.",
    )
    analyze_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout.",
    )
    analyze_parser.add_argument(
        "--min-severity",
        default=None,
        help="Only run checks at or above this severity (CRITICAL, HIGH, MEDIUM, LOW, INFO).",
    )
    analyze_parser.add_argument(
        "--pillar",
        dest="pillars",
        action="append",
        default=None,
        help="Only run checks of this pillar. May be repeated or comma separated.",
    )
    analyze_parser.add_argument(
        "--rule",
        dest="rules",
        action="append",
        default=None,
        help="Only run the check with this id. May be repeated or comma separated.",
    )
    analyze_parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Never run the check with this id. May be repeated or comma separated.",
    )
    analyze_parser.add_argument(
        "--fail-on",
        choices=FAIL_ON_CHOICES,
        type=str.lower,
        default=FAIL_ON_ANY,
        help="Exit with status 1 when kept findings reach this severity ('any' or 'none' also accepted).",
    )
    analyze_parser.add_argument(
        "--config",
        type=Path,
        default=Path(DEFAULT_CONFIG_FILE),
        help="Path to the suppression configuration file.",
    )

    list_parser = subparsers.add_parser("list-rules", help="List all available checks.")
    list_parser.add_argument("--pillar", default=None, help="Only list checks of this pillar.")

    return parser


def create_service() -> AnalysisService:
    """Create an analysis service wired with the default parsers and engine."""

    return AnalysisService()


def _split_values(values: Sequence[str] | None) -> List[str]:
    if not values:
        return []
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def _build_report(result: AnalysisResult) -> AnalysisReport:
    return AnalysisReport(
        findings=result.findings,
        metadata=result.metadata,
        total_resources=result.entity_count,
        suppressed_findings=len(result.suppressed),
        expired_suppressions=result.expired_suppressions,
        active_checks=result.active_checks,
        faults=[str(fault) for fault in result.faults],
        parse_errors=[str(error) for error in result.parse_errors],
    )


def should_fail(findings: Sequence[Finding], fail_on: str) -> bool:
    """Return ``True`` when ``findings`` reach the ``fail_on`` threshold."""

    threshold = fail_on.strip().lower()
    if threshold == FAIL_ON_NONE:
        return False
    rank = severity_rank(threshold)
    if threshold == FAIL_ON_ANY or rank <= Severity.INFO.rank:
        return bool(findings)
    return any(finding.severity.rank >= rank for finding in findings)


def _format_report(
    report: AnalysisReport,
    *,
    fail_on: str,
    output_format: str,
) -> tuple[str, bool]:
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"format must be one of {', '.join(OUTPUT_FORMATS)}")

    if output_format == "json":
        output = json.dumps(report.to_dict(), indent=2)
    elif output_format == "markdown":
        output = render_markdown(report)
    else:
        output = render_table(report)

    return output, should_fail(report.findings, fail_on)


def _handle_analyze(args: argparse.Namespace) -> int:
    try:
        engine_config = EngineConfig.from_options(
            min_severity=args.min_severity,
            pillars=_split_values(args.pillars),
            rule_ids=_split_values(args.rules),
            exclude_ids=_split_values(args.exclude),
        )
        service = create_service()
        result = service.analyze(
            args.path.resolve(),
            plan_file_path=args.plan_file.resolve() if args.plan_file else None,
            engine_config=engine_config,
            config_path=args.config,
            terraform_bin=args.terraform_bin,
        )
    except (InputError, ConfigError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    report = _build_report(result)
    output, fail = _format_report(report, fail_on=args.fail_on, output_format=args.format)

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output + "\n", encoding="utf-8")
    else:
        print(output)
    return 1 if fail else 0


def _handle_list_rules(args: argparse.Namespace) -> int:
    metadata = build_registry().all_metadata()
    if args.pillar:
        try:
            pillar = Pillar.parse(args.pillar)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        metadata = [meta for meta in metadata if meta.pillar is pillar]

    print(render_rule_table(metadata))
    return 0


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by tests and the ``python -m`` invocation."""

    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command == "analyze":
        return _handle_analyze(args)
    if args.command == "list-rules":
        return _handle_list_rules(args)

    parser.print_help()
    return 0


def run() -> None:  # pragma: no cover - thin wrapper for module execution
    """Execute the CLI and exit with the produced status code."""

    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
