"""Checks for AWS CloudTrail."""

from __future__ import annotations

from typing import List, Sequence, Set

from ..models import CheckMetadata, Entity, Finding, Pillar, Severity
from .base import CrossResourceCheck, ResourceCheck


class MultiRegionTrail(ResourceCheck):
    metadata = CheckMetadata(
        id="CT-001",
        name="CloudTrail Multi-Region",
        description="CloudTrail should be enabled in all regions to capture API activity across the account.",
        severity=Severity.HIGH,
        pillar=Pillar.SECURITY,
        resource_types=("aws_cloudtrail",),
        doc_url="https://docs.aws.amazon.com/awscloudtrail/latest/userguide/receive-cloudtrail-log-files-from-multiple-regions.html",
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        if entity.get_bool("is_multi_region_trail"):
            return []
        return [
            self.finding(
                entity,
                "CloudTrail is not configured as a multi-region trail.",
                "Set is_multi_region_trail = true to capture events from all AWS regions.",
            )
        ]


class CrossLogGroup(CrossResourceCheck):
    """Trails must send events to a log group declared in the same configuration.

    A trail without ``cloud_watch_logs_group_arn`` is only flagged when no log
    group exists at all; a trail with an ARN is flagged when no declared log
    group's name, local name or address appears in it.
    """

    metadata = CheckMetadata(
        id="CT-007",
        name="CloudTrail Missing CloudWatch Log Group",
        description=(
            "CloudTrail should reference an aws_cloudwatch_log_group that is defined in the same "
            "Terraform plan for traceability and retention control."
        ),
        severity=Severity.HIGH,
        pillar=Pillar.OPERATIONAL_EXCELLENCE,
        resource_types=("aws_cloudtrail", "aws_cloudwatch_log_group"),
    )

    def evaluate_all(self, entities: Sequence[Entity]) -> List[Finding]:
        log_groups: Set[str] = set()
        for entity in entities:
            if entity.kind == "aws_cloudwatch_log_group":
                name = entity.get_str("name")
                if name:
                    log_groups.add(name)
                log_groups.add(entity.local_name)
                log_groups.add(entity.address)

        findings: List[Finding] = []
        for entity in entities:
            if entity.kind != "aws_cloudtrail":
                continue

            arn = entity.get_str("cloud_watch_logs_group_arn")
            if not arn:
                if not log_groups:
                    findings.append(
                        self.finding(
                            entity,
                            "This CloudTrail has no CloudWatch log group configured and no "
                            "aws_cloudwatch_log_group resource exists in the plan.",
                            "Add an aws_cloudwatch_log_group resource and reference it in the "
                            "CloudTrail's cloud_watch_logs_group_arn attribute.",
                        )
                    )
                continue

            if any(group in arn for group in log_groups):
                continue
            findings.append(
                self.finding(
                    entity,
                    "This CloudTrail references a CloudWatch log group ARN but no matching "
                    "aws_cloudwatch_log_group resource was found in the plan.",
                    "Add an aws_cloudwatch_log_group resource whose name matches the log group "
                    "referenced in cloud_watch_logs_group_arn.",
                )
            )
        return findings
