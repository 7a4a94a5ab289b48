"""Checks for VPC networking resources."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Set

from ..models import Block, CheckMetadata, Entity, Finding, Pillar, Severity
from .base import CrossResourceCheck, ResourceCheck

SENSITIVE_PORTS = {
    22: "SSH",
    3389: "RDP",
    3306: "MySQL",
    5432: "PostgreSQL",
    1433: "MSSQL",
    6379: "Redis",
    27017: "MongoDB",
}

OPEN_CIDRS = frozenset({"0.0.0.0/0", "::/0"})


class OpenIngress(ResourceCheck):
    """Flag world-open ingress that reaches a sensitive port.

    One finding is produced per exposed port, in ascending port order.
    """

    metadata = CheckMetadata(
        id="VPC-001",
        name="Security Group Open Ingress on Sensitive Ports",
        description=(
            "Security groups should not allow unrestricted ingress (0.0.0.0/0) on sensitive "
            "ports like SSH, RDP, and database ports."
        ),
        severity=Severity.CRITICAL,
        pillar=Pillar.SECURITY,
        resource_types=("aws_security_group", "aws_security_group_rule"),
        doc_url="https://docs.aws.amazon.com/vpc/latest/userguide/security-group-rules.html",
        nested_blocks=(("aws_security_group", "ingress"),),
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        if entity.kind == "aws_security_group":
            findings: List[Finding] = []
            for ingress in entity.get_blocks("ingress"):
                findings.extend(self._check_rule(entity, ingress, "Security group"))
            return findings

        if entity.get_str("type") != "ingress":
            return []
        return self._check_rule(entity, entity, "Security group rule")

    # ------------------------------------------------------------------
    def _check_rule(self, entity: Entity, rule: Entity | Block, label: str) -> List[Finding]:
        if not (_has_open_cidr(rule.get_list("cidr_blocks")) or _has_open_cidr(rule.get_list("ipv6_cidr_blocks"))):
            return []

        from_port = _port(rule.get_number("from_port"))
        to_port = _port(rule.get_number("to_port"))
        if from_port is None or to_port is None:
            return []

        return [
            self.finding(
                entity,
                f"{label} allows unrestricted ingress (0.0.0.0/0 or ::/0) on port {port} ({service}).",
                f"Restrict ingress on port {port} to specific CIDR blocks or security groups instead of 0.0.0.0/0.",
            )
            for port, service in sorted(SENSITIVE_PORTS.items())
            if from_port <= port <= to_port
        ]


def _has_open_cidr(cidrs: Optional[Sequence[Any]]) -> bool:
    return any(isinstance(cidr, str) and cidr in OPEN_CIDRS for cidr in cidrs or ())


def _port(value: Optional[float]) -> Optional[int]:
    if value is None or value < 0:
        return None
    return int(value)


class FlowLogTrafficType(ResourceCheck):
    metadata = CheckMetadata(
        id="VPC-002",
        name="VPC Flow Logs",
        description="VPCs should have flow logs enabled for network monitoring and security analysis.",
        severity=Severity.MEDIUM,
        pillar=Pillar.OPERATIONAL_EXCELLENCE,
        resource_types=("aws_flow_log",),
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        # Any explicit traffic type is accepted; only a missing one is flagged.
        if entity.get_str("traffic_type") is not None:
            return []
        return [
            self.finding(
                entity,
                "VPC flow log does not specify traffic_type.",
                'Set traffic_type = "ALL" to capture both accepted and rejected traffic.',
            )
        ]


class CrossFlowLog(CrossResourceCheck):
    """Every VPC needs an ``aws_flow_log`` whose ``vpc_id`` points at it."""

    metadata = CheckMetadata(
        id="VPC-007",
        name="VPC Missing Flow Logs",
        description="Every VPC should have flow logs enabled for network traffic monitoring and security analysis.",
        severity=Severity.MEDIUM,
        pillar=Pillar.SECURITY,
        resource_types=("aws_vpc", "aws_flow_log"),
        compliance_frameworks={"CIS": ("3.9",)},
    )

    def evaluate_all(self, entities: Sequence[Entity]) -> List[Finding]:
        monitored: Set[str] = set()
        for entity in entities:
            if entity.kind == "aws_flow_log":
                vpc_id = entity.get_str("vpc_id")
                if vpc_id:
                    monitored.add(vpc_id)

        findings: List[Finding] = []
        for entity in entities:
            if entity.kind != "aws_vpc":
                continue
            if entity.address in monitored or (entity.get_str("id") or "") in monitored:
                continue
            findings.append(
                self.finding(
                    entity,
                    "This VPC has no aws_flow_log resource associated with it. VPC flow logs are "
                    "essential for network traffic analysis, security monitoring, and incident investigation.",
                    "Add an aws_flow_log resource with vpc_id pointing to this VPC, traffic_type set "
                    "to ALL, and a log destination (CloudWatch Logs or S3).",
                )
            )
        return findings
