from __future__ import annotations

import pytest

from wa_review.checks import CrossFlowLog, FlowLogTrafficType, OpenIngress
from wa_review.models import Block, Entity


def _group(*rules) -> Entity:
    return Entity(
        kind="aws_security_group",
        local_name="web",
        blocks={"ingress": [Block(type="ingress", attributes=rule) for rule in rules]},
    )


def _open_rule(from_port, to_port, cidrs=("0.0.0.0/0",), key="cidr_blocks"):
    return {"from_port": from_port, "to_port": to_port, "protocol": "tcp", key: list(cidrs)}


def test_open_ssh_is_critical() -> None:
    findings = OpenIngress().evaluate(_group(_open_rule(22, 22)))

    assert len(findings) == 1
    assert findings[0].rule_id == "VPC-001"
    assert findings[0].severity.value == "CRITICAL"
    assert "port 22 (SSH)" in findings[0].description


def test_port_range_reports_every_sensitive_port_in_order() -> None:
    findings = OpenIngress().evaluate(_group(_open_rule(0, 65535)))

    ports = [finding.description.split("port ")[1].split(" ")[0] for finding in findings]
    assert ports == ["22", "1433", "3306", "3389", "5432", "6379", "27017"]


@pytest.mark.parametrize(
    "rule",
    [
        _open_rule(443, 443),
        _open_rule(22, 22, cidrs=("10.0.0.0/8",)),
        {"from_port": 22, "to_port": 22, "protocol": "tcp"},
        {"cidr_blocks": ["0.0.0.0/0"], "protocol": "-1"},
    ],
)
def test_safe_ingress_passes(rule) -> None:
    assert OpenIngress().evaluate(_group(rule)) == []


def test_ipv6_open_range_is_flagged() -> None:
    findings = OpenIngress().evaluate(_group(_open_rule(3389, 3389, cidrs=("::/0",), key="ipv6_cidr_blocks")))

    assert "RDP" in findings[0].description


def test_standalone_rule_must_be_ingress() -> None:
    attributes = {"type": "ingress", "from_port": 5432, "to_port": 5432, "cidr_blocks": ["0.0.0.0/0"]}
    ingress = Entity(kind="aws_security_group_rule", local_name="db", attributes=attributes)
    egress = Entity(kind="aws_security_group_rule", local_name="db", attributes={**attributes, "type": "egress"})

    findings = OpenIngress().evaluate(ingress)
    assert [finding.resource for finding in findings] == ["aws_security_group_rule.db"]
    assert "Security group rule allows" in findings[0].description
    assert OpenIngress().evaluate(egress) == []


def test_flow_log_traffic_type() -> None:
    check = FlowLogTrafficType()

    assert check.evaluate(Entity(kind="aws_flow_log", local_name="a", attributes={"traffic_type": "ALL"})) == []
    assert check.evaluate(Entity(kind="aws_flow_log", local_name="a", attributes={"traffic_type": "REJECT"})) == []
    assert [f.rule_id for f in check.evaluate(Entity(kind="aws_flow_log", local_name="a"))] == ["VPC-002"]


def test_cross_flow_log_matches_vpc_id_or_address() -> None:
    entities = [
        Entity(kind="aws_vpc", local_name="prod", attributes={"id": "vpc-prod"}),
        Entity(kind="aws_vpc", local_name="dev", attributes={"id": "vpc-dev"}),
        Entity(kind="aws_vpc", local_name="shared"),
        Entity(kind="aws_flow_log", local_name="prod", attributes={"vpc_id": "vpc-prod"}),
        Entity(kind="aws_flow_log", local_name="shared", attributes={"vpc_id": "aws_vpc.shared"}),
    ]

    findings = CrossFlowLog().evaluate_all(entities)

    assert [finding.resource for finding in findings] == ["aws_vpc.dev"]
    assert findings[0].rule_id == "VPC-007"
