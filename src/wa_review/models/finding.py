"""Finding and check metadata models shared across the engine and reporting layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class Severity(str, Enum):
    """Severity levels supported by the review tooling."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        return severity_rank(self)

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Return the severity named by ``value`` regardless of case."""

        try:
            return cls(str(value).strip().upper())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of {choices})") from None


_SEVERITY_RANK = {
    Severity.CRITICAL: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 3,
    Severity.LOW: 2,
    Severity.INFO: 1,
}


def severity_rank(severity: Severity | str | None) -> int:
    """Return the numeric rank of ``severity``; unknown values rank ``0``."""

    if severity is None:
        return 0
    if not isinstance(severity, Severity):
        try:
            severity = Severity(str(severity).upper())
        except ValueError:
            return 0
    return _SEVERITY_RANK[severity]


class Pillar(str, Enum):
    """AWS Well-Architected Framework pillars used to categorize checks."""

    SECURITY = "Security"
    RELIABILITY = "Reliability"
    OPERATIONAL_EXCELLENCE = "OperationalExcellence"
    PERFORMANCE_EFFICIENCY = "PerformanceEfficiency"
    COST_OPTIMIZATION = "CostOptimization"
    SUSTAINABILITY = "Sustainability"

    @property
    def short_name(self) -> str:
        return _PILLAR_SHORT_NAMES[self]

    @classmethod
    def parse(cls, value: str) -> "Pillar":
        normalized = str(value).strip().replace(" ", "").replace("_", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown pillar '{value}' (expected one of {choices})")


_PILLAR_SHORT_NAMES = {
    Pillar.SECURITY: "Security",
    Pillar.RELIABILITY: "Reliability",
    Pillar.OPERATIONAL_EXCELLENCE: "Ops Excellence",
    Pillar.PERFORMANCE_EFFICIENCY: "Performance",
    Pillar.COST_OPTIMIZATION: "Cost",
    Pillar.SUSTAINABILITY: "Sustainability",
}


@dataclass(frozen=True, slots=True)
class CheckMetadata:
    """Static description of a check's identity and classification.

    ``nested_blocks`` lists the ``(kind, "block/nested")`` paths the check reads so
    the plan block table can be validated against the catalog at startup.
    """

    id: str
    name: str
    description: str
    severity: Severity
    pillar: Pillar
    resource_types: Tuple[str, ...] = ()
    doc_url: Optional[str] = None
    compliance_frameworks: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    nested_blocks: Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "severity": self.severity.value,
            "pillar": self.pillar.value,
            "resource_types": list(self.resource_types),
        }
        if self.doc_url:
            payload["doc_url"] = self.doc_url
        if self.compliance_frameworks:
            payload["compliance_frameworks"] = {
                framework: list(controls)
                for framework, controls in self.compliance_frameworks.items()
            }
        return payload


@dataclass(frozen=True, slots=True)
class Finding:
    """A single violation reported by a check against one entity."""

    rule_id: str
    rule_name: str
    severity: Severity
    pillar: Pillar
    resource: str
    file: str = ""
    line: int = 0
    description: str = ""
    remediation: str = ""
    doc_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "severity": self.severity.value,
            "pillar": self.pillar.value,
            "resource": self.resource,
            "file": self.file,
            "line": self.line,
            "description": self.description,
            "remediation": self.remediation,
        }
        if self.doc_url:
            payload["doc_url"] = self.doc_url
        return payload
