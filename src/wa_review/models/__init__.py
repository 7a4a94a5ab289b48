"""Data models for normalized Terraform entities, checks and findings."""

from .finding import CheckMetadata, Finding, Pillar, Severity, severity_rank
from .resource import AttributeValue, Block, Entity, ValueKind, freeze_value

__all__ = [
    "AttributeValue",
    "Block",
    "CheckMetadata",
    "Entity",
    "Finding",
    "Pillar",
    "Severity",
    "ValueKind",
    "freeze_value",
    "severity_rank",
]
