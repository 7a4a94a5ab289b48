"""Checks for AWS KMS keys."""

from __future__ import annotations

from typing import List

from ..models import CheckMetadata, Entity, Finding, Pillar, Severity
from .base import ResourceCheck


class KeyRotation(ResourceCheck):
    metadata = CheckMetadata(
        id="KMS-001",
        name="KMS Key Rotation Should Be Enabled",
        description="KMS key should have automatic key rotation enabled for enhanced security.",
        severity=Severity.HIGH,
        pillar=Pillar.SECURITY,
        resource_types=("aws_kms_key",),
        doc_url="https://docs.aws.amazon.com/kms/latest/developerguide/rotate-keys.html",
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        if entity.get_bool("enable_key_rotation"):
            return []
        return [
            self.finding(
                entity,
                "KMS key does not have automatic key rotation enabled.",
                "Set enable_key_rotation = true to enable automatic annual key rotation.",
            )
        ]
