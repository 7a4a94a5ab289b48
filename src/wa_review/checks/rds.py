"""Checks for Amazon RDS."""

from __future__ import annotations

from typing import List

from ..models import CheckMetadata, Entity, Finding, Pillar, Severity
from .base import ResourceCheck


class StorageEncryption(ResourceCheck):
    metadata = CheckMetadata(
        id="RDS-001",
        name="RDS Storage Encryption",
        description="RDS instances should have storage encryption enabled to protect data at rest.",
        severity=Severity.HIGH,
        pillar=Pillar.SECURITY,
        resource_types=("aws_db_instance",),
        doc_url="https://docs.aws.amazon.com/AmazonRDS/latest/UserGuide/Overview.Encryption.html",
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        if entity.get_bool("storage_encrypted"):
            return []
        return [
            self.finding(
                entity,
                "RDS instance does not have storage encryption enabled.",
                "Set storage_encrypted = true. Note: encryption can only be enabled at creation time.",
            )
        ]
