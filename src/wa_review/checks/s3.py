"""Checks for Amazon S3 buckets."""

from __future__ import annotations

from typing import List, Sequence, Set

from ..models import CheckMetadata, Entity, Finding, Pillar, Severity
from .base import CrossResourceCheck, ResourceCheck


class BucketEncryption(ResourceCheck):
    """S3 buckets must carry the legacy inline encryption block."""

    metadata = CheckMetadata(
        id="S3-001",
        name="S3 Bucket Server-Side Encryption",
        description="S3 buckets should have server-side encryption enabled to protect data at rest.",
        severity=Severity.HIGH,
        pillar=Pillar.SECURITY,
        resource_types=("aws_s3_bucket",),
        doc_url="https://docs.aws.amazon.com/AmazonS3/latest/userguide/serv-side-encryption.html",
        nested_blocks=(("aws_s3_bucket", "server_side_encryption_configuration"),),
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        # Provider v4+ moves encryption to a separate resource; S3-012 covers that.
        if entity.has_block("server_side_encryption_configuration"):
            return []
        return [
            self.finding(
                entity,
                "S3 bucket does not have inline server-side encryption configuration. Ensure an "
                "aws_s3_bucket_server_side_encryption_configuration resource exists for this bucket.",
                "Add an aws_s3_bucket_server_side_encryption_configuration resource with "
                "sse_algorithm set to 'aws:kms' or 'AES256'.",
            )
        ]


class BucketVersioning(ResourceCheck):
    metadata = CheckMetadata(
        id="S3-003",
        name="S3 Bucket Versioning",
        description="S3 buckets should have versioning enabled for data protection and recovery.",
        severity=Severity.MEDIUM,
        pillar=Pillar.RELIABILITY,
        resource_types=("aws_s3_bucket_versioning",),
        doc_url="https://docs.aws.amazon.com/AmazonS3/latest/userguide/Versioning.html",
        nested_blocks=(("aws_s3_bucket_versioning", "versioning_configuration"),),
    )

    def evaluate(self, entity: Entity) -> List[Finding]:
        configuration = entity.first_block("versioning_configuration")
        if configuration is not None and configuration.get_str("status") == "Enabled":
            return []
        return [
            self.finding(
                entity,
                "S3 bucket versioning is not enabled.",
                "Set versioning_configuration status to 'Enabled' in the aws_s3_bucket_versioning resource.",
            )
        ]


class CrossEncryptionConfig(CrossResourceCheck):
    """Every bucket needs a matching server-side encryption configuration resource.

    A configuration matches a bucket when its ``bucket`` attribute equals the
    bucket's ``bucket`` name, or when either local name or address lines up.
    """

    metadata = CheckMetadata(
        id="S3-012",
        name="S3 Bucket Missing Server-Side Encryption Configuration",
        description=(
            "Every S3 bucket should have an aws_s3_bucket_server_side_encryption_configuration "
            "resource to ensure data at rest is encrypted."
        ),
        severity=Severity.HIGH,
        pillar=Pillar.SECURITY,
        resource_types=("aws_s3_bucket", "aws_s3_bucket_server_side_encryption_configuration"),
        compliance_frameworks={"CIS": ("2.1.1",)},
    )

    def evaluate_all(self, entities: Sequence[Entity]) -> List[Finding]:
        encrypted: Set[str] = set()
        for entity in entities:
            if entity.kind != "aws_s3_bucket_server_side_encryption_configuration":
                continue
            bucket = entity.get_str("bucket")
            if bucket:
                encrypted.add(bucket)
            encrypted.add(entity.local_name)

        findings: List[Finding] = []
        for entity in entities:
            if entity.kind != "aws_s3_bucket":
                continue
            candidates = {entity.get_str("bucket") or "", entity.address, entity.local_name}
            if candidates & encrypted:
                continue
            findings.append(
                self.finding(
                    entity,
                    "This S3 bucket has no aws_s3_bucket_server_side_encryption_configuration "
                    "resource. Data at rest may be unencrypted.",
                    "Add an aws_s3_bucket_server_side_encryption_configuration resource with an "
                    "AES256 or aws:kms rule.",
                )
            )
        return findings
