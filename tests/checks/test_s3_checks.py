from __future__ import annotations

from wa_review.checks import BucketEncryption, BucketVersioning, CrossEncryptionConfig
from wa_review.models import Block, Entity, Severity


def _bucket(name: str = "logs", **attributes) -> Entity:
    return Entity(kind="aws_s3_bucket", local_name=name, attributes=attributes, source_file="main.tf", source_line=7)


def test_bucket_without_inline_encryption_is_flagged() -> None:
    findings = BucketEncryption().evaluate(_bucket())

    assert len(findings) == 1
    finding = findings[0]
    assert finding.rule_id == "S3-001"
    assert finding.severity is Severity.HIGH
    assert finding.resource == "aws_s3_bucket.logs"
    assert (finding.file, finding.line) == ("main.tf", 7)
    assert finding.doc_url == BucketEncryption.metadata.doc_url


def test_bucket_with_inline_encryption_passes() -> None:
    bucket = Entity(
        kind="aws_s3_bucket",
        local_name="logs",
        blocks={"server_side_encryption_configuration": [Block(type="server_side_encryption_configuration")]},
    )

    assert BucketEncryption().evaluate(bucket) == []


def _versioning(status=None) -> Entity:
    blocks = {}
    if status is not None:
        blocks["versioning_configuration"] = [Block(type="versioning_configuration", attributes={"status": status})]
    return Entity(kind="aws_s3_bucket_versioning", local_name="logs", blocks=blocks)


def test_versioning_enabled_passes() -> None:
    assert BucketVersioning().evaluate(_versioning("Enabled")) == []


def test_versioning_suspended_or_missing_is_flagged() -> None:
    assert [finding.rule_id for finding in BucketVersioning().evaluate(_versioning("Suspended"))] == ["S3-003"]
    assert len(BucketVersioning().evaluate(_versioning())) == 1


def _encryption_config(name: str, bucket=None) -> Entity:
    attributes = {"bucket": bucket} if bucket else {}
    return Entity(kind="aws_s3_bucket_server_side_encryption_configuration", local_name=name, attributes=attributes)


def test_cross_encryption_matches_by_bucket_name() -> None:
    entities = [_bucket("logs", bucket="company-logs"), _encryption_config("whatever", bucket="company-logs")]

    assert CrossEncryptionConfig().evaluate_all(entities) == []


def test_cross_encryption_matches_by_local_name() -> None:
    entities = [_bucket("logs"), _encryption_config("logs")]

    assert CrossEncryptionConfig().evaluate_all(entities) == []


def test_cross_encryption_reports_each_uncovered_bucket() -> None:
    entities = [
        _bucket("logs", bucket="company-logs"),
        _bucket("assets", bucket="company-assets"),
        _encryption_config("logs_sse", bucket="company-logs"),
    ]

    findings = CrossEncryptionConfig().evaluate_all(entities)

    assert [finding.resource for finding in findings] == ["aws_s3_bucket.assets"]
    assert findings[0].rule_id == "S3-012"


def test_cross_encryption_with_no_entities() -> None:
    assert CrossEncryptionConfig().evaluate_all([]) == []
