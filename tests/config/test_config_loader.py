from __future__ import annotations

from pathlib import Path

import pytest

from wa_review.config import Suppression, load_config, parse_config
from wa_review.errors import ConfigError

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def test_missing_file_yields_empty_config(tmp_path: Path) -> None:
    config = load_config(tmp_path / ".wa-review.yaml")

    assert config.suppressions == []
    assert config.version == ""


def test_load_fixture_normalizes_dates() -> None:
    config = load_config(FIXTURES / "wa-review.yaml")

    assert config.version == "1"
    assert config.suppressions == [
        Suppression(
            rule_id="S3-001",
            resource="aws_s3_bucket.data",
            reason="Encryption handled by bucket policy during migration",
            expires="2099-12-31",
        ),
        Suppression(
            rule_id="*",
            resource="aws_vpc.main",
            reason="Shared VPC owned by the network team",
            expires="2020-01-01",
        ),
    ]


def test_empty_file_yields_empty_config(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path).suppressions == []


def test_missing_field_names_the_entry(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "suppressions:\n"
        "  - rule_id: S3-001\n"
        "    resource: aws_s3_bucket.a\n"
        "    reason: ok\n"
        "    expires: 2099-01-01\n"
        "  - rule_id: S3-003\n"
        "    resource: aws_s3_bucket.b\n"
        "    expires: 2099-01-01\n",
        encoding="utf-8",
    )

    with pytest.raises(ConfigError, match=r"suppression\[1\]: reason is required"):
        load_config(path)


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("suppressions: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)


@pytest.mark.parametrize(
    ("data", "message"),
    [
        (["not", "a", "mapping"], "must contain a mapping"),
        ({"suppressions": {"rule_id": "S3-001"}}, "must be a list"),
        ({"suppressions": ["S3-001"]}, r"suppression\[0\] must be a mapping"),
    ],
)
def test_parse_config_rejects_malformed_shapes(data, message) -> None:
    with pytest.raises(ConfigError, match=message):
        parse_config(data, source="inline")
