from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from wa_review.config import Suppression, apply_suppressions
from wa_review.models import Finding, Pillar, Severity

NOW = datetime(2026, 6, 1, 12, 0)


def _finding(rule_id: str = "S3-001", resource: str = "aws_s3_bucket.logs") -> Finding:
    return Finding(
        rule_id=rule_id,
        rule_name=rule_id,
        severity=Severity.HIGH,
        pillar=Pillar.SECURITY,
        resource=resource,
    )


def _suppression(rule_id="S3-001", resource="aws_s3_bucket.logs", expires="2099-12-31") -> Suppression:
    return Suppression(rule_id=rule_id, resource=resource, reason="accepted", expires=expires)


def test_without_suppressions_everything_is_kept() -> None:
    findings = [_finding(), _finding("VPC-001", "aws_security_group.web")]

    result = apply_suppressions(findings, [], now=NOW)

    assert result.kept == findings
    assert result.suppressed == []
    assert result.expired == []


def test_exact_match_suppresses_only_that_pair() -> None:
    target = _finding()
    other_rule = _finding("S3-003")
    other_resource = _finding(resource="aws_s3_bucket.assets")

    result = apply_suppressions([target, other_rule, other_resource], [_suppression()], now=NOW)

    assert result.suppressed == [target]
    assert result.kept == [other_rule, other_resource]


@pytest.mark.parametrize(
    ("rule_id", "resource", "expected"),
    [
        ("*", "aws_s3_bucket.logs", ["S3-001", "S3-003"]),
        ("S3-001", "*", ["S3-001", "S3-001"]),
        ("*", "*", ["S3-001", "S3-003", "S3-001"]),
    ],
)
def test_wildcards(rule_id, resource, expected) -> None:
    findings = [_finding(), _finding("S3-003"), _finding(resource="aws_s3_bucket.assets")]

    result = apply_suppressions(findings, [_suppression(rule_id, resource)], now=NOW)

    assert [finding.rule_id for finding in result.suppressed] == expected
    assert len(result.kept) + len(result.suppressed) == len(findings)


def test_wildcard_is_not_a_glob() -> None:
    result = apply_suppressions([_finding()], [_suppression("S3-*")], now=NOW)

    assert result.suppressed == []


def test_expired_entry_still_suppresses_and_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    stale = _suppression(expires="2000-01-01")

    with caplog.at_level(logging.WARNING, logger="wa_review.config.suppression"):
        result = apply_suppressions([_finding()], [stale], now=NOW)

    assert result.suppressed == [_finding()]
    assert result.expired == [stale]
    assert "expired" in caplog.text


def test_future_expiry_is_not_reported() -> None:
    result = apply_suppressions([_finding()], [_suppression(expires="2099-12-31")], now=NOW)

    assert result.expired == []


def test_expiry_day_itself_counts_as_expired_after_midnight() -> None:
    entry = _suppression(expires="2026-06-01")

    assert entry.is_expired(NOW)
    assert not entry.is_expired(date(2026, 6, 1))
    assert entry.is_expired(date(2026, 6, 2))


def test_aware_now_is_compared_as_wall_clock_time() -> None:
    entry = _suppression(expires="2026-06-01")

    assert entry.is_expired(datetime(2026, 6, 1, 0, 30, tzinfo=timezone.utc))


def test_unparseable_expiry_never_expires() -> None:
    entry = _suppression(expires="next quarter")

    assert entry.expiry() is None
    result = apply_suppressions([_finding()], [entry], now=NOW)
    assert result.suppressed == [_finding()]
    assert result.expired == []


def test_duplicate_entries_are_judged_independently() -> None:
    stale = _suppression(expires="2000-01-01")
    fresh = _suppression(expires="2099-12-31")

    result = apply_suppressions([_finding()], [fresh, stale], now=NOW)

    assert result.expired == [stale]
    assert len(result.suppressed) == 1


def test_findings_iterable_is_consumed_once() -> None:
    findings = iter([_finding(), _finding("S3-003")])

    result = apply_suppressions(findings, [_suppression()], now=NOW)

    assert [finding.rule_id for finding in result.kept] == ["S3-003"]
    assert [finding.rule_id for finding in result.suppressed] == ["S3-001"]
