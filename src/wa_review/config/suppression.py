"""Suppression entries and the filter that applies them to findings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from ..models import Finding

logger = logging.getLogger(__name__)

WILDCARD = "*"
EXPIRY_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True, slots=True)
class Suppression:
    """Accepted exception for a rule/resource pair.

    Both ``rule_id`` and ``resource`` accept ``*`` as a wildcard. ``expires`` is a
    ``YYYY-MM-DD`` date; an expired entry keeps suppressing but is reported.
    """

    rule_id: str
    resource: str
    reason: str
    expires: str

    def matches(self, finding: Finding) -> bool:
        rule_match = self.rule_id == WILDCARD or self.rule_id == finding.rule_id
        resource_match = self.resource == WILDCARD or self.resource == finding.resource
        return rule_match and resource_match

    def expiry(self) -> Optional[datetime]:
        """Return midnight of the expiry date, or ``None`` when it does not parse."""

        try:
            return datetime.strptime(self.expires, EXPIRY_FORMAT)
        except (TypeError, ValueError):
            return None

    def is_expired(self, now: datetime | date) -> bool:
        expiry = self.expiry()
        if expiry is None:
            return False
        return _as_naive_datetime(now) > expiry

    def describe(self) -> str:
        return f"{self.rule_id} on {self.resource} (expired {self.expires}): {self.reason}"


@dataclass(slots=True)
class SuppressionResult:
    kept: List[Finding] = field(default_factory=list)
    suppressed: List[Finding] = field(default_factory=list)
    expired: List[Suppression] = field(default_factory=list)


def apply_suppressions(
    findings: Iterable[Finding],
    suppressions: Sequence[Suppression],
    now: datetime | date | None = None,
) -> SuppressionResult:
    """Partition ``findings`` into kept and suppressed, listing expired entries.

    Expiry is judged for each entry on its own, so two entries for the same
    rule/resource pair with different dates are reported independently.
    """

    result = SuppressionResult()
    if not suppressions:
        result.kept = list(findings)
        return result

    moment = datetime.now() if now is None else now
    for suppression in suppressions:
        if suppression.is_expired(moment):
            logger.warning("Suppression has expired: %s", suppression.describe())
            result.expired.append(suppression)

    for finding in findings:
        if any(suppression.matches(finding) for suppression in suppressions):
            result.suppressed.append(finding)
        else:
            result.kept.append(finding)
    return result


def _as_naive_datetime(moment: datetime | date) -> datetime:
    if isinstance(moment, datetime):
        return moment.replace(tzinfo=None)
    return datetime(moment.year, moment.month, moment.day)


__all__ = ["Suppression", "SuppressionResult", "apply_suppressions"]
