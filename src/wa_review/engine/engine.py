"""Evaluation engine dispatching entities to the active checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from ..checks import Check, CrossResourceCheck, ResourceCheck
from ..errors import ConfigError
from ..models import CheckMetadata, Entity, Finding, Pillar, Severity
from .registry import CheckRegistry, build_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Filters deciding which checks run.

    ``exclude_ids`` always wins. ``rule_ids`` and ``pillars`` are allow-lists and
    are ignored when empty. ``min_severity`` keeps checks ranked at or above it.
    """

    min_severity: Optional[Severity] = None
    pillars: FrozenSet[Pillar] = field(default_factory=frozenset)
    rule_ids: FrozenSet[str] = field(default_factory=frozenset)
    exclude_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_options(
        cls,
        *,
        min_severity: Optional[str] = None,
        pillars: Iterable[str] = (),
        rule_ids: Iterable[str] = (),
        exclude_ids: Iterable[str] = (),
    ) -> "EngineConfig":
        """Build a configuration from raw command-line style strings."""

        try:
            severity = Severity.parse(min_severity) if min_severity else None
            pillar_set = frozenset(Pillar.parse(pillar) for pillar in pillars if pillar)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        return cls(
            min_severity=severity,
            pillars=pillar_set,
            rule_ids=frozenset(rule_id for rule_id in rule_ids if rule_id),
            exclude_ids=frozenset(rule_id for rule_id in exclude_ids if rule_id),
        )

    def allows(self, metadata: CheckMetadata) -> bool:
        if metadata.id in self.exclude_ids:
            return False
        if self.rule_ids and metadata.id not in self.rule_ids:
            return False
        if self.pillars and metadata.pillar not in self.pillars:
            return False
        if self.min_severity is not None and metadata.severity.rank < self.min_severity.rank:
            return False
        return True


@dataclass(frozen=True, slots=True)
class CheckFault:
    """A single check invocation that raised instead of returning findings."""

    rule_id: str
    address: Optional[str]
    error: BaseException

    def __str__(self) -> str:
        target = self.address or "<all entities>"
        return f"{self.rule_id} failed on {target}: {self.error}"


class EvaluationEngine:
    """Run the active subset of a :class:`CheckRegistry` over a set of entities."""

    def __init__(self, config: Optional[EngineConfig] = None, registry: Optional[CheckRegistry] = None) -> None:
        self.config = config or EngineConfig()
        self.registry = registry or build_registry()
        self.resource_checks: Sequence[ResourceCheck] = tuple(
            check for check in self.registry.resource_checks if self.config.allows(check.metadata)
        )
        self.cross_checks: Sequence[CrossResourceCheck] = tuple(
            check for check in self.registry.cross_checks if self.config.allows(check.metadata)
        )
        self.faults: List[CheckFault] = []

        for rule_id, kind, path in self.registry.unmapped_blocks():
            logger.warning(
                "Check %s reads nested block %s on %s, which the plan block table does not map; "
                "plan input will expose it as an attribute",
                rule_id,
                path,
                kind,
            )

    def active_metadata(self) -> List[CheckMetadata]:
        return [check.metadata for check in (*self.resource_checks, *self.cross_checks)]

    def analyze(self, entities: Iterable[Entity]) -> List[Finding]:
        """Evaluate ``entities`` and return every finding in invocation order.

        Faults from individual checks are logged and recorded in :attr:`faults`
        (reset on each call) without aborting the run.
        """

        entity_list = tuple(entities)
        self.faults = []

        by_kind: Dict[str, List[ResourceCheck]] = {}
        for check in self.resource_checks:
            for kind in dict.fromkeys(check.metadata.resource_types):
                by_kind.setdefault(kind, []).append(check)

        findings: List[Finding] = []
        for entity in entity_list:
            for check in by_kind.get(entity.kind, ()):
                findings.extend(self._invoke(check, entity.address, check.evaluate, entity))

        for check in self.cross_checks:
            findings.extend(self._invoke(check, None, check.evaluate_all, entity_list))

        logger.info(
            "Evaluated %d entities with %d checks: %d findings",
            len(entity_list),
            len(self.resource_checks) + len(self.cross_checks),
            len(findings),
        )
        return findings

    # ------------------------------------------------------------------
    def _invoke(self, check: Check, address: Optional[str], method, argument) -> List[Finding]:
        try:
            return list(method(argument) or [])
        except Exception as exc:  # noqa: BLE001
            logger.error("Check %s raised while evaluating %s", check.id, address or "all entities", exc_info=True)
            self.faults.append(CheckFault(rule_id=check.id, address=address, error=exc))
            return []


__all__ = ["CheckFault", "EngineConfig", "EvaluationEngine"]
