"""Check contracts implemented by every rule in the catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, List, Optional, Sequence

from ..models import CheckMetadata, Entity, Finding


class Check(ABC):
    """Common base for single-entity and cross-entity checks.

    Subclasses declare their static :class:`CheckMetadata` as the ``metadata``
    class attribute. Checks must be pure: they never mutate entities and keep no
    state between invocations.
    """

    metadata: ClassVar[CheckMetadata]

    @property
    def id(self) -> str:
        return self.metadata.id

    def finding(
        self,
        entity: Entity,
        description: str,
        remediation: str,
        *,
        doc_url: Optional[str] = None,
    ) -> Finding:
        """Build a finding for ``entity`` carrying this check's classification."""

        meta = self.metadata
        return Finding(
            rule_id=meta.id,
            rule_name=meta.name,
            severity=meta.severity,
            pillar=meta.pillar,
            resource=entity.address,
            file=entity.source_file,
            line=entity.source_line,
            description=description,
            remediation=remediation,
            doc_url=doc_url if doc_url is not None else meta.doc_url,
        )


class ResourceCheck(Check):
    """A check evaluated once per entity whose kind is in ``resource_types``."""

    @abstractmethod
    def evaluate(self, entity: Entity) -> List[Finding]:
        """Return the findings for ``entity``; an empty list means it passed."""


class CrossResourceCheck(Check):
    """A check evaluated once per run with every entity.

    Use it when a verdict requires relating two different entities, for example
    "every ``aws_vpc`` has an ``aws_flow_log``". ``resource_types`` is descriptive.
    """

    @abstractmethod
    def evaluate_all(self, entities: Sequence[Entity]) -> List[Finding]:
        """Return findings across the complete entity set."""


__all__ = ["Check", "CrossResourceCheck", "ResourceCheck"]
