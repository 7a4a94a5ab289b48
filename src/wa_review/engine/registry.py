"""Registry holding the check catalog."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Tuple

from ..checks import CROSS_RESOURCE_CHECKS, RESOURCE_CHECKS, Check, CrossResourceCheck, ResourceCheck
from ..models import CheckMetadata
from ..normalization.block_types import BlockTree, is_mapped


class CheckRegistry:
    """Write-once collection of single-entity and cross-entity checks.

    Checks are accepted through :meth:`register` until :meth:`freeze` is called;
    afterwards the registry is read-only and may be shared freely. Registering the
    same check twice keeps both copies.
    """

    def __init__(self, checks: Iterable[Check] = ()) -> None:
        self._resource_checks: List[ResourceCheck] = []
        self._cross_checks: List[CrossResourceCheck] = []
        self._frozen = False
        for check in checks:
            self.register(check)

    def register(self, check: Check) -> None:
        if self._frozen:
            raise RuntimeError("Check registry is frozen; register checks before evaluation starts")
        if isinstance(check, ResourceCheck):
            self._resource_checks.append(check)
        elif isinstance(check, CrossResourceCheck):
            self._cross_checks.append(check)
        else:
            raise TypeError(
                f"Expected a ResourceCheck or CrossResourceCheck instance, got {type(check).__name__}"
            )

    def freeze(self) -> "CheckRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def resource_checks(self) -> Tuple[ResourceCheck, ...]:
        return tuple(self._resource_checks)

    @property
    def cross_checks(self) -> Tuple[CrossResourceCheck, ...]:
        return tuple(self._cross_checks)

    def all_metadata(self) -> List[CheckMetadata]:
        """Return metadata for every check, single-entity checks first."""

        return [check.metadata for check in (*self._resource_checks, *self._cross_checks)]

    def unmapped_blocks(self, table: Optional[Mapping[str, BlockTree]] = None) -> List[Tuple[str, str, str]]:
        """Return ``(rule_id, kind, path)`` for nested blocks missing from ``table``.

        Such blocks are read by a check but would surface as plain attributes when
        the entity comes from a plan, so the check would never see them.
        """

        return [
            (metadata.id, kind, path)
            for metadata in self.all_metadata()
            for kind, path in metadata.nested_blocks
            if not is_mapped(kind, path, table)
        ]


def build_registry() -> CheckRegistry:
    """Instantiate the built-in catalog into a frozen registry."""

    registry = CheckRegistry(check_class() for check_class in (*RESOURCE_CHECKS, *CROSS_RESOURCE_CHECKS))
    return registry.freeze()


__all__ = ["CheckRegistry", "build_registry"]
