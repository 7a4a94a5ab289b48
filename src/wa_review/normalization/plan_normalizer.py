"""Conversion helpers that turn Terraform plan JSON into normalized entities."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..errors import PlanParseError
from ..models import Block, Entity
from .block_types import BlockTree, block_tree

logger = logging.getLogger(__name__)

PLAN_SOURCE = "tfplan"


class PlanNormalizer:
    """Normalize ``terraform show -json`` output into :class:`Entity` instances.

    Resources are read from ``planned_values`` (root module first, then child
    modules depth-first). Resources whose only planned action is ``delete`` are
    skipped since they will not exist after apply.
    """

    def __init__(self, block_types: Optional[Mapping[str, BlockTree]] = None) -> None:
        self._block_types = block_types

    def parse(self, document: bytes | str | Mapping[str, Any], *, source: str = PLAN_SOURCE) -> List[Entity]:
        """Return one entity per planned resource instance.

        Raises :class:`PlanParseError` for anything that is not a complete plan;
        no partial result is ever returned.
        """

        plan = self._decode(document)

        planned_values = plan.get("planned_values")
        if not isinstance(planned_values, Mapping):
            raise PlanParseError("Plan JSON has no 'planned_values' object")
        root_module = planned_values.get("root_module")
        if not isinstance(root_module, Mapping):
            raise PlanParseError("Plan JSON has no 'planned_values.root_module' object")

        destroyed = _destroy_only(plan.get("resource_changes") or [])
        entities: List[Entity] = []
        for resource in self._walk_module(root_module):
            address = resource.get("address")
            if address in destroyed:
                logger.debug("Skipping %s: planned for deletion only", address)
                continue
            entities.append(self._normalize_resource(resource, source))
        return entities

    # ------------------------------------------------------------------
    def _decode(self, document: bytes | str | Mapping[str, Any]) -> Mapping[str, Any]:
        if isinstance(document, Mapping):
            return document

        try:
            plan = json.loads(document)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PlanParseError(f"Invalid plan JSON: {exc}") from exc

        if not isinstance(plan, Mapping):
            raise PlanParseError("Plan JSON must be an object")
        return plan

    def _walk_module(self, module: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
        resources = module.get("resources")
        if resources is None:
            resources = []
        if not isinstance(resources, list):
            raise PlanParseError("Plan module 'resources' must be a list")
        for resource in resources:
            if not isinstance(resource, Mapping):
                raise PlanParseError("Plan resource entries must be objects")
            yield resource

        for child in module.get("child_modules") or []:
            if not isinstance(child, Mapping):
                raise PlanParseError("Plan 'child_modules' entries must be objects")
            yield from self._walk_module(child)

    def _normalize_resource(self, resource: Mapping[str, Any], source: str) -> Entity:
        address = resource.get("address")
        resource_type = resource.get("type")
        name = resource.get("name")
        for field_name, value in (("address", address), ("type", resource_type), ("name", name)):
            if not isinstance(value, str) or not value:
                raise PlanParseError(
                    f"Plan resource {address or '<unknown>'} has a missing or empty '{field_name}'"
                )

        mode = str(resource.get("mode") or "managed")
        kind = f"data.{resource_type}" if mode == "data" else resource_type

        values = resource.get("values")
        if values is None:
            values = {}
        if not isinstance(values, Mapping):
            raise PlanParseError(f"Plan resource {address} has non-object 'values'")

        attributes, blocks = self._split_values(values, self._tree(resource_type))
        return Entity(
            kind=kind,
            local_name=name,
            attributes=attributes,
            blocks=blocks,
            full_address=address,
            mode=mode,
            source_file=source,
            source_line=0,
        )

    def _tree(self, resource_type: str) -> BlockTree:
        return block_tree(resource_type, (), self._block_types) or {}

    def _split_values(
        self, values: Mapping[str, Any], tree: BlockTree
    ) -> Tuple[Dict[str, Any], Dict[str, List[Block]]]:
        attributes: Dict[str, Any] = {}
        blocks: Dict[str, List[Block]] = {}

        for key, value in values.items():
            # null means "known after apply": treat as not configured
            if value is None:
                continue
            nested_tree = tree.get(key)
            items = _block_items(value) if nested_tree is not None else None
            if items is None:
                attributes[key] = value
                continue
            converted = [self._to_block(key, item, nested_tree) for item in items]
            if converted:
                blocks[key] = converted

        return attributes, blocks

    def _to_block(self, block_type: str, item: Mapping[str, Any], tree: BlockTree) -> Block:
        attributes, blocks = self._split_values(item, tree)
        return Block(type=block_type, attributes=attributes, blocks=blocks)


def _destroy_only(resource_changes: Iterable[Any]) -> Set[str]:
    """Return the addresses whose only planned action is ``delete``.

    A replacement (``["delete", "create"]``) keeps its resource.
    """

    destroyed: Set[str] = set()
    for change in resource_changes:
        if not isinstance(change, Mapping) or not change.get("address"):
            continue
        detail = change.get("change") or {}
        if list(detail.get("actions") or []) == ["delete"]:
            destroyed.add(str(change["address"]))
    return destroyed


def _block_items(value: Any) -> Optional[List[Mapping[str, Any]]]:
    """Return ``value`` as block bodies, or ``None`` when it is not block shaped."""

    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, list) and all(isinstance(item, Mapping) for item in value):
        return list(value)
    return None


__all__ = ["PLAN_SOURCE", "PlanNormalizer"]
