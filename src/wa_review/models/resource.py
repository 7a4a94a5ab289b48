"""Resource models shared by the source parser, the plan parser and the checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

AttributeValue = Union[str, bool, float, Tuple["AttributeValue", ...], Mapping[str, "AttributeValue"]]
Attributes = Mapping[str, AttributeValue]


class ValueKind(str, Enum):
    """Tag describing which variant an attribute value holds."""

    STRING = "string"
    BOOL = "bool"
    NUMBER = "number"
    LIST = "list"
    MAP = "map"

    @classmethod
    def of(cls, value: object) -> "ValueKind":
        # bool before number: bool is an int subclass
        if isinstance(value, bool):
            return cls.BOOL
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, Mapping):
            return cls.MAP
        if isinstance(value, (tuple, list)):
            return cls.LIST
        raise TypeError(f"Unsupported attribute value type: {type(value).__name__}")


def freeze_value(value: Any) -> AttributeValue:
    """Return a read-only copy of ``value`` with numbers surfaced as ``float``."""

    kind = ValueKind.of(value)
    if kind is ValueKind.NUMBER:
        return float(value)
    if kind is ValueKind.LIST:
        return tuple(freeze_value(item) for item in value if item is not None)
    if kind is ValueKind.MAP:
        return MappingProxyType(
            {str(key): freeze_value(item) for key, item in value.items() if item is not None}
        )
    return value


def freeze_attributes(attributes: Mapping[str, Any] | None) -> Attributes:
    if isinstance(attributes, MappingProxyType):
        return attributes
    return MappingProxyType(
        {name: freeze_value(value) for name, value in (attributes or {}).items() if value is not None}
    )


def freeze_blocks(blocks: Mapping[str, Iterable["Block"]] | None) -> Mapping[str, Tuple["Block", ...]]:
    if isinstance(blocks, MappingProxyType):
        return blocks
    return MappingProxyType({name: tuple(items) for name, items in (blocks or {}).items()})


class _AttributeAccess:
    """Typed read accessors shared by :class:`Entity` and :class:`Block`.

    Every ``get_*`` accessor returns ``None`` both when the attribute is absent and
    when it holds another variant. Use :meth:`value_kind` to tell the two apart.
    """

    __slots__ = ()

    attributes: Attributes
    blocks: Mapping[str, Tuple["Block", ...]]

    def has_attr(self, name: str) -> bool:
        return name in self.attributes

    def value_kind(self, name: str) -> Optional[ValueKind]:
        """Return the variant tag of ``name`` or ``None`` when it is absent."""

        if name not in self.attributes:
            return None
        return ValueKind.of(self.attributes[name])

    def get_str(self, name: str) -> Optional[str]:
        return self._typed(name, ValueKind.STRING)

    def get_bool(self, name: str) -> Optional[bool]:
        return self._typed(name, ValueKind.BOOL)

    def get_number(self, name: str) -> Optional[float]:
        return self._typed(name, ValueKind.NUMBER)

    def get_list(self, name: str) -> Optional[Tuple[AttributeValue, ...]]:
        return self._typed(name, ValueKind.LIST)

    def get_map(self, name: str) -> Optional[Mapping[str, AttributeValue]]:
        return self._typed(name, ValueKind.MAP)

    def has_block(self, block_type: str) -> bool:
        return bool(self.blocks.get(block_type))

    def get_blocks(self, block_type: str) -> Tuple["Block", ...]:
        return self.blocks.get(block_type, ())

    def first_block(self, block_type: str) -> Optional["Block"]:
        blocks = self.get_blocks(block_type)
        return blocks[0] if blocks else None

    def _typed(self, name: str, kind: ValueKind) -> Any:
        if self.value_kind(name) is not kind:
            return None
        return self.attributes[name]


@dataclass(frozen=True, slots=True)
class Block(_AttributeAccess):
    """A nested configuration fragment inside an entity or another block."""

    type: str
    labels: Tuple[str, ...] = ()
    attributes: Attributes = field(default_factory=dict)
    blocks: Mapping[str, Tuple["Block", ...]] = field(default_factory=dict)
    line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "attributes", freeze_attributes(self.attributes))
        object.__setattr__(self, "blocks", freeze_blocks(self.blocks))


@dataclass(frozen=True, slots=True)
class Entity(_AttributeAccess):
    """Normalized representation of one ``resource`` or ``data`` declaration."""

    kind: str
    local_name: str
    attributes: Attributes = field(default_factory=dict)
    blocks: Mapping[str, Tuple[Block, ...]] = field(default_factory=dict)
    full_address: Optional[str] = None
    mode: str = "managed"
    source_file: str = field(default="", compare=False)
    source_line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.kind:
            raise ValueError("Entity kind must not be empty")
        object.__setattr__(self, "attributes", freeze_attributes(self.attributes))
        object.__setattr__(self, "blocks", freeze_blocks(self.blocks))

    @property
    def address(self) -> str:
        """Return the plan address when known, otherwise ``kind.local_name``."""

        if self.full_address:
            return self.full_address
        return f"{self.kind}.{self.local_name}"
