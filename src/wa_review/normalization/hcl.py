"""Adapt python-hcl2 parse trees into :class:`Block` values.

``hcl2.loads(..., with_meta=True)`` returns nested dicts: every block body is a
dict carrying ``__start_line__``/``__end_line__`` and labelled blocks are
wrapped in one dict per label. Object attributes never carry those keys, which
is how a nested block is told apart from a map-valued attribute.

Anything the library renders as a ``${...}`` expression (references, function
calls, conditionals, for-expressions, templates) is not a literal and is left
out of the attribute table.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import hcl2
from lark.exceptions import LarkError

from ..errors import SourceParseError
from ..models import Block

logger = logging.getLogger(__name__)

START_LINE = "__start_line__"
END_LINE = "__end_line__"
META_KEYS = frozenset({START_LINE, END_LINE})

# "$${" and "%%{" are escaped literals, anything else opening an interpolation
# or a template directive makes the string an expression
_INTERPOLATION = re.compile(r"(?<!\$)\$\{|(?<!%)%\{")
_WRAPPED_LITERAL = re.compile(
    r"^\$\{\s*(?P<value>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null)\s*\}$"
)
_ESCAPE = re.compile(r'\\(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[nrt"\\])')
_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}


class _Unresolved:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()

LabelledBody = Tuple[Tuple[str, ...], Mapping[str, Any]]


def parse_hcl(content: str, file: str = "") -> List[Block]:
    """Parse ``content`` and return its top-level blocks in declaration order.

    Raises :class:`SourceParseError` when the library rejects the text.
    """

    try:
        tree = hcl2.loads(content, with_meta=True)
    except LarkError as exc:
        raise SourceParseError(_describe(exc), file=file, line=_error_line(exc)) from exc

    blocks: List[Block] = []
    for block_type, value in tree.items():
        bodies = _block_bodies(value)
        if bodies is None:
            continue
        blocks.extend(_to_block(block_type, labels, body) for labels, body in bodies)

    # the library groups blocks by type, so restore source order
    blocks.sort(key=lambda block: block.line)
    return blocks


# ----------------------------------------------------------------------
def _to_block(block_type: str, labels: Tuple[str, ...], body: Mapping[str, Any]) -> Block:
    attributes: Dict[str, Any] = {}
    nested: Dict[str, List[Block]] = {}

    for key, value in body.items():
        if key in META_KEYS:
            continue
        bodies = _block_bodies(value)
        if bodies is not None:
            nested.setdefault(key, []).extend(
                _to_block(key, nested_labels, nested_body) for nested_labels, nested_body in bodies
            )
            continue
        literal = _literal(value)
        if literal is UNRESOLVED:
            logger.debug("Attribute %s of %s is not a literal; treating it as absent", key, block_type)
        elif literal is not None:
            attributes[_unquote(key)] = literal

    return Block(
        type=block_type,
        labels=labels,
        attributes=attributes,
        blocks=nested,
        line=int(body.get(START_LINE, 0)),
    )


def _block_bodies(value: Any) -> Optional[List[LabelledBody]]:
    """Return the block bodies held by ``value``, or ``None`` for an attribute."""

    if not isinstance(value, list) or not value:
        return None

    bodies: List[LabelledBody] = []
    for item in value:
        found = list(_unwrap_labels(item, ()))
        if not found:
            return None
        bodies.extend(found)
    return bodies


def _unwrap_labels(value: Any, labels: Tuple[str, ...]) -> Iterator[LabelledBody]:
    if not isinstance(value, Mapping):
        return
    if START_LINE in value:
        yield labels, value
        return
    for label, inner in value.items():
        yield from _unwrap_labels(inner, labels + (_unquote(label),))


def _literal(value: Any) -> Any:
    """Return the literal held by ``value``, ``None`` for null, or ``UNRESOLVED``."""

    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return _string_literal(value)
    if isinstance(value, list):
        items = [_literal(item) for item in value]
        if any(item is UNRESOLVED for item in items):
            return UNRESOLVED
        return [item for item in items if item is not None]
    if isinstance(value, Mapping):
        entries = {_unquote(str(key)): _literal(item) for key, item in value.items()}
        if any(item is UNRESOLVED for item in entries.values()):
            return UNRESOLVED
        return {key: item for key, item in entries.items() if item is not None}
    return UNRESOLVED


def _string_literal(value: str) -> Any:
    wrapped = _WRAPPED_LITERAL.match(value)
    if wrapped:
        token = wrapped.group("value")
        if token == "null":
            return None
        if token in ("true", "false"):
            return token == "true"
        return float(token)

    if _INTERPOLATION.search(value):
        return UNRESOLVED
    return _unescape(value).replace("$${", "${").replace("%%{", "%{")


def _unescape(value: str) -> str:
    def replace(match: "re.Match[str]") -> str:
        escape = match.group(1)
        if escape[0] in "uU":
            return chr(int(escape[1:], 16))
        return _SIMPLE_ESCAPES[escape]

    return _ESCAPE.sub(replace, value)


def _unquote(name: str) -> str:
    if len(name) >= 2 and name[0] == name[-1] == '"':
        return name[1:-1]
    return name


def _describe(exc: LarkError) -> str:
    first_line = str(exc).strip().splitlines()
    return first_line[0] if first_line else type(exc).__name__


def _error_line(exc: LarkError) -> int:
    line = getattr(exc, "line", None)
    if isinstance(line, int) and line > 0:
        return line
    return 0


__all__ = ["END_LINE", "START_LINE", "UNRESOLVED", "parse_hcl"]
