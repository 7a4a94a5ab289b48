"""Turn Terraform configuration source into normalized :class:`Entity` instances."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from ..errors import SourceParseError
from ..models import Block, Entity
from .hcl import parse_hcl

logger = logging.getLogger(__name__)

ENTITY_BLOCK_TYPES = ("resource", "data")
SKIPPED_DIRECTORIES = frozenset({".terraform", ".git"})


@dataclass(slots=True)
class SourceParseResult:
    """Entities from every file that parsed, plus the errors of those that did not."""

    entities: List[Entity] = field(default_factory=list)
    errors: List[SourceParseError] = field(default_factory=list)
    files: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SourceParser:
    """Parse ``.tf`` files, keeping only ``resource`` and ``data`` declarations."""

    def parse(self, content: str, file: str = "") -> List[Entity]:
        """Return the entities declared in ``content`` in declaration order."""

        return [
            self._to_entity(block, file)
            for block in parse_hcl(content, file)
            if block.type in ENTITY_BLOCK_TYPES
        ]

    def parse_file(self, path: str | os.PathLike[str]) -> List[Entity]:
        file_path = Path(path)
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceParseError(f"cannot read file: {exc}", file=str(file_path)) from exc
        entities = self.parse(content, str(file_path))
        logger.debug("Parsed %d entities from %s", len(entities), file_path)
        return entities

    def parse_paths(self, paths: Iterable[str | os.PathLike[str]]) -> SourceParseResult:
        """Parse each file independently; a broken file never discards the others."""

        result = SourceParseResult()
        for path in paths:
            result.files.append(str(path))
            try:
                result.entities.extend(self.parse_file(path))
            except SourceParseError as exc:
                logger.warning("Skipping %s: %s", path, exc.reason)
                result.errors.append(exc)
        return result

    def parse_directory(self, directory: str | os.PathLike[str]) -> SourceParseResult:
        return self.parse_paths(discover_source_files(directory))

    # ------------------------------------------------------------------
    def _to_entity(self, block: Block, file: str) -> Entity:
        if len(block.labels) < 2:
            raise SourceParseError(
                f"{block.type} block requires a type label and a name label",
                file=file,
                line=block.line,
            )

        kind, name = block.labels[0], block.labels[1]
        if not kind:
            raise SourceParseError(f"{block.type} block has an empty type label", file=file, line=block.line)
        if not name:
            raise SourceParseError(f"{block.type} block has an empty name label", file=file, line=block.line)

        mode = "managed"
        if block.type == "data":
            kind = f"data.{kind}"
            mode = "data"

        return Entity(
            kind=kind,
            local_name=name,
            attributes=block.attributes,
            blocks=block.blocks,
            mode=mode,
            source_file=file,
            source_line=block.line,
        )


def discover_source_files(directory: str | os.PathLike[str]) -> List[Path]:
    """Return every ``.tf`` file below ``directory`` in a stable order."""

    root = Path(directory)
    files: List[Path] = []
    for file_path in root.rglob("*.tf"):
        if SKIPPED_DIRECTORIES.intersection(file_path.relative_to(root).parts):
            continue
        if file_path.is_file():
            files.append(file_path)
    return sorted(files)


__all__ = ["SourceParseResult", "SourceParser", "discover_source_files"]
