"""Parsers that normalize Terraform source and plan JSON into entities."""

from .block_types import BLOCK_TYPES, block_tree, is_mapped
from .hcl import UNRESOLVED, parse_hcl
from .plan_normalizer import PlanNormalizer
from .source_parser import SourceParser, SourceParseResult, discover_source_files

__all__ = [
    "BLOCK_TYPES",
    "PlanNormalizer",
    "SourceParseResult",
    "SourceParser",
    "UNRESOLVED",
    "block_tree",
    "discover_source_files",
    "is_mapped",
    "parse_hcl",
]
