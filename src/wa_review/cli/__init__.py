"""Command-line interface package for the review tooling."""

from .app import (
    AnalysisReport,
    build_parser,
    main,
    render_markdown,
    render_rule_table,
    render_table,
    run,
    should_fail,
)

__all__ = [
    "AnalysisReport",
    "build_parser",
    "main",
    "render_markdown",
    "render_rule_table",
    "render_table",
    "run",
    "should_fail",
]
