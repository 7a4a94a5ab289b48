"""Exception hierarchy shared by the parsers, configuration and CLI."""

from __future__ import annotations


class WaReviewError(RuntimeError):
    """Base class for every error raised deliberately by the package."""


class InputError(WaReviewError):
    """Raised when an input document cannot be understood."""


class SourceParseError(InputError):
    """Raised when Terraform configuration source is syntactically malformed."""

    def __init__(self, message: str, *, file: str = "", line: int = 0) -> None:
        self.file = file
        self.line = line
        location = file or "<source>"
        if line:
            location = f"{location}:{line}"
        super().__init__(f"{location}: {message}")
        self.reason = message


class PlanParseError(InputError):
    """Raised when a plan snapshot is not valid plan JSON."""


class PlanLoaderError(InputError):
    """Raised when a plan artifact is missing or Terraform cannot render it."""


class ConfigError(WaReviewError):
    """Raised for invalid engine filters or malformed suppression files."""


__all__ = [
    "ConfigError",
    "InputError",
    "PlanLoaderError",
    "PlanParseError",
    "SourceParseError",
    "WaReviewError",
]
