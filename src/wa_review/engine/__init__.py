"""Check registry and evaluation engine."""

from .engine import CheckFault, EngineConfig, EvaluationEngine
from .registry import CheckRegistry, build_registry

__all__ = ["CheckFault", "CheckRegistry", "EngineConfig", "EvaluationEngine", "build_registry"]
