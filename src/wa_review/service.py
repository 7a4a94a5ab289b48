"""Orchestration layer used by the CLI to run a well-architected review."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Mapping, MutableMapping, Sequence

from .adapters import PlanLoader
from .config import ReviewConfig, Suppression, apply_suppressions, load_config
from .engine import CheckFault, EngineConfig, EvaluationEngine
from .errors import InputError, SourceParseError
from .models import CheckMetadata, Entity, Finding
from .normalization import PlanNormalizer, SourceParser

logger = logging.getLogger(__name__)

PLAN_SUFFIX = ".json"
SOURCE_SUFFIX = ".tf"


@dataclass(slots=True)
class AnalysisResult:
    """Result returned by :class:`AnalysisService` runs."""

    findings: List[Finding]
    entity_count: int
    suppressed: List[Finding] = field(default_factory=list)
    expired_suppressions: List[Suppression] = field(default_factory=list)
    faults: List[CheckFault] = field(default_factory=list)
    parse_errors: List[SourceParseError] = field(default_factory=list)
    active_checks: List[CheckMetadata] = field(default_factory=list)
    metadata: Mapping[str, Any] = field(default_factory=dict)


PlanLoaderFactory = Callable[..., PlanLoader]
EngineFactory = Callable[[EngineConfig], EvaluationEngine]
ConfigLoader = Callable[[Path], ReviewConfig]


class AnalysisService:
    """High level service responsible for input ingestion, evaluation and suppression."""

    def __init__(
        self,
        *,
        plan_loader_factory: PlanLoaderFactory | None = None,
        source_parser: SourceParser | None = None,
        plan_normalizer: PlanNormalizer | None = None,
        engine_factory: EngineFactory | None = None,
        config_loader: ConfigLoader | None = None,
    ) -> None:
        self._plan_loader_factory = plan_loader_factory or PlanLoader
        self._source_parser = source_parser or SourceParser()
        self._plan_normalizer = plan_normalizer or PlanNormalizer()
        self._engine_factory = engine_factory or EvaluationEngine
        self._config_loader = config_loader or load_config

    # ------------------------------------------------------------------
    def analyze(
        self,
        path: Path,
        *,
        plan_file_path: Path | None = None,
        engine_config: EngineConfig | None = None,
        config_path: Path | None = None,
        terraform_bin: str = "terraform",
        now: datetime | None = None,
    ) -> AnalysisResult:
        """Evaluate the configuration or plan at ``path``.

        ``path`` is read as plan JSON when it ends in ``.json``, and as Terraform
        source when it is a directory or a ``.tf`` file. ``plan_file_path`` names a
        binary plan rendered through ``terraform show -json`` instead.
        """

        # configuration problems surface before any input is read
        review_config = self._config_loader(config_path) if config_path else ReviewConfig()
        engine = self._engine_factory(engine_config or EngineConfig())

        parse_errors: List[SourceParseError] = []
        if plan_file_path is not None:
            entities = self._load_plan(path, plan_file_path=plan_file_path, terraform_bin=terraform_bin)
            input_kind = "plan"
        elif path.is_file() and path.suffix == PLAN_SUFFIX:
            entities = self._load_plan(path, plan_json_path=path, terraform_bin=terraform_bin)
            input_kind = "plan"
        else:
            entities, parse_errors = self._load_source(path)
            input_kind = "source"

        findings = engine.analyze(entities)
        outcome = apply_suppressions(findings, review_config.suppressions, now)

        metadata: MutableMapping[str, Any] = {
            "path": str(path),
            "input": input_kind,
            "resource_count": len(entities),
        }
        if plan_file_path is not None:
            metadata["plan_file"] = str(plan_file_path)

        return AnalysisResult(
            findings=outcome.kept,
            entity_count=len(entities),
            suppressed=outcome.suppressed,
            expired_suppressions=outcome.expired,
            faults=list(engine.faults),
            parse_errors=parse_errors,
            active_checks=engine.active_metadata(),
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    def _load_plan(self, path: Path, *, terraform_bin: str, **artifact: Path) -> List[Entity]:
        working_dir = path if path.is_dir() else path.parent
        loader = self._plan_loader_factory(working_dir=working_dir, terraform_bin=terraform_bin, **artifact)
        return self._plan_normalizer.parse(loader.load_plan())

    def _load_source(self, path: Path) -> tuple[List[Entity], List[SourceParseError]]:
        if path.is_dir():
            result = self._source_parser.parse_directory(path)
        elif path.is_file() and path.suffix == SOURCE_SUFFIX:
            result = self._source_parser.parse_paths([path])
        elif path.exists():
            raise InputError(f"Unsupported input {path}: expected a directory, a .tf file or a plan .json file")
        else:
            raise InputError(f"Input path not found: {path}")

        if not result.files:
            logger.warning("No Terraform files found under %s", path)
        elif len(result.errors) == len(result.files):
            # nothing parsed; report the first failure
            raise result.errors[0]

        return result.entities, result.errors


__all__ = ["AnalysisResult", "AnalysisService"]
