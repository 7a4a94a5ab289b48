from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from ..errors import PlanLoaderError

logger = logging.getLogger(__name__)

# keeps terraform from printing interactive hints around the JSON document
AUTOMATION_ENV = {"TF_IN_AUTOMATION": "1"}


class PlanLoader:
    """Fetch a Terraform plan snapshot without decoding it.

    The snapshot is either an exported ``terraform show -json`` artifact or a
    binary ``terraform plan -out`` file rendered on demand. Decoding and
    validation are left to :class:`wa_review.normalization.PlanNormalizer`.
    """

    def __init__(
        self,
        working_dir: str | os.PathLike[str] = ".",
        *,
        plan_json_path: str | os.PathLike[str] | None = None,
        plan_file_path: str | os.PathLike[str] | None = None,
        env: Optional[dict[str, str]] = None,
        inherit_environment: bool = True,
        terraform_bin: str = "terraform",
    ) -> None:
        self.working_dir = Path(working_dir).resolve()
        self.plan_json_path = Path(plan_json_path).resolve() if plan_json_path else None
        self.plan_file_path = Path(plan_file_path).resolve() if plan_file_path else None
        self.env = env or {}
        self.inherit_environment = inherit_environment
        self.terraform_bin = terraform_bin

    def load_plan(self) -> bytes:
        """Return the raw plan JSON document."""

        if self.plan_json_path:
            return self._read_snapshot(self.plan_json_path)
        if self.plan_file_path:
            return self._render_plan_file(self.plan_file_path)
        raise PlanLoaderError("No plan JSON artifact or plan file was supplied")

    # ------------------------------------------------------------------
    def _read_snapshot(self, path: Path) -> bytes:
        if not path.is_file():
            raise PlanLoaderError(f"Terraform plan JSON artifact not found: {path}")

        logger.debug("Reading plan snapshot %s", path)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise PlanLoaderError(f"Cannot read plan artifact {path}: {exc.strerror}") from exc

    def _render_plan_file(self, path: Path) -> bytes:
        if not path.is_file():
            raise PlanLoaderError(f"Terraform plan file not found: {path}")

        logger.info("Rendering %s with %s show -json", path.name, self.terraform_bin)
        completed = self._run_command(
            [self.terraform_bin, "show", "-json", str(path)],
            cwd=self.working_dir,
            env=self._build_environment(),
        )
        if not completed.stdout.strip():
            raise PlanLoaderError(f"{self.terraform_bin} show produced no output for {path}")
        return completed.stdout.encode("utf-8")

    def _build_environment(self) -> dict[str, str]:
        if self.inherit_environment:
            env_vars = dict(os.environ)
        else:
            env_vars = {"PATH": os.environ.get("PATH", "")}

        env_vars.update(AUTOMATION_ENV)
        env_vars.update(self.env)
        return env_vars

    def _run_command(
        self,
        args: List[str],
        *,
        cwd: Path | None = None,
        env: Optional[dict[str, str]] = None,
    ) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                args,
                cwd=cwd,
                env=env,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise PlanLoaderError(f"Executable not found: {args[0]}") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip().splitlines()
            message = f"'{' '.join(args[:2])}' failed with exit code {exc.returncode}"
            if detail:
                message += f": {detail[-1]}"
            raise PlanLoaderError(message) from exc


__all__ = ["PlanLoader", "PlanLoaderError"]
