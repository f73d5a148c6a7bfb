"""Boundary to the external per-service OpenAPI-to-TypeScript generator."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_GENERATOR_COMMAND
from .logging import get_logger

GenerateFn = Callable[[Path, Path], None]


class CodegenRunner:
    """Runs the configured generator command for one document and output directory."""

    def __init__(
        self,
        command: Sequence[str] | None = None,
        *,
        timeout: Optional[float] = None,
        generate: GenerateFn | None = None,
    ) -> None:
        self.command = list(command or DEFAULT_GENERATOR_COMMAND)
        self.timeout = timeout
        self._generate = generate
        self.logger = get_logger("generator")

    def build_args(self, input_path: Path, output_dir: Path) -> List[str]:
        return [
            part.replace("{input}", str(input_path)).replace("{output}", str(output_dir))
            for part in self.command
        ]

    def run(self, input_path: Path, output_dir: Path) -> Path:
        output_dir.mkdir(parents=True, exist_ok=True)
        if self._generate is not None:
            self._generate(input_path, output_dir)
            return output_dir

        args = self.build_args(input_path, output_dir)
        self.logger.debug("Running %s", " ".join(args))
        try:
            subprocess.run(
                args,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise RuntimeError(f"Unable to locate generator executable '{args[0]}'.") from exc
        except subprocess.TimeoutExpired as exc:
            raise RuntimeError(f"Generator timed out after {self.timeout}s for {input_path}") from exc
        except subprocess.CalledProcessError as exc:
            message = (exc.stderr or "").strip() or (exc.stdout or "").strip() or str(exc.returncode)
            raise RuntimeError(f"Generator failed for {input_path}: {message}") from exc
        return output_dir


__all__ = ["CodegenRunner", "GenerateFn"]
