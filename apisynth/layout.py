"""Output tree layout shared by every pipeline step."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List

from .models import KIND_DIRECTORIES

COMMON_KINDS = ("core", "model", "schema")
CONFIG_MODULE = "OpenAPI.ts"


@dataclass
class OutputLayout:
    """Resolves the fixed directory contract of the synthesized client library."""

    root: Path
    service_ids: List[str] = field(default_factory=list)

    @property
    def common_dir(self) -> Path:
        return self.root / "common"

    @property
    def types_dir(self) -> Path:
        return self.root / "types"

    @property
    def http_dir(self) -> Path:
        return self.root / "http"

    def service_root(self, service_id: str) -> Path:
        return self.root / service_id

    def kind_dir(self, service_id: str, kind: str) -> Path:
        return self.service_root(service_id) / KIND_DIRECTORIES[kind]

    def common_kind_dir(self, kind: str) -> Path:
        return self.common_dir / KIND_DIRECTORIES[kind]

    def model_dirs(self) -> List[Path]:
        dirs = [self.common_kind_dir("model")]
        dirs.extend(self.kind_dir(service_id, "model") for service_id in self.service_ids)
        return dirs

    def iter_model_files(self) -> Iterator[Path]:
        for directory in self.model_dirs():
            yield from list_files(directory, recursive=False)


def list_files(root: Path, ext: str = ".ts", *, recursive: bool = True) -> List[Path]:
    """Return sorted files under ``root`` ending in ``ext``."""
    if not root.is_dir():
        return []
    pattern = f"**/*{ext}" if recursive else f"*{ext}"
    return sorted(path for path in root.glob(pattern) if path.is_file())


def relative_specifier(target: Path, from_dir: Path) -> str:
    """Return an ES module specifier for ``target`` relative to ``from_dir``."""
    rel = os.path.relpath(target, from_dir).replace(os.sep, "/")
    if not rel.startswith("."):
        rel = f"./{rel}"
    return rel


def strip_ts_suffix(specifier: str) -> str:
    return specifier[: -len(".ts")] if specifier.endswith(".ts") else specifier


__all__ = [
    "COMMON_KINDS",
    "CONFIG_MODULE",
    "OutputLayout",
    "list_files",
    "relative_specifier",
    "strip_ts_suffix",
]
