"""Scans generated per-service client trees into GeneratedFile records."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from .layout import OutputLayout, list_files
from .models import KIND_DIRECTORIES, GeneratedFile
from .typescript import strip_banner


def scan_service(layout: OutputLayout, service_id: str) -> List[GeneratedFile]:
    """Return every generated ``.ts`` file under the service's kind directories."""
    files: List[GeneratedFile] = []
    for kind in KIND_DIRECTORIES:
        directory = layout.kind_dir(service_id, kind)
        for path in list_files(directory, recursive=False):
            files.append(
                GeneratedFile(
                    service_id=service_id,
                    path=path,
                    kind=kind,
                    source_text=path.read_text(encoding="utf-8"),
                )
            )
    return files


def scan_services(layout: OutputLayout) -> Dict[str, List[GeneratedFile]]:
    return {service_id: scan_service(layout, service_id) for service_id in layout.service_ids}


def strip_generator_banners(layout: OutputLayout) -> List[Path]:
    """Drop the generator's "do not edit" banner from every generated file; return the files changed."""
    changed: List[Path] = []
    for service_id in layout.service_ids:
        for path in list_files(layout.service_root(service_id)):
            text = path.read_text(encoding="utf-8")
            stripped = strip_banner(text)
            if stripped != text:
                path.write_text(stripped, encoding="utf-8")
                changed.append(path)
    return changed


def files_by_name(files: List[GeneratedFile], kind: str) -> Dict[str, GeneratedFile]:
    return {item.filename: item for item in files if item.kind == kind}


def is_index(path: Path) -> bool:
    return path.stem == "index"


__all__ = ["files_by_name", "is_index", "scan_service", "scan_services", "strip_generator_banners"]
