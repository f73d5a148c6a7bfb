"""Per-service client factory, OpenAPI shim and barrel generation."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..fs_utils import write_text
from ..layout import OutputLayout, list_files, relative_specifier
from ..logging import get_logger
from ..scanner import is_index
from ..text_utils import pascal
from .templating import render


class CombinedClientWriter:
    """Writes ``client.ts``, ``OpenAPI.ts`` and ``index.ts`` for one service root."""

    def __init__(self, layout: OutputLayout) -> None:
        self.layout = layout
        self.logger = get_logger("client")

    def service_modules(self, service_id: str) -> List[str]:
        services_dir = self.layout.kind_dir(service_id, "service")
        return [path.stem for path in list_files(services_dir, recursive=False) if not is_index(path)]

    def write(self, service_id: str) -> List[Path]:
        service_root = self.layout.service_root(service_id)
        services = self.service_modules(service_id)
        context = {
            "client_name": pascal(service_id),
            "services": services,
            "http_specifier": relative_specifier(self.layout.http_dir, service_root),
            "types_specifier": relative_specifier(self.layout.types_dir, service_root),
        }
        written = [
            write_text(service_root / "client.ts", render("client.ts.j2", **context)),
            write_text(service_root / "OpenAPI.ts", render("openapi_shim.ts.j2", **context)),
            write_text(service_root / "index.ts", render("index.ts.j2", **context)),
        ]
        self.logger.info("Wrote %s client facade over %d service module(s)", service_id, len(services))
        return written

    def write_all(self) -> List[Path]:
        written: List[Path] = []
        for service_id in self.layout.service_ids:
            written.extend(self.write(service_id))
        return written


__all__ = ["CombinedClientWriter"]
