"""Extraction of the shared HTTP transport runtime into ``<out>/http``."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple

from ..fs_utils import remove_empty_dir, write_text
from ..layout import CONFIG_MODULE, OutputLayout, strip_ts_suffix
from ..logging import get_logger
from ..relocation import RelocationMap
from ..typescript import SourceEdit, SourceFile, module_specifiers, rename_identifiers, string_value
from .templating import render

RUNTIME_FILES: Tuple[Tuple[str, str], ...] = (
    ("CancelablePromise.ts", "CancelablePromise.ts"),
    ("ApiError.ts", "errors.ts"),
    ("ApiRequestOptions.ts", "ApiRequestOptions.ts"),
    ("ApiResult.ts", "ApiResult.ts"),
    ("request.ts", "request.ts"),
)
RUNTIME_MODULES: Dict[str, str] = {
    Path(source_name).stem: f"./{Path(output_name).stem}" for source_name, output_name in RUNTIME_FILES
}
ERROR_CLASS = "ApiError"
RUNTIME_ERROR_CLASS = "ApiClientError"

BASE_RESOLVER = "resolveBase"
TOKEN_RESOLVER = "resolveToken"
_CONFIG_READS = {"BASE": BASE_RESOLVER, "TOKEN": TOKEN_RESOLVER}


def _line_end(source: SourceFile, offset: int) -> int:
    return offset + 1 if source.source[offset : offset + 1] == b"\n" else offset


def _module_stem(specifier: str) -> str:
    return strip_ts_suffix(PurePosixPath(specifier).name)


def localize_imports(text: str) -> str:
    """Point relative imports of transport primitives at their sibling modules in ``http/``."""
    source = SourceFile(text)
    edits: List[SourceEdit] = []
    for node in module_specifiers(source):
        value = string_value(source, node)
        if not value.startswith("."):
            continue
        local = RUNTIME_MODULES.get(_module_stem(value))
        if local is not None and local != value:
            edits.append(SourceEdit(node.start_byte + 1, node.end_byte - 1, local))
    return source.apply(edits)


def rename_error_class(text: str) -> str:
    """Rename the generated error class, its use sites and its ``name`` string."""
    source = SourceFile(text)
    edits = rename_identifiers(source, ERROR_CLASS, RUNTIME_ERROR_CLASS)
    specifiers = {node.start_byte for node in module_specifiers(source)}
    for node in source.find("string"):
        if node.start_byte not in specifiers and string_value(source, node) == ERROR_CLASS:
            edits.append(SourceEdit(node.start_byte + 1, node.end_byte - 1, RUNTIME_ERROR_CLASS))
    return source.apply(edits)


def openapi_declaration(config_text: str) -> Optional[str]:
    """Return the ``OpenAPI`` configuration object statement declared by a config module."""
    source = SourceFile(config_text)
    for node in source.find("variable_declarator"):
        name = node.child_by_field_name("name")
        if name is None or source.node_text(name) != "OpenAPI":
            continue
        statement = node.parent
        while statement is not None and statement.parent is not None and statement.parent != source.root:
            statement = statement.parent
        if statement is not None:
            return source.node_text(statement)
    return None


def transform_request(text: str, config_text: Optional[str]) -> str:
    """Inline the transport configuration into ``request.ts`` and route reads through the context."""
    text = rename_error_class(text)
    source = SourceFile(text)
    edits: List[SourceEdit] = []
    removed: List[int] = []

    for statement in source.top_level_imports():
        module = statement.child_by_field_name("source")
        if module is not None and _module_stem(string_value(source, module)) == Path(CONFIG_MODULE).stem:
            edits.append(SourceEdit(statement.start_byte, _line_end(source, statement.end_byte), ""))
            removed.append(statement.start_byte)

    for node in source.find("member_expression"):
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier":
            continue
        resolver = _CONFIG_READS.get(source.node_text(prop))
        if resolver is None or source.node_text(obj) != "config":
            continue
        edits.append(SourceEdit(node.start_byte, node.end_byte, f"{resolver}({source.node_text(obj)})"))

    inlined = render(
        "openapi_config.ts.j2",
        openapi_declaration=openapi_declaration(config_text) if config_text else None,
    )
    anchors = [node for node in source.top_level_imports() if node.start_byte not in removed]
    if anchors:
        offset = anchors[-1].end_byte
        edits.append(SourceEdit(offset, offset, f"\n\n{inlined.rstrip()}"))
    else:
        edits.append(SourceEdit(0, 0, f"{inlined.rstrip()}\n\n"))

    updated = source.apply(edits).rstrip("\n") + "\n"
    return updated + render(
        "runtime_context.ts.j2", base_resolver=BASE_RESOLVER, token_resolver=TOKEN_RESOLVER
    )


class HttpRuntimeExtractor:
    """Builds ``<out>/http`` from the generated transport primitives and deletes the originals."""

    def __init__(self, layout: OutputLayout, relocations: RelocationMap) -> None:
        self.layout = layout
        self.relocations = relocations
        self.logger = get_logger("runtime")

    def source_dirs(self) -> List[Path]:
        dirs = [self.layout.common_kind_dir("core")]
        dirs.extend(self.layout.service_root(service_id) for service_id in self.layout.service_ids)
        return dirs

    def extract(self) -> List[Path]:
        dirs = self.source_dirs()
        config_path = self._first(dirs, CONFIG_MODULE)
        config_text = config_path.read_text(encoding="utf-8") if config_path else None

        written: Dict[str, Path] = {}
        for source_name, output_name in RUNTIME_FILES:
            origin = self._first(dirs, source_name)
            if origin is None:
                self.logger.debug("No %s generated; skipping", source_name)
                continue
            text = localize_imports(origin.read_text(encoding="utf-8"))
            if source_name == "request.ts":
                text = transform_request(text, config_text)
            elif source_name == "ApiError.ts":
                text = rename_error_class(text)
            written[output_name] = write_text(self.layout.http_dir / output_name, text)

        self._retire_originals(dirs, written)
        write_text(
            self.layout.http_dir / "index.ts",
            render("runtime_index.ts.j2", files=set(written), error_class=RUNTIME_ERROR_CLASS),
        )
        remove_empty_dir(self.layout.common_kind_dir("core"))
        self.logger.info("Extracted %d transport module(s) into %s", len(written), self.layout.http_dir)
        return sorted(written.values())

    def _retire_originals(self, dirs: List[Path], written: Dict[str, Path]) -> None:
        retired = list(RUNTIME_FILES)
        if "request.ts" in written:
            retired.append((CONFIG_MODULE, "request.ts"))
        for directory in dirs:
            for source_name, output_name in retired:
                original = directory / source_name
                target = written.get(output_name)
                if target is None or not original.is_file():
                    continue
                original.unlink()
                rename = (ERROR_CLASS, RUNTIME_ERROR_CLASS) if source_name == "ApiError.ts" else None
                self.relocations.add(original, target, rename=rename)

    @staticmethod
    def _first(dirs: List[Path], filename: str) -> Optional[Path]:
        for directory in dirs:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
        return None


__all__ = [
    "HttpRuntimeExtractor",
    "localize_imports",
    "openapi_declaration",
    "rename_error_class",
    "transform_request",
]
