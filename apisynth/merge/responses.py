"""Collapses per-payload response envelope models into aliases of ``ApiResponse<T>``."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Set

from tree_sitter import Node

from ..layout import OutputLayout, relative_specifier
from ..logging import get_logger
from ..models import AliasEntry, MigrationRecord, ResponseAlias
from ..scanner import is_index
from ..typescript import SourceFile

ENVELOPE_PREFIX = "ApiResponse"
ENVELOPE_FIELDS = frozenset({"success", "message", "data", "errors", "meta", "timestamp"})
REQUIRED_FIELDS = frozenset({"success", "message"})

VOID_MARKERS = frozenset({"Unit", "Void", "Nothing"})
PRIMITIVE_PAYLOADS = {
    "String": "string",
    "Boolean": "boolean",
    "Integer": "number",
    "Long": "number",
    "Int": "number",
    "Double": "number",
    "Float": "number",
    "Number": "number",
}

_LIST_PREFIX = re.compile(r"^List(?=[A-Z])")
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")


def payload_type(rest: str) -> str:
    """Map the part of an envelope model name after ``ApiResponse`` to a TypeScript type."""
    if not rest:
        return "unknown"
    if rest in VOID_MARKERS:
        return "void"
    if rest in PRIMITIVE_PAYLOADS:
        return PRIMITIVE_PAYLOADS[rest]
    if _LIST_PREFIX.match(rest):
        return f"{payload_type(rest[len('List'):])}[]"
    return rest


def _shape_node(source: SourceFile, name: str) -> Optional[Node]:
    for node in source.find("type_alias_declaration", "interface_declaration"):
        name_node = node.child_by_field_name("name")
        if name_node is None or source.node_text(name_node) != name:
            continue
        if node.type == "interface_declaration":
            return node.child_by_field_name("body")
        value = node.child_by_field_name("value")
        if value is not None and value.type == "object_type":
            return value
    return None


class ResponseWrapperCollapser:
    """Rewrites envelope-shaped ``ApiResponse<Rest>`` model files as one-line aliases."""

    def __init__(self, layout: OutputLayout, record: MigrationRecord) -> None:
        self.layout = layout
        self.record = record
        self.logger = get_logger("responses")

    def collapse(self) -> List[ResponseAlias]:
        aliases: List[ResponseAlias] = []
        for path in self.layout.iter_model_files():
            if is_index(path) or not path.stem.startswith(ENVELOPE_PREFIX) or path.stem == ENVELOPE_PREFIX:
                continue
            alias = self.collapse_file(path)
            if alias is not None:
                aliases.append(alias)
        if aliases:
            self.logger.info("Collapsed %d response envelope model(s)", len(aliases))
        return aliases

    def collapse_file(self, path: Path) -> Optional[ResponseAlias]:
        name = path.stem
        source = SourceFile(path.read_text(encoding="utf-8"))
        shape = _shape_node(source, name)
        if shape is None:
            return None
        fields: Dict[str, Node] = {}
        for member in shape.named_children:
            if member.type == "comment":
                continue
            if member.type != "property_signature":
                return None
            field_name = member.child_by_field_name("name")
            if field_name is None:
                return None
            fields[source.node_text(field_name).strip("'\"")] = member
        if not REQUIRED_FIELDS <= set(fields) or not set(fields) <= ENVELOPE_FIELDS:
            return None

        imported = self._imported_names(source)
        payload = payload_type(name[len(ENVELOPE_PREFIX) :])
        if not self._resolvable(payload, imported) and "data" in fields:
            declared = fields["data"].child_by_field_name("type")
            if declared is not None and declared.named_children:
                payload = source.node_text(declared.named_children[0]).strip()

        used = set(_IDENTIFIER.findall(payload))
        types_specifier = relative_specifier(self.layout.types_dir, path.parent)
        from_types = {ENVELOPE_PREFIX}
        kept: List[str] = []
        for statement in source.top_level_imports():
            names = self._statement_names(source, statement) & used
            if not names:
                continue
            module = statement.child_by_field_name("source")
            if module is not None and source.node_text(module)[1:-1] == types_specifier:
                from_types |= names
            else:
                kept.append(source.node_text(statement))
        lines = kept + [f"import type {{ {', '.join(sorted(from_types))} }} from '{types_specifier}';"]
        text = "\n".join(lines) + f"\n\nexport type {name} = {ENVELOPE_PREFIX}<{payload}>;\n"
        path.write_text(text, encoding="utf-8")

        self.record.aliases.append(AliasEntry(alias=name, target=f"{ENVELOPE_PREFIX}<{payload}>"))
        self.logger.debug("Collapsed %s -> %s<%s>", name, ENVELOPE_PREFIX, payload)
        return ResponseAlias(name=name, payload=payload, path=path)

    @staticmethod
    def _statement_names(source: SourceFile, statement: Node) -> Set[str]:
        names: Set[str] = set()
        for node in source.walk(statement):
            if node.type == "import_specifier":
                local = node.child_by_field_name("alias")
                if local is None:
                    local = node.child_by_field_name("name")
                if local is not None:
                    names.add(source.node_text(local))
            elif node.type == "namespace_import":
                names.update(source.node_text(child) for child in node.named_children)
        return names

    def _imported_names(self, source: SourceFile) -> Set[str]:
        names: Set[str] = set()
        for statement in source.top_level_imports():
            names |= self._statement_names(source, statement)
        return names

    @staticmethod
    def _resolvable(payload: str, imported: Set[str]) -> bool:
        builtin = {"unknown", "void", "string", "boolean", "number"}
        return all(name in builtin or name in imported for name in _IDENTIFIER.findall(payload))


__all__ = ["ResponseWrapperCollapser", "payload_type"]
