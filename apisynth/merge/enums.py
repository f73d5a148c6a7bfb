"""Enum harvesting from raw schemas and lifting of generator-nested enums."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set

from tree_sitter import Node

from ..config import DEFAULT_ENUM_RULES, EnumNameRule
from ..layout import OutputLayout, relative_specifier
from ..logging import get_logger
from ..models import EnumEntry, SpecDocument
from ..scanner import is_index
from ..text_utils import pascal
from ..typescript import SourceEdit, SourceFile, declared_names, string_value


class EnumRegistry:
    """Canonical enums keyed by their unordered value set, with unique names."""

    def __init__(self) -> None:
        self._by_key: Dict[frozenset[str], EnumEntry] = {}
        self._by_name: Dict[str, EnumEntry] = {}

    def register(
        self,
        name: str,
        values: Iterable[str],
        *,
        source: str | None = None,
        parent: str | None = None,
    ) -> Optional[EnumEntry]:
        """Return the entry for ``values``, creating it under ``name`` when the set is new."""
        ordered = list(dict.fromkeys(values))
        if not ordered:
            return None
        key = frozenset(ordered)
        existing = self._by_key.get(key)
        if existing is not None:
            if source and source not in existing.sources:
                existing.sources.append(source)
            return existing

        entry = EnumEntry(
            name=self._unique_name(name, parent),
            values=ordered,
            sources=[source] if source else [],
        )
        self._by_key[key] = entry
        self._by_name[entry.name] = entry
        return entry

    def lookup(self, values: Iterable[str]) -> Optional[EnumEntry]:
        return self._by_key.get(frozenset(values))

    def get(self, name: str) -> Optional[EnumEntry]:
        return self._by_name.get(name)

    def entries(self) -> List[EnumEntry]:
        return sorted(self._by_name.values(), key=lambda entry: entry.name)

    def names(self) -> List[str]:
        return [entry.name for entry in self.entries()]

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[EnumEntry]:
        return iter(self.entries())

    def _unique_name(self, name: str, parent: str | None) -> str:
        if name not in self._by_name:
            return name
        base = name
        if parent:
            base = f"{pascal(parent)}{name}"
            if base not in self._by_name:
                return base
        suffix = 2
        while f"{base}{suffix}" in self._by_name:
            suffix += 1
        return f"{base}{suffix}"


class EnumNamer:
    """Applies the ordered enum naming rules to a property and its parent schema."""

    def __init__(self, rules: Sequence[EnumNameRule] = DEFAULT_ENUM_RULES) -> None:
        self._rules = [
            (
                re.compile(rule.property, re.IGNORECASE),
                re.compile(rule.parent) if rule.parent else None,
                rule.name,
            )
            for rule in rules
        ]

    def name_for(self, prop: str, parent: str | None = None) -> str:
        for prop_pattern, parent_pattern, name in self._rules:
            if not prop_pattern.search(prop):
                continue
            if parent_pattern is not None and not (parent and parent_pattern.search(parent)):
                continue
            return name
        return pascal(prop)


def _string_enum_values(schema: Any) -> Optional[List[str]]:
    if not isinstance(schema, dict):
        return None
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        is_string = "string" in schema_type
    else:
        is_string = schema_type == "string"
    values = schema.get("enum")
    if not is_string or not isinstance(values, list):
        return None
    strings = [value for value in values if isinstance(value, str)]
    return strings or None


class SpecEnumHarvester:
    """Builds the enum registry from the raw ``components.schemas`` of every document."""

    def __init__(self, namer: EnumNamer | None = None, registry: EnumRegistry | None = None) -> None:
        self.namer = namer or EnumNamer()
        self.registry = registry if registry is not None else EnumRegistry()
        self.logger = get_logger("enums")

    def harvest(self, documents: Sequence[SpecDocument]) -> EnumRegistry:
        for document in documents:
            for schema_name, schema in document.schemas.items():
                location = f"{document.service_id}:#/components/schemas/{schema_name}"
                values = _string_enum_values(schema)
                if values is not None:
                    self.registry.register(pascal(schema_name), values, source=location)
                for properties in self._property_blocks(schema):
                    for prop_name, prop in properties.items():
                        self._visit_property(schema_name, prop_name, prop, f"{location}/{prop_name}")
        self.logger.info("Harvested %d enum(s) from %d document(s)", len(self.registry), len(documents))
        return self.registry

    @staticmethod
    def _property_blocks(schema: Any) -> Iterator[Dict[str, Any]]:
        if not isinstance(schema, dict):
            return
        properties = schema.get("properties")
        if isinstance(properties, dict):
            yield properties
        for part in schema.get("allOf") or []:
            if isinstance(part, dict) and isinstance(part.get("properties"), dict):
                yield part["properties"]

    def _visit_property(self, parent: str, prop_name: str, prop: Any, location: str) -> None:
        if not isinstance(prop, dict):
            return
        candidates = [prop]
        if isinstance(prop.get("items"), dict):
            candidates.append(prop["items"])
        for candidate in candidates:
            values = _string_enum_values(candidate)
            if values is None:
                continue
            name = self.namer.name_for(prop_name, parent)
            self.registry.register(name, values, source=location, parent=parent)


def _enum_values(source: SourceFile, declaration: Node) -> Optional[List[str]]:
    """Return the member values of a string enum, or ``None`` when any member is not a string."""
    body = declaration.child_by_field_name("body")
    if body is None:
        return None
    values: List[str] = []
    for member in body.named_children:
        if member.type == "comment":
            continue
        if member.type != "enum_assignment":
            return None
        value = member.child_by_field_name("value")
        if value is None or value.type != "string":
            return None
        values.append(string_value(source, value))
    return values or None


def _union_literals(source: SourceFile, node: Node) -> Optional[List[str]]:
    values: List[str] = []
    for child in node.named_children:
        if child.type == "union_type":
            nested = _union_literals(source, child)
            if nested is None:
                return None
            values.extend(nested)
        elif child.type == "literal_type" and child.named_children and child.named_children[0].type == "string":
            values.append(string_value(source, child.named_children[0]))
        else:
            return None
    return values


def _statement_for(node: Node) -> Node:
    """Climb from a declaration to the top-level statement that holds it."""
    current = node
    while current.parent is not None and current.parent.type in {"export_statement", "expression_statement"}:
        current = current.parent
    return current


def _removal(source: SourceFile, node: Node) -> SourceEdit:
    """Delete a statement together with its indentation and line break."""
    start = node.start_byte
    while start > 0 and source.source[start - 1 : start] in (b" ", b"\t"):
        start -= 1
    if start > 0 and source.source[start - 1 : start] != b"\n":
        start = node.start_byte
    end = node.end_byte
    if source.source[end : end + 1] == b"\n":
        end += 1
    return SourceEdit(start, end, "")


def _array_wrapper(source: SourceFile, node: Node) -> Optional[Node]:
    """Return the ``Array<...>`` type whose only argument is ``node``."""
    arguments = node.parent
    if arguments is None or arguments.type != "type_arguments" or len(arguments.named_children) != 1:
        return None
    generic = arguments.parent
    if generic is None or generic.type != "generic_type" or not generic.named_children:
        return None
    if source.node_text(generic.named_children[0]) != "Array":
        return None
    return generic


def _reference_edit(source: SourceFile, node: Node, name: str) -> SourceEdit:
    """Replace a type reference with ``name``, spelling ``Array<...>`` wrappers as ``name[]``."""
    wrapper = _array_wrapper(source, node)
    if wrapper is not None:
        return SourceEdit(wrapper.start_byte, wrapper.end_byte, f"{name}[]")
    return SourceEdit(node.start_byte, node.end_byte, name)


class EnumNamespaceLifter:
    """Hoists namespace-nested enums to shared named types and collapses matching unions."""

    def __init__(
        self,
        layout: OutputLayout,
        registry: EnumRegistry,
        namer: EnumNamer | None = None,
    ) -> None:
        self.layout = layout
        self.registry = registry
        self.namer = namer or EnumNamer()
        self.logger = get_logger("enums")

    def run(self) -> List[Path]:
        """Lift every model file, then collapse literal unions; return the files changed."""
        model_files = [path for path in self.layout.iter_model_files() if not is_index(path)]
        needed: Dict[Path, Set[str]] = {}
        for path in model_files:
            names = self.lift_file(path)
            if names:
                needed.setdefault(path, set()).update(names)
        for path in model_files:
            names = self.collapse_unions(path)
            if names:
                needed.setdefault(path, set()).update(names)
        for path, names in needed.items():
            self.ensure_types_import(path, names)
        if needed:
            self.logger.info("Rewrote enum references in %d model file(s)", len(needed))
        return sorted(needed)

    def lift_file(self, path: Path) -> Set[str]:
        source = SourceFile(path.read_text(encoding="utf-8"))
        edits: List[SourceEdit] = []
        lifted: Dict[str, str] = {}
        for namespace in list(source.find("internal_module")):
            if _statement_for(namespace).parent != source.root:
                continue
            name_node = namespace.child_by_field_name("name")
            body = namespace.child_by_field_name("body")
            if name_node is None or body is None:
                continue
            parent = source.node_text(name_node)
            removable = True
            member_removals: List[SourceEdit] = []
            for statement in body.named_children:
                declaration = statement
                if declaration.type == "export_statement":
                    inner = declaration.child_by_field_name("declaration")
                    if inner is not None:
                        declaration = inner
                if declaration.type == "comment":
                    continue
                if declaration.type != "enum_declaration":
                    removable = False
                    continue
                enum_name_node = declaration.child_by_field_name("name")
                values = _enum_values(source, declaration)
                if enum_name_node is None or values is None:
                    removable = False
                    continue
                local = source.node_text(enum_name_node)
                entry = self.registry.register(
                    self.namer.name_for(local, parent), values, source=str(path), parent=parent
                )
                if entry is None:
                    removable = False
                    continue
                lifted[f"{parent}.{local}"] = entry.name
                member_removals.append(_removal(source, statement))
                self.logger.debug("Lifted %s.%s -> %s in %s", parent, local, entry.name, path.name)
            if removable:
                edits.append(_removal(source, _statement_for(namespace)))
            else:
                edits.extend(member_removals)

        if not lifted:
            return set()

        removed = [(edit.start, edit.end) for edit in edits]
        used: Set[str] = set()
        for node in source.find("nested_type_identifier"):
            if any(start <= node.start_byte < end for start, end in removed):
                continue
            dotted = "".join(source.node_text(node).split())
            replacement = lifted.get(dotted)
            if replacement is not None:
                edits.append(_reference_edit(source, node, replacement))
                used.add(replacement)
        path.write_text(source.apply(edits), encoding="utf-8")
        return used

    def collapse_unions(self, path: Path) -> Set[str]:
        source = SourceFile(path.read_text(encoding="utf-8"))
        edits: List[SourceEdit] = []
        used: Set[str] = set()
        for node in source.find("union_type"):
            if node.parent is not None and node.parent.type == "union_type":
                continue
            values = _union_literals(source, node)
            if not values:
                continue
            entry = self.registry.lookup(values)
            if entry is None or self._declares(source, node, entry.name):
                continue
            edits.append(_reference_edit(source, node, entry.name))
            used.add(entry.name)
        if edits:
            path.write_text(source.apply(edits), encoding="utf-8")
        return used

    def ensure_types_import(self, path: Path, names: Iterable[str]) -> None:
        source = SourceFile(path.read_text(encoding="utf-8"))
        wanted = set(names) - set(declared_names(source))
        if not wanted:
            return
        specifier = relative_specifier(self.layout.types_dir, path.parent)
        for statement in source.top_level_imports():
            module = statement.child_by_field_name("source")
            if module is None or string_value(source, module) != specifier:
                continue
            for node in source.walk(statement):
                if node.type == "import_specifier":
                    name = node.child_by_field_name("name")
                    if name is not None:
                        wanted.add(source.node_text(name))
            edit = SourceEdit(statement.start_byte, statement.end_byte, self._import_line(wanted, specifier))
            path.write_text(source.apply([edit]), encoding="utf-8")
            return
        edit = source.import_insertion(self._import_line(wanted, specifier))
        path.write_text(source.apply([edit]), encoding="utf-8")

    @staticmethod
    def _import_line(names: Iterable[str], specifier: str) -> str:
        return f"import type {{ {', '.join(sorted(names))} }} from '{specifier}';"

    @staticmethod
    def _declares(source: SourceFile, node: Node, name: str) -> bool:
        parent = node.parent
        if parent is None or parent.type != "type_alias_declaration":
            return False
        alias = parent.child_by_field_name("name")
        return alias is not None and source.node_text(alias) == name


__all__ = ["EnumNamer", "EnumNamespaceLifter", "EnumRegistry", "SpecEnumHarvester"]
