"""Tree-sitter powered TypeScript source access and byte-range editing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
_PARSER: Optional[Parser] = None

IDENTIFIER_TYPES = frozenset({"identifier", "type_identifier"})


def _get_parser() -> Parser:
    global _PARSER
    if _PARSER is None:
        _PARSER = Parser(_LANGUAGE)
    return _PARSER


@dataclass(frozen=True)
class SourceEdit:
    """Replace the byte range ``[start, end)`` with ``replacement``."""

    start: int
    end: int
    replacement: str


class SourceFile:
    """A parsed TypeScript module whose edits are applied by node byte ranges."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.source = text.encode("utf-8")
        self.tree = _get_parser().parse(self.source)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def node_text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def walk(self, node: Node | None = None) -> Iterator[Node]:
        """Yield ``node`` and all descendants in document order."""
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def find(self, *types: str) -> Iterator[Node]:
        wanted = set(types)
        for node in self.walk():
            if node.type in wanted:
                yield node

    def top_level_imports(self) -> List[Node]:
        return [child for child in self.root.children if child.type == "import_statement"]

    def import_insertion(self, statement: str) -> SourceEdit:
        """Return an edit adding ``statement`` after the module's import block."""
        imports = self.top_level_imports()
        if imports:
            anchor = imports[-1].end_byte
            return SourceEdit(anchor, anchor, f"\n{statement}")
        for child in self.root.children:
            if child.type != "comment":
                return SourceEdit(child.start_byte, child.start_byte, f"{statement}\n")
        end = len(self.source)
        return SourceEdit(end, end, f"{statement}\n")

    def apply(self, edits: Iterable[SourceEdit]) -> str:
        """Return the source text with ``edits`` applied."""
        ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
        if not ordered:
            return self.text
        chunks: List[bytes] = []
        cursor = 0
        for edit in ordered:
            if edit.start < cursor:
                raise ValueError(
                    f"Overlapping source edits at byte {edit.start} (previous edit ended at {cursor})"
                )
            chunks.append(self.source[cursor : edit.start])
            chunks.append(edit.replacement.encode("utf-8"))
            cursor = edit.end
        chunks.append(self.source[cursor:])
        return b"".join(chunks).decode("utf-8")


def string_value(source: SourceFile, node: Node) -> str:
    """Return the contents of a string literal node without its quotes."""
    text = source.node_text(node)
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"', "`"}:
        return text[1:-1]
    return text


def module_specifiers(source: SourceFile) -> List[Node]:
    """Return the string nodes naming modules in imports, re-exports and ``import()`` calls."""
    nodes: List[Node] = []
    for node in source.walk():
        if node.type in {"import_statement", "export_statement"}:
            specifier = node.child_by_field_name("source")
            if specifier is not None and specifier.type == "string":
                nodes.append(specifier)
        elif node.type == "call_expression":
            function = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            if function is None or function.type != "import" or arguments is None:
                continue
            first = next(iter(arguments.named_children), None)
            if first is not None and first.type == "string":
                nodes.append(first)
    return nodes


def rename_identifiers(
    source: SourceFile,
    old: str,
    new: str,
    *,
    skip: Sequence[tuple[int, int]] = (),
) -> List[SourceEdit]:
    """Return edits renaming every identifier spelled ``old`` outside ``skip`` ranges."""
    edits: List[SourceEdit] = []
    for node in source.walk():
        if node.type not in IDENTIFIER_TYPES or source.node_text(node) != old:
            continue
        if any(start <= node.start_byte and node.end_byte <= end for start, end in skip):
            continue
        edits.append(SourceEdit(node.start_byte, node.end_byte, new))
    return edits


def strip_comments(text: str) -> str:
    """Remove every comment node, leaving string literals untouched."""
    source = SourceFile(text)
    edits = [
        SourceEdit(node.start_byte, node.end_byte, "") for node in source.find("comment")
    ]
    return source.apply(edits)


def strip_banner(text: str, marker: str = "do not edit") -> str:
    """Remove leading file comments that carry the generator's ``marker`` banner."""
    source = SourceFile(text)
    edits: List[SourceEdit] = []
    for node in source.root.children:
        if node.type != "comment":
            break
        if marker not in source.node_text(node).lower():
            continue
        end = node.end_byte
        while source.source[end : end + 1] == b"\n":
            end += 1
        edits.append(SourceEdit(node.start_byte, end, ""))
    return source.apply(edits) if edits else text


def declared_names(source: SourceFile) -> List[str]:
    """Return names declared at module level (interfaces, types, classes, enums, namespaces)."""
    names: List[str] = []
    declaration_types = {
        "interface_declaration",
        "type_alias_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "enum_declaration",
        "internal_module",
        "function_declaration",
    }
    for child in source.root.children:
        node = child
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                continue
            node = declaration
        if node.type == "expression_statement" and node.named_children:
            node = node.named_children[0]
        if node.type not in declaration_types:
            continue
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            names.append(source.node_text(name_node))
    return names


__all__ = [
    "SourceEdit",
    "SourceFile",
    "declared_names",
    "module_specifiers",
    "rename_identifiers",
    "string_value",
    "strip_comments",
    "strip_banner",
]
