"""Import specifier re-basing and the whole-tree import graph rewrite."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from tree_sitter import Node

from ..layout import list_files, relative_specifier, strip_ts_suffix
from ..logging import get_logger
from ..relocation import Relocation, RelocationMap
from ..typescript import SourceEdit, SourceFile, module_specifiers, string_value


def _resolve(directory: Path, specifier: str) -> Path:
    return Path(os.path.normpath(directory / specifier))


def _inner(node: Node) -> Tuple[int, int]:
    """Byte range of a string literal without its quotes."""
    return node.start_byte + 1, node.end_byte - 1


def rebase_relative_imports(text: str, old_dir: Path, new_dir: Path) -> str:
    """Rewrite relative specifiers so they keep pointing at the same files from ``new_dir``."""
    if old_dir.resolve() == new_dir.resolve():
        return text
    source = SourceFile(text)
    edits: List[SourceEdit] = []
    for node in module_specifiers(source):
        value = string_value(source, node)
        if not value.startswith("."):
            continue
        rebased = relative_specifier(_resolve(old_dir, value), new_dir)
        if rebased != value:
            start, end = _inner(node)
            edits.append(SourceEdit(start, end, rebased))
    return source.apply(edits)


@dataclass
class RewriteReport:
    """Outcome of one import graph rewrite pass."""

    files_changed: List[Path] = field(default_factory=list)
    specifiers_rewritten: int = 0
    dangling: List[Tuple[Path, str]] = field(default_factory=list)


class ImportGraphRewriter:
    """Rewrites every relative module specifier under a tree through a relocation map."""

    def __init__(self, relocations: RelocationMap | None = None) -> None:
        self.relocations = relocations if relocations is not None else RelocationMap()
        self.logger = get_logger("imports")

    def rewrite_tree(self, root: Path) -> RewriteReport:
        report = RewriteReport()
        for path in list_files(root):
            self.rewrite_file(path, report)
        if report.dangling:
            self.logger.warning(
                "%d import specifier(s) point at files that no longer exist", len(report.dangling)
            )
        return report

    def rewrite_file(self, path: Path, report: RewriteReport | None = None) -> bool:
        report = report if report is not None else RewriteReport()
        text = path.read_text(encoding="utf-8")
        updated, count, dangling = self.rewrite_text(text, path.parent)
        for specifier in dangling:
            self.logger.warning("Unresolved import %r in %s", specifier, path)
            report.dangling.append((path, specifier))
        if updated == text:
            return False
        path.write_text(updated, encoding="utf-8")
        report.files_changed.append(path)
        report.specifiers_rewritten += count
        self.logger.debug("Rewrote %d specifier(s) in %s", count, path)
        return True

    def rewrite_text(self, text: str, directory: Path) -> Tuple[str, int, List[str]]:
        """Return the rewritten text, the number of specifiers changed and dangling specifiers."""
        source = SourceFile(text)
        edits: List[SourceEdit] = []
        dangling: List[str] = []
        count = 0
        for node in module_specifiers(source):
            value = string_value(source, node)
            if not value.startswith("."):
                continue
            hit = self._match(directory, value)
            if hit is None:
                if not self._exists(directory, value):
                    dangling.append(value)
                continue
            candidate, relocation = hit
            replacement = self._specifier_for(value, candidate, relocation.target, directory)
            if replacement != value:
                start, end = _inner(node)
                edits.append(SourceEdit(start, end, replacement))
                count += 1
            if relocation.rename is not None:
                edits.extend(self._rename_edits(source, node.parent, *relocation.rename))
        if not edits:
            return text, 0, dangling
        return source.apply(edits), count, dangling

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _candidates(directory: Path, specifier: str) -> List[Path]:
        base = _resolve(directory, specifier)
        if specifier.endswith(".ts"):
            return [base]
        return [base.with_name(f"{base.name}.ts"), base / "index.ts"]

    def _match(self, directory: Path, specifier: str) -> Optional[Tuple[Path, Relocation]]:
        for candidate in self._candidates(directory, specifier):
            relocation = self.relocations.lookup(candidate)
            if relocation is not None:
                return candidate, relocation
        return None

    def _exists(self, directory: Path, specifier: str) -> bool:
        if _resolve(directory, specifier).exists():
            return True
        return any(candidate.exists() for candidate in self._candidates(directory, specifier))

    @staticmethod
    def _specifier_for(original: str, candidate: Path, target: Path, directory: Path) -> str:
        if candidate.name == "index.ts" and target.name == "index.ts" and not original.endswith(".ts"):
            return relative_specifier(target.parent, directory)
        specifier = relative_specifier(target, directory)
        if original.endswith(".ts"):
            return specifier
        return strip_ts_suffix(specifier)

    @staticmethod
    def _rename_edits(source: SourceFile, statement: Node | None, old: str, new: str) -> List[SourceEdit]:
        if statement is None:
            return []
        edits: List[SourceEdit] = []
        for node in source.walk(statement):
            if node.type == "import_specifier":
                name = node.child_by_field_name("name")
                if name is None or source.node_text(name) != old:
                    continue
                if node.child_by_field_name("alias") is not None:
                    edits.append(SourceEdit(name.start_byte, name.end_byte, new))
                else:
                    edits.append(SourceEdit(node.start_byte, node.end_byte, f"{new} as {old}"))
            elif node.type == "export_specifier":
                name = node.child_by_field_name("name")
                if name is not None and source.node_text(name) == old:
                    edits.append(SourceEdit(name.start_byte, name.end_byte, new))
        return edits


__all__ = ["ImportGraphRewriter", "RewriteReport", "rebase_relative_imports"]
