"""TypeScript source analysis helpers built on tree-sitter."""

from .syntax import (
    SourceEdit,
    SourceFile,
    declared_names,
    module_specifiers,
    rename_identifiers,
    string_value,
    strip_comments,
    strip_banner,
)

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
