"""Tests for the tree-sitter TypeScript helpers."""

from __future__ import annotations

import pytest

from apisynth.typescript import (
    SourceEdit,
    SourceFile,
    declared_names,
    module_specifiers,
    rename_identifiers,
    string_value,
    strip_banner,
    strip_comments,
)
from tests._fixtures.tree_builder import HEADER

MODULE = """import type { Link } from '../models/Link';
import { request as __request } from '../core/request';
export { UserService } from './services/UserService';

export type UserDto = {
    id: string;
    link?: Link;
};

export const loadLazily = () => import('./lazy/Module');
"""


def test_module_specifiers_cover_imports_reexports_and_dynamic_imports() -> None:
    source = SourceFile(MODULE)

    values = [string_value(source, node) for node in module_specifiers(source)]

    assert values == ["../models/Link", "../core/request", "./services/UserService", "./lazy/Module"]


def test_declared_names_lists_module_level_declarations() -> None:
    source = SourceFile(
        "export type UserDto = { id: string };\n"
        "export interface Page { size: number }\n"
        "export enum Status { A = 'A' }\n"
        "const internal = 1;\n"
    )

    assert declared_names(source) == ["UserDto", "Page", "Status"]


def test_rename_identifiers_covers_types_and_values() -> None:
    source = SourceFile("export type UserDto = { parent?: UserDto };\nconst label = 'UserDto';\n")

    renamed = source.apply(rename_identifiers(source, "UserDto", "Booking_UserDto"))

    assert renamed == (
        "export type Booking_UserDto = { parent?: Booking_UserDto };\nconst label = 'UserDto';\n"
    )


def test_import_insertion_follows_import_block() -> None:
    source = SourceFile(MODULE)

    updated = source.apply([source.import_insertion("import type { Role } from '../../types';")])

    assert updated.splitlines()[2] == "import type { Role } from '../../types';"


def test_import_insertion_without_imports_skips_leading_comments() -> None:
    source = SourceFile("/* header */\nexport type A = { id: string };\n")

    updated = source.apply([source.import_insertion("import type { B } from './B';")])

    assert updated == "/* header */\nimport type { B } from './B';\nexport type A = { id: string };\n"


def test_apply_rejects_overlapping_edits() -> None:
    source = SourceFile("const value = 1;\n")

    with pytest.raises(ValueError):
        source.apply([SourceEdit(0, 5, "let"), SourceEdit(3, 8, "x")])


def test_strip_comments_preserves_string_contents() -> None:
    text = "const url = 'http://example.com/*path*/'; // trailing\n/* block */ const x = 1;\n"

    assert strip_comments(text) == "const url = 'http://example.com/*path*/'; \n const x = 1;\n"


def test_strip_banner_drops_only_the_generator_header() -> None:
    text = HEADER + "/* istanbul ignore file */\nexport type Link = { href: string }; // keep\n"

    assert strip_banner(text) == "/* istanbul ignore file */\nexport type Link = { href: string }; // keep\n"
    assert strip_banner("export type Link = {};\n") == "export type Link = {};\n"
