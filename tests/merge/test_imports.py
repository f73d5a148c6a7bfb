"""Tests for import re-basing and the import graph rewrite."""

from __future__ import annotations

from pathlib import Path

from apisynth.merge.imports import ImportGraphRewriter, rebase_relative_imports
from apisynth.relocation import RelocationMap
from tests._fixtures.tree_builder import TreeBuilder, write_files


def test_rebase_relative_imports_keeps_targets_stable(tmp_path: Path) -> None:
    text = (
        "import type { Link } from './Link';\n"
        "import { request } from '../core/request';\n"
        "import axios from 'axios';\n"
    )

    rebased = rebase_relative_imports(text, tmp_path / "identity" / "models", tmp_path / "common" / "models")

    assert rebased == (
        "import type { Link } from '../../identity/models/Link';\n"
        "import { request } from '../../identity/core/request';\n"
        "import axios from 'axios';\n"
    )


def test_rebase_relative_imports_into_parent_directory(tmp_path: Path) -> None:
    text = "import type { ApiResult } from './ApiResult';\nimport type { Link } from '../models/Link';\n"

    rebased = rebase_relative_imports(text, tmp_path / "identity" / "core", tmp_path / "identity")

    assert rebased == "import type { ApiResult } from './core/ApiResult';\nimport type { Link } from './models/Link';\n"


def test_rewriter_follows_relocations(tree_builder: TreeBuilder) -> None:
    tree_builder.write(
        "identity",
        {
            "services/UserService.ts": """
                import type { Link } from '../models/Link';
                import type { Page } from '../models/Page';
                export const load = () => import('../models/Link');
            """,
            "models/Page.ts": "export type Page = { size: number };\n",
            "models/Link.ts": "export type Link = { href: string };\n",
        },
    )
    common_link = tree_builder.path("common/models/Link.ts")
    relocations = RelocationMap()
    relocations.add(tree_builder.path("identity/models/Link.ts"), common_link)

    report = ImportGraphRewriter(relocations).rewrite_tree(tree_builder.layout.root)

    assert tree_builder.read("identity/services/UserService.ts") == (
        "import type { Link } from '../../common/models/Link';\n"
        "import type { Page } from '../models/Page';\n"
        "export const load = () => import('../../common/models/Link');\n"
    )
    assert report.specifiers_rewritten == 2
    assert report.files_changed == [tree_builder.path("identity/services/UserService.ts")]


def test_rewriter_applies_symbol_renames(tree_builder: TreeBuilder) -> None:
    tree_builder.write(
        "booking",
        {
            "services/BookingService.ts": "import type { UserDto } from '../models/UserDto';\n",
            "index.ts": "export { UserDto } from './models/UserDto';\n",
            "models/Booking_UserDto.ts": "export type Booking_UserDto = { id: string };\n",
        },
    )
    relocations = RelocationMap()
    relocations.add(
        tree_builder.path("booking/models/UserDto.ts"),
        tree_builder.path("booking/models/Booking_UserDto.ts"),
        rename=("UserDto", "Booking_UserDto"),
    )

    ImportGraphRewriter(relocations).rewrite_tree(tree_builder.layout.root)

    assert tree_builder.read("booking/services/BookingService.ts") == (
        "import type { Booking_UserDto as UserDto } from '../models/Booking_UserDto';\n"
    )
    assert tree_builder.read("booking/index.ts") == (
        "export { Booking_UserDto } from './models/Booking_UserDto';\n"
    )


def test_rewriter_handles_directory_and_suffixed_specifiers(tree_builder: TreeBuilder) -> None:
    tree_builder.write(
        "identity",
        {
            "index.ts": "export * from './models';\nexport { request } from './core/request.ts';\n",
        },
    )
    relocations = RelocationMap()
    relocations.add(tree_builder.path("identity/models/index.ts"), tree_builder.path("common/models/index.ts"))
    relocations.add(tree_builder.path("identity/core/request.ts"), tree_builder.path("http/request.ts"))

    ImportGraphRewriter(relocations).rewrite_tree(tree_builder.layout.root)

    assert tree_builder.read("identity/index.ts") == (
        "export * from '../common/models';\nexport { request } from '../http/request.ts';\n"
    )


def test_rewriter_is_idempotent_with_empty_map(tree_builder: TreeBuilder) -> None:
    tree_builder.write(
        "identity",
        {
            "services/UserService.ts": "import type { Link } from '../../common/models/Link';\n",
        },
    )
    write_files(tree_builder.layout.common_dir, {"models/Link.ts": "export type Link = { href: string };\n"})
    before = tree_builder.read("identity/services/UserService.ts")

    report = ImportGraphRewriter(RelocationMap()).rewrite_tree(tree_builder.layout.root)

    assert tree_builder.read("identity/services/UserService.ts") == before
    assert report.files_changed == []
    assert report.specifiers_rewritten == 0
    assert report.dangling == []


def test_rewriter_reports_dangling_specifiers(tree_builder: TreeBuilder) -> None:
    tree_builder.write("identity", {"services/UserService.ts": "import type { Gone } from '../models/Gone';\n"})

    report = ImportGraphRewriter(RelocationMap()).rewrite_tree(tree_builder.layout.root)

    service = tree_builder.path("identity/services/UserService.ts")
    assert report.dangling == [(service, "../models/Gone")]
    assert tree_builder.read("identity/services/UserService.ts") == "import type { Gone } from '../models/Gone';\n"
