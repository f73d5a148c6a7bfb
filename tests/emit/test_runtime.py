"""Tests for extraction of the shared HTTP runtime."""

from __future__ import annotations

import textwrap

from apisynth.emit.runtime import (
    HttpRuntimeExtractor,
    localize_imports,
    openapi_declaration,
    rename_error_class,
    transform_request,
)
from apisynth.relocation import RelocationMap
from tests._fixtures.tree_builder import CORE_FILES, TreeBuilder, openapi_config, write_files


def _core(name: str) -> str:
    return textwrap.dedent(CORE_FILES[name]).lstrip("\n")


def _config(base: str) -> str:
    return textwrap.dedent(openapi_config(base)).lstrip("\n")


def test_localize_imports_points_at_sibling_modules() -> None:
    text = (
        "import { ApiError } from '../../common/core/ApiError';\n"
        "import type { ApiResult } from './ApiResult';\n"
        "import type { OpenAPIConfig } from '../OpenAPI';\n"
        "import axios from 'axios';\n"
    )

    assert localize_imports(text) == (
        "import { ApiError } from './errors';\n"
        "import type { ApiResult } from './ApiResult';\n"
        "import type { OpenAPIConfig } from '../OpenAPI';\n"
        "import axios from 'axios';\n"
    )


def test_rename_error_class_updates_name_string() -> None:
    renamed = rename_error_class(_core("ApiError.ts"))

    assert "export class ApiClientError extends Error {" in renamed
    assert "this.name = 'ApiClientError';" in renamed
    assert "import type { ApiRequestOptions } from './ApiRequestOptions';" in renamed
    assert "ApiError" not in renamed


def test_openapi_declaration_returns_exported_statement() -> None:
    declaration = openapi_declaration(_config("http://identity:8080"))

    assert declaration is not None
    assert declaration.startswith("export const OpenAPI: OpenAPIConfig = {")
    assert "BASE: 'http://identity:8080'," in declaration
    assert openapi_declaration("export const other = 1;\n") is None


def test_transform_request_inlines_config_and_routes_reads() -> None:
    text = transform_request(_core("request.ts"), _config("http://identity:8080"))

    assert "from './OpenAPI'" not in text
    assert "import { ApiClientError } from './ApiError';" in text
    assert "reject(new ApiClientError(options, result, 'Generic Error'));" in text
    assert "return `${resolveBase(config)}${options.url}`;" in text
    assert "return typeof resolveToken(config) === 'function' ? undefined : resolveToken(config);" in text
    assert "BASE: 'http://identity:8080'," in text
    assert text.index("import type { OnCancel }") < text.index("export type OpenAPIConfig") < text.index(
        "const getUrl"
    )
    assert "export function setBaseUrl(baseUrl: string): void {" in text
    assert "export function setAuth(token?: string): void {" in text
    assert "transportContext = Object.freeze({ ...transportContext, baseUrl });" in text
    assert "function resolveBase(config: OpenAPIConfig): string {" in text


def test_transform_request_without_config_uses_default_object() -> None:
    text = transform_request(_core("request.ts"), None)

    assert "export const OpenAPI: OpenAPIConfig = {\n  BASE: ''," in text


def test_extract_builds_http_directory(tree_builder: TreeBuilder) -> None:
    write_files(tree_builder.layout.common_kind_dir("core"), CORE_FILES)
    tree_builder.write("identity", {"OpenAPI.ts": openapi_config("http://identity:8080")})
    tree_builder.write("booking", {"OpenAPI.ts": openapi_config("http://booking:8080")})
    relocations = RelocationMap()

    written = HttpRuntimeExtractor(tree_builder.layout, relocations).extract()

    assert [path.name for path in written] == [
        "ApiRequestOptions.ts",
        "ApiResult.ts",
        "CancelablePromise.ts",
        "errors.ts",
        "request.ts",
    ]
    assert not tree_builder.path("common/core").exists()
    assert not tree_builder.path("identity/OpenAPI.ts").exists()
    assert not tree_builder.path("booking/OpenAPI.ts").exists()

    request = tree_builder.read("http/request.ts")
    assert "import { ApiClientError } from './errors';" in request
    assert "BASE: 'http://identity:8080'," in request
    assert "this.name = 'ApiClientError';" in tree_builder.read("http/errors.ts")

    index = tree_builder.read("http/index.ts")
    assert "export { ApiClientError } from './errors';" in index
    assert "export type { OpenAPIConfig, TransportContext } from './request';" in index

    error = relocations.lookup(tree_builder.path("common/core/ApiError.ts"))
    assert error is not None
    assert error.target == tree_builder.path("http/errors.ts")
    assert error.rename == ("ApiError", "ApiClientError")
    config = relocations.lookup(tree_builder.path("booking/OpenAPI.ts"))
    assert config is not None
    assert config.target == tree_builder.path("http/request.ts")


def test_extract_falls_back_to_service_roots(tree_builder: TreeBuilder) -> None:
    tree_builder.write("booking", {"ApiResult.ts": CORE_FILES["ApiResult.ts"]})
    relocations = RelocationMap()

    written = HttpRuntimeExtractor(tree_builder.layout, relocations).extract()

    assert written == [tree_builder.path("http/ApiResult.ts")]
    assert not tree_builder.path("booking/ApiResult.ts").exists()
    index = tree_builder.read("http/index.ts")
    assert index == "export type { ApiResult } from './ApiResult';\n"
