"""Helper utilities for constructing generated client trees in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from apisynth.layout import OutputLayout

HEADER = "/* generated using openapi-typescript-codegen -- do not edit */\n"

CORE_FILES: Dict[str, str] = {
    "ApiError.ts": """
        import type { ApiRequestOptions } from './ApiRequestOptions';
        import type { ApiResult } from './ApiResult';

        export class ApiError extends Error {
        	public readonly url: string;
        	public readonly status: number;
        	public readonly request: ApiRequestOptions;

        	constructor(request: ApiRequestOptions, response: ApiResult, message: string) {
        		super(message);

        		this.name = 'ApiError';
        		this.url = response.url;
        		this.status = response.status;
        		this.request = request;
        	}
        }
    """,
    "ApiRequestOptions.ts": """
        export type ApiRequestOptions = {
        	readonly method: 'GET' | 'PUT' | 'POST' | 'DELETE';
        	readonly url: string;
        	readonly body?: any;
        };
    """,
    "ApiResult.ts": """
        export type ApiResult = {
        	readonly url: string;
        	readonly ok: boolean;
        	readonly status: number;
        	readonly body: any;
        };
    """,
    "CancelablePromise.ts": """
        export type OnCancel = {
        	(cancelHandler: () => void): void;
        };

        export class CancelError extends Error {
        	constructor(message: string) {
        		super(message);
        		this.name = 'CancelError';
        	}
        }

        export class CancelablePromise<T> {
        	readonly #promise: Promise<T>;

        	constructor(executor: (resolve: (value: T) => void, reject: (reason?: unknown) => void, onCancel: OnCancel) => void) {
        		this.#promise = new Promise<T>((resolve, reject) => executor(resolve, reject, () => undefined));
        	}

        	public then<R>(onFulfilled?: (value: T) => R): Promise<R> {
        		return this.#promise.then(onFulfilled);
        	}
        }
    """,
    "request.ts": """
        import { ApiError } from './ApiError';
        import type { ApiRequestOptions } from './ApiRequestOptions';
        import type { ApiResult } from './ApiResult';
        import { CancelablePromise } from './CancelablePromise';
        import type { OnCancel } from './CancelablePromise';
        import type { OpenAPIConfig } from './OpenAPI';

        const getUrl = (config: OpenAPIConfig, options: ApiRequestOptions): string => {
        	return `${config.BASE}${options.url}`;
        };

        const getToken = async (config: OpenAPIConfig): Promise<string | undefined> => {
        	return typeof config.TOKEN === 'function' ? undefined : config.TOKEN;
        };

        export const request = <T>(config: OpenAPIConfig, options: ApiRequestOptions): CancelablePromise<T> => {
        	return new CancelablePromise((resolve, reject, onCancel: OnCancel) => {
        		const url = getUrl(config, options);
        		void getToken(config).then(async (token) => {
        			const response = await fetch(url, { headers: token ? { Authorization: `Bearer ${token}` } : {} });
        			const result: ApiResult = { url, ok: response.ok, status: response.status, body: await response.json() };
        			if (!result.ok) {
        				reject(new ApiError(options, result, 'Generic Error'));
        				return;
        			}
        			resolve(result.body);
        		});
        	});
        };
    """,
}


def openapi_config(base: str) -> str:
    return f"""
        import type {{ ApiRequestOptions }} from './ApiRequestOptions';

        type Resolver<T> = (options: ApiRequestOptions) => Promise<T>;

        export type OpenAPIConfig = {{
        	BASE: string;
        	VERSION: string;
        	TOKEN?: string | Resolver<string> | undefined;
        }};

        export const OpenAPI: OpenAPIConfig = {{
        	BASE: '{base}',
        	VERSION: '1.0',
        	TOKEN: undefined,
        }};
    """


LINK_MODEL = """
    export type Link = {
    	href: string;
    	rel?: string;
    };
"""

LINK_SCHEMA = """
    export const $Link = {
    	properties: {
    		href: {
    			type: 'string',
    			isRequired: true,
    		},
    	},
    } as const;
"""


def service_module(name: str, imports: Iterable[str], body: str = "") -> str:
    lines = [
        *imports,
        "import type { CancelablePromise } from '../core/CancelablePromise';",
        "import { OpenAPI } from '../core/OpenAPI';",
        "import { request as __request } from '../core/request';",
        "",
        f"export class {name} {{",
        "\tpublic static ping(): CancelablePromise<void> {",
        "\t\treturn __request(OpenAPI, { method: 'GET', url: '/ping' });",
        "\t}",
    ]
    if body:
        lines.append(textwrap.indent(textwrap.dedent(body).strip("\n"), "\t"))
    lines.append("}")
    return "\n".join(lines) + "\n"


class TreeBuilder:
    """Writes generated per-service trees under a temporary output root."""

    def __init__(self, tmp_path: Path, service_ids: Iterable[str] = ("identity", "booking")) -> None:
        self.root = tmp_path / "out"
        self.root.mkdir(exist_ok=True)
        self.service_ids = list(service_ids)
        self.layout = OutputLayout(root=self.root.resolve(), service_ids=self.service_ids)

    def write(self, service_id: str, files: Mapping[str, str]) -> None:
        """Write ``relative path -> contents`` entries into one service tree."""
        write_files(self.layout.service_root(service_id), files)

    def write_core(self, service_id: str, *, base: str = "http://localhost:8080") -> None:
        files = {f"core/{name}": text for name, text in CORE_FILES.items()}
        files["core/OpenAPI.ts"] = openapi_config(base)
        self.write(service_id, files)

    def path(self, relative: str) -> Path:
        return self.layout.root / relative

    def read(self, relative: str) -> str:
        return self.path(relative).read_text(encoding="utf-8")


def write_files(root: Path, files: Mapping[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        normalised = textwrap.dedent(content).lstrip("\n")
        path.write_text(normalised, encoding="utf-8")


class FakeGenerator:
    """Stands in for the external generator by writing canned trees per service id."""

    def __init__(self, trees: Mapping[str, Mapping[str, str]]) -> None:
        self.trees = trees
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, input_path: Path, output_dir: Path) -> None:
        document = json.loads(input_path.read_text(encoding="utf-8"))
        self.calls.append({"input": input_path, "output": output_dir, "title": document["info"]["title"]})
        write_files(output_dir, self.trees[output_dir.name])


def openapi_document(title: str, schemas: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "openapi": "3.0.1",
        "info": {"title": title, "version": "1.0"},
        "paths": {},
        "components": {"schemas": dict(schemas)},
    }


__all__ = [
    "CORE_FILES",
    "FakeGenerator",
    "HEADER",
    "LINK_MODEL",
    "LINK_SCHEMA",
    "TreeBuilder",
    "openapi_config",
    "openapi_document",
    "service_module",
    "write_files",
]
