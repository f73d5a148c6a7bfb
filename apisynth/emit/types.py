"""Synthesis of the shared ``types/index.ts`` module."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Sequence, Set, Tuple

from ..fs_utils import write_text
from ..layout import OutputLayout, relative_specifier, strip_ts_suffix
from ..logging import get_logger
from ..merge.enums import EnumRegistry
from ..models import EnumEntry, ResponseAlias
from ..scanner import is_index
from .templating import render

PRIMITIVES: Tuple[Tuple[str, str], ...] = (
    ("Email", "string"),
    ("ID", "string | number"),
    ("DateTime", "string"),
)
CORE_TYPES = ("ApiError", "ApiMeta", "PaginationMeta", "SortingMeta", "FilteringMeta")
GENERIC_ENVELOPE = "ApiResponse"
BUILTIN_TYPES = frozenset({"unknown", "void", "string", "boolean", "number"})

_NON_KEY = re.compile(r"[^A-Za-z0-9_$]")
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")


def enum_key(value: str) -> str:
    """Return an object key usable for ``value`` in a ``const`` enum object."""
    key = _NON_KEY.sub("_", value)
    if not key:
        return "UNKNOWN"
    if key[0].isdigit():
        key = f"_{key}"
    return key


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _enum_members(values: Sequence[str]) -> List[Tuple[str, str]]:
    members: List[Tuple[str, str]] = []
    seen: Set[str] = set()
    for value in values:
        base = key = enum_key(value)
        suffix = 2
        while key in seen:
            key = f"{base}_{suffix}"
            suffix += 1
        seen.add(key)
        members.append((key, _quote(value)))
    return members


def _enum_context(entry: EnumEntry) -> Dict[str, object]:
    return {"name": entry.name, "members": _enum_members(entry.values)}


class TypesSynthesizer:
    """Writes primitives, enums, core types, the generic envelope, models and aliases."""

    def __init__(self, layout: OutputLayout, registry: EnumRegistry) -> None:
        self.layout = layout
        self.registry = registry
        self.logger = get_logger("types")

    @property
    def index_path(self) -> Path:
        return self.layout.types_dir / "index.ts"

    def reserved_names(self) -> Set[str]:
        reserved = {name for name, _ in PRIMITIVES}
        reserved.update(CORE_TYPES)
        reserved.add(GENERIC_ENVELOPE)
        reserved.update(self.registry.names())
        return reserved

    def surviving_models(self, aliases: Sequence[ResponseAlias] = ()) -> List[Dict[str, str]]:
        skipped = self.reserved_names() | {alias.name for alias in aliases}
        models: Dict[str, str] = {}
        for path in self.layout.iter_model_files():
            if is_index(path) or path.stem in skipped or path.stem in models:
                continue
            models[path.stem] = strip_ts_suffix(relative_specifier(path, self.layout.types_dir))
        return [{"name": name, "specifier": models[name]} for name in sorted(models)]

    def render(self, aliases: Sequence[ResponseAlias] = ()) -> str:
        models = self.surviving_models(aliases)
        known = {model["name"] for model in models} | self.reserved_names() | BUILTIN_TYPES

        inline: List[ResponseAlias] = []
        reexported: List[Dict[str, str]] = []
        for alias in sorted(aliases, key=lambda item: item.name):
            if all(name in known for name in _IDENTIFIER.findall(alias.payload)):
                inline.append(alias)
            elif alias.path is not None:
                specifier = strip_ts_suffix(relative_specifier(alias.path, self.layout.types_dir))
                reexported.append({"name": alias.name, "specifier": specifier})

        return render(
            "types_index.ts.j2",
            primitives=PRIMITIVES,
            enums=[_enum_context(entry) for entry in self.registry.entries()],
            models=models,
            aliases=inline,
            reexported=reexported,
        )

    def write(self, aliases: Sequence[ResponseAlias] = ()) -> Path:
        path = write_text(self.index_path, self.render(aliases))
        self.logger.info(
            "Wrote %s with %d enum(s) and %d response alias(es)", path, len(self.registry), len(aliases)
        )
        return path


__all__ = ["CORE_TYPES", "PRIMITIVES", "TypesSynthesizer", "enum_key"]
