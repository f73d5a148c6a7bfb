"""Run-scoped map of moved and renamed generated files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple


class RelocationError(RuntimeError):
    """Raised when a path would be relocated to two different targets."""


@dataclass(frozen=True)
class Relocation:
    """Where an original file now lives, and the symbol rename it carried."""

    target: Path
    rename: Optional[Tuple[str, str]] = None


def _compose(
    first: Optional[Tuple[str, str]], second: Optional[Tuple[str, str]]
) -> Optional[Tuple[str, str]]:
    if first is None:
        return second
    if second is None:
        return first
    return (first[0], second[1])


class RelocationMap:
    """Original absolute path -> new absolute path, kept at most one hop deep."""

    def __init__(self) -> None:
        self._entries: Dict[Path, Relocation] = {}

    def add(self, source: Path, target: Path, *, rename: Optional[Tuple[str, str]] = None) -> None:
        source = source.resolve()
        target = target.resolve()
        if source == target and rename is None:
            return

        forwarded = self._entries.get(target)
        if forwarded is not None and target != source:
            rename = _compose(rename, forwarded.rename)
            target = forwarded.target

        existing = self._entries.get(source)
        if existing is not None:
            if existing.target != target or existing.rename != rename:
                raise RelocationError(
                    f"{source} already relocated to {existing.target}; refusing {target}"
                )
            return

        for key, entry in list(self._entries.items()):
            if entry.target == source:
                self._entries[key] = Relocation(target, _compose(entry.rename, rename))
        self._entries[source] = Relocation(target, rename)

    def lookup(self, path: Path) -> Optional[Relocation]:
        return self._entries.get(path.resolve())

    def items(self) -> Iterator[Tuple[Path, Relocation]]:
        return iter(self._entries.items())

    def __contains__(self, path: object) -> bool:
        return isinstance(path, Path) and path.resolve() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self, root: Path | None = None) -> Dict[str, str]:
        def _fmt(path: Path) -> str:
            if root is None:
                return str(path)
            try:
                return path.relative_to(root.resolve()).as_posix()
            except ValueError:
                return str(path)

        return {_fmt(key): _fmt(entry.target) for key, entry in sorted(self._entries.items())}


__all__ = ["Relocation", "RelocationError", "RelocationMap"]
