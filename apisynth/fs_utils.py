"""Filesystem helpers for the output and work directories."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any


def clean_dir(path: Path) -> Path:
    """Remove ``path`` recursively and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path: Path, payload: Any) -> Path:
    return write_text(path, json.dumps(payload, indent=2) + "\n")


def move_file(source: Path, target: Path, text: str | None = None) -> Path:
    """Write ``text`` (or the source contents) to ``target`` and delete ``source``."""
    contents = source.read_text(encoding="utf-8") if text is None else text
    write_text(target, contents)
    if source.resolve() != target.resolve():
        source.unlink()
    return target


def remove_empty_dir(path: Path) -> bool:
    if path.is_dir() and not any(path.iterdir()):
        path.rmdir()
        return True
    return False


__all__ = ["clean_dir", "move_file", "remove_empty_dir", "write_json", "write_text"]
