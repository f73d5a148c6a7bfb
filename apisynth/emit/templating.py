"""Jinja2 environment for the TypeScript templates shipped with apisynth."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader

_TEMPLATES_DIR = Path(__file__).with_name("templates")
_ENV: Optional[Environment] = None


def get_environment() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
    return _ENV


def render(template_name: str, **context: Any) -> str:
    return get_environment().get_template(template_name).render(**context)


__all__ = ["get_environment", "render"]
