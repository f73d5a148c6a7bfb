"""Emitters for the shared runtime, the types module and per-service facades."""

from .client import CombinedClientWriter
from .runtime import HttpRuntimeExtractor
from .types import TypesSynthesizer

__all__ = ["CombinedClientWriter", "HttpRuntimeExtractor", "TypesSynthesizer"]
