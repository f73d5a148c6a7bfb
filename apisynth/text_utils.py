"""Text normalisation, hashing and naming helpers."""

from __future__ import annotations

import hashlib
import re

from .typescript import strip_comments

_SEPARATORS = re.compile(r"[_\-\s]+")
_NON_WORD = re.compile(r"[^\w]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Drop comments and collapse whitespace runs so formatting never affects identity."""
    stripped = strip_comments(text.replace("\r\n", "\n"))
    return _WHITESPACE.sub(" ", stripped).strip()


def sha(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def content_digest(text: str) -> str:
    return sha(normalize_text(text))


def pascal(value: str) -> str:
    """Convert ``snake_case``, ``kebab-case`` or spaced words to PascalCase."""
    parts = _SEPARATORS.sub(" ", value).split(" ")
    joined = "".join(part[:1].upper() + part[1:] for part in parts)
    return _NON_WORD.sub("", joined)


__all__ = ["content_digest", "normalize_text", "pascal", "sha"]
