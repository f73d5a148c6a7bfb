"""Fetches and parses each service's OpenAPI document."""

from __future__ import annotations

import json
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .logging import get_logger
from .models import ServiceSource, SpecDocument

_HTTP_SOURCE = re.compile(r"^https?://", re.IGNORECASE)
_FILE_PREFIX = "file://"


class SpecLoadError(RuntimeError):
    """Raised when an OpenAPI document cannot be fetched or parsed."""


class SpecLoader:
    """Loads OpenAPI documents from HTTP(S) URLs, ``file://`` URLs or filesystem paths."""

    def __init__(self, *, root: Path | None = None, timeout: float = 30.0) -> None:
        self.root = (root or Path.cwd()).resolve()
        self.timeout = timeout
        self.logger = get_logger("loader")

    def load(self, source: str) -> Dict[str, Any]:
        """Return the parsed document tree for ``source``."""
        if _HTTP_SOURCE.match(source):
            return self._fetch(source)
        return self._read(source)

    def load_all(self, sources: Sequence[ServiceSource]) -> List[SpecDocument]:
        """Load every service's document concurrently; any failure aborts the whole set."""
        if not sources:
            return []

        def _load(item: ServiceSource) -> SpecDocument:
            self.logger.debug("Loading %s document from %s", item.service_id, item.source)
            return SpecDocument(
                service_id=item.service_id,
                source=item.source,
                document=self.load(item.source),
            )

        with ThreadPoolExecutor(max_workers=len(sources)) as pool:
            return list(pool.map(_load, sources))

    def _fetch(self, url: str) -> Dict[str, Any]:
        request = Request(url, headers={"Accept": "application/json"}, method="GET")
        try:
            with urlopen(request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise SpecLoadError(f"Fetching {url} failed with status {exc.code}: {exc.reason}") from exc
        except URLError as exc:
            raise SpecLoadError(f"Fetching {url} failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise SpecLoadError(f"Fetching {url} timed out after {self.timeout}s") from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SpecLoadError(f"OpenAPI document at {url} is not valid UTF-8: {exc}") from exc
        return self._parse(text, url)

    def _read(self, source: str) -> Dict[str, Any]:
        if source.startswith(_FILE_PREFIX):
            source = source[len(_FILE_PREFIX) :]
        path = Path(source).expanduser()
        if not path.is_absolute():
            path = self.root / path
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SpecLoadError(f"Unable to read OpenAPI document {path}: {exc}") from exc
        return self._parse(raw, str(path))

    @staticmethod
    def _parse(raw: str, origin: str) -> Dict[str, Any]:
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SpecLoadError(f"OpenAPI document at {origin} is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise SpecLoadError(f"OpenAPI document at {origin} must be a JSON object")
        return document


__all__ = ["SpecLoadError", "SpecLoader"]
