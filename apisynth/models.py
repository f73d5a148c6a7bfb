"""Core data models shared across apisynth components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

KIND_DIRECTORIES: Dict[str, str] = {
    "core": "core",
    "model": "models",
    "schema": "schemas",
    "service": "services",
}


@dataclass
class ServiceSource:
    """A service identifier paired with the address of its OpenAPI document."""

    service_id: str
    source: str


@dataclass
class SpecDocument:
    """One parsed OpenAPI document; read-only once loaded."""

    service_id: str
    source: str
    document: Dict[str, Any]

    @property
    def schemas(self) -> Dict[str, Any]:
        components = self.document.get("components")
        if not isinstance(components, dict):
            return {}
        schemas = components.get("schemas")
        return schemas if isinstance(schemas, dict) else {}


@dataclass
class GeneratedFile:
    """A source file emitted by the per-service generator."""

    service_id: str
    path: Path
    kind: str
    source_text: str

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def name(self) -> str:
        return self.path.stem


@dataclass(frozen=True)
class ArtifactHash:
    """Normalized-content digest of a generated artifact."""

    kind: str
    filename: str
    digest: str


@dataclass
class SharedSummary:
    """Filenames detected as identical across services, grouped by kind."""

    shared: Dict[str, List[str]] = field(default_factory=dict)
    hashes: Dict[Tuple[str, str], Dict[str, ArtifactHash]] = field(default_factory=dict)

    def is_shared(self, kind: str, filename: str) -> bool:
        return filename in self.shared.get(kind, [])

    def names(self, kind: str) -> List[str]:
        return [Path(filename).stem for filename in self.shared.get(kind, [])]


@dataclass
class RenameEntry:
    """Records a model renamed to resolve a collision."""

    from_name: str
    to_name: str
    reason: str = "collision"

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_name, "to": self.to_name, "reason": self.reason}


@dataclass
class AliasEntry:
    """Records a response envelope collapsed into a generic alias."""

    alias: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"alias": self.alias, "target": self.target}


@dataclass
class MigrationRecord:
    """Append-only audit trail of merge, rename and alias decisions."""

    merged: List[str] = field(default_factory=list)
    renamed: List[RenameEntry] = field(default_factory=list)
    aliases: List[AliasEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merged": list(self.merged),
            "renamed": [entry.to_dict() for entry in self.renamed],
            "aliases": [entry.to_dict() for entry in self.aliases],
        }


@dataclass
class EnumEntry:
    """A named string enumeration identified by its unordered value set."""

    name: str
    values: List[str]
    sources: List[str] = field(default_factory=list)

    @property
    def key(self) -> frozenset[str]:
        return frozenset(self.values)


@dataclass
class ResponseAlias:
    """A collapsed `ApiResponse<T>` envelope model."""

    name: str
    payload: str
    path: Optional[Path] = None
