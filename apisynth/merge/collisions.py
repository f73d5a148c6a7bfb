"""Namespaced renaming of same-named models that differ between services."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from ..fs_utils import move_file
from ..layout import OutputLayout, list_files
from ..logging import get_logger
from ..models import MigrationRecord, RenameEntry
from ..relocation import RelocationMap
from ..scanner import is_index
from ..text_utils import pascal
from ..typescript import SourceFile, rename_identifiers


def namespaced_name(service_id: str, name: str) -> str:
    return f"{pascal(service_id)}_{name}"


class CollisionResolver:
    """Renames every copy of a model still present in more than one service."""

    def __init__(
        self,
        layout: OutputLayout,
        relocations: RelocationMap,
        record: MigrationRecord,
    ) -> None:
        self.layout = layout
        self.relocations = relocations
        self.record = record
        self.logger = get_logger("collisions")

    def find_collisions(self) -> Dict[str, List[str]]:
        """Return model filename -> owning service ids, for filenames owned more than once."""
        owners: Dict[str, List[str]] = {}
        for service_id in self.layout.service_ids:
            for path in list_files(self.layout.kind_dir(service_id, "model"), recursive=False):
                if is_index(path):
                    continue
                owners.setdefault(path.name, []).append(service_id)
        return {name: ids for name, ids in sorted(owners.items()) if len(ids) > 1}

    def resolve(self) -> List[RenameEntry]:
        entries: List[RenameEntry] = []
        for filename, service_ids in self.find_collisions().items():
            name = Path(filename).stem
            for service_id in service_ids:
                entries.append(self._rename(service_id, name))
            self.logger.info(
                "Model %s differs across %s; renamed per service", name, ", ".join(service_ids)
            )
        return entries

    def _rename(self, service_id: str, name: str) -> RenameEntry:
        models_dir = self.layout.kind_dir(service_id, "model")
        source_path = models_dir / f"{name}.ts"
        new_name = namespaced_name(service_id, name)
        target = models_dir / f"{new_name}.ts"

        source = SourceFile(source_path.read_text(encoding="utf-8"))
        text = source.apply(rename_identifiers(source, name, new_name))
        move_file(source_path, target, text)
        self.relocations.add(source_path, target, rename=(name, new_name))

        entry = RenameEntry(from_name=name, to_name=new_name)
        self.record.renamed.append(entry)
        self.logger.debug("Renamed %s -> %s", source_path, target)
        return entry


__all__ = ["CollisionResolver", "namespaced_name"]
