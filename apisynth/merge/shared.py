"""Detection and relocation of artifacts generated identically for several services."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

from ..fs_utils import move_file, remove_empty_dir, write_text
from ..layout import COMMON_KINDS, CONFIG_MODULE, OutputLayout, list_files
from ..logging import get_logger
from ..models import ArtifactHash, GeneratedFile, MigrationRecord, SharedSummary
from ..relocation import RelocationMap
from ..scanner import files_by_name, is_index
from ..text_utils import content_digest
from .imports import rebase_relative_imports


class SharedArtifactDetector:
    """Finds ``(kind, filename)`` pairs whose copies hash equal in every service holding them."""

    def __init__(self, layout: OutputLayout, kinds: Iterable[str] = COMMON_KINDS) -> None:
        self.layout = layout
        self.kinds = tuple(kinds)
        self.logger = get_logger("shared")

    def detect(self, trees: Dict[str, List[GeneratedFile]]) -> SharedSummary:
        summary = SharedSummary()
        service_ids = [service_id for service_id in self.layout.service_ids if service_id in trees]
        for kind in self.kinds:
            # Services without this kind directory simply hold no copy.
            by_service = {service_id: files_by_name(trees[service_id], kind) for service_id in service_ids}
            filenames = sorted({name for files in by_service.values() for name in files})
            shared: List[str] = []
            for filename in filenames:
                if is_index(Path(filename)) or (kind == "core" and filename == CONFIG_MODULE):
                    continue
                holders = [service_id for service_id in service_ids if filename in by_service[service_id]]
                if len(holders) < 2:
                    continue
                hashes = {
                    service_id: ArtifactHash(
                        kind=kind,
                        filename=filename,
                        digest=content_digest(by_service[service_id][filename].source_text),
                    )
                    for service_id in holders
                }
                summary.hashes[(kind, filename)] = hashes
                if len({item.digest for item in hashes.values()}) == 1:
                    shared.append(filename)
            if shared:
                summary.shared[kind] = shared
                self.logger.info("Detected %d shared %s artifact(s)", len(shared), kind)
        return summary


class ArtifactRelocator:
    """Moves shared artifacts into ``common/`` and lifts per-service ``core/`` files."""

    def __init__(
        self,
        layout: OutputLayout,
        relocations: RelocationMap,
        record: MigrationRecord,
    ) -> None:
        self.layout = layout
        self.relocations = relocations
        self.record = record
        self.logger = get_logger("relocate")

    def relocate(self, summary: SharedSummary) -> List[Path]:
        """Write one common copy per shared artifact and delete every per-service original."""
        written: List[Path] = []
        for kind in COMMON_KINDS:
            for filename in summary.shared.get(kind, []):
                holders = [
                    service_id
                    for service_id in self.layout.service_ids
                    if (self.layout.kind_dir(service_id, kind) / filename).is_file()
                ]
                if not holders:
                    continue
                origin = self.layout.kind_dir(holders[0], kind) / filename
                target = self.layout.common_kind_dir(kind) / filename
                text = rebase_relative_imports(
                    origin.read_text(encoding="utf-8"), origin.parent, target.parent
                )
                write_text(target, text)
                written.append(target)

                for service_id in holders:
                    original = self.layout.kind_dir(service_id, kind) / filename
                    original.unlink()
                    self.relocations.add(original, target)
                    if kind == "core":
                        self.relocations.add(self.layout.service_root(service_id) / filename, target)
                if kind == "model":
                    self.record.merged.append(Path(filename).stem)
                self.logger.debug("Merged %s/%s from %s", kind, filename, ", ".join(holders))
        return written

    def lift_core(self) -> List[Path]:
        """Move remaining ``<service>/core/*.ts`` files up into the service root."""
        lifted: List[Path] = []
        for service_id in self.layout.service_ids:
            core_dir = self.layout.kind_dir(service_id, "core")
            service_root = self.layout.service_root(service_id)
            for path in list_files(core_dir, recursive=False):
                target = service_root / path.name
                text = rebase_relative_imports(path.read_text(encoding="utf-8"), core_dir, service_root)
                move_file(path, target, text)
                self.relocations.add(path, target)
                lifted.append(target)
            if remove_empty_dir(core_dir):
                self.logger.debug("Removed empty %s", core_dir)
        if lifted:
            self.logger.info("Lifted %d core file(s) into service roots", len(lifted))
        return lifted


__all__ = ["ArtifactRelocator", "SharedArtifactDetector"]
