"""Pipeline orchestration for the multi-service client build."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from .config import SynthConfig, load_config, resolve_service_sources
from .emit import CombinedClientWriter, HttpRuntimeExtractor, TypesSynthesizer
from .fs_utils import clean_dir, write_json
from .generator import CodegenRunner
from .layout import OutputLayout
from .loader import SpecLoader
from .logging import get_logger, log_step
from .merge import (
    ArtifactRelocator,
    CollisionResolver,
    EnumNamer,
    EnumNamespaceLifter,
    EnumRegistry,
    ImportGraphRewriter,
    ResponseWrapperCollapser,
    RewriteReport,
    SharedArtifactDetector,
    SpecEnumHarvester,
)
from .models import MigrationRecord, ResponseAlias, SharedSummary, SpecDocument
from .relocation import RelocationMap
from .scanner import scan_services, strip_generator_banners

MIGRATION_MAP_FILENAME = "migration-map.json"
RELOCATION_MAP_FILENAME = "relocation-map.json"


@dataclass
class PipelineResult:
    """Summary of one build run."""

    output_dir: Path
    summary: SharedSummary
    record: MigrationRecord
    relocations: RelocationMap
    registry: EnumRegistry
    rewrite: RewriteReport
    aliases: List[ResponseAlias] = field(default_factory=list)
    runtime_files: List[Path] = field(default_factory=list)


class Orchestrator:
    """Coordinates loading, generation, merging and emission for every configured service."""

    def __init__(
        self,
        loader: SpecLoader | None = None,
        generator: CodegenRunner | None = None,
    ) -> None:
        self._loader = loader
        self._generator = generator
        self.logger = get_logger("orchestrator")

    def run_build(
        self,
        path: str | Path = ".",
        *,
        config_path: Path | None = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> PipelineResult:
        """Load configuration from ``path`` (or ``config_path``) and run the full build."""
        project_root = Path(path).expanduser().resolve()
        config = load_config(config_path or project_root)
        return self.run(config, environ=environ)

    def run(self, config: SynthConfig, *, environ: Optional[Mapping[str, str]] = None) -> PipelineResult:
        sources = resolve_service_sources(config, environ)
        service_ids = [source.service_id for source in sources]
        self.logger.info("Building combined client for %s", ", ".join(service_ids))

        clean_dir(config.work_dir)
        clean_dir(config.output_dir)
        layout = OutputLayout(root=config.output_dir.resolve(), service_ids=service_ids)

        loader = self._loader or SpecLoader(root=config.root, timeout=config.fetch_timeout)
        with log_step(self.logger, "Loading OpenAPI documents"):
            documents = loader.load_all(sources)
        self.logger.info("Loaded %d OpenAPI document(s)", len(documents))

        self._generate(config, layout, documents)
        stripped = strip_generator_banners(layout)
        self.logger.debug("Removed generator banners from %d file(s)", len(stripped))

        relocations = RelocationMap()
        record = MigrationRecord()

        with log_step(self.logger, "Merging shared artifacts"):
            summary = SharedArtifactDetector(layout).detect(scan_services(layout))
            relocator = ArtifactRelocator(layout, relocations, record)
            relocator.relocate(summary)
            relocator.lift_core()

        with log_step(self.logger, "Resolving model collisions"):
            CollisionResolver(layout, relocations, record).resolve()

        with log_step(self.logger, "Normalising enums"):
            namer = EnumNamer(config.enum_names)
            registry = SpecEnumHarvester(namer).harvest(documents)
            EnumNamespaceLifter(layout, registry, namer).run()

        with log_step(self.logger, "Collapsing response envelopes"):
            aliases = ResponseWrapperCollapser(layout, record).collapse()

        with log_step(self.logger, "Extracting HTTP runtime and shared types"):
            runtime_files = HttpRuntimeExtractor(layout, relocations).extract()
            TypesSynthesizer(layout, registry).write(aliases)

        self.logger.info("Rewriting imports through %d relocation(s)", len(relocations))
        with log_step(self.logger, "Rewriting imports"):
            rewrite = ImportGraphRewriter(relocations).rewrite_tree(layout.root)
        self.logger.info(
            "Rewrote %d specifier(s) across %d file(s)",
            rewrite.specifiers_rewritten,
            len(rewrite.files_changed),
        )

        CombinedClientWriter(layout).write_all()
        write_json(layout.types_dir / MIGRATION_MAP_FILENAME, record.to_dict())
        write_json(config.work_dir / RELOCATION_MAP_FILENAME, relocations.to_dict(layout.root))
        self.logger.info("Client library written to %s", layout.root)

        return PipelineResult(
            output_dir=layout.root,
            summary=summary,
            record=record,
            relocations=relocations,
            registry=registry,
            rewrite=rewrite,
            aliases=aliases,
            runtime_files=runtime_files,
        )

    def _generate(self, config: SynthConfig, layout: OutputLayout, documents: List[SpecDocument]) -> None:
        generator = self._generator or CodegenRunner(
            config.generator.command, timeout=config.generator.timeout
        )
        for document in documents:
            input_path = config.work_dir / f"{document.service_id}.openapi.json"
            input_path.write_text(json.dumps(document.document, indent=2), encoding="utf-8")
            self.logger.info("Generating %s client", document.service_id)
            generator.run(input_path, layout.service_root(document.service_id))


__all__ = ["MIGRATION_MAP_FILENAME", "Orchestrator", "PipelineResult"]
