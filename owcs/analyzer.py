"""Assemble the intermediate model for a project."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .analysis.class_resolver import ClassResolver
from .analysis.discovery import RegistrationDiscoverer
from .analysis.extractor import StructuralExtractor
from .analysis.federation import FederationExtractor
from .analysis.schema import SchemaCompiler
from .config import OwcsConfig, load_config
from .diagnostics import DiagnosticCollector
from .logging import get_logger
from .models import AnalysisResult, ComponentModel, IntermediateModel
from .program.base import ProgramFacility
from .program.treesitter import TreeSitterProgram


class ProjectAnalyzer:
    """Runs discovery, resolution and extraction over one project."""

    def __init__(
        self,
        root: Path,
        config: Optional[OwcsConfig] = None,
        program: Optional[ProgramFacility] = None,
    ) -> None:
        self.logger = get_logger("analyzer")
        self.config = config or load_config(Path(root))
        self.root = self.config.root if config is None else Path(root).resolve()
        self._program = program

    @property
    def program(self) -> ProgramFacility:
        if self._program is None:
            self._program = TreeSitterProgram(
                self.root,
                tsconfig_path=self.config.tsconfig,
                exclude_paths=self.config.exclude_paths,
            )
        return self._program

    def analyze(self) -> AnalysisResult:
        diagnostics = DiagnosticCollector()
        program = self.program
        analysis = self.config.analysis

        discoverer = RegistrationDiscoverer(
            diagnostics,
            registries=analysis.registries,
            element_factories=analysis.element_factories,
        )
        resolver = ClassResolver(program, diagnostics)
        compiler = SchemaCompiler(program.resolver, max_depth=analysis.max_type_depth)
        extractor = StructuralExtractor(
            program.resolver,
            compiler,
            diagnostics,
            known_bases=analysis.known_bases,
            plain_bases=analysis.plain_bases,
            reserved_props=analysis.reserved_props,
        )

        registrations = discoverer.discover(program)
        self.logger.info("Discovered %d registration(s) under %s", len(registrations), program.root)

        components: List[ComponentModel] = []
        for registration in registrations:
            declaration = resolver.resolve(registration.definition_name, registration.origin_file)
            if declaration is None:
                continue
            extraction = extractor.extract(declaration)
            components.append(
                ComponentModel(
                    tag_name=registration.tag_name,
                    definition_name=registration.definition_name,
                    module_path=registration.origin_file.rel_path,
                    props=tuple(extraction.props),
                    events=tuple(extraction.events),
                )
            )

        runtime = FederationExtractor(diagnostics).extract(program.root, self.config.adapter)
        model = IntermediateModel(runtime=runtime, components=components)
        self.logger.info(
            "Assembled %d component(s) with %d warning(s)", len(components), len(diagnostics)
        )
        return AnalysisResult(model=model, diagnostics=diagnostics.records)


def analyze_project(
    root: Path | str,
    config_path: Optional[Path | str] = None,
    tsconfig_path: Optional[Path | str] = None,
) -> AnalysisResult:
    """Load configuration for ``root`` and analyze it in one call."""
    config = load_config(Path(root), Path(config_path) if config_path is not None else None)
    if tsconfig_path is not None:
        config.tsconfig = Path(tsconfig_path)
    return ProjectAnalyzer(config.root, config=config).analyze()


__all__ = ["ProjectAnalyzer", "analyze_project"]
