"""Locate the declaration behind a registered definition name."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..diagnostics import DiagnosticCollector
from ..logging import get_logger
from ..program.base import Declaration, ProgramFacility, SourceFile
from ..program.symbols import ImportBinding, build_symbol_table

_LOGGER = get_logger("analysis.class_resolver")

MANUAL_SUFFIXES = (".ts", ".tsx", "/index.ts", "/index.tsx", "")


def pick_component(declarations: List[Declaration]) -> Optional[Declaration]:
    """Prefer a class declaration site, then a function-style component."""
    for declaration in declarations:
        if declaration.is_class:
            return declaration
    for declaration in declarations:
        if declaration.is_component:
            return declaration
    return None


class ClassResolver:
    """Import-based lookup first, then a manual file probe, then the origin file itself."""

    def __init__(self, program: ProgramFacility, diagnostics: DiagnosticCollector) -> None:
        self._program = program
        self._diagnostics = diagnostics

    def resolve(self, definition_name: str, origin: SourceFile) -> Optional[Declaration]:
        binding = _import_binding(origin, definition_name)
        if binding is not None:
            found = self._from_import(binding, origin)
            if found is None:
                found = self._manual_fallback(binding, origin)
        else:
            found = pick_component(build_symbol_table(origin).declared(definition_name))

        if found is None:
            self._diagnostics.warn(
                "resolution.not-found",
                f"No declaration found for {definition_name}",
                file=origin.rel_path,
                symbol=definition_name,
            )
            return None
        _LOGGER.debug("Resolved %s to %s:%d", definition_name, found.source.rel_path, found.source.line_of(found.node))
        return found

    def _from_import(self, binding: ImportBinding, origin: SourceFile) -> Optional[Declaration]:
        symbol = self._program.resolver.resolve_import(origin, binding.local_name)
        if symbol is None:
            return None
        return pick_component(symbol.declarations)

    def _manual_fallback(self, binding: ImportBinding, origin: SourceFile) -> Optional[Declaration]:
        if not binding.specifier.startswith("."):
            return None
        base = origin.path.parent / binding.specifier
        for suffix in MANUAL_SUFFIXES:
            candidate = Path(str(base) + suffix)
            if not candidate.is_file():
                continue
            target = self._program.load_file(candidate)
            if target is None:
                continue
            declarations = build_symbol_table(target).declarations
            if binding.imported_name == "default":
                matching = [decl for decl in declarations if decl.default_export or decl.name == binding.local_name]
            else:
                matching = [decl for decl in declarations if decl.name == binding.imported_name]
            found = pick_component(matching)
            if found is not None:
                _LOGGER.debug("Manual lookup found %s in %s", binding.imported_name, target.rel_path)
                return found
        return None


def _import_binding(origin: SourceFile, local_name: str) -> Optional[ImportBinding]:
    binding = build_symbol_table(origin).binding(local_name)
    if binding is None or binding.imported_name == "*":
        return None
    return binding


__all__ = ["ClassResolver", "MANUAL_SUFFIXES", "pick_component"]
