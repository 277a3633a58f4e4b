"""Concrete program facility backed by tree-sitter parse trees."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from .base import ProgramFacility, SourceFile, TypeResolver
from .checker import TreeSitterResolver
from .modules import ModuleResolver, find_tsconfig, load_compiler_options
from .scanner import iter_source_files, load_ignore_rules
from .syntax import parse_source

_LOGGER = get_logger("program")


class TreeSitterProgram(ProgramFacility):
    """Parses every analyzable file under ``root`` and exposes a resolver over them."""

    def __init__(
        self,
        root: Path,
        *,
        tsconfig_path: Optional[Path] = None,
        exclude_paths: Sequence[str] = (),
    ) -> None:
        root = Path(root)
        if not root.exists():
            raise FileNotFoundError(f"Project root {root} does not exist")
        if not root.is_dir():
            raise NotADirectoryError(f"Project root {root} is not a directory")
        self._root = root.resolve()

        config_path = Path(tsconfig_path) if tsconfig_path is not None else find_tsconfig(self._root)
        if config_path is not None and not config_path.is_absolute():
            config_path = self._root / config_path
        if config_path is not None:
            _LOGGER.debug("Using compiler options from %s", config_path)
        self._modules = ModuleResolver(load_compiler_options(config_path))
        self._resolver = TreeSitterResolver(self, self._modules)

        self._cache: Dict[Path, Optional[SourceFile]] = {}
        rules = load_ignore_rules(self._root, exclude_paths)
        self._files: List[SourceFile] = []
        for path in iter_source_files(self._root, rules):
            parsed = self.load_file(path)
            if parsed is not None:
                self._files.append(parsed)
        self._files.sort(key=lambda item: item.rel_path)
        self._members = {item.path for item in self._files}
        _LOGGER.debug("Loaded %d source files from %s", len(self._files), self._root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def resolver(self) -> TypeResolver:
        return self._resolver

    def source_files(self) -> List[SourceFile]:
        return list(self._files)

    def get_file(self, path: Path) -> Optional[SourceFile]:
        resolved = Path(path).resolve()
        if resolved not in self._members:
            return None
        return self._cache.get(resolved)

    def load_file(self, path: Path) -> Optional[SourceFile]:
        resolved = Path(path).resolve()
        if resolved in self._cache:
            return self._cache[resolved]
        try:
            data = resolved.read_bytes()
        except OSError as exc:
            _LOGGER.debug("Skipping unreadable file %s: %s", resolved, exc)
            self._cache[resolved] = None
            return None
        parsed = parse_source(resolved, data, self.relative_path(resolved))
        self._cache[resolved] = parsed
        return parsed

    def relative_path(self, path: Path) -> str:
        try:
            return path.relative_to(self._root).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = ["TreeSitterProgram"]
