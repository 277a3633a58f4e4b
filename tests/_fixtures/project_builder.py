"""Helper utilities for constructing temporary TypeScript projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping, Optional, Sequence

from owcs.program.base import SourceFile
from owcs.program.treesitter import TreeSitterProgram


class ProjectBuilder:
    """Utility for writing files into a throwaway project and loading it as a program."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def program(
        self, *, tsconfig_path: Optional[Path] = None, exclude_paths: Sequence[str] = ()
    ) -> TreeSitterProgram:
        """Return a freshly parsed program over the project contents."""
        return TreeSitterProgram(self.root, tsconfig_path=tsconfig_path, exclude_paths=exclude_paths)

    def source(self, program: TreeSitterProgram, relative: str) -> SourceFile:
        """Return the parsed file at ``relative`` from ``program``."""
        found = program.get_file(self.root / relative)
        assert found is not None, f"{relative} is not part of the program"
        return found

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["ProjectBuilder"]
