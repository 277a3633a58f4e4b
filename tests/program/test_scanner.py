"""Tests for owcs.program.scanner and TreeSitterProgram file loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from owcs.program.scanner import is_source_file, iter_source_files, load_ignore_rules
from owcs.program.treesitter import TreeSitterProgram


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_is_source_file() -> None:
    assert is_source_file("card.ts")
    assert is_source_file("Card.TSX")
    assert not is_source_file("card.d.ts")
    assert not is_source_file("card.js")
    assert not is_source_file("README.md")


def test_iter_source_files_skips_dependencies_and_outputs(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "b.ts", "")
    _write(tmp_path / "src" / "a.tsx", "")
    _write(tmp_path / "src" / "types.d.ts", "")
    _write(tmp_path / "node_modules" / "lib" / "index.ts", "")
    _write(tmp_path / "dist" / "bundle.ts", "")
    _write(tmp_path / "main.ts", "")

    found = [path.relative_to(tmp_path).as_posix() for path in iter_source_files(tmp_path)]
    assert found == ["main.ts", "src/a.tsx", "src/b.ts"]


def test_gitignore_and_exclude_paths_are_respected(tmp_path: Path) -> None:
    _write(tmp_path / ".gitignore", "generated/\n*.spec.ts\n!keep.spec.ts\n")
    _write(tmp_path / "generated" / "api.ts", "")
    _write(tmp_path / "src" / "card.spec.ts", "")
    _write(tmp_path / "src" / "keep.spec.ts", "")
    _write(tmp_path / "src" / "card.ts", "")
    _write(tmp_path / "stories" / "card.stories.tsx", "")

    rules = load_ignore_rules(tmp_path, exclude_paths=["stories/"])
    found = [path.relative_to(tmp_path).as_posix() for path in iter_source_files(tmp_path, rules)]
    assert found == ["src/card.ts", "src/keep.spec.ts"]


def test_program_rejects_missing_root(tmp_path: Path) -> None:
    missing = tmp_path / "missing"
    with pytest.raises(FileNotFoundError) as excinfo:
        TreeSitterProgram(missing)
    assert str(missing) in str(excinfo.value)


def test_program_rejects_file_root(tmp_path: Path) -> None:
    target = tmp_path / "main.ts"
    _write(target, "")
    with pytest.raises(NotADirectoryError):
        TreeSitterProgram(target)


def test_program_exposes_parsed_members(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "card.ts", "export class Card {}\n")
    _write(tmp_path / "src" / "view.tsx", "export const View = () => <div />;\n")

    program = TreeSitterProgram(tmp_path)
    assert [source.rel_path for source in program.source_files()] == ["src/card.ts", "src/view.tsx"]
    card = program.get_file(tmp_path / "src" / "card.ts")
    assert card is not None
    assert card.text(card.root_node).startswith("export class Card")
    assert program.get_file(tmp_path / "elsewhere.ts") is None
