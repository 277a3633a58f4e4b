"""CLI parser behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from owcs.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "analyze"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "web", "--verbose"])
    assert args.verbose is True
    assert args.path == "web"


def test_cli_accepts_config_and_tsconfig() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "--config", "owcs.yml", "--tsconfig", "tsconfig.app.json"])
    assert args.config == "owcs.yml"
    assert args.tsconfig == "tsconfig.app.json"


def test_cli_accepts_log_file() -> None:
    args = _build_parser().parse_args(["analyze", "--log-file", "owcs.log"])
    assert args.log_file == "owcs.log"
    assert _build_parser().parse_args(["analyze"]).log_file is None


def test_analyze_prints_model(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "badge.ts").write_text(
        "export class Badge extends HTMLElement {}\ncustomElements.define('x-badge', Badge);\n",
        encoding="utf-8",
    )
    main(["analyze", str(tmp_path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["runtime"] == {"bundler": "webpack"}
    assert [component["tagName"] for component in payload["components"]] == ["x-badge"]


def test_analyze_missing_directory_exits(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing")])
    assert excinfo.value.code == 1
    assert "does not exist" in capsys.readouterr().err


def test_analyze_invalid_config_exits(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "owcs.yml").write_text("adapter: vue\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path)])
    assert excinfo.value.code == 1
    assert "owcs analyze failed" in capsys.readouterr().err
