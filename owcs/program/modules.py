"""tsconfig discovery and module specifier resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import commentjson

from ..logging import get_logger

_LOGGER = get_logger("program.modules")

_TSCONFIG_CANDIDATES = ("tsconfig.json", "src/tsconfig.json", "tsconfig.app.json")

_PROBE_SUFFIXES = (".ts", ".tsx", ".d.ts", "/index.ts", "/index.tsx", "/index.d.ts")
_SOURCE_SUFFIXES = (".ts", ".tsx", ".mts", ".cts")
_JS_TO_TS = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",), ".cjs": (".cts",)}


@dataclass
class CompilerOptions:
    """The subset of tsconfig ``compilerOptions`` the resolver understands."""

    config_path: Optional[Path] = None
    base_url: Optional[Path] = None
    paths: Dict[str, List[str]] = field(default_factory=dict)
    paths_base: Optional[Path] = None


def find_tsconfig(root: Path) -> Optional[Path]:
    for candidate in _TSCONFIG_CANDIDATES:
        path = root / candidate
        if path.is_file():
            return path
    return None


def load_compiler_options(config_path: Optional[Path]) -> CompilerOptions:
    """Read ``baseUrl``/``paths`` from a tsconfig, following relative ``extends``."""
    if config_path is None:
        return CompilerOptions()
    options = CompilerOptions(config_path=config_path)
    _merge_tsconfig(config_path, options, seen=[])
    return options


def _merge_tsconfig(path: Path, options: CompilerOptions, seen: List[Path]) -> None:
    resolved = path.resolve()
    if resolved in seen:
        return
    seen.append(resolved)
    try:
        text = resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _LOGGER.warning("Ignoring unreadable tsconfig %s: %s", resolved, exc)
        return
    try:
        data = commentjson.loads(text)
    except Exception as exc:  # lark and json errors both surface here
        _LOGGER.warning("Ignoring unreadable tsconfig %s: %s", resolved, exc)
        return
    if not isinstance(data, dict):
        return

    extends = data.get("extends")
    if isinstance(extends, str) and extends.startswith("."):
        parent = (resolved.parent / extends).resolve()
        if parent.suffix != ".json":
            parent = parent.with_name(parent.name + ".json")
        _merge_tsconfig(parent, options, seen)

    compiler = data.get("compilerOptions")
    if not isinstance(compiler, dict):
        return
    base_url = compiler.get("baseUrl")
    if isinstance(base_url, str):
        options.base_url = (resolved.parent / base_url).resolve()
    paths = compiler.get("paths")
    if isinstance(paths, dict):
        options.paths = {
            str(key): [str(item) for item in value if isinstance(item, str)]
            for key, value in paths.items()
            if isinstance(value, list)
        }
        options.paths_base = options.base_url or resolved.parent


class ModuleResolver:
    """Maps import specifiers to files on disk the way the TypeScript compiler would."""

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self._options = options or CompilerOptions()

    @property
    def options(self) -> CompilerOptions:
        return self._options

    def resolve(self, importer: Path, specifier: str) -> Optional[Path]:
        if specifier.startswith(("./", "../")) or specifier in {".", ".."}:
            return probe_module(importer.parent / specifier)
        for target in self._alias_targets(specifier):
            found = probe_module(target)
            if found is not None:
                return found
        if self._options.base_url is not None:
            return probe_module(self._options.base_url / specifier)
        return None

    def _alias_targets(self, specifier: str) -> List[Path]:
        base = self._options.paths_base
        if base is None:
            return []

        def _rank(pattern: str) -> tuple[int, int]:
            return (pattern.count("*"), -len(pattern))

        targets: List[Path] = []
        for pattern in sorted(self._options.paths, key=_rank):
            if "*" in pattern:
                regex = "^" + re.escape(pattern).replace(r"\*", "(.*)") + "$"
                match = re.match(regex, specifier)
                if not match:
                    continue
                wildcard = match.group(1)
            elif pattern == specifier:
                wildcard = ""
            else:
                continue
            for template in self._options.paths[pattern]:
                targets.append(base / template.replace("*", wildcard, 1))
        return targets


def probe_module(base: Path, suffixes: Sequence[str] = _PROBE_SUFFIXES) -> Optional[Path]:
    """Return the first existing file for ``base`` under TypeScript's lookup conventions."""
    base_text = str(base)
    if base.suffix in _SOURCE_SUFFIXES and base.is_file():
        return base.resolve()
    for js_suffix, replacements in _JS_TO_TS.items():
        if base_text.endswith(js_suffix):
            stem = base_text[: -len(js_suffix)]
            for replacement in replacements:
                candidate = Path(stem + replacement)
                if candidate.is_file():
                    return candidate.resolve()
    for suffix in suffixes:
        candidate = Path(base_text + suffix)
        if candidate.is_file():
            return candidate.resolve()
    return None


__all__ = [
    "CompilerOptions",
    "ModuleResolver",
    "find_tsconfig",
    "load_compiler_options",
    "probe_module",
]
