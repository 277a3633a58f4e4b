"""Configuration loading for owcs (owcs.yml / owcs.yaml / owcs.config.json)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .analysis.extractor import DEFAULT_KNOWN_BASES, DEFAULT_PLAIN_BASES, DEFAULT_RESERVED_PROPS
from .analysis.discovery import DEFAULT_ELEMENT_FACTORIES, DEFAULT_REGISTRIES
from .analysis.schema import DEFAULT_MAX_DEPTH

CONFIG_FILENAMES = ("owcs.yml", "owcs.yaml", "owcs.config.json")

ADAPTERS = ("react", "angular")
FORMATS = ("yaml", "json")

# camelCase spellings used by the JavaScript tooling this config format came from.
_KEY_ALIASES = {
    "includeRuntimeExtension": "include_runtime_extension",
    "outputPath": "output_path",
    "projectRoot": "project_root",
    "excludePaths": "exclude_paths",
    "elementFactories": "element_factories",
    "knownBases": "known_bases",
    "plainBases": "plain_bases",
    "reservedProps": "reserved_props",
    "maxTypeDepth": "max_type_depth",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or holds invalid values."""


@dataclass
class AnalysisConfig:
    """Knobs for the analysis passes."""

    registries: List[str] = field(default_factory=lambda: list(DEFAULT_REGISTRIES))
    element_factories: List[str] = field(default_factory=lambda: list(DEFAULT_ELEMENT_FACTORIES))
    known_bases: List[str] = field(default_factory=lambda: list(DEFAULT_KNOWN_BASES))
    plain_bases: List[str] = field(default_factory=lambda: list(DEFAULT_PLAIN_BASES))
    reserved_props: List[str] = field(default_factory=lambda: list(DEFAULT_RESERVED_PROPS))
    max_type_depth: int = DEFAULT_MAX_DEPTH


@dataclass
class OwcsConfig:
    """Represents the settings defined in an owcs configuration file."""

    root: Path
    title: Optional[str] = None
    description: Optional[str] = None
    version: str = "1.0.0"
    adapter: str = "react"
    format: str = "yaml"
    include_runtime_extension: bool = True
    output_path: Optional[Path] = None
    tsconfig: Optional[Path] = None
    exclude_paths: List[str] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    source: Optional[Path] = None


def find_config(root: Path) -> Optional[Path]:
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(root: Path, config_path: Optional[Path] = None) -> OwcsConfig:
    """Load configuration for the project at ``root``; a missing file yields defaults."""
    root = Path(root).expanduser().resolve()
    config_file = Path(config_path).expanduser() if config_path is not None else find_config(root)
    if config_file is None:
        return OwcsConfig(root=root)
    if not config_file.is_absolute():
        config_file = (Path.cwd() / config_file).resolve()
    if not config_file.exists():
        raise ConfigError(f"Configuration file {config_file} does not exist")

    data = _normalize_keys(_read_config(config_file))
    base = config_file.parent

    project_root = _as_str(data.get("project_root"))
    if project_root:
        root = (base / project_root).resolve()

    adapter = _as_str(data.get("adapter")) or "react"
    if adapter not in ADAPTERS:
        raise ConfigError(f"adapter must be one of {', '.join(ADAPTERS)}, got {adapter!r}")

    output_format = _as_str(data.get("format")) or "yaml"
    if output_format not in FORMATS:
        raise ConfigError(f"format must be one of {', '.join(FORMATS)}, got {output_format!r}")

    include_runtime = data.get("include_runtime_extension", True)
    if not isinstance(include_runtime, bool):
        raise ConfigError("include_runtime_extension must be a boolean")

    extensions = _as_dict(data.get("extensions"))
    invalid = [key for key in extensions if not str(key).startswith("x-")]
    if invalid:
        raise ConfigError(f"extension keys must start with 'x-': {', '.join(map(str, invalid))}")

    output_path = _as_str(data.get("output_path"))
    tsconfig = _as_str(data.get("tsconfig"))

    return OwcsConfig(
        root=root,
        title=_as_str(data.get("title")),
        description=_as_str(data.get("description")),
        version=_as_str(data.get("version")) or "1.0.0",
        adapter=adapter,
        format=output_format,
        include_runtime_extension=include_runtime,
        output_path=(base / output_path) if output_path else None,
        tsconfig=(base / tsconfig) if tsconfig else None,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        extensions=dict(extensions),
        analysis=_analysis_config(_normalize_keys(_as_dict(data.get("analysis")))),
        source=config_file,
    )


def _analysis_config(data: Dict[str, Any]) -> AnalysisConfig:
    analysis = AnalysisConfig()
    for name in ("registries", "element_factories", "known_bases", "plain_bases", "reserved_props"):
        if name in data:
            setattr(analysis, name, _as_str_list(data.get(name)))
    if "max_type_depth" in data:
        depth = data.get("max_type_depth")
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise ConfigError("analysis.max_type_depth must be a positive integer")
        analysis.max_type_depth = depth
    return analysis


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(str(key), str(key)): value for key, value in data.items()}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAMES",
    "ConfigError",
    "OwcsConfig",
    "find_config",
    "load_config",
]
