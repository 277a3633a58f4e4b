"""Bundler detection and module federation settings."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from tree_sitter import Node

from ..diagnostics import DiagnosticCollector
from ..logging import get_logger
from ..models import FederationModel, RuntimeModel
from ..program.base import SourceFile
from ..program.syntax import call_arguments, iter_nodes, parse_source, property_name, string_value

_LOGGER = get_logger("analysis.federation")

VITE_CONFIGS = ("vite.config.js", "vite.config.ts", "vite.config.mjs")
WEBPACK_CONFIGS = (
    "webpack.config.js",
    "webpack.config.ts",
    "webpack.config.mjs",
    "config/webpack.config.js",
    "webpack/webpack.config.js",
)

_WEBPACK_PLUGIN = "ModuleFederationPlugin"
_WEBPACK_HELPERS = {"withModuleFederationPlugin"}
_VITE_PLUGINS = {"federation", "moduleFederation"}


def _first_existing(root: Path, names: tuple) -> Optional[Path]:
    for name in names:
        path = root / name
        if path.is_file():
            return path
    return None


class FederationExtractor:
    """Reads bundler configuration files to describe the project's runtime wiring."""

    def __init__(self, diagnostics: DiagnosticCollector) -> None:
        self._diagnostics = diagnostics

    def extract(self, root: Path, adapter: str = "react") -> RuntimeModel:
        vite_config = _first_existing(root, VITE_CONFIGS)
        if vite_config is not None and adapter != "angular":
            return RuntimeModel(bundler="vite", federation=self._parse(vite_config, root, vite=True))

        webpack_config = _first_existing(root, WEBPACK_CONFIGS)
        if webpack_config is None:
            return RuntimeModel(bundler="webpack")
        return RuntimeModel(bundler="webpack", federation=self._parse(webpack_config, root, vite=False))

    def _parse(self, path: Path, root: Path, *, vite: bool) -> Optional[FederationModel]:
        rel_path = path.relative_to(root).as_posix()
        try:
            data = path.read_bytes()
        except OSError as exc:
            self._diagnostics.warn(
                "runtime.unreadable-config",
                f"Cannot read bundler config: {exc}",
                file=rel_path,
            )
            return None

        source = parse_source(path, data, rel_path)
        options = _vite_options(source) if vite else _webpack_options(source)
        if options is None:
            if source.root_node.has_error:
                self._diagnostics.warn(
                    "runtime.unreadable-config",
                    "Bundler config has syntax errors and no federation plugin could be read",
                    file=rel_path,
                )
            return None

        federation = federation_from_object(options, source)
        if federation is not None:
            _LOGGER.debug("Federation remote %s read from %s", federation.remote_name, rel_path)
        return federation


def _webpack_options(source: SourceFile) -> Optional[Node]:
    for node in iter_nodes(source.root_node, ("new_expression", "call_expression")):
        if node.type == "new_expression":
            constructor = node.child_by_field_name("constructor")
            if constructor is None:
                continue
            if constructor.type == "member_expression":
                constructor = constructor.child_by_field_name("property")
            if source.text(constructor) != _WEBPACK_PLUGIN:
                continue
        else:
            function = node.child_by_field_name("function")
            if source.text(function) not in _WEBPACK_HELPERS:
                continue
        found = _options_argument(node, source)
        if found is not None:
            return found
    return None


def _vite_options(source: SourceFile) -> Optional[Node]:
    for call in iter_nodes(source.root_node, ("call_expression",)):
        function = call.child_by_field_name("function")
        if function is None or function.type != "identifier" or source.text(function) not in _VITE_PLUGINS:
            continue
        found = _options_argument(call, source)
        if found is not None:
            return found
    return None


def _options_argument(call: Node, source: SourceFile) -> Optional[Node]:
    """The object literal passed first, following a same-file ``const`` binding."""
    arguments = call_arguments(call)
    if not arguments:
        return None
    argument = arguments[0]
    if argument.type == "object":
        return argument
    if argument.type == "identifier":
        name = source.text(argument)
        for declarator in iter_nodes(source.root_node, ("variable_declarator",)):
            if source.text(declarator.child_by_field_name("name")) != name:
                continue
            value = declarator.child_by_field_name("value")
            if value is not None and value.type == "object":
                return value
    return None


def federation_from_object(options: Node, source: SourceFile) -> Optional[FederationModel]:
    remote_name: Optional[str] = None
    library_type: Optional[str] = None
    exposes: Dict[str, str] = {}

    for pair in options.named_children:
        if pair.type != "pair":
            continue
        key = property_name(pair.child_by_field_name("key"), source)
        value = pair.child_by_field_name("value")
        if key is None or value is None:
            continue
        if key == "name":
            remote_name = string_value(value, source) or remote_name
        elif key == "library" and value.type == "object":
            for entry in value.named_children:
                if entry.type == "pair" and property_name(entry.child_by_field_name("key"), source) == "type":
                    library_type = string_value(entry.child_by_field_name("value"), source) or library_type
        elif key == "libraryType":
            library_type = string_value(value, source) or library_type
        elif key == "exposes" and value.type == "object":
            for entry in value.named_children:
                if entry.type != "pair":
                    continue
                exposed = property_name(entry.child_by_field_name("key"), source)
                target = string_value(entry.child_by_field_name("value"), source)
                if exposed is not None and target is not None:
                    exposes[exposed] = target

    if not remote_name:
        return None
    return FederationModel(remote_name=remote_name, library_type=library_type, exposes=exposes)


__all__ = [
    "FederationExtractor",
    "VITE_CONFIGS",
    "WEBPACK_CONFIGS",
    "federation_from_object",
]
