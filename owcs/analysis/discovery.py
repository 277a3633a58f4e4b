"""Find ``customElements.define(tag, Definition)`` registrations in a program."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from tree_sitter import Node

from ..diagnostics import DiagnosticCollector
from ..logging import get_logger
from ..models import Registration
from ..program.base import ProgramFacility, SourceFile
from ..program.syntax import call_arguments, iter_nodes, string_value

_LOGGER = get_logger("analysis.discovery")

DEFAULT_REGISTRIES = ("customElements",)
DEFAULT_ELEMENT_FACTORIES = ("createCustomElement", "r2wc", "reactToWebComponent")

_GLOBAL_OBJECTS = {"window", "globalThis", "self"}


class RegistrationDiscoverer:
    """Scans every program file for custom element registrations.

    Each file gets its own alias table mapping bindings created by an
    element factory (``const El = createCustomElement(Foo, ...)``) back to
    the wrapped definition.
    """

    def __init__(
        self,
        diagnostics: DiagnosticCollector,
        *,
        registries: Sequence[str] = DEFAULT_REGISTRIES,
        element_factories: Sequence[str] = DEFAULT_ELEMENT_FACTORIES,
    ) -> None:
        self._diagnostics = diagnostics
        self._registries = set(registries)
        self._factories = set(element_factories)

    def discover(self, program: ProgramFacility) -> List[Registration]:
        registrations: List[Registration] = []
        for source in program.source_files():
            if source.is_declaration:
                continue
            found = self.discover_file(source)
            if found:
                _LOGGER.debug("Found %d registration(s) in %s", len(found), source.rel_path)
            registrations.extend(found)
        return registrations

    def discover_file(self, source: SourceFile) -> List[Registration]:
        aliases = self._factory_aliases(source)
        registrations: List[Registration] = []
        for call in iter_nodes(source.root_node, ("call_expression",)):
            if not self._is_define_call(call, source):
                continue
            registration = self._registration(call, source, aliases)
            if registration is not None:
                registrations.append(registration)
        return registrations

    def _factory_aliases(self, source: SourceFile) -> Dict[str, str]:
        aliases: Dict[str, str] = {}
        for declarator in iter_nodes(source.root_node, ("variable_declarator",)):
            name = declarator.child_by_field_name("name")
            value = _unwrap(declarator.child_by_field_name("value"))
            if name is None or name.type != "identifier" or value is None:
                continue
            wrapped = self._factory_target(value, source)
            if wrapped is not None:
                aliases[source.text(name)] = wrapped
        return aliases

    def _factory_target(self, node: Node, source: SourceFile) -> Optional[str]:
        """Definition wrapped by a known factory call, when its first argument is an identifier."""
        if node.type != "call_expression":
            return None
        function = node.child_by_field_name("function")
        if function is None:
            return None
        if function.type == "member_expression":
            function = function.child_by_field_name("property")
        if function is None or source.text(function) not in self._factories:
            return None
        arguments = call_arguments(node)
        if not arguments or arguments[0].type != "identifier":
            return None
        return source.text(arguments[0])

    def _is_define_call(self, call: Node, source: SourceFile) -> bool:
        function = call.child_by_field_name("function")
        if function is None or function.type != "member_expression":
            return False
        prop = function.child_by_field_name("property")
        if prop is None or source.text(prop) != "define":
            return False
        receiver = function.child_by_field_name("object")
        if receiver is None:
            return False
        if receiver.type == "identifier":
            return source.text(receiver) in self._registries
        if receiver.type == "member_expression":
            owner = receiver.child_by_field_name("object")
            name = receiver.child_by_field_name("property")
            return (
                owner is not None
                and owner.type == "identifier"
                and source.text(owner) in _GLOBAL_OBJECTS
                and source.text(name) in self._registries
            )
        return False

    def _registration(
        self, call: Node, source: SourceFile, aliases: Dict[str, str]
    ) -> Optional[Registration]:
        line = source.line_of(call)
        arguments = call_arguments(call)
        if len(arguments) < 2:
            self._diagnostics.warn(
                "discovery.missing-arguments",
                "Registration call needs a tag name and a definition",
                file=source.rel_path,
                line=line,
            )
            return None

        tag_name = string_value(arguments[0], source)
        if tag_name == "":
            self._diagnostics.warn(
                "discovery.empty-tag",
                "Tag name is an empty string",
                file=source.rel_path,
                line=line,
            )
            return None
        if tag_name is None:
            self._diagnostics.warn(
                "discovery.non-literal-tag",
                f"Tag name {source.text(arguments[0])!r} is not a string literal",
                file=source.rel_path,
                line=line,
            )
            return None

        definition = _unwrap(arguments[1])
        definition_name: Optional[str] = None
        if definition is not None and definition.type == "identifier":
            text = source.text(definition)
            definition_name = aliases.get(text, text)
        elif definition is not None:
            definition_name = self._factory_target(definition, source)

        if definition_name is None:
            self._diagnostics.warn(
                "discovery.unresolved-definition",
                f"Cannot determine the definition registered for <{tag_name}>",
                file=source.rel_path,
                symbol=tag_name,
                line=line,
            )
            return None

        return Registration(
            tag_name=tag_name,
            definition_name=definition_name,
            origin_file=source,
            line=line,
        )


def _unwrap(node: Optional[Node]) -> Optional[Node]:
    """Strip parentheses and ``as``/``!`` wrappers around an expression."""
    while node is not None and node.type in {"parenthesized_expression", "as_expression", "non_null_expression", "satisfies_expression"}:
        node = node.named_children[0] if node.named_children else None
    return node


__all__ = [
    "DEFAULT_ELEMENT_FACTORIES",
    "DEFAULT_REGISTRIES",
    "RegistrationDiscoverer",
]
