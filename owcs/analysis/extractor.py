"""Extract the prop and event surface of a resolved component declaration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from tree_sitter import Node

from ..diagnostics import DiagnosticCollector
from ..logging import get_logger
from ..models import (
    NO_DEFAULT,
    EventKind,
    EventModel,
    EventSource,
    JSONSchema,
    PropModel,
    PropSource,
)
from ..program.base import CLASS_KINDS, FUNCTION_VALUE_KINDS, Declaration, SourceFile, TypeResolver
from ..program.syntax import (
    call_arguments,
    child_of_type,
    decorator_call,
    decorator_name,
    has_token,
    iter_nodes,
    member_decorators,
    property_name,
    string_value,
    type_arguments,
)
from ..types import (
    CallableShape,
    MemberShape,
    ReferenceShape,
    StructuralShape,
    TypeShape,
    UnionShape,
    merge_members,
    strip_nullish,
)
from .metadata import extract_metadata, literal_default, to_kebab_case
from .schema import SchemaCompiler

_LOGGER = get_logger("analysis.extractor")

DEFAULT_KNOWN_BASES = ("Component", "PureComponent", "React.Component", "React.PureComponent", "LitElement")
DEFAULT_PLAIN_BASES = ("HTMLElement",)
DEFAULT_RESERVED_PROPS = ("children", "key", "ref")

IDIOM_BASE_TYPE_PARAMETER = "base-type-parameter"
IDIOM_CAPABILITY_INTERFACE = "capability-interface"
IDIOM_PARAMETER = "parameter"
IDIOM_DECLARED_MEMBER = "declared-member"

_EVENT_CONSTRUCTORS = {"CustomEvent", "Event"}
_FUNCTION_DECLARATION_KINDS = {"function_declaration", "generator_function_declaration", "function_signature"}
_EXPANSION_LIMIT = 8


@dataclass
class Extraction:
    """Props and events found on one declaration, plus the idiom that produced them."""

    props: List[PropModel] = field(default_factory=list)
    events: List[EventModel] = field(default_factory=list)
    idiom: Optional[str] = None


def callback_event_name(member_name: str) -> str:
    """``onProductSelect`` -> ``productSelect``; other names are kept."""
    if len(member_name) > 2 and member_name.startswith("on") and member_name[2].isupper():
        return member_name[2].lower() + member_name[3:]
    return member_name


class StructuralExtractor:
    def __init__(
        self,
        resolver: TypeResolver,
        compiler: SchemaCompiler,
        diagnostics: DiagnosticCollector,
        *,
        known_bases: Sequence[str] = DEFAULT_KNOWN_BASES,
        plain_bases: Sequence[str] = DEFAULT_PLAIN_BASES,
        reserved_props: Sequence[str] = DEFAULT_RESERVED_PROPS,
    ) -> None:
        self._resolver = resolver
        self._compiler = compiler
        self._diagnostics = diagnostics
        self._known_bases = set(known_bases)
        self._plain_bases = set(plain_bases)
        self._reserved = set(reserved_props)

    def extract(self, declaration: Declaration) -> Extraction:
        extraction = Extraction()
        if declaration.node.type in CLASS_KINDS:
            self._extract_class(declaration, extraction)
        else:
            self._extract_function(declaration, extraction)

        if extraction.idiom is None:
            self._diagnostics.warn(
                "extraction.no-idiom",
                f"{declaration.name} does not use a recognised component idiom; no props extracted",
                file=declaration.source.rel_path,
                symbol=declaration.name,
                line=declaration.source.line_of(declaration.node),
            )

        extraction.events.extend(self._dispatch_events(declaration))
        extraction.props = _unique(extraction.props)
        extraction.events = _unique(extraction.events)
        _LOGGER.debug(
            "%s: idiom=%s props=%d events=%d",
            declaration.name,
            extraction.idiom,
            len(extraction.props),
            len(extraction.events),
        )
        return extraction

    # ------------------------------------------------------------------
    # Idioms

    def _extract_class(self, declaration: Declaration, extraction: Extraction) -> None:
        source = declaration.source
        base, base_arguments = _extends_clause(declaration.node, source)
        implemented = _implements_clause(declaration.node)

        if base is not None and base_arguments and self._is_known_base(base):
            extraction.idiom = IDIOM_BASE_TYPE_PARAMETER
            self._surface_from_type(self._resolver.type_of(base_arguments[0], source), extraction)
            return

        if base is not None and not base_arguments and self._is_plain_base(base) and implemented:
            extraction.idiom = IDIOM_CAPABILITY_INTERFACE
            self._surface_from_type(self._resolver.type_of(implemented[0], source), extraction)
            return

        if self._declared_members(declaration, extraction):
            extraction.idiom = IDIOM_DECLARED_MEMBER

    def _extract_function(self, declaration: Declaration, extraction: Extraction) -> None:
        source = declaration.source
        function, annotation = _function_parts(declaration.node)
        if function is None:
            return
        extraction.idiom = IDIOM_PARAMETER

        parameter = _first_parameter(function)
        if parameter is None:
            return
        type_node = parameter.child_by_field_name("type")
        if type_node is not None:
            shape = self._resolver.type_of(type_node, source)
        elif annotation is not None:
            wrapper = self._resolver.type_of(annotation, source)
            if not isinstance(wrapper, ReferenceShape) or not wrapper.arguments:
                return
            shape = wrapper.arguments[0]
        else:
            value = parameter.child_by_field_name("value")
            if value is None:
                return
            shape = self._resolver.infer_expression(value, source)
        self._surface_from_type(shape, extraction)

    def _surface_from_type(self, shape: TypeShape, extraction: Extraction) -> None:
        structural = self._structural(shape)
        if structural is None:
            _LOGGER.debug("Props type %r has no members to enumerate", shape)
            return
        for member in structural.members:
            if member.name in self._reserved:
                continue
            callable_shape = self._callable(member.shape)
            if callable_shape is not None:
                if callable_shape.returns_nothing:
                    extraction.events.append(self._callback_event(member, callable_shape))
                continue
            extraction.props.append(self._prop(member))

    def _prop(self, member: MemberShape) -> PropModel:
        initializer = None
        if member.node is not None and member.node.type == "public_field_definition":
            initializer = member.node.child_by_field_name("value")
        metadata = extract_metadata(member.node, member.source, member.name, initializer)
        return PropModel(
            name=member.name,
            wire_name=metadata.wire_name or to_kebab_case(member.name),
            schema=self._compiler.compile(member.shape),
            required=not member.optional,
            source=PropSource.ATTRIBUTE,
            description=metadata.description,
            default=metadata.default,
            deprecated=metadata.deprecated,
            tags=metadata.tags,
        )

    def _callback_event(self, member: MemberShape, callable_shape: CallableShape) -> EventModel:
        payload: Optional[JSONSchema] = None
        if callable_shape.parameters:
            payload = self._compiler.compile(callable_shape.parameters[0].shape)
        return EventModel(
            name=callback_event_name(member.name),
            kind=EventKind.CUSTOM_NOTIFICATION,
            source=EventSource.DECLARED_OUTPUT,
            payload_schema=payload,
        )

    # ------------------------------------------------------------------
    # Declared members (@Input/@Output and signal functions)

    def _declared_members(self, declaration: Declaration, extraction: Extraction) -> bool:
        body = declaration.node.child_by_field_name("body")
        if body is None:
            return False
        source = declaration.source
        matched = False
        for member in body.named_children:
            if member.type not in {"public_field_definition", "method_definition"}:
                continue
            name = property_name(member.child_by_field_name("name"), source)
            if name is None:
                continue
            decorators = {decorator_name(d, source): d for d in member_decorators(member)}

            if "Input" in decorators:
                extraction.props.append(self._decorated_input(member, name, decorators["Input"], source))
                matched = True
                continue
            if "Output" in decorators:
                extraction.events.append(self._decorated_output(member, name, decorators["Output"], source))
                matched = True
                continue

            value = member.child_by_field_name("value") if member.type == "public_field_definition" else None
            if value is None or value.type != "call_expression":
                continue
            callee = source.text(value.child_by_field_name("function"))
            if callee in {"input", "input.required"}:
                extraction.props.append(self._signal_input(member, name, value, callee == "input.required", source))
                matched = True
            elif callee == "output":
                extraction.events.append(self._signal_output(name, value, source))
                matched = True
        return matched

    def _decorated_input(self, member: Node, name: str, decorator: Node, source: SourceFile) -> PropModel:
        alias, forced_required = _decorator_options(decorator, source)

        if member.type == "method_definition":
            parameter = _first_parameter(member)
            type_node = parameter.child_by_field_name("type") if parameter is not None else None
            initializer = None
            optional = False
        else:
            type_node = member.child_by_field_name("type")
            initializer = member.child_by_field_name("value")
            optional = has_token(member, "?")

        if type_node is not None:
            schema = self._compiler.compile_node(type_node, source)
        elif initializer is not None:
            schema = self._compiler.compile(self._resolver.infer_expression(initializer, source))
        else:
            schema = {"type": "any"}

        metadata = extract_metadata(member, source, name, initializer)
        return PropModel(
            name=name,
            wire_name=alias or metadata.wire_name or to_kebab_case(name),
            schema=schema,
            required=forced_required or not optional,
            source=PropSource.DECLARED_INPUT,
            description=metadata.description,
            default=metadata.default,
            deprecated=metadata.deprecated,
            tags=metadata.tags,
        )

    def _signal_input(self, member: Node, name: str, call: Node, required: bool, source: SourceFile) -> PropModel:
        arguments = call_arguments(call)
        options: Optional[Node] = None
        initial: Optional[Node] = None
        if required:
            options = arguments[0] if arguments else None
        else:
            initial = arguments[0] if arguments else None
            options = arguments[1] if len(arguments) > 1 else None

        generic = type_arguments(call)
        if generic:
            schema = self._compiler.compile_node(generic[0], source)
        elif initial is not None:
            schema = self._compiler.compile(self._resolver.infer_expression(initial, source))
        else:
            schema = {"type": "any"}

        metadata = extract_metadata(member, source, name)
        default = metadata.default
        if default is NO_DEFAULT and initial is not None:
            default = literal_default(initial, source)
        alias = _object_string(options, "alias", source)
        return PropModel(
            name=name,
            wire_name=alias or metadata.wire_name or to_kebab_case(name),
            schema=schema,
            required=required,
            source=PropSource.DECLARED_INPUT,
            description=metadata.description,
            default=default,
            deprecated=metadata.deprecated,
            tags=metadata.tags,
        )

    def _decorated_output(self, member: Node, name: str, decorator: Node, source: SourceFile) -> EventModel:
        alias, _ = _decorator_options(decorator, source)
        payload_node: Optional[Node] = None
        value = member.child_by_field_name("value") if member.type == "public_field_definition" else None
        if value is not None and value.type == "new_expression":
            generic = type_arguments(value)
            payload_node = generic[0] if generic else None
        if payload_node is None:
            annotation = member.child_by_field_name("type")
            generic_node = child_of_type(annotation, "generic_type") if annotation is not None else None
            generic = type_arguments(generic_node)
            payload_node = generic[0] if generic else None
        return EventModel(
            name=alias or name,
            kind=EventKind.EMITTER_OUTPUT,
            source=EventSource.DECLARED_OUTPUT,
            payload_schema=self._compiler.compile_node(payload_node, source) if payload_node is not None else None,
        )

    def _signal_output(self, name: str, call: Node, source: SourceFile) -> EventModel:
        arguments = call_arguments(call)
        alias = _object_string(arguments[0] if arguments else None, "alias", source)
        generic = type_arguments(call)
        return EventModel(
            name=alias or name,
            kind=EventKind.EMITTER_OUTPUT,
            source=EventSource.DECLARED_OUTPUT,
            payload_schema=self._compiler.compile_node(generic[0], source) if generic else None,
        )

    # ------------------------------------------------------------------
    # dispatchEvent(new CustomEvent(...))

    def _dispatch_events(self, declaration: Declaration) -> List[EventModel]:
        source = declaration.source
        events: List[EventModel] = []
        for call in iter_nodes(declaration.node, ("call_expression",)):
            function = call.child_by_field_name("function")
            if function is None or function.type != "member_expression":
                continue
            if source.text(function.child_by_field_name("property")) != "dispatchEvent":
                continue
            arguments = call_arguments(call)
            if not arguments or arguments[0].type != "new_expression":
                continue
            event = self._dispatched(arguments[0], source)
            if event is not None:
                events.append(event)
        return events

    def _dispatched(self, new_expression: Node, source: SourceFile) -> Optional[EventModel]:
        constructor = source.text(new_expression.child_by_field_name("constructor"))
        if constructor not in _EVENT_CONSTRUCTORS:
            return None
        arguments = call_arguments(new_expression)
        name = string_value(arguments[0], source) if arguments else None
        if not name:
            return None

        payload: Optional[JSONSchema] = None
        if constructor == "CustomEvent":
            generic = type_arguments(new_expression)
            if generic:
                payload = self._compiler.compile_node(generic[0], source)
            elif len(arguments) > 1:
                detail = _object_entry(arguments[1], "detail", source)
                if detail is not None:
                    payload = self._compiler.compile(self._resolver.infer_expression(detail, source))
        return EventModel(
            name=name,
            kind=EventKind.CUSTOM_NOTIFICATION,
            source=EventSource.DISPATCH_CALL,
            payload_schema=payload,
        )

    # ------------------------------------------------------------------
    # Shape helpers

    def _is_known_base(self, base: str) -> bool:
        return base in self._known_bases or base.rsplit(".", 1)[-1] in self._known_bases

    def _is_plain_base(self, base: str) -> bool:
        return base in self._plain_bases or base.rsplit(".", 1)[-1] in self._plain_bases

    def _expanded(self, shape: Optional[TypeShape]) -> Optional[TypeShape]:
        steps = 0
        while isinstance(shape, ReferenceShape) and steps < _EXPANSION_LIMIT:
            shape = self._resolver.expand(shape)
            steps += 1
        if isinstance(shape, UnionShape):
            stripped = strip_nullish(shape)
            if stripped is not shape:
                return self._expanded(stripped)
        return shape

    def _structural(self, shape: TypeShape) -> Optional[StructuralShape]:
        expanded = self._expanded(shape)
        if isinstance(expanded, StructuralShape):
            return expanded
        if isinstance(expanded, UnionShape):
            parts = [self._structural(member) for member in expanded.members]
            if parts and all(part is not None for part in parts):
                return merge_members([part for part in parts if part is not None])
        return None

    def _callable(self, shape: TypeShape) -> Optional[CallableShape]:
        expanded = self._expanded(shape)
        if isinstance(expanded, CallableShape):
            return expanded
        return None


def _unique(items: List) -> List:
    seen: Dict[str, bool] = {}
    result = []
    for item in items:
        if item.name in seen:
            continue
        seen[item.name] = True
        result.append(item)
    return result


def _extends_clause(node: Node, source: SourceFile) -> Tuple[Optional[str], List[Node]]:
    heritage = child_of_type(node, "class_heritage")
    clause = child_of_type(heritage, "extends_clause")
    if clause is None:
        return None, []
    value = clause.child_by_field_name("value")
    if value is None:
        named = [child for child in clause.named_children if child.type != "type_arguments"]
        value = named[0] if named else None
    if value is None:
        return None, []
    arguments: List[Node] = []
    sibling = value.next_named_sibling
    if sibling is not None and sibling.type == "type_arguments":
        arguments = [child for child in sibling.named_children if child.type != "comment"]
    return "".join(source.text(value).split()), arguments


def _implements_clause(node: Node) -> List[Node]:
    heritage = child_of_type(node, "class_heritage")
    clause = child_of_type(heritage, "implements_clause")
    if clause is None:
        return []
    return [child for child in clause.named_children if child.type != "comment"]


def _function_parts(node: Node) -> Tuple[Optional[Node], Optional[Node]]:
    """The function node of a function-style component and any variable type annotation."""
    if node.type in _FUNCTION_DECLARATION_KINDS or node.type in FUNCTION_VALUE_KINDS:
        return node, None
    if node.type == "variable_declarator":
        value = node.child_by_field_name("value")
        if value is not None and value.type in FUNCTION_VALUE_KINDS:
            annotation = node.child_by_field_name("type")
            return value, annotation
    return None, None


def _first_parameter(function: Node) -> Optional[Node]:
    params = function.child_by_field_name("parameters")
    if params is None:
        return function.child_by_field_name("parameter")
    for param in params.named_children:
        if param.type in {"required_parameter", "optional_parameter"}:
            pattern = param.child_by_field_name("pattern")
            if pattern is not None and pattern.type == "this":
                continue
            return param
    return None


def _object_entry(node: Optional[Node], key: str, source: SourceFile) -> Optional[Node]:
    if node is None or node.type != "object":
        return None
    for child in node.named_children:
        if child.type == "pair" and property_name(child.child_by_field_name("key"), source) == key:
            return child.child_by_field_name("value")
        if child.type == "shorthand_property_identifier" and source.text(child) == key:
            return child
    return None


def _object_string(node: Optional[Node], key: str, source: SourceFile) -> Optional[str]:
    return string_value(_object_entry(node, key, source), source)


def _decorator_options(decorator: Node, source: SourceFile) -> Tuple[Optional[str], bool]:
    """Alias and ``required`` flag of ``@Input('alias')`` / ``@Input({alias, required})``."""
    call = decorator_call(decorator)
    arguments = call_arguments(call) if call is not None else []
    if not arguments:
        return None, False
    first = arguments[0]
    if first.type in {"string", "template_string"}:
        return string_value(first, source), False
    alias = _object_string(first, "alias", source)
    required_node = _object_entry(first, "required", source)
    return alias, required_node is not None and required_node.type == "true"


__all__ = [
    "DEFAULT_KNOWN_BASES",
    "DEFAULT_PLAIN_BASES",
    "DEFAULT_RESERVED_PROPS",
    "Extraction",
    "IDIOM_BASE_TYPE_PARAMETER",
    "IDIOM_CAPABILITY_INTERFACE",
    "IDIOM_DECLARED_MEMBER",
    "IDIOM_PARAMETER",
    "StructuralExtractor",
    "callback_event_name",
]
