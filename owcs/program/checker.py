"""Syntax-driven type resolver built on top of tree-sitter symbol tables."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from ..logging import get_logger
from ..types import (
    PRIMITIVE_KEYWORDS,
    ArrayShape,
    CallableShape,
    LiteralShape,
    MemberShape,
    ParameterShape,
    PrimitiveShape,
    ReferenceShape,
    StructuralShape,
    TypeShape,
    UnionShape,
    UnknownShape,
    merge_members,
    strip_nullish,
)
from .base import Declaration, SourceFile, Symbol, TypeResolver
from .modules import ModuleResolver
from .symbols import ImportBinding, SymbolTable, build_symbol_table
from .syntax import (
    child_of_type,
    children_of_type,
    has_token,
    parse_number,
    property_name,
    string_value,
    type_arguments,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .base import ProgramFacility

_LOGGER = get_logger("program.checker")

_FUNCTION_KINDS = {
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "method_definition",
}
_SCOPE_KINDS = {"statement_block", "program", "class_body"}
_TYPE_DECLARATION_PRIORITY = ("interface", "alias", "class", "enum")
_PARAMETER_KINDS = {"required_parameter", "optional_parameter"}
_MAX_INFERENCE_DEPTH = 6

Env = Dict[str, TypeShape]


class TreeSitterResolver(TypeResolver):
    """Answers symbol and type questions by walking parsed syntax trees.

    Type references stay lazy (:class:`ReferenceShape`) until :meth:`expand`
    is called, which keeps self-referential types finite.
    """

    def __init__(self, program: "ProgramFacility", modules: ModuleResolver) -> None:
        self._program = program
        self._modules = modules
        self._tables: Dict[Path, SymbolTable] = {}
        self._expanding: Set[Tuple[str, int]] = set()

    # ------------------------------------------------------------------
    # Symbols

    def table(self, source: SourceFile) -> SymbolTable:
        table = self._tables.get(source.path)
        if table is None:
            table = build_symbol_table(source)
            self._tables[source.path] = table
        return table

    def resolve_import(self, source: SourceFile, local_name: str) -> Optional[Symbol]:
        binding = self.table(source).binding(local_name)
        if binding is None:
            return None
        return self._follow_binding(source, binding, set())

    def resolve_symbol(self, source: SourceFile, name: str) -> Optional[Symbol]:
        return self._local_symbol(source, name, set())

    def resolve_module(self, source: SourceFile, specifier: str) -> Optional[SourceFile]:
        path = self._modules.resolve(source.path, specifier)
        if path is None:
            _LOGGER.debug("Unresolved module %r imported from %s", specifier, source.rel_path)
            return None
        return self._program.load_file(path)

    def _local_symbol(self, source: SourceFile, name: str, seen: Set[Tuple[str, str]]) -> Optional[Symbol]:
        table = self.table(source)
        declared = table.declared(name)
        if declared:
            return Symbol(name=name, declarations=declared)
        binding = table.binding(name)
        if binding is not None:
            return self._follow_binding(source, binding, seen)
        return None

    def _follow_binding(
        self, source: SourceFile, binding: ImportBinding, seen: Set[Tuple[str, str]]
    ) -> Optional[Symbol]:
        target = self.resolve_module(source, binding.specifier)
        if target is None:
            return None
        if binding.imported_name == "*":
            return _namespace_symbol(binding.local_name, target)
        symbol = self._exported_symbol(target, binding.imported_name, seen)
        if symbol is None:
            return None
        return Symbol(name=binding.local_name, declarations=symbol.declarations)

    def _exported_symbol(
        self, source: SourceFile, name: str, seen: Set[Tuple[str, str]]
    ) -> Optional[Symbol]:
        key = (str(source.path), name)
        if key in seen:
            return None
        seen.add(key)

        table = self.table(source)
        if name == "default":
            declared = [decl for decl in table.declarations if decl.default_export]
        else:
            declared = [decl for decl in table.declarations if decl.exported and decl.name == name]
        if declared:
            return Symbol(name=name, declarations=declared)

        for entry in table.exports:
            if entry.exported_name != name:
                continue
            if entry.specifier is not None:
                target = self.resolve_module(source, entry.specifier)
                if target is None:
                    return None
                if entry.local_name == "*":
                    return _namespace_symbol(name, target)
                return self._exported_symbol(target, entry.local_name, seen)
            local = self._local_symbol(source, entry.local_name, seen)
            if local is not None:
                return Symbol(name=name, declarations=local.declarations)

        if name != "default":
            for specifier in table.star_exports:
                target = self.resolve_module(source, specifier)
                if target is None:
                    continue
                found = self._exported_symbol(target, name, seen)
                if found is not None:
                    return found
        return None

    # ------------------------------------------------------------------
    # Type nodes

    def type_of(self, node: Node, source: SourceFile, env: Optional[Env] = None) -> TypeShape:
        env = env or {}
        kind = node.type

        if kind in {"type_annotation", "parenthesized_type", "readonly_type", "opting_type_annotation", "default_type"}:
            inner = node.named_children[-1] if node.named_children else None
            if inner is None:
                return UnknownShape(source.text(node))
            return self.type_of(inner, source, env)

        if kind == "predefined_type":
            return PrimitiveShape(source.text(node).strip())

        if kind == "literal_type":
            inner = node.named_children[0] if node.named_children else None
            return self._literal(inner, source) if inner is not None else UnknownShape(source.text(node))

        if kind in {"null", "undefined"}:
            return PrimitiveShape(kind)

        if kind in {"type_identifier", "identifier"}:
            name = source.text(node)
            if name in env:
                return env[name]
            if name in PRIMITIVE_KEYWORDS:
                return PrimitiveShape(name)
            return ReferenceShape(name=name, source=source, env=env, node=node)

        if kind == "nested_type_identifier":
            name = "".join(source.text(node).split())
            return ReferenceShape(name=name, source=source, env=env, node=node)

        if kind == "generic_type":
            name_node = node.child_by_field_name("name") or node.named_children[0]
            name = "".join(source.text(name_node).split())
            arguments = [self.type_of(arg, source, env) for arg in type_arguments(node)]
            return ReferenceShape(name=name, arguments=arguments, source=source, env=env, node=node)

        if kind == "array_type":
            return ArrayShape(element=self.type_of(node.named_children[0], source, env))

        if kind == "union_type":
            # ``a | b | c`` parses left-nested; a parenthesized union stays one member.
            members: List[TypeShape] = []
            for child in node.named_children:
                shape = self.type_of(child, source, env)
                if child.type == "union_type" and isinstance(shape, UnionShape):
                    members.extend(shape.members)
                else:
                    members.append(shape)
            return UnionShape(members=members)

        if kind == "intersection_type":
            return self._intersection(node.named_children, source, env)

        if kind in {"object_type", "interface_body"}:
            return StructuralShape(members=self._members(node, source, env))

        if kind in {"function_type", "constructor_type"}:
            return self._callable(node, source, env)

        if kind == "lookup_type":
            return self._lookup(node, source, env)

        if kind == "template_literal_type":
            return PrimitiveShape("string")

        return UnknownShape(source.text(node))

    def _literal(self, node: Node, source: SourceFile) -> TypeShape:
        kind = node.type
        if kind in {"string", "template_string"}:
            value = string_value(node, source)
            return LiteralShape(value) if value is not None else PrimitiveShape("string")
        if kind == "number":
            number = parse_number(source.text(node))
            return LiteralShape(number) if number is not None else PrimitiveShape("number")
        if kind == "unary_expression":
            number = parse_number(source.text(node).replace(" ", ""))
            return LiteralShape(number) if number is not None else UnknownShape(source.text(node))
        if kind == "true":
            return LiteralShape(True)
        if kind == "false":
            return LiteralShape(False)
        if kind in {"null", "undefined"}:
            return PrimitiveShape(kind)
        return UnknownShape(source.text(node))

    def _members(self, body: Node, source: SourceFile, env: Env) -> List[MemberShape]:
        members: List[MemberShape] = []
        for child in body.named_children:
            if child.type == "property_signature":
                name = property_name(child.child_by_field_name("name"), source)
                if name is None:
                    continue
                type_node = child.child_by_field_name("type")
                shape = self.type_of(type_node, source, env) if type_node is not None else PrimitiveShape("any")
                members.append(
                    MemberShape(name=name, shape=shape, optional=has_token(child, "?"), node=child, source=source)
                )
            elif child.type == "method_signature":
                name = property_name(child.child_by_field_name("name"), source)
                if name is None:
                    continue
                members.append(
                    MemberShape(
                        name=name,
                        shape=self._callable(child, source, env),
                        optional=has_token(child, "?"),
                        node=child,
                        source=source,
                    )
                )
        return members

    def _callable(self, node: Node, source: SourceFile, env: Env) -> CallableShape:
        returns_node = node.child_by_field_name("return_type")
        if returns_node is None and node.type in {"function_type", "constructor_type"}:
            named = node.named_children
            returns_node = named[-1] if named and named[-1].type != "formal_parameters" else None
        returns = self.type_of(returns_node, source, env) if returns_node is not None else None
        return CallableShape(parameters=self.parameters_of(node, source, env), returns=returns)

    def parameters_of(self, node: Node, source: SourceFile, env: Optional[Env] = None) -> List[ParameterShape]:
        env = env or {}
        params = node.child_by_field_name("parameters") or child_of_type(node, "formal_parameters")
        if params is None:
            single = node.child_by_field_name("parameter")
            if single is not None:
                return [ParameterShape(name=source.text(single), shape=PrimitiveShape("any"))]
            return []
        result: List[ParameterShape] = []
        for param in params.named_children:
            if param.type not in _PARAMETER_KINDS:
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is None or pattern.type == "this":
                continue
            type_node = param.child_by_field_name("type")
            value = param.child_by_field_name("value")
            if type_node is not None:
                shape = self.type_of(type_node, source, env)
            elif value is not None:
                shape = self.infer_expression(value, source)
            else:
                shape = PrimitiveShape("any")
            result.append(
                ParameterShape(
                    name=source.text(pattern),
                    shape=shape,
                    optional=param.type == "optional_parameter" or value is not None,
                )
            )
        return result

    def _intersection(self, parts: List[Node], source: SourceFile, env: Env) -> TypeShape:
        structural: List[StructuralShape] = []
        for part in parts:
            shape = self.structural_of(self.type_of(part, source, env))
            if shape is None:
                return UnknownShape(" & ".join(source.text(p) for p in parts))
            structural.append(shape)
        return merge_members(structural)

    def _lookup(self, node: Node, source: SourceFile, env: Env) -> TypeShape:
        named = node.named_children
        if len(named) < 2:
            return UnknownShape(source.text(node))
        target = self.structural_of(self.type_of(named[0], source, env))
        index = self.type_of(named[1], source, env)
        if target is None or not isinstance(index, LiteralShape):
            return UnknownShape(source.text(node))
        member = target.member(str(index.value))
        return member.shape if member is not None else UnknownShape(source.text(node))

    def structural_of(self, shape: Optional[TypeShape]) -> Optional[StructuralShape]:
        """Expand references until a structural shape (or nothing) remains."""
        seen = 0
        while isinstance(shape, ReferenceShape) and seen < _MAX_INFERENCE_DEPTH:
            shape = self.expand(shape)
            seen += 1
        return shape if isinstance(shape, StructuralShape) else None

    # ------------------------------------------------------------------
    # Expressions

    def infer_expression(self, node: Node, source: SourceFile) -> TypeShape:
        return self._infer(node, source, 0)

    def _infer(self, node: Node, source: SourceFile, depth: int) -> TypeShape:
        if depth > _MAX_INFERENCE_DEPTH:
            return UnknownShape(source.text(node))
        kind = node.type
        if kind in {"string", "template_string"}:
            return PrimitiveShape("string")
        if kind == "number":
            return PrimitiveShape("number")
        if kind in {"true", "false"}:
            return PrimitiveShape("boolean")
        if kind in {"null", "undefined"}:
            return PrimitiveShape(kind)
        if kind == "unary_expression":
            operator = source.text(node.child_by_field_name("operator"))
            if operator == "!":
                return PrimitiveShape("boolean")
            if operator in {"-", "+"}:
                return PrimitiveShape("number")
            return UnknownShape(source.text(node))
        if kind == "parenthesized_expression" and node.named_children:
            return self._infer(node.named_children[0], source, depth + 1)
        if kind in {"as_expression", "satisfies_expression"} and len(node.named_children) >= 2:
            return self.type_of(node.named_children[-1], source)
        if kind == "array":
            elements = [child for child in node.named_children if child.type != "comment"]
            if not elements:
                return ArrayShape(element=None)
            return ArrayShape(element=self._infer(elements[0], source, depth + 1))
        if kind == "object":
            return StructuralShape(members=self._object_members(node, source, depth))
        if kind == "new_expression":
            constructor = node.child_by_field_name("constructor")
            if constructor is None:
                return UnknownShape(source.text(node))
            arguments = [self.type_of(arg, source) for arg in type_arguments(node)]
            return ReferenceShape(
                name="".join(source.text(constructor).split()),
                arguments=arguments,
                source=source,
                node=node,
            )
        if kind in {"arrow_function", "function_expression", "function"}:
            return self._callable(node, source, {})
        if kind == "identifier":
            return self._identifier_shape(node, source, depth)
        return UnknownShape(source.text(node))

    def _object_members(self, node: Node, source: SourceFile, depth: int) -> List[MemberShape]:
        members: List[MemberShape] = []
        for child in node.named_children:
            if child.type == "pair":
                name = property_name(child.child_by_field_name("key"), source)
                value = child.child_by_field_name("value")
                if name is None or value is None:
                    continue
                members.append(
                    MemberShape(name=name, shape=self._infer(value, source, depth + 1), node=child, source=source)
                )
            elif child.type == "shorthand_property_identifier":
                members.append(
                    MemberShape(
                        name=source.text(child),
                        shape=self._identifier_shape(child, source, depth + 1),
                        node=child,
                        source=source,
                    )
                )
        return members

    def _identifier_shape(self, node: Node, source: SourceFile, depth: int) -> TypeShape:
        """Shape of an identifier bound to a parameter or variable in an enclosing scope."""
        name = source.text(node)
        scope = node.parent
        while scope is not None:
            if scope.type in _FUNCTION_KINDS:
                shape = self._parameter_binding(scope, name, source)
                if shape is not None:
                    return shape
            if scope.type in _SCOPE_KINDS:
                shape = self._variable_binding(scope, name, node, source, depth)
                if shape is not None:
                    return shape
            scope = scope.parent
        return UnknownShape(name)

    def _parameter_binding(self, function: Node, name: str, source: SourceFile) -> Optional[TypeShape]:
        params = function.child_by_field_name("parameters") or child_of_type(function, "formal_parameters")
        if params is None:
            return None
        for param in params.named_children:
            if param.type not in _PARAMETER_KINDS:
                continue
            pattern = param.child_by_field_name("pattern")
            type_node = param.child_by_field_name("type")
            if pattern is None:
                continue
            if pattern.type == "identifier" and source.text(pattern) == name:
                if type_node is not None:
                    return self.type_of(type_node, source)
                return PrimitiveShape("any")
            if pattern.type == "object_pattern" and name in _pattern_names(pattern, source):
                if type_node is None:
                    return PrimitiveShape("any")
                structural = self.structural_of(self.type_of(type_node, source))
                member = structural.member(name) if structural is not None else None
                return member.shape if member is not None else PrimitiveShape("any")
        return None

    def _variable_binding(
        self, scope: Node, name: str, usage: Node, source: SourceFile, depth: int
    ) -> Optional[TypeShape]:
        for statement in scope.named_children:
            if statement.type not in {"lexical_declaration", "variable_declaration"}:
                continue
            if statement.start_byte > usage.start_byte:
                break
            for declarator in children_of_type(statement, "variable_declarator"):
                name_node = declarator.child_by_field_name("name")
                if name_node is None or source.text(name_node) != name:
                    continue
                type_node = declarator.child_by_field_name("type")
                if type_node is not None:
                    return self.type_of(type_node, source)
                value = declarator.child_by_field_name("value")
                if value is not None and not _contains(value, usage):
                    return self._infer(value, source, depth + 1)
                return PrimitiveShape("any")
        return None

    # ------------------------------------------------------------------
    # Reference expansion

    def expand(self, reference: ReferenceShape) -> Optional[TypeShape]:
        source = reference.source
        if source is None:
            return self._builtin(reference)

        symbol = self._reference_symbol(reference, source)
        if symbol is None:
            return self._builtin(reference)
        if isinstance(symbol, LiteralShape):
            return symbol

        declarations = _type_declarations(symbol)
        if not declarations:
            return self._builtin(reference)

        first = declarations[0]
        key = (str(first.source.path), first.node.start_byte)
        if key in self._expanding:
            _LOGGER.debug("Cyclic reference to %s left unexpanded", reference.name)
            return None
        self._expanding.add(key)
        try:
            return self._declaration_shape(declarations, reference.arguments)
        finally:
            self._expanding.discard(key)

    def _reference_symbol(self, reference: ReferenceShape, source: SourceFile) -> Optional[Symbol | LiteralShape]:
        if "." not in reference.name:
            return self.resolve_symbol(source, reference.name)
        qualifier, _, member = reference.name.partition(".")
        owner = self.resolve_symbol(source, qualifier)
        if owner is None:
            return None
        namespaces = owner.of_kind("namespace")
        if namespaces:
            target = namespaces[0].source
            for part in member.split(".")[:-1]:
                inner = self._exported_symbol(target, part, set())
                if inner is None or not inner.of_kind("namespace"):
                    return None
                target = inner.of_kind("namespace")[0].source
            return self._exported_symbol(target, member.split(".")[-1], set())
        enums = owner.of_kind("enum")
        if enums and "." not in member:
            for name, value in self._enum_values(enums[0]):
                if name == member:
                    return LiteralShape(value)
        return None

    def _declaration_shape(self, declarations: List[Declaration], arguments: List[TypeShape]) -> Optional[TypeShape]:
        first = declarations[0]
        if first.kind == "interface":
            parts: List[StructuralShape] = []
            for decl in declarations:
                if decl.kind != "interface":
                    continue
                env = self._bind_type_parameters(decl, arguments)
                for base in self._interface_bases(decl, env):
                    parts.append(base)
                body = decl.node.child_by_field_name("body") or child_of_type(decl.node, "interface_body", "object_type")
                if body is not None:
                    parts.append(StructuralShape(members=self._members(body, decl.source, env)))
            return merge_members(parts)
        if first.kind == "alias":
            value = first.node.child_by_field_name("value")
            if value is None:
                return None
            return self.type_of(value, first.source, self._bind_type_parameters(first, arguments))
        if first.kind == "class":
            return StructuralShape(members=self._class_fields(first))
        if first.kind == "enum":
            return UnionShape(members=[LiteralShape(value) for _, value in self._enum_values(first)])
        return None

    def _bind_type_parameters(self, decl: Declaration, arguments: List[TypeShape]) -> Env:
        params = decl.node.child_by_field_name("type_parameters")
        env: Env = {}
        if params is None:
            return env
        for index, param in enumerate(children_of_type(params, "type_parameter")):
            name_node = param.child_by_field_name("name") or child_of_type(param, "type_identifier")
            if name_node is None:
                continue
            if index < len(arguments):
                env[decl.source.text(name_node)] = arguments[index]
                continue
            default = param.child_by_field_name("value")
            if default is not None:
                env[decl.source.text(name_node)] = self.type_of(default, decl.source, env)
            else:
                env[decl.source.text(name_node)] = PrimitiveShape("any")
        return env

    def _interface_bases(self, decl: Declaration, env: Env) -> List[StructuralShape]:
        clause = child_of_type(decl.node, "extends_type_clause")
        bases: List[StructuralShape] = []
        if clause is None:
            return bases
        for base in clause.named_children:
            structural = self.structural_of(self.type_of(base, decl.source, env))
            if structural is not None:
                bases.append(structural)
        return bases

    def _class_fields(self, decl: Declaration) -> List[MemberShape]:
        body = decl.node.child_by_field_name("body")
        members: List[MemberShape] = []
        if body is None:
            return members
        for child in body.named_children:
            if child.type != "public_field_definition":
                continue
            modifier = child_of_type(child, "accessibility_modifier")
            if modifier is not None and decl.source.text(modifier) != "public":
                continue
            if has_token(child, "static"):
                continue
            name_node = child.child_by_field_name("name")
            if name_node is None or name_node.type == "private_property_identifier":
                continue
            name = property_name(name_node, decl.source)
            if name is None:
                continue
            type_node = child.child_by_field_name("type")
            value = child.child_by_field_name("value")
            if type_node is not None:
                shape = self.type_of(type_node, decl.source)
            elif value is not None:
                shape = self.infer_expression(value, decl.source)
            else:
                shape = PrimitiveShape("any")
            members.append(
                MemberShape(name=name, shape=shape, optional=has_token(child, "?"), node=child, source=decl.source)
            )
        return members

    def _enum_values(self, decl: Declaration) -> List[Tuple[str, str | int | float]]:
        body = decl.node.child_by_field_name("body")
        values: List[Tuple[str, str | int | float]] = []
        if body is None:
            return values
        counter: int | float = 0
        for child in body.named_children:
            if child.type == "enum_assignment":
                name = property_name(child.child_by_field_name("name"), decl.source)
                value_node = child.child_by_field_name("value")
                text_value = string_value(value_node, decl.source)
                if text_value is not None:
                    value: str | int | float = text_value
                else:
                    number = parse_number(decl.source.text(value_node)) if value_node is not None else None
                    value = number if number is not None else counter
                    counter = value + 1
            elif child.type in {"property_identifier", "string"}:
                name = property_name(child, decl.source)
                value = counter
                counter = counter + 1
            else:
                continue
            if name is not None:
                values.append((name, value))
        return values

    def _builtin(self, reference: ReferenceShape) -> Optional[TypeShape]:
        name = reference.simple_name
        args = reference.arguments
        if name in {"Array", "ReadonlyArray"}:
            return ArrayShape(element=args[0] if args else None)
        if not args:
            return None
        if name == "NonNullable":
            return strip_nullish(args[0])
        if name in {"Partial", "Required", "Readonly"}:
            target = self.structural_of(args[0])
            if target is None:
                return None
            if name == "Readonly":
                return target
            optional = name == "Partial"
            return StructuralShape(
                members=[
                    MemberShape(name=m.name, shape=m.shape, optional=optional, node=m.node, source=m.source)
                    for m in target.members
                ]
            )
        if name in {"Pick", "Omit"} and len(args) >= 2:
            target = self.structural_of(args[0])
            keys = self._literal_keys(args[1])
            if target is None or keys is None:
                return None
            keep = (lambda m: m.name in keys) if name == "Pick" else (lambda m: m.name not in keys)
            return StructuralShape(members=[member for member in target.members if keep(member)])
        return None

    def _literal_keys(self, shape: TypeShape) -> Optional[Set[str]]:
        if isinstance(shape, ReferenceShape):
            expanded = self.expand(shape)
            return self._literal_keys(expanded) if expanded is not None else None
        if isinstance(shape, LiteralShape):
            return {str(shape.value)}
        if isinstance(shape, UnionShape):
            keys: Set[str] = set()
            for member in shape.members:
                found = self._literal_keys(member)
                if found is None:
                    return None
                keys.update(found)
            return keys
        return None


def _namespace_symbol(name: str, target: SourceFile) -> Symbol:
    return Symbol(
        name=name,
        declarations=[Declaration(name=name, kind="namespace", node=target.root_node, source=target)],
    )


def _type_declarations(symbol: Symbol) -> List[Declaration]:
    for kind in _TYPE_DECLARATION_PRIORITY:
        found = symbol.of_kind(kind)
        if found:
            return found
    return []


def _pattern_names(pattern: Node, source: SourceFile) -> Set[str]:
    names: Set[str] = set()
    for child in pattern.named_children:
        if child.type == "shorthand_property_identifier_pattern":
            names.add(source.text(child))
        elif child.type == "object_assignment_pattern":
            left = child.child_by_field_name("left")
            if left is not None:
                names.add(source.text(left))
    return names


def _contains(outer: Node, inner: Node) -> bool:
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte


__all__ = ["TreeSitterResolver"]
