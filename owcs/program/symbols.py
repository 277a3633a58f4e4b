"""Per-file symbol tables: top-level declarations, imports and exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from tree_sitter import Node

from .base import Declaration, SourceFile
from .syntax import child_of_type, has_token, string_value

_DECLARATION_KINDS = {
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_signature": "function",
    "interface_declaration": "interface",
    "type_alias_declaration": "alias",
    "enum_declaration": "enum",
}

# ``export default class Foo {}`` may surface as an expression rather than a declaration.
_DEFAULT_EXPRESSION_KINDS = {
    "class": "class",
    "function_expression": "function",
    "function": "function",
}


@dataclass
class ImportBinding:
    """One local name introduced by an import statement.

    ``imported_name`` is ``"default"`` for default imports and ``"*"`` for
    namespace imports.
    """

    local_name: str
    imported_name: str
    specifier: str
    node: Node = field(repr=False)


@dataclass
class ExportEntry:
    """An ``export {a as b}`` clause entry, optionally re-exported ``from`` a module."""

    exported_name: str
    local_name: str
    specifier: Optional[str] = None


@dataclass
class SymbolTable:
    declarations: List[Declaration] = field(default_factory=list)
    imports: List[ImportBinding] = field(default_factory=list)
    exports: List[ExportEntry] = field(default_factory=list)
    star_exports: List[str] = field(default_factory=list)

    def declared(self, name: str) -> List[Declaration]:
        return [decl for decl in self.declarations if decl.name == name]

    def binding(self, local_name: str) -> Optional[ImportBinding]:
        for binding in self.imports:
            if binding.local_name == local_name:
                return binding
        return None


def build_symbol_table(source: SourceFile) -> SymbolTable:
    table = SymbolTable()
    for statement in source.root_node.named_children:
        if statement.type == "import_statement":
            table.imports.extend(_import_bindings(statement, source))
        elif statement.type == "export_statement":
            _collect_export(statement, source, table)
        else:
            table.declarations.extend(_declarations(statement, source))
    return table


def _declarations(
    node: Node, source: SourceFile, *, exported: bool = False, default_export: bool = False
) -> List[Declaration]:
    if node.type == "ambient_declaration":
        results: List[Declaration] = []
        for child in node.named_children:
            results.extend(_declarations(child, source, exported=exported))
        return results

    kind = _DECLARATION_KINDS.get(node.type)
    if kind is not None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return []
        return [
            Declaration(
                name=source.text(name_node),
                kind=kind,
                node=node,
                source=source,
                exported=exported,
                default_export=default_export,
            )
        ]

    if node.type in {"lexical_declaration", "variable_declaration"}:
        results = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            results.append(
                Declaration(
                    name=source.text(name_node),
                    kind="variable",
                    node=declarator,
                    source=source,
                    exported=exported,
                )
            )
        return results
    return []


def _import_bindings(statement: Node, source: SourceFile) -> List[ImportBinding]:
    specifier = string_value(statement.child_by_field_name("source"), source)
    clause = child_of_type(statement, "import_clause")
    if specifier is None or clause is None:
        return []

    bindings: List[ImportBinding] = []
    for child in clause.named_children:
        if child.type == "identifier":
            bindings.append(ImportBinding(source.text(child), "default", specifier, child))
        elif child.type == "namespace_import":
            name = child_of_type(child, "identifier")
            if name is not None:
                bindings.append(ImportBinding(source.text(name), "*", specifier, name))
        elif child.type == "named_imports":
            for item in child.named_children:
                if item.type != "import_specifier":
                    continue
                name_node = item.child_by_field_name("name")
                alias_node = item.child_by_field_name("alias")
                imported = string_value(name_node, source) or source.text(name_node)
                local_node = alias_node or name_node
                bindings.append(ImportBinding(source.text(local_node), imported, specifier, local_node))
    return bindings


def _collect_export(statement: Node, source: SourceFile, table: SymbolTable) -> None:
    specifier = string_value(statement.child_by_field_name("source"), source)
    is_default = has_token(statement, "default")

    declaration = statement.child_by_field_name("declaration")
    if declaration is not None:
        table.declarations.extend(
            _declarations(declaration, source, exported=True, default_export=is_default)
        )
        return

    clause = child_of_type(statement, "export_clause")
    if clause is not None:
        for item in clause.named_children:
            if item.type != "export_specifier":
                continue
            name_node = item.child_by_field_name("name")
            alias_node = item.child_by_field_name("alias")
            local = string_value(name_node, source) or source.text(name_node)
            exported = (string_value(alias_node, source) or source.text(alias_node)) if alias_node else local
            table.exports.append(ExportEntry(exported, local, specifier))
        return

    namespace = child_of_type(statement, "namespace_export")
    if namespace is not None and specifier is not None:
        name = namespace.named_children[-1] if namespace.named_children else None
        if name is not None:
            table.exports.append(ExportEntry(source.text(name), "*", specifier))
        return

    if specifier is not None and has_token(statement, "*"):
        table.star_exports.append(specifier)
        return

    value = statement.child_by_field_name("value")
    if not is_default or value is None:
        return
    if value.type == "identifier":
        table.exports.append(ExportEntry("default", source.text(value)))
    elif value.type in _DEFAULT_EXPRESSION_KINDS:
        name_node = value.child_by_field_name("name")
        table.declarations.append(
            Declaration(
                name=source.text(name_node) if name_node is not None else "default",
                kind=_DEFAULT_EXPRESSION_KINDS[value.type],
                node=value,
                source=source,
                exported=True,
                default_export=True,
            )
        )


__all__ = [
    "ExportEntry",
    "ImportBinding",
    "SymbolTable",
    "build_symbol_table",
]
