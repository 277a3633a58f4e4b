"""Tree-sitter parsing and small node helpers shared by the analysis passes."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .base import SourceFile

_TSX_SUFFIXES = (".tsx", ".jsx", ".js", ".mjs", ".cjs")

_LANGUAGES: Dict[str, Language] = {}
_PARSERS: Dict[str, Parser] = {}

STRING_KINDS = frozenset({"string", "template_string"})


def _language(key: str) -> Language:
    language = _LANGUAGES.get(key)
    if language is None:
        if key == "tsx":
            language = Language(tree_sitter_typescript.language_tsx())
        else:
            language = Language(tree_sitter_typescript.language_typescript())
        _LANGUAGES[key] = language
    return language


def language_key_for(path: Path) -> str:
    return "tsx" if path.name.lower().endswith(_TSX_SUFFIXES) else "typescript"


def get_parser(key: str) -> Parser:
    parser = _PARSERS.get(key)
    if parser is None:
        parser = Parser(_language(key))
        _PARSERS[key] = parser
    return parser


def parse_source(path: Path, source: bytes, rel_path: Optional[str] = None) -> SourceFile:
    """Parse ``source`` with the grammar matching ``path``."""
    tree = get_parser(language_key_for(path)).parse(source)
    return SourceFile(path=path, rel_path=rel_path or path.as_posix(), source=source, tree=tree)


def iter_nodes(node: Node, kinds: Optional[Iterable[str]] = None) -> Iterator[Node]:
    """Pre-order walk yielding ``node`` and its descendants, optionally filtered by type."""
    wanted = frozenset(kinds) if kinds is not None else None
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        if wanted is None or current.type in wanted:
            yield current
        stack.extend(reversed(current.children))


def child_of_type(node: Optional[Node], *kinds: str) -> Optional[Node]:
    if node is None:
        return None
    for child in node.children:
        if child.type in kinds:
            return child
    return None


def children_of_type(node: Optional[Node], *kinds: str) -> List[Node]:
    if node is None:
        return []
    return [child for child in node.children if child.type in kinds]


def has_token(node: Node, token: str) -> bool:
    """True when ``node`` has a direct anonymous child spelled ``token``."""
    return any(not child.is_named and child.type == token for child in node.children)


def call_arguments(call: Node) -> List[Node]:
    """Named argument nodes of a call or ``new`` expression."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def type_arguments(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    args = node.child_by_field_name("type_arguments") or child_of_type(node, "type_arguments")
    if args is None:
        return []
    return [child for child in args.named_children if child.type != "comment"]


def string_value(node: Optional[Node], source: SourceFile) -> Optional[str]:
    """Literal value of a string or substitution-free template string."""
    if node is None or node.type not in STRING_KINDS:
        return None
    if node.type == "template_string" and child_of_type(node, "template_substitution"):
        return None
    text = source.text(node)
    if len(text) < 2:
        return None
    return _unescape(text[1:-1])


def _unescape(value: str) -> str:
    if "\\" not in value:
        return value
    replacements = {"n": "\n", "t": "\t", "r": "\r", "'": "'", '"': '"', "`": "`", "\\": "\\"}
    result: List[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char == "\\" and index + 1 < len(value):
            nxt = value[index + 1]
            result.append(replacements.get(nxt, nxt))
            index += 2
            continue
        result.append(char)
        index += 1
    return "".join(result)


def parse_number(text: str) -> Optional[float | int]:
    cleaned = text.replace("_", "").strip()
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        return float(cleaned)
    except ValueError:
        return None


def property_name(node: Optional[Node], source: SourceFile) -> Optional[str]:
    """Name of an object/class/interface member key, unquoted."""
    if node is None:
        return None
    if node.type == "string":
        return string_value(node, source)
    if node.type == "computed_property_name":
        inner = node.named_children[0] if node.named_children else None
        return string_value(inner, source)
    if node.type in {"property_identifier", "identifier", "private_property_identifier", "number"}:
        return source.text(node)
    return None


def decorator_name(decorator: Node, source: SourceFile) -> str:
    """``Input`` for ``@Input()``, ``@core.Input()`` and ``@Input``."""
    expression = decorator.named_children[0] if decorator.named_children else None
    if expression is not None and expression.type == "call_expression":
        expression = expression.child_by_field_name("function")
    if expression is not None and expression.type == "member_expression":
        expression = expression.child_by_field_name("property")
    return source.text(expression)


def decorator_call(decorator: Node) -> Optional[Node]:
    expression = decorator.named_children[0] if decorator.named_children else None
    if expression is not None and expression.type == "call_expression":
        return expression
    return None


def member_decorators(member: Node) -> List[Node]:
    """Decorators attached to a class member, inside the member node or just before it."""
    decorators = [child for child in member.children if child.type == "decorator"]
    sibling = member.prev_named_sibling
    leading: List[Node] = []
    while sibling is not None and sibling.type in {"decorator", "comment"}:
        if sibling.type == "decorator":
            leading.append(sibling)
        sibling = sibling.prev_named_sibling
    return list(reversed(leading)) + decorators


__all__ = [
    "STRING_KINDS",
    "call_arguments",
    "child_of_type",
    "children_of_type",
    "decorator_call",
    "decorator_name",
    "get_parser",
    "has_token",
    "iter_nodes",
    "language_key_for",
    "member_decorators",
    "parse_number",
    "parse_source",
    "property_name",
    "string_value",
    "type_arguments",
]
