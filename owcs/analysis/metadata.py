"""Documentation-comment metadata for props and events."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tree_sitter import Node

from ..models import NO_DEFAULT
from ..program.base import SourceFile
from ..program.syntax import parse_number, string_value

WIRE_NAME_TAGS = ("attribute", "attr")

_KEBAB_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_TAG_LINE = re.compile(r"^@(\w[\w-]*)\s*(.*)$")
_SKIPPED_SIBLINGS = {"decorator", ";", ","}
_NUMERIC = re.compile(r"^[-+]?(\d[\d_]*\.?\d*|\.\d+)([eE][-+]?\d+)?$|^0[xXoObB][0-9a-fA-F_]+$")


@dataclass
class MemberMetadata:
    """What a member's JSDoc block and initializer say about it."""

    description: Optional[str] = None
    default: Any = NO_DEFAULT
    deprecated: bool = False
    wire_name: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)


def to_kebab_case(name: str) -> str:
    return _KEBAB_BOUNDARY.sub(r"\1-\2", name).lower()


def jsdoc_comment(member: Optional[Node], source: SourceFile) -> Optional[str]:
    """Text of the ``/** ... */`` block closest before ``member``, skipping decorators."""
    if member is None:
        return None
    for child in member.children:
        if child.type == "comment":
            text = source.text(child)
            if text.startswith("/**"):
                return text
            continue
        if child.type != "decorator":
            break

    target = member
    if member.parent is not None and member.parent.type in {"export_statement", "lexical_declaration"}:
        target = member.parent
    sibling = target.prev_sibling
    while sibling is not None:
        if sibling.type == "comment":
            text = source.text(sibling)
            if text.startswith("/**"):
                return text
        elif sibling.type not in _SKIPPED_SIBLINGS:
            return None
        sibling = sibling.prev_sibling
    return None


def parse_jsdoc(comment: str) -> MemberMetadata:
    body = comment.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]

    lines: List[str] = []
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())

    description: List[str] = []
    tags: Dict[str, str] = {}
    current: Optional[str] = None
    values: Dict[str, List[str]] = {}
    for line in lines:
        match = _TAG_LINE.match(line.strip())
        if match:
            current = match.group(1)
            values[current] = [match.group(2).strip()] if match.group(2).strip() else []
            continue
        if current is None:
            description.append(line)
        elif line.strip():
            values[current].append(line.strip())

    for name, parts in values.items():
        tags[name] = " ".join(parts)

    metadata = MemberMetadata(tags=tags)
    text = "\n".join(description).strip()
    if text:
        metadata.description = text
    if "default" in tags:
        metadata.default = parse_default_value(tags["default"])
    if "deprecated" in tags:
        metadata.deprecated = True
    for tag in WIRE_NAME_TAGS:
        if tags.get(tag):
            metadata.wire_name = tags[tag].split()[0]
            break
    return metadata


def parse_default_value(value: str) -> Any:
    """Interpret a ``@default`` tag value, falling back to the raw text."""
    trimmed = value.strip()
    try:
        return json.loads(trimmed)
    except ValueError:
        pass
    if trimmed == "true":
        return True
    if trimmed == "false":
        return False
    if trimmed == "null":
        return None
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] == "'":
        return trimmed[1:-1]
    number = parse_number(trimmed) if _NUMERIC.match(trimmed) else None
    if number is not None:
        return number
    return trimmed


def literal_default(value: Optional[Node], source: SourceFile) -> Any:
    """Default taken from a literal initializer, or ``NO_DEFAULT``."""
    if value is None:
        return NO_DEFAULT
    kind = value.type
    if kind in {"string", "template_string"}:
        text = string_value(value, source)
        return text if text is not None else NO_DEFAULT
    if kind == "number":
        number = parse_number(source.text(value))
        return number if number is not None else NO_DEFAULT
    if kind == "unary_expression" and source.text(value.child_by_field_name("operator")) == "-":
        number = parse_number(source.text(value).replace(" ", ""))
        return number if number is not None else NO_DEFAULT
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "null":
        return None
    if kind == "array" and not [c for c in value.named_children if c.type != "comment"]:
        return []
    if kind == "object" and not [c for c in value.named_children if c.type != "comment"]:
        return {}
    return NO_DEFAULT


def extract_metadata(
    member: Optional[Node],
    source: Optional[SourceFile],
    name: str,
    initializer: Optional[Node] = None,
) -> MemberMetadata:
    """Collect description, default, deprecation, wire name and tags for ``member``."""
    metadata = MemberMetadata()
    if member is not None and source is not None:
        comment = jsdoc_comment(member, source)
        if comment is not None:
            metadata = parse_jsdoc(comment)
        if metadata.default is NO_DEFAULT:
            metadata.default = literal_default(initializer, source)
    if metadata.wire_name is None:
        metadata.wire_name = to_kebab_case(name)
    return metadata


__all__ = [
    "MemberMetadata",
    "WIRE_NAME_TAGS",
    "extract_metadata",
    "jsdoc_comment",
    "literal_default",
    "parse_default_value",
    "parse_jsdoc",
    "to_kebab_case",
]
