"""Compile type shapes into canonical JSON Schema fragments."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tree_sitter import Node

from ..models import JSONSchema
from ..program.base import SourceFile, TypeResolver
from ..types import (
    ArrayShape,
    CallableShape,
    LiteralShape,
    PrimitiveShape,
    ReferenceShape,
    StructuralShape,
    TypeShape,
    UnionShape,
    UnknownShape,
)

DEFAULT_MAX_DEPTH = 8

_PRIMITIVE_TYPES = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "null": "null",
    "undefined": "null",
    "void": "null",
    "any": "any",
    "unknown": "any",
    "object": "object",
}

_ARRAY_NAMES = {"Array", "ReadonlyArray"}
_DATE_NAMES = {"Date"}
_OBJECT_NAMES = {"Record", "Object", "Map", "WeakMap", "ReadonlyMap"}


def _any() -> JSONSchema:
    return {"type": "any"}


class SchemaCompiler:
    """Deterministic translation from :mod:`owcs.types` shapes to JSON Schema.

    Named references are expanded through the resolver. Each expansion along
    one path counts towards ``max_depth``; past the bound the reference
    compiles to ``{"type": "object"}`` so self-referential types terminate.
    """

    def __init__(self, resolver: Optional[TypeResolver], max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._resolver = resolver
        self._max_depth = max_depth

    def compile(self, shape: Optional[TypeShape]) -> JSONSchema:
        return self._compile(shape, 0)

    def compile_node(
        self, node: Optional[Node], source: SourceFile, env: Optional[Dict[str, TypeShape]] = None
    ) -> JSONSchema:
        if node is None or self._resolver is None:
            return _any()
        return self.compile(self._resolver.type_of(node, source, env))

    def _compile(self, shape: Optional[TypeShape], depth: int) -> JSONSchema:
        if shape is None:
            return _any()
        if isinstance(shape, PrimitiveShape):
            return {"type": _PRIMITIVE_TYPES.get(shape.keyword, "any")}
        if isinstance(shape, ArrayShape):
            return self._array(shape.element, depth)
        if isinstance(shape, UnionShape):
            return self._union(shape.members, depth)
        if isinstance(shape, LiteralShape):
            return {"type": shape.scalar_type, "enum": [shape.value]}
        if isinstance(shape, ReferenceShape):
            return self._reference(shape, depth)
        if isinstance(shape, StructuralShape):
            return self._structural(shape, depth)
        if isinstance(shape, CallableShape):
            return {"type": "function"}
        if isinstance(shape, UnknownShape):
            return _any()
        return _any()

    def _array(self, element: Optional[TypeShape], depth: int) -> JSONSchema:
        items = self._compile(element, depth) if element is not None else _any()
        return {"type": "array", "items": items}

    def _union(self, members: List[TypeShape], depth: int) -> JSONSchema:
        compiled = [self._compile(member, depth) for member in members]
        if not compiled:
            return _any()
        if len(compiled) == 1:
            return compiled[0]

        merged = _merge_enums(compiled)
        if merged is not None:
            return merged

        if all(_is_bare_scalar(schema) for schema in compiled):
            types: List[str] = []
            for schema in compiled:
                entries = schema["type"] if isinstance(schema["type"], list) else [schema["type"]]
                for entry in entries:
                    if entry not in types:
                        types.append(entry)
            if len(types) == 1:
                return {"type": types[0]}
            return {"type": types}

        return {"oneOf": compiled}

    def _reference(self, reference: ReferenceShape, depth: int) -> JSONSchema:
        name = reference.simple_name
        if name in _ARRAY_NAMES:
            return self._array(reference.arguments[0] if reference.arguments else None, depth)
        if name in _DATE_NAMES:
            return {"type": "string", "format": "date-time"}
        if name in _OBJECT_NAMES:
            return {"type": "object"}
        if depth >= self._max_depth:
            return {"type": "object"}
        if self._resolver is None:
            return _any()
        expanded = self._resolver.expand(reference)
        if expanded is None:
            return _any()
        return self._compile(expanded, depth + 1)

    def _structural(self, shape: StructuralShape, depth: int) -> JSONSchema:
        properties: Dict[str, JSONSchema] = {}
        required: List[str] = []
        for member in shape.members:
            if isinstance(member.shape, CallableShape):
                continue
            properties[member.name] = self._compile(member.shape, depth)
            if not member.optional:
                required.append(member.name)
        if not properties:
            return {"type": "object"}
        schema: JSONSchema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema


def _is_bare_scalar(schema: JSONSchema) -> bool:
    if set(schema) != {"type"}:
        return False
    value = schema["type"]
    return isinstance(value, str) or (isinstance(value, list) and all(isinstance(v, str) for v in value))


def _merge_enums(compiled: List[JSONSchema]) -> Optional[JSONSchema]:
    scalar: Optional[str] = None
    values: List[Any] = []
    for schema in compiled:
        if set(schema) != {"type", "enum"} or not isinstance(schema["type"], str):
            return None
        if scalar is None:
            scalar = schema["type"]
        elif schema["type"] != scalar:
            return None
        values.extend(schema["enum"])
    return {"type": scalar, "enum": values}


__all__ = ["DEFAULT_MAX_DEPTH", "SchemaCompiler"]
