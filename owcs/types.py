"""Closed set of type shapes exchanged between the resolver and the schema compiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Union

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from tree_sitter import Node

    from .program.base import SourceFile

PRIMITIVE_KEYWORDS = frozenset(
    {"string", "number", "boolean", "null", "undefined", "any", "unknown", "void", "never", "object", "bigint", "symbol"}
)


@dataclass
class PrimitiveShape:
    keyword: str


@dataclass
class LiteralShape:
    """A string, number or boolean literal type."""

    value: Union[str, int, float, bool]

    @property
    def scalar_type(self) -> str:
        if isinstance(self.value, bool):
            return "boolean"
        if isinstance(self.value, (int, float)):
            return "number"
        return "string"


@dataclass
class ArrayShape:
    """``T[]`` or ``Array<T>``; ``element`` is None for a bare ``Array``."""

    element: Optional["TypeShape"]


@dataclass
class UnionShape:
    members: List["TypeShape"]


@dataclass
class ReferenceShape:
    """A named type that still needs the resolver to be understood.

    ``env`` carries generic parameter bindings in effect where the
    reference was written.
    """

    name: str
    arguments: List["TypeShape"] = field(default_factory=list)
    source: Optional["SourceFile"] = field(default=None, compare=False, repr=False)
    env: Dict[str, "TypeShape"] = field(default_factory=dict, compare=False, repr=False)
    node: Optional["Node"] = field(default=None, compare=False, repr=False)

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]


@dataclass
class MemberShape:
    name: str
    shape: "TypeShape"
    optional: bool = False
    node: Optional["Node"] = field(default=None, compare=False, repr=False)
    source: Optional["SourceFile"] = field(default=None, compare=False, repr=False)


@dataclass
class StructuralShape:
    members: List[MemberShape] = field(default_factory=list)

    def member(self, name: str) -> Optional[MemberShape]:
        for member in self.members:
            if member.name == name:
                return member
        return None


@dataclass
class ParameterShape:
    name: str
    shape: "TypeShape"
    optional: bool = False


@dataclass
class CallableShape:
    parameters: List[ParameterShape] = field(default_factory=list)
    returns: Optional["TypeShape"] = None

    @property
    def returns_nothing(self) -> bool:
        if self.returns is None:
            return True
        return isinstance(self.returns, PrimitiveShape) and self.returns.keyword in {"void", "undefined", "never"}


@dataclass
class UnknownShape:
    text: str = ""


TypeShape = Union[
    PrimitiveShape,
    LiteralShape,
    ArrayShape,
    UnionShape,
    ReferenceShape,
    StructuralShape,
    CallableShape,
    UnknownShape,
]


def merge_members(parts: List[StructuralShape]) -> StructuralShape:
    """Combine structural shapes; later declarations of a name replace earlier ones in place."""
    merged: List[MemberShape] = []
    index: Dict[str, int] = {}
    for part in parts:
        for member in part.members:
            if member.name in index:
                merged[index[member.name]] = member
            else:
                index[member.name] = len(merged)
                merged.append(member)
    return StructuralShape(members=merged)


def is_nullish(shape: TypeShape) -> bool:
    if isinstance(shape, PrimitiveShape):
        return shape.keyword in {"null", "undefined", "void"}
    return False


def strip_nullish(shape: TypeShape) -> TypeShape:
    """Drop ``null``/``undefined`` members from a union, unwrapping a single survivor."""
    if not isinstance(shape, UnionShape):
        return shape
    kept = [member for member in shape.members if not is_nullish(member)]
    if len(kept) == 1:
        return kept[0]
    if len(kept) == len(shape.members):
        return shape
    return UnionShape(members=kept)


__all__ = [
    "ArrayShape",
    "CallableShape",
    "LiteralShape",
    "MemberShape",
    "ParameterShape",
    "PRIMITIVE_KEYWORDS",
    "PrimitiveShape",
    "ReferenceShape",
    "StructuralShape",
    "TypeShape",
    "UnionShape",
    "UnknownShape",
    "is_nullish",
    "merge_members",
    "strip_nullish",
]
