"""Contracts for the program facility consumed by the analysis core."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from tree_sitter import Node, Tree

    from ..types import ReferenceShape, TypeShape

CLASS_KINDS = frozenset({"class_declaration", "abstract_class_declaration", "class"})
FUNCTION_VALUE_KINDS = frozenset({"arrow_function", "function_expression", "function"})


@dataclass(eq=False)
class SourceFile:
    """A parsed source file owned by a program."""

    path: Path
    rel_path: str
    source: bytes
    tree: "Tree"

    @property
    def root_node(self) -> "Node":
        return self.tree.root_node

    @property
    def is_declaration(self) -> bool:
        return self.path.name.endswith(".d.ts")

    def text(self, node: Optional["Node"]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def line_of(self, node: "Node") -> int:
        return node.start_point[0] + 1


@dataclass(eq=False)
class Declaration:
    """A named top-level declaration site."""

    name: str
    kind: str
    node: "Node"
    source: SourceFile
    exported: bool = False
    default_export: bool = False

    @property
    def is_class(self) -> bool:
        return self.kind == "class"

    @property
    def is_component(self) -> bool:
        """True for classes and function-style components."""
        if self.kind in {"class", "function"}:
            return True
        if self.kind == "variable":
            value = self.node.child_by_field_name("value")
            return value is not None and value.type in FUNCTION_VALUE_KINDS
        return False


@dataclass(eq=False)
class Symbol:
    """A resolved name and every declaration site that contributes to it."""

    name: str
    declarations: List[Declaration] = field(default_factory=list)

    def of_kind(self, *kinds: str) -> List[Declaration]:
        return [decl for decl in self.declarations if decl.kind in kinds]


class TypeResolver(ABC):
    """Semantic questions the core asks about a parsed program."""

    @abstractmethod
    def resolve_import(self, source: SourceFile, local_name: str) -> Optional[Symbol]:
        """Follow the import binding ``local_name`` of ``source`` to its declarations."""

    @abstractmethod
    def resolve_symbol(self, source: SourceFile, name: str) -> Optional[Symbol]:
        """Resolve ``name`` as seen from the top level of ``source``."""

    @abstractmethod
    def type_of(
        self, node: "Node", source: SourceFile, env: Optional[Dict[str, "TypeShape"]] = None
    ) -> "TypeShape":
        """Translate a type node into a shape, leaving named references lazy."""

    @abstractmethod
    def infer_expression(self, node: "Node", source: SourceFile) -> "TypeShape":
        """Best-effort shape of a value expression."""

    @abstractmethod
    def expand(self, reference: "ReferenceShape") -> Optional["TypeShape"]:
        """Resolve a named reference to the shape it stands for."""


class ProgramFacility(ABC):
    """A loaded project: its source files plus a type resolver over them."""

    @property
    @abstractmethod
    def root(self) -> Path:
        """Project root every module path is reported relative to."""

    @property
    @abstractmethod
    def resolver(self) -> TypeResolver:
        """Semantic resolver bound to this program."""

    @abstractmethod
    def source_files(self) -> List[SourceFile]:
        """Non-declaration, non-dependency files in stable path order."""

    @abstractmethod
    def get_file(self, path: Path) -> Optional[SourceFile]:
        """Return the program's file at ``path`` if it belongs to the program."""

    @abstractmethod
    def load_file(self, path: Path) -> Optional[SourceFile]:
        """Parse any readable source file on demand."""


__all__ = [
    "CLASS_KINDS",
    "Declaration",
    "FUNCTION_VALUE_KINDS",
    "ProgramFacility",
    "SourceFile",
    "Symbol",
    "TypeResolver",
]
