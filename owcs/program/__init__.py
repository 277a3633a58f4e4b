"""Program facility: parsed source files plus a type resolver."""

from .base import Declaration, ProgramFacility, SourceFile, Symbol, TypeResolver
from .treesitter import TreeSitterProgram

__all__ = [
    "Declaration",
    "ProgramFacility",
    "SourceFile",
    "Symbol",
    "TreeSitterProgram",
    "TypeResolver",
]
