"""Tests for owcs.program.checker type resolution."""

from __future__ import annotations

from typing import Dict, Optional

from owcs.analysis.schema import SchemaCompiler
from owcs.types import LiteralShape, ReferenceShape, StructuralShape
from tests._fixtures.project_builder import ProjectBuilder


def _subject_schema(project_builder: ProjectBuilder, body: str, files: Optional[Dict[str, str]] = None) -> dict:
    """Compile the ``Subject`` type declared in ``types.ts``."""
    project_builder.write({**(files or {}), "types.ts": body})
    program = project_builder.program()
    source = project_builder.source(program, "types.ts")
    return SchemaCompiler(program.resolver).compile(ReferenceShape(name="Subject", source=source))


def test_string_and_numeric_enums(project_builder: ProjectBuilder) -> None:
    schema = _subject_schema(
        project_builder,
        """
        enum Size { Small = 'sm', Large = 'lg' }
        enum Level { Low, High = 5, Higher }
        type Subject = { size: Size; level: Level; fixed: Size.Large };
        """,
    )
    assert schema["properties"] == {
        "size": {"type": "string", "enum": ["sm", "lg"]},
        "level": {"type": "number", "enum": [0, 5, 6]},
        "fixed": {"type": "string", "enum": ["lg"]},
    }


def test_namespace_import_qualified_reference(project_builder: ProjectBuilder) -> None:
    schema = _subject_schema(
        project_builder,
        """
        import * as models from './models';
        type Subject = models.Address;
        """,
        files={"models.ts": "export interface Address { city: string }\n"},
    )
    assert schema == {"type": "object", "properties": {"city": {"type": "string"}}, "required": ["city"]}


def test_generic_alias_binds_arguments(project_builder: ProjectBuilder) -> None:
    schema = _subject_schema(
        project_builder,
        """
        type Box<T, U = boolean> = { value: T; flag: U };
        type Subject = Box<number>;
        """,
    )
    assert schema["properties"] == {"value": {"type": "number"}, "flag": {"type": "boolean"}}


def test_interface_inheritance_and_merging(project_builder: ProjectBuilder) -> None:
    schema = _subject_schema(
        project_builder,
        """
        interface Base { id: string; label: string }
        interface Subject extends Base { label?: string }
        interface Subject { tags: string[] }
        """,
    )
    assert list(schema["properties"]) == ["id", "label", "tags"]
    assert schema["required"] == ["id", "tags"]


def test_intersection_merges_members(project_builder: ProjectBuilder) -> None:
    schema = _subject_schema(
        project_builder,
        """
        interface Named { name: string }
        type Subject = Named & { active?: boolean };
        """,
    )
    assert schema == {
        "type": "object",
        "properties": {"name": {"type": "string"}, "active": {"type": "boolean"}},
        "required": ["name"],
    }


def test_utility_types(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "types.ts": """
            interface Props { a: string; b?: number; c: boolean }
            type Loose = Partial<Props>;
            type Strict = Required<Props>;
            type Picked = Pick<Props, 'a' | 'c'>;
            type Trimmed = Omit<Props, 'a'>;
            type Present = NonNullable<string | null>;
            type Mode = Props['c'];
            """
        }
    )
    program = project_builder.program()
    source = project_builder.source(program, "types.ts")
    compiler = SchemaCompiler(program.resolver)

    def compile_named(name: str) -> dict:
        return compiler.compile(ReferenceShape(name=name, source=source))

    assert "required" not in compile_named("Loose")
    assert compile_named("Strict")["required"] == ["a", "b", "c"]
    assert list(compile_named("Picked")["properties"]) == ["a", "c"]
    assert list(compile_named("Trimmed")["properties"]) == ["b", "c"]
    assert compile_named("Present") == {"type": "string"}
    assert compile_named("Mode") == {"type": "boolean"}


def test_class_used_as_type_exposes_public_fields(project_builder: ProjectBuilder) -> None:
    schema = _subject_schema(
        project_builder,
        """
        class Subject {
          static count = 0;
          private secret = 'x';
          #hidden = 1;
          title = 'untitled';
          size?: number;
          protected internal: boolean = true;
        }
        """,
    )
    assert schema == {
        "type": "object",
        "properties": {"title": {"type": "string"}, "size": {"type": "number"}},
        "required": ["title"],
    }


def test_expand_reports_unknown_names(project_builder: ProjectBuilder) -> None:
    project_builder.write({"types.ts": "type Known = { x: number };\n"})
    program = project_builder.program()
    source = project_builder.source(program, "types.ts")

    assert program.resolver.expand(ReferenceShape(name="Missing", source=source)) is None
    known = program.resolver.expand(ReferenceShape(name="Known", source=source))
    assert isinstance(known, StructuralShape)
    assert known.member("x") is not None


def test_enum_member_reference_expands_to_literal(project_builder: ProjectBuilder) -> None:
    project_builder.write({"types.ts": "export enum Color { Red = 'red', Blue = 'blue' }\n"})
    program = project_builder.program()
    source = project_builder.source(program, "types.ts")
    assert program.resolver.expand(ReferenceShape(name="Color.Blue", source=source)) == LiteralShape("blue")
