"""Tests for owcs.analysis.discovery."""

from __future__ import annotations

from owcs.analysis.discovery import RegistrationDiscoverer
from owcs.diagnostics import DiagnosticCollector
from tests._fixtures.project_builder import ProjectBuilder


def _discover(project_builder: ProjectBuilder, **kwargs):
    diagnostics = DiagnosticCollector()
    registrations = RegistrationDiscoverer(diagnostics, **kwargs).discover(project_builder.program())
    return registrations, diagnostics


def test_direct_class_registration(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/user-card.ts": """
            export class UserCard extends HTMLElement {}
            customElements.define('user-card', UserCard);
            """
        }
    )
    registrations, diagnostics = _discover(project_builder)
    assert [(r.tag_name, r.definition_name) for r in registrations] == [("user-card", "UserCard")]
    assert registrations[0].origin_file.rel_path == "src/user-card.ts"
    assert registrations[0].line == 2
    assert len(diagnostics) == 0


def test_factory_alias_is_substituted(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.ts": """
            import { createCustomElement } from '@angular/elements';
            import { ProductTile } from './product-tile';

            const TileElement = createCustomElement(ProductTile, { injector });
            customElements.define('product-tile', TileElement);
            """
        }
    )
    registrations, _ = _discover(project_builder)
    assert [(r.tag_name, r.definition_name) for r in registrations] == [("product-tile", "ProductTile")]


def test_inline_factory_call_resolves_wrapped_definition(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.tsx": """
            import r2wc from '@r2wc/react-to-web-component';
            import { Rating } from './Rating';

            window.customElements.define('star-rating', r2wc(Rating, { props: {} }));
            """
        }
    )
    registrations, _ = _discover(project_builder)
    assert [(r.tag_name, r.definition_name) for r in registrations] == [("star-rating", "Rating")]


def test_non_literal_tag_is_dropped_with_warning(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/dynamic.ts": """
            class Dynamic extends HTMLElement {}
            customElements.define(getTag(), Dynamic);
            """
        }
    )
    registrations, diagnostics = _discover(project_builder)
    assert registrations == []
    assert diagnostics.codes() == ["discovery.non-literal-tag"]
    assert diagnostics.records[0].file == "src/dynamic.ts"


def test_template_tag_with_substitution_is_not_literal(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/prefixed.ts": """
            class Plain extends HTMLElement {}
            customElements.define(`x-plain`, Plain);
            customElements.define(`${prefix}-plain`, Plain);
            """
        }
    )
    registrations, diagnostics = _discover(project_builder)
    assert [r.tag_name for r in registrations] == ["x-plain"]
    assert diagnostics.codes() == ["discovery.non-literal-tag"]


def test_unresolvable_definition_is_dropped(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/broken.ts": """
            customElements.define('x-broken', makeElement());
            customElements.define('x-short');
            customElements.define('x-ok', Ok);
            """
        }
    )
    registrations, diagnostics = _discover(project_builder)
    assert [r.tag_name for r in registrations] == ["x-ok"]
    assert diagnostics.codes() == ["discovery.unresolved-definition", "discovery.missing-arguments"]


def test_other_define_calls_are_ignored(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/router.ts": """
            routes.define('home', HomePage);
            define('legacy', Legacy);
            """
        }
    )
    registrations, diagnostics = _discover(project_builder)
    assert registrations == []
    assert len(diagnostics) == 0


def test_custom_registry_and_factory_names(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.ts": """
            const Wrapped = wrapElement(Badge);
            registry.define('x-badge', Wrapped);
            """
        }
    )
    registrations, _ = _discover(project_builder, registries=["registry"], element_factories=["wrapElement"])
    assert [(r.tag_name, r.definition_name) for r in registrations] == [("x-badge", "Badge")]


def test_discovery_is_idempotent_and_ordered(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/b.ts": """
            customElements.define('b-one', BOne);
            customElements.define('b-two', BTwo);
            """,
            "src/a.ts": "customElements.define('a-one', AOne);\n",
            "src/types.d.ts": "declare const x: number;\ncustomElements.define('d-ignored', D);\n",
            "node_modules/lib/index.ts": "customElements.define('dep-ignored', Dep);\n",
        }
    )
    program = project_builder.program()
    discoverer = RegistrationDiscoverer(DiagnosticCollector())
    first = [(r.tag_name, r.definition_name) for r in discoverer.discover(program)]
    second = [(r.tag_name, r.definition_name) for r in discoverer.discover(program)]
    assert first == [("a-one", "AOne"), ("b-one", "BOne"), ("b-two", "BTwo")]
    assert first == second


def test_empty_tag_has_its_own_diagnostic(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/blank.ts": """
            class Blank extends HTMLElement {}
            customElements.define('', Blank);
            customElements.define(``, Blank);
            """
        }
    )
    registrations, diagnostics = _discover(project_builder)
    assert registrations == []
    assert diagnostics.codes() == ["discovery.empty-tag", "discovery.empty-tag"]
    assert diagnostics.records[0].line == 2
