"""Tests for owcs.analysis.class_resolver."""

from __future__ import annotations

import pytest

from owcs.analysis.class_resolver import ClassResolver
from owcs.diagnostics import DiagnosticCollector
from tests._fixtures.project_builder import ProjectBuilder


def test_imported_declaration_wins_over_local(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/card.ts": "export class Card extends HTMLElement {}\n",
            "src/main.ts": """
            import { Card } from './card';
            class Card {}
            customElements.define('x-card', Card);
            """,
        }
    )
    program = project_builder.program()
    found = ClassResolver(program, DiagnosticCollector()).resolve("Card", project_builder.source(program, "src/main.ts"))
    assert found is not None
    assert found.source.rel_path == "src/card.ts"
    assert found.is_class


def test_resolves_through_aliases_and_reexports(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/components/profile.ts": "export class ProfileView extends HTMLElement {}\n",
            "src/components/index.ts": "export { ProfileView as Profile } from './profile';\n",
            "src/main.ts": """
            import { Profile as ProfileElement } from './components';
            customElements.define('x-profile', ProfileElement);
            """,
        }
    )
    program = project_builder.program()
    found = ClassResolver(program, DiagnosticCollector()).resolve(
        "ProfileElement", project_builder.source(program, "src/main.ts")
    )
    assert found is not None
    assert found.name == "ProfileView"
    assert found.source.rel_path == "src/components/profile.ts"


def test_resolves_default_import_and_star_export(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/widgets/gauge.tsx": "export default class Gauge extends HTMLElement {}\n",
            "src/widgets/all.ts": "export * from './meter';\n",
            "src/widgets/meter.ts": "export function Meter(props: { value: number }) { return null; }\n",
            "src/main.ts": """
            import Dial from './widgets/gauge';
            import { Meter } from './widgets/all';
            customElements.define('x-dial', Dial);
            customElements.define('x-meter', Meter);
            """,
        }
    )
    program = project_builder.program()
    origin = project_builder.source(program, "src/main.ts")
    resolver = ClassResolver(program, DiagnosticCollector())

    dial = resolver.resolve("Dial", origin)
    assert dial is not None and dial.name == "Gauge"

    meter = resolver.resolve("Meter", origin)
    assert meter is not None and meter.kind == "function"


def test_path_alias_from_tsconfig(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "tsconfig.json": """
            {
              // comments are allowed
              "compilerOptions": {
                "baseUrl": ".",
                "paths": { "@ui/*": ["libs/ui/src/*"] },
              },
            }
            """,
            "libs/ui/src/button.ts": "export class UiButton extends HTMLElement {}\n",
            "apps/shell/main.ts": """
            import { UiButton } from '@ui/button';
            customElements.define('ui-button', UiButton);
            """,
        }
    )
    program = project_builder.program()
    found = ClassResolver(program, DiagnosticCollector()).resolve(
        "UiButton", project_builder.source(program, "apps/shell/main.ts")
    )
    assert found is not None
    assert found.source.rel_path == "libs/ui/src/button.ts"


def test_manual_fallback_when_semantic_lookup_fails(
    project_builder: ProjectBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    project_builder.write(
        {
            "src/banner/index.tsx": "export class Banner extends HTMLElement {}\n",
            "src/main.ts": """
            import { Banner } from './banner';
            customElements.define('x-banner', Banner);
            """,
        }
    )
    program = project_builder.program()
    monkeypatch.setattr(program.resolver, "resolve_import", lambda source, name: None)

    found = ClassResolver(program, DiagnosticCollector()).resolve("Banner", project_builder.source(program, "src/main.ts"))
    assert found is not None
    assert found.source.rel_path == "src/banner/index.tsx"


def test_local_declaration_without_import(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/local.tsx": """
            const Helper = 42;
            export const Chip = (props: { label: string }) => <span>{props.label}</span>;
            customElements.define('x-chip', Chip);
            """,
        }
    )
    program = project_builder.program()
    found = ClassResolver(program, DiagnosticCollector()).resolve("Chip", project_builder.source(program, "src/local.tsx"))
    assert found is not None
    assert found.kind == "variable"
    assert found.is_component


def test_missing_declaration_warns(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/main.ts": """
            import { Ghost } from 'some-package';
            customElements.define('x-ghost', Ghost);
            customElements.define('x-phantom', Phantom);
            """,
        }
    )
    program = project_builder.program()
    diagnostics = DiagnosticCollector()
    resolver = ClassResolver(program, diagnostics)
    origin = project_builder.source(program, "src/main.ts")

    assert resolver.resolve("Ghost", origin) is None
    assert resolver.resolve("Phantom", origin) is None
    assert diagnostics.codes() == ["resolution.not-found", "resolution.not-found"]
    assert diagnostics.records[0].symbol == "Ghost"
