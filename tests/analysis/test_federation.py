"""Tests for owcs.analysis.federation."""

from __future__ import annotations

from owcs.analysis.federation import FederationExtractor
from owcs.diagnostics import DiagnosticCollector
from tests._fixtures.project_builder import ProjectBuilder


def test_webpack_is_default_without_configs(project_builder: ProjectBuilder) -> None:
    runtime = FederationExtractor(DiagnosticCollector()).extract(project_builder.path())
    assert runtime.bundler == "webpack"
    assert runtime.federation is None
    assert runtime.to_dict() == {"bundler": "webpack"}


def test_webpack_module_federation_plugin(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "webpack.config.js": """
            const { ModuleFederationPlugin } = require('webpack').container;

            module.exports = {
              plugins: [
                new ModuleFederationPlugin({
                  name: 'catalog',
                  library: { type: 'var', name: 'catalog' },
                  filename: 'remoteEntry.js',
                  exposes: {
                    './ProductCard': './src/ProductCard.tsx',
                    './Rating': './src/Rating.tsx',
                  },
                }),
              ],
            };
            """
        }
    )
    runtime = FederationExtractor(DiagnosticCollector()).extract(project_builder.path())
    assert runtime.to_dict() == {
        "bundler": "webpack",
        "federation": {
            "remoteName": "catalog",
            "libraryType": "var",
            "exposes": {"./ProductCard": "./src/ProductCard.tsx", "./Rating": "./src/Rating.tsx"},
        },
    }


def test_webpack_namespaced_plugin_with_options_variable(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "webpack.config.js": """
            const webpack = require('webpack');
            const federationOptions = { name: 'checkout', libraryType: 'module' };
            module.exports = {
              plugins: [new webpack.container.ModuleFederationPlugin(federationOptions)],
            };
            """
        }
    )
    runtime = FederationExtractor(DiagnosticCollector()).extract(project_builder.path())
    assert runtime.federation is not None
    assert runtime.federation.remote_name == "checkout"
    assert runtime.federation.library_type == "module"
    assert runtime.federation.exposes == {}


def test_angular_helper_in_webpack_config(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "webpack.config.js": """
            const { withModuleFederationPlugin } = require('@angular-architects/module-federation/webpack');
            module.exports = withModuleFederationPlugin({
              name: 'profile',
              exposes: { './Component': './src/app/app.component.ts' },
            });
            """,
            "vite.config.ts": "export default {};\n",
        }
    )
    runtime = FederationExtractor(DiagnosticCollector()).extract(project_builder.path(), adapter="angular")
    assert runtime.bundler == "webpack"
    assert runtime.federation is not None
    assert runtime.federation.remote_name == "profile"


def test_vite_federation_plugin(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "vite.config.ts": """
            import { defineConfig } from 'vite';
            import federation from '@originjs/vite-plugin-federation';

            export default defineConfig({
              plugins: [
                federation({
                  name: 'header',
                  filename: 'remoteEntry.js',
                  exposes: { './Header': './src/Header.tsx' },
                }),
              ],
            });
            """,
            "webpack.config.js": "module.exports = {};\n",
        }
    )
    runtime = FederationExtractor(DiagnosticCollector()).extract(project_builder.path())
    assert runtime.bundler == "vite"
    assert runtime.federation is not None
    assert runtime.federation.remote_name == "header"
    assert runtime.federation.exposes == {"./Header": "./src/Header.tsx"}


def test_config_without_federation_plugin(project_builder: ProjectBuilder) -> None:
    project_builder.write({"vite.config.js": "export default { plugins: [react()] };\n"})
    diagnostics = DiagnosticCollector()
    runtime = FederationExtractor(diagnostics).extract(project_builder.path())
    assert runtime.bundler == "vite"
    assert runtime.federation is None
    assert len(diagnostics) == 0


def test_broken_config_warns(project_builder: ProjectBuilder) -> None:
    project_builder.write({"webpack.config.js": "module.exports = { plugins: [ new (\n"})
    diagnostics = DiagnosticCollector()
    runtime = FederationExtractor(diagnostics).extract(project_builder.path())
    assert runtime.bundler == "webpack"
    assert runtime.federation is None
    assert diagnostics.codes() == ["runtime.unreadable-config"]
    assert diagnostics.records[0].file == "webpack.config.js"
