"""CLI entrypoints for owcs commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .analyzer import analyze_project
from .config import ConfigError
from .logging import configure_logging


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="owcs",
        description="Describe the props and events of custom elements defined in a TypeScript project.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Print the intermediate component model of a project as JSON.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    analyze_parser.add_argument(
        "--config",
        default=None,
        help="Explicit owcs configuration file (owcs.yml, owcs.yaml or owcs.config.json).",
    )
    analyze_parser.add_argument(
        "--tsconfig",
        default=None,
        help="tsconfig.json to read path aliases from.",
    )
    analyze_parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log output, diagnostics included, to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for owcs commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if getattr(args, "log_file", None) else None,
    )

    if args.command == "analyze":
        try:
            result = analyze_project(
                Path(args.path),
                config_path=Path(args.config) if args.config else None,
                tsconfig_path=Path(args.tsconfig) if args.tsconfig else None,
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except ConfigError as exc:
            parser.exit(1, f"owcs analyze failed: {exc}\n")
        print(json.dumps(result.model.to_dict(), indent=2))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
