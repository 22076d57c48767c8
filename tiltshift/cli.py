"""CLI entrypoints for tiltshift commands."""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from .config import TiltshiftConfig, load_config_text
from .errors import ConfigurationError
from .logging import configure_logging, get_logger
from .resolver import resolve_projection, validate_references


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
        prog="tiltshift",
        description="Evaluate configured projections against changed files.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a configuration read from stdin and resolve all references.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP evaluation service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None, *, stdin: TextIO | None = None) -> None:
    """CLI entrypoint for tiltshift commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(verbose=bool(args.verbose))
    except ValueError as exc:
        parser.exit(2, f"{exc}\n")
    logger = get_logger("cli")

    if args.command == "validate":
        source = (stdin or sys.stdin).read()
        try:
            config = load_config_text(source)
            validate_references(config)
        except ConfigurationError as exc:
            parser.exit(1, f"Invalid configuration: {exc}\n")
        logger.debug("Configuration resolved with %d subjects", len(config.subjects))
        print(_summarize(config))
    elif args.command == "serve":
        from .service import run_service

        try:
            run_service(host=args.host, port=args.port)
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _summarize(config: TiltshiftConfig) -> str:
    lines = []
    for name, subject in config.subjects.items():
        projections = [resolve_projection(ref, config.defined) for ref in subject.projections]
        globs = ", ".join(projection.include for projection in projections) or "(none)"
        lines.append(f"{name}: {len(projections)} projections [{globs}]")
    if not lines:
        lines.append("No subjects defined")
    return "\n".join(lines)


if __name__ == "__main__":
    main(sys.argv[1:])
