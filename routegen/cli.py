# File: routegen/cli.py
"""
RouteGen - Command-Line Interface
===================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate pages for every default root
    python -m routegen --schema models.yaml --output ./app

    # One root, under a group prefix, at most three models deep
    python -m routegen -s models.json -o ./app -r User -g admin --max-depth 3

    # Print the route table instead of writing files
    python -m routegen -s models.yaml --list-routes
    python -m routegen -s models.yaml --list-routes --json

    # Validate only (no file output)
    python -m routegen -s models.yaml --validate-only

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("routegen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root routegen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("routegen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    try:
        number: int = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from routegen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="routegen",
        description=(
            "RouteGen — CRUD route tree generator.\n\n"
            "Turns a normalized model registry (JSON/YAML) into nested "
            "List/Create/Read/Update/Delete routes and stamps a page "
            "template per route."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s models.yaml -o ./app\n"
            "  %(prog)s -s models.json -o ./app -r User -g admin --max-depth 3\n"
            "  %(prog)s -s models.yaml --list-routes --json\n"
            "  %(prog)s -s models.yaml --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"RouteGen v{__version__}",
    )

    # --- Required arguments ---
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the model registry file (JSON or YAML).",
    )

    # --- Output ---
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help=(
            "Output directory for generated files "
            "(defaults to config.output_dir)."
        ),
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the registry without generating files.",
    )
    mode_group.add_argument(
        "--list-routes",
        action="store_true",
        default=False,
        help="Print the generated routes instead of writing files.",
    )
    mode_group.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="With --list-routes: print the route tree as JSON.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    # --- Route building ---
    route_group = parser.add_argument_group("route building")
    route_group.add_argument(
        "-r", "--root",
        dest="roots",
        action="append",
        default=None,
        metavar="MODEL",
        help="Root model (repeatable). Defaults to the registry's group roots.",
    )
    route_group.add_argument(
        "-g", "--group",
        type=str,
        default=None,
        metavar="NAME",
        help="Group name; becomes the path prefix of every route.",
    )
    route_group.add_argument(
        "--max-depth",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Maximum number of models on one route path.",
    )

    # --- Materialization ---
    template_group = parser.add_argument_group("templates")
    template_group.add_argument(
        "-t", "--templates",
        type=str,
        default=None,
        metavar="DIR",
        help="Template directory (defaults to the built-in Next.js pages).",
    )
    template_group.add_argument(
        "--accessor",
        type=str,
        default=None,
        metavar="FMT",
        help="Format for dynamic parameters, e.g. '${{params.{name}}}'.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Clean output directory before generation.",
    )
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation has errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {}

    if args.roots:
        overrides["roots"] = list(args.roots)
    if args.group is not None:
        overrides["group"] = args.group
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.templates is not None:
        overrides["template_dir"] = args.templates
    if args.accessor is not None:
        overrides["runtime_accessor"] = args.accessor
    if args.output is not None:
        overrides["output_dir"] = args.output

    return overrides


def _load(schema_path: Path, args: argparse.Namespace) -> Any:
    """Load + parse the registry, applying CLI overrides. Returns None on failure."""
    from routegen.generator import (
        apply_config_overrides,
        load_schema_file,
        parse_raw_schema,
    )

    try:
        raw_data = load_schema_file(schema_path)
        return parse_raw_schema(
            apply_config_overrides(raw_data, _build_config_overrides(args)),
            source_file=str(schema_path),
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load registry: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(schema_path: Path, args: argparse.Namespace) -> int:
    from routegen.utils import Timer
    from routegen.validators import validate_full

    logger.info("Running validation-only mode for: %s", schema_path)

    loaded = _load(schema_path, args)
    if loaded is None:
        return EXIT_INPUT_ERROR
    registry, config = loaded

    with Timer("validation") as t:
        result = validate_full(registry, config)

    print(f"\n{'='*50}")
    print("  Registry Validation Report")
    print(f"{'='*50}")
    print(f"  File:     {schema_path.name}")
    print(f"  Models:   {registry.model_count}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err}")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn}")

    if result.is_valid and not result.warnings:
        print("\n  ✅ All validations passed!")

    print(f"{'='*50}\n")

    if not result.is_valid:
        return EXIT_VALIDATION_ERROR
    if args.fail_on_warnings and result.has_warnings:
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# List-routes mode
# ---------------------------------------------------------------------------


def _run_list_routes(schema_path: Path, args: argparse.Namespace) -> int:
    from routegen.errors import RouteGenError
    from routegen.generator import RouteGenerator
    from routegen.routes import format_route_table

    loaded = _load(schema_path, args)
    if loaded is None:
        return EXIT_INPUT_ERROR
    registry, config = loaded

    try:
        tree = RouteGenerator().build_routes(registry, config)
    except RouteGenError as exc:
        logger.error("Route building failed: %s", exc)
        return EXIT_GENERATION_ERROR

    if args.json:
        print(json.dumps(tree.to_dict(), indent=2, ensure_ascii=False))
    else:
        print("Routes:")
        print("-------")
        print(format_route_table(tree))
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(schema_path: Path, args: argparse.Namespace) -> int:
    from routegen.generator import GenerationReport, RouteGenerator

    generator: RouteGenerator = RouteGenerator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
        clean_output=args.clean,
        dry_run=args.dry_run,
    )

    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    overrides: Dict[str, Any] = _build_config_overrides(args)
    report: GenerationReport = generator.generate_from_file(
        schema_path=schema_path,
        output_dir=Path(args.output) if args.output else None,
        config_overrides=overrides or None,
    )

    print(report.summary())

    if args.dry_run and report.success:
        for rel_path in report.files:
            print(f"  would write {rel_path}")

    if not report.success:
        if report.validation_errors:
            return EXIT_VALIDATION_ERROR
        elif report.generation_errors:
            return EXIT_GENERATION_ERROR
        elif report.export_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_GENERATION_ERROR

    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)

    schema_path: Path = Path(args.schema).resolve()

    if not schema_path.exists():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if not schema_path.is_file():
        logger.error("Schema path is not a file: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.json and not args.list_routes:
        logger.error("--json only applies to --list-routes.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, args))

    if args.list_routes:
        sys.exit(_run_list_routes(schema_path, args))

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", args.output or "(config.output_dir)")
    logger.info("Clean:   %s", args.clean)
    logger.info("Strict:  %s", not args.no_strict)

    exit_code: int = _run_generation(schema_path, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("routegen.cli loaded.")
