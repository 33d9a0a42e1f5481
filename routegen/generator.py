# File: routegen/generator.py
"""
RouteGen - Generation Pipeline (Orchestrator)
===============================================

Connects every phase together:

    Registry Input → Validation → Route Building → Materialization → Export

The ``RouteGenerator`` class provides both a programmatic API and the
backend for the CLI.

Workflow::

    1. Load the registry from a JSON/YAML file (or accept in-memory objects).
    2. Parse into ``ModelRegistry`` + ``GenerationConfig`` (models.py).
    3. Run the validation pipeline (validators.py).
    4. Build the route tree for the configured roots (builder.py).
    5. Render it with the selected template set (materializer.py).
    6. Hand the file map to ``RouteExporter`` (exporters.py).
    7. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Validation errors are collected and surfaced, not swallowed.
    - A build or materialization error aborts the run before anything is
      written: output is never partial.
    - Export errors are recorded in the report.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from routegen.builder import RouteGraphBuilder
from routegen.errors import RouteGenError
from routegen.exporters import ExportManifest, ExportResult, RouteExporter
from routegen.materializer import materialize
from routegen.models import GenerationConfig, ModelRegistry
from routegen.routes import RouteNode
from routegen.templates import TemplateSet, default_template_set, load_template_dir
from routegen.utils import Timer, count_lines
from routegen.validators import ValidationError, ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("routegen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``RouteGenerator.generate()``.

    ``tree`` and ``files`` are set once their step succeeded; in dry-run
    mode ``files`` is the only place the output lives.
    """

    success: bool = False
    dry_run: bool = False
    project_name: str = ""
    output_directory: str = ""
    group: Optional[str] = None

    # Metrics
    total_routes: int = 0
    total_nodes: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[ValidationError] = field(default_factory=list)
    validation_warnings: List[ValidationError] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    tree: Optional[RouteNode] = None
    files: Dict[str, str] = field(default_factory=dict)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append(f"{'='*60}")
        lines.append("  RouteGen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Group:            {self.group or '-'}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Routes:           {self.total_routes}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, str, List[Any]]] = [
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("Generation Errors", "✗", self.generation_errors),
            ("Export Errors", "✗", self.export_errors),
        ]
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Registry loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Any:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def _load_yaml_file(path: Path) -> Any:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def load_schema_file(path: Path) -> Any:
    """
    Load a registry file (JSON or YAML), dispatching on the extension.

    Returns the parsed document: a mapping, or a bare list of models.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or has the wrong shape.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        data: Any = _load_yaml_file(path)
    elif suffix == ".json":
        data = _load_json_file(path)
    else:
        logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
        try:
            data = _load_json_file(path)
        except ValueError:
            data = _load_yaml_file(path)

    if not isinstance(data, (dict, list)):
        raise ValueError(
            f"Expected a mapping or a list of models at the top level of "
            f"{path}, got {type(data).__name__}."
        )
    return data


def parse_raw_schema(
    raw: Any,
    *,
    source_file: Optional[str] = None,
) -> Tuple[ModelRegistry, GenerationConfig]:
    """
    Parse raw data (from JSON/YAML) into validated Pydantic models.

    Accepted shapes:
        - a bare list of models;
        - a mapping with ``models`` (list), or ``registry`` (list, or a
          mapping holding ``models``), plus an optional ``config`` mapping.

    Raises:
        ValueError: If required keys are missing or validation fails.
    """
    config_data: Dict[str, Any] = {}

    if isinstance(raw, list):
        models_data: Any = raw
    elif isinstance(raw, dict):
        if "models" in raw:
            models_data = raw["models"]
        elif "registry" in raw:
            registry_val: Any = raw["registry"]
            models_data = (
                registry_val.get("models")
                if isinstance(registry_val, dict)
                else registry_val
            )
        else:
            raise ValueError(
                "Cannot find the model registry in input. "
                "Expected top-level key: 'models' or 'registry'."
            )
        config_data = raw.get("config") or {}
        if not isinstance(config_data, dict):
            raise ValueError(
                f"'config' must be a mapping, got {type(config_data).__name__}."
            )
    else:
        raise ValueError(
            f"Unsupported registry document type: {type(raw).__name__}."
        )

    if not isinstance(models_data, list):
        raise ValueError(
            f"'models' must be a list, got {type(models_data).__name__}."
        )

    try:
        registry: ModelRegistry = ModelRegistry.model_validate(
            {"models": models_data, "source_file": source_file}
        )
    except PydanticValidationError as exc:
        raise ValueError(f"Registry validation failed: {exc}") from exc

    try:
        config: GenerationConfig = GenerationConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return registry, config


def select_template_set(config: GenerationConfig) -> TemplateSet:
    """The template directory from *config*, or the built-in set."""
    if config.template_dir:
        return load_template_dir(config.template_dir)
    return default_template_set()


# ---------------------------------------------------------------------------
# RouteGenerator: master orchestrator
# ---------------------------------------------------------------------------


class RouteGenerator:
    """
    Pipeline orchestrator for route generation.

    Usage::

        generator = RouteGenerator()

        # From a file
        report = generator.generate_from_file(
            schema_path=Path("models.yaml"),
            output_dir=Path("./app"),
        )

        # From in-memory objects
        report = generator.generate(registry, config, output_dir=Path("./app"))

        print(report.summary())

    The generator is reusable — create once, call generate() many times.
    """

    def __init__(
        self,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
        clean_output: bool = False,
        dry_run: bool = False,
    ) -> None:
        """
        Args:
            strict_validation: If True, abort on any validation error.
            fail_on_warnings: If True, treat validation warnings as errors.
            clean_output: If True, wipe the output directory before writing.
            dry_run: If True, stop after materialization (nothing written).
        """
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings
        self._clean_output: bool = clean_output
        self._dry_run: bool = dry_run

        logger.debug(
            "RouteGenerator initialised: strict=%s, fail_on_warnings=%s, "
            "clean=%s, dry_run=%s.",
            strict_validation,
            fail_on_warnings,
            clean_output,
            dry_run,
        )

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Optional[Path] = None,
        *,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """
        Full pipeline: load file → validate → build → materialize → export.

        Args:
            schema_path: Path to the JSON/YAML registry file.
            output_dir: Output directory (defaults to ``config.output_dir``).
            config_overrides: Values replacing the file's ``config`` entries.
        """
        report: GenerationReport = GenerationReport(dry_run=self._dry_run)

        with Timer("load_schema") as t_load:
            try:
                raw_data: Any = load_schema_file(schema_path)
                registry, config = parse_raw_schema(
                    apply_config_overrides(raw_data, config_overrides),
                    source_file=str(schema_path),
                )
            except (FileNotFoundError, ValueError) as exc:
                report.generation_errors.append(str(exc))
                report.step_metrics.append(GenerationStepMetric(
                    step_name="Load Registry",
                    success=False,
                    elapsed_seconds=t_load.elapsed,
                    detail=str(exc),
                ))
                return self._finalise_report(report, t_load.elapsed)

        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Registry",
            success=True,
            elapsed_seconds=t_load.elapsed,
            detail=f"{registry.model_count} models from {schema_path.name}",
        ))
        logger.info(
            "Loaded %r from %s.", registry, schema_path
        )

        return self.generate(registry, config, output_dir, report=report)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(
        self,
        registry: ModelRegistry,
        config: GenerationConfig,
        output_dir: Optional[Path] = None,
        *,
        report: Optional[GenerationReport] = None,
    ) -> GenerationReport:
        """Full pipeline from a parsed registry and config."""
        report = report or GenerationReport(dry_run=self._dry_run)
        target: Path = Path(output_dir or config.output_dir)
        report.project_name = config.project_name
        report.output_directory = str(target.resolve())
        report.group = config.group

        return self._run_pipeline(registry, config, target, report)

    def build_routes(
        self,
        registry: ModelRegistry,
        config: GenerationConfig,
    ) -> RouteNode:
        """Build (only) the route tree for *config*'s roots and group."""
        return RouteGraphBuilder(registry).build_group(
            config.roots or None,
            group=config.group,
            max_depth=config.max_depth,
        )

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        registry: ModelRegistry,
        config: GenerationConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()

        def _done() -> GenerationReport:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        validation_ok: bool = self._step_validate(registry, config, report)
        if not validation_ok and self._strict_validation:
            return _done()

        tree: Optional[RouteNode] = self._step_build(registry, config, report)
        if tree is None:
            return _done()

        files: Optional[Dict[str, str]] = self._step_materialize(tree, config, report)
        if files is None:
            return _done()

        if not files:
            report.generation_errors.append(
                "No files were generated — aborting export."
            )
            return _done()

        if self._dry_run:
            logger.info("Dry run: %d file(s) not written.", len(files))
            return _done()

        self._step_export(files, config, output_dir, report)
        return _done()

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        registry: ModelRegistry,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> bool:
        """Returns True if validation passed (warnings allowed unless configured)."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(registry, config)

        report.validation_errors.extend(result.errors)
        report.validation_warnings.extend(result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        passed: bool = result.is_valid and not (
            self._fail_on_warnings and result.has_warnings
        )
        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Registry",
            success=passed,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False

        if result.has_warnings:
            for warn in result.warnings:
                logger.warning("  ⚠ %s", warn)
            if self._fail_on_warnings:
                report.generation_errors.append(
                    f"{result.warning_count} validation warning(s) treated as errors."
                )
                return False

        return True

    # -----------------------------------------------------------------
    # Pipeline step: Route building
    # -----------------------------------------------------------------

    def _step_build(
        self,
        registry: ModelRegistry,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> Optional[RouteNode]:
        with Timer("route_building") as t:
            try:
                tree: RouteNode = self.build_routes(registry, config)
            except RouteGenError as exc:
                report.generation_errors.append(str(exc))
                report.step_metrics.append(GenerationStepMetric(
                    step_name="Build Routes",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=type(exc).__name__,
                ))
                logger.error("Route building failed: %s", exc)
                return None

        report.tree = tree
        report.total_routes = len(tree.operations())
        report.total_nodes = tree.node_count
        report.step_metrics.append(GenerationStepMetric(
            step_name="Build Routes",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_routes} routes, {report.total_nodes} nodes",
        ))
        return tree

    # -----------------------------------------------------------------
    # Pipeline step: Materialization
    # -----------------------------------------------------------------

    def _step_materialize(
        self,
        tree: RouteNode,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> Optional[Dict[str, str]]:
        with Timer("materialization") as t:
            try:
                template_set: TemplateSet = select_template_set(config)
                files: Dict[str, str] = materialize(tree, template_set, config)
            except RouteGenError as exc:
                report.generation_errors.append(str(exc))
                report.step_metrics.append(GenerationStepMetric(
                    step_name="Materialize Templates",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=type(exc).__name__,
                ))
                logger.error("Materialization failed: %s", exc)
                return None

        report.files = files
        report.total_files = len(files)
        report.total_lines = sum(count_lines(c) for c in files.values())
        report.total_bytes = sum(len(c.encode("utf-8")) for c in files.values())
        report.step_metrics.append(GenerationStepMetric(
            step_name="Materialize Templates",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(files)} files with '{template_set.name}'",
        ))
        return files

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        files: Dict[str, str],
        config: GenerationConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        with Timer("export") as t:
            exporter: RouteExporter = RouteExporter(
                config=config,
                output_dir=output_dir,
                clean_before_export=self._clean_output or config.overwrite_existing,
                atomic_writes=True,
                generate_manifest=config.generate_manifest,
            )
            export_result: ExportResult = exporter.export(
                files, route_count=report.total_routes
            )

        report.total_files = export_result.manifest.total_files
        report.total_bytes = export_result.manifest.total_bytes
        report.total_lines = export_result.manifest.total_lines
        report.export_errors.extend(export_result.errors)
        report.manifest = export_result.manifest

        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=export_result.success,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{export_result.manifest.total_files} files, "
                f"{export_result.manifest.total_bytes:,} bytes"
            ),
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self,
        report: GenerationReport,
        total_elapsed: float,
    ) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors
            or report.generation_errors
            or report.export_errors
        )
        logger.info(
            "Generation %s in %.3fs.",
            "succeeded" if report.success else "failed",
            total_elapsed,
        )
        return report


def apply_config_overrides(raw: Any, overrides: Optional[Dict[str, Any]]) -> Any:
    """Merge CLI overrides into the document's ``config`` mapping."""
    if not overrides:
        return raw
    if isinstance(raw, list):
        return {"models": raw, "config": dict(overrides)}
    merged: Dict[str, Any] = dict(raw)
    base: Any = raw.get("config")
    merged["config"] = {**(base if isinstance(base, dict) else {}), **overrides}
    return merged


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RouteGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_schema_file",
    "parse_raw_schema",
    "select_template_set",
    "apply_config_overrides",
]

logger.debug("routegen.generator loaded.")
