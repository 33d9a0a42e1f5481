# File: routegen/__init__.py
"""
RouteGen — CRUD Route Tree Generator
======================================

Turns a normalized data-model registry (models, fields, relations) into a
tree of List/Create/Read/Update/Delete routes. To-many relations nest under
the owning record's detail path, relation cycles and an optional depth
limit bound the nesting, and sibling segments never collide. The tree is
then stamped into files through a template set.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌────────────────────┐
    │  CLI / Entry │────▶│ RouteGenerator │────▶│ RouteGraphBuilder  │
    │   (cli.py)   │     │ (generator.py) │     │    (builder.py)    │
    └──────────────┘     └───────┬────────┘     └─────────┬──────────┘
                                 │                        │
              ┌──────────────┬───┴──────────┐      ┌──────┴───────┐
              ▼              ▼              ▼      ▼              ▼
        ┌──────────┐  ┌─────────────┐ ┌─────────┐ ┌───────────┐ ┌──────────┐
        │validators│  │materializer │ │exporters│ │identifiers│ │ segments │
        └──────────┘  └─────────────┘ └─────────┘ └───────────┘ └──────────┘

Usage::

    # As a library
    from routegen import ModelRegistry, build
    registry = ModelRegistry.model_validate({"models": [...]})
    tree = build("User", registry, group="admin")

    # From the command line
    python -m routegen --schema models.yaml --output ./app --verbose
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from routegen.models import (
    COLLECTION_OPERATIONS,
    RECORD_OPERATIONS,
    FieldInfo,
    FieldKind,
    GenerationConfig,
    ModelInfo,
    ModelRegistry,
    Operation,
)
from routegen.errors import (
    ConfigurationError,
    RouteGenError,
    UnresolvedRelationError,
)
from routegen.identifiers import resolve_identifiers
from routegen.segments import join_path, slug_for, to_runtime_expression
from routegen.routes import NodeKind, RouteNode, format_route_table
from routegen.builder import RouteGraphBuilder, build
from routegen.validators import ValidationResult, validate_full
from routegen.templates import TemplateSet, default_template_set, load_template_dir
from routegen.materializer import materialize
from routegen.exporters import ExportManifest, ExportResult, RouteExporter
from routegen.generator import GenerationReport, RouteGenerator

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator
    "RouteGenerator",
    "GenerationReport",
    # Registry & config
    "FieldKind",
    "FieldInfo",
    "ModelInfo",
    "ModelRegistry",
    "GenerationConfig",
    "Operation",
    "COLLECTION_OPERATIONS",
    "RECORD_OPERATIONS",
    # Errors
    "RouteGenError",
    "ConfigurationError",
    "UnresolvedRelationError",
    # Routes
    "resolve_identifiers",
    "slug_for",
    "join_path",
    "to_runtime_expression",
    "NodeKind",
    "RouteNode",
    "format_route_table",
    "RouteGraphBuilder",
    "build",
    # Validation
    "validate_full",
    "ValidationResult",
    # Templates
    "TemplateSet",
    "default_template_set",
    "load_template_dir",
    "materialize",
    # Export
    "RouteExporter",
    "ExportManifest",
    "ExportResult",
]
