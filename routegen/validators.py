# File: routegen/validators.py
"""
RouteGen - Registry & Configuration Validators
================================================
A **pure-function validation pipeline** over the Pydantic V2 models defined
in ``routegen.models``.

Pydantic's built-in validators handle per-field and per-model structural
correctness (relation kinds carry a target, model names are unique, ...).
This module adds **cross-entity semantic validation**: relation target
resolution, relation cycles, naming conventions, predictable segment
collisions and configuration sanity checks.

The route builder raises on the problems that make a tree impossible; the
validators report those same problems up front, all at once, together
with the softer warnings the builder does not care about.

Usage by downstream modules:
    from routegen.validators import validate_full
    result = validate_full(registry, config)
    if result.has_errors:
        raise SystemExit(...)
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from routegen.identifiers import resolve_identifiers
from routegen.models import (
    FieldKind,
    GenerationConfig,
    ModelRegistry,
    Operation,
)
from routegen.utils import lower_first

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("routegen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the pipeline."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_SEMANTIC_VERSION_RE: re.Pattern[str] = re.compile(
    r"^\d+\.\d+\.\d+([a-zA-Z0-9\.\-]+)?$"
)
_GROUP_SEGMENT_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z0-9_\-\.()]+$")

# Path components emitted next to nested model segments.
_RESERVED_SEGMENTS: FrozenSet[str] = frozenset(
    {op.value for op in Operation}
    | {op.url_suffix for op in Operation if op.url_suffix}
)

_LARGE_REGISTRY_MODELS: int = 500
_LARGE_REGISTRY_FIELDS: int = 10_000


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_model_names(registry: ModelRegistry) -> ValidationResult:
    """
    Validate all model names for:
    - Valid identifier format
    - PascalCase convention
    - No clash with operation segments (``create``, ``edit``, ...)
    - No two models sharing a route segment (``User`` vs ``user``)

    Complexity: O(M) where M = number of models.
    """
    result: ValidationResult = ValidationResult()
    segments: Dict[str, str] = {}

    for model in registry.models:
        name: str = model.name
        ctx: Dict[str, Any] = {"model": name}

        if not _IDENTIFIER_RE.match(name):
            result.add_error(
                "INVALID_MODEL_NAME",
                f"Model name '{name}' is not a valid identifier.",
                ctx,
            )
            continue

        if not _PASCAL_CASE_RE.match(name):
            result.add_warning(
                "MODEL_NAME_NOT_PASCAL_CASE",
                f"Model name '{name}' is not PascalCase. Route segments "
                f"are derived from it verbatim.",
                ctx,
            )

        segment: str = lower_first(name)
        if segment in _RESERVED_SEGMENTS:
            result.add_warning(
                "MODEL_NAME_RESERVED_SEGMENT",
                f"Model '{name}' maps to segment '{segment}', which is also "
                f"used by an operation route. Nesting it under a record "
                f"detail will collide.",
                ctx,
            )

        other: Optional[str] = segments.get(segment)
        if other is not None:
            result.add_warning(
                "MODEL_SEGMENT_COLLISION",
                f"Models '{other}' and '{name}' both map to route segment "
                f"'{segment}'; they cannot be nested under the same parent.",
                {"models": [other, name], "segment": segment},
            )
        segments.setdefault(segment, name)

    return result


def validate_field_names(registry: ModelRegistry) -> ValidationResult:
    """
    Validate field names for:
    - Valid identifier format
    - No duplicates within a model

    Complexity: O(F) where F = total fields.
    """
    result: ValidationResult = ValidationResult()

    for model in registry.models:
        seen: Set[str] = set()
        for field in model.fields:
            ctx: Dict[str, Any] = {"model": model.name, "field": field.name}
            if field.name in seen:
                result.add_error(
                    "DUPLICATE_FIELD_NAME",
                    f"Field '{field.name}' is declared more than once on "
                    f"model '{model.name}'.",
                    ctx,
                )
            seen.add(field.name)

            if not _IDENTIFIER_RE.match(field.name):
                result.add_error(
                    "INVALID_FIELD_NAME",
                    f"Field name '{model.name}.{field.name}' is not a valid "
                    f"identifier.",
                    ctx,
                )

    return result


def validate_relations(registry: ModelRegistry) -> ValidationResult:
    """
    Cross-reference every relation field against the registry.

    Checks:
    - Target model exists (otherwise the build aborts)
    - Self relations (reported and skipped, never nested)
    - Two to-many fields of one model targeting the same model (both
      subtrees would claim the same segment)

    Complexity: O(F) where F = total fields.
    """
    result: ValidationResult = ValidationResult()

    for model in registry.models:
        to_many_targets: Dict[str, str] = {}

        for field in model.relation_fields:
            target: str = field.related_model or ""
            ctx: Dict[str, Any] = {
                "model": model.name,
                "field": field.name,
                "target": target,
            }

            if target not in registry:
                result.add_error(
                    "RELATION_UNKNOWN_MODEL",
                    f"Relation '{model.name}.{field.name}' references unknown "
                    f"model '{target}'.",
                    ctx,
                )
                continue

            if target == model.name:
                result.add_info(
                    "SELF_RELATION",
                    f"Relation '{model.name}.{field.name}' points at its own "
                    f"model; it is not nested.",
                    ctx,
                )
                continue

            if field.kind is not FieldKind.RELATION_TO_MANY:
                continue

            previous: Optional[str] = to_many_targets.get(target)
            if previous is not None:
                result.add_error(
                    "DUPLICATE_RELATION_TARGET",
                    f"Model '{model.name}' has two to-many relations to "
                    f"'{target}' ('{previous}' and '{field.name}'); both "
                    f"would nest under segment '{lower_first(target)}'.",
                    {**ctx, "fields": [previous, field.name]},
                )
            to_many_targets.setdefault(target, field.name)

    return result


def validate_identifiers(registry: ModelRegistry) -> ValidationResult:
    """
    Warn about models that cannot be addressed per record.

    Such models only get ``list``/``create`` routes, and their to-many
    relations are never nested.

    Complexity: O(F).
    """
    result: ValidationResult = ValidationResult()

    for model in registry.models:
        if resolve_identifiers(model):
            continue
        ctx: Dict[str, Any] = {"model": model.name}
        message: str = (
            f"Model '{model.name}' has no identifier or unique field; only "
            f"list/create routes are generated."
        )
        if model.to_many_fields:
            ctx["unreachable_relations"] = [f.name for f in model.to_many_fields]
            message += " Its to-many relations get no nested routes."
        result.add_warning("MODEL_WITHOUT_IDENTIFIER", message, ctx)

    return result


def validate_relation_cycles(registry: ModelRegistry) -> ValidationResult:
    """
    Detect to-many relation cycles using iterative DFS.

    Cycles are legal (the builder stops at the first repeated model on a
    path); they are reported so the truncated nesting is no surprise.

    Complexity: O(M + R).
    """
    result: ValidationResult = ValidationResult()

    # Adjacency list: model → models it nests (registry order kept)
    adjacency: Dict[str, List[str]] = defaultdict(list)
    for model in registry.models:
        for rel in model.to_many_fields:
            target: str = rel.related_model or ""
            if target != model.name and target in registry:
                adjacency[model.name].append(target)

    visited: Set[str] = set()
    in_stack: Set[str] = set()
    cycles_found: List[List[str]] = []

    for start in registry.model_names:
        if start in visited:
            continue

        # Iterative DFS using an explicit stack
        stack: List[Tuple[str, bool]] = [(start, False)]
        path: List[str] = []

        while stack:
            node, is_returning = stack.pop()

            if is_returning:
                in_stack.discard(node)
                if path and path[-1] == node:
                    path.pop()
                continue

            if node in in_stack:
                cycle_start_idx: int = path.index(node) if node in path else len(path)
                cycles_found.append(path[cycle_start_idx:] + [node])
                continue

            if node in visited:
                continue

            visited.add(node)
            in_stack.add(node)
            path.append(node)

            stack.append((node, True))
            for neighbour in reversed(adjacency.get(node, [])):
                stack.append((neighbour, False))

    for cycle in cycles_found:
        result.add_info(
            "RELATION_CYCLE",
            f"To-many relation cycle: {' → '.join(cycle)}. Nesting stops at "
            f"the first repeated model.",
            {"cycle": cycle},
        )

    if not cycles_found:
        logger.debug("No to-many relation cycles detected.")

    return result


def validate_registry_size(registry: ModelRegistry) -> ValidationResult:
    """
    Emit informational messages about registry size.

    Complexity: O(1) (the counters are O(F) properties).
    """
    result: ValidationResult = ValidationResult()

    if registry.model_count > _LARGE_REGISTRY_MODELS:
        result.add_warning(
            "LARGE_REGISTRY",
            f"Registry contains {registry.model_count} models. Consider "
            f"building selected roots or setting max_depth.",
            {"model_count": registry.model_count},
        )

    if registry.total_fields > _LARGE_REGISTRY_FIELDS:
        result.add_warning(
            "VERY_MANY_FIELDS",
            f"Registry has {registry.total_fields} fields across all models.",
            {"total_fields": registry.total_fields},
        )

    result.add_info(
        "REGISTRY_STATS",
        f"Registry: {registry.model_count} models, "
        f"{registry.total_fields} fields, "
        f"{registry.total_relations} relations.",
        {
            "models": registry.model_count,
            "fields": registry.total_fields,
            "relations": registry.total_relations,
        },
    )

    return result


def validate_generation_config(config: GenerationConfig) -> ValidationResult:
    """
    Semantic checks on ``GenerationConfig`` beyond Pydantic's own.

    Complexity: O(1).
    """
    result: ValidationResult = ValidationResult()

    if not _SEMANTIC_VERSION_RE.match(config.project_version):
        result.add_warning(
            "INVALID_SEMVER",
            f"project_version '{config.project_version}' is not a valid "
            f"semantic version.",
            {"version": config.project_version},
        )

    if config.group is not None:
        for part in config.group.split("/"):
            if not _GROUP_SEGMENT_RE.match(part):
                result.add_error(
                    "INVALID_GROUP",
                    f"Group '{config.group}' contains an invalid path "
                    f"segment '{part}'.",
                    {"group": config.group},
                )
                break

    if "{name}" not in config.runtime_accessor:
        result.add_error(
            "ACCESSOR_WITHOUT_NAME",
            f"runtime_accessor {config.runtime_accessor!r} has no '{{name}}' "
            f"placeholder.",
            {"accessor": config.runtime_accessor},
        )

    if len(config.roots) != len(set(config.roots)):
        result.add_warning(
            "DUPLICATE_ROOTS",
            f"Root list {config.roots} names a model more than once.",
            {"roots": config.roots},
        )

    return result


# ---------------------------------------------------------------------------
# Composite validation orchestrators
# ---------------------------------------------------------------------------

def validate_registry(registry: ModelRegistry) -> ValidationResult:
    """Run all registry-level validators and merge their results."""
    result: ValidationResult = ValidationResult()

    validators: List[Callable[[ModelRegistry], ValidationResult]] = [
        validate_model_names,
        validate_field_names,
        validate_relations,
        validate_identifiers,
        validate_relation_cycles,
        validate_registry_size,
    ]

    for validator_fn in validators:
        logger.debug("Running validator: %s", validator_fn.__name__)
        result.merge(validator_fn(registry))

    logger.info("Registry validation complete: %s", result.summary())
    return result


def validate_config(config: GenerationConfig) -> ValidationResult:
    result: ValidationResult = validate_generation_config(config)
    logger.info("Config validation complete: %s", result.summary())
    return result


def validate_full(
    registry: ModelRegistry,
    config: GenerationConfig,
) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs the registry validators, the config validators, and the
    cross-cutting checks (configured roots exist in the registry).
    ``generator.py`` and ``cli.py`` call this before building routes.
    """
    logger.info(
        "Starting full validation — %d models, roots=%s",
        registry.model_count,
        config.roots or "default",
    )

    result: ValidationResult = ValidationResult()
    result.merge(validate_registry(registry))
    result.merge(validate_config(config))

    for root in config.roots:
        if root not in registry:
            result.add_error(
                "UNKNOWN_ROOT_MODEL",
                f"Root model '{root}' does not exist in the registry.",
                {"root": root},
            )

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_model_names",
    "validate_field_names",
    "validate_relations",
    "validate_identifiers",
    "validate_relation_cycles",
    "validate_registry_size",
    "validate_generation_config",
    "validate_registry",
    "validate_config",
    "validate_full",
]

logger.debug("routegen.validators loaded — %d public symbols.", len(__all__))
