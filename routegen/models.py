# File: routegen/models.py
"""
RouteGen - Core Data Models
=============================
Pydantic V2 models for the normalized model registry and the generation
configuration. These models are the single source of truth for the whole
pipeline: Registry Loading → Validation → Route Building → Materialization
→ Export.

The registry arrives already normalized (schema introspection happens
upstream), as an ordered batch of models. Registry models are frozen: a
single registry instance is shared, read-only, by every route build.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("routegen.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    """How a field participates in addressing and navigation."""

    SCALAR = "scalar"
    IDENTIFIER = "identifier"
    RELATION_TO_ONE = "relation_to_one"
    RELATION_TO_MANY = "relation_to_many"

    @property
    def is_relation(self) -> bool:
        return self in (FieldKind.RELATION_TO_ONE, FieldKind.RELATION_TO_MANY)


class Operation(str, Enum):
    """CRUD action a route represents."""

    LIST = "list"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def url_suffix(self) -> str:
        """Path component appended to the owning node's path ('' = none)."""
        return _OPERATION_URL_SUFFIX[self]

    @property
    def is_collection(self) -> bool:
        """True for operations addressed without a record identifier."""
        return self in COLLECTION_OPERATIONS


_OPERATION_URL_SUFFIX: Dict[Operation, str] = {
    Operation.LIST: "",
    Operation.CREATE: "create",
    Operation.READ: "",
    Operation.UPDATE: "edit",
    Operation.DELETE: "delete",
}

# Emission order is load-bearing: collection operations precede record ones.
COLLECTION_OPERATIONS: Tuple[Operation, ...] = (Operation.LIST, Operation.CREATE)
RECORD_OPERATIONS: Tuple[Operation, ...] = (
    Operation.READ,
    Operation.UPDATE,
    Operation.DELETE,
)


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

# Registry entries keep enum members (not raw values) and are immutable.
_REGISTRY_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=False,
    frozen=True,
    extra="forbid",
)

_KIND_KEY_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z]")
_KIND_ALIASES: Dict[str, FieldKind] = {
    "scalar": FieldKind.SCALAR,
    "identifier": FieldKind.IDENTIFIER,
    "relationtoone": FieldKind.RELATION_TO_ONE,
    "relationtomany": FieldKind.RELATION_TO_MANY,
}


# ---------------------------------------------------------------------------
# Registry primitives
# ---------------------------------------------------------------------------


class FieldInfo(BaseModel):
    """
    A single field of a model.

    ``related_model`` is a name, not a reference: it is resolved lazily
    against the registry while routes are built, so forward references
    (and references to models declared later) are fine here.
    """

    model_config = _REGISTRY_CONFIG

    name: str = Field(..., min_length=1, description="Field name.")
    kind: FieldKind = Field(default=FieldKind.SCALAR, description="Field kind.")
    related_model: Optional[str] = Field(
        default=None,
        alias="relatedModel",
        description="Target model name (relation kinds only).",
    )
    is_unique: bool = Field(
        default=False, alias="isUnique", description="Has a unique constraint?"
    )
    is_required: bool = Field(
        default=False, alias="isRequired", description="Value required?"
    )
    type: Optional[str] = Field(
        default=None, description="Scalar type label (e.g. 'String', 'Int')."
    )
    documentation: Optional[str] = Field(
        default=None, description="Free-form field documentation."
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, v: Any) -> Any:
        # Accept 'RelationToMany', 'relation-to-many', 'relation_to_many'.
        if isinstance(v, str) and not isinstance(v, FieldKind):
            key: str = _KIND_KEY_RE.sub("", v).lower()
            return _KIND_ALIASES.get(key, v)
        return v

    @model_validator(mode="after")
    def _related_model_matches_kind(self) -> "FieldInfo":
        if self.kind.is_relation and not self.related_model:
            raise ValueError(
                f"Field '{self.name}' is a relation ({self.kind.value}) "
                f"but 'related_model' is missing."
            )
        if not self.kind.is_relation and self.related_model:
            raise ValueError(
                f"Field '{self.name}' of kind '{self.kind.value}' must not "
                f"set 'related_model' ('{self.related_model}')."
            )
        return self

    @property
    def is_relation(self) -> bool:
        return self.kind.is_relation

    def __repr__(self) -> str:
        target: str = f" → {self.related_model}" if self.related_model else ""
        return f"<Field {self.name} {self.kind.value}{target}>"


class ModelInfo(BaseModel):
    """
    A named entity of the registry.

    Field order is declaration order and is significant: it decides the
    default identifier and the order of nested relation routes.
    """

    model_config = _REGISTRY_CONFIG

    name: str = Field(..., min_length=1, description="Model name (unique).")
    fields: List[FieldInfo] = Field(
        default_factory=list, description="Fields in declaration order."
    )
    is_group_root: bool = Field(
        default=False,
        alias="isGroupRoot",
        description="Entry point for a named route group?",
    )
    documentation: Optional[str] = Field(
        default=None, description="Free-form model documentation."
    )

    _field_map: Dict[str, FieldInfo] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._field_map = {f.name: f for f in self.fields}

    def get_field(self, name: str) -> Optional[FieldInfo]:
        """O(1) field lookup by name."""
        return self._field_map.get(name)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def relation_fields(self) -> List[FieldInfo]:
        return [f for f in self.fields if f.is_relation]

    @property
    def to_many_fields(self) -> List[FieldInfo]:
        return [f for f in self.fields if f.kind is FieldKind.RELATION_TO_MANY]

    @property
    def data_fields(self) -> List[FieldInfo]:
        """Scalar and identifier fields (everything that is not a relation)."""
        return [f for f in self.fields if not f.is_relation]

    def __repr__(self) -> str:
        return (
            f"<Model {self.name} ({len(self.fields)} fields, "
            f"{len(self.relation_fields)} relations)>"
        )


class ModelRegistry(BaseModel):
    """
    The normalized view of every model, delivered as one ordered batch.

    Invariant: model names are unique; ``get_model`` is an O(1) lookup
    built once upon construction.
    """

    model_config = _REGISTRY_CONFIG

    models: List[ModelInfo] = Field(
        ..., min_length=1, description="All models, in declaration order."
    )
    source_file: Optional[str] = Field(
        default=None, description="File the registry was loaded from."
    )

    _model_map: Dict[str, ModelInfo] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_model_names(self) -> "ModelRegistry":
        names: List[str] = [m.name for m in self.models]
        if len(names) != len(set(names)):
            dupes: List[str] = [n for n in names if names.count(n) > 1]
            raise ValueError(f"Duplicate model names: {sorted(set(dupes))}")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._model_map = {m.name: m for m in self.models}

    def get_model(self, name: str) -> Optional[ModelInfo]:
        """O(1) model lookup."""
        return self._model_map.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._model_map

    @property
    def model_names(self) -> List[str]:
        return [m.name for m in self.models]

    @property
    def group_roots(self) -> List[ModelInfo]:
        return [m for m in self.models if m.is_group_root]

    @property
    def model_count(self) -> int:
        return len(self.models)

    @property
    def total_fields(self) -> int:
        return sum(len(m.fields) for m in self.models)

    @property
    def total_relations(self) -> int:
        return sum(len(m.relation_fields) for m in self.models)

    def default_roots(self) -> List[str]:
        """
        Pick the models that start their own route tree.

        Models flagged ``is_group_root`` win. Otherwise every model that is
        not the target of another model's to-many relation (it would only
        be reachable nested under a parent record). A fully cyclic registry
        leaves nothing, in which case every model is a root.
        """
        flagged: List[str] = [m.name for m in self.group_roots]
        if flagged:
            return flagged

        nested: Set[str] = set()
        for model in self.models:
            for rel in model.to_many_fields:
                if rel.related_model != model.name:
                    nested.add(rel.related_model or "")

        free: List[str] = [m.name for m in self.models if m.name not in nested]
        return free or self.model_names

    def __repr__(self) -> str:
        return (
            f"<ModelRegistry {self.model_count} models, "
            f"{self.total_fields} fields, "
            f"{self.total_relations} relations>"
        )


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Master configuration for a generation run.

    A single instance (combined with a ``ModelRegistry``) is all the
    generator needs to produce the full output.
    """

    model_config = _SHARED_CONFIG

    # -- Project metadata ---------------------------------------------------
    project_name: str = Field(
        default="routes",
        min_length=1,
        max_length=128,
        description="Name recorded in the export manifest.",
    )
    project_version: str = Field(
        default="0.1.0", description="Semantic version string."
    )

    # -- Route building -----------------------------------------------------
    group: Optional[str] = Field(
        default=None,
        description="Group name; becomes the path prefix of every route.",
    )
    roots: List[str] = Field(
        default_factory=list,
        description="Root models (empty = registry default roots).",
    )
    max_depth: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum number of models on one route path.",
    )

    # -- Materialization ----------------------------------------------------
    template_dir: Optional[str] = Field(
        default=None,
        description="Template directory (None = built-in template set).",
    )
    runtime_accessor: str = Field(
        default="${{params.{name}}}",
        description="Format string turning a dynamic segment into an expression.",
    )
    generate_route_index: bool = Field(
        default=True, description="Render the route index template."
    )

    # -- Output -------------------------------------------------------------
    output_dir: str = Field(
        default="./generated", description="Root directory for generated files."
    )
    generate_manifest: bool = Field(
        default=True, description="Write manifest.json next to the output."
    )
    overwrite_existing: bool = Field(
        default=False,
        description="Clean output_dir before writing.",
    )

    @field_validator("runtime_accessor")
    @classmethod
    def _accessor_has_name(cls, v: str) -> str:
        if "{name}" not in v:
            raise ValueError(
                f"runtime_accessor must contain the '{{name}}' placeholder, got {v!r}."
            )
        try:
            v.format(name="x")
        except (ValueError, IndexError, KeyError, AttributeError) as exc:
            raise ValueError(
                f"runtime_accessor {v!r} is not a valid format string: {exc}. "
                f"Write literal braces as '{{{{' and '}}}}'."
            ) from exc
        return v

    @field_validator("group")
    @classmethod
    def _normalise_group(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped: str = v.strip().strip("/")
        return stripped or None


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldKind",
    "Operation",
    "COLLECTION_OPERATIONS",
    "RECORD_OPERATIONS",
    "FieldInfo",
    "ModelInfo",
    "ModelRegistry",
    "GenerationConfig",
]

logger.debug("routegen.models loaded — %d public symbols.", len(__all__))
