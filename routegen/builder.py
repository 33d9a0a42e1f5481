# File: routegen/builder.py
"""
RouteGen - Route Graph Builder
================================
Walks the model registry from a root model and produces the route tree.

For every visited model ``M`` the builder emits, in this order:

    1. ``list`` and ``create`` at M's own level (no identifier needed);
    2. when M has identifiers, a detail branch with one dynamic segment per
       identifier field (``[slug_for(M, field)]``, nested in identifier
       order). The innermost dynamic segment carries ``read``, ``update``
       and ``delete``, followed by
    3. one nested subtree per ``relation_to_many`` field, in field
       declaration order. Nested collections belong to a concrete parent
       record, so they live under the detail branch.

``relation_to_one`` fields are context only and never spawn routes.

Termination is structural: the chain of model names from the root is
carried down each branch as a tuple (every branch has its own copy), and
a relation whose target is already in the chain is not followed. An
optional ``max_depth`` caps the number of models on any path; it is a hard
cutoff applied independently of the cycle check.

Sibling segments (and sibling paths) are checked while each node's
children are assembled, so a collision is reported with the exact path
where it happened. The build is all-or-nothing: any error aborts it and no
partial tree escapes.

Complexity: O(N) in the size of the produced tree; the builder keeps no
state between calls and only reads the registry, so one builder (or one
registry) can serve concurrent builds for different roots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from routegen.errors import ConfigurationError, UnresolvedRelationError
from routegen.identifiers import resolve_identifiers
from routegen.models import (
    COLLECTION_OPERATIONS,
    RECORD_OPERATIONS,
    FieldInfo,
    FieldKind,
    ModelInfo,
    ModelRegistry,
    Operation,
)
from routegen.routes import NodeKind, RouteNode
from routegen.segments import dynamic_segment, join_path, slug_for
from routegen.utils import lower_first

logger: logging.Logger = logging.getLogger("routegen.builder")


# ---------------------------------------------------------------------------
# Per-build parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _BuildContext:
    """Invocation parameters shared (read-only) by every recursive call."""

    group: Optional[str]
    max_depth: Optional[int]


# ---------------------------------------------------------------------------
# RouteGraphBuilder
# ---------------------------------------------------------------------------


class RouteGraphBuilder:
    """
    Builds route trees from a read-only ``ModelRegistry``.

    Usage::

        builder = RouteGraphBuilder(registry)
        tree = builder.build("User", group="admin", max_depth=3)
        for node in tree.operations():
            print(node.path, node.operation)

    The builder is reusable and holds no per-build state.
    """

    def __init__(self, registry: ModelRegistry) -> None:
        self._registry: ModelRegistry = registry

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def build(
        self,
        root_model: str,
        *,
        group: Optional[str] = None,
        max_depth: Optional[int] = None,
    ) -> RouteNode:
        """
        Build the route tree for a single root model.

        Returns a group root node (path = group prefix, or ``/``) with the
        root model's subtree as its only child.

        Raises:
            ConfigurationError: unknown root, invalid ``max_depth``, or a
                sibling segment collision.
            UnresolvedRelationError: a visited model has a relation to a
                model missing from the registry.
        """
        return self.build_group([root_model], group=group, max_depth=max_depth)

    def build_group(
        self,
        roots: Optional[Sequence[str]] = None,
        *,
        group: Optional[str] = None,
        max_depth: Optional[int] = None,
    ) -> RouteNode:
        """
        Build one subtree per root and concatenate them under a group root.

        Each root is walked independently (its own chain); only the
        top-level segments are checked against each other. ``roots``
        defaults to ``ModelRegistry.default_roots()``.
        """
        ctx: _BuildContext = _BuildContext(
            group=_normalise_group(group),
            max_depth=self._checked_max_depth(max_depth),
        )
        root_names: List[str] = list(roots) if roots else self._registry.default_roots()
        group_path: str = join_path(ctx.group or "")

        subtrees: List[RouteNode] = []
        for name in root_names:
            model: ModelInfo = self._require_root(name)
            logger.debug("Building route subtree for root '%s'.", name)
            subtrees.append(
                self._build_model(
                    model,
                    parent_path=group_path,
                    depth=1,
                    chain=(model.name,),
                    slugs=(),
                    relation=None,
                    ctx=ctx,
                )
            )

        tree: RouteNode = RouteNode(
            kind=NodeKind.GROUP,
            segment=ctx.group or "",
            path=group_path,
            depth=0,
            group=ctx.group,
            children=self._checked_siblings(subtrees, group_path, ()),
        )

        logger.info(
            "Built route tree for %s under '%s': %d nodes, %d routes.",
            ", ".join(root_names),
            group_path,
            tree.node_count,
            len(tree.operations()),
        )
        return tree

    # -----------------------------------------------------------------
    # Internal: argument checks
    # -----------------------------------------------------------------

    def _require_root(self, name: str) -> ModelInfo:
        model: Optional[ModelInfo] = self._registry.get_model(name)
        if model is None:
            raise ConfigurationError(
                f"Root model '{name}' does not exist in the registry. "
                f"Known models: {self._registry.model_names}"
            )
        return model

    @staticmethod
    def _checked_max_depth(max_depth: Optional[int]) -> Optional[int]:
        if max_depth is None:
            return None
        if max_depth < 1:
            raise ConfigurationError(
                f"max_depth must be a positive integer, got {max_depth}."
            )
        return max_depth

    # -----------------------------------------------------------------
    # Internal: traversal
    # -----------------------------------------------------------------

    def _build_model(
        self,
        model: ModelInfo,
        *,
        parent_path: str,
        depth: int,
        chain: Tuple[str, ...],
        slugs: Tuple[str, ...],
        relation: Optional[str],
        ctx: _BuildContext,
    ) -> RouteNode:
        """Model node: collection operations, then the detail branch."""
        segment: str = lower_first(model.name)
        path: str = join_path(parent_path, segment)
        identifiers: Tuple[str, ...] = resolve_identifiers(model)
        nested: List[Tuple[FieldInfo, ModelInfo]] = self._resolve_relations(
            model, chain, path
        )

        children: List[RouteNode] = [
            self._operation_node(op, model, path, depth + 1, chain, slugs, identifiers, ctx)
            for op in COLLECTION_OPERATIONS
        ]

        if identifiers:
            children.append(
                self._build_detail(
                    model,
                    identifiers,
                    0,
                    parent_path=path,
                    depth=depth + 1,
                    chain=chain,
                    slugs=slugs,
                    nested=nested,
                    ctx=ctx,
                )
            )
        elif nested:
            logger.warning(
                "Model '%s' has no identifier; its to-many relations (%s) "
                "get no nested routes.",
                model.name,
                ", ".join(f.name for f, _ in nested),
            )

        return RouteNode(
            kind=NodeKind.MODEL,
            segment=segment,
            path=path,
            depth=depth,
            parent_chain=chain,
            model=model,
            identifiers=identifiers,
            slugs=slugs,
            relation=relation,
            group=ctx.group,
            children=self._checked_siblings(children, path, chain),
        )

    def _build_detail(
        self,
        model: ModelInfo,
        identifiers: Tuple[str, ...],
        index: int,
        *,
        parent_path: str,
        depth: int,
        chain: Tuple[str, ...],
        slugs: Tuple[str, ...],
        nested: List[Tuple[FieldInfo, ModelInfo]],
        ctx: _BuildContext,
    ) -> RouteNode:
        """One dynamic segment per identifier field, innermost holds the record routes."""
        slug: str = slug_for(model.name, identifiers[index])
        segment: str = dynamic_segment(slug)
        path: str = join_path(parent_path, segment)
        own_slugs: Tuple[str, ...] = slugs + (slug,)

        children: List[RouteNode]
        if index + 1 < len(identifiers):
            children = [
                self._build_detail(
                    model,
                    identifiers,
                    index + 1,
                    parent_path=path,
                    depth=depth + 1,
                    chain=chain,
                    slugs=own_slugs,
                    nested=nested,
                    ctx=ctx,
                )
            ]
        else:
            children = [
                self._operation_node(
                    op, model, path, depth + 1, chain, own_slugs, identifiers, ctx
                )
                for op in RECORD_OPERATIONS
            ]
            children.extend(
                self._build_relations(
                    nested,
                    parent_path=path,
                    depth=depth + 1,
                    chain=chain,
                    slugs=own_slugs,
                    ctx=ctx,
                )
            )

        return RouteNode(
            kind=NodeKind.DETAIL,
            segment=segment,
            path=path,
            depth=depth,
            parent_chain=chain,
            model=model,
            identifiers=identifiers,
            slugs=own_slugs,
            group=ctx.group,
            children=self._checked_siblings(children, path, chain),
        )

    def _build_relations(
        self,
        nested: Iterable[Tuple[FieldInfo, ModelInfo]],
        *,
        parent_path: str,
        depth: int,
        chain: Tuple[str, ...],
        slugs: Tuple[str, ...],
        ctx: _BuildContext,
    ) -> List[RouteNode]:
        """Recurse into to-many targets, bounded by the chain and max_depth."""
        subtrees: List[RouteNode] = []
        for field, target in nested:
            if target.name in chain:
                logger.debug(
                    "Not following '%s.%s' → %s: already on path %s.",
                    chain[-1],
                    field.name,
                    target.name,
                    " → ".join(chain),
                )
                continue
            if ctx.max_depth is not None and len(chain) >= ctx.max_depth:
                logger.debug(
                    "Not following '%s.%s' → %s: max_depth %d reached.",
                    chain[-1],
                    field.name,
                    target.name,
                    ctx.max_depth,
                )
                continue
            subtrees.append(
                self._build_model(
                    target,
                    parent_path=parent_path,
                    depth=depth,
                    chain=chain + (target.name,),
                    slugs=slugs,
                    relation=field.name,
                    ctx=ctx,
                )
            )
        return subtrees

    @staticmethod
    def _operation_node(
        operation: Operation,
        model: ModelInfo,
        parent_path: str,
        depth: int,
        chain: Tuple[str, ...],
        slugs: Tuple[str, ...],
        identifiers: Tuple[str, ...],
        ctx: _BuildContext,
    ) -> RouteNode:
        return RouteNode(
            kind=NodeKind.OPERATION,
            segment=operation.value,
            path=join_path(parent_path, operation.url_suffix),
            depth=depth,
            parent_chain=chain,
            model=model,
            operation=operation,
            identifiers=identifiers,
            slugs=slugs,
            group=ctx.group,
        )

    # -----------------------------------------------------------------
    # Internal: relation resolution
    # -----------------------------------------------------------------

    def _resolve_relations(
        self,
        model: ModelInfo,
        chain: Tuple[str, ...],
        path: str,
    ) -> List[Tuple[FieldInfo, ModelInfo]]:
        """
        Resolve every relation field of *model* against the registry.

        Returns the ``(field, target)`` pairs that spawn nested routes, in
        declaration order. Any dangling relation aborts the build.
        """
        nested: List[Tuple[FieldInfo, ModelInfo]] = []
        for field in model.fields:
            kind: FieldKind = field.kind
            if kind is FieldKind.RELATION_TO_MANY:
                nested.append((field, self._resolve_target(model, field, chain, path)))
            elif kind is FieldKind.RELATION_TO_ONE:
                self._resolve_target(model, field, chain, path)
            elif kind is FieldKind.SCALAR or kind is FieldKind.IDENTIFIER:
                continue
            else:
                raise ConfigurationError(
                    f"Field '{model.name}.{field.name}' has unsupported kind {kind!r}.",
                    chain=chain,
                    path=path,
                )
        return nested

    def _resolve_target(
        self,
        model: ModelInfo,
        field: FieldInfo,
        chain: Tuple[str, ...],
        path: str,
    ) -> ModelInfo:
        target_name: str = field.related_model or ""
        target: Optional[ModelInfo] = self._registry.get_model(target_name)
        if target is None:
            raise UnresolvedRelationError(
                model.name,
                field.name,
                target_name,
                chain=chain,
                path=path,
            )
        return target

    # -----------------------------------------------------------------
    # Internal: sibling uniqueness
    # -----------------------------------------------------------------

    @staticmethod
    def _checked_siblings(
        children: Sequence[RouteNode],
        parent_path: str,
        chain: Tuple[str, ...],
    ) -> Tuple[RouteNode, ...]:
        """
        Reject two children sharing a segment or a full path.

        Shared paths catch e.g. a nested model named ``Edit`` landing on the
        same URL as the parent record's ``update`` route.
        """
        by_segment: Dict[str, RouteNode] = {}
        by_path: Dict[str, RouteNode] = {}
        for child in children:
            clash: Optional[RouteNode] = by_segment.get(child.segment) or by_path.get(
                child.path
            )
            if clash is not None:
                raise ConfigurationError(
                    f"Route collision under '{parent_path}': {_describe(clash)} "
                    f"and {_describe(child)} both map to '{child.path}' "
                    f"(segment '{child.segment}').",
                    chain=chain,
                    path=child.path,
                )
            by_segment[child.segment] = child
            by_path[child.path] = child
        return tuple(children)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalise_group(group: Optional[str]) -> Optional[str]:
    if group is None:
        return None
    stripped: str = group.strip().strip("/")
    return stripped or None


def _describe(node: RouteNode) -> str:
    if node.operation is not None:
        return f"{node.operation.value} of {node.model_name}"
    if node.relation is not None:
        return f"relation '{node.relation}' → {node.model_name}"
    return f"{node.kind.value} {node.model_name}"


def build(
    root_model: str,
    registry: ModelRegistry,
    max_depth: Optional[int] = None,
    group: Optional[str] = None,
) -> RouteNode:
    """Functional shortcut for ``RouteGraphBuilder(registry).build(...)``."""
    return RouteGraphBuilder(registry).build(
        root_model, group=group, max_depth=max_depth
    )


__all__: List[str] = [
    "RouteGraphBuilder",
    "build",
]

logger.debug("routegen.builder loaded.")
