# File: routegen/materializer.py
"""
RouteGen - Template Materializer
==================================
Turns a route tree plus a ``TemplateSet`` into an in-memory file map
(relative path → content). Nothing touches the filesystem here; writing
is ``routegen.exporters``' job.

Layout:
    Every route path is a directory (``/user/[userId]/edit`` →
    ``user/[userId]/edit/``). An operation route renders its template into
    its own directory under the template's fixed file name, so with the
    default set ``list`` of ``User`` becomes ``user/page.tsx`` and
    ``update`` becomes ``user/[userId]/edit/page.tsx``.

Tokens are matched case-insensitively. Only the model name follows the
case of the matched token's first character (``TemplateModel`` →
``BlogPost``, ``templateModel`` → ``blogPost``); every other value is
inserted as-is:

    ==========================  ==============================================
    templateModel               model name
    templateOperation           operation value (list, create, ...)
    templateRoutePath           route path with bracketed segments
    templateRedirect            runtime expression of the route path
    templateParentPath          one navigation level up (see below)
    templateParentRedirect      runtime expression of templateParentPath
    templateCollectionPath      path of the model's list route
    templateCollectionRedirect  runtime expression of templateCollectionPath
    templateRecordPath          path of the record (record operations only)
    templateRecordRedirect      runtime expression of templateRecordPath
    templateIdentifiers         identifier field names, comma-separated
    templateSlugs               dynamic parameter names on the path
    templateRelation            to-many field that nested this model
    templateGroup               group name
    templateFields              scalar and identifier field names
    ==========================  ==============================================

"One level up" is the model's collection for ``read``/``update``/``delete``
and the enclosing parent record (or the group root) for ``list``/``create``.

The route index template is rendered once at the group root; the lines
between the ``@routegen routeList start`` / ``stop`` markers are repeated
once per operation route, in tree order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from routegen.errors import ConfigurationError
from routegen.models import GenerationConfig
from routegen.routes import NodeKind, RouteNode
from routegen.segments import DEFAULT_ACCESSOR, split_path, to_runtime_expression
from routegen.templates import (
    ROUTE_LIST_START,
    ROUTE_LIST_STOP,
    RouteTemplate,
    TemplateSet,
)

logger: logging.Logger = logging.getLogger("routegen.materializer")

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

TOKENS: Tuple[str, ...] = (
    "templateModel",
    "templateOperation",
    "templateRoutePath",
    "templateRedirect",
    "templateParentPath",
    "templateParentRedirect",
    "templateCollectionPath",
    "templateCollectionRedirect",
    "templateRecordPath",
    "templateRecordRedirect",
    "templateIdentifiers",
    "templateSlugs",
    "templateRelation",
    "templateGroup",
    "templateFields",
)

# Longest first, so no token is cut short by another one it starts with.
_TOKEN_RE: re.Pattern[str] = re.compile(
    "|".join(re.escape(t) for t in sorted(TOKENS, key=len, reverse=True)),
    re.IGNORECASE,
)
_TOKEN_KEYS: Dict[str, str] = {t.lower(): t for t in TOKENS}

_LIST_SEPARATOR: str = ", "

_CASE_MATCHED: FrozenSet[str] = frozenset({"templateModel"})


def _match_case(matched: str, replacement: str) -> str:
    if not replacement:
        return replacement
    first: str = matched[0]
    if first.islower():
        return replacement[0].lower() + replacement[1:]
    if first.isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


def substitute(content: str, values: Mapping[str, str]) -> str:
    """
    Replace every token in *content* with its value from *values*.

    Tokens absent from *values* become the empty string. Only
    ``templateModel`` is case-matched to the token.
    """

    def _replace(match: re.Match[str]) -> str:
        token: str = match.group(0)
        key: str = _TOKEN_KEYS[token.lower()]
        value: str = values.get(key, "")
        if key in _CASE_MATCHED:
            return _match_case(token, value)
        return value

    return _TOKEN_RE.sub(_replace, content)


# ---------------------------------------------------------------------------
# Per-route context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RouteContext:
    """An operation route plus the navigation targets around it."""

    node: RouteNode
    collection_path: str
    record_path: Optional[str]
    parent_path: str
    relation: Optional[str] = None

    def token_values(self, accessor: str = DEFAULT_ACCESSOR) -> Dict[str, str]:
        node: RouteNode = self.node
        model = node.model
        assert model is not None and node.operation is not None

        def expr(path: Optional[str]) -> str:
            return to_runtime_expression(path, accessor) if path else ""

        return {
            "templateModel": model.name,
            "templateOperation": node.operation.value,
            "templateRoutePath": node.path,
            "templateRedirect": expr(node.path),
            "templateParentPath": self.parent_path,
            "templateParentRedirect": expr(self.parent_path),
            "templateCollectionPath": self.collection_path,
            "templateCollectionRedirect": expr(self.collection_path),
            "templateRecordPath": self.record_path or "",
            "templateRecordRedirect": expr(self.record_path),
            "templateIdentifiers": _LIST_SEPARATOR.join(node.identifiers),
            "templateSlugs": _LIST_SEPARATOR.join(node.slugs),
            "templateRelation": self.relation or "",
            "templateGroup": node.group or "",
            "templateFields": _LIST_SEPARATOR.join(
                f.name for f in model.data_fields
            ),
        }


def iter_route_contexts(tree: RouteNode) -> Iterator[RouteContext]:
    """Yield a ``RouteContext`` per operation route, in tree order."""

    def _visit(
        node: RouteNode, ancestors: Tuple[RouteNode, ...]
    ) -> Iterator[RouteContext]:
        if node.kind is NodeKind.OPERATION:
            yield _context_for(node, ancestors)
            return
        for child in node.children:
            yield from _visit(child, ancestors + (node,))

    yield from _visit(tree, ())


def _context_for(node: RouteNode, ancestors: Tuple[RouteNode, ...]) -> RouteContext:
    model_index: int = max(
        i for i, a in enumerate(ancestors) if a.kind is NodeKind.MODEL
    )
    model_node: RouteNode = ancestors[model_index]
    enclosing: str = ancestors[model_index - 1].path if model_index > 0 else "/"

    record: Optional[str] = None
    if ancestors[-1].kind is NodeKind.DETAIL:
        record = ancestors[-1].path

    return RouteContext(
        node=node,
        collection_path=model_node.path,
        record_path=record,
        parent_path=model_node.path if record is not None else enclosing,
        # Operation nodes don't carry the relation; their model node does.
        relation=model_node.relation,
    )


# ---------------------------------------------------------------------------
# Route index
# ---------------------------------------------------------------------------


def render_route_index(
    template: RouteTemplate,
    tree: RouteNode,
    contexts: List[RouteContext],
    accessor: str = DEFAULT_ACCESSOR,
) -> str:
    """
    Render the route index template.

    The block between the route list markers (marker lines included) is
    kept once; its inner lines are stamped once per route.
    """
    lines: List[str] = template.content.splitlines(keepends=True)
    out: List[str] = []
    block: Optional[List[str]] = None

    index_values: Dict[str, str] = {
        "templateGroup": tree.group or "",
        "templateRoutePath": tree.path,
        "templateRedirect": tree.path,
    }

    for line in lines:
        if block is None and ROUTE_LIST_START in line:
            out.append(line)
            block = []
            continue
        if block is not None and ROUTE_LIST_STOP in line:
            body: str = "".join(block)
            for ctx in contexts:
                out.append(substitute(body, ctx.token_values(accessor)))
            out.append(line)
            block = None
            continue
        if block is not None:
            block.append(line)
        else:
            out.append(substitute(line, index_values))

    if block is not None:
        raise ConfigurationError(
            f"Route index template '{template.file_name}' has "
            f"'{ROUTE_LIST_START}' without '{ROUTE_LIST_STOP}'."
        )
    return "".join(out)


# ---------------------------------------------------------------------------
# Materialize
# ---------------------------------------------------------------------------


def route_directory(path: str) -> str:
    """Relative directory for a route path (``/`` → ``""``)."""
    return "/".join(split_path(path))


def _output_path(directory: str, file_name: str) -> str:
    return f"{directory}/{file_name}" if directory else file_name


def materialize(
    tree: RouteNode,
    template_set: TemplateSet,
    config: Optional[GenerationConfig] = None,
) -> Dict[str, str]:
    """
    Render *tree* with *template_set*.

    Returns relative output path → content, with static files first, then
    the route index, then one file per operation route in tree order. The
    result depends only on the arguments.

    Raises:
        ConfigurationError: two outputs map to the same relative path.
    """
    config = config or GenerationConfig()
    accessor: str = config.runtime_accessor
    files: Dict[str, str] = {}
    owners: Dict[str, str] = {}

    def _emit(rel_path: str, content: str, owner: str) -> None:
        previous: Optional[str] = owners.get(rel_path)
        if previous is not None:
            raise ConfigurationError(
                f"Output file collision: {previous} and {owner} both write "
                f"'{rel_path}'.",
                path=rel_path,
            )
        owners[rel_path] = owner
        files[rel_path] = content

    for rel_path, content in template_set.static_files.items():
        _emit(rel_path, content, f"static file '{rel_path}'")

    contexts: List[RouteContext] = list(iter_route_contexts(tree))

    if config.generate_route_index and template_set.index is not None:
        index_dir: str = route_directory(tree.path)
        _emit(
            _output_path(index_dir, template_set.index.file_name),
            render_route_index(template_set.index, tree, contexts, accessor),
            "the route index",
        )

    skipped: int = 0
    for ctx in contexts:
        node: RouteNode = ctx.node
        assert node.operation is not None
        template: Optional[RouteTemplate] = template_set.template_for(node.operation)
        if template is None:
            skipped += 1
            continue
        _emit(
            _output_path(route_directory(node.path), template.file_name),
            substitute(template.content, ctx.token_values(accessor)),
            f"{node.operation.value} {node.model_name} ({node.path})",
        )

    if skipped:
        logger.debug("%d route(s) had no template and were skipped.", skipped)
    logger.info(
        "Materialized %d file(s) from %d route(s) with template set '%s'.",
        len(files),
        len(contexts),
        template_set.name,
    )
    return files


__all__: List[str] = [
    "TOKENS",
    "RouteContext",
    "substitute",
    "iter_route_contexts",
    "render_route_index",
    "route_directory",
    "materialize",
]

logger.debug("routegen.materializer loaded.")
