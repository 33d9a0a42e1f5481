# File: routegen/identifiers.py
"""
RouteGen - Identifier Resolver
================================
Computes the ordered set of field names that address exactly one record
of a model. Detail routes get one dynamic segment per identifier field, in
the order returned here.

Resolution order:
    1. every ``identifier``-kind field, in declaration order (composite
       identifiers keep their declared order);
    2. otherwise the first non-relation field marked ``is_unique``;
    3. otherwise nothing: the model only gets collection routes.

The result depends on the model's own fields only, never on relations.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from routegen.models import FieldInfo, FieldKind, ModelInfo

logger: logging.Logger = logging.getLogger("routegen.identifiers")


def resolve_identifiers(model: ModelInfo) -> Tuple[str, ...]:
    """
    Return the identifier field names of *model* in declaration order.

    An empty tuple means "no per-record route possible"; callers must not
    treat it as an error.
    """
    explicit: List[str] = [
        f.name for f in model.fields if f.kind is FieldKind.IDENTIFIER
    ]
    if explicit:
        return tuple(explicit)

    for field in model.fields:
        if field.is_unique and not field.is_relation:
            logger.debug(
                "Model '%s' has no identifier field; using unique field '%s'.",
                model.name,
                field.name,
            )
            return (field.name,)

    logger.debug("Model '%s' has no usable identifier.", model.name)
    return ()


def identifier_fields(model: ModelInfo) -> List[FieldInfo]:
    """Like ``resolve_identifiers`` but returns the ``FieldInfo`` objects."""
    result: List[FieldInfo] = []
    for name in resolve_identifiers(model):
        field = model.get_field(name)
        if field is not None:
            result.append(field)
    return result


def has_identifier(model: ModelInfo) -> bool:
    return bool(resolve_identifiers(model))


__all__: List[str] = [
    "resolve_identifiers",
    "identifier_fields",
    "has_identifier",
]
