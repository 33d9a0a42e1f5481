# File: routegen/segments.py
"""
RouteGen - Redirect / Segment Templater
=========================================
Pure, stateless string transforms over route paths.

A route path is a ``/``-separated string whose components are either
static text (``user``) or bracketed dynamic parameters (``[userId]``).
Two operations matter to the rest of the pipeline:

- ``slug_for`` names a dynamic parameter from a model name and one of its
  identifier fields. The route builder names segments with it and the
  templates name access keys with it, so the two always agree.
- ``to_runtime_expression`` turns a path into an interpolation expression
  by replacing every bracketed segment with a parameter access bound to the
  same name. Everything outside the brackets is kept verbatim.

Examples::

    >>> slug_for("Post", "id")
    'postId'
    >>> to_runtime_expression("/user/[userId]/post")
    '/user/${params.userId}/post'
"""

from __future__ import annotations

import functools
import logging
import re
from typing import List, Optional, Sequence

from routegen.utils import lower_first, upper_first

logger: logging.Logger = logging.getLogger("routegen.segments")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_ACCESSOR: str = "${{params.{name}}}"
"""Format string producing a JavaScript template-literal parameter access."""

PATH_SEPARATOR: str = "/"

_DYNAMIC_SEGMENT_RE: re.Pattern[str] = re.compile(r"\[(.*?)\]")
_FULL_DYNAMIC_RE: re.Pattern[str] = re.compile(r"^\[([^\[\]/]+)\]$")


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def slug_for(model_name: str, identifier_field_name: str) -> str:
    """
    Name the dynamic parameter addressing *model_name* by one identifier.

    The model name comes first with its first character lower-cased, then
    the field name with its first character upper-cased:
    ``("BlogPost", "slug") -> "blogPostSlug"``. Including the model name
    keeps two models' parameters distinct once routes are nested.
    """
    return f"{lower_first(model_name)}{upper_first(identifier_field_name)}"


def dynamic_slugs(model_name: str, identifier_field_names: Sequence[str]) -> List[str]:
    """Slugs for every identifier field of a model, in the given order."""
    return [slug_for(model_name, name) for name in identifier_field_names]


def dynamic_segment(slug: str) -> str:
    return f"[{slug}]"


def is_dynamic_segment(segment: str) -> bool:
    return _FULL_DYNAMIC_RE.match(segment) is not None


def segment_parameter(segment: str) -> Optional[str]:
    """Parameter name of a dynamic segment, ``None`` for static text."""
    match = _FULL_DYNAMIC_RE.match(segment)
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def join_path(*parts: str) -> str:
    """
    Join path parts with ``/``, dropping empty components.

    The result always starts with ``/``; the empty join is ``/``.

        >>> join_path("/", "admin", "user/[userId]", "")
        '/admin/user/[userId]'
    """
    components: List[str] = []
    for part in parts:
        components.extend(c for c in part.split(PATH_SEPARATOR) if c)
    return PATH_SEPARATOR + PATH_SEPARATOR.join(components)


def split_path(path: str) -> List[str]:
    """Non-empty components of *path*."""
    return [c for c in path.split(PATH_SEPARATOR) if c]


def path_parameters(path: str) -> List[str]:
    """Dynamic parameter names occurring in *path*, in order."""
    return _DYNAMIC_SEGMENT_RE.findall(path)


# ---------------------------------------------------------------------------
# Runtime expressions
# ---------------------------------------------------------------------------


def to_runtime_expression(route_path: str, accessor: str = DEFAULT_ACCESSOR) -> str:
    """
    Replace each ``[name]`` in *route_path* with ``accessor.format(name=name)``.

    Static text, separators and letter case are left untouched, so a path
    without brackets comes back unchanged. With the default accessor the
    output contains no brackets, so applying the transform twice is the
    same as applying it once.
    """
    return _DYNAMIC_SEGMENT_RE.sub(
        lambda m: accessor.format(name=m.group(1)),
        route_path,
    )


__all__: List[str] = [
    "DEFAULT_ACCESSOR",
    "PATH_SEPARATOR",
    "slug_for",
    "dynamic_slugs",
    "dynamic_segment",
    "is_dynamic_segment",
    "segment_parameter",
    "join_path",
    "split_path",
    "path_parameters",
    "to_runtime_expression",
]
