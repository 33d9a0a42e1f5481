# File: routegen/errors.py
"""
RouteGen - Exception Taxonomy
===============================
Errors raised while turning a model registry into a route tree.

Every error carries the model chain (root model first) that was being
walked when the problem was found, plus the route path when one exists,
so a caller can pinpoint the relation or model responsible.

None of these are retryable: the builder is pure, so re-running it on the
same input reproduces the same error.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple


class RouteGenError(Exception):
    """Base class for all route generation failures."""

    def __init__(
        self,
        message: str,
        *,
        chain: Sequence[str] = (),
        path: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.chain: Tuple[str, ...] = tuple(chain)
        self.path: Optional[str] = path
        super().__init__(self._format())

    def _format(self) -> str:
        parts: List[str] = [self.message]
        if self.chain:
            parts.append(f"chain: {' → '.join(self.chain)}")
        if self.path is not None:
            parts.append(f"path: {self.path}")
        return " | ".join(parts)


class ConfigurationError(RouteGenError):
    """
    The registry or invocation cannot produce a valid route tree.

    Raised for an unknown root model, an invalid depth limit, or two
    siblings that would share one path segment (or one output file).
    """


class UnresolvedRelationError(RouteGenError):
    """A relation field names a model that is absent from the registry."""

    def __init__(
        self,
        model: str,
        field: str,
        target: str,
        *,
        chain: Sequence[str] = (),
        path: Optional[str] = None,
    ) -> None:
        self.model: str = model
        self.field: str = field
        self.target: str = target
        super().__init__(
            f"Relation '{model}.{field}' references unknown model '{target}'.",
            chain=chain,
            path=path,
        )


__all__: List[str] = [
    "RouteGenError",
    "ConfigurationError",
    "UnresolvedRelationError",
]
