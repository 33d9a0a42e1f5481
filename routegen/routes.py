# File: routegen/routes.py
"""
RouteGen - Route Tree
=======================
Immutable route nodes produced by the route graph builder.

A tree looks like this for ``User --posts--> Post``::

    /                                   group
    └── /user                           model     User
        ├── /user                       operation list
        ├── /user/create                operation create
        └── /user/[userId]              detail
            ├── /user/[userId]          operation read
            ├── /user/[userId]/edit     operation update
            ├── /user/[userId]/delete   operation delete
            └── /user/[userId]/post     model     Post (relation 'posts')
                └── ...

Each parent owns its children exclusively (a tree, never a graph), and no
node changes after construction. Everything a materializer needs (model,
operation, full path, ordered identifiers, slugs, runtime expression) is
reachable from the node itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from routegen.models import ModelInfo, Operation
from routegen.segments import DEFAULT_ACCESSOR, is_dynamic_segment, to_runtime_expression

logger: logging.Logger = logging.getLogger("routegen.routes")


class NodeKind(str, Enum):
    """Structural role of a route node."""

    GROUP = "group"
    MODEL = "model"
    DETAIL = "detail"
    OPERATION = "operation"


_OPERATION_DESCRIPTIONS: Dict[Operation, str] = {
    Operation.LIST: "List all {model} records",
    Operation.CREATE: "Create a {model}",
    Operation.READ: "Show a {model}",
    Operation.UPDATE: "Edit a {model}",
    Operation.DELETE: "Delete a {model}",
}


@dataclass(frozen=True, slots=True)
class RouteNode:
    """
    One generated route (or a structural step towards one).

    ``parent_chain`` holds the model names from the tree root down to and
    including this node's model; the group root has an empty chain.
    ``slugs`` lists the dynamic parameters along ``path``, outermost first.
    """

    kind: NodeKind
    segment: str
    path: str
    depth: int
    parent_chain: Tuple[str, ...] = ()
    model: Optional[ModelInfo] = None
    operation: Optional[Operation] = None
    identifiers: Tuple[str, ...] = ()
    slugs: Tuple[str, ...] = ()
    relation: Optional[str] = None
    group: Optional[str] = None
    children: Tuple["RouteNode", ...] = ()

    # -- Derived values -----------------------------------------------------

    @property
    def model_name(self) -> Optional[str]:
        return self.model.name if self.model is not None else None

    @property
    def parent_model_name(self) -> Optional[str]:
        """Model owning the collection this node's model is nested in."""
        if self.model is None or len(self.parent_chain) < 2:
            return None
        return self.parent_chain[-2]

    @property
    def is_dynamic(self) -> bool:
        return is_dynamic_segment(self.segment)

    @property
    def runtime_expression(self) -> str:
        return to_runtime_expression(self.path, DEFAULT_ACCESSOR)

    def expression(self, accessor: str = DEFAULT_ACCESSOR) -> str:
        """Runtime expression of ``path`` with a custom accessor format."""
        return to_runtime_expression(self.path, accessor)

    @property
    def description(self) -> str:
        if self.operation is None:
            return self.kind.value
        text: str = _OPERATION_DESCRIPTIONS[self.operation].format(
            model=self.model_name
        )
        parent: Optional[str] = self.parent_model_name
        if parent is not None:
            text = f"{text} of a {parent}"
        return text

    # -- Traversal ----------------------------------------------------------

    def walk(self) -> Iterator["RouteNode"]:
        """Pre-order iteration over this node and all descendants."""
        stack: List[RouteNode] = [self]
        while stack:
            node: RouteNode = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def operations(self) -> List["RouteNode"]:
        """All operation nodes below (and including) this node, in tree order."""
        return [n for n in self.walk() if n.operation is not None]

    def find(
        self,
        path: str,
        operation: Optional[Operation] = None,
    ) -> Optional["RouteNode"]:
        """
        First node with the given ``path``.

        Without *operation*, structural nodes win over the operation nodes
        that share their path (``/user`` is both the model node and its
        list route).
        """
        for node in self.walk():
            if node.path != path:
                continue
            if operation is None and node.operation is None:
                return node
            if operation is not None and node.operation == operation:
                return node
        return None

    def child(self, segment: str) -> Optional["RouteNode"]:
        for node in self.children:
            if node.segment == segment:
                return node
        return None

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.walk())

    @property
    def max_depth(self) -> int:
        return max(n.depth for n in self.walk())

    # -- Serialisation ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable view of the subtree."""
        return {
            "kind": self.kind.value,
            "segment": self.segment,
            "path": self.path,
            "depth": self.depth,
            "parent_chain": list(self.parent_chain),
            "model": self.model_name,
            "operation": self.operation.value if self.operation else None,
            "identifiers": list(self.identifiers),
            "slugs": list(self.slugs),
            "relation": self.relation,
            "group": self.group,
            "runtime_expression": self.runtime_expression,
            "children": [c.to_dict() for c in self.children],
        }

    def __repr__(self) -> str:
        label: str = self.operation.value if self.operation else self.kind.value
        return f"<RouteNode {label} {self.path} ({len(self.children)} children)>"


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------


def format_route_table(tree: RouteNode) -> str:
    """
    One line per operation route::

        /user/[userId]/edit - update User: Edit a User
    """
    lines: List[str] = []
    for node in tree.operations():
        assert node.operation is not None
        lines.append(
            f"{node.path} - {node.operation.value} {node.model_name}: "
            f"{node.description}"
        )
    return "\n".join(lines)


def format_route_tree(tree: RouteNode) -> str:
    """Indented outline of the tree (debug output)."""
    lines: List[str] = []

    def _visit(node: RouteNode, level: int) -> None:
        label: str = node.operation.value if node.operation else node.kind.value
        model: str = f" {node.model_name}" if node.model is not None else ""
        lines.append(f"{'  ' * level}{node.segment or '/'}  [{label}{model}]")
        for child in node.children:
            _visit(child, level + 1)

    _visit(tree, 0)
    return "\n".join(lines)


__all__: List[str] = [
    "NodeKind",
    "RouteNode",
    "format_route_table",
    "format_route_tree",
]
