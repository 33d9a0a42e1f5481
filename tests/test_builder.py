"""
tests/test_builder.py
Unit tests for routegen.builder (and the RouteNode tree it produces).

Tests cover:
- The canonical User --posts--> Post tree, route by route
- To-one relations never spawning routes
- Cycle termination and max_depth cutoffs
- Group prefixes and isolation between groups
- Composite identifiers and models without identifiers
- Failure modes: unknown root, bad max_depth, dangling relations,
  sibling collisions
- Determinism and concurrent builds over one shared registry
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import pytest

from helpers import ident, make_registry, model, scalar, to_many, to_one
from routegen.builder import RouteGraphBuilder, build
from routegen.errors import ConfigurationError, UnresolvedRelationError
from routegen.models import ModelRegistry, Operation
from routegen.routes import NodeKind, RouteNode, format_route_table, format_route_tree


def _routes(tree: RouteNode) -> List[Tuple[str, str]]:
    return [(n.path, n.operation.value) for n in tree.operations()]


def _paths(tree: RouteNode) -> List[str]:
    return [n.path for n in tree.operations()]


# ===========================================================================
# The canonical scenario
# ===========================================================================


class TestUserPostTree:
    """User --posts--> Post, Post --author--> User."""

    def test_exact_route_list(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry)
        assert _routes(tree) == [
            ("/user", "list"),
            ("/user/create", "create"),
            ("/user/[userId]", "read"),
            ("/user/[userId]/edit", "update"),
            ("/user/[userId]/delete", "delete"),
            ("/user/[userId]/post", "list"),
            ("/user/[userId]/post/create", "create"),
            ("/user/[userId]/post/[postId]", "read"),
            ("/user/[userId]/post/[postId]/edit", "update"),
            ("/user/[userId]/post/[postId]/delete", "delete"),
        ]

    def test_group_root_shape(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry)
        assert tree.kind is NodeKind.GROUP
        assert tree.path == "/"
        assert tree.depth == 0
        assert tree.parent_chain == ()
        assert [c.segment for c in tree.children] == ["user"]

    def test_model_node_children_order(self, blog_registry: ModelRegistry) -> None:
        user = build("User", blog_registry).child("user")
        assert user is not None
        assert user.kind is NodeKind.MODEL
        assert [c.segment for c in user.children] == ["list", "create", "[userId]"]

    def test_detail_node_children_order(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry)
        detail = tree.find("/user/[userId]")
        assert detail is not None
        assert detail.kind is NodeKind.DETAIL
        assert [c.segment for c in detail.children] == [
            "read",
            "update",
            "delete",
            "post",
        ]

    def test_nested_post_metadata(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry)
        read = tree.find("/user/[userId]/post/[postId]", Operation.READ)
        assert read is not None
        assert read.model_name == "Post"
        assert read.identifiers == ("id",)
        assert read.slugs == ("userId", "postId")
        assert read.parent_chain == ("User", "Post")
        assert read.parent_model_name == "User"
        assert read.runtime_expression == "/user/${params.userId}/post/${params.postId}"

    def test_nested_model_records_relation(self, blog_registry: ModelRegistry) -> None:
        post = build("User", blog_registry).find("/user/[userId]/post")
        assert post is not None
        assert post.kind is NodeKind.MODEL
        assert post.relation == "posts"
        assert post.slugs == ("userId",)

    def test_to_one_relation_spawns_nothing(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry)
        assert not any("/author" in p for p in _paths(tree))
        # Post --author--> User is context only, so User is never nested under Post.
        assert all(n.parent_chain.count("User") <= 1 for n in tree.walk())

    def test_post_root_has_no_nesting(self, blog_registry: ModelRegistry) -> None:
        tree = build("Post", blog_registry)
        assert _paths(tree) == [
            "/post",
            "/post/create",
            "/post/[postId]",
            "/post/[postId]/edit",
            "/post/[postId]/delete",
        ]

    def test_depths_increase_by_one(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry)

        def _check(node: RouteNode) -> None:
            for child in node.children:
                assert child.depth == node.depth + 1
                _check(child)

        _check(tree)

    def test_every_operation_node_is_a_leaf(self, blog_registry: ModelRegistry) -> None:
        for node in build("User", blog_registry).walk():
            if node.kind is NodeKind.OPERATION:
                assert node.children == ()

    def test_route_table(self, blog_registry: ModelRegistry) -> None:
        table = format_route_table(build("User", blog_registry)).splitlines()
        assert table[0] == "/user - list User: List all User records"
        assert (
            "/user/[userId]/post - list Post: List all Post records of a User"
            in table
        )
        assert len(table) == 10

    def test_route_tree_outline(self, blog_registry: ModelRegistry) -> None:
        outline = format_route_tree(build("User", blog_registry))
        assert outline.splitlines()[0] == "/  [group]"
        assert "  user  [model User]" in outline


# ===========================================================================
# Structural invariants
# ===========================================================================


class TestInvariants:
    """Properties that hold for any produced tree."""

    def test_no_model_repeats_on_a_path(self, example_registry: ModelRegistry) -> None:
        tree = RouteGraphBuilder(example_registry).build_group()
        for node in tree.walk():
            assert len(node.parent_chain) == len(set(node.parent_chain)), node.path

    def test_sibling_segments_unique(self, example_registry: ModelRegistry) -> None:
        tree = RouteGraphBuilder(example_registry).build_group()
        for node in tree.walk():
            segments = [c.segment for c in node.children]
            assert len(segments) == len(set(segments)), node.path

    def test_slugs_match_path_parameters(self, example_registry: ModelRegistry) -> None:
        tree = RouteGraphBuilder(example_registry).build_group()
        for node in tree.operations():
            expected = [s[1:-1] for s in node.path.split("/") if s.startswith("[")]
            assert list(node.slugs) == expected, node.path

    def test_build_is_deterministic(self, example_registry: ModelRegistry) -> None:
        builder = RouteGraphBuilder(example_registry)
        assert builder.build_group().to_dict() == builder.build_group().to_dict()

    def test_build_does_not_mutate_registry(self, blog_registry: ModelRegistry) -> None:
        before = blog_registry.model_dump()
        build("User", blog_registry, max_depth=1)
        build("Post", blog_registry)
        assert blog_registry.model_dump() == before

    def test_concurrent_builds_match_sequential(
        self, example_registry: ModelRegistry
    ) -> None:
        builder = RouteGraphBuilder(example_registry)
        roots = example_registry.model_names
        sequential = [builder.build(r).to_dict() for r in roots]
        with ThreadPoolExecutor(max_workers=4) as pool:
            concurrent = list(pool.map(lambda r: builder.build(r).to_dict(), roots))
        assert concurrent == sequential


# ===========================================================================
# Cycles and max_depth
# ===========================================================================


class TestBounds:
    """Cycle check and depth cutoff."""

    def test_mutual_cycle_terminates(self) -> None:
        registry = make_registry([
            model("A", ident(), to_many("bs", "B")),
            model("B", ident(), to_many("as_", "A")),
        ])
        tree = build("A", registry)
        assert "/a/[aId]/b/[bId]" in _paths(tree)
        assert not any("/b/[bId]/a" in p for p in _paths(tree))

    def test_self_relation_is_not_followed(self) -> None:
        registry = make_registry([
            model("Category", ident(), to_many("children", "Category")),
        ])
        tree = build("Category", registry)
        assert len(tree.operations()) == 5

    def test_max_depth_one_stops_after_root(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry, max_depth=1)
        assert _paths(tree) == [
            "/user",
            "/user/create",
            "/user/[userId]",
            "/user/[userId]/edit",
            "/user/[userId]/delete",
        ]

    def test_max_depth_counts_models(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry, max_depth=2)
        assert "/user/[userId]/post/[postId]" in _paths(tree)
        assert _routes(tree) == _routes(build("User", blog_registry))

    def test_max_depth_with_long_chain(self) -> None:
        registry = make_registry([
            model("A", ident(), to_many("bs", "B")),
            model("B", ident(), to_many("cs", "C")),
            model("C", ident(), to_many("ds", "D")),
            model("D", ident()),
        ])
        full = build("A", registry)
        capped = build("A", registry, max_depth=3)
        assert any(n.model_name == "D" for n in full.operations())
        assert not any(n.model_name == "D" for n in capped.operations())
        assert max(len(n.parent_chain) for n in capped.walk()) == 3

    @pytest.mark.parametrize("bad", [0, -1])
    def test_invalid_max_depth(self, blog_registry: ModelRegistry, bad: int) -> None:
        with pytest.raises(ConfigurationError, match="max_depth"):
            build("User", blog_registry, max_depth=bad)

    def test_example_registry_cycle_via_tags(
        self, example_registry: ModelRegistry
    ) -> None:
        paths = _paths(build("User", example_registry))
        assert "/user/[userId]/post/[postId]/tag/[tagName]" in paths
        assert not any("/tag/[tagName]/post" in p for p in paths)
        assert "/user/[userId]/post/[postId]/comment/[commentId]/edit" in paths


# ===========================================================================
# Groups
# ===========================================================================


class TestGroups:
    """Group prefixes and isolation."""

    def test_group_prefixes_every_path(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry, group="admin")
        assert tree.path == "/admin"
        assert tree.segment == "admin"
        assert all(p.startswith("/admin/user") for p in _paths(tree))
        assert all(n.group == "admin" for n in tree.walk())

    def test_group_slashes_are_normalised(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry, group="/admin/")
        assert tree.path == "/admin"

    def test_groups_are_disjoint(self, blog_registry: ModelRegistry) -> None:
        admin = set(_paths(build("User", blog_registry, group="admin")))
        public = set(_paths(build("User", blog_registry, group="public")))
        assert admin and public
        assert admin.isdisjoint(public)

    def test_group_runtime_expression(self, blog_registry: ModelRegistry) -> None:
        tree = build("User", blog_registry, group="admin")
        read = tree.find("/admin/user/[userId]", Operation.READ)
        assert read is not None
        assert read.runtime_expression == "/admin/user/${params.userId}"

    def test_build_group_default_roots(self, example_registry: ModelRegistry) -> None:
        tree = RouteGraphBuilder(example_registry).build_group()
        assert [c.model_name for c in tree.children] == ["User", "Profile"]

    def test_build_group_explicit_roots(self, blog_registry: ModelRegistry) -> None:
        tree = RouteGraphBuilder(blog_registry).build_group(["Post", "User"])
        assert [c.segment for c in tree.children] == ["post", "user"]

    def test_duplicate_root_collides(self, blog_registry: ModelRegistry) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            RouteGraphBuilder(blog_registry).build_group(["User", "User"])
        assert exc_info.value.path == "/user"


# ===========================================================================
# Identifiers
# ===========================================================================


class TestIdentifierShapes:
    """Composite, unique-fallback and missing identifiers."""

    def test_composite_identifiers_nest(self) -> None:
        registry = make_registry([
            model("Membership", ident("orgId"), ident("userId"), scalar("role")),
        ])
        tree = build("Membership", registry)
        read = tree.find(
            "/membership/[membershipOrgId]/[membershipUserId]", Operation.READ
        )
        assert read is not None
        assert read.slugs == ("membershipOrgId", "membershipUserId")
        outer = tree.find("/membership/[membershipOrgId]")
        assert outer is not None
        assert outer.kind is NodeKind.DETAIL
        assert [c.segment for c in outer.children] == ["[membershipUserId]"]
        assert (
            "/membership/[membershipOrgId]/[membershipUserId]/edit" in _paths(tree)
        )

    def test_unique_field_fallback(self) -> None:
        registry = make_registry([model("Tag", scalar("name", isUnique=True))])
        assert "/tag/[tagName]" in _paths(build("Tag", registry))

    def test_model_without_identifier(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = make_registry([
            model("Log", scalar("message"), to_many("entries", "Entry")),
            model("Entry", ident()),
        ])
        with caplog.at_level("WARNING", logger="routegen.builder"):
            tree = build("Log", registry)
        assert _routes(tree) == [("/log", "list"), ("/log/create", "create")]
        assert "entries" in caplog.text

    def test_example_profile_has_collection_routes_only(
        self, example_registry: ModelRegistry
    ) -> None:
        tree = build("Profile", example_registry)
        assert _paths(tree) == ["/profile", "/profile/create"]


# ===========================================================================
# Failure modes
# ===========================================================================


class TestFailures:
    """Errors abort the whole build."""

    def test_unknown_root(self, blog_registry: ModelRegistry) -> None:
        with pytest.raises(ConfigurationError, match="Ghost"):
            build("Ghost", blog_registry)

    def test_unresolved_to_many(self) -> None:
        registry = make_registry([model("User", ident(), to_many("posts", "Ghost"))])
        with pytest.raises(UnresolvedRelationError) as exc_info:
            build("User", registry)
        err = exc_info.value
        assert (err.model, err.field, err.target) == ("User", "posts", "Ghost")
        assert err.chain == ("User",)
        assert err.path == "/user"

    def test_unresolved_to_one(self) -> None:
        registry = make_registry([model("Post", ident(), to_one("author", "Ghost"))])
        with pytest.raises(UnresolvedRelationError):
            build("Post", registry)

    def test_unresolved_deep_in_tree_reports_chain(self) -> None:
        registry = make_registry([
            model("User", ident(), to_many("posts", "Post")),
            model("Post", ident(), to_many("likes", "Like")),
        ])
        with pytest.raises(UnresolvedRelationError) as exc_info:
            build("User", registry)
        assert exc_info.value.chain == ("User", "Post")
        assert exc_info.value.path == "/user/[userId]/post"
        assert "User → Post" in str(exc_info.value)

    def test_two_relations_to_same_model_collide(self) -> None:
        registry = make_registry([
            model(
                "User",
                ident(),
                to_many("posts", "Post"),
                to_many("drafts", "Post"),
            ),
            model("Post", ident()),
        ])
        with pytest.raises(ConfigurationError) as exc_info:
            build("User", registry)
        assert exc_info.value.path == "/user/[userId]/post"
        assert exc_info.value.chain == ("User",)
        assert "drafts" in str(exc_info.value)

    def test_nested_model_named_like_operation_collides(self) -> None:
        registry = make_registry([
            model("User", ident(), to_many("edits", "Edit")),
            model("Edit", ident()),
        ])
        with pytest.raises(ConfigurationError) as exc_info:
            build("User", registry)
        assert exc_info.value.path == "/user/[userId]/edit"

    def test_collision_depends_on_relation_being_followed(self) -> None:
        registry = make_registry([
            model("User", ident(), to_many("edits", "Edit")),
            model("Edit", ident()),
        ])
        tree = build("User", registry, max_depth=1)
        assert "/user/[userId]/edit" in _paths(tree)
