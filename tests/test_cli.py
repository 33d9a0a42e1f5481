"""
tests/test_cli.py
Tests for the routegen command-line interface (routegen.cli).

``cli_main`` always exits, so every call is wrapped in
``pytest.raises(SystemExit)`` and the exit code is checked.
"""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Iterator, List

import pytest
import yaml

from helpers import ident, model, to_many
from routegen.cli import (
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)


@pytest.fixture(autouse=True)
def _restore_routegen_logger() -> Iterator[None]:
    """cli_main reconfigures the 'routegen' logger; undo it after each test."""
    root = logging.getLogger("routegen")
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


@pytest.fixture()
def broken_yaml_path(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "broken.yaml"
    path.write_text(
        yaml.dump({"models": [model("User", ident(), to_many("posts", "Ghost"))]}),
        encoding="utf-8",
    )
    return path


# ===========================================================================
# Generation
# ===========================================================================


class TestGenerate:
    """Default mode: write files."""

    def test_generates_files(
        self, blog_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-s", str(blog_yaml_path), "-o", str(output_dir)])
        assert code == EXIT_SUCCESS
        assert (output_dir / "user/[userId]/edit/page.tsx").exists()
        assert (output_dir / "manifest.json").exists()

    def test_route_options(
        self, example_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run([
            "-s", str(example_yaml_path),
            "-o", str(output_dir),
            "-r", "Post",
            "-g", "admin",
            "--max-depth", "1",
        ])
        assert code == EXIT_SUCCESS
        assert (output_dir / "admin/post/[postId]/page.tsx").exists()
        assert not (output_dir / "admin/post/[postId]/comment").exists()
        assert not (output_dir / "admin/user").exists()

    def test_dry_run(
        self,
        blog_yaml_path: pathlib.Path,
        output_dir: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["-s", str(blog_yaml_path), "-o", str(output_dir), "--dry-run"])
        assert code == EXIT_SUCCESS
        assert not output_dir.exists()
        assert "would write user/[userId]/post/page.tsx" in capsys.readouterr().out

    def test_validation_error_exit_code(
        self, broken_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-s", str(broken_yaml_path), "-o", str(output_dir)])
        assert code == EXIT_VALIDATION_ERROR
        assert not output_dir.exists()

    def test_fail_on_warnings(
        self, example_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run([
            "-s", str(example_yaml_path), "-o", str(output_dir), "--fail-on-warnings",
        ])
        assert code == EXIT_GENERATION_ERROR

    def test_template_dir(
        self,
        blog_yaml_path: pathlib.Path,
        template_dir: pathlib.Path,
        output_dir: pathlib.Path,
    ) -> None:
        code = _run([
            "-s", str(blog_yaml_path), "-o", str(output_dir), "-t", str(template_dir),
        ])
        assert code == EXIT_SUCCESS
        assert (output_dir / "user/index.md").exists()


# ===========================================================================
# Other modes
# ===========================================================================


class TestModes:
    """--validate-only and --list-routes."""

    def test_validate_only_success(
        self,
        blog_yaml_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert _run(["-s", str(blog_yaml_path), "--validate-only"]) == EXIT_SUCCESS
        assert "All validations passed" in capsys.readouterr().out

    def test_validate_only_failure(
        self,
        broken_yaml_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["-s", str(broken_yaml_path), "--validate-only"])
        assert code == EXIT_VALIDATION_ERROR
        assert "RELATION_UNKNOWN_MODEL" in capsys.readouterr().out

    def test_list_routes(
        self,
        blog_yaml_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert _run(["-s", str(blog_yaml_path), "--list-routes"]) == EXIT_SUCCESS
        out = capsys.readouterr().out.splitlines()
        assert out[:3] == [
            "Routes:",
            "-------",
            "/user - list User: List all User records",
        ]
        assert (
            "/user/[userId]/post/[postId]/edit - update Post: Edit a Post of a User"
            in out
        )

    def test_list_routes_json(
        self,
        blog_yaml_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["-s", str(blog_yaml_path), "--list-routes", "--json", "-g", "admin"])
        assert code == EXIT_SUCCESS
        tree = json.loads(capsys.readouterr().out)
        assert tree["kind"] == "group"
        assert tree["path"] == "/admin"
        assert tree["children"][0]["path"] == "/admin/user"

    def test_list_routes_build_error(self, broken_yaml_path: pathlib.Path) -> None:
        code = _run(["-s", str(broken_yaml_path), "--list-routes"])
        assert code == EXIT_GENERATION_ERROR


# ===========================================================================
# Input errors
# ===========================================================================


class TestInputErrors:
    """Exit code 4 and argparse rejections."""

    def test_missing_schema_file(self, tmp_path: pathlib.Path) -> None:
        assert _run(["-s", str(tmp_path / "missing.yaml")]) == EXIT_INPUT_ERROR

    def test_json_without_list_routes(self, blog_yaml_path: pathlib.Path) -> None:
        assert _run(["-s", str(blog_yaml_path), "--json"]) == EXIT_INPUT_ERROR

    def test_unparseable_registry(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "models.yaml"
        path.write_text("- name: User\n  fields: 12\n", encoding="utf-8")
        assert _run(["-s", str(path), "--validate-only"]) == EXIT_INPUT_ERROR

    def test_max_depth_must_be_positive(self, blog_yaml_path: pathlib.Path) -> None:
        # argparse exits with its own usage error code.
        assert _run(["-s", str(blog_yaml_path), "--max-depth", "0"]) == 2

    def test_schema_is_required(self) -> None:
        assert _run([]) == 2
