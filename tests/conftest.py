"""
tests/conftest.py
Shared fixtures for the routegen test suite.

No external mocking libraries are used; real file I/O is performed inside
temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from helpers import ident, make_registry, model, scalar, to_many, to_one
from routegen.models import GenerationConfig, ModelRegistry


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
MODELS_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "models_example.yaml"


# ---------------------------------------------------------------------------
# Raw registry data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_dict() -> Dict[str, Any]:
    """Load the reference models_example.yaml once per session."""
    assert MODELS_EXAMPLE_PATH.exists(), (
        f"Reference registry not found at {MODELS_EXAMPLE_PATH}."
    )
    with open(MODELS_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def example_dict(raw_example_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_dict)


@pytest.fixture()
def example_registry(example_dict: Dict[str, Any]) -> ModelRegistry:
    return make_registry(example_dict["models"])


@pytest.fixture()
def blog_models() -> List[Dict[str, Any]]:
    """User --posts--> Post, Post --author--> User (the canonical scenario)."""
    return [
        model("User", ident(), scalar("email", isUnique=True), to_many("posts", "Post")),
        model("Post", ident(), scalar("title"), to_one("author", "User")),
    ]


@pytest.fixture()
def blog_registry(blog_models: List[Dict[str, Any]]) -> ModelRegistry:
    return make_registry(blog_models)


@pytest.fixture()
def default_config() -> GenerationConfig:
    return GenerationConfig()


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def blog_yaml_path(
    blog_models: List[Dict[str, Any]], tmp_path: pathlib.Path
) -> pathlib.Path:
    """Blog registry written to a temporary YAML file."""
    path = tmp_path / "models.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(
            {"config": {"project_name": "blog", "roots": ["User"]}, "models": blog_models},
            fh,
            default_flow_style=False,
            sort_keys=False,
        )
    return path


@pytest.fixture()
def example_yaml_path(
    example_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    path = tmp_path / "models_example.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(example_dict, fh, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """An output directory that does not exist yet."""
    return tmp_path / "generated"


@pytest.fixture()
def template_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """A small user template directory with two operations and a static file."""
    root = tmp_path / "templates"
    (root / "lib").mkdir(parents=True)
    (root / "list.index.md").write_text(
        "# TemplateModel list at templateRoutePath\n", encoding="utf-8"
    )
    (root / "read.show.md").write_text(
        "# templateModel templateSlugs -> templateRedirect\n", encoding="utf-8"
    )
    (root / "index.README.md").write_text(
        "Routes in templateGroup:\n"
        "<!-- @routegen routeList start -->\n"
        "- templateRoutePath (templateOperation)\n"
        "<!-- @routegen routeList stop -->\n",
        encoding="utf-8",
    )
    (root / "lib" / "helpers.ts").write_text("export const x = 1;\n", encoding="utf-8")
    return root
