"""
tests/helpers.py
Small builders for registry dicts, shared by the test modules.
"""

from __future__ import annotations

from typing import Any, Dict, List

from routegen.models import ModelRegistry


def make_registry(models: List[Dict[str, Any]]) -> ModelRegistry:
    return ModelRegistry.model_validate({"models": models})


def model(name: str, *fields: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    return {"name": name, "fields": list(fields), **extra}


def ident(name: str = "id") -> Dict[str, Any]:
    return {"name": name, "kind": "identifier"}


def scalar(name: str, **extra: Any) -> Dict[str, Any]:
    return {"name": name, "kind": "scalar", **extra}


def to_many(name: str, target: str) -> Dict[str, Any]:
    return {"name": name, "kind": "relation_to_many", "relatedModel": target}


def to_one(name: str, target: str) -> Dict[str, Any]:
    return {"name": name, "kind": "relation_to_one", "relatedModel": target}
