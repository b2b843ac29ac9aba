"""Resolve ``"package.module:attribute"`` factory paths from configuration."""
from __future__ import annotations

import importlib
from typing import Any

from gateway_service.application.exceptions import ValidationError


def load_object(path: str) -> Any:
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValidationError(f"Invalid factory path {path!r}, expected 'module:attribute'")
    module = importlib.import_module(module_name)
    try:
        obj: Any = module
        for part in attr.split("."):
            obj = getattr(obj, part)
    except AttributeError as exc:
        raise ValidationError(f"{module_name} has no attribute {attr!r}") from exc
    return obj


def build_from_path(path: str) -> Any:
    """Load the factory at ``path`` and call it with no arguments."""
    factory = load_object(path)
    return factory()
