"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from viewkit.config import reset_settings
from viewkit.controller import Controller
from viewkit.template_engine import reset_template_engine


@pytest.fixture(autouse=True)
def fresh_globals():
    """Rebuild settings and the template engine for every test."""
    reset_settings()
    reset_template_engine()
    yield
    reset_settings()
    reset_template_engine()


@pytest.fixture
def views(tmp_path) -> Path:
    """Empty template root."""
    root = tmp_path / "views"
    root.mkdir()
    return root


@pytest.fixture
def write_template() -> Callable[[Path, str, str], Path]:
    """Write a template file below a root, creating directories."""

    def write(root: Path, name: str, source: str) -> Path:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return write


@pytest.fixture
def make_controller(views) -> Callable[..., type[Controller]]:
    """Create a fresh Controller subclass using the views root."""

    def factory(name: str = "Posts", base: type[Controller] = Controller, **attrs: Any) -> type[Controller]:
        controller_cls = type(name, (base,), attrs)
        if base is Controller:
            controller_cls.set_template_roots([views])
        return controller_cls

    return factory
