"""Unit tests for configuration."""

from pathlib import Path
from unittest.mock import patch

import pytest

from viewkit.config import Settings, get_settings, reset_settings


def test_settings_defaults():
    """Test Settings model has correct defaults."""
    settings = Settings()

    assert settings.layout_dir == "layout"
    assert settings.default_layout == "application"
    assert settings.template_extensions == ["jinja", "jinja2", "j2"]
    assert settings.default_format == "html"
    assert settings.autoescape is False
    assert settings.log_level == "INFO"
    assert settings.log_dir is None


def test_settings_env_loading():
    """Test settings can load from environment."""
    with patch.dict(
        "os.environ",
        {
            "VIEWKIT_TEMPLATE_ROOT": "/srv/app/views",
            "VIEWKIT_DEFAULT_LAYOUT": "site",
            "VIEWKIT_AUTOESCAPE": "true",
        },
    ):
        settings = Settings()

    assert settings.template_root == Path("/srv/app/views")
    assert settings.default_layout == "site"
    assert settings.autoescape is True


def test_template_extensions_are_normalized():
    settings = Settings(template_extensions=[".j2", " jinja "])

    assert settings.template_extensions == ["j2", "jinja"]


def test_empty_layout_dir_rejected():
    with pytest.raises(ValueError):
        Settings(layout_dir="  ")


def test_log_level_validation():
    assert Settings(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValueError):
        Settings(log_level="chatty")


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_reset_settings_rereads_environment():
    first = get_settings()
    with patch.dict("os.environ", {"VIEWKIT_LAYOUT_DIR": "layouts"}):
        reset_settings()
        second = get_settings()

    assert second is not first
    assert second.layout_dir == "layouts"
