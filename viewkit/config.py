from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path.cwd()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Rendering settings with validation.

    Every field has a default; values may be overridden through VIEWKIT_*
    environment variables or a .env file in the working directory.

    Uses Pydantic v2 API:
    - model_config with SettingsConfigDict
    - @field_validator decorator
    """

    # Template lookup
    template_root: Path = Field(default=BASE_DIR / "views", description="Default template root directory")
    template_extensions: list[str] = Field(
        default_factory=lambda: ["jinja", "jinja2", "j2"],
        min_length=1,
        description="Template file extensions, tried in order",
    )
    autoescape: bool = Field(default=False, description="Enable Jinja2 autoescaping")

    # Layouts
    layout_dir: str = Field(default="layout", description="Controller scope layouts are looked up under")
    default_layout: str = Field(default="application", description="Layout used when no controller layout exists")

    # Content negotiation
    default_format: str = Field(default="html", min_length=1, description="Format provided by every controller")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path | None = Field(default=None, description="Directory for JSON log files (None disables)")

    model_config = SettingsConfigDict(
        env_prefix="VIEWKIT_",
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,  # Validate defaults too
    )

    @field_validator("template_extensions", mode="after")
    @classmethod
    def validate_template_extensions(cls, v: list[str]) -> list[str]:
        """Strip leading dots and reject blank extensions."""
        extensions = [ext.strip().lstrip(".") for ext in v]
        if not all(extensions):
            raise ValueError("template_extensions must not contain empty values")
        return extensions

    @field_validator("layout_dir", "default_layout", mode="after")
    @classmethod
    def validate_layout_names(cls, v: str) -> str:
        """Ensure layout names are not empty or whitespace."""
        v = v.strip().strip("/")
        if not v:
            raise ValueError("layout names cannot be empty")
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level is a known logging level."""
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance.

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Settings instance so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
