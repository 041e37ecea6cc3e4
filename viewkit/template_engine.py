"""Jinja2-backed template lookup.

The rendering layer never inspects template files itself. It hands a location
such as ``views/posts/index.html`` to ``TemplateEngine.lookup_invocable`` and
gets back either a ``CompiledTemplate`` (the first existing
``{location}.{extension}`` file, compiled) or None.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FunctionLoader, Template
from markupsafe import Markup

from viewkit.config import get_settings
from viewkit.logging_config import get_logger, log_with_context

if TYPE_CHECKING:
    from viewkit.controller import Controller

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompiledTemplate:
    """A compiled template bound to the file it came from."""

    template: Template
    path: str

    def __call__(self, controller: "Controller") -> str:
        """Render the template with the controller's current template context."""
        return self.template.render(controller.template_context())


def _load_source(name: str) -> tuple[str, str, Callable[[], bool]] | None:
    path = Path(name)
    if not path.is_file():
        return None
    mtime = path.stat().st_mtime
    source = path.read_text(encoding="utf-8")

    def uptodate() -> bool:
        return path.is_file() and path.stat().st_mtime == mtime

    return source, str(path), uptodate


class TemplateEngine:
    """Resolves template locations to compiled Jinja2 templates.

    Templates are loaded by full path, so a location is the template root joined
    with the name produced by a naming strategy. Compiled templates are cached
    by Jinja2 and reloaded when the file changes.
    """

    def __init__(self, extensions: list[str] | None = None, autoescape: bool | None = None):
        settings = get_settings()
        self.extensions = [ext.lstrip(".") for ext in (extensions or settings.template_extensions)]
        self.env = Environment(
            loader=FunctionLoader(_load_source),
            autoescape=settings.autoescape if autoescape is None else autoescape,
        )

    def lookup_invocable(self, location: str) -> CompiledTemplate | None:
        """Compile the first ``{location}.{extension}`` file that exists.

        Args:
            location: Template location without the engine extension

        Returns:
            CompiledTemplate, or None when no file exists for any extension
        """
        for extension in self.extensions:
            candidate = f"{location}.{extension}"
            if Path(candidate).is_file():
                log_with_context(
                    logger,
                    "debug",
                    "Template file found",
                    location=location,
                    path=candidate,
                    event_type="template_file_found",
                )
                return CompiledTemplate(self.env.get_template(candidate), candidate)
        return None


def template_helpers(controller: "Controller") -> dict[str, Any]:
    """Functions exposed to every template rendered for a controller.

    ``throw_content`` accepts Jinja2's ``caller`` so a call block captures its
    body::

        {% call throw_content("sidebar") %}<ul>...</ul>{% endcall %}
    """

    def catch_content(key: str = "for_layout") -> Markup | None:
        content = controller.catch_content(key)
        return None if content is None else Markup(content)

    def throw_content(key: str, text: str | None = None, caller: Callable[[], str] | None = None) -> str:
        controller.throw_content(key, text, caller)
        return ""

    def partial(
        template: str,
        options: Mapping[str, Any] | None = None,
        caller: Callable[..., Any] | None = None,
        **kwargs: Any,
    ) -> Markup:
        return Markup(controller.partial(template, {**(options or {}), **kwargs}, block=caller))

    return {
        "catch_content": catch_content,
        "thrown_content": controller.thrown_content,
        "throw_content": throw_content,
        "partial": partial,
    }


# Global engine instance, created on first use so settings are read lazily
_engine: TemplateEngine | None = None


def get_template_engine() -> TemplateEngine:
    """Get global template engine instance."""
    global _engine
    if _engine is None:
        _engine = TemplateEngine()
    return _engine


def reset_template_engine() -> None:
    """Drop the global engine so it is rebuilt from current settings."""
    global _engine
    _engine = None
