"""Template resolution across layered template roots."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from viewkit.logging_config import get_logger, log_with_context
from viewkit.models.render_options import RenderOptions
from viewkit.template_engine import CompiledTemplate, TemplateEngine

logger = get_logger(__name__)


class NamingStrategy(Protocol):
    """Builds a template name, relative to a root, for a lookup."""

    def __call__(self, context: str, content_type: str | None, controller: str | None) -> str: ...


def append_content_type(name: str, content_type: str | None) -> str:
    """Add ``.{content_type}`` unless it is missing or already the suffix."""
    if content_type and not name.endswith(f".{content_type}"):
        return f"{name}.{content_type}"
    return name


def controller_naming(context: str, content_type: str | None, controller: str | None) -> str:
    """Default naming: ``{controller}/{context}.{content_type}``."""
    name = f"{controller}/{context}" if controller else context
    return append_content_type(name, content_type)


def flat_naming(context: str, content_type: str | None, controller: str | None) -> str:
    """Naming for roots that keep every template in one directory: ``{controller}_{context}``."""
    name = f"{controller}_{context}" if controller else context
    return append_content_type(name, content_type)


@dataclass(frozen=True)
class TemplateRoot:
    """A directory searched for templates and the naming rule used inside it."""

    path: Path
    naming: NamingStrategy = field(default=controller_naming)

    def location_for(self, context: str, content_type: str | None, controller: str | None) -> str:
        return str(self.path / self.naming(context, content_type, controller))


@dataclass(frozen=True)
class ResolvedTemplate:
    """Result of a lookup. location is set even when nothing was found."""

    method: CompiledTemplate | None
    location: str

    @property
    def found(self) -> bool:
        return self.method is not None and callable(self.method)


class TemplateResolver:
    """Finds the template for a context by searching roots, newest first."""

    def __init__(self, roots: Sequence[TemplateRoot], engine: TemplateEngine):
        self.roots = list(roots)
        self.engine = engine

    def resolve(
        self,
        context: str,
        content_type: str | None,
        controller: str | None = None,
        options: RenderOptions | None = None,
    ) -> ResolvedTemplate:
        """Resolve a template, searching the most recently declared root first.

        An explicit ``options.template`` replaces the context and is named
        without controller scope.

        Args:
            context: Action name or template base name
            content_type: Negotiated format, appended to the name
            controller: Controller scope passed to the naming strategy
            options: Render options; only ``template`` is consulted

        Returns:
            ResolvedTemplate with the template (or None) and the last location tried
        """
        template = options.template if options is not None else None
        location = ""
        for root in reversed(self.roots):
            if template:
                location = root.location_for(template, content_type, None)
            else:
                location = root.location_for(context, content_type, controller)
            method = self.engine.lookup_invocable(location)
            if method is not None and callable(method):
                log_with_context(
                    logger,
                    "debug",
                    "Template resolved",
                    context=context,
                    location=location,
                    event_type="template_resolved",
                )
                return ResolvedTemplate(method, location)

        log_with_context(
            logger,
            "debug",
            "Template not found",
            context=template or context,
            location=location,
            roots=len(self.roots),
            event_type="template_not_found",
        )
        return ResolvedTemplate(None, location)
