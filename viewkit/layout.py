"""Layout lookup with the controller / application fallback chain."""

from typing import TYPE_CHECKING

from viewkit.config import get_settings
from viewkit.exceptions import InvalidRenderOptionException, TemplateNotFoundException
from viewkit.logging_config import get_logger, log_with_context
from viewkit.models.render_options import LayoutOption
from viewkit.resolver import TemplateResolver
from viewkit.template_engine import CompiledTemplate

if TYPE_CHECKING:
    from viewkit.controller import Controller

logger = get_logger(__name__)


class LayoutResolver:
    """Decides which layout, if any, wraps a controller's output.

    An explicitly requested layout must exist. Without one, a layout named
    after the controller is tried, then the default ``application`` layout,
    and finding neither simply means no layout.
    """

    def __init__(self, controller: "Controller", resolver: TemplateResolver):
        settings = get_settings()
        self.controller = controller
        self.resolver = resolver
        self.layout_dir = settings.layout_dir
        self.default_layout = settings.default_layout

    def layout_name(self, requested: LayoutOption) -> str | None:
        """Turn a layout option into a layout name.

        A callable is called once with the controller. Its result must be a
        name, None or False.
        """
        if callable(requested):
            requested = requested(self.controller)
            if callable(requested):
                raise InvalidRenderOptionException(
                    "A layout callable must return a layout name, not another callable", "layout"
                )
        if requested is None or requested is False or requested is True:
            return None
        return str(requested)

    def resolve_layout(self, requested: LayoutOption = None) -> CompiledTemplate | None:
        """Find the layout to render.

        The content type is added to the layout name unless the name already
        contains a ".", e.g. ``"print.pdf"``.

        Raises:
            TemplateNotFoundException: If an explicitly requested layout does not exist
        """
        name = self.layout_name(requested)
        content_type = self.controller.content_type

        if name:
            resolved = self.resolver.resolve(name, None if "." in name else content_type, self.layout_dir)
            if not resolved.found:
                raise TemplateNotFoundException(
                    f"No layout found at {resolved.location}.*", location=resolved.location
                )
            self._log_layout(name, resolved.location)
            return resolved.method

        for candidate in (self.controller.controller_name, self.default_layout):
            resolved = self.resolver.resolve(candidate, content_type, self.layout_dir)
            if resolved.found:
                self._log_layout(candidate, resolved.location)
                return resolved.method
        return None

    def _log_layout(self, name: str, location: str) -> None:
        log_with_context(
            logger,
            "debug",
            "Layout resolved",
            layout=name,
            location=location,
            controller=self.controller.controller_name,
            event_type="layout_resolved",
        )
