"""Controller base class with template, layout and partial rendering.

A controller instance lives for one request. Actions call ``render``,
``display`` or ``partial``; templates call back into ``catch_content``,
``throw_content`` and ``partial`` through the helpers in their context.
"""

import re
from collections.abc import Callable, Iterable, Mapping
from functools import cached_property
from pathlib import Path
from typing import Any

from fastapi import Request

from viewkit.config import get_settings
from viewkit.content_store import FOR_LAYOUT, RenderCycle
from viewkit.exceptions import (
    ActionNotFoundException,
    ConfigurationException,
    ContentArgumentException,
    InvalidRenderOptionException,
    NotAcceptableException,
    TemplateNotFoundException,
)
from viewkit.layout import LayoutResolver
from viewkit.logging_config import get_logger, log_with_context
from viewkit.mime import MimeRegistry, get_mime_registry
from viewkit.models.render_options import LayoutOption, RenderOptions, canonical_keys
from viewkit.resolver import NamingStrategy, TemplateResolver, TemplateRoot, controller_naming
from viewkit.template_engine import TemplateEngine, get_template_engine, template_helpers

logger = get_logger(__name__)

PARTIAL_ALIAS = re.compile(r".*/_([^.]*)")


class Text(str):
    """Literal text passed to render() instead of a template name."""


def controller_name_for(class_name: str) -> str:
    """``PostsController`` -> ``posts``, ``HTMLPages`` -> ``html_pages``."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", class_name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name).lower()
    if name.endswith("_controller"):
        name = name[: -len("_controller")]
    return name


class Controller:
    """Base class for controllers that render views.

    Class-level configuration (default render options, template roots and
    provided formats) is copied into each subclass when it is created, so
    changing it on a subclass never affects the parent.
    """

    controller_name: str = "controller"
    template_engine: TemplateEngine | None = None
    mime_registry: MimeRegistry | None = None

    _default_render_options: dict[str, Any] = {}
    _template_roots: list[TemplateRoot] | None = None
    _provided_formats: list[str] | None = None

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        if "controller_name" not in cls.__dict__:
            cls.controller_name = controller_name_for(cls.__name__)
        cls._default_render_options = dict(cls._default_render_options)
        if cls._template_roots is not None:
            cls._template_roots = list(cls._template_roots)
        if cls._provided_formats is not None:
            cls._provided_formats = list(cls._provided_formats)

    def __init__(
        self,
        request: Request | None = None,
        params: Mapping[str, Any] | None = None,
        action_name: str = "index",
        accept: str | None = None,
    ):
        """Create a controller for one request.

        Args:
            request: Incoming request, used for the Accept header when accept is not given
            params: Request parameters; ``format`` selects the content type
            action_name: Action being rendered
            accept: Accept header override
        """
        self.request = request
        self.params: dict[str, Any] = dict(params or {})
        self.action_name = action_name
        if accept is None and request is not None:
            accept = request.headers.get("accept")
        self.accept = accept
        self.status = 200
        self.headers: dict[str, str] = {}
        self.context: dict[str, Any] = {}
        self.render_cycle = RenderCycle()
        self._content_type: str | None = None

    # ------------------------------------------------------------------
    # Class-level configuration
    # ------------------------------------------------------------------

    @classmethod
    def default_render_options(cls) -> dict[str, Any]:
        """Return the render options every render call starts from."""
        return cls._default_render_options

    @classmethod
    def render_options(cls, options: Mapping[str, Any] | None = None, **kwargs: Any) -> dict[str, Any]:
        """Replace the class-level default render options."""
        cls._default_render_options = canonical_keys({**(options or {}), **kwargs})
        return cls._default_render_options

    @classmethod
    def layout(cls, layout: LayoutOption) -> dict[str, Any]:
        """Set the default layout, or disable layouts with None/False.

        A ``layout`` option passed to render still overrides this.
        """
        cls._default_render_options["layout"] = layout if layout else False
        return cls._default_render_options

    @classmethod
    def default_layout(cls) -> dict[str, Any]:
        """Go back to the controller / application layout fallback."""
        cls._default_render_options.pop("layout", None)
        return cls._default_render_options

    @classmethod
    def template_roots(cls) -> list[TemplateRoot]:
        """Template roots in declaration order (searched last to first)."""
        if cls._template_roots is None:
            return [TemplateRoot(Path(get_settings().template_root))]
        return list(cls._template_roots)

    @classmethod
    def add_template_root(cls, path: str | Path, naming: NamingStrategy | None = None) -> list[TemplateRoot]:
        """Declare a root that is searched before every root declared so far."""
        cls._template_roots = [*cls.template_roots(), _template_root(path, naming)]
        return cls.template_roots()

    @classmethod
    def set_template_roots(
        cls, roots: Iterable[TemplateRoot | str | Path | tuple[str | Path, NamingStrategy]]
    ) -> list[TemplateRoot]:
        """Replace the template roots for this class and its future subclasses."""
        normalized = []
        for root in roots:
            if isinstance(root, TemplateRoot):
                normalized.append(root)
            elif isinstance(root, tuple):
                normalized.append(_template_root(*root))
            else:
                normalized.append(_template_root(root))
        cls._template_roots = normalized
        return cls.template_roots()

    @classmethod
    def provided_formats(cls) -> list[str]:
        if cls._provided_formats is None:
            return [get_settings().default_format]
        return list(cls._provided_formats)

    @classmethod
    def provides(cls, *formats: str) -> list[str]:
        """Add formats this controller can render."""
        cls._check_formats(formats)
        current = cls.provided_formats()
        cls._provided_formats = current + [f for f in formats if f not in current]
        return cls.provided_formats()

    @classmethod
    def only_provides(cls, *formats: str) -> list[str]:
        """Replace the formats this controller can render."""
        cls._check_formats(formats)
        cls._provided_formats = list(dict.fromkeys(formats))
        return cls.provided_formats()

    @classmethod
    def does_not_provide(cls, *formats: str) -> list[str]:
        """Remove formats this controller can render."""
        cls._provided_formats = [f for f in cls.provided_formats() if f not in formats]
        return cls.provided_formats()

    @classmethod
    def mimes(cls) -> MimeRegistry:
        return cls.mime_registry or get_mime_registry()

    @classmethod
    def _check_formats(cls, formats: Iterable[str]) -> None:
        unknown = [f for f in formats if f not in cls.mimes()]
        if unknown:
            raise ConfigurationException(
                f"Cannot provide unregistered formats: {', '.join(unknown)}",
                details={"formats": unknown},
            )

    # ------------------------------------------------------------------
    # Request state
    # ------------------------------------------------------------------

    @property
    def content_type(self) -> str:
        """The negotiated format. Reading it fixes it for the rest of the request."""
        if self._content_type is None:
            self.content_type = self._negotiate_content_type()
        return self._content_type

    @content_type.setter
    def content_type(self, format: str) -> None:
        mime = self.mimes().get(format)
        if mime is None:
            raise NotAcceptableException(f"Unknown format {format!r}", content_type=format)
        self._content_type = format
        self.headers["Content-Type"] = mime.content_type_header

    def _negotiate_content_type(self) -> str:
        provided = self.provided_formats()
        if not provided:
            raise NotAcceptableException(f"{self.controller_name} does not provide any format")
        requested = self.params.get("format")
        if requested:
            if requested in provided:
                return requested
            raise NotAcceptableException(
                f"{self.controller_name} does not provide {requested!r} (provides {', '.join(provided)})",
                content_type=requested,
            )

        if not self.accept:
            return provided[0]
        for format in self.mimes().formats_for_accept(self.accept):
            if format == "*/*":
                return provided[0]
            if format in provided:
                return format

        log_with_context(
            logger,
            "info",
            "No provided format matches Accept header",
            controller=self.controller_name,
            accept=self.accept,
            provided=provided,
            event_type="negotiation_failed",
        )
        raise NotAcceptableException(
            f"None of the accepted types ({self.accept}) are provided by {self.controller_name}",
            details={"accept": self.accept, "provided": provided},
        )

    @cached_property
    def resolver(self) -> TemplateResolver:
        return TemplateResolver(self.template_roots(), self.template_engine or get_template_engine())

    @cached_property
    def layout_resolver(self) -> LayoutResolver:
        return LayoutResolver(self, self.resolver)

    @property
    def partial_locals(self) -> dict[str, Any]:
        """Locals of the partial currently being rendered."""
        return self.render_cycle.partial_locals

    def template_context(self) -> dict[str, Any]:
        """Variables available to a template rendered right now."""
        return {
            **self.context,
            **self.render_cycle.partial_locals,
            **template_helpers(self),
            "controller": self,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def is_action(self, name: str) -> bool:
        return not name.startswith("_") and not hasattr(Controller, name) and callable(getattr(self, name, None))

    def dispatch(self, action: str) -> str:
        """Call an action and return its body.

        Raises:
            ActionNotFoundException: If the controller has no such public action
        """
        if not self.is_action(action):
            raise ActionNotFoundException(action, type(self).__name__)
        self.action_name = action
        log_with_context(
            logger,
            "debug",
            "Dispatching action",
            controller=self.controller_name,
            action=action,
            event_type="action_dispatch",
        )
        result = getattr(self, action)()
        return "" if result is None else str(result)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, thing: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        """Render a template (and its layout) for the current content type.

        Args:
            thing: Template name (defaults to the current action), or ``Text``
                to render literal content. A mapping is taken as the options.
            options: Render options, see ``RenderOptions``; keyword arguments
                are merged over it.

        Returns:
            The rendered output, wrapped in a layout when one applies

        Raises:
            TemplateNotFoundException: If there is no template for the lookup,
                or an explicitly requested layout does not exist
        """
        if isinstance(thing, Mapping):
            options, thing = thing, None

        opts = RenderOptions.build(self.default_render_options(), options, kwargs)

        if thing is None:
            thing = self.action_name

        if opts.format:
            self.content_type = opts.format
        content_type = self.content_type

        self._handle_options(opts)

        if (isinstance(thing, str) and not isinstance(thing, Text)) or opts.template:
            resolved = self.resolver.resolve(str(thing), content_type, self.controller_name, opts)
            if not resolved.found:
                raise TemplateNotFoundException(
                    f"No template found at {resolved.location}.*", location=resolved.location
                )
            self.throw_content(FOR_LAYOUT, resolved.method(self))
        elif isinstance(thing, Text):
            self.throw_content(FOR_LAYOUT, thing)

        layout = None if opts.layout is False else self.layout_resolver.resolve_layout(opts.layout)
        return layout(self) if layout else self.catch_content(FOR_LAYOUT) or ""

    def display(self, obj: Any, thing: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        """Render a template for obj, or serialize obj when there is none.

        The transform is the method registered for the negotiated content
        type (``model_dump_json`` for json). Options that the rendering layer
        does not recognise are passed to it as keyword arguments, e.g.
        ``display(user, exclude={"password"})``. The transformed object is
        only wrapped in a layout when one is given explicitly.

        Args:
            obj: Object to serialize when no template exists
            thing: Template path (``str``) or the options mapping
            options: Render options

        Raises:
            NotAcceptableException: If no template exists and obj cannot be
                transformed into the content type
            TemplateNotFoundException: If an explicit layout does not exist
        """
        options = {**(options or {}), **kwargs}
        if isinstance(thing, str):
            options["template"], thing = thing, None
        elif isinstance(thing, Mapping):
            options, thing = {**thing, **kwargs}, None
        template = options.pop("template", None)

        try:
            return self.render(thing or self.action_name, {**options, "template": template})
        except TemplateNotFoundException as e:
            return self._display_transformed(obj, options, e)

    def _display_transformed(self, obj: Any, options: Mapping[str, Any], reason: TemplateNotFoundException) -> str:
        opts = RenderOptions.build(self.default_render_options(), options)
        content_type = self.content_type

        transform = self.mimes().transform_method_for(content_type)
        if not transform:
            raise NotAcceptableException(
                f"{reason.message} and there was no transform method registered for {content_type!r}",
                content_type=content_type,
            ) from reason
        method = getattr(obj, transform, None)
        if not callable(method):
            raise NotAcceptableException(
                f"{reason.message} and your object does not respond to #{transform}",
                content_type=content_type,
            ) from reason

        log_with_context(
            logger,
            "info",
            "No template found, transforming object",
            controller=self.controller_name,
            action=self.action_name,
            content_type=content_type,
            transform=transform,
            event_type="display_transform_fallback",
        )

        layout_name = self.layout_resolver.layout_name(opts.layout)
        layout = self.layout_resolver.resolve_layout(layout_name) if layout_name else None

        transform_options = opts.extras
        self.throw_content(FOR_LAYOUT, method(**transform_options) if transform_options else method())
        return layout(self) if layout else self.catch_content(FOR_LAYOUT)

    def partial(
        self,
        template: Any,
        options: Mapping[str, Any] | None = None,
        block: Callable[[Any], Any] | None = None,
        **kwargs: Any,
    ) -> str:
        """Render a partial template.

        ``partial("row")`` renders ``_row`` relative to the current controller,
        ``partial("shared/row")`` renders ``shared/_row``.

        Options:
            with: An object, or a list/tuple of objects, to render the partial
                once for. Each item is bound to ``as`` (default: the partial
                name) and ``partial_counter`` (from 1) / ``partial_size`` are set.
            as: Local name for the current item.
            format: Content type of the partial (default: the negotiated one).
            Anything else becomes a local inside the partial.

        Args:
            template: Partial name, optionally prefixed with a directory
            options: Partial options and locals
            block: Called with each ``with`` item before it is rendered

        Raises:
            TemplateNotFoundException: If the partial does not exist
        """
        template = str(template)
        if "/" in template:
            scope, _, base = template.rpartition("/")
            controller = scope.strip("/") or None
        else:
            base, controller = template, self.controller_name

        local_options = canonical_keys({**(options or {}), **kwargs})
        content_type = local_options.pop("format", None) or self.content_type

        resolved = self.resolver.resolve(f"_{base}", content_type, controller)
        if not resolved.found:
            raise TemplateNotFoundException(
                f"Could not find template at {resolved.location}.*", location=resolved.location
            )
        method = resolved.method

        with self.render_cycle.partial_scope():
            log_with_context(
                logger,
                "debug",
                "Rendering partial",
                location=resolved.location,
                depth=self.render_cycle.depth,
                event_type="partial_render",
            )
            if "with" not in local_options:
                self.render_cycle.partial_locals = local_options
                return method(self)

            with_ = local_options.pop("with")
            items = list(with_) if isinstance(with_, (list, tuple)) else [with_]
            alias = str(local_options.pop("as", None) or self._partial_alias(resolved.location, base))

            output = []
            for counter, item in enumerate(items, start=1):
                if block is not None:
                    block(item)
                self.render_cycle.partial_locals = {
                    **local_options,
                    "partial_size": len(items),
                    "partial_counter": counter,
                    alias: item,
                }
                output.append(method(self))
            return "".join(output)

    @staticmethod
    def _partial_alias(location: str, base: str) -> str:
        match = PARTIAL_ALIAS.match(location)
        return match.group(1) if match else base.split(".")[0]

    def _handle_options(self, opts: RenderOptions) -> None:
        if opts.status is not None:
            self.status = opts.status
        if opts.location is not None and opts.location is not False:
            if not isinstance(opts.location, str):
                raise InvalidRenderOptionException(
                    f"Unable to determine `location' given {opts.location!r}", "location"
                )
            self.headers["Location"] = opts.location

    # ------------------------------------------------------------------
    # Content capture
    # ------------------------------------------------------------------

    def catch_content(self, key: str = FOR_LAYOUT) -> str | None:
        """Content thrown under key, e.g. the action output inside a layout."""
        return self.render_cycle.content.catch(key)

    def thrown_content(self, key: str = FOR_LAYOUT) -> bool:
        """Check whether content was thrown under key."""
        return self.render_cycle.content.has(key)

    has_content = thrown_content

    def throw_content(self, key: str, text: Any = None, block: Callable[[], Any] | None = None) -> None:
        """Store text and/or the output of block under key for another template.

        Raises:
            ContentArgumentException: If neither text nor block is given
        """
        if text is None and block is None:
            raise ContentArgumentException()
        content = "" if text is None else str(text)
        if block is not None:
            content += str(block())
        self.render_cycle.content.throw(key, content)


def _template_root(path: str | Path, naming: NamingStrategy | None = None) -> TemplateRoot:
    if naming is not None and not callable(naming):
        raise ConfigurationException(f"Naming strategy for {path} must be callable, got {naming!r}")
    return TemplateRoot(Path(path), naming or controller_naming)
