"""Registered formats: mime types and the transform used when no template exists."""

from dataclasses import dataclass, field

from viewkit.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class Mime:
    """A registered format.

    Attributes:
        format: Short name used in template file names (``index.html.jinja``)
        mime_types: Accept/Content-Type values, the first one is sent in responses
        transform_method: Name of the object method producing this format, if any
        charset: Charset added to the Content-Type header
    """

    format: str
    mime_types: tuple[str, ...]
    transform_method: str | None = None
    charset: str | None = "utf-8"

    @property
    def content_type_header(self) -> str:
        header = self.mime_types[0]
        return f"{header}; charset={self.charset}" if self.charset else header


@dataclass
class MimeRegistry:
    """Format registry consulted by content negotiation and display()."""

    _types: dict[str, Mime] = field(default_factory=dict)

    def add_mime_type(
        self,
        format: str,
        transform_method: str | None,
        *mime_types: str,
        charset: str | None = "utf-8",
    ) -> Mime:
        """Register (or replace) a format."""
        if not mime_types:
            raise ValueError(f"At least one mime type is required for {format!r}")
        mime = Mime(format, tuple(mime_types), transform_method, charset)
        self._types[format] = mime
        log_with_context(
            logger,
            "debug",
            "Mime type registered",
            format=format,
            mime_types=list(mime_types),
            transform_method=transform_method,
            event_type="mime_registered",
        )
        return mime

    def remove_mime_type(self, format: str) -> bool:
        """Unregister a format. Returns False if it was not registered."""
        return self._types.pop(format, None) is not None

    def get(self, format: str) -> Mime | None:
        return self._types.get(format)

    def transform_method_for(self, format: str) -> str | None:
        """Name of the serialization method registered for a format."""
        mime = self._types.get(format)
        return mime.transform_method if mime else None

    def formats_for_accept(self, accept: str | None) -> list[str]:
        """Registered formats matching an Accept header, best match first.

        ``*/*`` is returned as the literal ``"*/*"`` entry so callers can pick
        their own preferred format at that position.
        """
        formats: list[str] = []
        for media_range in parse_accept(accept):
            if media_range == "*/*":
                candidates = ["*/*"]
            else:
                candidates = [m.format for m in self._types.values() if _matches(media_range, m.mime_types)]
            for candidate in candidates:
                if candidate not in formats:
                    formats.append(candidate)
        return formats

    def __contains__(self, format: object) -> bool:
        return format in self._types


def parse_accept(accept: str | None) -> list[str]:
    """Media ranges of an Accept header ordered by quality, then position.

    Ranges with q=0 are dropped.
    """
    if not accept:
        return []
    ranked: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept.split(",")):
        media_range, *params = (piece.strip() for piece in part.split(";"))
        if not media_range:
            continue
        quality = 1.0
        for param in params:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality > 0:
            ranked.append((-quality, position, media_range.lower()))
    return [media_range for _, _, media_range in sorted(ranked)]


def _matches(media_range: str, mime_types: tuple[str, ...]) -> bool:
    if media_range.endswith("/*"):
        prefix = media_range[:-1]
        return any(mime_type.startswith(prefix) for mime_type in mime_types)
    return media_range in mime_types


def default_registry() -> MimeRegistry:
    """Registry pre-populated with the formats every application gets."""
    registry = MimeRegistry()
    registry.add_mime_type("html", None, "text/html", "application/xhtml+xml")
    registry.add_mime_type("text", "to_text", "text/plain")
    # pydantic models serialize themselves
    registry.add_mime_type("json", "model_dump_json", "application/json", "text/x-json")
    registry.add_mime_type("js", "model_dump_json", "text/javascript", "application/javascript")
    registry.add_mime_type("xml", "to_xml", "application/xml", "text/xml")
    return registry


_registry = default_registry()


def get_mime_registry() -> MimeRegistry:
    """Get global mime registry instance."""
    return _registry
