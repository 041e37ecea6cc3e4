"""Per-render-cycle state: thrown content and the partial locals stack."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from viewkit.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

FOR_LAYOUT = "for_layout"


class ContentStore:
    """Key to text mapping used to hand rendered fragments to layouts.

    Writing a key replaces whatever was stored under it. Keys that were never
    written are absent rather than empty.
    """

    def __init__(self):
        self._content: dict[str, str] = {}

    def catch(self, key: str = FOR_LAYOUT) -> str | None:
        """Return the content thrown under key, or None."""
        return self._content.get(key)

    def has(self, key: str = FOR_LAYOUT) -> bool:
        """Check whether content was thrown under key."""
        return key in self._content

    def throw(self, key: str, text: str) -> None:
        """Store text under key, replacing earlier content."""
        self._content[key] = text
        log_with_context(
            logger,
            "debug",
            "Content thrown",
            content_key=key,
            length=len(text),
            event_type="content_thrown",
        )


class RenderCycle:
    """State owned by one render cycle (one controller instance).

    Holds the ContentStore and the stack of partial locals frames. Nested
    partial calls push a frame on entry and get the previous one back on exit,
    including when the partial raises.
    """

    def __init__(self):
        self.content = ContentStore()
        self.partial_locals: dict[str, Any] = {}
        self._saved_locals: list[dict[str, Any]] = []

    @contextmanager
    def partial_scope(self) -> Iterator[None]:
        """Save the current partial locals frame and restore it on exit."""
        self._saved_locals.append(self.partial_locals)
        try:
            yield
        finally:
            self.partial_locals = self._saved_locals.pop()

    @property
    def depth(self) -> int:
        """Number of partial calls currently on the stack."""
        return len(self._saved_locals)
