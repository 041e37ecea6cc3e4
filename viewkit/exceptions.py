"""Custom exceptions for viewkit with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    # Generic errors
    VIEW_ERROR = "VIEW_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Resolution errors
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    NOT_ACCEPTABLE = "NOT_ACCEPTABLE"
    ACTION_NOT_FOUND = "ACTION_NOT_FOUND"

    # Usage errors
    CONTENT_ARGUMENT_ERROR = "CONTENT_ARGUMENT_ERROR"
    INVALID_RENDER_OPTION = "INVALID_RENDER_OPTION"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"


class ViewException(Exception):
    """Base exception for rendering errors with HTTP status code support.

    All custom exceptions should inherit from this class to ensure
    consistent error handling by the dispatch layer.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VIEW_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize view exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class TemplateNotFoundException(ViewException):
    """No template root produced an invocable template for a location."""

    def __init__(self, message: str, location: str | None = None, details: dict[str, Any] | None = None):
        details = dict(details or {})
        if location is not None:
            details.setdefault("location", location)
        super().__init__(
            message,
            code=ErrorCode.TEMPLATE_NOT_FOUND,
            status_code=404,
            details=details,
        )
        self.location = location


class NotAcceptableException(ViewException):
    """The negotiated content type cannot be produced."""

    def __init__(self, message: str, content_type: str | None = None, details: dict[str, Any] | None = None):
        details = dict(details or {})
        if content_type is not None:
            details.setdefault("content_type", content_type)
        super().__init__(
            message,
            code=ErrorCode.NOT_ACCEPTABLE,
            status_code=406,
            details=details,
        )
        self.content_type = content_type


class ActionNotFoundException(ViewException):
    """The controller has no public action with the requested name."""

    def __init__(self, action: str, controller: str):
        super().__init__(
            f"Action {action!r} was not found in {controller}",
            code=ErrorCode.ACTION_NOT_FOUND,
            status_code=404,
            details={"action": action, "controller": controller},
        )


class ContentArgumentException(ViewException, TypeError):
    """throw_content called without text or a block."""

    def __init__(self, message: str = "You must pass a block or a string into throw_content"):
        super().__init__(message, code=ErrorCode.CONTENT_ARGUMENT_ERROR)


class InvalidRenderOptionException(ViewException, ValueError):
    """A render option has a value that cannot be used."""

    def __init__(self, message: str, option: str | None = None):
        super().__init__(
            message,
            code=ErrorCode.INVALID_RENDER_OPTION,
            details={"option": option} if option else None,
        )


class ConfigurationException(ViewException):
    """Configuration errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)
