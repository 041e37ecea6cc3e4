"""Application factory for creating and configuring the FastAPI app."""

from collections.abc import Iterable

from fastapi import FastAPI

from viewkit import __version__
from viewkit.config import get_settings
from viewkit.controller import Controller
from viewkit.dispatch import action_endpoint
from viewkit.logging_config import get_logger, log_with_context, setup_logging
from viewkit.middleware.error_handlers import register_error_handlers

logger = get_logger(__name__)

Route = tuple[str, type[Controller], str]


def create_app(routes: Iterable[Route] = (), configure_logging: bool = False) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        routes: ``(path, controller class, action)`` triples mounted as GET endpoints
        configure_logging: Install the JSON/console logging handlers from settings

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_dir)

    app = FastAPI(title="viewkit", version=__version__)

    # Register exception handlers
    register_error_handlers(app)

    for path, controller_cls, action in routes:
        app.add_api_route(path, action_endpoint(controller_cls, action), methods=["GET"])
        log_with_context(
            logger,
            "debug",
            "Route mounted",
            path=path,
            controller=controller_cls.__name__,
            action=action,
            event_type="route_mounted",
        )

    return app
