"""FastAPI endpoints that run controller actions."""

from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response

from viewkit.controller import Controller
from viewkit.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


def build_controller(controller_cls: type[Controller], request: Request, action: str) -> Controller:
    """Create a controller for a request.

    Query parameters and path parameters become ``params``; path parameters
    win on conflicting names.
    """
    params = {**request.query_params, **request.path_params}
    return controller_cls(request=request, params=params, action_name=action)


def action_endpoint(controller_cls: type[Controller], action: str) -> Callable[[Request], Awaitable[Response]]:
    """Create an endpoint that dispatches one controller action.

    Example:
        app.add_api_route("/posts", action_endpoint(Posts, "index"), methods=["GET"])

    Args:
        controller_cls: Controller class handling the request
        action: Name of the action method

    Returns:
        Async endpoint returning the rendered body with the controller's
        status code and headers
    """

    async def endpoint(request: Request) -> Response:
        controller = build_controller(controller_cls, request, action)
        body = controller.dispatch(action)
        log_with_context(
            logger,
            "info",
            "Action rendered",
            controller=controller.controller_name,
            action=action,
            status_code=controller.status,
            content_type=controller.headers.get("Content-Type"),
            event_type="action_rendered",
        )
        headers = dict(controller.headers)
        media_type = headers.pop("Content-Type", None)
        return Response(content=body, status_code=controller.status, headers=headers, media_type=media_type)

    endpoint.__name__ = f"{controller_cls.__name__}_{action}"
    return endpoint
