"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from hiredesk_auth.core.container import ServiceContainer, get_container
from hiredesk_auth.services._shared.errors import UnauthorizedError

F = TypeVar("F", bound=Callable[..., Any])


def services() -> ServiceContainer:
    """Return the service container of the current app."""

    return get_container()


def bearer_token() -> str | None:
    """Extract the token from ``Authorization: Bearer <token>``, if any."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token; sets ``g.user_id``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise UnauthorizedError("Access token is missing")
        g.user_id = services().tokens.verify_access(token)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def success(message: str, data: Any = None, *, status: int = 200) -> Response:
    """Return the ``{"success": true, "message", "data"?}`` envelope."""

    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return json_response(body, status=status)


def json_body() -> dict[str, Any]:
    """Return the JSON object body, or ``{}`` when absent or not an object."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
