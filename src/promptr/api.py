"""Framework-independent request handlers for the Promptr HTTP endpoints.

Each handler takes an :class:`ApiRequest` and returns an :class:`ApiResponse`
with a JSON-serializable body. :func:`handle` routes by path and method and
adds CORS headers; any web server can adapt its request objects to these
dataclasses and mount :func:`handle`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from . import auth
from .config import Config
from .exceptions import (
    AuthenticationError,
    DuplicateEntryError,
    PromptrError,
    ValidationFailedError,
)
from .models import MemoryCreate
from .naming import generate_title
from .store import JsonStore

logger = logging.getLogger(__name__)


@dataclass
class ApiRequest:
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    query: Dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


@dataclass
class ApiResponse:
    status: int
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


def cors_headers(origin: Optional[str], methods: str, allowed_origin: str = "") -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allowed_origin or origin or "*",
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def _error(status: int, message: str, **extra: Any) -> ApiResponse:
    return ApiResponse(status, {"error": message, **extra})


def _body(request: ApiRequest) -> Dict[str, Any]:
    return request.body if isinstance(request.body, dict) else {}


# ----------------------------------------------------------------------
# handlers


def generate_name(request: ApiRequest, store: JsonStore) -> ApiResponse:
    text = _body(request).get("text")
    if not text or not isinstance(text, str):
        return _error(400, "Text is required")
    return ApiResponse(200, {"name": generate_title(text)})


def list_memories(request: ApiRequest, store: JsonStore) -> ApiResponse:
    user_id = auth.user_id_from_headers(store, request.headers)
    if not user_id:
        return _error(401, "Unauthorized")
    memories = store.list_memories(user_id)
    return ApiResponse(200, [m.model_dump(mode="json") for m in memories])


def create_memory(request: ApiRequest, store: JsonStore) -> ApiResponse:
    user_id = auth.user_id_from_headers(store, request.headers)
    if not user_id:
        return _error(401, "Unauthorized")
    body = _body(request)
    if not body.get("text"):
        return _error(400, "Text is required")
    try:
        item = MemoryCreate.model_validate(body)
    except ValidationError as e:
        return _error(400, e.errors()[0]["msg"])
    store.add_memory(user_id, item)
    return ApiResponse(200, {"success": True})


def delete_memory(request: ApiRequest, store: JsonStore) -> ApiResponse:
    user_id = auth.user_id_from_headers(store, request.headers)
    if not user_id:
        return _error(401, "Unauthorized")
    memory_id = request.query.get("id")
    if not memory_id:
        return _error(400, "Memory ID is required")
    store.delete_memory(memory_id, user_id)
    return ApiResponse(200, {"success": True})


def join_waitlist(request: ApiRequest, store: JsonStore) -> ApiResponse:
    email = _body(request).get("email")
    if not email or not isinstance(email, str):
        return _error(400, "Email is required")
    try:
        store.add_waitlist_email(email)
    except DuplicateEntryError as e:
        return ApiResponse(200, {"code": e.code, "error": "Already on the waitlist"})
    return ApiResponse(200, {"success": True})


def record_page_view(request: ApiRequest, store: JsonStore) -> ApiResponse:
    body = _body(request)
    path = body.get("path")
    if not path or not isinstance(path, str):
        return _error(400, "Path is required")
    try:
        store.record_page_view(
            path,
            timestamp=body.get("timestamp"),
            referrer=body.get("referrer"),
            user_agent=body.get("userAgent"),
        )
    except (PromptrError, ValidationError, OSError) as e:
        # tracking failures never surface to the visitor
        logger.error("Page view tracking error: %s", e)
        return ApiResponse(200, {"success": False})
    return ApiResponse(200, {"success": True})


def signup(request: ApiRequest, store: JsonStore) -> ApiResponse:
    body = _body(request)
    try:
        user = auth.sign_up(store, body.get("email") or "", body.get("password") or "")
    except DuplicateEntryError as e:
        return _error(400, str(e.args[0]))
    session = auth.sign_in(store, user.email, body.get("password") or "")
    return ApiResponse(200, {"token": session.token, "user_id": user.id})


def login(request: ApiRequest, store: JsonStore) -> ApiResponse:
    body = _body(request)
    session = auth.sign_in(store, body.get("email") or "", body.get("password") or "")
    return ApiResponse(200, {"token": session.token, "user_id": session.user_id})


# ----------------------------------------------------------------------
# routing

Handler = Callable[[ApiRequest, JsonStore], ApiResponse]


@dataclass(frozen=True)
class Route:
    handlers: Dict[str, Handler]
    failure_message: str = "Server error"
    cors: bool = False

    @property
    def methods(self) -> str:
        return ", ".join(list(self.handlers) + (["OPTIONS"] if self.cors else []))


ROUTES: Dict[str, Route] = {
    "/api/memories/generate-name": Route(
        {"POST": generate_name}, failure_message="Failed to generate name", cors=True
    ),
    "/api/memories": Route(
        {"GET": list_memories, "POST": create_memory, "DELETE": delete_memory}, cors=True
    ),
    "/api/waitlist": Route({"POST": join_waitlist}),
    "/api/analytics/pageview": Route({"POST": record_page_view}),
    "/api/auth/signup": Route({"POST": signup}),
    "/api/auth/login": Route({"POST": login}),
}


def _dispatch(route: Route, request: ApiRequest, store: JsonStore) -> ApiResponse:
    method = request.method.upper()
    if route.cors and method == "OPTIONS":
        return ApiResponse(204)
    handler = route.handlers.get(method)
    if handler is None:
        return _error(405, "Method not allowed")
    try:
        return handler(request, store)
    except ValidationFailedError as e:
        return _error(400, str(e.args[0]))
    except AuthenticationError as e:
        return _error(401, str(e.args[0]))
    except PromptrError as e:
        logger.error("%s %s failed: %s", method, request.path, e)
        return _error(400, str(e.args[0]))
    except Exception:
        logger.exception("%s %s failed", method, request.path)
        return _error(500, route.failure_message)


def handle(request: ApiRequest, *, store: JsonStore, config: Optional[Config] = None) -> ApiResponse:
    """Route ``request`` to its handler and attach CORS headers where the route allows them."""
    route = ROUTES.get(request.path.rstrip("/") or "/")
    if route is None:
        return _error(404, "Not found")
    response = _dispatch(route, request, store)
    if route.cors:
        allowed_origin = config.get("allowed_origin") if config else ""
        response.headers.update(
            cors_headers(request.header("origin"), route.methods, allowed_origin or "")
        )
    return response


__all__ = [
    "ApiRequest",
    "ApiResponse",
    "ROUTES",
    "Route",
    "cors_headers",
    "handle",
]
