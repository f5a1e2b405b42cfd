# manages the connection to the backend, provides request helpers internal to api package
from contextlib import asynccontextmanager
from typing import Any, Callable, List, Optional

import httpx

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

API_URL = settings.API_URL

_token: Optional[str] = None
_unauthorized_hooks: List[Callable[[], None]] = []

# replaced by tests with an httpx.MockTransport
_transport: Optional[httpx.AsyncBaseTransport] = None


class ApiError(Exception):
    """A request to the backend failed. ``status`` is None for transport errors."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class UnauthorizedError(ApiError):
    """HTTP 401; the token has already been dropped when this is raised."""


def set_token(token: Optional[str]) -> None:
    global _token
    _token = token


def get_token() -> Optional[str]:
    return _token


def on_unauthorized(hook: Callable[[], None]) -> None:
    """Register a callback run whenever the backend answers 401."""
    if hook not in _unauthorized_hooks:
        _unauthorized_hooks.append(hook)


def clear_unauthorized_hooks() -> None:
    _unauthorized_hooks.clear()


@asynccontextmanager
async def connect() -> httpx.AsyncClient:
    """Async context manager yielding an httpx client bound to API_URL.

    The bearer token, if any, is attached to every request.
    """
    headers = {"Content-Type": "application/json"}
    if _token:
        headers["Authorization"] = f"Bearer {_token}"

    client = httpx.AsyncClient(
        base_url=API_URL,
        headers=headers,
        timeout=settings.REQUEST_TIMEOUT,
        transport=_transport,
    )
    try:
        yield client
    finally:
        await client.aclose()


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback


def _handle_unauthorized() -> None:
    set_token(None)
    for hook in list(_unauthorized_hooks):
        hook()


async def request(
    method: str,
    path: str,
    *,
    json: Any = None,
    params: Optional[dict] = None,
    fallback: str = "Request failed",
) -> Any:
    """
    Send one request and return the decoded JSON body (None when empty).

    Raises UnauthorizedError on 401 and ApiError on any other failure.
    """
    async with connect() as client:
        try:
            response = await client.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            _logger.error(f"{method} {path} failed: {e}")
            raise ApiError(f"{fallback}: {e}") from e

    if response.status_code == 401:
        _handle_unauthorized()
        raise UnauthorizedError(_error_message(response, "Session expired"), 401)

    if response.is_error:
        message = _error_message(response, fallback)
        _logger.error(f"{method} {path} -> {response.status_code}: {message}")
        raise ApiError(message, response.status_code)

    if not response.content:
        return None
    return response.json()
