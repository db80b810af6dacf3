"""
Hotel API Client

Async client for the remote hotel REST API:
- Bearer auth taken from the request's SessionContext
- One token refresh attempt on 401, then session invalidation
- Transport and HTTP failures mapped to the ApiError taxonomy
- Response unwrapping into one canonical shape per endpoint
"""

import logging
import math
from typing import Any, Optional, Type, TypeVar

import httpx
from fastapi import Depends, Request
from pydantic import BaseModel

from frontdesk.core.config import Settings, get_settings
from frontdesk.core.session import SessionContext, get_session
from frontdesk.schemas.base import Page

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class ApiError(Exception):
    """Failure talking to the hotel API. Surfaced to the caller as-is, never retried."""

    def __init__(self, message: str, status: Optional[int] = None, info: Any = None):
        self.message = message
        self.status = status
        self.info = info
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether a user-initiated retry might succeed."""
        return self.status is None or self.status >= 500


class NetworkError(ApiError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""


class BadRequestError(ApiError):
    """400/422: the backend rejected the payload."""


class UnauthorizedError(ApiError):
    """401: the session is no longer valid."""


class ForbiddenError(ApiError):
    """403: authenticated but lacking the required role."""


class NotFoundError(ApiError):
    """404: the entity does not exist (or is not visible to this user)."""


class ConflictError(ApiError):
    """409: the backend refused a concurrent or out-of-order change."""


class ServerError(ApiError):
    """5xx from the backend."""


_STATUS_ERRORS: dict[int, Type[ApiError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: BadRequestError,
}


def error_from_response(response: httpx.Response) -> ApiError:
    """Build the ApiError for a failed response, preferring the backend's message."""
    try:
        info = response.json()
    except ValueError:
        info = response.text or None

    message = None
    if isinstance(info, dict):
        message = info.get("message") or info.get("error") or info.get("detail")
    if not isinstance(message, str) or not message:
        message = response.reason_phrase or GENERIC_ERROR_MESSAGE

    if response.status_code >= 500:
        error_cls = ServerError
    else:
        error_cls = _STATUS_ERRORS.get(response.status_code, ApiError)
    return error_cls(message, status=response.status_code, info=info)


def unwrap(data: Any, *names: str) -> Any:
    """Return ``data[name]`` for the first wrapper name present, else ``data`` itself.

    The backend answers some endpoints with ``{"booking": {...}}`` and others
    with the bare entity.
    """
    if isinstance(data, dict):
        for name in names:
            if name in data and data[name] is not None:
                return data[name]
    return data


def unwrap_model(data: Any, model: Type[M], *names: str) -> M:
    return model.model_validate(unwrap(data, *names))


def unwrap_page(data: Any, model: Type[M], list_field: str) -> Page[M]:
    """Normalize a list response into ``Page``.

    Accepts a bare list, ``{list_field: [...], total, page, ...}``, or the same
    with counters nested under ``pagination``.
    """
    if isinstance(data, list):
        items = data
        meta: dict = {}
    elif isinstance(data, dict):
        items = data.get(list_field) or data.get("items") or data.get("data") or []
        meta = {**data, **(data.get("pagination") or {})}
    else:
        items, meta = [], {}

    limit = int(meta.get("limit") or max(len(items), 10))
    total = int(meta.get("total") or len(items))
    total_pages = int(meta.get("total_pages") or meta.get("pages") or math.ceil(total / limit))
    return Page[model](
        items=[model.model_validate(item) for item in items],
        total=total,
        page=int(meta.get("page") or 1),
        limit=limit,
        total_pages=total_pages,
    )


class HotelApiClient:
    """Client for the remote hotel API, bound to one session."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        session: SessionContext,
        refresh_enabled: bool = True,
    ):
        self.http = http
        self.session = session
        self.refresh_enabled = refresh_enabled

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        response = await self._send(method, path, params=params, json=json)

        if (
            response.status_code == 401
            and self.refresh_enabled
            and self.session.refresh_token
            and await self.refresh_session()
        ):
            response = await self._send(method, path, params=params, json=json)

        if response.is_error:
            error = error_from_response(response)
            logger.warning(f"[API] {method} {path} failed: {response.status_code} {error.message}")
            if response.status_code == 401:
                self.session.invalidate()
            elif response.status_code == 403:
                logger.error(f"[API] {method} {path} forbidden - user may lack the required role")
            raise error

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _send(self, method: str, path: str, *, params: Any, json: Any) -> httpx.Response:
        try:
            return await self.http.request(
                method,
                path,
                params=params,
                json=json,
                headers=self.session.auth_headers(),
            )
        except httpx.TimeoutException as e:
            logger.error(f"[API] {method} {path} timed out: {e}")
            raise NetworkError("The hotel service took too long to respond.") from e
        except httpx.HTTPError as e:
            logger.error(f"[API] {method} {path} transport error: {e}")
            raise NetworkError("Could not reach the hotel service.") from e

    async def refresh_session(self) -> bool:
        """Exchange the refresh token for a new access token."""
        try:
            response = await self.http.post(
                "/auth/refresh",
                json={"refresh_token": self.session.refresh_token},
            )
        except httpx.HTTPError as e:
            logger.error(f"[SESSION] Token refresh error: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"[SESSION] Token refresh failed: {response.status_code}")
            return False

        data = unwrap(response.json(), "data")
        if not isinstance(data, dict):
            return False
        token = data.get("token") or data.get("access_token")
        if not token:
            return False
        self.session.update_tokens(token, data.get("refresh_token"))
        logger.info("[SESSION] Access token refreshed")
        return True

    async def get(self, path: str, params: Any = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


def create_http_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Shared connection pool for all sessions (opened in the app lifespan)."""
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=settings.api_timeout_seconds,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        transport=transport,
    )


def build_api_client(request: Request, session: SessionContext) -> HotelApiClient:
    settings = get_settings()
    return HotelApiClient(
        request.app.state.http,
        session,
        refresh_enabled=settings.auth_refresh_enabled,
    )


async def get_api_client(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> HotelApiClient:
    """Per-request API client bound to the caller's session."""
    return build_api_client(request, session)
