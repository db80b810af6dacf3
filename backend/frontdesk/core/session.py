"""Session context and authentication guards.

The session (bearer token, refresh token, current user) is built once per
request and handed explicitly to the API client. Nothing is kept in module
globals; invalidation and refresh are explicit calls on the context.
"""

import hashlib
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from frontdesk.core.config import Settings, get_settings
from frontdesk.models.enums import UserRole
from frontdesk.schemas.user import User

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

ANONYMOUS = "anonymous"


def hash_token(token: str) -> str:
    """Hash a token so it can key caches without being stored in clear."""
    return hashlib.sha256(token.encode()).hexdigest()


class SessionContext:
    """Credentials and identity for one client session."""

    def __init__(
        self,
        token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        user: Optional[User] = None,
    ):
        self.token = token
        self.refresh_token = refresh_token
        self.user = user
        self.original_fingerprint = self.fingerprint
        self.invalidated = False
        self.tokens_changed = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and not self.invalidated

    @property
    def fingerprint(self) -> str:
        """Stable identifier of the credentials, used to scope the query cache."""
        return hash_token(self.token) if self.token else ANONYMOUS

    def auth_headers(self) -> dict[str, str]:
        if not self.is_authenticated:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def update_tokens(self, token: str, refresh_token: Optional[str] = None) -> None:
        """Swap in freshly issued tokens (login or refresh)."""
        self.token = token
        if refresh_token:
            self.refresh_token = refresh_token
        self.invalidated = False
        self.tokens_changed = True

    def invalidate(self, reason: str = "authentication failure") -> None:
        """Drop all credentials. Callers persist the change (cookies, cache)."""
        if self.token:
            logger.warning(f"[SESSION] Clearing credentials after {reason}")
        self.token = None
        self.refresh_token = None
        self.user = None
        self.invalidated = True


class LoginRequired(Exception):
    """Raised by page guards; turned into a redirect to the login page."""

    def __init__(self, login_path: str, next_path: str):
        self.login_path = login_path
        self.next_path = next_path
        super().__init__(f"Login required for {next_path}")

    @property
    def location(self) -> str:
        return f"{self.login_path}?next={quote(self.next_path, safe='')}"


def _original_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


async def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    settings: Settings = Depends(get_settings),
) -> SessionContext:
    """Build the session for this request from the Authorization header or cookies."""
    existing = getattr(request.state, "session", None)
    if existing is not None:
        return existing

    if credentials is not None:
        session = SessionContext(token=credentials.credentials)
    else:
        session = SessionContext(
            token=request.cookies.get(settings.auth_cookie_name),
            refresh_token=request.cookies.get(settings.refresh_cookie_name),
        )
    request.state.session = session
    return session


async def get_current_user(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> Optional[User]:
    """Resolve the signed-in user (None for anonymous sessions)."""
    from frontdesk.core.api_client import UnauthorizedError
    from frontdesk.services.users import build_user_service

    if not session.is_authenticated:
        return None
    if session.user is not None:
        return session.user

    service = build_user_service(request, session)
    try:
        session.user = await service.get_profile()
    except UnauthorizedError:
        return None
    return session.user


async def require_user(
    request: Request,
    locale: str,
    user: Optional[User] = Depends(get_current_user),
) -> User:
    """Guest page guard: anonymous visitors go to the login page."""
    if user is None:
        raise LoginRequired(f"/{locale}/login", _original_path(request))
    return user


async def require_staff(
    request: Request,
    locale: str,
    user: Optional[User] = Depends(get_current_user),
) -> User:
    """Back-office guard: staff and admins only, others go to the dashboard login."""
    if user is None or not user.is_staff:
        raise LoginRequired(f"/{locale}/dashboard/login", _original_path(request))
    return user


async def require_admin(user: User = Depends(require_staff)) -> User:
    """Administrative writes (user management) need the admin role."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


def set_session_cookies(response: Response, session: SessionContext, settings: Settings) -> None:
    cookie_options = {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "lax",
    }
    response.set_cookie(settings.auth_cookie_name, session.token, **cookie_options)
    if session.refresh_token:
        response.set_cookie(settings.refresh_cookie_name, session.refresh_token, **cookie_options)


def clear_session_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.auth_cookie_name)
    response.delete_cookie(settings.refresh_cookie_name)


def persist_session(response: Response, session: Optional[SessionContext], settings: Settings) -> None:
    """Write session changes made during the request back to the client."""
    if session is None:
        return
    if session.invalidated:
        clear_session_cookies(response, settings)
    elif session.tokens_changed and session.token:
        set_session_cookies(response, session, settings)
