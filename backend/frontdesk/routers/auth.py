"""Auth router - sign-in, sign-out and current user for guests and staff."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from frontdesk.core.session import get_current_user
from frontdesk.schemas.user import CurrentUserResponse, LoginRequest, User
from frontdesk.services.users import UserService, get_user_service

router = APIRouter(prefix="/{locale}", tags=["auth"])


def safe_next(next_path: Optional[str], fallback: str) -> str:
    """Only same-site absolute paths are followed after login."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return fallback
    return next_path


@router.get("/login")
async def login_page(
    locale: str,
    next: Optional[str] = Query(None),
    user: Optional[User] = Depends(get_current_user),
):
    """Login page context. Signed-in users are told where to go instead."""
    return {
        "locale": locale,
        "authenticated": user is not None,
        "next": safe_next(next, f"/{locale}"),
    }


@router.post("/login")
async def login(
    locale: str,
    data: LoginRequest,
    next: Optional[str] = Query(None),
    users: UserService = Depends(get_user_service),
):
    """Sign a guest in. Tokens are returned to the browser as cookies."""
    tokens = await users.login(data)
    return {
        "user": tokens.user,
        "redirect_to": safe_next(next, f"/{locale}"),
    }


@router.get("/dashboard/login")
async def dashboard_login_page(
    locale: str,
    next: Optional[str] = Query(None),
    user: Optional[User] = Depends(get_current_user),
):
    """Back-office login page context."""
    return {
        "locale": locale,
        "authenticated": user is not None and user.is_staff,
        "next": safe_next(next, f"/{locale}/dashboard"),
    }


@router.post("/dashboard/login")
async def dashboard_login(
    locale: str,
    data: LoginRequest,
    next: Optional[str] = Query(None),
    users: UserService = Depends(get_user_service),
):
    """Sign a staff member in. Guest accounts are turned away."""
    tokens = await users.login(data)
    user = tokens.user
    if not user.is_staff:
        await users.logout()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return {
        "user": user,
        "redirect_to": safe_next(next, f"/{locale}/dashboard"),
    }


@router.post("/logout")
async def logout(
    locale: str,
    users: UserService = Depends(get_user_service),
):
    """Sign out and clear the session cookies."""
    await users.logout()
    return {"redirect_to": f"/{locale}"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(user: Optional[User] = Depends(get_current_user)):
    """Get current user info."""
    return CurrentUserResponse(authenticated=user is not None, user=user)
