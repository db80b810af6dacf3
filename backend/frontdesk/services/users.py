"""User accounts and authentication against the hotel API."""

import logging
from typing import Optional

from fastapi import Depends, Request

from frontdesk.core.api_client import ApiError, HotelApiClient, build_api_client, unwrap_model, unwrap_page
from frontdesk.core.cache import CacheKey, Mutation, QueryCache, QueryResult, Resource, build_query_cache
from frontdesk.core.session import SessionContext, get_session
from frontdesk.schemas.base import Page
from frontdesk.schemas.user import (
    LoginRequest,
    TokenResponse,
    User,
    UserAdminUpdate,
    UserProfileUpdate,
    UserSearchQuery,
)

logger = logging.getLogger(__name__)


class UserService:
    """Profile, user administration and login."""

    def __init__(self, api: HotelApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def login(self, credentials: LoginRequest) -> TokenResponse:
        """Exchange credentials for tokens and bind them to the session."""
        data = await self.api.post("/auth/login", json=credentials.model_dump(mode="json"))
        tokens = unwrap_model(data, TokenResponse, "data")
        self.api.session.update_tokens(tokens.token, tokens.refresh_token)
        if tokens.user is None:
            # Uncached: the cache in hand belongs to the pre-login session
            tokens.user = unwrap_model(await self.api.get("/users/profile"), User, "user", "data")
        self.api.session.user = tokens.user
        logger.info(f"[SESSION] Signed in {credentials.email}")
        return tokens

    async def logout(self) -> None:
        """Revoke the tokens remotely (best effort) and drop them locally."""
        if self.api.session.is_authenticated:
            try:
                await self.api.post("/auth/logout")
            except ApiError as e:
                logger.warning(f"[SESSION] Remote logout failed: {e.message}")
        self.cache.clear()
        self.api.session.invalidate("logout")

    async def get_profile(self) -> User:
        key = CacheKey.profile()

        async def load() -> User:
            return unwrap_model(await self.api.get(key.path), User, "user", "data")

        return await self.cache.fetch(key, load)

    async def update_profile(self, changes: UserProfileUpdate) -> User:
        """Send only the fields the user changed."""
        payload = changes.to_payload()
        data = await self.api.put("/users/profile", json=payload)
        self.cache.invalidate_mutation(Mutation.UPDATE_PROFILE)
        user = unwrap_model(data, User, "user", "data")
        self.api.session.user = user
        return user

    async def list_users(self, query: Optional[UserSearchQuery] = None) -> QueryResult[Page[User]]:
        query = query or UserSearchQuery()
        key = CacheKey.list(Resource.USERS, query.to_params())

        async def load() -> Page[User]:
            return unwrap_page(await self.api.get(key.path, params=key.query), User, "users")

        return await self.cache.query(key, load)

    async def get_user(self, user_id: Optional[str]) -> QueryResult[User]:
        key = CacheKey.detail(Resource.USERS, user_id) if user_id else None

        async def load() -> User:
            return unwrap_model(await self.api.get(key.path), User, "user")

        return await self.cache.query(key, load)

    async def update_user(self, user_id: str, changes: UserAdminUpdate) -> User:
        data = await self.api.put(f"/users/{user_id}", json=changes.to_payload())
        self.cache.invalidate_mutation(Mutation.UPDATE_USER, user_id)
        return unwrap_model(data, User, "user")

    async def delete_user(self, user_id: str) -> None:
        await self.api.delete(f"/users/{user_id}")
        self.cache.invalidate_mutation(Mutation.DELETE_USER, user_id)


def build_user_service(request: Request, session: SessionContext) -> UserService:
    return UserService(build_api_client(request, session), build_query_cache(request, session))


async def get_user_service(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> UserService:
    return build_user_service(request, session)

