"""User and auth schemas."""

from datetime import date
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from frontdesk.schemas.base import BaseSchema, IDMixin, PageQuery, TimestampMixin
from frontdesk.models.enums import UserRole


class User(BaseSchema, IDMixin, TimestampMixin):
    """User account as returned by the hotel API."""

    email: EmailStr
    role: UserRole = UserRole.GUEST
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_verified: bool = False
    is_active: bool = True

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.last_name]
        return " ".join(p for p in parts if p) or self.email

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.STAFF, UserRole.ADMIN)


class UserProfileUpdate(BaseSchema):
    """Profile fields a user may edit on their own account.

    Empty strings clear a field; unset fields are left untouched.
    """

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    nationality: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_payload(self) -> dict:
        """Only the fields the caller actually set.

        Names are never cleared: a blank first/last name is dropped instead.
        """
        payload = self.model_dump(mode="json", exclude_unset=True)
        for name_field in ("first_name", "last_name", "date_of_birth"):
            if name_field in payload and payload[name_field] is None:
                del payload[name_field]
        return payload


class UserAdminUpdate(UserProfileUpdate):
    """Fields staff administrators may change on any account."""

    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None


class UserSearchQuery(PageQuery):
    """Filters for listing users."""

    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None


class LoginRequest(BaseSchema):
    """Credentials posted to the login page."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseSchema):
    """Tokens issued by the hotel API."""

    token: str
    refresh_token: Optional[str] = None
    user: Optional[User] = None


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    authenticated: bool
    user: Optional[User] = None
