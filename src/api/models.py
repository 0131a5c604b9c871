"""Pydantic models for API request/response.

Request models reject undeclared fields. The wire format is camelCase;
Python attributes are snake_case.
"""

from datetime import datetime
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from domain.model.user import UserRole
from services.user_service import DEFAULT_LIMIT, DEFAULT_PAGE

T = TypeVar('T')

PASSWORD_MIN_LENGTH = 6

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PasswordStr = Annotated[str, StringConstraints(min_length=PASSWORD_MIN_LENGTH)]


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, extra='forbid')


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── requests ─────────────────────────────────────────────────


class CreateUserRequest(RequestModel):
    """Request model for user registration."""
    email: EmailStr
    password: PasswordStr
    first_name: NameStr
    last_name: NameStr
    role: Optional[UserRole] = None

    @field_validator('email', mode='before')
    @classmethod
    def _strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class UpdateUserRequest(RequestModel):
    """Request model for a partial user update. Only supplied fields change."""
    email: Optional[EmailStr] = None
    password: Optional[PasswordStr] = None
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None
    role: Optional[UserRole] = None

    @field_validator('email', 'password', 'first_name', 'last_name', 'role', mode='before')
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Value must not be null")
        return value

    @field_validator('email', mode='before')
    @classmethod
    def _strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    def to_changes(self) -> dict[str, Any]:
        """Fields the caller actually sent, keyed by domain attribute name."""
        return self.model_dump(exclude_unset=True)


class UserQuery(RequestModel):
    """Query parameters for listing users."""
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1)
    search: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator('is_active', mode='before')
    @classmethod
    def _strict_bool_literal(cls, value: Any) -> Any:
        # Only the exact literals are accepted, not "1", "yes", "on", ...
        if isinstance(value, str):
            if value == 'true':
                return True
            if value == 'false':
                return False
            raise ValueError("Value must be 'true' or 'false'")
        return value


# ── responses ────────────────────────────────────────────────


class UserResponse(ResponseModel):
    """Public view of a user. The password hash has no field here."""
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PaginationMeta(ResponseModel):
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class UserListResponse(ResponseModel):
    data: list[UserResponse]
    meta: PaginationMeta


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapped around every response body."""
    success: bool = True
    data: T


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(ResponseModel):
    """Error envelope shared by every failure path."""
    success: bool = False
    status_code: int
    message: str
    errors: Optional[list[FieldError]] = None
    path: str
    timestamp: datetime
