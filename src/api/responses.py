"""Response shaping: user allow-list mapping and the success envelope."""

from typing import TypeVar

from api.models import ApiResponse, PaginationMeta, UserListResponse, UserResponse
from domain.model.pagination import Page
from domain.model.user import User

T = TypeVar('T')


def to_user_response(user: User) -> UserResponse:
    """Convert domain User to API UserResponse.

    Fields are copied one by one, so the password hash and the soft-delete
    bookkeeping never reach a response even if the storage layer loaded them.
    """
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def to_user_list_response(page: Page[User]) -> UserListResponse:
    meta = page.meta
    return UserListResponse(
        data=[to_user_response(user) for user in page.items],
        meta=PaginationMeta(
            current_page=meta.current_page,
            items_per_page=meta.items_per_page,
            total_items=meta.total_items,
            total_pages=meta.total_pages,
            has_next_page=meta.has_next_page,
            has_previous_page=meta.has_previous_page,
        ),
    )


def ok(data: T) -> ApiResponse[T]:
    """Wrap a handler result in the success envelope."""
    return ApiResponse(data=data)
