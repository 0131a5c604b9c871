"""User API routes.

Endpoints:
- POST /users: Register a user
- GET /users: List users with pagination, search and filters
- GET /users/{user_id}: Get one user
- PATCH /users/{user_id}: Update some fields of a user
- DELETE /users/{user_id}: Soft delete a user
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from api.dependencies import get_user_repo
from api.models import (
    ApiResponse,
    CreateUserRequest,
    ErrorResponse,
    UpdateUserRequest,
    UserListResponse,
    UserQuery,
    UserResponse,
)
from api.responses import ok, to_user_list_response, to_user_response
from port.user_repository import UserRepository
from services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

BAD_REQUEST = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}}
NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}


def get_user_query(request: Request) -> UserQuery:
    """Validate the raw query string against UserQuery, rejecting unknown parameters."""
    try:
        return UserQuery.model_validate(dict(request.query_params))
    except PydanticValidationError as e:
        raise RequestValidationError(
            [{**err, 'loc': ('query', *err['loc'])} for err in e.errors(include_context=False)]
        )


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **CONFLICT},
)
def create_user(request: CreateUserRequest, repo: UserRepository = Depends(get_user_repo)):
    """Register a new user. The password is stored only as a bcrypt hash."""
    user = user_service.create_user(
        repo,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
    )
    return ok(to_user_response(user))


@router.get("", response_model=ApiResponse[UserListResponse], responses=BAD_REQUEST)
async def list_users(
    query: UserQuery = Depends(get_user_query),
    repo: UserRepository = Depends(get_user_repo),
):
    """List users, newest first."""
    page = await user_service.find_users(
        repo,
        page=query.page,
        limit=query.limit,
        search=query.search,
        role=query.role,
        is_active=query.is_active,
    )
    logger.debug("Users listed", extra={"count": len(page.items), "total": page.meta.total_items})
    return ok(to_user_list_response(page))


@router.get("/{user_id}", response_model=ApiResponse[UserResponse], responses={**BAD_REQUEST, **NOT_FOUND})
def get_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    user = user_service.find_user(repo, user_id)
    return ok(to_user_response(user))


@router.patch(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT},
)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    """Update only the fields present in the body."""
    user = user_service.update_user(repo, user_id, request.to_changes())
    return ok(to_user_response(user))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
def delete_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Soft delete a user."""
    user_service.remove_user(repo, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
