"""User service: registration, listing, update and soft-delete business logic.

Pure business logic with no HTTP dependencies.
Raises domain errors that the API layer maps to HTTP status codes.
"""

import asyncio
import logging
import re
from typing import Any

import bcrypt

from domain.model.errors import DuplicateError, NotFoundError, ValidationError
from domain.model.pagination import Page, PageMeta
from domain.model.user import User, UserFilter, UserRole, normalize_email
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# MongoDB encodes skip and limit as signed 64-bit integers
MAX_QUERY_WINDOW = 2**63 - 1

# Lexical format of a MongoDB ObjectId
USER_ID_PATTERN = re.compile(r'[0-9a-fA-F]{24}')


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _validate_user_id(user_id: str) -> None:
    if not USER_ID_PATTERN.fullmatch(user_id):
        raise ValidationError("Invalid ID format", field="id")


def _ensure_email_available(repo: UserRepository, email: str, user_id: str | None = None) -> None:
    existing = repo.get_by_email(email)
    if existing and existing.id != user_id:
        raise DuplicateError("Email already exists")


def create_user(
    repo: UserRepository,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: UserRole | None = None,
) -> User:
    """Register a new user.

    Returns the created User domain object.

    Raises:
        DuplicateError: a non-deleted user already has this email
    """
    email = normalize_email(email)
    _ensure_email_available(repo, email)

    user = repo.create(
        email=email,
        password_hash=_hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role or UserRole.USER,
    )
    logger.info("User created", extra={"userId": user.id, "role": user.role.value})
    return user


async def find_users(
    repo: UserRepository,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    search: str | None = None,
    role: UserRole | None = None,
    is_active: bool | None = None,
) -> Page[User]:
    """List non-deleted users matching the filters, newest first.

    The page fetch and the total count are independent queries and run
    concurrently. A page past the end yields no items but valid metadata.

    Raises:
        ValidationError: page or limit too large for a storage query
    """
    user_filter = UserFilter(search=search or None, role=role, is_active=is_active)
    skip = (page - 1) * limit
    if limit > MAX_QUERY_WINDOW:
        raise ValidationError("Limit out of range", field="limit")
    if skip > MAX_QUERY_WINDOW:
        raise ValidationError("Page out of range", field="page")

    items, total = await asyncio.gather(
        asyncio.to_thread(repo.find_many, user_filter, skip=skip, limit=limit),
        asyncio.to_thread(repo.count, user_filter),
    )
    return Page(items=items, meta=PageMeta.build(page=page, limit=limit, total_items=total))


def find_user(repo: UserRepository, user_id: str) -> User:
    """Get one non-deleted user.

    Raises:
        ValidationError: malformed ID
        NotFoundError: no such user, or the user was deleted
    """
    _validate_user_id(user_id)
    user = repo.get_by_id(user_id)
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


def update_user(repo: UserRepository, user_id: str, changes: dict[str, Any]) -> User:
    """Apply a partial update to a non-deleted user.

    `changes` holds only the fields supplied by the caller, keyed by
    domain attribute name. A plain `password` is hashed before storage.

    Raises:
        ValidationError: malformed ID
        DuplicateError: new email belongs to another user
        NotFoundError: no such user, or the user was deleted
    """
    _validate_user_id(user_id)
    if not changes:
        return find_user(repo, user_id)

    fields = dict(changes)
    if 'email' in fields:
        fields['email'] = normalize_email(fields['email'])
        _ensure_email_available(repo, fields['email'], user_id)
    if 'password' in fields:
        fields['password_hash'] = _hash_password(fields.pop('password'))
    for name in ('first_name', 'last_name'):
        if name in fields:
            fields[name] = fields[name].strip()

    user = repo.update(user_id, fields)
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")

    logger.info("User updated", extra={"userId": user_id, "fields": sorted(changes)})
    return user


def remove_user(repo: UserRepository, user_id: str) -> None:
    """Soft delete a user. A second call on the same ID raises NotFoundError.

    Raises:
        ValidationError: malformed ID
        NotFoundError: no such user, or already deleted
    """
    _validate_user_id(user_id)
    if not repo.soft_delete(user_id):
        raise NotFoundError(f"User with ID {user_id} not found")
    logger.info("User soft deleted", extra={"userId": user_id})
