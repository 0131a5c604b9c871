from typing import Any, Protocol

from domain.model.user import User, UserFilter, UserRole


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Every read and conditional write only considers users that are not
    soft-deleted. Failures of the backend raise StorageError.
    """
    def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Insert a new user. Raise DuplicateError if the email is taken."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a non-deleted user by normalized email."""
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a non-deleted user by ID, without the password hash."""
        ...

    def find_many(self, user_filter: UserFilter, skip: int = 0, limit: int = 10) -> list[User]:
        """List matching users, newest first, without password hashes."""
        ...

    def count(self, user_filter: UserFilter) -> int:
        """Count users matching the filter."""
        ...

    def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Set the given fields on a non-deleted user. Return the updated user or None."""
        ...

    def soft_delete(self, user_id: str) -> bool:
        """Mark a non-deleted user as deleted. Return False if nothing matched."""
        ...
