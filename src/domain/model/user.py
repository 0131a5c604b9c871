from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class UserRole(str, Enum):
    """Roles a user account can hold."""
    ADMIN = 'admin'
    USER = 'user'
    MODERATOR = 'moderator'


@dataclass
class User:
    """Domain model representing a user."""
    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime
    role: UserRole = UserRole.USER
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: datetime | None = None
    password_hash: str | None = None


@dataclass(frozen=True)
class UserFilter:
    """Criteria for listing users. Deleted users are always excluded."""
    search: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None

    def matches(self, user: User) -> bool:
        """Check a user against the criteria (case-insensitive substring search)."""
        if user.is_deleted:
            return False
        if self.search:
            needle = self.search.lower()
            haystacks = (user.first_name, user.last_name, user.email)
            if not any(needle in h.lower() for h in haystacks):
                return False
        if self.role is not None and user.role != self.role:
            return False
        if self.is_active is not None and user.is_active != self.is_active:
            return False
        return True


def normalize_email(email: str) -> str:
    return email.strip().lower()


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds, the precision BSON dates keep."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)
