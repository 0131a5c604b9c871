"""In-memory implementation of UserRepository for testing."""

from dataclasses import replace
from typing import Any

from bson import ObjectId

from domain.model.errors import DuplicateError
from domain.model.user import User, UserFilter, UserRole, utc_now


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}
        self.calls: list[str] = []

    def _active(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        if user is None or user.is_deleted:
            return None
        return user

    @staticmethod
    def _public(user: User) -> User:
        return replace(user, password_hash=None)

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        self.calls.append('create')
        if any(u.email == email and not u.is_deleted for u in self.store.values()):
            raise DuplicateError("Email already exists")

        user_id = str(ObjectId())
        now = utc_now()

        user = User(
            id=user_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            created_at=now,
            updated_at=now,
            password_hash=password_hash,
        )
        self.store[user_id] = user
        return replace(user)

    def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        self.calls.append('update')
        user = self._active(user_id)
        if not user:
            return None

        if 'email' in fields and any(
            u.email == fields['email'] and not u.is_deleted and u.id != user_id
            for u in self.store.values()
        ):
            raise DuplicateError("Email already exists")

        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = utc_now()
        return self._public(user)

    def soft_delete(self, user_id: str) -> bool:
        self.calls.append('soft_delete')
        user = self._active(user_id)
        if not user:
            return False

        now = utc_now()
        user.is_deleted = True
        user.deleted_at = now
        user.updated_at = now
        return True

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        self.calls.append('get_by_email')
        for user in self.store.values():
            if user.email == email and not user.is_deleted:
                return replace(user)
        return None

    def get_by_id(self, user_id: str) -> User | None:
        self.calls.append('get_by_id')
        user = self._active(user_id)
        return self._public(user) if user else None

    def find_many(self, user_filter: UserFilter, skip: int = 0, limit: int = 10) -> list[User]:
        self.calls.append('find_many')
        matches = [u for u in self.store.values() if user_filter.matches(u)]
        matches.sort(key=lambda u: u.created_at, reverse=True)
        return [self._public(u) for u in matches[skip:skip + limit]]

    def count(self, user_filter: UserFilter) -> int:
        self.calls.append('count')
        return sum(1 for u in self.store.values() if user_filter.matches(u))
