"""MongoDB implementation of UserRepository."""

import re
from logging import getLogger
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb.connection import USERS_COLLECTION_NAME
from domain.model.errors import DuplicateError, StorageError
from domain.model.user import User, UserFilter, UserRole, utc_now

logger = getLogger(__name__)

# Projection that keeps the password hash inside the database
WITHOUT_PASSWORD = {'password_hash': 0}

SEARCH_FIELDS = ('first_name', 'last_name', 'email')


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    # ── indexes ──────────────────────────────────────────────

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(
                self.collection, [('email', 1)], 'idx_users_email_active',
                unique=True, partialFilterExpression={'is_deleted': False},
            )
            create_index_safe(self.collection, [('is_deleted', 1)], 'idx_users_is_deleted')
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            return True
        except Exception as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    # ── helpers ──────────────────────────────────────────────

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=str(doc['_id']),
            email=doc['email'],
            first_name=doc['first_name'],
            last_name=doc['last_name'],
            role=UserRole(doc.get('role', UserRole.USER.value)),
            is_active=doc.get('is_active', True),
            is_deleted=doc.get('is_deleted', False),
            deleted_at=doc.get('deleted_at'),
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            password_hash=doc.get('password_hash'),
        )

    @staticmethod
    def _build_query(user_filter: UserFilter) -> dict:
        """Translate a UserFilter into a MongoDB query document."""
        query: dict = {'is_deleted': False}
        if user_filter.search:
            pattern = re.escape(user_filter.search)
            query['$or'] = [
                {field: {'$regex': pattern, '$options': 'i'}} for field in SEARCH_FIELDS
            ]
        if user_filter.role is not None:
            query['role'] = user_filter.role.value
        if user_filter.is_active is not None:
            query['is_active'] = user_filter.is_active
        return query

    @staticmethod
    def _active_by_id(user_id: str) -> dict:
        return {'_id': ObjectId(user_id), 'is_deleted': False}

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create a new user and return the User object."""
        now = utc_now()
        user_doc = {
            '_id': ObjectId(),
            'email': email,
            'password_hash': password_hash,
            'first_name': first_name,
            'last_name': last_name,
            'role': role.value,
            'is_active': True,
            'is_deleted': False,
            'deleted_at': None,
            'created_at': now,
            'updated_at': now,
        }
        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError:
            logger.warning("User creation failed: email already exists", extra={"email": email})
            raise DuplicateError("Email already exists")
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            raise StorageError("Failed to create user") from e

        return self._to_domain(user_doc)

    def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Apply a partial $set to a non-deleted user and return the updated user."""
        changes = dict(fields)
        if isinstance(changes.get('role'), UserRole):
            changes['role'] = changes['role'].value
        changes['updated_at'] = utc_now()

        try:
            doc = self.collection.find_one_and_update(
                self._active_by_id(user_id),
                {'$set': changes},
                projection=WITHOUT_PASSWORD,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            logger.warning("User update failed: email already exists", extra={"userId": user_id})
            raise DuplicateError("Email already exists")
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to update user") from e

        if doc is None:
            logger.debug("User not found for update", extra={"userId": user_id})
            return None
        return self._to_domain(doc)

    def soft_delete(self, user_id: str) -> bool:
        """Soft delete a user by flagging it and stamping deleted_at."""
        now = utc_now()
        try:
            result = self.collection.update_one(
                self._active_by_id(user_id),
                {'$set': {'is_deleted': True, 'deleted_at': now, 'updated_at': now}},
            )
        except PyMongoError as e:
            logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to delete user") from e

        if result.matched_count == 0:
            logger.debug("User not found for deletion", extra={"userId": user_id})
            return False
        return True

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        """Find a non-deleted user by email. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'email': email, 'is_deleted': False})
        except PyMongoError as e:
            logger.error("Failed to get user by email", extra={"email": email, "error": str(e)})
            raise StorageError("Failed to get user") from e
        return self._to_domain(doc) if doc else None

    def get_by_id(self, user_id: str) -> User | None:
        """Find a non-deleted user by ID. Return User or None if not found."""
        try:
            doc = self.collection.find_one(self._active_by_id(user_id), WITHOUT_PASSWORD)
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to get user") from e
        return self._to_domain(doc) if doc else None

    def find_many(self, user_filter: UserFilter, skip: int = 0, limit: int = 10) -> list[User]:
        """List users with filtering, newest first, and pagination."""
        try:
            docs = (
                self.collection.find(self._build_query(user_filter), WITHOUT_PASSWORD)
                .sort('created_at', -1)
                .skip(skip)
                .limit(limit)
            )
            return [self._to_domain(doc) for doc in docs]
        except PyMongoError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            raise StorageError("Failed to list users") from e

    def count(self, user_filter: UserFilter) -> int:
        try:
            return self.collection.count_documents(self._build_query(user_filter))
        except PyMongoError as e:
            logger.error("Failed to count users", extra={"error": str(e)})
            raise StorageError("Failed to count users") from e
