"""Repositories for user accounts, roles and the roles granted to users."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Generic, Mapping, TypeVar

from bson import ObjectId
from pymongo.errors import PyMongoError

from ..response import TIMESTAMP_FORMAT
from .crud import CrudRepository, RepositoryError, _object_id

T = TypeVar("T")


def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


@dataclass
class PaginatedResult(Generic[T]):
    """One page of records with the totals needed to navigate the rest."""

    data: list[T] = field(default_factory=list)
    total_items: int = 0
    total_pages: int = 0
    current_page: int = 1


class UserRepository(CrudRepository):
    """User accounts, looked up by e-mail or by their reset and refresh tokens."""

    collection_name = "users"

    def _find_one(self, query: Mapping[str, Any]) -> dict | None:
        try:
            return self.collection.find_one(dict(query))
        except PyMongoError as exc:
            raise RepositoryError(f"Database error: {exc}") from exc

    def _set(self, record_id: ObjectId | str, changes: Mapping[str, Any]) -> bool:
        fields = {**changes, "updatedAt": _now()}
        try:
            result = self.collection.update_one(
                {"_id": _object_id(record_id)}, {"$set": fields}
            )
        except PyMongoError as exc:
            raise RepositoryError(f"Update failed: {exc}") from exc
        return result.modified_count > 0

    def find_by_email(self, email: str) -> dict | None:
        return self._find_one({"email": email})

    def find_by_reset_token(self, token: str) -> dict | None:
        return self._find_one({"resetToken": token})

    def find_by_refresh_token(self, refresh_token: str) -> dict | None:
        return self._find_one({"refreshToken": refresh_token})

    def update_reset_token(
        self, record_id: ObjectId | str, token: str | None, expiry: str | None
    ) -> bool:
        """Store (or clear) a password reset token; return whether a user changed."""
        return self._set(record_id, {"resetToken": token, "resetTokenExpiry": expiry})

    def update_password(self, record_id: ObjectId | str, password_hash: str) -> bool:
        """Replace the password hash and discard any pending reset token."""
        return self._set(
            record_id,
            {"password": password_hash, "resetToken": None, "resetTokenExpiry": None},
        )

    def update_refresh_token(
        self, record_id: ObjectId | str, refresh_token: str | None
    ) -> bool:
        return self._set(record_id, {"refreshToken": refresh_token})


class RoleRepository:
    """Roles, paged by page number, with updates that leave the id untouched."""

    collection_name: ClassVar[str] = "roles"

    def __init__(self, database: Any) -> None:
        self.collection = database[self.collection_name]

    def _call(self, operation: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return operation(*args, **kwargs)
        except PyMongoError as exc:
            raise RepositoryError(str(exc)) from exc

    def find_all_paginated(self, page: int, limit: int) -> PaginatedResult[dict]:
        """Return page ``page`` (counting from 1) of ``limit`` records."""
        if page < 1:
            raise ValueError(f"page must be at least 1, got {page}")
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        total_items = self._call(self.collection.count_documents, {})
        cursor = self._call(
            self.collection.find, {}, skip=(page - 1) * limit, limit=limit
        )
        return PaginatedResult(
            data=self._call(list, cursor),
            total_items=total_items,
            total_pages=math.ceil(total_items / limit),
            current_page=page,
        )

    def find_by_id(self, record_id: ObjectId | str) -> dict | None:
        return self._call(self.collection.find_one, {"_id": _object_id(record_id)})

    def create(self, document: Mapping[str, Any]) -> dict:
        """Insert a record and return it with the id the database stored."""
        record = dict(document)
        if record.get("_id") is None:
            record.pop("_id", None)
        result = self._call(self.collection.insert_one, record)
        inserted = result.inserted_id
        record["_id"] = inserted if isinstance(inserted, ObjectId) else None
        return record

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict | None:
        """Set every field except the id; return the record, or None if it is missing."""
        oid = _object_id(record_id)
        changes = {key: value for key, value in document.items() if key != "_id"}
        previous = self._call(
            self.collection.find_one_and_update, {"_id": oid}, {"$set": changes}
        )
        if previous is None:
            return None
        return {**document, "_id": oid}

    def delete(self, record_id: ObjectId | str) -> bool:
        result = self._call(self.collection.delete_one, {"_id": _object_id(record_id)})
        return result.deleted_count == 1


class UserRoleRepository(RoleRepository):
    """Assignments of roles to users."""

    collection_name = "user_roles"