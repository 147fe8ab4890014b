"""Generic MongoDB repository with create, read, update and delete operations."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError


class RepositoryError(Exception):
    """Raised when a database operation fails."""


def _object_id(record_id: ObjectId | str) -> ObjectId:
    if isinstance(record_id, ObjectId):
        return record_id
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError) as exc:
        raise RepositoryError(f"Invalid id: {record_id}") from exc


class CrudRepository:
    """Repository over one collection; subclasses name the collection."""

    collection_name: ClassVar[str] = ""
    assigns_ids: ClassVar[bool] = True
    insert_error: ClassVar[str] = "Insert failed"
    update_error: ClassVar[str] = "Update failed"
    delete_error: ClassVar[str] = "Delete failed"

    def __init__(self, database: Any) -> None:
        if not self.collection_name:
            raise TypeError(f"{type(self).__name__} does not name a collection")
        self.collection = database[self.collection_name]

    def _collect(self, query: Mapping[str, Any], **options: Any) -> list[dict]:
        try:
            cursor = self.collection.find(dict(query), **options)
        except PyMongoError as exc:
            raise RepositoryError(f"Database error: {exc}") from exc
        try:
            return list(cursor)
        except PyMongoError as exc:
            raise RepositoryError(f"Failed to collect results: {exc}") from exc

    def find_all(self) -> list[dict]:
        return self._collect({})

    def find_all_paginated(self, skip: int, limit: int) -> tuple[list[dict], int]:
        """Return one page of documents and the total document count."""
        try:
            total = self.collection.count_documents({})
        except PyMongoError as exc:
            raise RepositoryError(f"Failed to count documents: {exc}") from exc
        return self._collect({}, skip=skip, limit=limit), total

    def find_by_id(self, record_id: ObjectId | str) -> dict | None:
        try:
            return self.collection.find_one({"_id": _object_id(record_id)})
        except PyMongoError as exc:
            raise RepositoryError(f"Database error: {exc}") from exc

    def insert(self, document: Mapping[str, Any]) -> dict:
        record = dict(document)
        if self.assigns_ids and record.get("_id") is None:
            record["_id"] = ObjectId()
        try:
            self.collection.insert_one(record)
        except PyMongoError as exc:
            raise RepositoryError(f"{self.insert_error}: {exc}") from exc
        return record

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        record = dict(document)
        try:
            self.collection.replace_one({"_id": _object_id(record_id)}, record)
        except PyMongoError as exc:
            raise RepositoryError(f"{self.update_error}: {exc}") from exc
        return record

    def delete(self, record_id: ObjectId | str) -> bool:
        """Delete a document; return whether one was removed."""
        try:
            result = self.collection.delete_one({"_id": _object_id(record_id)})
        except PyMongoError as exc:
            raise RepositoryError(f"{self.delete_error}: {exc}") from exc
        return result.deleted_count > 0


class AppointmentRepository(CrudRepository):
    collection_name = "appointments"
    update_error = "Failed to update appointment"
    delete_error = "Failed to delete appointment"


class DoctorRepository(CrudRepository):
    collection_name = "doctors"
    update_error = "Failed to update doctor"
    delete_error = "Failed to delete doctor"