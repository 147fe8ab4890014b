"""Repositories for clinical codes, interpretations, test kits, regions and observations."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from bson import ObjectId
from pymongo.errors import PyMongoError

from .crud import CrudRepository, RepositoryError, _object_id

# A field spec is either a field name or a (name, nested field specs) pair.
FieldSpec = Any


def _pick(document: Mapping[str, Any], fields: tuple[FieldSpec, ...]) -> dict[str, Any]:
    """Copy the named fields (and nested sub-fields) out of ``document``."""
    picked: dict[str, Any] = {}
    for spec in fields:
        if isinstance(spec, tuple):
            name, nested = spec
            picked[name] = _pick(document.get(name) or {}, nested)
        else:
            picked[spec] = document.get(spec)
    return picked


class _CodingRepository(CrudRepository):
    """Shared behaviour: creation reports the id the database assigned."""

    assigns_ids = False

    def _call(self, operation: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return operation(*args, **kwargs)
        except PyMongoError as exc:
            raise RepositoryError(str(exc)) from exc

    def _find_one(self, query: Mapping[str, Any]) -> dict | None:
        return self._call(self.collection.find_one, dict(query))

    def _find_page(
        self, query: Mapping[str, Any], skip: int, limit: int, **options: Any
    ) -> tuple[list[dict], int]:
        total = self._call(self.collection.count_documents, dict(query))
        cursor = self._call(
            self.collection.find, dict(query), skip=skip, limit=limit, **options
        )
        return self._call(list, cursor), total

    def create(self, document: Mapping[str, Any]) -> dict:
        """Insert a document and return it with the id the database stored."""
        record = dict(document)
        if record.get("_id") is None:
            record.pop("_id", None)
        result = self._call(self.collection.insert_one, record)
        inserted = result.inserted_id
        record["_id"] = inserted if isinstance(inserted, ObjectId) else None
        return record


class _FieldUpdateRepository(_CodingRepository):
    """Updates set a fixed list of fields rather than replacing the document."""

    update_fields: ClassVar[tuple[FieldSpec, ...]] = ()

    def _changes(self, record: dict) -> dict[str, Any]:
        return _pick(record, self.update_fields)

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        record = dict(document)
        self._call(
            self.collection.update_one,
            {"_id": _object_id(record_id)},
            {"$set": self._changes(record)},
        )
        return record


class CodeRepository(_CodingRepository):
    collection_name = "codes"

    def find_by_code(self, code: str) -> dict | None:
        return self._find_one({"code": code})

    def create(self, document: Mapping[str, Any]) -> dict:
        """Insert a code; an id supplied by the caller is kept as given."""
        given = document.get("_id")
        created = super().create(document)
        if given is not None:
            created["_id"] = given
        return created


class ChildCodeRepository(_FieldUpdateRepository):
    collection_name = "child_codes"
    update_fields = (
        ("parent", ("code_id", "code", "system", "display")),
        "code_id",
        "code",
        "system",
        "display",
        "norut",
        "updated_at",
    )

    def create(self, document: Mapping[str, Any]) -> dict:
        return super().create(document)

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        return super().update(record_id, document)


class InterpretationRepository(_FieldUpdateRepository):
    collection_name = "interpretations"
    update_fields = (
        "code",
        "min",
        "max",
        ("coding", ("code", "system", "display")),
        "text",
        "created_at",
        "updated_at",
    )

    def create(self, document: Mapping[str, Any]) -> dict:
        return super().create(document)

    def find_all_paginated(self, skip: int, limit: int) -> tuple[list[dict], int]:
        return self.find_by_filter_paginated({}, skip, limit)

    def find_by_filter_paginated(
        self, query: Mapping[str, Any], skip: int, limit: int
    ) -> tuple[list[dict], int]:
        """Return one page of matching documents and the total number of matches."""
        return self._find_page(query, skip, limit)

    def find_by_code(self, code: str) -> dict | None:
        return self._find_one({"code": code})

    def find_by_code_and_coding_code(self, code: str, coding_code: str) -> dict | None:
        return self._find_one({"code": code, "coding.code": coding_code})

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        return super().update(record_id, document)


class KitRepository(_FieldUpdateRepository):
    collection_name = "kits"
    update_fields = (
        "code",
        "name",
        ("owner", ("code", "name")),
        ("distributor", ("code", "name")),
        "is_active",
        ("operator", ("nik", "id", "time")),
        "log_user_kit_id",
        "order_id",
        ("pasien", ("id_pasien", "time")),
        "updated_at",
    )

    def create(self, document: Mapping[str, Any]) -> dict:
        return super().create(document)

    def find_by_code(self, code: str) -> dict | None:
        return self._find_one({"code": code})

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        return super().update(record_id, document)


class RegionRepository(_FieldUpdateRepository):
    collection_name = "regions"
    update_fields = (
        "code",
        "nama",
        "wilayah",
        "provinsi",
        "kota",
        "kecamatan",
        "kelurahan",
        "len",
    )

    def create(self, document: Mapping[str, Any]) -> dict:
        return super().create(document)

    def find_all_paginated(self, skip: int, limit: int) -> tuple[list[dict], int]:
        return self.find_by_filter_paginated({}, skip, limit)

    def find_by_filter_paginated(
        self, query: Mapping[str, Any], skip: int, limit: int
    ) -> tuple[list[dict], int]:
        """Return one page of matching regions and the total number of matches."""
        return self._find_page(query, skip, limit)

    def find_by_code(self, code: str) -> dict | None:
        return self._find_one({"code": code})

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        return super().update(record_id, document)


class ObservationRepository(_FieldUpdateRepository):
    collection_name = "observations"

    def _changes(self, record: dict) -> dict[str, Any]:
        return {key: value for key, value in record.items() if key != "_id"}

    def create(self, document: Mapping[str, Any]) -> dict:
        return super().create(document)

    def find_all_paginated(self, skip: int, limit: int) -> tuple[list[dict], int]:
        """Return one page of observations, newest first, and the total count."""
        return self._find_page({}, skip, limit, sort=[("created_at", -1)])

    def update(self, record_id: ObjectId | str, document: Mapping[str, Any]) -> dict:
        """Set every field of ``document`` except its id."""
        return super().update(record_id, document)