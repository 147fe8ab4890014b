from collections import defaultdict
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from rmeapi.repository.crud import (
    AppointmentRepository,
    CrudRepository,
    DoctorRepository,
    RepositoryError,
)


def _matches(document, query):
    return all(document.get(k) == v for k, v in query.items())


class FakeCollection:
    def __init__(self):
        self.documents = []

    def find(self, query, skip=0, limit=0):
        found = [dict(d) for d in self.documents if _matches(d, query)][skip:]
        return iter(found[:limit] if limit else found)

    def count_documents(self, query):
        return sum(1 for d in self.documents if _matches(d, query))

    def find_one(self, query):
        return next(self.find(query), None)

    def insert_one(self, document):
        self.documents.append(dict(document))

    def replace_one(self, query, replacement):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                self.documents[index] = {**replacement, "_id": document["_id"]}
                break

    def delete_one(self, query):
        for document in self.documents:
            if _matches(document, query):
                self.documents.remove(document)
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class BrokenCursor:
    def __iter__(self):
        raise PyMongoError("boom")


class FailingCollection:
    def __init__(self, cursor_fails=False):
        self.cursor_fails = cursor_fails

    def find(self, query, **options):
        if self.cursor_fails:
            return BrokenCursor()
        raise PyMongoError("boom")

    def _fail(self, *args, **kwargs):
        raise PyMongoError("boom")

    count_documents = find_one = insert_one = replace_one = delete_one = _fail


@pytest.fixture
def database():
    return defaultdict(FakeCollection)


def test_base_class_requires_collection(database):
    with pytest.raises(TypeError):
        CrudRepository(database)


def test_insert_assigns_id(database):
    repo = AppointmentRepository(database)
    stored = repo.insert({"patient": "A"})
    assert isinstance(stored["_id"], ObjectId)
    assert database["appointments"].documents == [stored]


def test_insert_keeps_given_id(database):
    given = ObjectId()
    stored = DoctorRepository(database).insert({"_id": given, "name": "Dr"})
    assert stored["_id"] == given
    assert database["doctors"].documents[0]["name"] == "Dr"


def test_find_all(database):
    repo = DoctorRepository(database)
    inserted = [repo.insert({"n": n}) for n in range(3)]
    assert repo.find_all() == inserted


def test_find_all_paginated(database):
    repo = AppointmentRepository(database)
    inserted = [repo.insert({"n": n}) for n in range(5)]
    page, total = repo.find_all_paginated(2, 2)
    assert total == 5
    assert page == inserted[2:4]


def test_find_by_id_accepts_string(database):
    repo = DoctorRepository(database)
    stored = repo.insert({"name": "Dr"})
    assert repo.find_by_id(stored["_id"]) == stored
    assert repo.find_by_id(str(stored["_id"])) == stored
    assert repo.find_by_id(ObjectId()) is None


def test_invalid_id_raises(database):
    with pytest.raises(RepositoryError, match="Invalid id"):
        DoctorRepository(database).find_by_id("not-an-id")


def test_update_replaces_document(database):
    repo = AppointmentRepository(database)
    stored = repo.insert({"status": "booked"})
    returned = repo.update(stored["_id"], {"status": "done"})
    assert returned == {"status": "done"}
    assert repo.find_by_id(stored["_id"])["status"] == "done"


def test_delete(database):
    repo = DoctorRepository(database)
    stored = repo.insert({"name": "Dr"})
    assert repo.delete(stored["_id"]) is True
    assert repo.delete(stored["_id"]) is False
    assert repo.find_all() == []


def test_find_error_message():
    repo = DoctorRepository({"doctors": FailingCollection()})
    with pytest.raises(RepositoryError, match="^Database error: boom"):
        repo.find_all()


def test_collect_error_message():
    repo = DoctorRepository({"doctors": FailingCollection(cursor_fails=True)})
    with pytest.raises(RepositoryError, match="^Failed to collect results: boom"):
        repo.find_all()


def test_count_error_message():
    repo = AppointmentRepository({"appointments": FailingCollection()})
    with pytest.raises(RepositoryError, match="^Failed to count documents"):
        repo.find_all_paginated(0, 10)


@pytest.mark.parametrize(
    "repo_class, name, entity",
    [(AppointmentRepository, "appointments", "appointment"), (DoctorRepository, "doctors", "doctor")],
)
def test_write_error_messages(repo_class, name, entity):
    repo = repo_class({name: FailingCollection()})
    with pytest.raises(RepositoryError, match="^Insert failed"):
        repo.insert({})
    with pytest.raises(RepositoryError, match=f"^Failed to update {entity}"):
        repo.update(ObjectId(), {})
    with pytest.raises(RepositoryError, match=f"^Failed to delete {entity}"):
        repo.delete(ObjectId())