"""Repositories for clinic staff, stock, services, insurers, medical records and files."""

from __future__ import annotations

from typing import Any

from pymongo.errors import PyMongoError

from .crud import CrudRepository, RepositoryError


class NurseRepository(CrudRepository):
    collection_name = "nurses"
    assigns_ids = False
    insert_error = "Failed to insert nurse"
    update_error = "Failed to update nurse"
    delete_error = "Failed to delete nurse"


class MedicineRepository(CrudRepository):
    collection_name = "medicines"
    assigns_ids = False
    insert_error = "Failed to insert medicine"
    update_error = "Failed to update medicine"
    delete_error = "Failed to delete medicine"


class ServiceRepository(CrudRepository):
    collection_name = "services"
    assigns_ids = False
    insert_error = "Failed to insert service"
    update_error = "Failed to update service"
    delete_error = "Failed to delete service"


class InsuranceRepository(CrudRepository):
    collection_name = "insurances"
    assigns_ids = False
    insert_error = "Failed to insert insurance"
    update_error = "Failed to update insurance"
    delete_error = "Failed to delete insurance"


class MedicalRecordRepository(CrudRepository):
    collection_name = "medical_records"

    def find_by_nik(self, nik: str) -> dict[str, Any] | None:
        """Return the medical record for a national identity number, if any."""
        try:
            return self.collection.find_one({"nik": nik})
        except PyMongoError as exc:
            raise RepositoryError(f"Database error: {exc}") from exc


class FileRepository(CrudRepository):
    collection_name = "files"