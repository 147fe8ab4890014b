# rmeapi

Building blocks for an electronic medical record (RME) HTTP API backed by MongoDB:

- `rmeapi.response` builds the JSON envelopes that endpoints return.
- `rmeapi.s3` stores uploaded files in S3 or an S3-compatible service.
- `rmeapi.repository` holds one MongoDB repository for each collection.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Response envelopes

```python
from rmeapi.response import ApiResponse, ErrorResponse, no_content

ok = ApiResponse.ok("Doctor found", {"name": "dr. Example"})
ok.to_dict()
# {"success": True, "status": 200, "message": "Doctor found",
#  "data": {"name": "dr. Example"}, "timestamp": "2024-01-01 12:00:00"}

missing = ErrorResponse.not_found("Doctor not found")
missing.status          # 404
missing.error.code      # "NOT_FOUND"

status, body = no_content()   # 204 with a "Resource deleted successfully" body
```

- `ApiResponse.success(status, message, data)` builds a success envelope for
  any valid HTTP status; `ApiResponse.ok` gives 200 and `ApiResponse.created`
  gives 201. An invalid status raises `ValueError`.
- `PaginatedResponse.ok(message, data, pagination)` gives a 200 envelope with
  a `pagination` block; an object with a `to_dict()` method or a mapping is
  accepted as the pagination value.
- `ErrorResponse.create(status, message, error_code, details)` builds an
  error envelope. The shortcuts are `bad_request` (400, `BAD_REQUEST`),
  `unauthorized` (401), `forbidden` (403), `not_found` (404), `conflict`
  (409), `validation_error` (422, `VALIDATION_ERROR`) and `internal_error`
  (500, `INTERNAL_ERROR`).
- `api_success(data)` or `api_success(message, data)` is shorthand for a 200
  response; the message defaults to `"Success"`.
- `api_error(status, message, code="ERROR", details=None)` is shorthand for an
  error response.

Timestamps are local time in the form `YYYY-MM-DD HH:MM:SS`. Every envelope
has a `to_dict()` method giving the JSON-ready body.

## File storage

`init_s3_client` (or `S3Client.from_env`) reads its settings from the
environment, or from a mapping passed in its place:

| Variable | Meaning |
| --- | --- |
| `AWS_ACCESS_KEY_ID`, `AWS_SECRET_ACCESS_KEY` | credentials |
| `AWS_DEFAULT_REGION` | region, `idn` when unset |
| `AWS_ENDPOINT` | endpoint of an S3-compatible service |
| `AWS_USE_PATH_STYLE_ENDPOINT` | `true` for path-style addressing (only with `AWS_ENDPOINT`) |
| `AWS_BUCKET` | bucket used in public URLs when no endpoint is set |

```python
from rmeapi.s3 import init_s3_client, upload_file_to_s3, delete_file_from_s3, generate_s3_key

client = init_s3_client()
key = generate_s3_key("report.pdf")          # "files/20240101_120000_report.pdf"
url = upload_file_to_s3(client, "records", key, b"...")
delete_file_from_s3(client, "records", key)
```

Requests are signed with AWS Signature Version 4 and sent with the standard
library. The returned URL is `<endpoint>/<bucket>/<key>`, where the endpoint
is `AWS_ENDPOINT` or `https://<AWS_BUCKET>.s3.amazonaws.com`. Failed uploads
and deletes raise `S3Error`.

## Repositories

Every repository takes a `pymongo` database and works on one collection.
Database failures, and ids that are not valid ObjectIds, raise
`RepositoryError`. Ids may be given as `ObjectId` or as their hex string.

```python
from pymongo import MongoClient
from rmeapi.repository.crud import DoctorRepository

db = MongoClient("mongodb://localhost:27017")["rme"]
doctors = DoctorRepository(db)

doctor = doctors.insert({"name": "dr. Example"})
page, total = doctors.find_all_paginated(skip=0, limit=10)
doctors.update(doctor["_id"], {**doctor, "name": "dr. Renamed"})
doctors.delete(doctor["_id"])   # True when a document was removed
```

The repositories are spread over these modules:

- `rmeapi.repository.crud`: the base `CrudRepository` (`find_all`,
  `find_all_paginated`, `find_by_id`, `insert`, `update` by replacement,
  `delete`), `RepositoryError`, `AppointmentRepository` and
  `DoctorRepository`.
- `rmeapi.repository.clinic`: `NurseRepository`, `MedicineRepository`,
  `ServiceRepository`, `InsuranceRepository`, `MedicalRecordRepository`
  (with `find_by_nik`) and `FileRepository`.
- `rmeapi.repository.coding`: `CodeRepository`, `ChildCodeRepository`,
  `InterpretationRepository`, `KitRepository`, `RegionRepository` and
  `ObservationRepository`. They add records with `create`, which returns the
  record with the id the database stored. `CodeRepository`,
  `InterpretationRepository`, `KitRepository` and `RegionRepository` have
  `find_by_code`; `InterpretationRepository` also has
  `find_by_code_and_coding_code`. `InterpretationRepository` and
  `RegionRepository` have `find_by_filter_paginated(query, skip, limit)`.
  Updates of child codes, interpretations, kits and regions set a fixed list
  of fields; observation updates set every field but the id, and observation
  pages are sorted newest first by `created_at`.
- `rmeapi.repository.accounts`: `UserRepository` (lookups by e-mail address,
  reset token and refresh token, and `update_reset_token`,
  `update_password` and `update_refresh_token`, which also stamp
  `updatedAt`), `RoleRepository` and `UserRoleRepository`, whose
  `find_all_paginated(page, limit)` returns a `PaginatedResult` and whose
  `update` returns `None` when the record does not exist.

## What this package does not do

There is no HTTP server here: no routes, request handlers, authentication or
token handling. The package gives the response bodies, file storage and data
access that such a server uses; serving them, and opening the MongoDB
connection, is left to the application.