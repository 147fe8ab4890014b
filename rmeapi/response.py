"""Uniform JSON envelopes for API success, paginated and error responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from http import HTTPStatus
from typing import Any, Mapping

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def _status_code(status: int) -> int:
    """Return a valid HTTP status code as a plain int, raising ValueError otherwise."""
    return int(HTTPStatus(status))


def _plain(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, Mapping):
        return dict(value)
    return value


@dataclass
class ErrorDetails:
    """Machine-readable error code with optional human-readable details."""

    code: str
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "details": self.details}


class ApiResponse:
    """Envelope for a single successful (or generic) response carrying data."""

    def __init__(
        self,
        status: int,
        message: str,
        data: Any = None,
        *,
        success: bool = True,
        error: ErrorDetails | None = None,
        timestamp: str | None = None,
    ) -> None:
        self.success = success
        self.status = _status_code(status)
        self.message = str(message)
        self.data = data
        self.error = error
        self.timestamp = timestamp if timestamp is not None else _timestamp()

    @classmethod
    def success(cls, status: int, message: str, data: Any) -> "ApiResponse":
        """Build a successful response with the given status."""
        return cls(status, message, data)

    @classmethod
    def ok(cls, message: str, data: Any) -> "ApiResponse":
        return cls(HTTPStatus.OK, message, data)

    @classmethod
    def created(cls, message: str, data: Any) -> "ApiResponse":
        return cls(HTTPStatus.CREATED, message, data)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "data": self.data,
        }
        if self.error is not None:
            body["error"] = self.error.to_dict()
        body["timestamp"] = self.timestamp
        return body

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiResponse):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"ApiResponse(success={self.success!r}, status={self.status!r}, "
            f"message={self.message!r}, data={self.data!r}, error={self.error!r}, "
            f"timestamp={self.timestamp!r})"
        )


@dataclass
class PaginatedResponse:
    """Envelope for a page of records together with pagination metadata."""

    success: bool
    status: int
    message: str
    data: list[Any]
    pagination: Any
    timestamp: str = field(default_factory=_timestamp)

    @classmethod
    def ok(cls, message: str, data: Any, pagination: Any) -> "PaginatedResponse":
        return cls(
            success=True,
            status=int(HTTPStatus.OK),
            message=str(message),
            data=list(data),
            pagination=pagination,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "data": self.data,
            "pagination": _plain(self.pagination),
            "timestamp": self.timestamp,
        }


@dataclass
class ErrorResponse:
    """Envelope for an error, with no data payload."""

    success: bool
    status: int
    message: str
    error: ErrorDetails
    timestamp: str = field(default_factory=_timestamp)

    @classmethod
    def create(
        cls, status: int, message: str, error_code: str, details: str | None = None
    ) -> "ErrorResponse":
        return cls(
            success=False,
            status=_status_code(status),
            message=str(message),
            error=ErrorDetails(code=str(error_code), details=details),
        )

    @classmethod
    def bad_request(cls, message: str, details: str | None = None) -> "ErrorResponse":
        return cls.create(HTTPStatus.BAD_REQUEST, message, "BAD_REQUEST", details)

    @classmethod
    def unauthorized(cls, message: str) -> "ErrorResponse":
        return cls.create(HTTPStatus.UNAUTHORIZED, message, "UNAUTHORIZED")

    @classmethod
    def forbidden(cls, message: str) -> "ErrorResponse":
        return cls.create(HTTPStatus.FORBIDDEN, message, "FORBIDDEN")

    @classmethod
    def not_found(cls, message: str) -> "ErrorResponse":
        return cls.create(HTTPStatus.NOT_FOUND, message, "NOT_FOUND")

    @classmethod
    def conflict(cls, message: str, details: str | None = None) -> "ErrorResponse":
        return cls.create(HTTPStatus.CONFLICT, message, "CONFLICT", details)

    @classmethod
    def validation_error(cls, message: str, details: str | None = None) -> "ErrorResponse":
        return cls.create(
            HTTPStatus.UNPROCESSABLE_ENTITY, message, "VALIDATION_ERROR", details
        )

    @classmethod
    def internal_error(cls, message: str, details: str | None = None) -> "ErrorResponse":
        return cls.create(
            HTTPStatus.INTERNAL_SERVER_ERROR, message, "INTERNAL_ERROR", details
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "error": self.error.to_dict(),
            "timestamp": self.timestamp,
        }


def no_content() -> tuple[int, dict[str, Any]]:
    """Return the status and body used after a resource has been deleted."""
    return int(HTTPStatus.NO_CONTENT), {
        "success": True,
        "status": 204,
        "message": "Resource deleted successfully",
        "data": None,
        "timestamp": _timestamp(),
    }


def api_success(*args: Any) -> ApiResponse:
    """Shorthand for a 200 response: ``api_success(data)`` or ``api_success(message, data)``."""
    if len(args) == 1:
        return ApiResponse.ok("Success", args[0])
    if len(args) == 2:
        return ApiResponse.ok(args[0], args[1])
    raise TypeError(f"api_success() takes 1 or 2 arguments ({len(args)} given)")


def api_error(
    status: int, message: str, code: str = "ERROR", details: str | None = None
) -> ErrorResponse:
    """Shorthand for an error response with a default code of ``ERROR``."""
    return ErrorResponse.create(status, message, code, details)