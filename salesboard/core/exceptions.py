from typing import Any, Dict, Optional

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class AppException(Exception):
    def __init__(self, message: str,
                 error_code: Optional[str] = None,
                 status_code: int = HTTP_400_BAD_REQUEST,
                 details: Optional[Dict[str, Any]] = None,):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', status_code={self.status_code})"


class RequestValidationError(AppException):
    """
    Raised when an upload request is rejected before any batch exists:
    missing file or entity, oversized file, unsupported type, or a
    workbook without a single usable row.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        self.value = value

        exception_details = details or {}
        if field:
            exception_details["field"] = field
        if value is not None:
            exception_details["value"] = value

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=exception_details,
            status_code=HTTP_400_BAD_REQUEST,
        )


class ParseError(AppException):
    """Raised when the uploaded payload is not a readable spreadsheet."""

    def __init__(
        self,
        message: str = "Spreadsheet could not be parsed",
        file_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.file_name = file_name

        exception_details = details or {}
        if file_name:
            exception_details["file_name"] = file_name

        super().__init__(
            message=message,
            error_code="PARSE_ERROR",
            details=exception_details,
            status_code=HTTP_400_BAD_REQUEST,
        )


class PersistenceError(AppException):
    """
    Raised when the sales rows or the upload history cannot be written.

    Carries the batch id (if one was allocated), the number of rows that
    made it into storage and an optional remediation hint.
    """

    def __init__(
        self,
        message: str = "Failed to persist upload",
        batch_id: Optional[str] = None,
        rows_inserted: Optional[int] = None,
        hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.batch_id = batch_id
        self.rows_inserted = rows_inserted
        self.hint = hint

        exception_details = details or {}
        if batch_id:
            exception_details["batch_id"] = batch_id
        if rows_inserted is not None:
            exception_details["rows_inserted"] = rows_inserted
        if hint:
            exception_details["hint"] = hint

        super().__init__(
            message=message,
            error_code="PERSISTENCE_ERROR",
            details=exception_details,
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        )


class NotFoundError(AppException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.resource = resource
        self.resource_id = resource_id

        if not message:
            if resource_id:
                message = f"{resource} with ID '{resource_id}' not found"
            else:
                message = f"{resource} not found"

        exception_details = details or {}
        exception_details.update({
            "resource": resource,
            "resource_id": resource_id,
        })

        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            details=exception_details,
            status_code=HTTP_404_NOT_FOUND,
        )


class DatabaseError(AppException):
    """Exception raised for database-related errors."""

    def __init__(
        self,
        message: str = "Database error occurred",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation

        exception_details = details or {}
        if operation:
            exception_details["operation"] = operation

        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            details=exception_details,
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        )


class MappingError(RuntimeError):
    """Raised when the column mapping table is invalid."""
