from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from botocore.exceptions import ClientError


class KeypageError(Exception):
    """Base exception for all keypage errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class MalformedCursorError(KeypageError):
    """Raised when a cursor string cannot be decoded into a cursor."""

    def __init__(
        self, reason: str, cursor: str | None = None, original_error: Exception | None = None
    ) -> None:
        super().__init__(f"Malformed cursor: {reason}", original_error)
        self.reason = reason
        self.cursor = cursor


class OrderingMismatchError(KeypageError):
    """Raised when a cursor was produced under a different ordering."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Cursor carries {actual} value(s) but the ordering has {expected} column(s)"
        )
        self.expected = expected
        self.actual = actual


class InvalidLimitError(KeypageError):
    """Raised when the page size is not a positive integer (or exceeds the maximum)."""

    def __init__(self, limit: Any, max_limit: int | None = None) -> None:
        if max_limit is not None:
            msg = f"Limit must be an integer between 1 and {max_limit}, got {limit!r}"
        else:
            msg = f"Limit must be a positive integer, got {limit!r}"
        super().__init__(msg)
        self.limit = limit
        self.max_limit = max_limit


class CursorSerializationError(KeypageError):
    """Raised when a row value cannot be written into a cursor."""

    def __init__(
        self, message: str, column: str | None = None, original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)
        self.column = column


class StoreFailureError(KeypageError):
    """Raised when the underlying row source fails to execute a fetch."""

    def __init__(
        self, message: str = "Row source fetch failed", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class TableNotFoundError(StoreFailureError):
    """Raised when the DynamoDB table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Table '{table_name}' not found", original_error)
        self.table_name = table_name


class ProvisionedThroughputExceededError(StoreFailureError):
    """Raised when DynamoDB throttles requests."""

    def __init__(
        self, message: str = "Request rate exceeded", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class RequestTimeoutError(StoreFailureError):
    """Raised when a request to DynamoDB times out."""

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class StoreValidationError(StoreFailureError):
    """Raised when DynamoDB rejects the generated request."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


@contextmanager
def handle_store_errors(source: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that wraps any non-keypage exception raised by a row
    source into a StoreFailureError.

    Errors that are already KeypageError instances pass through untouched,
    so DynamoDB-specific subclasses keep their type.

    Usage:
        with handle_store_errors("orders"):
            rows = source.fetch(limit + 1)
    """
    try:
        yield
    except KeypageError:
        raise
    except Exception as e:
        where = f" ({source})" if source else ""
        raise StoreFailureError(
            message=f"Row source fetch failed{where}: {e!s}", original_error=e
        ) from e


@contextmanager
def handle_dynamo_errors(table_name: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches botocore.exceptions.ClientError
    and raises the appropriate StoreFailureError subclass.

    Args:
        table_name: Optional table name for better error messages

    Usage:
        with handle_dynamo_errors(table_name="orders"):
            client.query(...)
    """
    try:
        yield
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "ResourceNotFoundException":
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if error_code in (
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
        ):
            raise ProvisionedThroughputExceededError(message=error_message, original_error=e) from e

        if error_code in ("ValidationException", "SerializationException"):
            raise StoreValidationError(message=error_message, original_error=e) from e

        if error_code in ("RequestTimeout", "RequestTimeoutException"):
            raise RequestTimeoutError(message=error_message, original_error=e) from e

        # Unknown error: wrap in generic StoreFailureError
        raise StoreFailureError(
            message=f"DynamoDB error ({error_code}): {error_message}", original_error=e
        ) from e
