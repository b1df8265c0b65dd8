import base64
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, cast
from uuid import UUID

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .exceptions import CursorSerializationError, MalformedCursorError

# Tags for scalars that JSON cannot carry natively
_DATETIME_TAG = "$datetime"
_DATE_TAG = "$date"
_DECIMAL_TAG = "$decimal"
_UUID_TAG = "$uuid"
_BYTES_TAG = "$bytes"


class CursorValueSerializer:
    """
    Converts cursor boundary values to and from JSON-safe form.

    Architectural Note:
    -------------------
    A cursor must hand back exactly the value the row held, otherwise the
    boundary comparison on the next request drifts (a datetime coming back
    as a string compares differently). JSON natives (str, int, float, bool,
    None) pass through; other scalars become single-key tagged objects
    such as {"$datetime": "2024-01-01T00:00:00+00:00"}.
    """

    def dump(self, value: Any) -> Any:
        """Converts one row value into its JSON-safe representation."""
        if isinstance(value, Enum):
            value = value.value
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        # datetime before date: datetime is a date subclass
        if isinstance(value, datetime):
            return {_DATETIME_TAG: value.isoformat()}
        if isinstance(value, date):
            return {_DATE_TAG: value.isoformat()}
        if isinstance(value, Decimal):
            return {_DECIMAL_TAG: str(value)}
        if isinstance(value, UUID):
            return {_UUID_TAG: str(value)}
        if isinstance(value, (bytes, bytearray)):
            return {_BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
        raise CursorSerializationError(
            f"Unsupported cursor value type {type(value).__name__}: {value!r}"
        )

    def load(self, raw: Any) -> Any:
        """
        Restores a value written by dump().

        Raises:
            MalformedCursorError: If the value is not a scalar or a known tag
        """
        if raw is None or isinstance(raw, (bool, int, float, str)):
            return raw
        if not isinstance(raw, dict) or len(raw) != 1:
            raise MalformedCursorError(f"unexpected cursor value {raw!r}")

        tag, payload = next(iter(raw.items()))
        if not isinstance(payload, str):
            raise MalformedCursorError(f"tagged value {tag!r} must hold a string")
        try:
            if tag == _DATETIME_TAG:
                return datetime.fromisoformat(payload)
            if tag == _DATE_TAG:
                return date.fromisoformat(payload)
            if tag == _DECIMAL_TAG:
                return Decimal(payload)
            if tag == _UUID_TAG:
                return UUID(payload)
            if tag == _BYTES_TAG:
                return base64.b64decode(payload.encode("ascii"), validate=True)
        except (ValueError, ArithmeticError) as e:
            raise MalformedCursorError(
                f"invalid {tag!r} value {payload!r}", original_error=e
            ) from e
        raise MalformedCursorError(f"unknown value tag {tag!r}")


class DynamoSerializer:
    """
    Handles the conversion between Python values and DynamoDB Low-Level format.

    Architectural Note:
    -------------------
    DynamoDB requires numbers to be passed as 'Decimal' to avoid precision loss.
    Boto3's TypeSerializer throws an error if it encounters a float.
    This class converts boundary values to DynamoDB-safe types before passing
    them to Boto3, and restores plain Python numbers on retrieval.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def to_dynamo_value(self, value: Any) -> dict[str, Any]:
        """
        Serializes a single scalar value to DynamoDB format.
        Used for building ExpressionAttributeValues in queries.
        E.g.: 10.5 -> {'N': '10.5'}
        """
        clean_value = self._prepare_for_dynamo(value)
        try:
            result = cast(dict[str, Any], self._serializer.serialize(clean_value))
        except TypeError as e:
            raise CursorSerializationError(
                f"Failed to serialize value '{value}'. error={e!s}", original_error=e
            ) from e
        return result

    def from_dynamo(self, item: dict[str, Any]) -> dict[str, Any]:
        """Converts DynamoDB JSON format back to standard Python dict."""
        python_data = {k: self._deserializer.deserialize(v) for k, v in item.items()}
        result = self._restore_to_python(python_data)
        assert isinstance(result, dict)
        return result

    def _prepare_for_dynamo(self, value: Any) -> Any:
        """
        Prepares a Python value for Boto3 TypeSerializer.

        Converts:
        - float -> Decimal (boto3 requirement)
        - datetime/date -> ISO 8601 string
        - UUID -> string
        - Enum -> value
        """
        if isinstance(value, float):
            # Convert to string first to avoid float precision artifacts during Decimal creation
            return Decimal(str(value))
        if isinstance(value, datetime):
            # UTC is written with a 'Z' suffix, the way items are usually stored
            utc_offset = value.utcoffset()
            if utc_offset is not None and utc_offset.total_seconds() == 0:
                return value.replace(tzinfo=None).isoformat() + "Z"
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        return value

    def _restore_to_python(self, value: Any) -> Any:
        """
        Recursively restores DynamoDB values to Python-friendly types.

        Converts:
        - Decimal -> int (if whole number) or float
        """
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return float(value)
        if isinstance(value, list):
            return [self._restore_to_python(v) for v in value]
        if isinstance(value, dict):
            return {k: self._restore_to_python(v) for k, v in value.items()}
        return value
