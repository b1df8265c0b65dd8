"""
Cursor codec for keyset pagination.

A cursor carries the ordering-column values of one boundary row plus a flag
telling whether it points to the next page (built from the last row of a
page) or to the previous one (built from the first row).

Wire format: URL-safe base64, without padding, of the JSON object
    {"values": [...], "point_to_next": true}

Cursors are not signed. They are only meaningful against the ordering that
produced them.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool
from pydantic import ValidationError as PydanticValidationError

from ._logging import logger, redact_values
from .exceptions import CursorSerializationError, MalformedCursorError
from .ordering import OrderSpec
from .serializer import CursorValueSerializer

_value_serializer = CursorValueSerializer()


class CursorPayload(BaseModel):
    """Shape check for a decoded cursor document."""

    model_config = ConfigDict(extra="ignore")

    values: list[Any]
    point_to_next: StrictBool


@dataclass(frozen=True)
class Cursor:
    """
    A decoded cursor.

    Attributes:
        values: Boundary values, one per ordering column, in ordering order
        points_to_next: True to continue forward, False to go backward
    """

    values: tuple[Any, ...]
    points_to_next: bool


def get_row_value(row: Any, column: str) -> Any:
    """
    Reads a column from a row.

    Mappings are read by key, anything else by attribute.

    Raises:
        CursorSerializationError: If the row has no such column
    """
    if isinstance(row, Mapping):
        if column in row:
            return row[column]
    elif hasattr(row, column):
        return getattr(row, column)
    raise CursorSerializationError(
        f"Row of type {type(row).__name__} has no value for ordering column '{column}'",
        column=column,
    )


def encode_cursor(order_spec: OrderSpec, row: Any, points_to_next: bool) -> str:
    """
    Builds a cursor string from the boundary row of a page.

    Args:
        order_spec: The ordering the page was fetched under
        row: The first or last row of the page
        points_to_next: True when built from the last row

    Returns:
        URL-safe opaque cursor string
    """
    values = []
    for entry in order_spec:
        try:
            values.append(_value_serializer.dump(get_row_value(row, entry.column)))
        except CursorSerializationError as e:
            if e.column is None:
                e.column = entry.column
            raise

    document = {"values": values, "point_to_next": bool(points_to_next)}
    raw = json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> Cursor:
    """
    Decodes a cursor string.

    Args:
        cursor: A string produced by encode_cursor()

    Returns:
        Decoded Cursor

    Raises:
        MalformedCursorError: If the string is not a valid cursor
    """
    if not isinstance(cursor, str) or not cursor:
        raise MalformedCursorError("cursor must be a non-empty string", cursor=None)

    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        document = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as e:
        logger.warning(
            "Rejected undecodable cursor", extra={"cursor_hash": redact_values(cursor)}
        )
        raise MalformedCursorError("not valid base64 JSON", cursor=cursor, original_error=e) from e

    try:
        payload = CursorPayload.model_validate(document)
    except PydanticValidationError as e:
        logger.warning(
            "Rejected cursor with invalid shape", extra={"cursor_hash": redact_values(cursor)}
        )
        raise MalformedCursorError(
            "expected an object with 'values' list and boolean 'point_to_next'",
            cursor=cursor,
            original_error=e,
        ) from e

    try:
        values = tuple(_value_serializer.load(v) for v in payload.values)
    except MalformedCursorError as e:
        e.cursor = cursor
        raise

    return Cursor(values=values, points_to_next=payload.point_to_next)
