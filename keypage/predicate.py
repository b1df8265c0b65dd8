"""
Boundary predicate construction.

Given an ordering (c1, d1), (c2, d2), ..., (cn, dn) and a cursor holding
boundary values v1..vn, the rows strictly past the boundary are those that
compare lexicographically greater along the ordering:

    c1 >1 v1  OR  (c1 = v1 AND (c2 >2 v2  OR  (c2 = v2 AND ... cn >n vn)))

where ">i" is ">" for an ascending column and "<" for a descending one.
Walking backward uses the same tree with every inequality flipped, and the
rows are fetched under the inverted ordering so the store returns the rows
closest to the boundary first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from ._logging import logger, redact_values
from .conditions import Attr, DynCondition
from .config import DEFAULT_OPTIONS, PaginatorOptions
from .cursor import Cursor, decode_cursor
from .exceptions import OrderingMismatchError
from .ordering import OrderColumn, OrderingEntry, OrderSpec, invert_ordering, resolve_ordering


def _strictly_past(entry: OrderColumn, value: Any, forward: bool) -> DynCondition:
    if entry.is_ascending == forward:
        return Attr(entry.column) > value
    return Attr(entry.column) < value


def build_boundary_condition(
    order_spec: OrderSpec, values: Sequence[Any], points_to_next: bool
) -> DynCondition:
    """
    Builds the condition selecting rows strictly after (or before) a boundary.

    Columns are paired with values by position.

    Args:
        order_spec: The ordering the boundary values were taken under
        values: Boundary values, one per ordering column
        points_to_next: True for rows after the boundary, False for rows before

    Raises:
        OrderingMismatchError: If the value count differs from the column count
    """
    if not order_spec or len(values) != len(order_spec):
        raise OrderingMismatchError(expected=len(order_spec), actual=len(values))

    triples = list(zip(order_spec, values))

    # Build from the innermost (last) column outwards; the last column
    # contributes only its strict inequality.
    last_entry, last_value = triples[-1]
    condition = _strictly_past(last_entry, last_value, points_to_next)
    for entry, value in reversed(triples[:-1]):
        tie = (Attr(entry.column) == value) & condition
        condition = _strictly_past(entry, value, points_to_next) | tie
    return condition


def fetch_ordering(order_spec: OrderSpec, cursor: Cursor | None) -> OrderSpec:
    """Ordering to fetch with: inverted when walking backward, unchanged otherwise."""
    if cursor is not None and not cursor.points_to_next:
        return invert_ordering(order_spec)
    return order_spec


@dataclass(frozen=True)
class FetchPlan:
    """
    Everything needed to run one page fetch and assemble its result.

    Attributes:
        order_spec: The caller's ordering (fallback applied)
        cursor: Decoded input cursor, None for the first page
        condition: Boundary condition, None for the first page
        fetch_ordering: Ordering the rows are fetched under
    """

    order_spec: OrderSpec
    cursor: Cursor | None
    condition: DynCondition | None
    fetch_ordering: OrderSpec

    @property
    def has_cursor(self) -> bool:
        return self.cursor is not None

    @property
    def is_backward(self) -> bool:
        return self.cursor is not None and not self.cursor.points_to_next


def plan_fetch(
    ordering: Iterable[OrderingEntry] | None,
    cursor: str | Cursor | None = None,
    options: PaginatorOptions | None = None,
) -> FetchPlan:
    """
    Resolves the ordering, decodes the cursor and builds the boundary condition.

    Args:
        ordering: The source's ordering; empty or None selects the fallback
        cursor: Cursor string (or an already decoded Cursor), None or "" for the first page
        options: Paginator settings

    Raises:
        MalformedCursorError: If the cursor string cannot be decoded
        OrderingMismatchError: If the cursor was built under a different ordering
    """
    options = options or DEFAULT_OPTIONS
    order_spec = resolve_ordering(ordering, options)

    if cursor == "":
        # An empty query parameter (?cursor=) asks for the first page
        cursor = None
    decoded = decode_cursor(cursor) if isinstance(cursor, str) else cursor
    if decoded is None:
        return FetchPlan(order_spec, None, None, order_spec)

    if len(decoded.values) != len(order_spec):
        logger.warning(
            "Cursor does not match ordering",
            extra={
                "columns": [entry.column for entry in order_spec],
                "cursor_values": len(decoded.values),
            },
        )
        raise OrderingMismatchError(expected=len(order_spec), actual=len(decoded.values))

    condition = build_boundary_condition(order_spec, decoded.values, decoded.points_to_next)
    plan = FetchPlan(order_spec, decoded, condition, fetch_ordering(order_spec, decoded))

    logger.debug(
        "Built boundary condition",
        extra={
            "columns": [entry.column for entry in order_spec],
            "direction": "backward" if plan.is_backward else "forward",
            "values_hash": redact_values(decoded.values),
        },
    )
    return plan
