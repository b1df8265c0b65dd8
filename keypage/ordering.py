"""
Ordering model for keyset pagination.

An ordering is kept as an ordered tuple of OrderColumn entries. It is never
collapsed into a mapping keyed by column name: the position of every column
is what pairs it with the matching cursor value.

Usage:
    from keypage import OrderColumn, normalize_ordering

    normalize_ordering([("created_at", "desc"), "id"])
    normalize_ordering(["-created_at", "-id"])
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .config import PaginatorOptions


class Direction(str, Enum):
    """Sort direction of a single ordering column."""

    ASC = "asc"
    DESC = "desc"

    def inverted(self) -> Direction:
        return Direction.DESC if self is Direction.ASC else Direction.ASC

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Accepts a Direction or a case-insensitive 'asc'/'desc' string."""
        if isinstance(value, Direction):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Invalid sort direction {value!r}, expected 'asc' or 'desc'")


@dataclass(frozen=True)
class OrderColumn:
    """One (column, direction) entry of an ordering."""

    column: str
    direction: Direction = Direction.ASC

    def __post_init__(self) -> None:
        if not isinstance(self.column, str) or not self.column:
            raise ValueError(f"Ordering column must be a non-empty string, got {self.column!r}")
        # Frozen dataclass: normalize the direction through object.__setattr__
        object.__setattr__(self, "direction", Direction.parse(self.direction))

    @property
    def is_ascending(self) -> bool:
        return self.direction is Direction.ASC

    def inverted(self) -> OrderColumn:
        return OrderColumn(self.column, self.direction.inverted())


OrderSpec = tuple[OrderColumn, ...]

# Anything normalize_ordering() understands for a single entry
OrderingEntry = Union[OrderColumn, tuple[str, Union[str, Direction]], str]


def _to_column(entry: OrderingEntry) -> OrderColumn:
    if isinstance(entry, OrderColumn):
        return entry
    if isinstance(entry, str):
        if entry.startswith("-"):
            return OrderColumn(entry[1:], Direction.DESC)
        return OrderColumn(entry, Direction.ASC)
    if isinstance(entry, tuple) and len(entry) == 2:
        column, direction = entry
        return OrderColumn(column, Direction.parse(direction))
    raise ValueError(
        f"Invalid ordering entry {entry!r}, expected OrderColumn, (column, direction) or 'column'"
    )


def _is_single_pair(ordering: object) -> bool:
    if not (isinstance(ordering, tuple) and len(ordering) == 2):
        return False
    column, direction = ordering
    if not isinstance(column, str) or not isinstance(direction, (str, Direction)):
        return False
    try:
        Direction.parse(direction)
    except ValueError:
        return False
    return True


def normalize_ordering(ordering: Iterable[OrderingEntry] | None) -> OrderSpec:
    """
    Converts the accepted ordering forms into an OrderSpec.

    Order and repeated columns are preserved exactly as given.

    Args:
        ordering: OrderColumn instances, (column, direction) tuples,
                  or 'column' / '-column' strings. None means no ordering.
                  A lone (column, direction) tuple is one entry, so
                  ("t", "desc") is never read as columns "t" and "desc".

    Returns:
        A tuple of OrderColumn (possibly empty)
    """
    if ordering is None:
        return ()
    if isinstance(ordering, (str, OrderColumn)) or _is_single_pair(ordering):
        # A single entry passed on its own
        return (_to_column(ordering),)
    return tuple(_to_column(entry) for entry in ordering)


def invert_ordering(order_spec: OrderSpec) -> OrderSpec:
    """Flips the direction of every column, keeping column order."""
    return tuple(column.inverted() for column in order_spec)


def resolve_ordering(
    ordering: Iterable[OrderingEntry] | None, options: PaginatorOptions
) -> OrderSpec:
    """
    Normalizes an ordering and applies the fallback when it is empty.

    The fallback is a single column holding a stable unique row identifier,
    so results stay well-defined even when the caller did not order.
    """
    order_spec = normalize_ordering(ordering)
    if order_spec:
        return order_spec
    return (OrderColumn(options.fallback_column, options.fallback_direction),)
