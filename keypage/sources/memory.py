"""
In-memory row sources.

Useful for tests, for small reference tables, and for paginating results
that were already loaded. Rows may be mappings or plain objects.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from .._logging import logger
from ..conditions import Condition, DynCondition, evaluate_condition, wrap_condition
from ..ordering import OrderingEntry, OrderSpec, normalize_ordering
from ..paginator import AsyncCursorPaginateMixin, CursorPaginateMixin

T = TypeVar("T")

_MISSING = object()


def _sort_key(column: str) -> Any:
    def key(row: Any) -> tuple[bool, Any]:
        if isinstance(row, Mapping):
            value = row.get(column, _MISSING)
        else:
            value = getattr(row, column, _MISSING)
        if value is None or value is _MISSING:
            # Nulls sort after every value ascending, before every value descending
            return (True, None)
        return (False, value)

    return key


class _MemoryQuery(Generic[T]):
    """Shared state and builder methods of the in-memory sources."""

    def __init__(
        self,
        rows: Iterable[T],
        ordering: Iterable[OrderingEntry] | None = None,
        condition: Condition | None = None,
    ) -> None:
        self._rows: tuple[T, ...] = tuple(rows)
        self._ordering: OrderSpec = normalize_ordering(ordering)
        self._condition: DynCondition | None = (
            wrap_condition(condition) if condition is not None else None
        )

    def _clone(self, **changes: Any) -> Any:
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone.__dict__.update(changes)
        return clone

    @property
    def condition(self) -> DynCondition | None:
        return self._condition

    def ordering(self) -> OrderSpec:
        return self._ordering

    def filter(self, condition: Condition) -> Any:
        """
        Returns a new source narrowed by condition.

        Multiple calls are combined with AND.
        """
        new_condition = wrap_condition(condition)
        if self._condition is not None:
            new_condition = self._condition & new_condition
        return self._clone(_condition=new_condition)

    def order_by(self, ordering: Iterable[OrderingEntry]) -> Any:
        """Returns a new source with ordering replacing the current one."""
        return self._clone(_ordering=normalize_ordering(ordering))

    def _select(self, count: int) -> list[T]:
        if self._condition is not None:
            condition = self._condition
            rows = [row for row in self._rows if evaluate_condition(condition, row)]
        else:
            rows = list(self._rows)

        # Stable sort, least significant column first
        for entry in reversed(self._ordering):
            rows.sort(key=_sort_key(entry.column), reverse=not entry.is_ascending)

        logger.debug(
            "In-memory fetch",
            extra={"rows": len(self._rows), "matched": len(rows), "count": count},
        )
        return rows[:count]

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryRowSource(_MemoryQuery[T], CursorPaginateMixin):
    """
    Row source over a sequence held in memory.

    Usage:
        source = InMemoryRowSource(rows, ordering=[("t", "desc"), ("id", "desc")])
        page = source.cursor_paginate(2)
    """

    def fetch(self, count: int) -> Sequence[T]:
        return self._select(count)


class AsyncInMemoryRowSource(_MemoryQuery[T], AsyncCursorPaginateMixin):
    """InMemoryRowSource with a coroutine fetch(), for apaginate()."""

    async def fetch(self, count: int) -> Sequence[T]:
        return self._select(count)
