"""
Cursor pagination over any row source.

A row source is an immutable query value that can report its ordering,
be narrowed by a condition, be re-ordered, and fetch up to N rows. Both
narrowing and re-ordering return a new source; the receiver is left as is.

Usage:
    from keypage import InMemoryRowSource, paginate

    source = InMemoryRowSource(rows, ordering=[("created_at", "desc"), ("id", "desc")])
    page = paginate(source, limit=20)
    older = paginate(source, limit=20, cursor=page.next_cursor)
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Iterator, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from ._logging import logger
from .conditions import Condition
from .config import DEFAULT_OPTIONS, PaginatorOptions
from .cursor import Cursor
from .exceptions import handle_store_errors
from .ordering import OrderSpec
from .pagination import Page, assemble_page
from .predicate import FetchPlan, plan_fetch

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class RowSource(Protocol[T_co]):
    """A synchronous, immutable query over rows."""

    def ordering(self) -> OrderSpec: ...

    def filter(self, condition: Condition) -> RowSource[T_co]: ...

    def order_by(self, ordering: OrderSpec) -> RowSource[T_co]: ...

    def fetch(self, count: int) -> Sequence[T_co]: ...


@runtime_checkable
class AsyncRowSource(Protocol[T_co]):
    """Same contract as RowSource with a coroutine fetch()."""

    def ordering(self) -> OrderSpec: ...

    def filter(self, condition: Condition) -> AsyncRowSource[T_co]: ...

    def order_by(self, ordering: OrderSpec) -> AsyncRowSource[T_co]: ...

    def fetch(self, count: int) -> Awaitable[Sequence[T_co]]: ...


def _prepare(
    source: Any, limit: int, cursor: str | Cursor | None, options: PaginatorOptions
) -> tuple[Any, FetchPlan]:
    options.validate_limit(limit)
    plan = plan_fetch(source.ordering(), cursor, options)

    query = source
    if plan.condition is not None:
        query = query.filter(plan.condition)
    query = query.order_by(plan.fetch_ordering)

    logger.info(
        "Fetching page",
        extra={
            "source": type(source).__name__,
            "limit": limit,
            "has_cursor": plan.has_cursor,
            "direction": "backward" if plan.is_backward else "forward",
            "columns": [entry.column for entry in plan.order_spec],
        },
    )
    return query, plan


def paginate(
    source: RowSource[T],
    limit: int,
    cursor: str | Cursor | None = None,
    *,
    options: PaginatorOptions | None = None,
) -> Page[T]:
    """
    Fetches one page of rows from a source.

    Args:
        source: The row source; its ordering drives the pagination
        limit: Maximum number of rows on the page (>= 1)
        cursor: next_cursor / prev_cursor of a previous page, None for the first page
        options: Paginator settings (fallback ordering, max limit)

    Returns:
        Page with items and the cursors of the neighbouring pages

    Raises:
        InvalidLimitError: If limit is not a positive integer
        MalformedCursorError: If the cursor cannot be decoded
        OrderingMismatchError: If the cursor belongs to a different ordering
        StoreFailureError: If the source fails to fetch
    """
    options = options or DEFAULT_OPTIONS
    query, plan = _prepare(source, limit, cursor, options)

    with handle_store_errors(type(source).__name__):
        rows = list(query.fetch(limit + 1))

    return assemble_page(rows, limit, plan)


async def apaginate(
    source: AsyncRowSource[T],
    limit: int,
    cursor: str | Cursor | None = None,
    *,
    options: PaginatorOptions | None = None,
) -> Page[T]:
    """Async variant of paginate() for sources with a coroutine fetch()."""
    options = options or DEFAULT_OPTIONS
    query, plan = _prepare(source, limit, cursor, options)

    with handle_store_errors(type(source).__name__):
        rows = list(await query.fetch(limit + 1))

    return assemble_page(rows, limit, plan)


def iter_pages(
    source: RowSource[T],
    limit: int,
    cursor: str | Cursor | None = None,
    *,
    options: PaginatorOptions | None = None,
) -> Iterator[Page[T]]:
    """
    Walks forward page by page until the last page.

    Lazy: each page is fetched when the iterator is advanced.
    """
    while True:
        page = paginate(source, limit, cursor, options=options)
        yield page
        if page.next_cursor is None:
            return
        cursor = page.next_cursor


async def aiter_pages(
    source: AsyncRowSource[T],
    limit: int,
    cursor: str | Cursor | None = None,
    *,
    options: PaginatorOptions | None = None,
) -> AsyncIterator[Page[T]]:
    """Async variant of iter_pages()."""
    while True:
        page = await apaginate(source, limit, cursor, options=options)
        yield page
        if page.next_cursor is None:
            return
        cursor = page.next_cursor


class CursorPaginateMixin:
    """
    Adds cursor pagination methods to a row source class.

    Usage:
        class OrderQuery(CursorPaginateMixin):
            def ordering(self): ...
            def filter(self, condition): ...
            def order_by(self, ordering): ...
            def fetch(self, count): ...

        page = OrderQuery(...).cursor_paginate(20)
    """

    def cursor_paginate(
        self, limit: int, cursor: str | Cursor | None = None, **kwargs: Any
    ) -> Page[Any]:
        return paginate(self, limit, cursor, **kwargs)  # type: ignore[arg-type]

    def pages(self, limit: int, **kwargs: Any) -> Iterator[Page[Any]]:
        return iter_pages(self, limit, **kwargs)  # type: ignore[arg-type]


class AsyncCursorPaginateMixin:
    """Async counterpart of CursorPaginateMixin."""

    async def cursor_paginate(
        self, limit: int, cursor: str | Cursor | None = None, **kwargs: Any
    ) -> Page[Any]:
        return await apaginate(self, limit, cursor, **kwargs)  # type: ignore[arg-type]

    def pages(self, limit: int, **kwargs: Any) -> AsyncIterator[Page[Any]]:
        return aiter_pages(self, limit, **kwargs)  # type: ignore[arg-type]
