from .conditions import Attr, Condition, DynCondition
from .config import DEFAULT_OPTIONS, PaginatorOptions
from .cursor import Cursor, decode_cursor, encode_cursor
from .exceptions import (
    CursorSerializationError,
    InvalidLimitError,
    KeypageError,
    MalformedCursorError,
    OrderingMismatchError,
    ProvisionedThroughputExceededError,
    RequestTimeoutError,
    StoreFailureError,
    StoreValidationError,
    TableNotFoundError,
)
from .ordering import Direction, OrderColumn, OrderSpec, invert_ordering, normalize_ordering
from .pagination import Page, assemble_page
from .paginator import (
    AsyncCursorPaginateMixin,
    AsyncRowSource,
    CursorPaginateMixin,
    RowSource,
    aiter_pages,
    apaginate,
    iter_pages,
    paginate,
)
from .predicate import FetchPlan, build_boundary_condition, fetch_ordering, plan_fetch
from .sources import AsyncInMemoryRowSource, DynamoRowSource, InMemoryRowSource

__all__ = [
    # Pagination
    "paginate",
    "apaginate",
    "iter_pages",
    "aiter_pages",
    "Page",
    "assemble_page",
    "PaginatorOptions",
    "DEFAULT_OPTIONS",
    # Row sources
    "RowSource",
    "AsyncRowSource",
    "CursorPaginateMixin",
    "AsyncCursorPaginateMixin",
    "InMemoryRowSource",
    "AsyncInMemoryRowSource",
    "DynamoRowSource",
    # Ordering
    "Direction",
    "OrderColumn",
    "OrderSpec",
    "normalize_ordering",
    "invert_ordering",
    # Cursors
    "Cursor",
    "encode_cursor",
    "decode_cursor",
    # Predicates
    "FetchPlan",
    "plan_fetch",
    "build_boundary_condition",
    "fetch_ordering",
    # Conditions DSL
    "Attr",
    "DynCondition",
    "Condition",
    # Exceptions
    "KeypageError",
    "MalformedCursorError",
    "OrderingMismatchError",
    "InvalidLimitError",
    "CursorSerializationError",
    "StoreFailureError",
    "TableNotFoundError",
    "ProvisionedThroughputExceededError",
    "RequestTimeoutError",
    "StoreValidationError",
]
