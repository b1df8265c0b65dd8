"""
Page assembly for keyset pagination.

The store is asked for limit + 1 rows. The extra row only tells whether
more rows exist in the direction of travel; it is never returned.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ._logging import logger
from .cursor import encode_cursor

if TYPE_CHECKING:
    from .predicate import FetchPlan

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """
    Represents a single page of results with its navigation cursors.

    Attributes:
        items: Rows of this page, in the caller's ordering
        next_cursor: Cursor for the following page (None on the last page)
        prev_cursor: Cursor for the preceding page (None on the first page)
    """

    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None
    prev_cursor: str | None = None

    @property
    def has_next(self) -> bool:
        """Returns True if there are rows after this page."""
        return self.next_cursor is not None

    @property
    def has_prev(self) -> bool:
        """Returns True if there are rows before this page."""
        return self.prev_cursor is not None

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": list(self.items),
            "next_cursor": self.next_cursor,
            "prev_cursor": self.prev_cursor,
        }

    def link_header(self, base_url: str, params: Mapping[str, Any] | None = None) -> str | None:
        """
        Builds an RFC 8288 Link header for the neighbouring pages.

        Args:
            base_url: URL of the listing endpoint; its own query parameters are kept
            params: Other query parameters to carry over (e.g. limit)

        Returns:
            Header value, or None when there is neither a next nor a previous page
        """
        scheme, netloc, path, base_query, fragment = urlsplit(base_url)
        overrides = {k: v for k, v in (params or {}).items() if k != "cursor"}
        # params replace same-named parameters already in base_url
        carried = [
            (k, v)
            for k, v in parse_qsl(base_query, keep_blank_values=True)
            if k != "cursor" and k not in overrides
        ]
        carried.extend(overrides.items())

        links = []
        for rel, cursor in (("next", self.next_cursor), ("prev", self.prev_cursor)):
            if cursor is None:
                continue
            query = urlencode([*carried, ("cursor", cursor)])
            url = urlunsplit((scheme, netloc, path, query, fragment))
            links.append(f'<{url}>; rel="{rel}"')
        return ", ".join(links) if links else None


def assemble_page(rows: Sequence[T], limit: int, plan: "FetchPlan") -> Page[T]:
    """
    Turns a fetched window into a Page.

    Args:
        rows: Up to limit + 1 rows, in the plan's fetch ordering
        limit: Requested page size
        plan: The plan the rows were fetched with

    Returns:
        Page with items in the caller's ordering and the cursors that apply
    """
    if not rows:
        return Page(items=[])

    has_overflow = len(rows) > limit
    # Drop the overflow row: it is always last in fetch ordering
    items = list(rows[:limit])
    if plan.is_backward:
        items.reverse()

    order_spec = plan.order_spec
    next_cursor: str | None = None
    prev_cursor: str | None = None

    if has_overflow:
        next_cursor = encode_cursor(order_spec, items[-1], points_to_next=True)
        if plan.has_cursor:
            prev_cursor = encode_cursor(order_spec, items[0], points_to_next=False)
    elif plan.is_backward:
        # Reached the start going backward
        next_cursor = encode_cursor(order_spec, items[-1], points_to_next=True)
    elif plan.has_cursor:
        # Reached the end going forward
        prev_cursor = encode_cursor(order_spec, items[0], points_to_next=False)

    logger.debug(
        "Assembled page",
        extra={
            "count": len(items),
            "overflow": has_overflow,
            "has_next": next_cursor is not None,
            "has_prev": prev_cursor is not None,
        },
    )
    return Page(items=items, next_cursor=next_cursor, prev_cursor=prev_cursor)
