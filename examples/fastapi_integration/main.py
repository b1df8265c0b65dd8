"""
FastAPI Integration Example

Demonstrates a cursor-paginated listing endpoint. The page cursors are
returned both in the body and as an RFC 8288 Link header.
"""

from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from pydantic import BaseModel

from keypage import (
    InMemoryRowSource,
    InvalidLimitError,
    MalformedCursorError,
    OrderingMismatchError,
    PaginatorOptions,
    paginate,
)


class Event(BaseModel):
    """Event model returned by the API"""

    id: int
    kind: str
    created_at: datetime


class EventPage(BaseModel):
    """Response model for one page of events"""

    items: list[Event]
    next_cursor: str | None = None
    prev_cursor: str | None = None


_base = datetime(2024, 1, 1, tzinfo=timezone.utc)
EVENTS = [
    Event(
        id=i,
        kind=["deploy", "alert", "audit"][i % 3],
        created_at=_base + timedelta(minutes=i // 2),
    )
    for i in range(1, 101)
]

# Newest first; id breaks ties between events of the same minute
events_source = InMemoryRowSource(EVENTS, ordering=[("created_at", "desc"), ("id", "desc")])
options = PaginatorOptions(max_limit=50)

app = FastAPI(title="keypage + FastAPI Example")


@app.get("/events", response_model=EventPage)
def list_events(
    request: Request,
    response: Response,
    limit: int = Query(20),
    cursor: str | None = Query(None),
) -> EventPage:
    """List events, newest first"""
    try:
        page = paginate(events_source, limit, cursor, options=options)
    except (MalformedCursorError, OrderingMismatchError, InvalidLimitError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    link = page.link_header(str(request.url.replace(query="")), {"limit": limit})
    if link:
        response.headers["Link"] = link

    return EventPage(items=page.items, next_cursor=page.next_cursor, prev_cursor=page.prev_cursor)


# Run with: uvicorn main:app --reload
# Visit: http://localhost:8000/events?limit=10
