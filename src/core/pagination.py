"""Cursor-based pagination for time-ordered listings."""

import base64
import binascii
import json
from collections.abc import Callable
from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class CursorData(BaseModel):
    """Position of the last item of a page."""

    # consent_given_at of the last item, ISO 8601
    sort_value: str
    # Tie-breaker for identical timestamps
    id: str


def encode_cursor(sort_value: datetime | str, id_value: UUID) -> str:
    """Encode a cursor from the last item's sort value and ID.

    Args:
        sort_value: The value of the sort field (datetime or string)
        id_value: The unique ID for tie-breaking

    Returns:
        URL-safe base64 cursor string
    """
    sort_str = sort_value.isoformat() if isinstance(sort_value, datetime) else str(sort_value)
    data = CursorData(sort_value=sort_str, id=str(id_value))
    return base64.urlsafe_b64encode(data.model_dump_json().encode()).decode()


def decode_cursor(cursor: str) -> CursorData:
    """Decode a cursor produced by encode_cursor.

    Raises:
        ValueError: If the cursor is malformed
    """
    try:
        json_str = base64.urlsafe_b64decode(cursor.encode()).decode()
        data = CursorData(**json.loads(json_str))
        # Both parts are parsed by the query; fail here rather than in SQL
        datetime.fromisoformat(data.sort_value)
        UUID(data.id)
    except (binascii.Error, UnicodeDecodeError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid cursor: {e}") from e
    return data


class CursorPage(BaseModel, Generic[T]):
    """A page of results with cursor pagination."""

    items: list[T] = Field(..., description="The items in this page")
    next_cursor: str | None = Field(
        None, description="Cursor for the next page, null if no more results"
    )
    has_more: bool = Field(..., description="Whether there are more results")


def create_cursor_page(
    items: list[Any],
    limit: int,
    get_sort_value: Callable[[Any], datetime | str],
    get_id: Callable[[Any], UUID],
    transform: Callable[[Any], R],
) -> CursorPage[R]:
    """Build a page from a query result fetched with limit + 1 rows.

    Args:
        items: Query results (limit + 1 rows to detect has_more)
        limit: The requested page size
        get_sort_value: Extracts the sort value from a row
        get_id: Extracts the ID from a row
        transform: Converts a row into the page item type

    Returns:
        CursorPage with items, next_cursor, and has_more
    """
    has_more = len(items) > limit
    page_items = items[:limit]

    next_cursor = None
    if has_more and page_items:
        last_item = page_items[-1]
        next_cursor = encode_cursor(get_sort_value(last_item), get_id(last_item))

    return CursorPage(
        items=[transform(item) for item in page_items],
        next_cursor=next_cursor,
        has_more=has_more,
    )
