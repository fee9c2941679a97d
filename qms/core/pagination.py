"""
Cursor pagination
Keyset pagination over a sort column with the primary key as tie-break
"""
import base64
import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query

from .exceptions import ValidationError


@dataclass
class CursorParams:
    cursor: Optional[str] = None
    limit: int = 20
    sort_by: Optional[str] = None
    sort_order: str = "desc"


@dataclass
class CursorPage:
    items: List[Any]
    next_cursor: Optional[str]
    has_more: bool
    limit: int


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _deserialize(column, raw: Any) -> Any:
    if raw is None:
        return None
    python_type = column.type.python_type
    try:
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        if python_type is date:
            return date.fromisoformat(raw)
        if python_type is Decimal:
            return Decimal(raw)
        return python_type(raw)
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationError("Invalid pagination cursor")


def encode_cursor(value: Any, row_id: int) -> str:
    payload = json.dumps([_serialize(value), row_id], separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def decode_cursor(cursor: str):
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        value, row_id = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
    except (ValueError, TypeError):
        raise ValidationError("Invalid pagination cursor")
    if not isinstance(row_id, int):
        raise ValidationError("Invalid pagination cursor")
    return value, row_id


def paginate(
    query: Query,
    model,
    params: CursorParams,
    sortable: Dict[str, Any],
    default_sort: str = "created_at",
) -> CursorPage:
    """
    Apply keyset pagination to a query.

    Args:
        query: Filtered query over model
        model: Mapped class (must have an integer id)
        params: Cursor parameters from the request
        sortable: Allowed sort keys mapped to model columns
        default_sort: Sort key used when none is requested
    """
    sort_key = params.sort_by or default_sort
    if sort_key not in sortable:
        raise ValidationError(
            f"Cannot sort by '{sort_key}'",
            details={"allowed": sorted(sortable)},
        )
    column = sortable[sort_key]
    descending = params.sort_order.lower() != "asc"

    if params.cursor:
        raw_value, last_id = decode_cursor(params.cursor)
        value = _deserialize(column, raw_value)
        if descending:
            query = query.filter(or_(column < value, and_(column == value, model.id < last_id)))
        else:
            query = query.filter(or_(column > value, and_(column == value, model.id > last_id)))

    if descending:
        query = query.order_by(column.desc(), model.id.desc())
    else:
        query = query.order_by(column.asc(), model.id.asc())

    rows = query.limit(params.limit + 1).all()
    has_more = len(rows) > params.limit
    rows = rows[:params.limit]

    next_cursor = None
    if has_more and rows:
        last = rows[-1]
        next_cursor = encode_cursor(getattr(last, column.key), last.id)

    return CursorPage(items=rows, next_cursor=next_cursor, has_more=has_more, limit=params.limit)
