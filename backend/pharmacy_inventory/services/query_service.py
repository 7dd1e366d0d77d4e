# Overview: Read-only projections over the ledger (filter, sort, paginate).

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..models import InventoryTransaction, TRANSACTION_TYPES
from ..time_utils import is_date_only, parse_iso_datetime
from ..validation import ValidationError, coerce_int, coerce_positive_int
"""
Query semantics:

- Nothing here mutates the ledger or its records.
- Criteria are independent and combined with AND.
- Date bounds are inclusive; a bare date as the upper bound covers that whole day.
- A transaction whose date cannot be parsed never matches a date bound.
- Canonical order is date descending, ties broken by id descending.
"""

_UNDATED = datetime.min


def transaction_datetime(tx: InventoryTransaction) -> Optional[datetime]:
    """Parsed transaction date, or None when the stored value is malformed."""
    try:
        return parse_iso_datetime(tx.date)
    except (TypeError, ValueError):
        return None


def _parse_bound(name: str, value: Any, *, end_of_day: bool = False) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        dt = datetime.combine(value, time.min)
        return dt + timedelta(days=1) - timedelta(microseconds=1) if end_of_day else dt
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO-8601 date or datetime")
    try:
        dt = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date or datetime")
    if dt is not None and end_of_day and is_date_only(value):
        dt = dt + timedelta(days=1) - timedelta(microseconds=1)
    return dt


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


@dataclass(frozen=True)
class TransactionCriteria:
    id: Optional[int] = None
    product_id: Optional[int] = None
    type: Optional[str] = None
    user_id: Any = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    def __post_init__(self):
        if self.type is not None and self.type not in TRANSACTION_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(TRANSACTION_TYPES)}")
        # bounds may arrive as date, aware datetime or text; store UTC-naive datetimes
        object.__setattr__(self, "date_from", _parse_bound("dateFrom", self.date_from))
        object.__setattr__(self, "date_to", _parse_bound("dateTo", self.date_to, end_of_day=True))

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "TransactionCriteria":
        """
        Build criteria from query-string style values.

        Blank values and type=all mean "not supplied". A bare date for
        dateTo is widened to the end of that day.
        """
        def _get(*keys):
            for k in keys:
                v = args.get(k)
                if not _blank(v):
                    return v.strip() if isinstance(v, str) else v
            return None

        raw_id = _get("id", "transactionId")
        raw_product = _get("productId", "product_id")
        raw_type = _get("type")
        raw_user = _get("userId", "user_id")

        if raw_type == "all":
            raw_type = None
        if raw_user is not None and isinstance(raw_user, str) and raw_user.lstrip("-").isdigit():
            raw_user = int(raw_user)

        return cls(
            id=coerce_int("id", raw_id) if raw_id is not None else None,
            product_id=coerce_int("productId", raw_product) if raw_product is not None else None,
            type=raw_type,
            user_id=raw_user,
            date_from=_parse_bound("dateFrom", _get("dateFrom", "date_from")),
            date_to=_parse_bound("dateTo", _get("dateTo", "date_to"), end_of_day=True),
        )

    @property
    def has_date_bounds(self) -> bool:
        return self.date_from is not None or self.date_to is not None

    def matches(self, tx: InventoryTransaction) -> bool:
        if self.id is not None and tx.id != self.id:
            return False
        if self.product_id is not None and tx.product_id != self.product_id:
            return False
        if self.type is not None and tx.type != self.type:
            return False
        if self.user_id is not None and str(tx.user_id) != str(self.user_id):
            return False
        if self.has_date_bounds:
            occurred = transaction_datetime(tx)
            if occurred is None:
                return False
            if self.date_from is not None and occurred < self.date_from:
                return False
            if self.date_to is not None and occurred > self.date_to:
                return False
        return True


def filter_transactions(
    transactions: Iterable[InventoryTransaction],
    criteria: Optional[TransactionCriteria] = None,
) -> list[InventoryTransaction]:
    if criteria is None:
        return list(transactions)
    return [tx for tx in transactions if criteria.matches(tx)]


def sort_by_date_descending(transactions: Iterable[InventoryTransaction]) -> list[InventoryTransaction]:
    """Newest first; equal timestamps by id descending; undated records last."""
    def _key(tx):
        occurred = transaction_datetime(tx)
        return (occurred is not None, occurred or _UNDATED, tx.id)

    return sorted(transactions, key=_key, reverse=True)


@dataclass(frozen=True)
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self, serialize: Callable = lambda item: item.to_dict()) -> dict:
        return {
            "items": [serialize(item) for item in self.items],
            "count": len(self.items),
            "pagination": {
                "page": self.page,
                "per_page": self.page_size,
                "total": self.total,
                "total_pages": self.total_pages,
                "has_next": self.has_next,
                "has_prev": self.has_prev,
            },
        }


def paginate(items: Sequence, page: int = 1, page_size: int = 10) -> Page:
    """
    1-based page of items.

    Out-of-range pages are clamped to [1, total_pages]; an empty input is a
    single empty page.
    """
    page_size = coerce_positive_int("page_size", page_size)
    page = coerce_int("page", page)

    total = len(items)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(page, 1), total_pages)

    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
    )


def transaction_history(
    transactions: Iterable[InventoryTransaction],
    criteria: Optional[TransactionCriteria] = None,
    page: int = 1,
    page_size: int = 10,
) -> Page:
    """Filtered, newest-first, paginated view of the ledger."""
    return paginate(
        sort_by_date_descending(filter_transactions(transactions, criteria)),
        page=page,
        page_size=page_size,
    )
