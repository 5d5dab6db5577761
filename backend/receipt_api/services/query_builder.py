"""
Filter, sort and pagination SQL for receipt listing, search and statistics.

``build_filters`` turns a validated query model into a ``FilterSpec``: an
ordered list of WHERE conditions whose values live in numbered bind slots
(``:p1``, ``:p2``, ...). Slots are assigned strictly in the order conditions
are appended, and every statement rendered from one FilterSpec (count, page and the
four stats aggregates) shares the same WHERE clause and the same bind values.
User input never reaches SQL text; only the constant templates and the
allow-listed sort columns below do.
"""

import math
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from receipt_api.database import as_utc

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

SORTABLE_FIELDS = ("vendor_name", "total_amount", "purchase_date", "created_at")
DEFAULT_ORDER_CLAUSE = "ORDER BY created_at DESC"

RECEIPT_COLUMN_NAMES = (
    "id",
    "user_id",
    "vendor_name",
    "total_amount",
    "currency",
    "purchase_date",
    "receipt_image_url",
    "created_at",
    "updated_at",
)
RECEIPT_COLUMNS = ", ".join(RECEIPT_COLUMN_NAMES)

# Condition templates; "{slot}" is replaced with the bind parameter name
OWNER_CONDITION = "user_id = {slot}"
SEARCH_CONDITION = (
    "(LOWER(vendor_name) LIKE {slot} OR id IN "
    "(SELECT receipt_id FROM receipt_items WHERE LOWER(name) LIKE {slot}))"
)
VENDOR_CONDITION = "LOWER(vendor_name) LIKE {slot}"
START_DATE_CONDITION = "purchase_date >= {slot}"
END_DATE_CONDITION = "purchase_date <= {slot}"
MIN_AMOUNT_CONDITION = "total_amount >= {slot}"
MAX_AMOUNT_CONDITION = "total_amount <= {slot}"
CURRENCY_CONDITION = "currency = {slot}"

MONTH_EXPRESSIONS = {
    "postgresql": "TO_CHAR(purchase_date, 'YYYY-MM')",
    "sqlite": "strftime('%Y-%m', purchase_date)",
}

VENDOR_STATS_LIMIT = 10
MONTH_STATS_LIMIT = 12


def like_pattern(value: str) -> str:
    """Wrap a substring filter for a case-insensitive LIKE."""
    return f"%{value.lower()}%"


def normalize_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
    """Return (page, limit, offset) with page >= 1 and 1 <= limit <= 100."""
    page = max(page if page is not None else DEFAULT_PAGE, 1)
    limit = min(max(limit if limit is not None else DEFAULT_LIMIT, 1), MAX_LIMIT)
    return page, limit, (page - 1) * limit


def build_order_clause(sort_by: Optional[str], order: Optional[str]) -> str:
    """ORDER BY for an allow-listed column; anything else sorts by newest first."""
    if sort_by not in SORTABLE_FIELDS:
        return DEFAULT_ORDER_CLAUSE
    direction = "ASC" if (order or "").lower() == "asc" else "DESC"
    return f"ORDER BY {sort_by} {direction}"


@dataclass(frozen=True)
class FilterSpec:
    conditions: Tuple[str, ...]
    params: Tuple[Any, ...]
    order_clause: str
    page: int
    limit: int
    offset: int

    @property
    def where_clause(self) -> str:
        return "WHERE " + " AND ".join(self.conditions)

    def bind_params(self) -> Dict[str, Any]:
        return {slot_name(i): value for i, value in enumerate(self.params, start=1)}

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)

    def count_query(self) -> Tuple[str, Dict[str, Any]]:
        sql = f"SELECT COUNT(*) FROM receipts {self.where_clause}"
        return sql, self.bind_params()

    def page_query(self) -> Tuple[str, Dict[str, Any]]:
        limit_slot = slot_name(len(self.params) + 1)
        offset_slot = slot_name(len(self.params) + 2)
        sql = (
            f"SELECT {RECEIPT_COLUMNS} FROM receipts {self.where_clause} "
            f"{self.order_clause} LIMIT :{limit_slot} OFFSET :{offset_slot}"
        )
        params = self.bind_params()
        params[limit_slot] = self.limit
        params[offset_slot] = self.offset
        return sql, params

    def stats_queries(self, dialect: str) -> Dict[str, Tuple[str, Dict[str, Any]]]:
        """Overall, per-vendor, per-currency and per-month aggregate statements."""
        try:
            month = MONTH_EXPRESSIONS[dialect]
        except KeyError:
            raise ValueError(f"Unsupported SQL dialect for monthly stats: {dialect}")

        where = self.where_clause
        statements = {
            "overall": (
                "SELECT COUNT(*) AS total_receipts, "
                "COALESCE(SUM(total_amount), 0) AS total_spent, "
                "COALESCE(AVG(total_amount), 0) AS average_amount, "
                "COALESCE(MAX(total_amount), 0) AS max_amount, "
                "COALESCE(MIN(total_amount), 0) AS min_amount "
                f"FROM receipts {where}"
            ),
            "by_vendor": (
                "SELECT vendor_name, COUNT(*) AS count, SUM(total_amount) AS total_amount "
                f"FROM receipts {where} "
                "GROUP BY vendor_name ORDER BY total_amount DESC "
                f"LIMIT {VENDOR_STATS_LIMIT}"
            ),
            "by_currency": (
                "SELECT currency, COUNT(*) AS count, SUM(total_amount) AS total_amount "
                f"FROM receipts {where} "
                "GROUP BY currency ORDER BY count DESC"
            ),
            "by_month": (
                f"SELECT {month} AS month, COUNT(*) AS count, SUM(total_amount) AS total_amount "
                f"FROM receipts {where} "
                f"GROUP BY {month} ORDER BY month DESC "
                f"LIMIT {MONTH_STATS_LIMIT}"
            ),
        }
        return {name: (sql, self.bind_params()) for name, sql in statements.items()}


def slot_name(position: int) -> str:
    return f"p{position}"


class _ConditionList:
    def __init__(self):
        self.conditions: List[str] = []
        self.params: List[Any] = []

    def add(self, template: str, value: Any) -> None:
        self.params.append(value)
        self.conditions.append(template.format(slot=":" + slot_name(len(self.params))))


def build_filters(owner_id: uuid.UUID, query) -> FilterSpec:
    """Build the FilterSpec for a list, search or stats query model.

    The owner condition is always first. Fields a query shape doesn't have
    (e.g. ``search`` on a stats query) are treated as absent.
    """
    conditions = _ConditionList()
    conditions.add(OWNER_CONDITION, owner_id)

    search = getattr(query, "search", None)
    if search is not None:
        conditions.add(SEARCH_CONDITION, like_pattern(search))
    if query.vendor is not None:
        conditions.add(VENDOR_CONDITION, like_pattern(query.vendor))
    if query.start_date is not None:
        conditions.add(START_DATE_CONDITION, as_utc(query.start_date))
    if query.end_date is not None:
        conditions.add(END_DATE_CONDITION, as_utc(query.end_date))

    min_amount = getattr(query, "min_amount", None)
    if min_amount is not None:
        conditions.add(MIN_AMOUNT_CONDITION, min_amount)
    max_amount = getattr(query, "max_amount", None)
    if max_amount is not None:
        conditions.add(MAX_AMOUNT_CONDITION, max_amount)
    currency = getattr(query, "currency", None)
    if currency is not None:
        conditions.add(CURRENCY_CONDITION, currency.upper())

    page, limit, offset = normalize_pagination(
        getattr(query, "page", None), getattr(query, "limit", None)
    )
    order_clause = build_order_clause(
        getattr(query, "sort_by", None), getattr(query, "order", None)
    )

    return FilterSpec(
        conditions=tuple(conditions.conditions),
        params=tuple(conditions.params),
        order_clause=order_clause,
        page=page,
        limit=limit,
        offset=offset,
    )
