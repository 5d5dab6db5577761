"""
Tests for filter, sort and pagination SQL generation
"""
import uuid
from datetime import datetime, timezone

import pytest

from receipt_api.schemas import ReceiptListQuery, ReceiptSearchQuery, ReceiptStatsQuery
from receipt_api.services.query_builder import (
    DEFAULT_ORDER_CLAUSE,
    build_filters,
    build_order_clause,
    normalize_pagination,
)

OWNER = uuid.UUID("11111111-2222-3333-4444-555555555555")


@pytest.mark.unit
class TestPagination:
    """Test page/limit normalisation"""

    def test_defaults(self):
        assert normalize_pagination(None, None) == (1, 20, 0)

    def test_limit_clamped_to_max(self):
        page, limit, offset = normalize_pagination(3, 500)
        assert (page, limit, offset) == (3, 100, 200)

    def test_non_positive_values_clamped(self):
        assert normalize_pagination(0, 0) == (1, 1, 0)
        assert normalize_pagination(-4, -10) == (1, 1, 0)

    def test_offset(self):
        assert normalize_pagination(2, 20) == (2, 20, 20)


@pytest.mark.unit
class TestOrderClause:
    """Test the sort allow-list"""

    def test_allowed_field_ascending(self):
        assert build_order_clause("total_amount", "asc") == "ORDER BY total_amount ASC"

    def test_direction_is_case_insensitive(self):
        assert build_order_clause("vendor_name", "ASC") == "ORDER BY vendor_name ASC"

    def test_anything_but_asc_is_descending(self):
        assert build_order_clause("purchase_date", "sideways") == "ORDER BY purchase_date DESC"
        assert build_order_clause("purchase_date", None) == "ORDER BY purchase_date DESC"

    def test_unknown_field_falls_back(self):
        assert build_order_clause("password_hash", "asc") == DEFAULT_ORDER_CLAUSE
        assert build_order_clause("id; DROP TABLE receipts", "asc") == DEFAULT_ORDER_CLAUSE
        assert build_order_clause(None, None) == DEFAULT_ORDER_CLAUSE


@pytest.mark.unit
class TestBuildFilters:
    """Test WHERE clause and bind slot assignment"""

    def test_owner_only(self):
        spec = build_filters(OWNER, ReceiptListQuery())

        assert spec.conditions == ("user_id = :p1",)
        assert spec.bind_params() == {"p1": OWNER}
        assert spec.order_clause == DEFAULT_ORDER_CLAUSE
        assert (spec.page, spec.limit, spec.offset) == (1, 20, 0)

    def test_slot_order_follows_condition_order(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 31, tzinfo=timezone.utc)
        query = ReceiptSearchQuery(
            search="Milk",
            vendor="Shop",
            start_date=start,
            end_date=end,
            min_amount=5,
            max_amount=50,
            currency="eur",
        )

        spec = build_filters(OWNER, query)

        assert spec.params == (OWNER, "%milk%", "%shop%", start, end, 5, 50, "EUR")
        assert spec.conditions[0] == "user_id = :p1"
        assert spec.conditions[2] == "LOWER(vendor_name) LIKE :p3"
        assert spec.conditions[3] == "purchase_date >= :p4"
        assert spec.conditions[4] == "purchase_date <= :p5"
        assert spec.conditions[5] == "total_amount >= :p6"
        assert spec.conditions[6] == "total_amount <= :p7"
        assert spec.conditions[7] == "currency = :p8"

    def test_search_reuses_one_slot_for_vendor_and_items(self):
        spec = build_filters(OWNER, ReceiptSearchQuery(search="Latte"))

        search = spec.conditions[1]
        assert search.count(":p2") == 2
        assert "receipt_items" in search
        assert spec.bind_params()["p2"] == "%latte%"

    def test_skipped_filters_do_not_leave_gaps(self):
        spec = build_filters(OWNER, ReceiptSearchQuery(currency="usd"))

        assert spec.conditions == ("user_id = :p1", "currency = :p2")
        assert spec.bind_params() == {"p1": OWNER, "p2": "USD"}

    def test_naive_dates_treated_as_utc(self):
        spec = build_filters(OWNER, ReceiptListQuery(start_date=datetime(2024, 3, 1)))

        assert spec.params[1] == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_user_input_never_in_sql_text(self):
        payload = "x' OR '1'='1"
        spec = build_filters(OWNER, ReceiptSearchQuery(search=payload, vendor=payload))
        sql, _ = spec.page_query()

        assert payload.lower() not in sql
        assert payload not in sql


@pytest.mark.unit
class TestRenderedQueries:
    """Test count/page/stats statements share the same filters"""

    def test_count_and_page_share_where_clause(self):
        query = ReceiptListQuery(vendor="shop", page=3, limit=10)
        spec = build_filters(OWNER, query)

        count_sql, count_params = spec.count_query()
        page_sql, page_params = spec.page_query()

        assert spec.where_clause in count_sql
        assert spec.where_clause in page_sql
        assert count_params == {"p1": OWNER, "p2": "%shop%"}
        assert page_params == {"p1": OWNER, "p2": "%shop%", "p3": 10, "p4": 20}
        assert page_sql.endswith("LIMIT :p3 OFFSET :p4")

    def test_page_query_uses_order_clause(self):
        spec = build_filters(OWNER, ReceiptListQuery(sort_by="vendor_name", order="asc"))
        page_sql, _ = spec.page_query()

        assert "ORDER BY vendor_name ASC LIMIT" in page_sql

    def test_total_pages(self):
        spec = build_filters(OWNER, ReceiptListQuery(limit=20))

        assert spec.total_pages(0) == 0
        assert spec.total_pages(20) == 1
        assert spec.total_pages(21) == 2

    @pytest.mark.parametrize(
        "dialect,month_expr",
        [
            ("sqlite", "strftime('%Y-%m', purchase_date)"),
            ("postgresql", "TO_CHAR(purchase_date, 'YYYY-MM')"),
        ],
    )
    def test_stats_queries_per_dialect(self, dialect, month_expr):
        spec = build_filters(OWNER, ReceiptStatsQuery(vendor="shop"))
        statements = spec.stats_queries(dialect)

        assert set(statements) == {"overall", "by_vendor", "by_currency", "by_month"}
        for sql, params in statements.values():
            assert spec.where_clause in sql
            assert params == {"p1": OWNER, "p2": "%shop%"}
        assert month_expr in statements["by_month"][0]
        assert "LIMIT 10" in statements["by_vendor"][0]
        assert "LIMIT 12" in statements["by_month"][0]

    def test_stats_unknown_dialect(self):
        spec = build_filters(OWNER, ReceiptStatsQuery())

        with pytest.raises(ValueError):
            spec.stats_queries("oracle")
