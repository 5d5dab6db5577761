"""
Receipt persistence: transactional CRUD plus the filtered list/search/stats
queries rendered by the query builder.

Every read and write is scoped to the owner id. A receipt that is absent or
belongs to another user is reported as ``None``/``False``; storage failures
propagate as ``SQLAlchemyError`` after the transaction is rolled back.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import DateTime, Uuid, bindparam, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from receipt_api.database import as_utc, utcnow
from receipt_api.models.receipt import Receipt, ReceiptItem
from receipt_api.schemas import (
    CurrencyStats,
    MonthlyStats,
    ReceiptCreate,
    ReceiptStats,
    ReceiptUpdate,
    VendorStats,
)
from receipt_api.services.query_builder import RECEIPT_COLUMN_NAMES, FilterSpec, build_filters

logger = logging.getLogger(__name__)


def _bound_text(sql: str, params: Dict[str, Any], columns=()):
    """Attach typed binds (and optionally typed result columns) to raw SQL."""
    binds = []
    for name, value in params.items():
        if isinstance(value, uuid.UUID):
            binds.append(bindparam(name, value, type_=Uuid()))
        elif isinstance(value, datetime):
            binds.append(bindparam(name, value, type_=DateTime(timezone=True)))
        else:
            binds.append(bindparam(name, value))
    stmt = text(sql).bindparams(*binds)
    if columns:
        stmt = stmt.columns(*columns)
    return stmt


class ReceiptStore:
    def _build_items(self, items) -> List[ReceiptItem]:
        # total_price is fixed here and never re-derived on read
        return [
            ReceiptItem(
                position=position,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.quantity * item.unit_price,
            )
            for position, item in enumerate(items)
        ]

    def insert_receipt_with_items(
        self, db: Session, owner_id: uuid.UUID, data: ReceiptCreate
    ) -> Receipt:
        """Insert the receipt row and all item rows in one transaction."""
        receipt = Receipt(
            user_id=owner_id,
            vendor_name=data.vendor_name,
            total_amount=data.total_amount,
            currency=data.currency,
            purchase_date=as_utc(data.purchase_date),
            receipt_image_url=data.receipt_image_url,
            items=self._build_items(data.items),
        )
        db.add(receipt)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to create receipt for user {owner_id}", exc_info=True)
            raise
        db.refresh(receipt)
        logger.info(f"Created receipt {receipt.id} with {len(data.items)} items")
        return receipt

    def get_receipt_with_items(
        self, db: Session, owner_id: uuid.UUID, receipt_id: uuid.UUID
    ) -> Optional[Receipt]:
        return (
            db.query(Receipt)
            .filter(Receipt.id == receipt_id, Receipt.user_id == owner_id)
            .first()
        )

    def replace_receipt_with_items(
        self,
        db: Session,
        owner_id: uuid.UUID,
        receipt_id: uuid.UUID,
        data: ReceiptUpdate,
    ) -> Optional[Receipt]:
        """Update the receipt row and swap its whole item set atomically."""
        receipt = self.get_receipt_with_items(db, owner_id, receipt_id)
        if receipt is None:
            return None

        try:
            receipt.vendor_name = data.vendor_name
            receipt.total_amount = data.total_amount
            receipt.currency = data.currency
            receipt.purchase_date = as_utc(data.purchase_date)
            receipt.receipt_image_url = data.receipt_image_url
            receipt.updated_at = utcnow()

            # Old items are deleted before the replacements are inserted
            receipt.items.clear()
            db.flush()
            receipt.items.extend(self._build_items(data.items))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to update receipt {receipt_id}", exc_info=True)
            raise
        db.refresh(receipt)
        logger.info(f"Updated receipt {receipt_id} with {len(data.items)} items")
        return receipt

    def delete_receipt(self, db: Session, owner_id: uuid.UUID, receipt_id: uuid.UUID) -> bool:
        receipt = self.get_receipt_with_items(db, owner_id, receipt_id)
        if receipt is None:
            return False
        try:
            db.delete(receipt)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to delete receipt {receipt_id}", exc_info=True)
            raise
        logger.info(f"Deleted receipt {receipt_id}")
        return True

    def count_and_fetch(self, db: Session, spec: FilterSpec) -> Tuple[List[Receipt], int]:
        count_sql, count_params = spec.count_query()
        total = db.execute(_bound_text(count_sql, count_params)).scalar_one()

        page_sql, page_params = spec.page_query()
        # Typed result columns so UUID, DateTime and Numeric values are converted
        columns = [Receipt.__table__.c[name] for name in RECEIPT_COLUMN_NAMES]
        stmt = _bound_text(page_sql, page_params, columns)
        receipts = (
            db.execute(select(Receipt).from_statement(stmt))
            .scalars()
            .all()
        )
        return list(receipts), total

    def aggregate(self, db: Session, spec: FilterSpec) -> ReceiptStats:
        statements = spec.stats_queries(db.get_bind().dialect.name)

        def run(name):
            sql, params = statements[name]
            return db.execute(_bound_text(sql, params)).mappings().all()

        overall = run("overall")[0]
        return ReceiptStats(
            total_receipts=overall["total_receipts"],
            total_spent=float(overall["total_spent"]),
            average_amount=float(overall["average_amount"]),
            max_amount=float(overall["max_amount"]),
            min_amount=float(overall["min_amount"]),
            by_vendor=[
                VendorStats(
                    vendor_name=row["vendor_name"],
                    count=row["count"],
                    total_amount=float(row["total_amount"]),
                )
                for row in run("by_vendor")
            ],
            by_currency=[
                CurrencyStats(
                    currency=row["currency"],
                    count=row["count"],
                    total_amount=float(row["total_amount"]),
                )
                for row in run("by_currency")
            ],
            by_month=[
                MonthlyStats(
                    month=row["month"],
                    count=row["count"],
                    total_amount=float(row["total_amount"]),
                )
                for row in run("by_month")
            ],
        )

    def list_receipts(self, db: Session, owner_id: uuid.UUID, query) -> dict:
        """One page of receipts for a list or search query model."""
        spec = build_filters(owner_id, query)
        receipts, total = self.count_and_fetch(db, spec)
        return {
            "receipts": receipts,
            "total": total,
            "page": spec.page,
            "limit": spec.limit,
            "total_pages": spec.total_pages(total),
        }

    def get_stats(self, db: Session, owner_id: uuid.UUID, query) -> ReceiptStats:
        return self.aggregate(db, build_filters(owner_id, query))


receipt_store = ReceiptStore()
