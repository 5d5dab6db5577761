"""
Receipt API endpoints: CRUD, filtered listing, search and statistics.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from receipt_api.database import get_db
from receipt_api.dependencies import get_current_principal
from receipt_api.schemas import (
    ReceiptCreate,
    ReceiptListQuery,
    ReceiptListResponse,
    ReceiptResponse,
    ReceiptSearchQuery,
    ReceiptStats,
    ReceiptStatsQuery,
    ReceiptUpdate,
)
from receipt_api.services.auth_resolver import Principal
from receipt_api.services.receipt_store import receipt_store

router = APIRouter()


def _not_found(receipt_id: uuid.UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Receipt {receipt_id} not found",
    )


@router.post("", response_model=ReceiptResponse, status_code=status.HTTP_201_CREATED)
def create_receipt(
    receipt_in: ReceiptCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Create a receipt together with its items.
    """
    return receipt_store.insert_receipt_with_items(db, principal.id, receipt_in)


@router.get("", response_model=ReceiptListResponse)
def list_receipts(
    query: Annotated[ReceiptListQuery, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    List receipts with optional vendor and date filters, sorting and pagination.
    """
    return receipt_store.list_receipts(db, principal.id, query)


@router.get("/search", response_model=ReceiptListResponse)
def search_receipts(
    query: Annotated[ReceiptSearchQuery, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Search vendor and item names, with amount, currency and date filters.
    """
    return receipt_store.list_receipts(db, principal.id, query)


@router.get("/stats", response_model=ReceiptStats)
def get_stats(
    query: Annotated[ReceiptStatsQuery, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Totals, averages and breakdowns by vendor, currency and month.
    """
    return receipt_store.get_stats(db, principal.id, query)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
def get_receipt(
    receipt_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Get receipt details with items.
    """
    receipt = receipt_store.get_receipt_with_items(db, principal.id, receipt_id)
    if not receipt:
        raise _not_found(receipt_id)
    return receipt


@router.put("/{receipt_id}", response_model=ReceiptResponse)
def update_receipt(
    receipt_id: uuid.UUID,
    receipt_in: ReceiptUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Update a receipt and replace all of its items.
    """
    receipt = receipt_store.replace_receipt_with_items(db, principal.id, receipt_id, receipt_in)
    if not receipt:
        raise _not_found(receipt_id)
    return receipt


@router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_receipt(
    receipt_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Delete a receipt and its items.
    """
    if not receipt_store.delete_receipt(db, principal.id, receipt_id):
        raise _not_found(receipt_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
