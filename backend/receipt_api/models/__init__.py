"""
Database models for the Receipt API.

All SQLAlchemy models are imported here so metadata is complete.
"""

from receipt_api.models.user import User
from receipt_api.models.api_key import ApiKey
from receipt_api.models.receipt import Receipt, ReceiptItem

__all__ = [
    "User",
    "ApiKey",
    "Receipt",
    "ReceiptItem",
]
