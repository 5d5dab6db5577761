import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from receipt_api.core.security import BCRYPT_MAX_BYTES

# E.164: leading '+', 9 to 15 digits
E164_PATTERN = re.compile(r"^\+[0-9]{9,15}$")


def _normalize_currency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not re.fullmatch(r"[A-Za-z]{3}", value):
        raise ValueError("currency must be a 3-letter ISO 4217 code")
    return value.upper()


# --- Auth ---
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    phone_number: str = Field(..., examples=["+15551234567"])

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, value: str) -> str:
        value = value.strip()
        if not E164_PATTERN.match(value):
            raise ValueError(
                "Invalid phone number format. Use E.164 format (e.g., +15551234567)"
            )
        return value

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    phone_number: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


class PrincipalResponse(BaseModel):
    id: uuid.UUID
    email: str
    phone_number: str

    model_config = ConfigDict(from_attributes=True)


class CreateApiKeyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    expires_at: Optional[datetime] = None


class ApiKeyResponse(BaseModel):
    id: uuid.UUID
    name: str
    key: str = Field(..., description="Raw key. Only returned once.")
    created_at: datetime
    expires_at: Optional[datetime] = None


# --- Receipt ---
class ReceiptItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int
    unit_price: float


class ReceiptItemResponse(BaseModel):
    id: uuid.UUID
    name: str
    quantity: int
    unit_price: float
    total_price: float

    model_config = ConfigDict(from_attributes=True)


class ReceiptCreate(BaseModel):
    vendor_name: str = Field(..., min_length=1, max_length=255)
    total_amount: float
    currency: str
    purchase_date: datetime
    receipt_image_url: Optional[str] = Field(None, max_length=2048)
    items: List[ReceiptItemCreate] = []

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        return _normalize_currency(value)


class ReceiptUpdate(ReceiptCreate):
    pass


class ReceiptResponse(BaseModel):
    id: uuid.UUID
    vendor_name: str
    total_amount: float
    currency: str
    purchase_date: datetime
    receipt_image_url: Optional[str] = None
    items: List[ReceiptItemResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptListResponse(BaseModel):
    receipts: List[ReceiptResponse]
    total: int
    page: int
    limit: int
    total_pages: int


# --- Query parameters ---
class ReceiptStatsQuery(BaseModel):
    vendor: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ReceiptListQuery(ReceiptStatsQuery):
    # Clamped by the query builder rather than rejected
    page: Optional[int] = None
    limit: Optional[int] = None
    sort_by: Optional[str] = None
    order: Optional[str] = None


class ReceiptSearchQuery(ReceiptListQuery):
    search: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    currency: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_currency(value)


# --- Stats ---
class VendorStats(BaseModel):
    vendor_name: str
    count: int
    total_amount: float


class CurrencyStats(BaseModel):
    currency: str
    count: int
    total_amount: float


class MonthlyStats(BaseModel):
    month: str
    count: int
    total_amount: float


class ReceiptStats(BaseModel):
    total_receipts: int
    total_spent: float
    average_amount: float
    max_amount: float
    min_amount: float
    by_vendor: List[VendorStats]
    by_currency: List[CurrencyStats]
    by_month: List[MonthlyStats]
