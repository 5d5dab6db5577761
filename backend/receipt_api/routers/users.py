"""
User listing. Only mounted outside production.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from receipt_api.database import get_db
from receipt_api.schemas import UserResponse
from receipt_api.services.auth_service import auth_service

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(phone_number: Optional[str] = None, db: Session = Depends(get_db)) -> Any:
    """List all users, or the user registered with ``phone_number``."""
    return auth_service.list_users(db, phone_number=phone_number)
