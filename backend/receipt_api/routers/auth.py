"""
Authentication API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from receipt_api.config import settings
from receipt_api.core.limiter import limiter
from receipt_api.database import get_db
from receipt_api.dependencies import get_current_principal
from receipt_api.schemas import (
    ApiKeyResponse,
    AuthResponse,
    CreateApiKeyRequest,
    LoginRequest,
    PrincipalResponse,
    RegisterRequest,
)
from receipt_api.services.auth_resolver import Principal
from receipt_api.services.auth_service import auth_service

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: RegisterRequest, db: Session = Depends(get_db)) -> Any:
    """
    Register a new user and return an access token.
    """
    return auth_service.register_user(db, user_in)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(request: Request, credentials: LoginRequest, db: Session = Depends(get_db)) -> Any:
    """
    Exchange email and password for a 7-day access token.
    """
    return auth_service.login_user(db, credentials)


@router.get("/me", response_model=PrincipalResponse)
async def read_current_principal(
    principal: Principal = Depends(get_current_principal),
) -> Any:
    """
    Get the authenticated principal.
    """
    return principal


@router.post("/api-keys", response_model=ApiKeyResponse, status_code=status.HTTP_201_CREATED)
def create_api_key(
    key_in: CreateApiKeyRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Any:
    """
    Create an API key. The raw key is only included in this response.
    """
    return auth_service.create_api_key(db, principal.id, key_in)
