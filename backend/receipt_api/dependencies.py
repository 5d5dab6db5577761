"""
Shared API dependencies.
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from receipt_api.core.errors import AuthenticationError
from receipt_api.database import get_db
from receipt_api.services.auth_resolver import AuthResolver, Principal


def get_current_principal(
    request: Request, db: Session = Depends(get_db)
) -> Principal:
    """
    Resolve the Authorization header (Bearer token or ApiKey) to a principal.
    """
    try:
        return AuthResolver(db).resolve(request.headers.get("Authorization"))
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
