"""
Authentication Service.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from receipt_api.core import security, tokens
from receipt_api.core.errors import AuthenticationError, DuplicateUserError
from receipt_api.database import as_utc
from receipt_api.models.user import User
from receipt_api.schemas import CreateApiKeyRequest, LoginRequest, RegisterRequest
from receipt_api.services.credential_store import CredentialStore, credential_store

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: CredentialStore = credential_store):
        self.store = store

    def register_user(self, db: Session, request: RegisterRequest) -> dict:
        """Create a user and log them straight in."""
        if self.store.find_user_by_email(db, request.email):
            raise DuplicateUserError("User with this email already exists")

        password_hash = security.get_password_hash(request.password)
        try:
            user = self.store.insert_user(
                db,
                email=request.email,
                phone_number=request.phone_number,
                password_hash=password_hash,
            )
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email
            db.rollback()
            raise DuplicateUserError("User with this email already exists") from exc

        logger.info(f"Registered user {user.id}")
        return {"user": user, "token": tokens.issue_token(user)}

    def authenticate_user(self, db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password."""
        user = self.store.find_user_by_email(db, email)
        if not user:
            return None
        if not security.verify_password(password, user.password_hash):
            return None
        return user

    def login_user(self, db: Session, request: LoginRequest) -> dict:
        user = self.authenticate_user(db, request.email, request.password)
        if not user:
            logger.info("Rejected login attempt")
            raise AuthenticationError("Invalid email or password")
        return {"user": user, "token": tokens.issue_token(user)}

    def create_api_key(self, db: Session, user_id, request: CreateApiKeyRequest) -> dict:
        """Mint a key; the raw value is in the result and nowhere else."""
        raw_key = security.generate_api_key()
        expires_at = as_utc(request.expires_at) if request.expires_at else None
        api_key = self.store.insert_api_key(
            db,
            user_id=user_id,
            name=request.name,
            key_hash=security.get_password_hash(raw_key),
            expires_at=expires_at,
        )
        logger.info(f"Created API key {api_key.id} for user {user_id}")
        return {
            "id": api_key.id,
            "name": api_key.name,
            "key": raw_key,
            "created_at": api_key.created_at,
            "expires_at": expires_at,
        }

    def list_users(self, db: Session, phone_number: Optional[str] = None) -> List[User]:
        if phone_number:
            user = self.store.find_user_by_phone(db, phone_number)
            return [user] if user else []
        return self.store.list_users(db)


auth_service = AuthService()
