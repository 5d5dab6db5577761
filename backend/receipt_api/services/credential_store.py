"""
Persistence for users and API keys.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from receipt_api.models.api_key import ApiKey
from receipt_api.models.user import User


class CredentialStore:
    def insert_user(
        self, db: Session, email: str, phone_number: str, password_hash: str
    ) -> User:
        """Create a user. Uniqueness of the email is enforced by the schema."""
        user = User(email=email, phone_number=phone_number, password_hash=password_hash)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def get_user(self, db: Session, user_id: uuid.UUID) -> Optional[User]:
        return db.get(User, user_id)

    def find_user_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def find_user_by_phone(self, db: Session, phone_number: str) -> Optional[User]:
        return db.query(User).filter(User.phone_number == phone_number).first()

    def list_users(self, db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.asc()).all()

    def insert_api_key(
        self,
        db: Session,
        user_id: uuid.UUID,
        name: str,
        key_hash: str,
        expires_at: Optional[datetime] = None,
    ) -> ApiKey:
        api_key = ApiKey(user_id=user_id, name=name, key_hash=key_hash, expires_at=expires_at)
        db.add(api_key)
        db.commit()
        db.refresh(api_key)
        return api_key

    def list_active_api_keys(self, db: Session, now: datetime) -> List[ApiKey]:
        """All keys, across every user, that have no expiry or expire after ``now``."""
        return (
            db.query(ApiKey)
            .filter(or_(ApiKey.expires_at.is_(None), ApiKey.expires_at > now))
            .order_by(ApiKey.created_at.asc())
            .all()
        )

    def touch_api_key_last_used(self, db: Session, key_id: uuid.UUID, now: datetime) -> None:
        db.query(ApiKey).filter(ApiKey.id == key_id).update(
            {ApiKey.last_used_at: now}, synchronize_session="fetch"
        )
        db.commit()


credential_store = CredentialStore()
