"""
Resolve an ``Authorization`` header value into a principal.

Two schemes are tried in order:

1. ``Bearer <jwt>``: the signed token is verified and the principal is built
   from its claims without touching storage.
2. ``ApiKey <raw key>``: every non-expired key hash is checked with bcrypt
   until one matches. Keys are stored like passwords, so there is nothing to
   look up by and the scan is linear in the number of keys.

Anything else fails with a single ``AuthenticationError``. A failed
resolution never writes; a successful API-key match updates ``last_used_at``
on the matching key only.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from receipt_api.core import security, tokens
from receipt_api.core.errors import AuthenticationError
from receipt_api.database import utcnow
from receipt_api.services.credential_store import CredentialStore, credential_store

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
API_KEY_PREFIX = "ApiKey "


@dataclass(frozen=True)
class Principal:
    id: uuid.UUID
    email: str
    phone_number: str


class AuthResolver:
    def __init__(self, db: Session, store: CredentialStore = credential_store):
        self.db = db
        self.store = store

    def resolve(self, header_value: Optional[str]) -> Principal:
        principal = None
        if header_value:
            if header_value.startswith(BEARER_PREFIX):
                principal = self._resolve_bearer(header_value[len(BEARER_PREFIX):])
            elif header_value.startswith(API_KEY_PREFIX):
                principal = self._resolve_api_key(header_value[len(API_KEY_PREFIX):])
        if principal is None:
            raise AuthenticationError()
        return principal

    def _resolve_bearer(self, token: str) -> Optional[Principal]:
        try:
            claims = tokens.verify_token(token)
        except AuthenticationError:
            return None
        return Principal(id=claims.sub, email=claims.email, phone_number=claims.phone_number)

    def _resolve_api_key(self, raw_key: str) -> Optional[Principal]:
        if not raw_key:
            return None
        now = utcnow()
        for api_key in self.store.list_active_api_keys(self.db, now):
            if not security.verify_password(raw_key, api_key.key_hash):
                continue
            user = self.store.get_user(self.db, api_key.user_id)
            if user is None:
                return None
            self.store.touch_api_key_last_used(self.db, api_key.id, now)
            logger.info(f"API key {api_key.id} used by user {user.id}")
            return Principal(id=user.id, email=user.email, phone_number=user.phone_number)
        return None
