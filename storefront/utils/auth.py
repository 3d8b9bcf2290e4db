# storefront/utils/auth.py
from jose import jwt, JWTError
from datetime import datetime, timezone
from typing import Dict, Optional
import logging

from storefront.utils.store import AUTH_ROLE, AUTH_TOKEN, PersistentStore

logger = logging.getLogger(__name__)

ROLES = {"user", "admin"}


# Credential issued by the identity provider, kept in the durable store.
# The storefront never verifies signatures; it only reads the claims it needs.
class AuthSession:
    def __init__(self, store: PersistentStore):
        self._store = store

    @property
    def token(self) -> Optional[str]:
        return self._store.get(AUTH_TOKEN) or None

    @property
    def role(self) -> Optional[str]:
        role = self._store.get(AUTH_ROLE)
        if role in ROLES:
            return role
        # Fall back to the role claim of the token
        claims = self._claims()
        role = claims.get("role") if claims else None
        return role if role in ROLES else None

    def _claims(self) -> Optional[dict]:
        token = self.token
        if not token:
            return None
        try:
            return jwt.get_unverified_claims(token)
        except JWTError:
            # Opaque token, nothing to read
            return None

    @property
    def is_authenticated(self) -> bool:
        if not self.token:
            return False
        claims = self._claims()
        exp = claims.get("exp") if claims else None
        if exp is None:
            return True
        try:
            expires_at = datetime.fromtimestamp(float(exp), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return True
        return expires_at > datetime.now(timezone.utc)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == "admin"

    def auth_headers(self) -> Dict[str, str]:
        if not self.is_authenticated:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    # Store the session after login/registration
    def login(self, token: str, role: Optional[str] = None) -> None:
        values = {AUTH_TOKEN: token}
        if role:
            values[AUTH_ROLE] = role
        self._store.set_many(values)

    def logout(self) -> None:
        self._store.set_many({AUTH_TOKEN: None, AUTH_ROLE: None})
        logger.info("Session cleared for tab %s", self._store.tab_id)
