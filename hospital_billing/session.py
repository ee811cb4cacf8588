"""
Explicit authentication session.

A ``Session`` owns the bearer token and the identity the server returned for
it. It is handed to ``ApiClient`` rather than living in a module global, and
moves through three states:

    anonymous --(credentials accepted)--> authenticated
    anonymous --(stored token found)----> restoring --(profile ok)--> authenticated
                                                     \\--(failure)---> anonymous
    authenticated --(401 or sign out)---> anonymous
"""

from enum import Enum
from typing import Dict, Optional

from hospital_billing.core.config import settings
from hospital_billing.core.logging import get_logger
from hospital_billing.schemas import User, UserRole
from hospital_billing.storage import FileTokenStore, TokenStore

logger = get_logger("session")


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"


class Session:
    def __init__(self, store: Optional[TokenStore] = None, storage_key: Optional[str] = None) -> None:
        self.store: TokenStore = store if store is not None else FileTokenStore(settings.TOKEN_STORAGE_PATH)
        self.storage_key = storage_key or settings.TOKEN_STORAGE_KEY
        self._token: Optional[str] = None
        self._user: Optional[User] = None
        self._state = SessionState.ANONYMOUS

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def role(self) -> Optional[UserRole]:
        """Role as reported by the server for the current identity."""
        return self._user.role if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    # --- token ---

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("token must be a non-empty string")
        self._token = token
        self.store.set(self.storage_key, token)

    def get_token(self) -> Optional[str]:
        if not self._token:
            self._token = self.store.get(self.storage_key)
        return self._token

    def clear_token(self) -> None:
        """Discard the token. Without a token the session is anonymous again."""
        self._token = None
        self.store.remove(self.storage_key)
        self._user = None
        self._state = SessionState.ANONYMOUS

    def authorization_header(self) -> Dict[str, str]:
        token = self.get_token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    # --- lifecycle ---

    def authenticate(self, user: User, token: Optional[str] = None) -> None:
        if token is not None:
            self.set_token(token)
        elif not self.get_token():
            raise ValueError("cannot authenticate a session without a token")
        self._user = user
        self._state = SessionState.AUTHENTICATED
        logger.info(f"Session authenticated for user {user.id} ({user.role.value})")

    def begin_restore(self) -> bool:
        """Enter RESTORING when a persisted token exists; report whether it did."""
        if not self.get_token():
            self._state = SessionState.ANONYMOUS
            return False
        self._state = SessionState.RESTORING
        return True

    def invalidate(self) -> None:
        """Drop token and identity and return to ANONYMOUS."""
        if self._state is not SessionState.ANONYMOUS:
            logger.info(f"Session invalidated (was {self._state.value})")
        self.clear_token()
