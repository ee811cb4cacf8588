from typing import Any, Optional, Union

from hospital_billing.client import ApiClient
from hospital_billing.core.logging import get_logger
from hospital_billing.exceptions import ApiError
from hospital_billing.schemas import User, UserRole
from hospital_billing.session import Session

logger = get_logger("auth")


class AuthManager:
    """Drives the session through sign in, restore and sign out."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    @property
    def session(self) -> Session:
        return self.client.session

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    @property
    def role(self) -> Optional[UserRole]:
        return self.session.role

    async def restore(self) -> Optional[User]:
        """Resume a persisted session on startup.

        A stale or rejected token is discarded silently and the session ends
        up anonymous; the caller only sees ``None``.
        """
        if not self.session.begin_restore():
            return None
        try:
            profile = await self.client.get_profile()
        except ApiError as exc:
            logger.info(f"Stored session could not be restored: {exc.message}")
            self.session.invalidate()
            return None
        except BaseException:
            # never leave the session half-restored
            self.session.invalidate()
            raise
        self.session.authenticate(profile)
        return profile

    async def sign_in(self, email: str, password: str) -> User:
        try:
            response = await self.client.login(email, password)
        except ApiError as exc:
            logger.warning(f"Login failed for {email}: {exc.message}")
            raise
        self.session.authenticate(response.user, response.token)
        return response.user

    async def sign_up(self, email: str, password: str, role: Union[UserRole, str], **fields: Any) -> User:
        """Register an account. The current session is left untouched."""
        try:
            return await self.client.register(email, password, role, **fields)
        except ApiError as exc:
            logger.warning(f"Registration failed for {email}: {exc.message}")
            raise

    async def sign_out(self) -> None:
        self.session.invalidate()
