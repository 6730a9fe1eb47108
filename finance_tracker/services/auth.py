"""
Authentication

Sign-in and registration against the users collection.

DESIGN DECISION: A wrong email or password is a business outcome, not an
error, so login returns None. A duplicate email at registration is a
conflict the caller must show to the user, so it raises
DuplicateEmailError with a readable message.

NOTE: Passwords are stored and compared in plain text. This is a local,
single-user tracker with a mock backend.
"""

from datetime import datetime
from typing import Optional

import structlog
from pydantic import ValidationError

from finance_tracker.audit.logger import AuditLogger
from finance_tracker.models.records import User
from finance_tracker.services.session import SessionState
from finance_tracker.store.interface import DuplicateEmailError, TransportError
from finance_tracker.transport.client import ApiClient


logger = structlog.get_logger(__name__)


class AuthService:
    """
    Login, registration and logout.

    The signed-in user lives in the SessionState passed in; this service
    only decides who that is.
    """

    collection = "users"

    def __init__(
        self,
        client: ApiClient,
        session: SessionState,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._client = client
        self._session = session
        self._audit = audit_logger or AuditLogger()

    @property
    def session(self) -> SessionState:
        return self._session

    async def login(self, email: str, password: str) -> Optional[User]:
        """
        Sign in with email and password.

        Email is matched case-insensitively after trimming; the password
        must match exactly. On success the user is stored and published.
        On failure the session is cleared and None is returned.
        """
        users = await self._fetch_users()
        matches = [u for u in users if u.matches_email(email) and u.password == password]

        if len(matches) != 1:
            if len(matches) > 1:
                logger.warning("ambiguous_login", match_count=len(matches))
            self._session.clear()
            await self._audit.log_login_failed(email)
            return None

        user = matches[0]
        self._session.set(user)
        await self._audit.log_login_succeeded(user.id)
        return user

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """
        Create a new account. Does not sign the user in.

        Raises:
            DuplicateEmailError: if the email is already registered
        """
        users = await self._fetch_users()
        if any(u.matches_email(email) for u in users):
            error = DuplicateEmailError(email)
            await self._audit.log_registration_rejected(email, str(error))
            raise error

        new_user = User(
            email=email.strip(),
            password=password,
            first_name=first_name,
            last_name=last_name,
            created_at=datetime.now(),
        )
        row = await self._client.post(self.collection, new_user.to_wire(include_id=False))
        created = User.model_validate(row)
        await self._audit.log_user_registered(created.id, created.email)
        return created

    async def logout(self) -> None:
        current = self._session.get()
        self._session.clear()
        await self._audit.log_logged_out(current.id if current else None)

    def get_current_user(self) -> Optional[User]:
        return self._session.get()

    def is_logged_in(self) -> bool:
        return self._session.is_authenticated

    async def _fetch_users(self) -> list[User]:
        """All users; a transport failure counts as none. Bad rows are skipped."""
        try:
            rows = await self._client.get(self.collection)
        except TransportError as e:
            logger.warning("user_listing_failed", error=str(e))
            return []

        users = []
        for row in rows:
            try:
                users.append(User.model_validate(row))
            except ValidationError:
                logger.warning("invalid_user_row_skipped", user_id=row.get("id"))
        return users
