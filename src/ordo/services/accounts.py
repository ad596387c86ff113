"""Account lifecycle and the cached session."""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Protocol

from ordo.domain.accounts import UserSession, UserSettings
from ordo.domain.errors import PersistenceError
from ordo.services.storage import KeyValueStore

SESSION_CACHE_KEY = "session"
MIN_PASSWORD_LENGTH = 6

_logger = logging.getLogger(__name__)


class AccountRepository(Protocol):
    """Persistence interface for user accounts."""

    def sign_up(self, email: str, name: str, password: str) -> UserSession:
        """Create an account and return its session."""

    def sign_in(self, email: str, password: str) -> UserSession:
        """Verify credentials and return the stored profile as a session."""

    def update_settings(self, user_id: str, settings: UserSettings) -> None:
        """Replace the stored settings for a user."""

    def delete_account(self, user_id: str) -> None:
        """Delete the user's spaces, then the account itself."""

    def sign_out(self) -> None:
        """End the backend session, if the backend keeps one."""


@dataclass
class AccountService:
    """Application service for sign-up, sign-in and settings."""

    repository: AccountRepository
    cache: KeyValueStore

    async def sign_up(self, email: str, name: str, password: str) -> UserSession:
        """Create an account and cache its session."""
        session = await asyncio.to_thread(
            self.repository.sign_up, _normalize_email(email), name.strip(), password
        )
        self._remember(session)
        return session

    async def sign_in(self, email: str, password: str) -> UserSession:
        """Sign in and cache the resulting session."""
        session = await asyncio.to_thread(
            self.repository.sign_in, _normalize_email(email), password
        )
        self._remember(session)
        return session

    def cached_session(self) -> UserSession | None:
        """Return the cached session projection, if a usable one exists."""
        try:
            raw = self.cache.get(SESSION_CACHE_KEY)
        except PersistenceError:
            _logger.warning("Session cache is unreadable", exc_info=True)
            return None
        if raw is None:
            return None
        session = UserSession.from_payload(raw)
        if session is None:
            _logger.warning("Ignoring unreadable cached session")
            self._forget()
        return session

    async def update_settings(
        self, session: UserSession, changes: dict[str, object]
    ) -> UserSession:
        """Write settings through to the backend, then refresh the cache."""
        settings = session.settings.with_changes(changes)
        await asyncio.to_thread(
            self.repository.update_settings, session.user_id, settings
        )
        updated = replace(session, settings=settings)
        self._remember(updated)
        return updated

    async def delete_account(self, user_id: str) -> None:
        """Delete the account and everything it owns."""
        await asyncio.to_thread(self.repository.delete_account, user_id)
        self._forget()

    async def sign_out(self) -> None:
        """Forget the local session and end the backend one."""
        self._forget()
        try:
            await asyncio.to_thread(self.repository.sign_out)
        except PersistenceError:
            _logger.warning("Backend sign-out failed", exc_info=True)

    def _remember(self, session: UserSession) -> None:
        self.cache.set(SESSION_CACHE_KEY, session.to_payload())

    def _forget(self) -> None:
        try:
            self.cache.delete(SESSION_CACHE_KEY)
        except PersistenceError:
            _logger.warning("Failed to clear the cached session", exc_info=True)


def validate_credentials(
    email: str, password: str, name: str | None = None
) -> str | None:
    """Return a message describing invalid form fields, or None if valid."""
    if name is not None and not name.strip():
        return "Please enter your name."
    cleaned = email.strip()
    if not cleaned or "@" not in cleaned or cleaned.startswith("@"):
        return "Please enter a valid email address."
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Passwords need at least {MIN_PASSWORD_LENGTH} characters."
    return None


def _normalize_email(email: str) -> str:
    return email.strip().lower()
