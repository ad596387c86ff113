"""Supabase implementation for accounts and profiles."""

import logging
from dataclasses import dataclass

import httpx
from supabase import AuthError, Client, PostgrestAPIError

from ordo.domain.accounts import UserSession, UserSettings
from ordo.domain.errors import AuthenticationError, PersistenceError
from ordo.services.accounts import AccountRepository

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseAccountRepository(AccountRepository):
    """Supabase Auth for credentials plus a ``profiles`` row per user."""

    client: Client

    def sign_up(self, email: str, name: str, password: str) -> UserSession:
        """Register with Supabase Auth and store the profile row."""
        try:
            response = self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": name}},
                }
            )
        except (AuthError, httpx.HTTPError) as exc:
            raise AuthenticationError(_auth_message(exc)) from exc
        if response.user is None:
            raise AuthenticationError("Failed to create account")
        settings = UserSettings()
        row = {
            "id": response.user.id,
            "name": name,
            "email": email,
            "settings": settings.to_payload(),
        }
        try:
            self.client.table("profiles").upsert(row).execute()
        except (PostgrestAPIError, httpx.HTTPError):
            # The account exists even when the profile write fails.
            _logger.warning("Failed to store profile for %s", response.user.id)
        return _parse_session(row)

    def sign_in(self, email: str, password: str) -> UserSession:
        """Sign in and load the profile, creating a default one if missing."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except (AuthError, httpx.HTTPError) as exc:
            raise AuthenticationError(_auth_message(exc)) from exc
        if response.user is None:
            raise AuthenticationError()
        user_id = response.user.id
        try:
            result = (
                self.client.table("profiles")
                .select("id, name, email, settings")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
            if result.data:
                return _parse_session(result.data[0])
            metadata = response.user.user_metadata or {}
            row = {
                "id": user_id,
                "name": metadata.get("full_name") or "User",
                "email": response.user.email or email,
                "settings": UserSettings().to_payload(),
            }
            self.client.table("profiles").insert(row).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError() from exc
        _logger.info("Created missing profile for %s", user_id)
        return _parse_session(row)

    def update_settings(self, user_id: str, settings: UserSettings) -> None:
        """Replace the profile's settings."""
        try:
            (
                self.client.table("profiles")
                .update({"settings": settings.to_payload()})
                .eq("id", user_id)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("We couldn't save your settings.") from exc

    def delete_account(self, user_id: str) -> None:
        """Delete the user's spaces, their profile, then end the session."""
        try:
            self.client.table("spaces").delete().eq("ownerid", user_id).execute()
            self.client.table("profiles").delete().eq("id", user_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("We couldn't delete your account.") from exc
        try:
            self.sign_out()
        except PersistenceError:
            _logger.warning(
                "Account %s deleted but sign-out failed", user_id, exc_info=True
            )

    def sign_out(self) -> None:
        """End the Supabase Auth session."""
        try:
            self.client.auth.sign_out()
        except (AuthError, httpx.HTTPError) as exc:
            raise PersistenceError("Sign-out did not reach the server.") from exc


def _auth_message(exc: Exception) -> str:
    if isinstance(exc, AuthError) and exc.message:
        return exc.message
    return AuthenticationError.default_message


def _parse_session(row: dict[str, object]) -> UserSession:
    return UserSession(
        user_id=str(row["id"]),
        email=str(row.get("email") or ""),
        display_name=str(row.get("name") or "User"),
        settings=UserSettings.from_payload(row.get("settings")),
    )
