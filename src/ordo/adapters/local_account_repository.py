"""Account repository kept in the local key-value store."""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from uuid import uuid4

from ordo.adapters.local_space_repository import LocalSpaceRepository
from ordo.domain.accounts import UserSession, UserSettings
from ordo.domain.errors import AuthenticationError, PersistenceError
from ordo.services.accounts import AccountRepository
from ordo.services.storage import KeyValueStore

ACCOUNTS_KEY = "accounts"
_HASH_ITERATIONS = 200_000


@dataclass
class LocalAccountRepository(AccountRepository):
    """Device-local accounts with salted PBKDF2 password hashes."""

    store: KeyValueStore
    spaces: LocalSpaceRepository

    def sign_up(self, email: str, name: str, password: str) -> UserSession:
        """Create a local account."""
        accounts = self._accounts()
        if any(row.get("email") == email for row in accounts.values()):
            raise AuthenticationError("An account with this email already exists.")
        salt = secrets.token_hex(16)
        user_id = str(uuid4())
        accounts[user_id] = {
            "id": user_id,
            "email": email,
            "name": name,
            "salt": salt,
            "password_hash": _hash_password(password, salt),
            "settings": UserSettings().to_payload(),
        }
        self.store.set(ACCOUNTS_KEY, accounts)
        return _parse_session(accounts[user_id])

    def sign_in(self, email: str, password: str) -> UserSession:
        """Verify a local account's password."""
        for row in self._accounts().values():
            if row.get("email") != email:
                continue
            expected = str(row.get("password_hash", ""))
            actual = _hash_password(password, str(row.get("salt", "")))
            if hmac.compare_digest(expected, actual):
                return _parse_session(row)
            break
        raise AuthenticationError("Incorrect email or password.")

    def update_settings(self, user_id: str, settings: UserSettings) -> None:
        """Replace the stored settings for a user."""
        accounts = self._accounts()
        if user_id not in accounts:
            raise PersistenceError("Your account could not be found.")
        accounts[user_id]["settings"] = settings.to_payload()
        self.store.set(ACCOUNTS_KEY, accounts)

    def delete_account(self, user_id: str) -> None:
        """Delete the user's spaces, then the account."""
        self.spaces.delete_owner_spaces(user_id)
        accounts = self._accounts()
        if accounts.pop(user_id, None) is not None:
            self.store.set(ACCOUNTS_KEY, accounts)

    def sign_out(self) -> None:
        """Local accounts keep no backend session."""

    def _accounts(self) -> dict[str, dict[str, object]]:
        raw = self.store.get(ACCOUNTS_KEY)
        if not isinstance(raw, dict):
            return {}
        return {key: row for key, row in raw.items() if isinstance(row, dict)}


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), _HASH_ITERATIONS
    )
    return digest.hex()


def _parse_session(row: dict[str, object]) -> UserSession:
    return UserSession(
        user_id=str(row["id"]),
        email=str(row.get("email", "")),
        display_name=str(row.get("name") or "User"),
        settings=UserSettings.from_payload(row.get("settings")),
    )
