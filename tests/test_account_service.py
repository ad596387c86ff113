"""Tests for the account service and session cache."""

import asyncio

import pytest

from ordo.domain.accounts import UserSession, UserSettings
from ordo.domain.errors import AuthenticationError, PersistenceError
from ordo.domain.generation import OrganizingStyle
from ordo.services.accounts import (
    SESSION_CACHE_KEY,
    AccountService,
    validate_credentials,
)
from ordo.services.storage import InMemoryStore
from tests.conftest import InMemoryAccountRepository


class BrokenStore(InMemoryStore):
    """Store whose reads always fail."""

    def get(self, key: str) -> object | None:
        raise PersistenceError("corrupt store")


class ReadOnlyStore(InMemoryStore):
    """Store whose deletes always fail."""

    def delete(self, key: str) -> None:
        raise PersistenceError("read-only store")


class FailingSignOutRepository(InMemoryAccountRepository):
    def sign_out(self) -> None:
        raise PersistenceError("offline")


def test_sign_up_normalizes_email_and_caches_session() -> None:
    cache = InMemoryStore()
    service = AccountService(InMemoryAccountRepository(), cache)

    session = asyncio.run(service.sign_up("  Ada@Example.COM", " Ada ", "secret1"))

    assert session.email == "ada@example.com"
    assert session.display_name == "Ada"
    assert service.cached_session() == session
    assert cache.get(SESSION_CACHE_KEY)["id"] == session.user_id


def test_duplicate_sign_up_is_rejected() -> None:
    service = AccountService(InMemoryAccountRepository(), InMemoryStore())
    asyncio.run(service.sign_up("ada@example.com", "Ada", "secret1"))

    with pytest.raises(AuthenticationError, match="already exists"):
        asyncio.run(service.sign_up("ADA@example.com", "Ada", "secret2"))


def test_cached_session_survives_unreadable_store() -> None:
    service = AccountService(InMemoryAccountRepository(), BrokenStore())

    assert service.cached_session() is None


def test_update_settings_refreshes_cache() -> None:
    cache = InMemoryStore()
    service = AccountService(InMemoryAccountRepository(), cache)
    session = asyncio.run(service.sign_up("ada@example.com", "Ada", "secret1"))

    updated = asyncio.run(
        service.update_settings(session, {"high_contrast": True, "larger_text": True})
    )

    assert updated.settings.high_contrast is True
    assert service.cached_session().settings.larger_text is True


def test_failed_settings_write_keeps_cache() -> None:
    cache = InMemoryStore()
    repository = InMemoryAccountRepository()
    service = AccountService(repository, cache)
    session = asyncio.run(service.sign_up("ada@example.com", "Ada", "secret1"))
    repository.fail_settings = True

    with pytest.raises(PersistenceError):
        asyncio.run(service.update_settings(session, {"high_contrast": True}))
    assert service.cached_session().settings.high_contrast is False


def test_sign_out_forgets_session_even_if_backend_fails() -> None:
    cache = InMemoryStore()
    service = AccountService(FailingSignOutRepository(), cache)
    asyncio.run(service.sign_up("ada@example.com", "Ada", "secret1"))

    asyncio.run(service.sign_out())

    assert service.cached_session() is None


def test_sign_out_and_delete_survive_cache_write_failure() -> None:
    repository = InMemoryAccountRepository()
    service = AccountService(repository, ReadOnlyStore())
    session = asyncio.run(service.sign_up("ada@example.com", "Ada", "secret1"))

    asyncio.run(service.sign_out())
    asyncio.run(service.delete_account(session.user_id))

    assert repository.signed_out == 1
    assert repository.accounts == {}


@pytest.mark.parametrize(
    ("email", "password", "name", "expected"),
    [
        ("ada@example.com", "secret1", "Ada", None),
        ("ada@example.com", "secret1", None, None),
        ("ada@example.com", "secret1", "  ", "Please enter your name."),
        ("not-an-email", "secret1", None, "Please enter a valid email address."),
        ("@example.com", "secret1", None, "Please enter a valid email address."),
        ("ada@example.com", "12345", None, "Passwords need at least 6 characters."),
    ],
)
def test_validate_credentials(
    email: str, password: str, name: str | None, expected: str | None
) -> None:
    assert validate_credentials(email, password, name=name) == expected


def test_settings_changes_are_validated() -> None:
    settings = UserSettings()

    assert settings.with_changes({"default_style": "Compact"}).default_style is (
        OrganizingStyle.COMPACT
    )
    with pytest.raises(ValueError):
        settings.with_changes({"default_style": "Messy"})
    with pytest.raises(ValueError):
        settings.with_changes({"default_focus_minutes": True})
    with pytest.raises(ValueError):
        settings.with_changes({"haptic_feedback": "yes"})
    with pytest.raises(ValueError, match="Unknown settings"):
        settings.with_changes({"theme": "dark"})


def test_settings_payload_uses_profile_keys() -> None:
    payload = UserSettings(default_focus_minutes=5).to_payload()

    assert payload == {
        "defaultStyle": "Calm Minimal",
        "defaultFocusTime": 5,
        "gentleAnimations": True,
        "hapticFeedback": True,
        "largerText": False,
        "highContrast": False,
    }
    assert UserSettings.from_payload(payload) == UserSettings(default_focus_minutes=5)


def test_settings_payload_falls_back_to_defaults() -> None:
    assert UserSettings.from_payload(None) == UserSettings()
    assert UserSettings.from_payload({"defaultFocusTime": 99}) == UserSettings()
    assert UserSettings.from_payload({"largerText": True}).larger_text is True


def test_session_payload_parsing() -> None:
    assert UserSession.from_payload("garbage") is None
    assert UserSession.from_payload({"id": "", "email": "a@b.c"}) is None
    session = UserSession.from_payload({"id": "u1", "email": "a@b.c"})
    assert session.display_name == "User"
