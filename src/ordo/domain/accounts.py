"""Domain models for accounts and the signed-in session."""

from dataclasses import dataclass, field, fields, replace

from ordo.domain.generation import OrganizingStyle

FOCUS_MINUTES_CHOICES = (5, 7, 10)

# Stored keys follow the profile row layout.
_PAYLOAD_KEYS = {
    "default_style": "defaultStyle",
    "default_focus_minutes": "defaultFocusTime",
    "gentle_animations": "gentleAnimations",
    "haptic_feedback": "hapticFeedback",
    "larger_text": "largerText",
    "high_contrast": "highContrast",
}


@dataclass(frozen=True)
class UserSettings:
    """Per-user preferences."""

    default_style: OrganizingStyle = OrganizingStyle.CALM_MINIMAL
    default_focus_minutes: int = 7
    gentle_animations: bool = True
    haptic_feedback: bool = True
    larger_text: bool = False
    high_contrast: bool = False

    def with_changes(self, changes: dict[str, object]) -> "UserSettings":
        """Return a copy with validated partial changes applied."""
        known = {item.name for item in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        values = dict(changes)
        if "default_style" in values:
            values["default_style"] = OrganizingStyle(values["default_style"])
        if "default_focus_minutes" in values:
            values["default_focus_minutes"] = _parse_focus_minutes(
                values["default_focus_minutes"]
            )
        for name in (
            "gentle_animations",
            "haptic_feedback",
            "larger_text",
            "high_contrast",
        ):
            if name in values and not isinstance(values[name], bool):
                raise ValueError(f"{name} must be a boolean")
        return replace(self, **values)

    def to_payload(self) -> dict[str, object]:
        """Serialize settings to the stored camelCase layout."""
        return {
            _PAYLOAD_KEYS[item.name]: _plain(getattr(self, item.name))
            for item in fields(self)
        }

    @classmethod
    def from_payload(cls, payload: object) -> "UserSettings":
        """Parse stored settings, falling back to defaults for missing keys."""
        if not isinstance(payload, dict):
            return cls()
        changes = {
            name: payload[key] for name, key in _PAYLOAD_KEYS.items() if key in payload
        }
        try:
            return cls().with_changes(changes)
        except ValueError:
            return cls()


@dataclass(frozen=True)
class UserSession:
    """The authenticated user context held by the running app."""

    user_id: str
    email: str
    display_name: str
    settings: UserSettings = field(default_factory=UserSettings)

    def to_payload(self) -> dict[str, object]:
        """Serialize the session for the local cache."""
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.display_name,
            "settings": self.settings.to_payload(),
        }

    @classmethod
    def from_payload(cls, payload: object) -> "UserSession | None":
        """Parse a cached session; return None when the payload is unusable."""
        if not isinstance(payload, dict):
            return None
        user_id = payload.get("id")
        email = payload.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            return None
        return cls(
            user_id=user_id,
            email=email,
            display_name=str(payload.get("name") or "User"),
            settings=UserSettings.from_payload(payload.get("settings")),
        )


def _parse_focus_minutes(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("default_focus_minutes must be an integer")
    if value not in FOCUS_MINUTES_CHOICES:
        raise ValueError(
            f"default_focus_minutes must be one of {FOCUS_MINUTES_CHOICES}"
        )
    return value


def _plain(value: object) -> object:
    if isinstance(value, OrganizingStyle):
        return value.value
    return value
