"""Screens the application can show."""

from enum import StrEnum


class Screen(StrEnum):
    """Every screen of the app, keyed by its route name."""

    SPLASH = "splash"
    AUTH = "auth"
    ONBOARDING = "onboarding"
    HOME = "home"
    SCAN = "scan"
    CONFIRMATION = "confirmation"
    STYLE_SELECTION = "style-selection"
    PROCESSING = "processing"
    RESULT = "result"
    STEP_FOCUS = "step-focus"
    COMPLETION = "completion"
    SAVE_SPACE = "save-space"
    LIBRARY = "library"
    SETTINGS = "settings"
    INSPIRATION = "inspiration"


class ViewMode(StrEnum):
    """Which side of the before/after comparison is visible."""

    BEFORE = "before"
    AFTER = "after"


NAVIGABLE_SCREENS = frozenset(
    {
        Screen.HOME,
        Screen.LIBRARY,
        Screen.SETTINGS,
        Screen.INSPIRATION,
        Screen.AUTH,
    }
)
