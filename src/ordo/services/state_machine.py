"""Screen and session state machine driving the whole app."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ordo.domain.accounts import UserSession
from ordo.domain.errors import (
    CameraPermissionDeniedError,
    ConfigurationError,
    GenerationError,
    OrdoError,
    PersistenceError,
)
from ordo.domain.generation import DEFAULT_STEPS, OrganizingStep, OrganizingStyle
from ordo.domain.screens import NAVIGABLE_SCREENS, Screen, ViewMode
from ordo.domain.spaces import SavedSpace, SpaceKind
from ordo.services.accounts import AccountService, validate_credentials
from ordo.services.capture import CameraStream, CaptureAdapter
from ordo.services.generation import GenerationService
from ordo.services.library import LibraryService

ONBOARDING_PAGES = 3
_SAVE_SCREENS = frozenset(
    {Screen.RESULT, Screen.STEP_FOCUS, Screen.COMPLETION, Screen.SAVE_SPACE}
)
_SCAN_ENTRY_SCREENS = frozenset({Screen.HOME, Screen.CONFIRMATION})

_logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything the screens render from."""

    screen: Screen = Screen.SPLASH
    session: UserSession | None = None
    onboarding_step: int = 0
    selected_style: OrganizingStyle = OrganizingStyle.CALM_MINIMAL
    captured_image: str | None = None
    after_image: str | None = None
    space_kind: SpaceKind = SpaceKind.SCAN
    view_mode: ViewMode = ViewMode.AFTER
    steps: list[OrganizingStep] = field(default_factory=list)
    current_step_index: int = 0
    is_generating: bool = False
    is_syncing: bool = False
    error: str | None = None
    notice: str | None = None

    @property
    def current_step(self) -> OrganizingStep | None:
        """Return the step under focus, if any."""
        if 0 <= self.current_step_index < len(self.steps):
            return self.steps[self.current_step_index]
        return None


@dataclass
class AppStateMachine:
    """Single controller owning the current screen, session and results."""

    accounts: AccountService
    library: LibraryService
    generation: GenerationService
    capture: CaptureAdapter
    splash_delay_seconds: float = 2.0
    state: AppState = field(default_factory=AppState)
    _stream: CameraStream | None = field(default=None, init=False, repr=False)

    @property
    def screen(self) -> Screen:
        """Return the current screen."""
        return self.state.screen

    @property
    def camera_active(self) -> bool:
        """Return True while a camera stream is held."""
        return self._stream is not None

    # Startup and accounts

    async def start(self) -> None:
        """Leave the splash screen once the delay has elapsed."""
        if self.state.screen is not Screen.SPLASH:
            return
        await asyncio.sleep(self.splash_delay_seconds)
        session = self.accounts.cached_session()
        if session is None:
            await self._go(Screen.AUTH)
            return
        self.state.session = session
        self.state.selected_style = session.settings.default_style
        await self.library.load(session.user_id)
        await self._go(Screen.HOME)

    async def sign_up(self, email: str, name: str, password: str) -> None:
        """Create an account from the auth form."""
        problem = validate_credentials(email, password, name=name)
        if problem:
            self.state.error = problem
            return
        await self._authenticate(
            lambda: self.accounts.sign_up(email, name, password)
        )

    async def sign_in(self, email: str, password: str) -> None:
        """Sign in from the auth form."""
        problem = validate_credentials(email, password)
        if problem:
            self.state.error = problem
            return
        await self._authenticate(lambda: self.accounts.sign_in(email, password))

    async def advance_onboarding(self) -> None:
        """Move through the onboarding pages, finishing on home."""
        if self.state.screen is not Screen.ONBOARDING:
            return
        if self.state.onboarding_step < ONBOARDING_PAGES - 1:
            self.state.onboarding_step += 1
            return
        self.state.onboarding_step = 0
        await self._go(Screen.HOME)

    async def update_settings(self, changes: dict[str, object]) -> None:
        """Write settings through to persistence, then refresh the session."""
        session = self.state.session
        if session is None or self.state.is_syncing:
            return
        self._begin()
        self.state.is_syncing = True
        try:
            updated = await self.accounts.update_settings(session, changes)
        except ValueError as exc:
            self.state.error = str(exc)
        except PersistenceError as exc:
            self.state.error = exc.user_message
        else:
            self.state.session = updated
        finally:
            self.state.is_syncing = False

    async def sign_out(self) -> None:
        """Drop the session and library and return to auth."""
        if self.state.screen is not Screen.SETTINGS or self._busy():
            return
        await self.accounts.sign_out()
        await self._reset_to_auth()

    async def delete_account(self) -> None:
        """Delete the account and all of its spaces."""
        session = self.state.session
        if (
            session is None
            or self.state.screen is not Screen.SETTINGS
            or self._busy()
        ):
            return
        self._begin()
        self.state.is_syncing = True
        try:
            await self.accounts.delete_account(session.user_id)
        except PersistenceError as exc:
            self.state.error = exc.user_message
            return
        finally:
            self.state.is_syncing = False
        await self._reset_to_auth()

    # Capture

    async def start_scan(self) -> None:
        """Acquire the camera and open the scan screen."""
        if self.state.screen not in _SCAN_ENTRY_SCREENS or self._stream is not None:
            return
        self._begin()
        try:
            self._stream = await self.capture.request_capability()
        except CameraPermissionDeniedError as exc:
            self.state.notice = exc.user_message
            await self._go(Screen.HOME)
            return
        await self._go(Screen.SCAN)

    async def capture_photo(self) -> None:
        """Grab the current frame and move to confirmation."""
        if self.state.screen is not Screen.SCAN or self._stream is None:
            return
        image = await self.capture.capture_still(self._stream)
        if image is None:
            return
        self.state.captured_image = image
        self.state.after_image = None
        self.state.space_kind = SpaceKind.SCAN
        await self._go(Screen.CONFIRMATION)

    async def retake(self) -> None:
        """Discard the captured photo and scan again."""
        if self.state.screen is not Screen.CONFIRMATION:
            return
        self.state.captured_image = None
        await self.start_scan()

    async def confirm_capture(self) -> None:
        """Accept the captured photo and choose a style."""
        if self.state.screen is not Screen.CONFIRMATION:
            return
        await self._go(Screen.STYLE_SELECTION)

    # Generation

    async def select_style(self, style: OrganizingStyle) -> None:
        """Generate the organized version of the captured photo."""
        if self.state.screen is not Screen.STYLE_SELECTION or self.state.is_generating:
            return
        self._begin()
        if not self.generation.is_configured:
            self.state.error = ConfigurationError().user_message
            return
        captured = self.state.captured_image
        if captured is None:
            self.state.error = "Scan your space before choosing a style."
            return
        self.state.selected_style = style
        self._clear_result()
        session = self.state.session
        error: str | None = None
        self.state.is_generating = True
        await self._go(Screen.PROCESSING)
        try:
            result = await self.generation.transform(captured, style)
        except GenerationError as exc:
            result = None
            error = exc.user_message
        finally:
            self.state.is_generating = False
        if self.state.session is not session:
            _logger.info("Dropping generation result for an ended session")
            return
        if result is None:
            self.state.after_image = captured
            self.state.steps = list(DEFAULT_STEPS)
            self.state.error = error
        else:
            self.state.after_image = result.image or captured
            self.state.steps = result.steps or list(DEFAULT_STEPS)
        await self._go(Screen.RESULT)

    async def submit_inspiration(self, prompt: str) -> None:
        """Generate a dream space from a description."""
        if self.state.screen is not Screen.INSPIRATION or self.state.is_generating:
            return
        self._begin()
        if not prompt.strip():
            return
        if not self.generation.is_configured:
            self.state.error = ConfigurationError().user_message
            return
        self._clear_result()
        session = self.state.session
        self.state.is_generating = True
        await self._go(Screen.PROCESSING)
        try:
            result = await self.generation.imagine(prompt)
        except GenerationError as exc:
            self.state.error = exc.user_message
            result = None
        finally:
            self.state.is_generating = False
        if self.state.session is not session:
            _logger.info("Dropping generation result for an ended session")
            self.state.error = None
            return
        if result is None or result.image is None:
            self.state.error = self.state.error or "No image came back. Try rephrasing."
            await self._go(Screen.INSPIRATION)
            return
        self.state.captured_image = None
        self.state.after_image = result.image
        self.state.space_kind = SpaceKind.DREAM
        await self._go(Screen.RESULT)

    def toggle_view_mode(self) -> None:
        """Flip between the before and after images."""
        if self.state.screen is not Screen.RESULT or self.state.captured_image is None:
            return
        self.state.view_mode = (
            ViewMode.BEFORE
            if self.state.view_mode is ViewMode.AFTER
            else ViewMode.AFTER
        )

    # Steps

    async def start_organizing(self) -> None:
        """Enter step-by-step focus mode at the first step."""
        if self.state.screen is not Screen.RESULT or not self.state.steps:
            return
        self.state.current_step_index = 0
        await self._go(Screen.STEP_FOCUS)

    async def next_step(self) -> None:
        """Advance to the next step, completing after the last one."""
        if self.state.screen is not Screen.STEP_FOCUS:
            return
        if self.state.current_step_index < len(self.state.steps) - 1:
            self.state.current_step_index += 1
            return
        await self._go(Screen.COMPLETION)

    async def previous_step(self) -> None:
        """Go back one step, or back to the result from the first step."""
        if self.state.screen is not Screen.STEP_FOCUS:
            return
        if self.state.current_step_index > 0:
            self.state.current_step_index -= 1
            return
        await self._go(Screen.RESULT)

    # Library

    async def request_save(self) -> None:
        """Open the name prompt for saving the current result."""
        if self.state.screen in _SAVE_SCREENS and self.state.after_image:
            await self._go(Screen.SAVE_SPACE)

    async def save_to_library(self, name: str | None = None) -> None:
        """Save the current result; a None name picks a default one."""
        after_image = self.state.after_image
        if (
            self.state.screen not in _SAVE_SCREENS
            or not after_image
            or self.state.is_syncing
        ):
            return
        if name is not None and not name.strip():
            return
        self._begin()
        session = self.state.session
        self.state.is_syncing = True
        try:
            await self.library.create(
                name=name or f"Space {len(self.library.spaces) + 1}",
                after_image=after_image,
                before_image=self.state.captured_image,
                kind=self.state.space_kind,
            )
        except PersistenceError as exc:
            self.state.error = exc.user_message
            return
        finally:
            self.state.is_syncing = False
        if self.state.session is not session:
            return
        await self._go(Screen.HOME)

    async def open_space(self, space_id: str) -> None:
        """Show a saved space on the result screen."""
        space = self.library.get(space_id)
        if space is None:
            return
        self._begin()
        self._clear_result()
        self.state.captured_image = space.before_image
        self.state.after_image = space.after_image
        self.state.space_kind = space.kind
        await self._go(Screen.RESULT)

    async def rename_space(self, space_id: str, name: str) -> None:
        """Rename a saved space; blank names are ignored."""
        if self.state.screen is not Screen.LIBRARY or self.state.is_syncing:
            return
        if not name.strip():
            return
        await self._mutate_library(self.library.rename(space_id, name))

    async def delete_space(self, space_id: str) -> None:
        """Delete a saved space after the user confirmed it."""
        if self.state.screen is not Screen.LIBRARY or self.state.is_syncing:
            return
        await self._mutate_library(self.library.delete(space_id))

    # Navigation

    async def navigate(self, screen: Screen) -> None:
        """Jump directly to one of the hub screens."""
        if screen not in NAVIGABLE_SCREENS:
            raise ValueError(f"Cannot navigate directly to {screen.value}")
        if self.state.is_generating:
            return
        signed_in = self.state.session is not None
        if signed_in == (screen is Screen.AUTH):
            return
        self._begin()
        await self._go(screen)

    def snapshot(self) -> dict[str, object]:
        """Return the public state as JSON-ready data."""
        state = self.state
        session = state.session
        return {
            "screen": state.screen.value,
            "user": session.to_payload() if session else None,
            "onboarding_step": state.onboarding_step,
            "selected_style": state.selected_style.value,
            "captured_image": state.captured_image,
            "after_image": state.after_image,
            "space_kind": state.space_kind.value,
            "view_mode": state.view_mode.value,
            "steps": [step.model_dump() for step in state.steps],
            "current_step_index": state.current_step_index,
            "is_generating": state.is_generating,
            "is_syncing": state.is_syncing,
            "camera_active": self.camera_active,
            "error": state.error,
            "notice": state.notice,
            "spaces": [_space_payload(space) for space in self.library.list_spaces()],
            "recent_space_ids": [space.id for space in self.library.recent()],
        }

    # Internals

    async def _authenticate(
        self, call: Callable[[], Awaitable[UserSession]]
    ) -> None:
        if self.state.screen is not Screen.AUTH or self.state.is_syncing:
            return
        self._begin()
        self.state.is_syncing = True
        try:
            session = await call()
        except PersistenceError as exc:
            self.state.error = exc.user_message
            return
        finally:
            self.state.is_syncing = False
        self.state.session = session
        self.state.selected_style = session.settings.default_style
        self.state.onboarding_step = 0
        await self.library.load(session.user_id)
        await self._go(Screen.ONBOARDING)

    async def _mutate_library(self, operation: Awaitable[object]) -> None:
        self._begin()
        self.state.is_syncing = True
        try:
            await operation
        except (PersistenceError, ValueError) as exc:
            self.state.error = (
                exc.user_message if isinstance(exc, OrdoError) else str(exc)
            )
        finally:
            self.state.is_syncing = False

    async def _reset_to_auth(self) -> None:
        self.library.clear()
        self.state.session = None
        self._clear_result()
        self.state.captured_image = None
        self.state.onboarding_step = 0
        await self._go(Screen.AUTH)

    async def _go(self, screen: Screen) -> None:
        if self.state.screen is Screen.SCAN and screen is not Screen.SCAN:
            self._release_camera()
        _logger.debug("Screen %s -> %s", self.state.screen.value, screen.value)
        self.state.screen = screen

    def _release_camera(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        self.capture.release(stream)

    def _busy(self) -> bool:
        return self.state.is_generating or self.state.is_syncing

    def _begin(self) -> None:
        self.state.error = None
        self.state.notice = None

    def _clear_result(self) -> None:
        self.state.after_image = None
        self.state.steps = []
        self.state.current_step_index = 0
        self.state.view_mode = ViewMode.AFTER
        self.state.space_kind = SpaceKind.SCAN


def _space_payload(space: SavedSpace) -> dict[str, object]:
    return {
        "id": space.id,
        "name": space.name,
        "date": space.created_date,
        "image": space.after_image,
        "before_image": space.before_image,
        "type": space.kind.value,
        "note": space.note,
    }
