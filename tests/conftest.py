"""Shared test fixtures."""

import asyncio
import io
import threading
from dataclasses import dataclass, field, replace
from uuid import uuid4

import pytest
from PIL import Image

from ordo.adapters.uploaded_frame_capture import UploadedFrameCapture
from ordo.config import Settings
from ordo.containers import AppContainer
from ordo.domain.accounts import UserSession, UserSettings
from ordo.domain.errors import (
    AuthenticationError,
    CameraPermissionDeniedError,
    PersistenceError,
)
from ordo.domain.generation import ImagePayload, ResponsePart
from ordo.domain.spaces import SavedSpace
from ordo.services.accounts import AccountRepository, AccountService
from ordo.services.capture import CameraStream, CaptureAdapter
from ordo.services.generation import GenerationClient, GenerationService
from ordo.services.images import to_data_url
from ordo.services.library import LibraryService, SpaceRepository
from ordo.services.state_machine import AppStateMachine
from ordo.services.storage import InMemoryStore

STEPS_TEXT = (
    'Here is your plan: {"steps": ['
    '{"title": "Clear the desk", "description": "Move everything off the desk."},'
    '{"title": "Sort the papers", "description": "Stack papers by topic."},'
    '{"title": "Coil the cables", "description": "Bundle cables behind the monitor."},'
    '{"title": "Shelve the books", "description": "Line books up on the shelf."},'
    '{"title": "Wipe surfaces", "description": "Wipe the desk clean."}'
    "]}"
)


def sample_image_bytes(
    size: tuple[int, int] = (64, 48), image_format: str = "PNG"
) -> bytes:
    """Return a small generated image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 180, 160)).save(buffer, format=image_format)
    return buffer.getvalue()


def sample_data_url() -> str:
    return to_data_url(sample_image_bytes(image_format="JPEG"), "image/jpeg")


@dataclass
class InMemorySpaceRepository(SpaceRepository):
    """In-memory space repository for tests."""

    spaces: dict[str, SavedSpace] = field(default_factory=dict)
    update_calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    fail_reads: bool = False
    fail_writes: bool = False
    list_calls: int = 0
    write_gate: threading.Event | None = None

    def list_spaces(self, owner_id: str) -> list[SavedSpace]:
        self.list_calls += 1
        if self.fail_reads:
            raise PersistenceError()
        return [space for space in self.spaces.values() if space.owner_id == owner_id]

    def create_space(self, space: SavedSpace) -> None:
        self._wait_for_gate()
        if self.fail_writes:
            raise PersistenceError("We couldn't save this space.")
        self.spaces[space.id] = space

    def update_space(self, space_id: str, changes: dict[str, object]) -> None:
        self.update_calls.append((space_id, changes))
        self._wait_for_gate()
        if space_id in self.spaces:
            self.spaces[space_id] = replace(self.spaces[space_id], **changes)

    def delete_space(self, space_id: str) -> None:
        self.deleted.append(space_id)
        self.spaces.pop(space_id, None)

    def _wait_for_gate(self) -> None:
        if self.write_gate is not None:
            self.write_gate.wait(timeout=5)


@dataclass
class InMemoryAccountRepository(AccountRepository):
    """In-memory account repository for tests."""

    accounts: dict[str, tuple[str, UserSession]] = field(default_factory=dict)
    spaces: InMemorySpaceRepository | None = None
    signed_out: int = 0
    fail_settings: bool = False

    def sign_up(self, email: str, name: str, password: str) -> UserSession:
        if email in self.accounts:
            raise AuthenticationError("An account with this email already exists.")
        session = UserSession(user_id=str(uuid4()), email=email, display_name=name)
        self.accounts[email] = (password, session)
        return session

    def sign_in(self, email: str, password: str) -> UserSession:
        stored = self.accounts.get(email)
        if stored is None or stored[0] != password:
            raise AuthenticationError("Incorrect email or password.")
        return stored[1]

    def update_settings(self, user_id: str, settings: UserSettings) -> None:
        if self.fail_settings:
            raise PersistenceError("We couldn't save your settings.")
        for email, (password, session) in list(self.accounts.items()):
            if session.user_id == user_id:
                self.accounts[email] = (password, replace(session, settings=settings))

    def delete_account(self, user_id: str) -> None:
        if self.spaces is not None:
            for space in self.spaces.list_spaces(user_id):
                self.spaces.delete_space(space.id)
        self.accounts = {
            email: entry
            for email, entry in self.accounts.items()
            if entry[1].user_id != user_id
        }

    def sign_out(self) -> None:
        self.signed_out += 1


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generation client returning fixed parts or raising an error."""

    parts: list[ResponsePart] = field(
        default_factory=lambda: [
            ResponsePart(text=STEPS_TEXT),
            ResponsePart(data=b"after-image", mime_type="image/png"),
        ]
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: ImagePayload | None,
    ) -> list[ResponsePart]:
        self.calls.append({"model": model, "prompt": prompt, "image": image})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.parts


@dataclass
class FakeCaptureAdapter(CaptureAdapter):
    """Fake camera that returns a fixed still."""

    granted: bool = True
    image: str | None = field(default_factory=sample_data_url)
    acquired: list[str] = field(default_factory=list)
    released: list[str] = field(default_factory=list)

    async def request_capability(self) -> CameraStream:
        if not self.granted:
            raise CameraPermissionDeniedError()
        stream = CameraStream(id=f"stream-{len(self.acquired) + 1}")
        self.acquired.append(stream.id)
        return stream

    async def capture_still(self, stream: CameraStream) -> str | None:
        return self.image

    def release(self, stream: CameraStream) -> None:
        self.released.append(stream.id)


@dataclass
class MachineParts:
    """State machine plus the fakes behind it."""

    machine: AppStateMachine
    accounts: InMemoryAccountRepository
    spaces: InMemorySpaceRepository
    cache: InMemoryStore
    generation: FakeGenerationClient
    capture: FakeCaptureAdapter


def build_machine(
    *,
    generation_client: FakeGenerationClient | None = None,
    configured: bool = True,
    capture: FakeCaptureAdapter | None = None,
    max_spaces: int | None = 8,
) -> MachineParts:
    """Wire a state machine from in-memory fakes with no splash delay."""
    spaces = InMemorySpaceRepository()
    accounts = InMemoryAccountRepository(spaces=spaces)
    cache = InMemoryStore()
    client = generation_client or FakeGenerationClient()
    camera = capture or FakeCaptureAdapter()
    machine = AppStateMachine(
        accounts=AccountService(repository=accounts, cache=cache),
        library=LibraryService(spaces, max_spaces=max_spaces),
        generation=GenerationService(
            client=client if configured else None, model="test-model"
        ),
        capture=camera,
        splash_delay_seconds=0,
    )
    return MachineParts(
        machine=machine,
        accounts=accounts,
        spaces=spaces,
        cache=cache,
        generation=client,
        capture=camera,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key=None,
        supabase_url=None,
        supabase_anon_key=None,
        local_store_path=str(tmp_path / "store.json"),
        splash_delay_seconds=0,
    )


@pytest.fixture
def parts() -> MachineParts:
    return build_machine()


@pytest.fixture
def container(settings: Settings) -> AppContainer:
    built = build_machine()
    capture = UploadedFrameCapture()
    built.machine.capture = capture

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        state_machine=built.machine,
        capture=capture,
        accounts=built.machine.accounts,
        library=built.machine.library,
        generation=built.machine.generation,
        close_resources=close_resources,
    )
