"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from ordo.adapters.gemini_generation_client import GeminiGenerationClient
from ordo.adapters.json_file_store import JsonFileStore
from ordo.adapters.local_account_repository import LocalAccountRepository
from ordo.adapters.local_space_repository import LocalSpaceRepository
from ordo.adapters.supabase_account_repository import SupabaseAccountRepository
from ordo.adapters.supabase_space_repository import SupabaseSpaceRepository
from ordo.adapters.uploaded_frame_capture import UploadedFrameCapture
from ordo.config import Settings, is_api_key_usable
from ordo.services.accounts import AccountRepository, AccountService
from ordo.services.capture import CameraStream
from ordo.services.generation import GenerationClient, GenerationService
from ordo.services.library import LibraryService, SpaceRepository
from ordo.services.state_machine import AppStateMachine

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    state_machine: AppStateMachine
    capture: UploadedFrameCapture
    accounts: AccountService
    library: LibraryService
    generation: GenerationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None,
    generation_client: GenerationClient | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = JsonFileStore.create(resolved_settings.local_store_path)
    account_repository: AccountRepository
    space_repository: SpaceRepository
    max_spaces: int | None
    if resolved_settings.uses_remote_backend:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_anon_key
        )
        account_repository = SupabaseAccountRepository(supabase_client)
        space_repository = SupabaseSpaceRepository(supabase_client)
        max_spaces = None
    else:
        local_spaces = LocalSpaceRepository(store)
        account_repository = LocalAccountRepository(store, local_spaces)
        space_repository = local_spaces
        max_spaces = resolved_settings.max_local_spaces
    accounts = AccountService(repository=account_repository, cache=store)
    library = LibraryService(space_repository, max_spaces=max_spaces)
    if generation_client is None and is_api_key_usable(
        resolved_settings.gemini_api_key
    ):
        generation_client = GeminiGenerationClient.create(
            resolved_settings.gemini_api_key.strip()
        )
    if generation_client is None:
        _logger.warning("GEMINI_API_KEY is missing or invalid; generation disabled")
    generation = GenerationService(
        client=generation_client,
        model=resolved_settings.gemini_model,
        image_max_edge=resolved_settings.upload_max_edge,
        image_quality=resolved_settings.upload_quality,
    )
    capture = UploadedFrameCapture(
        max_edge=resolved_settings.capture_max_edge,
        quality=resolved_settings.capture_quality,
    )
    state_machine = AppStateMachine(
        accounts=accounts,
        library=library,
        generation=generation,
        capture=capture,
        splash_delay_seconds=resolved_settings.splash_delay_seconds,
    )

    async def close_resources() -> None:
        for stream_id in capture.active_streams:
            capture.release(CameraStream(id=stream_id))

    return AppContainer(
        settings=resolved_settings,
        state_machine=state_machine,
        capture=capture,
        accounts=accounts,
        library=library,
        generation=generation,
        close_resources=close_resources,
    )
