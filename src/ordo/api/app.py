"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Body, FastAPI, HTTPException, Request

from ordo.api.request_models import (
    CameraPermissionRequest,
    InspirationRequest,
    RenameSpaceRequest,
    SaveSpaceRequest,
    SignInRequest,
    SignUpRequest,
    StyleRequest,
)
from ordo.app_logging import configure_logging
from ordo.containers import AppContainer
from ordo.domain.screens import Screen

Snapshot = dict[str, object]


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    machine = container.state_machine

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.state_machine.start()
        logger.info("Started on %s", app.state.container.state_machine.screen.value)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/state")
    async def state() -> Snapshot:
        """Return the current state snapshot."""
        return machine.snapshot()

    @app.post("/auth/sign-up")
    async def sign_up(body: SignUpRequest) -> Snapshot:
        await machine.sign_up(body.email, body.name, body.password)
        return machine.snapshot()

    @app.post("/auth/sign-in")
    async def sign_in(body: SignInRequest) -> Snapshot:
        await machine.sign_in(body.email, body.password)
        return machine.snapshot()

    @app.post("/auth/sign-out")
    async def sign_out() -> Snapshot:
        await machine.sign_out()
        return machine.snapshot()

    @app.post("/onboarding/advance")
    async def advance_onboarding() -> Snapshot:
        await machine.advance_onboarding()
        return machine.snapshot()

    @app.post("/scan")
    async def start_scan() -> Snapshot:
        await machine.start_scan()
        return machine.snapshot()

    @app.post("/camera/permission")
    async def camera_permission(body: CameraPermissionRequest) -> Snapshot:
        """Record whether the browser granted camera access."""
        container.capture.set_permission(body.granted)
        return machine.snapshot()

    @app.post("/camera/frame")
    async def camera_frame(request: Request) -> dict[str, bool]:
        """Accept the latest raw camera frame from the browser."""
        frame = await request.body()
        if not frame:
            raise HTTPException(status_code=400, detail="Empty frame")
        if not container.capture.submit_frame(frame):
            raise HTTPException(status_code=409, detail="Camera is not active")
        return {"accepted": True}

    @app.post("/scan/capture")
    async def capture_photo() -> Snapshot:
        await machine.capture_photo()
        return machine.snapshot()

    @app.post("/confirmation/retake")
    async def retake() -> Snapshot:
        await machine.retake()
        return machine.snapshot()

    @app.post("/confirmation/continue")
    async def confirm_capture() -> Snapshot:
        await machine.confirm_capture()
        return machine.snapshot()

    @app.post("/style-selection")
    async def select_style(body: StyleRequest) -> Snapshot:
        """Generate the organized version in the chosen style."""
        await machine.select_style(body.style)
        return machine.snapshot()

    @app.post("/inspiration")
    async def submit_inspiration(body: InspirationRequest) -> Snapshot:
        await machine.submit_inspiration(body.prompt)
        return machine.snapshot()

    @app.post("/result/toggle-view")
    async def toggle_view_mode() -> Snapshot:
        machine.toggle_view_mode()
        return machine.snapshot()

    @app.post("/steps/start")
    async def start_organizing() -> Snapshot:
        await machine.start_organizing()
        return machine.snapshot()

    @app.post("/steps/next")
    async def next_step() -> Snapshot:
        await machine.next_step()
        return machine.snapshot()

    @app.post("/steps/back")
    async def previous_step() -> Snapshot:
        await machine.previous_step()
        return machine.snapshot()

    @app.post("/library/save-request")
    async def request_save() -> Snapshot:
        await machine.request_save()
        return machine.snapshot()

    @app.post("/library")
    async def save_to_library(body: SaveSpaceRequest) -> Snapshot:
        """Save the current result under an optional name."""
        await machine.save_to_library(body.name)
        return machine.snapshot()

    @app.post("/library/{space_id}/open")
    async def open_space(space_id: str) -> Snapshot:
        await machine.open_space(space_id)
        return machine.snapshot()

    @app.post("/library/{space_id}/rename")
    async def rename_space(space_id: str, body: RenameSpaceRequest) -> Snapshot:
        await machine.rename_space(space_id, body.name)
        return machine.snapshot()

    @app.delete("/library/{space_id}")
    async def delete_space(space_id: str) -> Snapshot:
        await machine.delete_space(space_id)
        return machine.snapshot()

    @app.post("/navigate/{screen}")
    async def navigate(screen: Screen) -> Snapshot:
        """Jump to one of the hub screens."""
        try:
            await machine.navigate(screen)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return machine.snapshot()

    @app.patch("/settings")
    async def update_settings(
        changes: Annotated[dict[str, Any], Body()],
    ) -> Snapshot:
        """Apply partial settings changes."""
        await machine.update_settings(changes)
        return machine.snapshot()

    @app.delete("/account")
    async def delete_account() -> Snapshot:
        await machine.delete_account()
        return machine.snapshot()

    return app
