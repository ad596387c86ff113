"""Camera capture boundary."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CameraStream:
    """Handle for an acquired camera stream."""

    id: str


class CaptureAdapter(Protocol):
    """Interface for acquiring the camera and grabbing still frames."""

    async def request_capability(self) -> CameraStream:
        """Acquire the camera or raise CameraPermissionDeniedError."""

    async def capture_still(self, stream: CameraStream) -> str | None:
        """Return a downscaled JPEG data URL, or None when no frame is ready."""

    def release(self, stream: CameraStream) -> None:
        """Release the camera stream."""
