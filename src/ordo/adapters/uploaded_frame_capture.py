"""Capture adapter fed by frames uploaded from the web client."""

import asyncio
import logging
from dataclasses import dataclass, field
from uuid import uuid4

from ordo.domain.errors import CameraPermissionDeniedError
from ordo.services.capture import CameraStream, CaptureAdapter
from ordo.services.images import downscale_jpeg, to_data_url

_logger = logging.getLogger(__name__)


@dataclass
class UploadedFrameCapture(CaptureAdapter):
    """Camera stand-in: the browser reports permission and posts its frames."""

    max_edge: int = 1080
    quality: int = 75
    permission_granted: bool = False
    frames: dict[str, bytes | None] = field(default_factory=dict)

    @property
    def active_streams(self) -> set[str]:
        """Ids of streams that have been acquired and not yet released."""
        return set(self.frames)

    def set_permission(self, granted: bool) -> None:
        """Record the browser's camera permission decision."""
        self.permission_granted = granted

    def submit_frame(self, frame: bytes) -> bool:
        """Store the latest frame on every open stream."""
        if not self.frames:
            return False
        for stream_id in self.frames:
            self.frames[stream_id] = frame
        return True

    async def request_capability(self) -> CameraStream:
        """Open a stream if the browser granted camera access."""
        if not self.permission_granted:
            raise CameraPermissionDeniedError()
        stream = CameraStream(id=uuid4().hex)
        self.frames[stream.id] = None
        return stream

    async def capture_still(self, stream: CameraStream) -> str | None:
        """Downscale the latest frame into a JPEG data URL."""
        frame = self.frames.get(stream.id)
        if frame is None:
            return None
        try:
            data = await asyncio.to_thread(
                downscale_jpeg, frame, self.max_edge, self.quality
            )
        except (OSError, ValueError):
            _logger.warning("Discarding undecodable camera frame", exc_info=True)
            self.frames[stream.id] = None
            return None
        return to_data_url(data, "image/jpeg")

    def release(self, stream: CameraStream) -> None:
        """Close the stream and drop its frame."""
        self.frames.pop(stream.id, None)
