"""Image encoding helpers shared by capture and generation."""

import base64
import binascii
import io

from PIL import Image, ImageOps

from ordo.domain.generation import ImagePayload


def to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL."""
    resolved = mime_type or detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def parse_data_url(data_url: str) -> ImagePayload:
    """Decode a base64 data URL into bytes and its MIME type."""
    header, separator, encoded = data_url.partition(",")
    if not separator or not header.startswith("data:") or ";base64" not in header:
        raise ValueError("Expected a base64 data URL")
    mime_type = header[len("data:") :].split(";", 1)[0] or "image/jpeg"
    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error as exc:
        raise ValueError("Invalid base64 image data") from exc
    if not data:
        raise ValueError("Empty image data")
    return ImagePayload(data=data, mime_type=mime_type)


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def downscale_jpeg(image_bytes: bytes, max_edge: int, quality: int) -> bytes:
    """Bound the longest edge and re-encode as JPEG at a fixed quality.

    Images already within bounds are still re-encoded so the payload size is
    governed by ``quality`` regardless of the source format.

    Oversized images raise ``ValueError``; unreadable ones raise ``OSError``.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as source:
            image = ImageOps.exif_transpose(source).convert("RGB")
    except Image.DecompressionBombError as exc:
        raise ValueError("Image is too large to decode") from exc
    image.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()
