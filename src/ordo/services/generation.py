"""Generation service wrapping the external image model."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from ordo.domain.errors import (
    ConfigurationError,
    GenerationError,
    GenerationFailedError,
    InvalidApiKeyError,
    QuotaExceededError,
)
from ordo.domain.generation import (
    STEP_COUNT,
    GenerationResult,
    ImagePayload,
    OrganizingStep,
    OrganizingStyle,
    ResponsePart,
    StepPlan,
)
from ordo.services.images import downscale_jpeg, parse_data_url, to_data_url
from ordo.services.prompts import build_imagine_prompt, build_transform_prompt

_logger = logging.getLogger(__name__)

_AUTH_MARKERS = (
    "API_KEY_INVALID",
    "API key not valid",
    "API key expired",
    "UNAUTHENTICATED",
    "PERMISSION_DENIED",
)
_AUTH_STATUS_CODES = {401, 403}
_QUOTA_STATUS_CODE = 429
_QUOTA_STATUS_PATTERN = re.compile(r"\b429\b")
_RETRY_PHRASE = re.compile(r"retry in\s+(\d+(?:\.\d+)?)\s*s", re.IGNORECASE)
_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*s?\s*$")


class GenerationClient(Protocol):
    """Interface for the external image model."""

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: ImagePayload | None,
    ) -> list[ResponsePart]:
        """Call the model once and return every part of its response."""


@dataclass
class GenerationService:
    """Service that prepares generation requests and parses the results."""

    client: GenerationClient | None
    model: str
    image_max_edge: int = 1024
    image_quality: int = 80

    @property
    def is_configured(self) -> bool:
        """Return True when a usable client is wired in."""
        return self.client is not None

    async def transform(
        self, before_image: str, style: OrganizingStyle
    ) -> GenerationResult:
        """Reorganize a photographed space in the given style."""
        client = self._require_client()
        payload = self._prepare_image(before_image)
        parts = await self._call(
            client, prompt=build_transform_prompt(style), image=payload
        )
        image, text = collect_parts(parts)
        steps = extract_steps(text)
        _logger.info(
            "Transform finished: style=%s image=%s steps=%s",
            style.value,
            image is not None,
            len(steps),
        )
        return GenerationResult(image=image, steps=steps)

    async def imagine(self, prompt: str) -> GenerationResult:
        """Generate a dream space from a text description alone."""
        if not prompt.strip():
            raise ValueError("prompt must not be empty")
        client = self._require_client()
        parts = await self._call(
            client, prompt=build_imagine_prompt(prompt), image=None
        )
        image, _ = collect_parts(parts)
        _logger.info("Imagine finished: image=%s", image is not None)
        return GenerationResult(image=image)

    def _require_client(self) -> GenerationClient:
        if self.client is None:
            raise ConfigurationError()
        return self.client

    def _prepare_image(self, data_url: str) -> ImagePayload:
        try:
            source = parse_data_url(data_url)
            data = downscale_jpeg(source.data, self.image_max_edge, self.image_quality)
        except (ValueError, OSError) as exc:
            raise GenerationFailedError(
                "The captured photo could not be read. Please scan again."
            ) from exc
        return ImagePayload(data=data, mime_type="image/jpeg")

    async def _call(
        self,
        client: GenerationClient,
        *,
        prompt: str,
        image: ImagePayload | None,
    ) -> list[ResponsePart]:
        try:
            return await client.generate(model=self.model, prompt=prompt, image=image)
        except Exception as exc:
            error = classify_generation_error(exc)
            _logger.warning(
                "Generation failed: %s from %s",
                type(error).__name__,
                type(exc).__name__,
            )
            raise error from exc


def collect_parts(parts: Iterable[ResponsePart]) -> tuple[str | None, str | None]:
    """Return the first image (as a data URL) and all text from response parts.

    Parts may arrive in any order and either kind may be missing.
    """
    image: str | None = None
    texts: list[str] = []
    for part in parts:
        if part.data and image is None:
            image = to_data_url(part.data, part.mime_type)
        elif part.text:
            texts.append(part.text)
    return image, ("".join(texts) or None)


def extract_steps(text: str | None) -> list[OrganizingStep]:
    """Extract exactly five steps from text embedding a ``{"steps": [...]}`` object.

    The object is taken from the first ``{`` to the last ``}``. Anything that
    fails to parse, validate, or has the wrong number of steps yields ``[]``.
    """
    if not text:
        return []
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return []
    try:
        plan = StepPlan.model_validate_json(text[start : end + 1])
    except ValidationError:
        _logger.warning("Discarding unparsable steps payload")
        return []
    if len(plan.steps) != STEP_COUNT:
        _logger.warning("Discarding steps payload with %s steps", len(plan.steps))
        return []
    return list(plan.steps)


def classify_generation_error(exc: BaseException) -> GenerationError:
    """Map a provider exception onto the typed generation errors."""
    if isinstance(exc, GenerationError):
        return exc
    message = str(exc)
    lowered = message.lower()
    code = getattr(exc, "code", None)
    status = str(getattr(exc, "status", None) or "")
    if (
        code == _QUOTA_STATUS_CODE
        or status == "RESOURCE_EXHAUSTED"
        or "RESOURCE_EXHAUSTED" in message
        or _QUOTA_STATUS_PATTERN.search(message)
        or "quota" in lowered
        or "rate limit" in lowered
    ):
        return QuotaExceededError(retry_after_seconds=_retry_after_seconds(exc))
    if (
        code in _AUTH_STATUS_CODES
        or status in {"UNAUTHENTICATED", "PERMISSION_DENIED"}
        or any(marker in message for marker in _AUTH_MARKERS)
    ):
        return InvalidApiKeyError()
    return GenerationFailedError()


def _retry_after_seconds(exc: BaseException) -> float | None:
    """Find a retry hint in the provider error, if it carries one."""
    delay = _find_retry_delay(getattr(exc, "details", None))
    if delay is not None:
        return delay
    match = _RETRY_PHRASE.search(str(exc))
    if match:
        return float(match.group(1))
    return None


def _find_retry_delay(payload: object) -> float | None:
    if isinstance(payload, dict):
        for key, value in payload.items():
            if key in {"retryDelay", "retry_delay"}:
                parsed = _parse_duration(value)
                if parsed is not None:
                    return parsed
            nested = _find_retry_delay(value)
            if nested is not None:
                return nested
    elif isinstance(payload, list):
        for item in payload:
            nested = _find_retry_delay(item)
            if nested is not None:
                return nested
    return None


def _parse_duration(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _DURATION.match(value)
        if match:
            return float(match.group(1))
    return None
