"""Gemini client for image and step generation."""

from dataclasses import dataclass

from google import genai
from google.genai import types

from ordo.domain.generation import ImagePayload, ResponsePart
from ordo.services.generation import GenerationClient

IMAGE_CONFIG = types.GenerateContentConfig(
    response_modalities=["TEXT", "IMAGE"],
)


@dataclass
class GeminiGenerationClient(GenerationClient):
    """Generation client backed by the Gemini API."""

    client: genai.Client

    @classmethod
    def create(cls, api_key: str) -> "GeminiGenerationClient":
        """Create a Gemini generation client."""
        return cls(client=genai.Client(api_key=api_key))

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: ImagePayload | None,
    ) -> list[ResponsePart]:
        """Send one request with an optional image and return all response parts."""
        parts: list[types.Part] = []
        if image is not None:
            parts.append(
                types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
            )
        parts.append(types.Part(text=prompt))
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=[types.Content(role="user", parts=parts)],
            config=IMAGE_CONFIG,
        )
        return _response_parts(response)


def _response_parts(response: types.GenerateContentResponse) -> list[ResponsePart]:
    """Flatten the first candidate's content into response parts."""
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return []
    collected: list[ResponsePart] = []
    for part in candidates[0].content.parts or []:
        if part.thought:
            continue
        inline = part.inline_data
        if inline is not None and inline.data:
            collected.append(ResponsePart(data=inline.data, mime_type=inline.mime_type))
        elif part.text:
            collected.append(ResponsePart(text=part.text))
    return collected
