"""Models for generation requests and results."""

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class OrganizingStyle(StrEnum):
    """Decluttering policy applied to a generated space."""

    CALM_MINIMAL = "Calm Minimal"
    AESTHETIC = "Aesthetic"
    PRACTICAL = "Practical"
    COMPACT = "Compact"


class OrganizingStep(BaseModel):
    """Single step of an organizing plan."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str


class StepPlan(BaseModel):
    """Structured step payload embedded in the model's text output."""

    steps: list[OrganizingStep]


STEP_COUNT = 5

DEFAULT_STEPS: tuple[OrganizingStep, ...] = (
    OrganizingStep(
        title="Define Functional Zones",
        description="Identify primary purposes for each surface area.",
    ),
    OrganizingStep(
        title="Align and Rectify",
        description="Straighten objects to parallel the furniture lines.",
    ),
    OrganizingStep(
        title="Fold and Stack",
        description="Gather loose fabrics into uniform compact shapes.",
    ),
    OrganizingStep(
        title="Manage Visual Noise",
        description="Conceal cables behind larger structural pieces.",
    ),
    OrganizingStep(
        title="Final Polish",
        description="Wipe surfaces to emphasize new clean lines.",
    ),
)


@dataclass(frozen=True)
class ImagePayload:
    """Encoded image bytes ready to send to the model."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class ResponsePart:
    """One part of a model response: text, inline image, or neither."""

    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a single generation call."""

    image: str | None
    steps: list[OrganizingStep] = field(default_factory=list)
