"""Prompt builders for the generation service."""

from ordo.domain.generation import STEP_COUNT, OrganizingStyle

STYLE_DIRECTIVES: dict[OrganizingStyle, str] = {
    OrganizingStyle.CALM_MINIMAL: (
        "Sparse surfaces, hidden storage, neutral tones, extreme decluttering."
    ),
    OrganizingStyle.AESTHETIC: (
        "Curated displays, balanced colors, intentional arrangement of "
        "decorative objects."
    ),
    OrganizingStyle.PRACTICAL: (
        "Efficiency focused, items grouped by utility, labels where appropriate, "
        "visible but tidy storage."
    ),
    OrganizingStyle.COMPACT: (
        "Maximum usage of vertical space, nested items, minimal visual bulk."
    ),
}

_TRANSFORM_TEMPLATE = """\
You are a world-class professional organizer and interior designer.

Input: a BEFORE photo of a real space (desk, room, or shelf).
Style selected: {style}.

Task 1: Generate a high-fidelity AFTER image based on the input style.
- Reorganize the same space, keeping all furniture and major items in place.
- Style implementation for '{style}':
{directives}
- Focus for this request: {directive}
- Deeply declutter: fold, stack, group, or store loose items.
- Hide cables, small objects, and visual noise.
- Maintain negative space and clean surfaces.
- Preserve realism: same perspective, furniture, walls, and natural lighting.

Task 2: Generate exactly {count} actionable organizing steps:
- Each step must reference specific visible items, surfaces, or areas from the image.
- Provide a calm, human, minimal tone.
- Each step must have:
  - title: short phrase (max 4 words)
  - description: 1-2 concise sentences (max 12 words)
- Steps should be sequential.

Output JSON format for steps:
{example}"""

_IMAGINE_TEMPLATE = """\
You are a world-class interior designer.
Create a photorealistic image of a calm, beautifully organized space.
Description: {prompt}
Use natural lighting, clean surfaces, and intentional negative space.
Return only the image."""


def build_transform_prompt(style: OrganizingStyle) -> str:
    """Build the instruction for the image-to-image transform."""
    return _TRANSFORM_TEMPLATE.format(
        style=style.value,
        directives="\n".join(
            f"  - {name.value}: {text}" for name, text in STYLE_DIRECTIVES.items()
        ),
        directive=STYLE_DIRECTIVES[style],
        count=STEP_COUNT,
        example=_steps_example(),
    )


def build_imagine_prompt(prompt: str) -> str:
    """Build the instruction for text-to-image generation."""
    return _IMAGINE_TEMPLATE.format(prompt=prompt.strip())


def _steps_example() -> str:
    lines = [
        f'    {{ "title": "Step {index} title", '
        f'"description": "Step {index} description" }}'
        for index in range(1, STEP_COUNT + 1)
    ]
    return '{\n  "steps": [\n' + ",\n".join(lines) + "\n  ]\n}"
