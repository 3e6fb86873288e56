"""Instruction and payload construction for a mockup request.

Two request shapes are sent to the generation service:

Composite (a background template was supplied)::

    [template image] [product image] "Composite the product into the background. <cleaning>"

Scene (no template)::

    [product image] "High-end footwear photography. <scene>. <cleaning>"

The cleaning instructions are fixed: product photos are usually taken with
the shoe box still in frame, and the box must never appear in the mockup.
"""

from __future__ import annotations

from dataclasses import dataclass

from mockstudio.core.backend import ImagePart

# ---------------------------------------------------------------------------
# Fixed instruction sections.
# ---------------------------------------------------------------------------

_CLEANING_INSTRUCTIONS = (
    "CRITICAL: REMOVE ALL BOXES AND PACKAGING.\n"
    "1. Extract ONLY the shoes.\n"
    "2. Place the shoes DIRECTLY on the surface.\n"
    "3. Use realistic lighting and shadows."
)

_COMPOSITE_INSTRUCTION = (
    "Composite the shoes from the second image into the background of the first image."
)

_SCENE_INSTRUCTION = (
    "High-end footwear photography. Shoes on a wooden table. "
    'Background: vertical garden with white roses and a "BELLA" sign.'
)


@dataclass(frozen=True)
class GenerationPayload:
    """Input images (in send order) and the text instruction."""

    images: list[ImagePart]
    instruction: str

    @property
    def is_composite(self) -> bool:
        return len(self.images) > 1


def build_instruction(has_template: bool) -> str:
    """Return the text instruction for a composite or a scene request."""
    lead = _COMPOSITE_INSTRUCTION if has_template else _SCENE_INSTRUCTION
    return f"{lead}\n\n{_CLEANING_INSTRUCTIONS}"


def build_payload(subject: ImagePart, template: ImagePart | None = None) -> GenerationPayload:
    """Assemble the request payload.

    Args:
        subject: The product photo, in its original encoding.
        template: The cover-fitted background, if one was supplied.

    Returns:
        Payload with ``[template, subject]`` for a composite request or
        ``[subject]`` for a scene request.
    """
    if template is not None:
        return GenerationPayload(images=[template, subject], instruction=build_instruction(True))
    return GenerationPayload(images=[subject], instruction=build_instruction(False))
