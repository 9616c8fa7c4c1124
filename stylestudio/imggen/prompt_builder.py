"""Prompt construction helpers for the image generation step."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from stylestudio.storage.models import CLASSIFIABLE_CATEGORIES, EncodedImage


class GenerationMode(str, Enum):
    """Prompt profile used for a styling request."""

    AVATAR = "avatar"
    FLAT_LAY = "flat_lay"


class LayerHint(str, Enum):
    """Role of an input image in the composed request."""

    BASE = "base/inner"
    OUTER = "outer"
    IDENTITY = "identity reference"


@dataclass(slots=True, frozen=True)
class LayerInput:
    """One image passed to the styling service with its layering role."""

    image: EncodedImage
    hint: LayerHint

    @property
    def payload(self) -> str:
        return self.image.payload

    @property
    def media_type(self) -> str:
        return self.image.media_type


AVATAR_STYLE_INSTRUCTIONS = (
    "Style: 3D game character / Bitmoji style. "
    "Body: female mannequin, consistent proportions, standing front-facing. "
    "Vibe: clean, minimal, studio lighting. "
    "NO: realism, messy backgrounds, distorted limbs."
)

FLAT_LAY_STYLE_INSTRUCTIONS = (
    "Style: high-end fashion magazine lay-flat (2D collage). "
    "Vibe: realistic textures, clean arrangement, white/neutral background. "
    "Action: arrange the provided clothing items into a cohesive outfit layout. "
    "NO: avatars, cartoons, body parts."
)

STATUS_MESSAGES = {
    GenerationMode.AVATAR: "Designing your 3D outfit...",
    GenerationMode.FLAT_LAY: "Arranging your 2D outfit grid...",
}

ASPECT_RATIOS = {
    GenerationMode.AVATAR: "1:1",
    GenerationMode.FLAT_LAY: "3:4",
}

CLASSIFICATION_PROMPT = (
    "Analyze this fashion item. Return a JSON object with 'category' (one of: "
    + ", ".join(category.value for category in CLASSIFIABLE_CATEGORIES)
    + ") and a short 10-word 'description' of color/pattern."
)

ISOLATION_PROMPT = (
    "Isolate the garment in this photo. Remove the background, people and "
    "props, keep the garment unchanged and place it on a plain white background."
)

AVATAR_FACE_PROMPT = (
    "Generate a cute 3D stylized avatar headshot based on this person's features. "
    "Front facing, neutral expression, soft studio lighting, game-character style. "
    "White background."
)


def image_part(image: EncodedImage) -> dict[str, Any]:
    """Chat-completions content part carrying an inline image."""

    return {"type": "image_url", "image_url": {"url": image.to_data_uri()}}


def text_part(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


class PromptBuilder:
    """Builds the multimodal message content for a styling request."""

    def build(self, layers: Sequence[LayerInput], mode: GenerationMode) -> list[dict[str, Any]]:
        """Return content parts: every garment image with its layering note, then the task."""

        parts: list[dict[str, Any]] = []
        garment_index = 0
        has_identity = False
        for layer in layers:
            parts.append(image_part(layer.image))
            if layer.hint is LayerHint.IDENTITY:
                has_identity = True
                parts.append(
                    text_part(
                        "Identity reference: use this face for the character and "
                        "preserve the facial identity exactly.",
                    ),
                )
                continue
            garment_index += 1
            order = "Inner/Base" if layer.hint is LayerHint.BASE else "Outer"
            parts.append(text_part(f"Clothing Item {garment_index} (Layering order: {order})."))

        parts.append(text_part(self._task(mode, has_identity)))
        return parts

    @staticmethod
    def _task(mode: GenerationMode, has_identity: bool) -> str:
        if mode is GenerationMode.AVATAR:
            lines = [
                AVATAR_STYLE_INSTRUCTIONS,
                "Task: create a full-body 3D avatar wearing an outfit made of the provided clothing items.",
                "Layering: apply items in the order provided (Item 1 under Item 2).",
                "If multiple items are provided (e.g. top and bottom), wear them together.",
            ]
            if has_identity:
                lines.append("Strictly maintain the facial appearance of the identity reference.")
            return " ".join(lines)
        return " ".join(
            [
                FLAT_LAY_STYLE_INSTRUCTIONS,
                "Task: create a professional 'Outfit Grid' or lay-flat photography composition.",
                "Items: include all the provided clothing items, respecting the layering order.",
                "Remove the backgrounds of individual items and place them on a clean white/grey studio surface.",
                "Do NOT generate a human or avatar. Just the clothes.",
            ],
        )
