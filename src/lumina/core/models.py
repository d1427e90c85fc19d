"""Data models and constants for Lumina generation settings and results.

Models
------
GenerationSettings
    Everything the user chose for one Generate action: prompt, style,
    aspect ratio, quality, batch count and reference images.
GeneratedImage
    One image returned by the generation service, as kept in the gallery.

Both models are frozen.  State changes go through ``model_copy(update=...)``
in :mod:`lumina.core.session` so that every update produces a new value.
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class AspectRatio(str, Enum):
    """Aspect ratios supported by the image model."""

    SQUARE = "1:1"
    LANDSCAPE_16_9 = "16:9"
    PORTRAIT_9_16 = "9:16"
    LANDSCAPE_4_3 = "4:3"
    PORTRAIT_3_4 = "3:4"


class Quality(str, Enum):
    """Requested output quality.

    Collected with the settings but not sent to the generation service.
    """

    STANDARD = "Standard"
    HD = "HD"
    ULTRA_HD = "Ultra HD"
    K8 = "8K"


STYLES = [
    "None",
    "Realistic",
    "Ultra Realistic",
    "3D Pixar Style",
    "Anime",
    "Cinematic",
    "Cyberpunk",
    "Fantasy Art",
    "Dark Horror",
    "Sci-Fi",
    "Concept Art",
    "Oil Painting",
    "Watercolor",
    "Pencil Sketch",
    "Digital Painting",
    "Low Poly",
    "Isometric",
    "Pixel Art",
    "Neon Glow",
    "Vintage",
    "Retro",
    "Matte Painting",
    "Surreal",
    "Minimalist",
    "Hyper Detailed",
    "Photorealistic",
    "Indian Art Style",
    "Futuristic",
    "Fantasy Realism",
    "Portrait Photography",
]

DEFAULT_STYLE = "None"
BATCH_COUNTS = [1, 2, 3, 4, 5]
MAX_BATCH_COUNT = 5
MAX_REFERENCE_IMAGES = 5


class GenerationSettings(BaseModel):
    """Settings for one Generate action.

    Attributes:
        prompt: Free-text description.  May be empty while the user is still
            editing; emptiness is rejected when generation is submitted.
        style: One of :data:`STYLES`.  ``"None"`` means no style directive.
        aspect_ratio: Requested ratio string.  Deliberately a plain string:
            values outside :class:`AspectRatio` are accepted here and coerced
            to ``1:1`` by the request builder.
        quality: Requested quality (not forwarded to the service).
        batch_count: Number of sequential generation calls (1-5).
        reference_images: Data URIs of up to five conditioning images, in
            selection order.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(default="", description="Free-text image description.")
    style: str = Field(default=DEFAULT_STYLE, description="Style preset name.")
    aspect_ratio: str = Field(
        default=AspectRatio.SQUARE.value,
        description="Aspect ratio such as '1:1' or '16:9'.",
    )
    quality: Quality = Field(default=Quality.STANDARD, description="Requested quality.")
    batch_count: int = Field(
        default=1,
        ge=1,
        le=MAX_BATCH_COUNT,
        description="Number of images to request (1-5).",
    )
    reference_images: list[str] = Field(
        default_factory=list,
        max_length=MAX_REFERENCE_IMAGES,
        description="Reference images as data URIs.",
    )

    @field_validator("style")
    @classmethod
    def _check_style(cls, value: str) -> str:
        if value not in STYLES:
            raise ValueError(f"Unknown style: {value}")
        return value

    @field_validator("aspect_ratio", mode="before")
    @classmethod
    def _unwrap_aspect_ratio(cls, value):
        # Accept the enum as well as its string value.
        if isinstance(value, AspectRatio):
            return value.value
        return value


class GeneratedImage(BaseModel):
    """An image produced by one batch element of a Generate action.

    Attributes:
        id: Opaque unique token.
        url: ``data:<mime>;base64,<payload>`` URL of the image.
        prompt: Copy of the prompt the image was generated from.
        timestamp: Millisecond timestamp, distinct across the gallery.
        aspect_ratio: Aspect ratio string as requested.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    prompt: str
    timestamp: int
    aspect_ratio: str
