"""Pydantic request models for the Lumina API.

Models
------
SettingsUpdate
    Payload for ``PUT /api/settings``.  Every field is optional; only the
    fields present in the request are changed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from lumina.core.models import MAX_BATCH_COUNT, MAX_REFERENCE_IMAGES, Quality


class SettingsUpdate(BaseModel):
    """Request body for the ``PUT /api/settings`` endpoint.

    Attributes:
        prompt: New prompt text.
        style: Style preset name from ``GET /api/config``.
        aspect_ratio: Aspect ratio string.  Unsupported values are stored
            and fall back to ``1:1`` at generation time.
        quality: Requested quality (stored, not sent to the service).
        batch_count: Number of images to request (1-5).
        reference_images: Full replacement list of reference data URIs.
    """

    prompt: str | None = Field(default=None, description="Image description.")
    style: str | None = Field(default=None, description="Style preset name.")
    aspect_ratio: str | None = Field(default=None, description="Aspect ratio, e.g. '16:9'.")
    quality: Quality | None = Field(default=None, description="Requested quality.")
    batch_count: int | None = Field(
        default=None,
        ge=1,
        le=MAX_BATCH_COUNT,
        description="Number of images to request (1-5).",
    )
    reference_images: list[str] | None = Field(
        default=None,
        max_length=MAX_REFERENCE_IMAGES,
        description="Reference images as data URIs (replaces the current list).",
    )

    def changes(self) -> dict:
        """Return only the fields that were sent in the request."""
        return self.model_dump(exclude_unset=True)
