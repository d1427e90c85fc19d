"""Generation request builder.

:func:`generate_ai_images` turns one :class:`GenerationSettings` value into a
list of image data URIs by calling the image-generation service once per
batch element.

Request Construction
--------------------
Every batch element sends the same payload:

1. One inline-image part per well-formed reference image, in selection
   order.  Malformed data URIs are skipped.
2. One text part holding the full prompt
   (see :func:`~lumina.core.prompt_builder.build_full_prompt`).

together with the resolved aspect ratio.  ``settings.quality`` is not part of
the request.

Failure Policy
--------------
Batch elements run strictly one after another.  The first failing call
raises :class:`GenerationError` and the remaining elements are not attempted.
Images already returned by earlier elements of the same action are
discarded.  A response without inline images is not an error; it simply adds
nothing to the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from lumina.core.data_uri import DecodedReference, decode_reference, encode_data_uri
from lumina.core.errors import GenerationError
from lumina.core.models import GenerationSettings
from lumina.core.prompt_builder import build_full_prompt, resolve_aspect_ratio

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request and response parts.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InlineImagePart:
    """Inline image sent to the service (base64 payload)."""

    mime_type: str
    data: str


@dataclass(frozen=True)
class TextPart:
    """Text sent to the service."""

    text: str


ContentPart = InlineImagePart | TextPart


@dataclass(frozen=True)
class InlineImage:
    """Inline image returned by the service (base64 payload)."""

    mime_type: str
    data: str


class ImageGenerationClient(Protocol):
    """Anything that can run one generation call."""

    def generate_images(self, parts: list[ContentPart], aspect_ratio: str) -> list[InlineImage]:
        """Send one request and return the inline images of the response."""
        ...


# ---------------------------------------------------------------------------
# Builder.
# ---------------------------------------------------------------------------


def build_content_parts(settings: GenerationSettings) -> list[ContentPart]:
    """Build the ordered content parts for one batch element.

    Args:
        settings: The generation settings.

    Returns:
        Inline-image parts for each accepted reference image followed by a
        single text part with the full prompt.
    """
    parts: list[ContentPart] = []

    for index, data_uri in enumerate(settings.reference_images):
        decoded = decode_reference(data_uri)
        if isinstance(decoded, DecodedReference):
            parts.append(InlineImagePart(mime_type=decoded.mime_type, data=decoded.data))
        else:
            logger.debug(f"Skipping reference image {index}: {decoded.reason}")

    parts.append(TextPart(text=build_full_prompt(settings.prompt, settings.style)))
    return parts


def generate_ai_images(
    settings: GenerationSettings,
    client: ImageGenerationClient,
) -> list[str]:
    """Generate ``settings.batch_count`` image batches and collect the results.

    Args:
        settings: Validated generation settings.
        client: Service client used for every batch element.

    Returns:
        Data URIs of every returned image, earliest batch element first.

    Raises:
        GenerationError: If any batch element fails.  No partial result is
            returned.
    """
    aspect_ratio = resolve_aspect_ratio(settings.aspect_ratio).value
    parts = build_content_parts(settings)

    generated: list[str] = []

    for i in range(settings.batch_count):
        logger.info(
            f"Generating batch element {i + 1}/{settings.batch_count} "
            f"(aspect_ratio={aspect_ratio}, parts={len(parts)})"
        )
        try:
            images = client.generate_images(list(parts), aspect_ratio)
            # A malformed response fails here and is treated as a service error.
            urls = [encode_data_uri(image.mime_type, image.data) for image in images]
        except Exception as e:
            logger.error(f"Batch generation error on element {i + 1}: {e}", exc_info=True)
            raise GenerationError(str(e) or type(e).__name__) from e

        generated.extend(urls)

    logger.info(f"Generated {len(generated)} image(s) in {settings.batch_count} call(s)")
    return generated
