"""Gemini image-generation client.

:class:`GeminiImageClient` implements
:class:`~lumina.core.generation.ImageGenerationClient` on top of the
``google-genai`` SDK.  One call to :meth:`GeminiImageClient.generate_images`
is one ``models.generate_content`` request.

The SDK client is created on the first call, not in ``__init__``.  A missing
or invalid API key therefore fails the generation request itself and is
reported like any other service error.

Usage
-----
::

    from lumina.core.config import config
    from lumina.core.gemini import GeminiImageClient

    client = GeminiImageClient(config)
    images = client.generate_images([TextPart("a red fox. ...")], "9:16")
"""

from __future__ import annotations

import base64
import logging

from google import genai
from google.genai import types

from lumina.core.config import LuminaConfig
from lumina.core.generation import ContentPart, InlineImage, InlineImagePart, TextPart

logger = logging.getLogger(__name__)


class GeminiImageClient:
    """Sends generation requests to the Gemini API.

    Attributes:
        _config (LuminaConfig):
            Supplies the API key and model ID.
        _client (genai.Client | None):
            SDK client, created lazily by :meth:`_get_client`.
    """

    def __init__(self, config: LuminaConfig) -> None:
        self._config = config
        self._client: genai.Client | None = None

    @property
    def model_id(self) -> str:
        return self._config.model_id

    def _get_client(self) -> genai.Client:
        if self._client is None:
            logger.info(f"Creating Gemini client for model {self._config.model_id}")
            self._client = genai.Client(api_key=self._config.api_key)
        return self._client

    @staticmethod
    def _to_sdk_part(part: ContentPart) -> types.Part:
        if isinstance(part, InlineImagePart):
            return types.Part.from_bytes(
                data=base64.b64decode(part.data),
                mime_type=part.mime_type,
            )
        if isinstance(part, TextPart):
            return types.Part.from_text(text=part.text)
        raise TypeError(f"Unsupported content part: {type(part).__name__}")

    def generate_images(self, parts: list[ContentPart], aspect_ratio: str) -> list[InlineImage]:
        """Run one ``generate_content`` request.

        Args:
            parts: Inline images followed by the prompt text.
            aspect_ratio: Target aspect ratio, already resolved.

        Returns:
            Inline images of the first candidate, in response order.  An
            empty list when the response carries no candidate or no image.
        """
        response = self._get_client().models.generate_content(
            model=self._config.model_id,
            contents=types.Content(role="user", parts=[self._to_sdk_part(p) for p in parts]),
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
            ),
        )
        return extract_inline_images(response)


def extract_inline_images(response) -> list[InlineImage]:
    """Pull the inline images out of a ``generate_content`` response.

    Only the first candidate is read.  Image bytes are base64 encoded so they
    can be placed in a data URI.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    content = candidates[0].content
    if content is None or not content.parts:
        return []

    images: list[InlineImage] = []
    for part in content.parts:
        blob = part.inline_data
        if blob is None or blob.data is None:
            continue
        images.append(
            InlineImage(
                mime_type=blob.mime_type or "image/png",
                data=base64.b64encode(blob.data).decode("ascii"),
            )
        )
    return images
