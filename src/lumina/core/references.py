"""Reference image intake.

Turns user-selected image files into data URIs for
:attr:`GenerationSettings.reference_images`.  The files are read
concurrently, but the returned list follows selection order.  Intake is
all-or-nothing: if any file cannot be read or is not an image, nothing is
returned and :class:`ReferenceReadError` is raised.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from collections.abc import Sequence
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from lumina.core.data_uri import encode_data_uri
from lumina.core.errors import ReferenceReadError
from lumina.core.models import MAX_REFERENCE_IMAGES

logger = logging.getLogger(__name__)

READ_FAILURE_MESSAGE = "Failed to process selected images."


class ReferenceFile(Protocol):
    """An uploaded file (FastAPI's ``UploadFile`` satisfies this)."""

    filename: str | None
    content_type: str | None

    async def read(self) -> bytes: ...


def detect_mime_type(raw: bytes, declared: str | None = None) -> str:
    """Identify image bytes with Pillow and return their MIME type.

    Args:
        raw: File contents.
        declared: Content type reported by the uploader, used when Pillow
            knows the format but has no MIME type registered for it.

    Returns:
        MIME type such as ``"image/png"``.

    Raises:
        ValueError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(raw)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValueError(f"Not a readable image: {e}") from e

    mime = Image.MIME.get(fmt or "")
    if mime:
        return mime
    if declared and declared.startswith("image/"):
        return declared
    raise ValueError(f"Unsupported image format: {fmt}")


def _encode_file(raw: bytes, declared: str | None) -> str:
    mime = detect_mime_type(raw, declared)
    return encode_data_uri(mime, base64.b64encode(raw).decode("ascii"))


async def _read_one(file: ReferenceFile) -> str:
    raw = await file.read()
    # Decoding runs in a worker thread, off the event loop.
    return await asyncio.to_thread(_encode_file, raw, file.content_type)


async def read_reference_files(files: Sequence[ReferenceFile]) -> list[str]:
    """Read up to five files concurrently and encode them as data URIs.

    When one file fails, the reads still in flight are cancelled and
    awaited before the error is raised.

    Args:
        files: Selected files in selection order.  Only the first
            :data:`MAX_REFERENCE_IMAGES` are read.

    Returns:
        Data URIs in selection order.

    Raises:
        ReferenceReadError: If any single file fails.
    """
    selected = list(files)[:MAX_REFERENCE_IMAGES]
    if not selected:
        return []

    tasks = [asyncio.ensure_future(_read_one(f)) for f in selected]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception as e:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.error(f"Error reading reference files: {e}")
        raise ReferenceReadError(READ_FAILURE_MESSAGE) from e
