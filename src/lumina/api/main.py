"""Lumina Image Studio — FastAPI Application.

This module defines the FastAPI ``app`` instance, all REST API routes, and
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Session state** is a single immutable
  :class:`~lumina.core.session.SessionState` stored on ``app.state.session``.
  Route handlers compute the next state with the reducer functions in
  :mod:`lumina.core.session` and store it back.  Nothing is persisted; the
  gallery lives as long as the process.
- **Image generation** is delegated to
  :func:`~lumina.core.generation.generate_ai_images` with the client stored
  on ``app.state.image_client``.  The blocking service calls run in a worker
  thread so the ``loading`` flag can reject re-entrant submissions.
- **Reference uploads** are decoded concurrently by
  :func:`~lumina.core.references.read_reference_files`.

Endpoints
---------
========  ================================  ================================
Method    Path                              Purpose
========  ================================  ================================
GET       ``/api/config``                   Styles, ratios, qualities, limits
GET       ``/api/state``                    Settings, gallery, loading, error
PUT       ``/api/settings``                 Partial settings update
POST      ``/api/references``               Upload reference images
DELETE    ``/api/references/{index}``       Remove one reference image
POST      ``/api/generate``                 Run one Generate action
DELETE    ``/api/gallery/{id}``             Delete a generated image
POST      ``/api/gallery/{id}/remix``       Reuse an image's prompt
GET       ``/api/gallery/{id}/download``    Download an image as PNG
========  ================================  ================================

Usage
-----
CLI (installed entry point)::

    lumina

Direct invocation::

    python -m lumina.api.main
"""

from __future__ import annotations

import base64
import io
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pydantic
from fastapi import FastAPI, File, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from PIL import Image
from starlette.concurrency import run_in_threadpool

from lumina import __version__
from lumina.api.models import SettingsUpdate
from lumina.core.config import config
from lumina.core.data_uri import DecodedReference, decode_reference
from lumina.core.errors import (
    GenerationError,
    GenerationInProgressError,
    ReferenceReadError,
    ValidationError,
)
from lumina.core.gemini import GeminiImageClient
from lumina.core.generation import generate_ai_images
from lumina.core.models import (
    BATCH_COUNTS,
    MAX_REFERENCE_IMAGES,
    STYLES,
    AspectRatio,
    GeneratedImage,
    Quality,
)
from lumina.core.references import read_reference_files
from lumina.core.session import (
    SessionState,
    add_reference_images,
    begin_generation,
    complete_generation,
    delete_image,
    fail_generation,
    remix,
    remove_reference_image,
    set_error,
    update_settings,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle — session and client setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Install a fresh session and the Gemini client on ``app.state``.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.session = SessionState()
    app.state.image_client = GeminiImageClient(config)
    logger.info(f"Session initialised (model={config.model_id}).")

    yield

    logger.info(f"Shutting down with {len(app.state.session.results)} image(s) in gallery.")


app = FastAPI(
    title="Lumina Image Studio",
    description="Prompt-driven image generation over the Gemini API.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so a separately served frontend can call the API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _session() -> SessionState:
    return app.state.session


def _state_payload(state: SessionState) -> dict:
    return {
        "settings": state.settings.model_dump(mode="json"),
        "results": [img.model_dump(mode="json") for img in state.results],
        "loading": state.loading,
        "error": state.error,
    }


def _get_image_or_404(image_id: str) -> GeneratedImage:
    image = _session().find_image(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


def _to_png(data_uri: str) -> bytes:
    """Decode an image data URI and return PNG bytes.

    Non-PNG payloads are converted with Pillow.

    Raises:
        HTTPException: 500 if the stored URL is not a well-formed data URI.
    """
    decoded = decode_reference(data_uri)
    if not isinstance(decoded, DecodedReference):
        raise HTTPException(status_code=500, detail=f"Stored image is malformed: {decoded.reason}")

    raw = base64.b64decode(decoded.data)
    if decoded.mime_type == "image/png":
        return raw

    with Image.open(io.BytesIO(raw)) as img:
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the choices and limits the frontend needs to build its form.

    Returns:
        Dictionary with keys ``version``, ``model_id``, ``styles``,
        ``aspect_ratios``, ``qualities``, ``batch_counts``, and
        ``max_reference_images``.
    """
    return {
        "version": __version__,
        "model_id": config.model_id,
        "styles": STYLES,
        "aspect_ratios": [{"label": r.value, "value": r.value} for r in AspectRatio],
        "qualities": [q.value for q in Quality],
        "batch_counts": BATCH_COUNTS,
        "max_reference_images": MAX_REFERENCE_IMAGES,
    }


@app.get("/api/state")
async def get_state() -> dict:
    """Return the current settings, gallery (newest first), loading flag and error."""
    return _state_payload(_session())


@app.put("/api/settings")
async def put_settings(req: SettingsUpdate) -> dict:
    """Apply a partial settings update.

    Raises:
        HTTPException: 422 if the merged settings are invalid (unknown
            style, explicit ``null`` for a required value).
    """
    try:
        app.state.session = update_settings(_session(), **req.changes())
    except pydantic.ValidationError as e:
        detail = e.errors(include_url=False, include_context=False, include_input=False)
        raise HTTPException(status_code=422, detail=detail) from e
    return _state_payload(_session())


@app.post("/api/references")
async def upload_references(files: list[UploadFile] = File(...)) -> dict:
    """Add uploaded images to the reference list.

    At most five files are read, concurrently.  The combined list is cut
    to five entries.

    Raises:
        HTTPException: 400 if any file cannot be read as an image; no
            reference is added in that case.
    """
    try:
        data_uris = await read_reference_files(files)
    except ReferenceReadError as e:
        app.state.session = set_error(_session(), str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e

    app.state.session = add_reference_images(_session(), data_uris)
    return {
        "added": len(data_uris),
        "reference_count": len(_session().settings.reference_images),
    }


@app.delete("/api/references/{index}")
async def delete_reference(index: int) -> dict:
    """Remove the reference image at ``index``.

    Raises:
        HTTPException: 404 if there is no reference image at ``index``.
    """
    try:
        app.state.session = remove_reference_image(_session(), index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"success": True, "reference_count": len(_session().settings.reference_images)}


@app.post("/api/generate")
async def generate_images() -> dict:
    """Run one Generate action with the current settings.

    This endpoint:

    1. Rejects an empty prompt (400) or a concurrent submission (409).
    2. Sets the loading flag.
    3. Runs the request builder in a worker thread.
    4. Prepends the new images to the gallery, or records the error.

    Returns:
        Dictionary with ``success``, ``count`` and ``images`` (the new
        gallery entries, in call order).

    Raises:
        HTTPException: 400 for an empty prompt, 409 while another action is
            running, 502 when the generation service fails, 500 for any
            other failure.  In every failure case ``loading`` is cleared.
    """
    try:
        running = begin_generation(_session())
    except GenerationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValidationError as e:
        app.state.session = set_error(_session(), str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e

    app.state.session = running
    settings = running.settings

    try:
        urls = await run_in_threadpool(generate_ai_images, settings, app.state.image_client)
        app.state.session = complete_generation(_session(), urls, settings)
    except GenerationError as e:
        app.state.session = fail_generation(_session(), str(e))
        raise HTTPException(status_code=502, detail=_session().error) from e
    except Exception as e:
        # The loading flag must never outlive the action that set it.
        logger.error(f"Unexpected error during generation: {e}", exc_info=True)
        app.state.session = fail_generation(_session(), str(e))
        raise HTTPException(status_code=500, detail=_session().error) from e

    new_images = _session().results[: len(urls)]

    return {
        "success": True,
        "count": len(new_images),
        "images": [img.model_dump(mode="json") for img in new_images],
    }


@app.delete("/api/gallery/{image_id}")
async def delete_gallery_image(image_id: str) -> dict:
    """Delete a generated image from the gallery.

    Raises:
        HTTPException: 404 if the image is not found.
    """
    try:
        app.state.session = delete_image(_session(), image_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail="Image not found") from e
    return {"success": True, "deleted": image_id}


@app.post("/api/gallery/{image_id}/remix")
async def remix_image(image_id: str) -> dict:
    """Copy an image's prompt into the current settings.

    Raises:
        HTTPException: 404 if the image is not found.
    """
    try:
        app.state.session = remix(_session(), image_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail="Image not found") from e
    return {"success": True, "prompt": _session().settings.prompt}


@app.get("/api/gallery/{image_id}/download")
async def download_image(image_id: str) -> Response:
    """Return a generated image as a PNG attachment named ``lumina-{id}.png``.

    Raises:
        HTTPException: 404 if the image is not found.
    """
    image = _get_image_or_404(image_id)
    return Response(
        content=_to_png(image.url),
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="lumina-{image.id}.png"'},
    )


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Configure logging and launch the uvicorn ASGI server.

    Host, port and log level come from :data:`~lumina.core.config.config`
    (``LUMINA_SERVER_HOST``, ``LUMINA_SERVER_PORT``, ``LUMINA_LOG_LEVEL``).

    This function is registered as the ``lumina`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "lumina.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
