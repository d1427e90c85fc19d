"""Session state for the settings collector.

:class:`SessionState` holds everything one user session works with: the
current settings, the gallery of generated images (newest first), the
loading flag and the last error message.  It is immutable.  Every function
in this module takes a state and returns a new one, so callers replace their
reference instead of mutating shared state::

    state = SessionState()
    state = update_settings(state, prompt="a red fox", style="Anime")
    state = run_generation(state, client)

Lifecycle of one Generate action
--------------------------------
1. :func:`begin_generation` rejects an empty prompt
   (:class:`ValidationError`) or a second concurrent submission
   (:class:`GenerationInProgressError`), then sets ``loading``.
2. The request builder runs.
3. :func:`complete_generation` prepends the new images, or
   :func:`fail_generation` records the error.  Either way ``loading`` is
   cleared.

:func:`run_generation` performs all three steps.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field, replace

from lumina.core.errors import GenerationError, GenerationInProgressError, ValidationError
from lumina.core.generation import ImageGenerationClient, generate_ai_images
from lumina.core.models import MAX_REFERENCE_IMAGES, GeneratedImage, GenerationSettings

logger = logging.getLogger(__name__)

EMPTY_PROMPT_MESSAGE = "Please describe your vision."
FALLBACK_ERROR_MESSAGE = "Engine failure."


@dataclass(frozen=True)
class SessionState:
    """Immutable state of one user session.

    Attributes
    ----------
    settings : GenerationSettings
        Settings the next Generate action will use
    results : tuple[GeneratedImage, ...]
        Generated images, newest batch first
    loading : bool
        True while a Generate action is running
    error : str | None
        Last user-facing error message, cleared on the next submission
    """

    settings: GenerationSettings = field(default_factory=GenerationSettings)
    results: tuple[GeneratedImage, ...] = ()
    loading: bool = False
    error: str | None = None

    def find_image(self, image_id: str) -> GeneratedImage | None:
        return next((img for img in self.results if img.id == image_id), None)

    def __repr__(self) -> str:
        return (
            f"SessionState(results={len(self.results)}, "
            f"references={len(self.settings.reference_images)}, "
            f"loading={self.loading})"
        )


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_image_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Settings updates.
# ---------------------------------------------------------------------------


def update_settings(state: SessionState, **changes) -> SessionState:
    """Return a state with some settings replaced.

    The merged settings are re-validated, so bound violations (batch count,
    reference count, unknown style) raise pydantic's ``ValidationError``.
    """
    merged = state.settings.model_dump() | changes
    return replace(state, settings=GenerationSettings.model_validate(merged))


def add_reference_images(state: SessionState, data_uris: list[str]) -> SessionState:
    """Append reference images, keeping at most five."""
    combined = [*state.settings.reference_images, *data_uris][:MAX_REFERENCE_IMAGES]
    return update_settings(state, reference_images=combined)


def remove_reference_image(state: SessionState, index: int) -> SessionState:
    """Remove the reference image at ``index``.

    Raises:
        IndexError: If there is no reference image at ``index``.
    """
    references = list(state.settings.reference_images)
    if index < 0 or index >= len(references):
        raise IndexError(f"No reference image at index {index}")
    del references[index]
    return update_settings(state, reference_images=references)


def set_error(state: SessionState, message: str | None) -> SessionState:
    return replace(state, error=message)


# ---------------------------------------------------------------------------
# Generation lifecycle.
# ---------------------------------------------------------------------------


def begin_generation(state: SessionState) -> SessionState:
    """Validate the settings and mark a Generate action as running.

    Raises:
        ValidationError: If the prompt is empty or whitespace only.
        GenerationInProgressError: If a Generate action is already running.
    """
    if state.loading:
        raise GenerationInProgressError("A generation is already in progress.")
    if not state.settings.prompt.strip():
        raise ValidationError(EMPTY_PROMPT_MESSAGE)
    return replace(state, loading=True, error=None)


def complete_generation(
    state: SessionState,
    urls: list[str],
    settings: GenerationSettings,
    now_ms: int | None = None,
) -> SessionState:
    """Record a successful Generate action.

    Each URL becomes a :class:`GeneratedImage` with timestamp ``base + index``.
    ``base`` is the current time, raised if needed so that it is greater
    than every timestamp already in the gallery.

    Args:
        state: Current state.
        urls: Data URIs returned by the request builder, in call order.
        settings: Settings the action was submitted with.
        now_ms: Current time in milliseconds (defaults to the wall clock).

    Returns:
        State with the new images prepended and ``loading`` cleared.
    """
    base = _now_ms() if now_ms is None else now_ms
    if state.results:
        base = max(base, max(img.timestamp for img in state.results) + 1)

    new_images = tuple(
        GeneratedImage(
            id=_new_image_id(),
            url=url,
            prompt=settings.prompt,
            timestamp=base + idx,
            aspect_ratio=settings.aspect_ratio,
        )
        for idx, url in enumerate(urls)
    )
    return replace(state, results=new_images + state.results, loading=False)


def fail_generation(state: SessionState, message: str | None) -> SessionState:
    """Record a failed Generate action; the gallery is unchanged."""
    return replace(state, loading=False, error=message or FALLBACK_ERROR_MESSAGE)


def run_generation(state: SessionState, client: ImageGenerationClient) -> SessionState:
    """Run one Generate action from submission to the final state.

    Validation failures propagate (the state is left untouched).  Service
    failures are recorded on the returned state rather than raised.  Any
    other exception propagates; the caller keeps ``state``, which was never
    marked as loading.

    Raises:
        ValidationError: If the prompt is empty.
        GenerationInProgressError: If ``state.loading`` is already set.
    """
    running = begin_generation(state)
    settings = running.settings
    try:
        urls = generate_ai_images(settings, client)
        return complete_generation(running, urls, settings)
    except GenerationError as e:
        return fail_generation(running, str(e))


# ---------------------------------------------------------------------------
# Gallery actions.
# ---------------------------------------------------------------------------


def delete_image(state: SessionState, image_id: str) -> SessionState:
    """Remove one image from the gallery.

    Raises:
        KeyError: If no image has ``image_id``.
    """
    if state.find_image(image_id) is None:
        raise KeyError(image_id)
    return replace(state, results=tuple(img for img in state.results if img.id != image_id))


def remix(state: SessionState, image_id: str) -> SessionState:
    """Copy a generated image's prompt into the settings.

    Raises:
        KeyError: If no image has ``image_id``.
    """
    image = state.find_image(image_id)
    if image is None:
        raise KeyError(image_id)
    return update_settings(state, prompt=image.prompt)
