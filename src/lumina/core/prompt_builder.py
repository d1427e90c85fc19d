"""Prompt and aspect-ratio resolution for generation requests.

The final prompt sent to the image model is composed from the user's prompt,
an optional style directive and a fixed quality suffix::

    [Prompt]. Style: [Style]. [Quality suffix]     (style selected)
    [Prompt]. [Quality suffix]                     (style "None")

The aspect ratio is checked against the five ratios the model supports.
Anything else falls back to ``1:1``; the fallback never raises, and
:class:`AspectRatioResolution` records whether it happened.

Usage
-----
::

    full = build_full_prompt("a red fox", "Anime")
    ratio = resolve_aspect_ratio("21:9").value   # "1:1"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lumina.core.models import DEFAULT_STYLE, AspectRatio

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fixed quality suffix.
# Appended to every prompt to bias the model toward high-fidelity output.
# ---------------------------------------------------------------------------

QUALITY_SUFFIX = (
    "ultra-high definition, masterpiece, cinematic lighting, professional composition, "
    "sharp focus, 8k resolution, professionally rendered"
)

SUPPORTED_ASPECT_RATIOS: tuple[str, ...] = tuple(ratio.value for ratio in AspectRatio)
DEFAULT_ASPECT_RATIO = AspectRatio.SQUARE.value


@dataclass(frozen=True)
class AspectRatioResolution:
    """Outcome of checking a requested aspect ratio.

    Attributes:
        value: Ratio to send to the model.
        requested: Ratio as it was requested.
        coerced: ``True`` when ``requested`` was unsupported and ``value`` is
            the default.
    """

    value: str
    requested: str
    coerced: bool


def build_full_prompt(prompt: str, style: str) -> str:
    """Compose the prompt string sent to the image model.

    Args:
        prompt: The user's description, used as-is.
        style: Style preset name.  ``"None"`` omits the style directive.

    Returns:
        The prompt with the optional style directive and quality suffix.
    """
    if style != DEFAULT_STYLE:
        return f"{prompt}. Style: {style}. {QUALITY_SUFFIX}"
    return f"{prompt}. {QUALITY_SUFFIX}"


def resolve_aspect_ratio(requested: str) -> AspectRatioResolution:
    """Resolve a requested aspect ratio against the supported list.

    Args:
        requested: Ratio string, e.g. ``"16:9"``.

    Returns:
        :class:`AspectRatioResolution`; unsupported ratios resolve to ``1:1``.
    """
    if requested in SUPPORTED_ASPECT_RATIOS:
        return AspectRatioResolution(value=requested, requested=requested, coerced=False)

    logger.warning(f"Unsupported aspect ratio {requested!r}, using {DEFAULT_ASPECT_RATIO}")
    return AspectRatioResolution(value=DEFAULT_ASPECT_RATIO, requested=requested, coerced=True)
