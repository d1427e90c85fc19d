"""Lumina Image Studio - prompt-driven image generation over the Gemini API."""

__version__ = "0.1.0"

from lumina.core.config import LuminaConfig, config
from lumina.core.generation import GenerationError, generate_ai_images

__all__ = [
    "GenerationError",
    "LuminaConfig",
    "config",
    "generate_ai_images",
]
