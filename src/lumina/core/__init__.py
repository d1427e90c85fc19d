"""Core functionality for Lumina image generation.

This module provides the core components of Lumina Image Studio:

- **GenerationSettings / GeneratedImage**: Settings and result models
- **generate_ai_images**: Request builder and sequential batch loop
- **GeminiImageClient**: google-genai backed service client
- **SessionState**: Immutable session state with reducer-style updates
- **LuminaConfig / config**: Configuration via Pydantic Settings

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with LUMINA_ in .env files

2. **Request Builder** (prompt_builder.py, data_uri.py, generation.py):
   - Full prompt composition and aspect-ratio fallback
   - Reference image decoding with silent skipping of malformed data URIs
   - Sequential, fail-fast batch loop

3. **Service Client** (gemini.py):
   - One ``generate_content`` call per batch element

4. **Session Layer** (session.py, references.py):
   - Reducer functions over an immutable SessionState
   - Concurrent reference file intake

Usage Example
-------------
    from lumina.core import GeminiImageClient, GenerationSettings, config, generate_ai_images

    settings = GenerationSettings(prompt="a red fox", style="Anime", batch_count=2)
    urls = generate_ai_images(settings, GeminiImageClient(config))
"""

from lumina.core.config import LuminaConfig, config
from lumina.core.errors import GenerationError, ValidationError
from lumina.core.gemini import GeminiImageClient
from lumina.core.generation import generate_ai_images
from lumina.core.models import AspectRatio, GeneratedImage, GenerationSettings, Quality
from lumina.core.session import SessionState

__all__ = [
    "AspectRatio",
    "GeminiImageClient",
    "GeneratedImage",
    "GenerationError",
    "GenerationSettings",
    "LuminaConfig",
    "Quality",
    "SessionState",
    "ValidationError",
    "config",
    "generate_ai_images",
]
