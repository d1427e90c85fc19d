"""Shared pytest fixtures for Lumina tests."""

from __future__ import annotations

import base64
import io
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from lumina.core.config import LuminaConfig
from lumina.core.generation import ContentPart, InlineImage
from lumina.core.models import GenerationSettings
from lumina.core.session import SessionState


def make_image_bytes(fmt: str = "PNG", color=(255, 0, 0)) -> bytes:
    """Encode a tiny solid-colour image in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeImageClient:
    """In-memory stand-in for the Gemini client.

    Records every call and returns one canned response per call.  When
    ``fail_on`` is set, the call with that 1-based number raises ``error``.
    """

    def __init__(
        self,
        responses: list[list[InlineImage]] | None = None,
        fail_on: int | None = None,
        error: Exception | None = None,
    ):
        self.responses = responses
        self.fail_on = fail_on
        self.error = error or RuntimeError("quota exceeded")
        self.calls: list[tuple[list[ContentPart], str]] = []

    def generate_images(self, parts: list[ContentPart], aspect_ratio: str) -> list[InlineImage]:
        self.calls.append((list(parts), aspect_ratio))
        call_number = len(self.calls)
        if self.fail_on == call_number:
            raise self.error
        if self.responses is None:
            return [InlineImage(mime_type="image/png", data=f"img{call_number}")]
        return self.responses[call_number - 1]


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def png_b64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def fake_client() -> FakeImageClient:
    """Client that returns one PNG per call."""
    return FakeImageClient()


@pytest.fixture
def test_config(monkeypatch) -> LuminaConfig:
    """Configuration isolated from the developer's environment and .env file."""
    for name in ("LUMINA_API_KEY", "GEMINI_API_KEY", "API_KEY", "LUMINA_MODEL_ID"):
        monkeypatch.delenv(name, raising=False)
    return LuminaConfig(api_key="test-key", _env_file=None)


@pytest.fixture
def fox_settings() -> GenerationSettings:
    """The red-fox scenario: Anime style, 9:16, two batch elements."""
    return GenerationSettings(
        prompt="a red fox",
        style="Anime",
        aspect_ratio="9:16",
        batch_count=2,
    )


@pytest.fixture
def ready_state(fox_settings: GenerationSettings) -> SessionState:
    return SessionState(settings=fox_settings)


@pytest.fixture
def test_client(fake_client: FakeImageClient) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with a fresh session and the fake image client."""
    from lumina.api.main import app

    with TestClient(app) as client:
        app.state.image_client = fake_client
        yield client


@pytest.fixture
def client_factory() -> type[FakeImageClient]:
    """The fake client class, for tests that need custom responses or failures."""
    return FakeImageClient
