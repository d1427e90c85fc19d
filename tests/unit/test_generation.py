"""Tests for lumina.core.generation — the request builder and batch loop.

All tests use the in-memory FakeImageClient from conftest, so no network
access occurs.  Tests cover:

- Content part order (references first, then text).
- Skipping of malformed reference data URIs.
- Aspect ratio forwarding and fallback.
- One sequential call per batch element.
- Result count and order across calls.
- Fail-fast behaviour with no partial results.
"""

from __future__ import annotations

import pytest

from lumina.core.errors import ExternalServiceError, GenerationError
from lumina.core.generation import (
    InlineImage,
    InlineImagePart,
    TextPart,
    build_content_parts,
    generate_ai_images,
)
from lumina.core.models import GenerationSettings, Quality
from lumina.core.prompt_builder import QUALITY_SUFFIX

FOX_PROMPT = f"a red fox. Style: Anime. {QUALITY_SUFFIX}"


class TestBuildContentParts:
    """Test build_content_parts()."""

    def test_text_only_without_references(self, fox_settings):
        assert build_content_parts(fox_settings) == [TextPart(text=FOX_PROMPT)]

    def test_references_precede_text_in_order(self):
        settings = GenerationSettings(
            prompt="a red fox",
            reference_images=[
                "data:image/png;base64,AAAA",
                "data:image/jpeg;base64,BBBB",
            ],
        )
        parts = build_content_parts(settings)
        assert parts == [
            InlineImagePart(mime_type="image/png", data="AAAA"),
            InlineImagePart(mime_type="image/jpeg", data="BBBB"),
            TextPart(text=f"a red fox. {QUALITY_SUFFIX}"),
        ]

    def test_malformed_references_are_skipped(self):
        settings = GenerationSettings(
            prompt="a red fox",
            reference_images=[
                "garbage",
                "data:image/png;base64,AAAA",
                "data:image/png,nobase64",
            ],
        )
        parts = build_content_parts(settings)
        assert parts[:-1] == [InlineImagePart(mime_type="image/png", data="AAAA")]
        assert isinstance(parts[-1], TextPart)


class TestGenerateAIImages:
    """Test generate_ai_images()."""

    def test_red_fox_scenario(self, fox_settings, client_factory):
        """Two sequential calls with the documented prompt and ratio."""
        client = client_factory(
            responses=[
                [InlineImage("image/png", "AAA"), InlineImage("image/png", "BBB")],
                [InlineImage("image/jpeg", "CCC")],
            ]
        )

        urls = generate_ai_images(fox_settings, client)

        assert len(client.calls) == 2
        for parts, aspect_ratio in client.calls:
            assert parts == [TextPart(text=FOX_PROMPT)]
            assert aspect_ratio == "9:16"
        assert urls == [
            "data:image/png;base64,AAA",
            "data:image/png;base64,BBB",
            "data:image/jpeg;base64,CCC",
        ]

    @pytest.mark.parametrize("batch_count", [1, 2, 3, 4, 5])
    def test_one_call_per_batch_element(self, batch_count, fake_client):
        settings = GenerationSettings(prompt="x", batch_count=batch_count)
        urls = generate_ai_images(settings, fake_client)
        assert len(fake_client.calls) == batch_count
        assert urls == [f"data:image/png;base64,img{i + 1}" for i in range(batch_count)]

    def test_unsupported_ratio_sent_as_square(self, fake_client):
        settings = GenerationSettings(prompt="x", aspect_ratio="21:9")
        generate_ai_images(settings, fake_client)
        assert fake_client.calls[0][1] == "1:1"

    def test_empty_response_is_success(self, client_factory):
        client = client_factory(responses=[[], []])
        settings = GenerationSettings(prompt="x", batch_count=2)
        assert generate_ai_images(settings, client) == []
        assert len(client.calls) == 2

    def test_quality_is_not_forwarded(self, fake_client):
        """Quality has no effect on the request (known gap)."""
        standard = GenerationSettings(prompt="x", quality=Quality.STANDARD)
        eight_k = GenerationSettings(prompt="x", quality=Quality.K8)
        generate_ai_images(standard, fake_client)
        generate_ai_images(eight_k, fake_client)
        assert fake_client.calls[0] == fake_client.calls[1]

    def test_failure_aborts_remaining_calls(self, client_factory):
        client = client_factory(fail_on=2, error=RuntimeError("quota exceeded"))
        settings = GenerationSettings(prompt="x", batch_count=4)

        with pytest.raises(GenerationError, match="quota exceeded") as exc_info:
            generate_ai_images(settings, client)

        assert len(client.calls) == 2
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_failure_on_first_call(self, client_factory):
        client = client_factory(fail_on=1)
        with pytest.raises(ExternalServiceError):
            generate_ai_images(GenerationSettings(prompt="x", batch_count=3), client)
        assert len(client.calls) == 1

    def test_references_sent_on_every_call(self, fake_client):
        settings = GenerationSettings(
            prompt="x",
            batch_count=2,
            reference_images=["data:image/png;base64,AAAA"],
        )
        generate_ai_images(settings, fake_client)
        for parts, _ in fake_client.calls:
            assert parts[0] == InlineImagePart(mime_type="image/png", data="AAAA")

    def test_invalid_base64_reference_never_sent(self, fake_client):
        """A reference that cannot be decoded is skipped, not reported as a service error."""
        settings = GenerationSettings(
            prompt="x",
            reference_images=["data:image/png;base64,A", "data:image/png;base64,AAAA"],
        )
        assert generate_ai_images(settings, fake_client) == ["data:image/png;base64,img1"]
        parts, _ = fake_client.calls[0]
        assert parts[:-1] == [InlineImagePart(mime_type="image/png", data="AAAA")]

    def test_malformed_response_is_service_error(self, client_factory):
        client = client_factory(responses=[[object()], [InlineImage("image/png", "AAAA")]])
        settings = GenerationSettings(prompt="x", batch_count=2)

        with pytest.raises(GenerationError) as exc_info:
            generate_ai_images(settings, client)

        assert len(client.calls) == 1
        assert isinstance(exc_info.value.__cause__, AttributeError)
