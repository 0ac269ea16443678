"""Tests for the Hugging Face image generation client."""

from __future__ import annotations

import json

import httpx
import pytest

from aura.routing.intent import IMAGE_KEYWORDS
from aura.services.image_generation import (
    NEGATIVE_PROMPT,
    ImageGenerationClient,
    ImageGenerationError,
    close_image_generation_client,
    extract_image_prompt,
    get_image_generation_client,
)


class TestExtractImagePrompt:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("generate image: a lighthouse at dusk", "a lighthouse at dusk"),
            ("Please DRAW: a red fox", "a red fox"),
            ("show me a cat wearing a hat", "a cat wearing a hat"),
            ("draw", "draw"),
        ],
    )
    def test_strips_trigger_phrase(self, message, expected):
        assert extract_image_prompt(message, IMAGE_KEYWORDS) == expected


class TestImageGenerationClient:
    @pytest.mark.asyncio
    async def test_returns_data_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})

        client = ImageGenerationClient(
            token="hf-test", model="org/model", transport=httpx.MockTransport(handler),
        )
        url = await client.generate("a red fox")

        assert url == "data:image/png;base64,iVBORw=="
        assert seen["path"] == "/models/org/model"
        assert seen["auth"] == "Bearer hf-test"
        assert seen["body"] == {
            "inputs": "a red fox",
            "parameters": {"negative_prompt": NEGATIVE_PROMPT},
        }

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "Model is loading"})

        client = ImageGenerationClient(
            token="hf-test", model="org/model", transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ImageGenerationError):
            await client.generate("a red fox")

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = ImageGenerationClient(
            token="hf-test", model="org/model", transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ImageGenerationError):
            await client.generate("a red fox")

    @pytest.mark.asyncio
    async def test_undecodable_response_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.DecodingError("bad gzip", request=request)

        client = ImageGenerationClient(
            token="hf-test", model="org/model", transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ImageGenerationError):
            await client.generate("a red fox")


# ── Singleton ───────────────────────────────────────────────────────


class TestImageClientSingleton:
    @pytest.mark.asyncio
    async def test_close_forgets_the_shared_client(self):
        first = get_image_generation_client()
        assert get_image_generation_client() is first

        await close_image_generation_client()
        second = get_image_generation_client()
        assert second is not first

        await close_image_generation_client()

    @pytest.mark.asyncio
    async def test_close_without_client_is_a_noop(self):
        await close_image_generation_client()
        await close_image_generation_client()
