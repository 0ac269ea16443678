"""Text-to-image client for the Hugging Face inference API."""

from __future__ import annotations

import base64
import logging
import re
import threading
import time

import httpx

from aura.config import HF_TOKEN, IMAGE_MODEL_NAME
from aura.services.metrics import metrics

logger = logging.getLogger(__name__)

HF_INFERENCE_URL = "https://api-inference.huggingface.co/models"
NEGATIVE_PROMPT = "blurry, ugly, deformed"
REQUEST_TIMEOUT_SECONDS = 120.0


class ImageGenerationError(Exception):
    """Raised when the image could not be generated."""


def extract_image_prompt(message: str, keywords: tuple[str, ...]) -> str:
    """Strip everything up to and including each trigger keyword.

    ``"please draw: a red fox"`` becomes ``"a red fox"``.  Falls back to the
    whole message when nothing is left.
    """
    prompt = message
    for keyword in keywords:
        prompt = re.sub(rf".*{re.escape(keyword)}\s*:?\s*", "", prompt, flags=re.IGNORECASE).strip()
    return prompt or message


class ImageGenerationClient:
    """Generates an image and returns it as a ``data:`` URL."""

    def __init__(
        self,
        token: str | None = None,
        model: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token = token if token is not None else HF_TOKEN
        self._model = model or IMAGE_MODEL_NAME
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        self._client = httpx.AsyncClient(
            base_url=HF_INFERENCE_URL,
            headers=headers,
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def generate(self, prompt: str) -> str:
        """Render *prompt* and return the image as a base64 ``data:`` URL.

        Raises:
            ImageGenerationError: transport failure or a non-2xx response.
        """
        operation = f"POST /models/{self._model}"
        t0 = time.perf_counter()
        try:
            response = await self._client.post(
                f"/{self._model}",
                json={"inputs": prompt, "parameters": {"negative_prompt": NEGATIVE_PROMPT}},
            )
        except httpx.RequestError as exc:
            metrics.record_failure(
                "huggingface", operation, error_type=type(exc).__name__,
                latency_ms=(time.perf_counter() - t0) * 1000,
            )
            raise ImageGenerationError("Failed to generate image") from exc

        elapsed = (time.perf_counter() - t0) * 1000
        if response.status_code >= 400:
            metrics.record_failure(
                "huggingface", operation,
                error_type=f"http_{response.status_code}", latency_ms=elapsed,
            )
            logger.error("Image generation returned %d: %s", response.status_code, response.text[:200])
            raise ImageGenerationError("Failed to generate image")

        metrics.record_success("huggingface", operation, latency_ms=elapsed)
        content_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Module-level singleton (thread-safe) ────────────────────────────
_client: ImageGenerationClient | None = None
_client_lock = threading.Lock()


def get_image_generation_client() -> ImageGenerationClient:
    """Return the shared ImageGenerationClient, creating it on first use."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = ImageGenerationClient()
    return _client


async def close_image_generation_client() -> None:
    """Close and forget the singleton (server shutdown)."""
    global _client
    with _client_lock:
        client, _client = _client, None
    if client is not None:
        await client.aclose()
