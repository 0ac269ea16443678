"""Async HTTP client for the FasterBook booking API.

Every request carries the static ``x-api-key`` header.  Responses are
returned as ``ServiceResponse`` objects (status code + JSON body) whatever
the HTTP status, so callers decide what counts as a business failure.  Only
a request that never produced a usable HTTP response raises, as
``FasterBookTransportError``.  That covers every ``httpx.RequestError``,
undecodable bodies and redirect loops included.

No retries are performed; timeout policy is left to the ``httpx`` transport.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

import httpx

from aura.config import CATALOG_CACHE_TTL_SECONDS, FASTERBOOK_API_KEY, FASTERBOOK_BASE_URL
from aura.models import Catalog
from aura.services.cache import TTLCache
from aura.services.metrics import metrics

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0

# ── Endpoints ───────────────────────────────────────────────────────
BOOK_FOOD_PATH = "/api/book-food"
BOOK_MOVIE_PATH = "/api/book-movie"
BOOKINGS_PATH = "/api/bookings"
AVAILABLE_PATH = "/api/available"

_CK_CATALOG = "catalog"


class FasterBookTransportError(Exception):
    """Raised when a request never reached the service or its response was unusable."""


class FasterBookAPIError(Exception):
    """Raised when the catalog cannot be loaded because the service declined."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class ServiceResponse:
    """Raw outcome of one HTTP exchange with FasterBook."""

    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def server_message(self) -> str | None:
        """The ``message`` (or ``error``) the server supplied, if any."""
        for key in ("message", "error"):
            value = self.body.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None


class FasterBookClient:
    """Thin async wrapper around the FasterBook REST API.

    The catalog (``GET /api/available``) is cached for
    ``CATALOG_CACHE_TTL_SECONDS``; booking calls are never cached and
    invalidate nothing because the catalog is not affected by them.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        cache: TTLCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key or FASTERBOOK_API_KEY
        self._base_url = base_url or FASTERBOOK_BASE_URL
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "x-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._cache = cache or TTLCache(CATALOG_CACHE_TTL_SECONDS)

    # ── Internal helpers ─────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> ServiceResponse:
        """Execute one HTTP request and decode its body as JSON."""
        operation = f"{method} {path}"
        t0 = time.perf_counter()
        try:
            response = await self._client.request(method, path, json=json_body)
        except httpx.RequestError as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(
                "fasterbook", operation, error_type=type(exc).__name__, latency_ms=elapsed,
            )
            logger.warning("FasterBook %s failed before a response (%s)", operation, type(exc).__name__)
            raise FasterBookTransportError(
                f"Could not reach FasterBook for {operation}: {exc}"
            ) from exc

        elapsed = (time.perf_counter() - t0) * 1000
        body = _decode_body(response)
        if 200 <= response.status_code < 300:
            metrics.record_success("fasterbook", operation, latency_ms=elapsed)
        else:
            metrics.record_failure(
                "fasterbook", operation,
                error_type=f"http_{response.status_code}", latency_ms=elapsed,
            )
            logger.info("FasterBook %s returned %d", operation, response.status_code)
        return ServiceResponse(status_code=response.status_code, body=body)

    # ── Public API methods ───────────────────────────────────────────

    async def book_food(self, item_id: str, quantity: int, address: str) -> ServiceResponse:
        """Place a food order for *quantity* of *item_id* delivered to *address*."""
        return await self._request(
            "POST",
            BOOK_FOOD_PATH,
            json_body={"itemId": item_id, "quantity": quantity, "address": address},
        )

    async def book_movie(
        self,
        movie_id: str,
        seats: list[str],
        show_time: str | None = None,
    ) -> ServiceResponse:
        """Book *seats* for *movie_id*, optionally at a specific *show_time*."""
        payload: dict[str, Any] = {"movieId": movie_id, "seats": list(seats)}
        if show_time:
            payload["showTime"] = show_time
        return await self._request("POST", BOOK_MOVIE_PATH, json_body=payload)

    async def get_bookings(self) -> ServiceResponse:
        """List past food and movie bookings."""
        return await self._request("GET", BOOKINGS_PATH)

    async def get_available(self) -> ServiceResponse:
        """Fetch the currently available items and movies (never cached)."""
        return await self._request("GET", AVAILABLE_PATH)

    async def get_catalog(self) -> Catalog:
        """Return the bookable catalog, served from cache while fresh.

        Raises:
            FasterBookTransportError: the service could not be reached.
            FasterBookAPIError: the service answered with a non-2xx status.
        """
        cached = self._cache.get(_CK_CATALOG)
        if cached is not None:
            logger.debug("Catalog served from cache")
            return cached

        response = await self.get_available()
        if not response.ok:
            raise FasterBookAPIError(
                response.server_message() or "Failed to fetch the FasterBook catalog.",
                status_code=response.status_code,
            )
        catalog = Catalog.from_payload(response.body)
        self._cache.put(_CK_CATALOG, catalog)
        logger.info(
            "Catalog refreshed: %d food items, %d movies",
            len(catalog.food_items), len(catalog.movies),
        )
        return catalog

    def invalidate_catalog(self) -> None:
        self._cache.invalidate(_CK_CATALOG)

    async def aclose(self) -> None:
        await self._client.aclose()


def _decode_body(response: httpx.Response) -> dict[str, Any]:
    """Parse the body as JSON; non-JSON bodies decode to ``{}``."""
    try:
        data = response.json()
    except ValueError:
        return {}
    if isinstance(data, dict):
        return data
    return {"data": data}


# ── Module-level singleton (thread-safe) ────────────────────────────
_client: FasterBookClient | None = None
_client_lock = threading.Lock()


def get_fasterbook_client() -> FasterBookClient:
    """Return a module-level FasterBookClient singleton.

    Uses double-checked locking so that the lock is only acquired during
    the first initialisation.
    """
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = FasterBookClient()
    return _client


async def close_fasterbook_client() -> None:
    """Close and forget the singleton (server shutdown)."""
    global _client
    with _client_lock:
        client, _client = _client, None
    if client is not None:
        await client.aclose()
