"""Shared domain models for the orchestration pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ConversationMode(str, Enum):
    """Which response path a conversation is on."""

    GENERAL = "general"
    AGENT_BOOKING = "agent_booking"

    @property
    def display_name(self) -> str:
        if self is ConversationMode.AGENT_BOOKING:
            return "FasterBook Agent Mode"
        return "General A.U.R.A Mode"


class ActionIntent(str, Enum):
    """Outcome of intent classification for one utterance."""

    # Agent booking mode
    FOOD_ORDER = "food_order"
    MOVIE_BOOKING = "movie_booking"
    LIST_BOOKINGS = "list_bookings"
    LIST_MENU = "list_menu"

    # Legacy set, general mode only
    GENERIC_FOOD_ORDER = "generic_food_order"
    GENERIC_TICKET_BOOKING = "generic_ticket_booking"
    IMAGE_GENERATION = "image_generation"

    NONE = "none"

    @property
    def needs_parameters(self) -> bool:
        return self in (ActionIntent.FOOD_ORDER, ActionIntent.MOVIE_BOOKING)

    @property
    def is_legacy(self) -> bool:
        return self in (
            ActionIntent.GENERIC_FOOD_ORDER,
            ActionIntent.GENERIC_TICKET_BOOKING,
            ActionIntent.IMAGE_GENERATION,
        )


class FailureKind(str, Enum):
    """Why an action did not succeed.

    Classification ambiguity is not listed: it is not a failure, it routes
    to the clarification reply instead.
    """

    EXTRACTION_PARSE = "extraction_parse_failure"
    MISSING_DETAILS = "missing_required_field"
    BUSINESS = "dispatch_business_failure"
    TRANSPORT = "transport_failure"


@dataclass(frozen=True)
class Document:
    """An uploaded document as handed over by the file-extraction layer."""

    name: str
    mime_type: str
    raw_text: str
    byte_size: int
    ingested_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ActionResult:
    """Normalized outcome of one dispatched action."""

    intent: ActionIntent
    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    failure: FailureKind | None = None

    @classmethod
    def ok(cls, intent: ActionIntent, data: dict[str, Any], message: str = "") -> ActionResult:
        return cls(intent=intent, success=True, message=message, data=data)

    @classmethod
    def failed(
        cls,
        intent: ActionIntent,
        kind: FailureKind,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> ActionResult:
        return cls(intent=intent, success=False, message=message, data=data or {}, failure=kind)

    def with_message(self, message: str) -> ActionResult:
        return replace(self, message=message)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["intent"] = self.intent.value
        payload["failure"] = self.failure.value if self.failure else None
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ActionResult:
        failure = payload.get("failure")
        return cls(
            intent=ActionIntent(payload["intent"]),
            success=bool(payload["success"]),
            message=payload.get("message", ""),
            data=dict(payload.get("data") or {}),
            failure=FailureKind(failure) if failure else None,
        )


@dataclass(frozen=True)
class CatalogItem:
    """One bookable entry (menu item or movie) from the FasterBook catalog."""

    id: str
    name: str
    price: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Catalog:
    """Currently bookable food items and movies."""

    food_items: tuple[CatalogItem, ...] = ()
    movies: tuple[CatalogItem, ...] = ()

    def food_ids(self) -> set[str]:
        return {item.id for item in self.food_items}

    def movie_ids(self) -> set[str]:
        return {movie.id for movie in self.movies}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Catalog:
        """Build a catalog from a ``GET /api/available`` response body.

        ``items`` is accepted as an older alias for ``foodItems``.
        Entries marked ``available: false`` are skipped.
        """
        raw_food = payload.get("foodItems")
        if raw_food is None:
            raw_food = payload.get("items", [])
        raw_movies = payload.get("movies", [])
        return cls(
            food_items=tuple(_to_item(entry) for entry in raw_food if _is_available(entry)),
            movies=tuple(_to_item(entry) for entry in raw_movies if _is_available(entry)),
        )


def _is_available(entry: dict[str, Any]) -> bool:
    return "id" in entry and entry.get("available", True) is not False


def _to_item(entry: dict[str, Any]) -> CatalogItem:
    name = entry.get("name") or entry.get("title") or str(entry["id"])
    extra = {k: v for k, v in entry.items() if k not in ("id", "name", "title", "price")}
    return CatalogItem(id=str(entry["id"]), name=name, price=entry.get("price"), extra=extra)
