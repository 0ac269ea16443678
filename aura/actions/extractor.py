"""Constrained JSON extraction of booking parameters.

The extraction model is asked for a single JSON object whose allowed
identifiers come from the live catalog.  The answer is parsed exactly once:
anything that is not a JSON object of the expected shape is an
``ExtractionParseError`` (fatal for this attempt, never retried).  A
well-formed answer with a required field left at ``null`` raises
``MissingDetailsError`` instead, carrying the follow-up question to relay
to the user.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aura.models import ActionIntent, Catalog, CatalogItem
from aura.prompts import build_food_extraction_prompt, build_movie_extraction_prompt
from aura.services.metrics import metrics

logger = logging.getLogger(__name__)

# Value some models fill in when no address was given; treated as unset
ADDRESS_PLACEHOLDER = "user's location"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_MAX_LISTED_OPTIONS = 10


class ExtractionParseError(Exception):
    """The extraction model's answer was not a usable JSON object."""


class MissingDetailsError(Exception):
    """A required field could not be determined from the user's message.

    ``str(exc)`` is the question to put back to the user.
    """

    def __init__(self, prompt: str, field: str):
        self.field = field
        super().__init__(prompt)

    @property
    def prompt(self) -> str:
        return str(self)


# ── Parameter records ────────────────────────────────────────────────


def _id_to_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class FoodOrderParams(BaseModel):
    """Candidate parameters for ``POST /api/book-food``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    item_id: str | None = Field(default=None, alias="itemId")
    quantity: int | None = 1
    address: str | None = None

    @field_validator("item_id", mode="before")
    @classmethod
    def _normalize_item_id(cls, value: Any) -> Any:
        return _id_to_str(value)


class MovieBookingParams(BaseModel):
    """Candidate parameters for ``POST /api/book-movie``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    movie_id: str | None = Field(default=None, alias="movieId")
    seats: list[str] | None = None
    show_time: str | None = Field(default=None, alias="showTime")

    @field_validator("movie_id", mode="before")
    @classmethod
    def _normalize_movie_id(cls, value: Any) -> Any:
        return _id_to_str(value)


ExtractedParameters = FoodOrderParams | MovieBookingParams


# ── Parsing helpers ──────────────────────────────────────────────────


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse *text* as one JSON object or raise ``ExtractionParseError``."""
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ExtractionParseError(f"Extraction response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ExtractionParseError(
            f"Extraction response is a JSON {type(data).__name__}, expected an object"
        )
    return data


def response_text(response: Any) -> str:
    """Flatten an AIMessage's content (string or content blocks) to text."""
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return str(content)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _list_names(items: tuple[CatalogItem, ...]) -> str:
    names = [item.name for item in items[:_MAX_LISTED_OPTIONS]]
    if len(items) > _MAX_LISTED_OPTIONS:
        names.append("…")
    return ", ".join(names) if names else "nothing right now"


# ── Validation ───────────────────────────────────────────────────────


def validate_food_order(params: FoodOrderParams, catalog: Catalog) -> FoodOrderParams:
    """Check a food order field by field: item, then quantity, then address."""
    if _is_blank(params.item_id):
        raise MissingDetailsError(
            "What would you like to order? Available items: "
            f"{_list_names(catalog.food_items)}.",
            field="item",
        )
    if params.item_id not in catalog.food_ids():
        raise MissingDetailsError(
            f'I couldn\'t find "{params.item_id}" on the menu. Please choose one of: '
            f"{_list_names(catalog.food_items)}.",
            field="item",
        )

    quantity = 1 if params.quantity is None else params.quantity
    if quantity < 1:
        raise MissingDetailsError("How many would you like to order?", field="quantity")

    if _is_blank(params.address) or params.address.strip().lower() == ADDRESS_PLACEHOLDER:
        raise MissingDetailsError(
            "Where should I deliver your order? Please share the delivery address.",
            field="address",
        )
    return params.model_copy(update={"quantity": quantity, "address": params.address.strip()})


def validate_movie_booking(params: MovieBookingParams, catalog: Catalog) -> MovieBookingParams:
    """Check a movie booking field by field: movie, then seats."""
    if _is_blank(params.movie_id):
        raise MissingDetailsError(
            f"Which movie would you like to watch? Now showing: {_list_names(catalog.movies)}.",
            field="movie",
        )
    if params.movie_id not in catalog.movie_ids():
        raise MissingDetailsError(
            f'I couldn\'t find "{params.movie_id}" in the listings. Please choose one of: '
            f"{_list_names(catalog.movies)}.",
            field="movie",
        )

    seats = [seat.strip() for seat in params.seats or [] if seat.strip()]
    if not seats:
        raise MissingDetailsError(
            "Which seats would you like? For example: A1, A2.",
            field="seats",
        )
    show_time = None if _is_blank(params.show_time) else params.show_time.strip()
    return params.model_copy(update={"seats": seats, "show_time": show_time})


# ── Extractor ────────────────────────────────────────────────────────


class ParameterExtractor:
    """Runs the constrained extraction call and validates its answer."""

    def __init__(self, llm) -> None:
        self._llm = llm

    async def extract(
        self,
        intent: ActionIntent,
        message: str,
        catalog: Catalog,
    ) -> ExtractedParameters:
        """Extract and validate parameters for *intent* from *message*.

        Raises:
            ExtractionParseError: the model answer was not a usable JSON object.
            MissingDetailsError: a required field is unset or not in the catalog.
            ValueError: *intent* takes no parameters.
        """
        if intent is ActionIntent.FOOD_ORDER:
            prompt = build_food_extraction_prompt(message, catalog)
            model: type[BaseModel] = FoodOrderParams
        elif intent is ActionIntent.MOVIE_BOOKING:
            prompt = build_movie_extraction_prompt(message, catalog)
            model = MovieBookingParams
        else:
            raise ValueError(f"{intent.value} does not take extracted parameters")

        raw = await self._invoke(prompt)
        data = parse_json_object(raw)
        try:
            params = model.model_validate(data)
        except ValidationError as exc:
            raise ExtractionParseError(f"Extraction response has the wrong shape: {exc}") from exc

        logger.debug("Extracted %s params: %s", intent.value, params.model_dump(by_alias=True))
        if isinstance(params, FoodOrderParams):
            return validate_food_order(params, catalog)
        return validate_movie_booking(params, catalog)

    async def _invoke(self, prompt: str) -> str:
        t0 = time.perf_counter()
        try:
            response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:
            metrics.record_failure(
                "anthropic", "extract_params",
                error_type=type(exc).__name__,
                latency_ms=(time.perf_counter() - t0) * 1000,
            )
            raise
        metrics.record_success(
            "anthropic", "extract_params", latency_ms=(time.perf_counter() - t0) * 1000,
        )
        return response_text(response)
