"""Tests for constrained parameter extraction and validation."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from aura.actions.extractor import (
    ExtractionParseError,
    FoodOrderParams,
    MissingDetailsError,
    MovieBookingParams,
    ParameterExtractor,
    parse_json_object,
    strip_code_fences,
    validate_food_order,
    validate_movie_booking,
)
from aura.models import ActionIntent
from aura.prompts import build_food_extraction_prompt, build_movie_extraction_prompt


def _make_llm(content: str):
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=content))
    return llm


# ── Prompt construction ─────────────────────────────────────────────


class TestExtractionPrompts:
    def test_food_prompt_lists_only_catalog_ids(self, catalog):
        prompt = build_food_extraction_prompt("two biryanis", catalog)
        assert "- f1: Chicken Biryani" in prompt
        assert "- f2: Paneer Pizza" in prompt
        assert "f3" not in prompt  # unavailable
        assert '"two biryanis"' in prompt
        assert "ONLY a JSON object" in prompt
        assert "defaults to 1" in prompt

    def test_movie_prompt_states_null_show_time_default(self, catalog):
        prompt = build_movie_extraction_prompt("Interstellar seats A1", catalog)
        assert "- m1: Interstellar" in prompt
        assert '"showTime" defaults to null' in prompt


# ── JSON parsing ────────────────────────────────────────────────────


class TestParsing:
    def test_strips_json_code_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_code_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_parses_object(self):
        assert parse_json_object('{"itemId": "f1"}') == {"itemId": "f1"}

    def test_invalid_json_is_parse_error(self):
        with pytest.raises(ExtractionParseError):
            parse_json_object("Sure! I'd order the biryani.")

    def test_non_object_json_is_parse_error(self):
        with pytest.raises(ExtractionParseError):
            parse_json_object('["f1", 2]')


# ── Food order validation ───────────────────────────────────────────


class TestFoodOrderValidation:
    def test_complete_order_passes(self, catalog):
        params = FoodOrderParams(item_id="f1", quantity=2, address=" 12 Baker Street ")
        validated = validate_food_order(params, catalog)
        assert validated.item_id == "f1"
        assert validated.quantity == 2
        assert validated.address == "12 Baker Street"

    def test_missing_item_is_reported_before_placeholder_address(self, catalog):
        params = FoodOrderParams.model_validate(
            {"itemId": None, "quantity": 1, "address": "User's location"}
        )
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_food_order(params, catalog)
        assert exc_info.value.field == "item"
        assert "Chicken Biryani" in exc_info.value.prompt

    def test_unknown_item_lists_valid_options(self, catalog):
        params = FoodOrderParams(item_id="f99", quantity=1, address="Home")
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_food_order(params, catalog)
        assert exc_info.value.field == "item"
        assert "f99" in exc_info.value.prompt
        assert "Paneer Pizza" in exc_info.value.prompt

    def test_missing_quantity_defaults_to_one(self, catalog):
        params = FoodOrderParams(item_id="f1", quantity=None, address="Home")
        assert validate_food_order(params, catalog).quantity == 1

    def test_zero_quantity_is_missing(self, catalog):
        params = FoodOrderParams(item_id="f1", quantity=0, address="Home")
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_food_order(params, catalog)
        assert exc_info.value.field == "quantity"

    @pytest.mark.parametrize("address", [None, "", "   ", "User's location", "user's location"])
    def test_missing_or_placeholder_address(self, catalog, address):
        params = FoodOrderParams(item_id="f1", quantity=1, address=address)
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_food_order(params, catalog)
        assert exc_info.value.field == "address"


# ── Movie booking validation ────────────────────────────────────────


class TestMovieBookingValidation:
    def test_complete_booking_passes(self, catalog):
        params = MovieBookingParams(movie_id="m1", seats=["A1", " A2 "], show_time="")
        validated = validate_movie_booking(params, catalog)
        assert validated.seats == ["A1", "A2"]
        assert validated.show_time is None

    def test_missing_movie_comes_first(self, catalog):
        params = MovieBookingParams(movie_id=None, seats=None)
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_movie_booking(params, catalog)
        assert exc_info.value.field == "movie"

    def test_unknown_movie(self, catalog):
        params = MovieBookingParams(movie_id="m9", seats=["A1"])
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_movie_booking(params, catalog)
        assert exc_info.value.field == "movie"
        assert "Inception" in exc_info.value.prompt

    def test_missing_seats(self, catalog):
        params = MovieBookingParams(movie_id="m1", seats=[])
        with pytest.raises(MissingDetailsError) as exc_info:
            validate_movie_booking(params, catalog)
        assert exc_info.value.field == "seats"


# ── Extractor ───────────────────────────────────────────────────────


class TestParameterExtractor:
    @pytest.mark.asyncio
    async def test_extracts_food_order(self, catalog):
        llm = _make_llm(json.dumps({"itemId": "f1", "quantity": 2, "address": "221B Baker Street"}))
        params = await ParameterExtractor(llm).extract(
            ActionIntent.FOOD_ORDER, "2 biryanis to 221B Baker Street", catalog,
        )
        assert params == FoodOrderParams(item_id="f1", quantity=2, address="221B Baker Street")
        llm.ainvoke.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_extracts_movie_booking_from_fenced_json(self, catalog):
        llm = _make_llm('```json\n{"movieId": "m2", "seats": ["B4"], "showTime": null}\n```')
        params = await ParameterExtractor(llm).extract(
            ActionIntent.MOVIE_BOOKING, "Inception seat B4", catalog,
        )
        assert isinstance(params, MovieBookingParams)
        assert params.movie_id == "m2"
        assert params.seats == ["B4"]

    @pytest.mark.asyncio
    async def test_numeric_ids_are_normalized_to_strings(self, catalog_payload):
        from aura.models import Catalog

        catalog_payload["foodItems"][0]["id"] = 7
        catalog = Catalog.from_payload(catalog_payload)
        llm = _make_llm('{"itemId": 7, "quantity": 1, "address": "Home"}')
        params = await ParameterExtractor(llm).extract(ActionIntent.FOOD_ORDER, "one", catalog)
        assert params.item_id == "7"

    @pytest.mark.asyncio
    async def test_prose_answer_is_parse_error(self, catalog):
        llm = _make_llm("I think you want the biryani.")
        with pytest.raises(ExtractionParseError):
            await ParameterExtractor(llm).extract(ActionIntent.FOOD_ORDER, "biryani", catalog)

    @pytest.mark.asyncio
    async def test_wrong_field_type_is_parse_error(self, catalog):
        llm = _make_llm('{"itemId": "f1", "quantity": "lots", "address": "Home"}')
        with pytest.raises(ExtractionParseError):
            await ParameterExtractor(llm).extract(ActionIntent.FOOD_ORDER, "lots of biryani", catalog)

    @pytest.mark.asyncio
    async def test_null_item_raises_missing_details(self, catalog):
        llm = _make_llm('{"itemId": null, "quantity": 1, "address": "User\'s location"}')
        with pytest.raises(MissingDetailsError) as exc_info:
            await ParameterExtractor(llm).extract(ActionIntent.FOOD_ORDER, "some food", catalog)
        assert exc_info.value.field == "item"

    @pytest.mark.asyncio
    async def test_intent_without_parameters_is_rejected(self, catalog):
        llm = _make_llm("{}")
        with pytest.raises(ValueError):
            await ParameterExtractor(llm).extract(ActionIntent.LIST_MENU, "menu", catalog)
        llm.ainvoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_llm_errors_propagate(self, catalog):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("LLM down"))
        with pytest.raises(RuntimeError):
            await ParameterExtractor(llm).extract(ActionIntent.FOOD_ORDER, "biryani", catalog)
