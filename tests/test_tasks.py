"""Tests for task records and reply formatting."""

from __future__ import annotations

from unittest.mock import MagicMock

from aura.actions.replies import format_reply
from aura.models import ActionIntent, ActionResult, FailureKind
from aura.services.tasks import build_task_record, emit_task


# ── Task records ────────────────────────────────────────────────────


class TestTaskRecords:
    def test_successful_food_order(self):
        result = ActionResult.ok(ActionIntent.FOOD_ORDER, {"bookingId": "B1"}, "Order placed")
        record = build_task_record(result, "2 biryanis to Baker Street")

        assert record.task_type == "restaurant"
        assert record.status == "completed"
        assert record.title == "FasterBook Food Order"
        assert record.description == "Order placed"
        assert record.order_details == {"user_input": "2 biryanis to Baker Street"}
        assert record.api_response == {"bookingId": "B1"}
        assert record.error_message is None

    def test_failed_movie_booking(self):
        result = ActionResult.failed(
            ActionIntent.MOVIE_BOOKING, FailureKind.BUSINESS, "Seats already taken",
        )
        record = build_task_record(result, "A1 for Inception")

        assert record.task_type == "ecommerce"
        assert record.status == "failed"
        assert record.error_message == "Seats already taken"

    def test_type_mapping_for_other_intents(self):
        def task_type(intent):
            return build_task_record(ActionResult.ok(intent, {}), "x").task_type

        assert task_type(ActionIntent.LIST_MENU) == "general"
        assert task_type(ActionIntent.LIST_BOOKINGS) == "general"
        assert task_type(ActionIntent.GENERIC_FOOD_ORDER) == "restaurant"
        assert task_type(ActionIntent.GENERIC_TICKET_BOOKING) == "ecommerce"
        assert task_type(ActionIntent.IMAGE_GENERATION) == "general"

    def test_emit_hands_record_to_sink(self):
        sink = MagicMock()
        emit_task(sink, ActionResult.ok(ActionIntent.LIST_MENU, {}), "menu")
        sink.emit.assert_called_once()
        assert sink.emit.call_args[0][0].title == "FasterBook Menu"

    def test_sink_failure_is_contained(self):
        sink = MagicMock()
        sink.emit.side_effect = RuntimeError("database down")
        # Must not raise
        emit_task(sink, ActionResult.ok(ActionIntent.LIST_MENU, {}), "menu")


# ── Reply formatting ────────────────────────────────────────────────


class TestReplies:
    def test_failure_shows_message_verbatim(self):
        result = ActionResult.failed(ActionIntent.FOOD_ORDER, FailureKind.BUSINESS, "Item out of stock")
        assert format_reply(result) == "Item out of stock"

    def test_food_order_shows_booking_id(self):
        result = ActionResult.ok(
            ActionIntent.FOOD_ORDER,
            {"bookingId": "B1", "itemId": "f1", "quantity": 2, "address": "Home"},
        )
        reply = format_reply(result)
        assert "Booking ID: B1" in reply
        assert "Quantity: 2" in reply

    def test_movie_booking_joins_seats(self):
        result = ActionResult.ok(
            ActionIntent.MOVIE_BOOKING,
            {"bookingId": "M1", "movieTitle": "Inception", "seats": ["A1", "A2"]},
        )
        assert "Seats: A1, A2" in format_reply(result)

    def test_empty_bookings(self):
        result = ActionResult.ok(ActionIntent.LIST_BOOKINGS, {"foodBookings": [], "movieBookings": []})
        assert format_reply(result) == "You have no past bookings."

    def test_bookings_list(self):
        result = ActionResult.ok(
            ActionIntent.LIST_BOOKINGS,
            {
                "foodBookings": [{"bookingId": "B1", "itemName": "Biryani", "quantity": 1, "address": "Home"}],
                "movieBookings": [{"bookingId": "M1", "movieTitle": "Inception", "seats": ["A1"]}],
            },
        )
        reply = format_reply(result)
        assert reply.startswith("Here are your FasterBook bookings (2):")
        assert "Biryani" in reply
        assert "Inception" in reply

    def test_menu_accepts_items_alias(self):
        result = ActionResult.ok(ActionIntent.LIST_MENU, {"items": [{"id": "f1", "name": "Dosa", "price": 90}]})
        reply = format_reply(result)
        assert "Dosa" in reply
        assert "90" in reply

    def test_result_round_trips_through_dict(self):
        result = ActionResult.failed(
            ActionIntent.FOOD_ORDER, FailureKind.MISSING_DETAILS, "Where to?", data={"field": "address"},
        )
        assert ActionResult.from_dict(result.to_dict()) == result
