"""Mock food and ticket bookings used by the general-mode legacy actions.

These predate the FasterBook integration and never touch the network: the
item or movie is picked out of the utterance with plain substring checks.
"""

from __future__ import annotations

import re
import time
from typing import Any

MOCK_MENU: dict[str, float] = {
    "burger": 8.99,
    "pizza": 12.99,
    "salad": 6.99,
}

MOCK_MOVIES: dict[str, str] = {
    "dune": "Dune: Part Two",
    "incredibles": "The Incredibles",
    "matrix": "The Matrix",
}

TICKET_PRICE = 15.0

_QUANTITY_RE = re.compile(r"(\d+)")
_SEATS_RE = re.compile(r"(\d+)\s+(?:seats|tickets)")


class LegacyBookingError(ValueError):
    """The utterance did not name anything the mock catalog knows."""


def book_food_legacy(message: str) -> dict[str, Any]:
    """Book the first mock menu item mentioned in *message*."""
    lower = message.lower()
    item = next((name for name in MOCK_MENU if name in lower), None)
    if item is None:
        raise LegacyBookingError("Sorry, we could not find that item on our mock menu.")

    match = _QUANTITY_RE.search(lower)
    quantity = int(match.group(1)) if match else 1

    return {
        "bookingId": f"mock_{int(time.time() * 1000)}",
        "item": item,
        "quantity": quantity,
        "totalPrice": round(MOCK_MENU[item] * quantity, 2),
        "status": "confirmed",
    }


def book_tickets_legacy(message: str) -> dict[str, Any]:
    """Book tickets for the first mock movie mentioned in *message*."""
    lower = message.lower()
    movie = next((title for key, title in MOCK_MOVIES.items() if key in lower), None)
    if movie is None:
        raise LegacyBookingError("Sorry, we could not find that movie in our mock database.")

    match = _SEATS_RE.search(lower)
    seats = int(match.group(1)) if match else 1

    return {
        "bookingId": f"mock_tkt_{int(time.time() * 1000)}",
        "movie": movie,
        "seats": seats,
        "totalPrice": TICKET_PRICE * seats,
        "status": "confirmed",
    }
