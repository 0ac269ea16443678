"""Plain-text replies for dispatched actions."""

from __future__ import annotations

from typing import Any

from aura.models import ActionIntent, ActionResult


def format_reply(result: ActionResult) -> str:
    """Render *result* as the assistant's chat reply.

    Failures are shown as their message verbatim (server message, missing
    details question or connection notice).
    """
    if not result.success:
        return result.message

    formatter = _FORMATTERS.get(result.intent)
    if formatter is None:
        return result.message or "Done."
    return formatter(result.data)


def _food_order(data: dict[str, Any]) -> str:
    lines = ["I've processed your FasterBook food order! Here are the details:"]
    lines += _detail_lines(data, [
        ("Booking ID", "bookingId"),
        ("Item", "itemName", "itemId"),
        ("Quantity", "quantity"),
        ("Total", "totalPrice"),
        ("Address", "address"),
        ("Status", "status"),
        ("Estimated delivery", "estimatedDelivery"),
    ])
    return "\n".join(lines)


def _movie_booking(data: dict[str, Any]) -> str:
    lines = ["I've processed your FasterBook movie booking! Here are the details:"]
    seats = data.get("seats")
    lines += _detail_lines(
        {**data, "seats": ", ".join(seats) if isinstance(seats, list) else seats},
        [
            ("Booking ID", "bookingId"),
            ("Movie", "movieTitle", "movieId"),
            ("Seats", "seats"),
            ("Show time", "showTime"),
            ("Total", "totalPrice"),
            ("Status", "status"),
        ],
    )
    return "\n".join(lines)


def _bookings(data: dict[str, Any]) -> str:
    food = data.get("foodBookings") or []
    movies = data.get("movieBookings") or []
    if not food and not movies:
        return "You have no past bookings."

    lines = [f"Here are your FasterBook bookings ({len(food) + len(movies)}):"]
    for booking in food:
        name = booking.get("itemName") or booking.get("itemId", "?")
        lines.append(
            f"- Food: {name} (x{booking.get('quantity', 1)}) to {booking.get('address', '?')}"
            f" [ID: {booking.get('bookingId', '?')}]"
        )
    for booking in movies:
        title = booking.get("movieTitle") or booking.get("movieId", "?")
        seats = ", ".join(booking.get("seats") or [])
        lines.append(f"- Movie: {title}, seats {seats} [ID: {booking.get('bookingId', '?')}]")
    return "\n".join(lines)


def _menu(data: dict[str, Any]) -> str:
    food = data.get("foodItems")
    if food is None:
        food = data.get("items") or []
    movies = data.get("movies") or []
    if not food and not movies:
        return "The menu is currently empty."

    lines = ["Here's what's available on FasterBook:"]
    if food:
        lines.append("Food:")
        lines += [f"- {item.get('name', item.get('id'))}{_price(item)}" for item in food]
    if movies:
        lines.append("Movies:")
        lines += [f"- {movie.get('title') or movie.get('name', movie.get('id'))}{_price(movie)}" for movie in movies]
    return "\n".join(lines)


def _legacy_food(data: dict[str, Any]) -> str:
    return (
        "I've processed your food order! Here are the details:\n"
        f"- {data['item']} x{data['quantity']}, total ${data['totalPrice']:.2f}\n"
        f"- Booking ID: {data['bookingId']}"
    )


def _legacy_tickets(data: dict[str, Any]) -> str:
    return (
        "I've booked your tickets! Here are the details:\n"
        f"- {data['movie']}, {data['seats']} seat(s), total ${data['totalPrice']:.2f}\n"
        f"- Booking ID: {data['bookingId']}"
    )


# The data: URL travels in the result payload, not in the chat text
def _image(data: dict[str, Any]) -> str:
    return f"I've generated an image: \"{data.get('prompt', '')}\""


def _price(entry: dict[str, Any]) -> str:
    price = entry.get("price")
    return f" - ₹{price}" if price is not None else ""


def _detail_lines(data: dict[str, Any], fields: list[tuple[str, ...]]) -> list[str]:
    lines = []
    for label, *keys in fields:
        value = next((data[key] for key in keys if data.get(key) not in (None, "")), None)
        if value is not None:
            lines.append(f"- {label}: {value}")
    return lines


_FORMATTERS = {
    ActionIntent.FOOD_ORDER: _food_order,
    ActionIntent.MOVIE_BOOKING: _movie_booking,
    ActionIntent.LIST_BOOKINGS: _bookings,
    ActionIntent.LIST_MENU: _menu,
    ActionIntent.GENERIC_FOOD_ORDER: _legacy_food,
    ActionIntent.GENERIC_TICKET_BOOKING: _legacy_tickets,
    ActionIntent.IMAGE_GENERATION: _image,
}
