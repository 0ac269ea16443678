"""Keyword-based intent classification.

Keyword sets overlap ("order" is both a food word and part of "my orders"),
so each mode checks its sets in a fixed priority order and the first set
with a hit wins.  The order is part of the behavior: "show me the menu for
my order" must resolve to the menu, not to booking history.
"""

from __future__ import annotations

from aura.models import ActionIntent, ConversationMode

MENU_KEYWORDS: tuple[str, ...] = (
    "menu",
    "what's available",
    "what is available",
    "available items",
    "list items",
    "show items",
)

BOOKINGS_KEYWORDS: tuple[str, ...] = (
    "my bookings",
    "my booking",
    "my orders",
    "my order",
    "booking history",
    "order history",
    "past orders",
    "previous orders",
    "show bookings",
    "list bookings",
)

MOVIE_KEYWORDS: tuple[str, ...] = (
    "movie",
    "film",
    "cinema",
    "theatre",
    "theater",
    "ticket",
    "seat",
    "showtime",
    "show time",
)

FOOD_KEYWORDS: tuple[str, ...] = (
    "food",
    "order",
    "eat",
    "hungry",
    "deliver",
    "meal",
    "dish",
    "biryani",
    "pizza",
    "burger",
)

IMAGE_KEYWORDS: tuple[str, ...] = (
    "generate image",
    "create image",
    "draw",
    "picture of",
    "image of",
    "show me",
)

GENERIC_TICKET_KEYWORDS: tuple[str, ...] = (
    "book ticket",
    "book tickets",
    "movie ticket",
    "movie tickets",
)

GENERIC_FOOD_KEYWORDS: tuple[str, ...] = (
    "order food",
    "food order",
    "order a",
    "order some",
)

# Most specific first
AGENT_PRIORITY: tuple[tuple[ActionIntent, tuple[str, ...]], ...] = (
    (ActionIntent.LIST_MENU, MENU_KEYWORDS),
    (ActionIntent.LIST_BOOKINGS, BOOKINGS_KEYWORDS),
    (ActionIntent.MOVIE_BOOKING, MOVIE_KEYWORDS),
    (ActionIntent.FOOD_ORDER, FOOD_KEYWORDS),
)

LEGACY_PRIORITY: tuple[tuple[ActionIntent, tuple[str, ...]], ...] = (
    (ActionIntent.IMAGE_GENERATION, IMAGE_KEYWORDS),
    (ActionIntent.GENERIC_TICKET_BOOKING, GENERIC_TICKET_KEYWORDS),
    (ActionIntent.GENERIC_FOOD_ORDER, GENERIC_FOOD_KEYWORDS),
)


def match_keywords(
    utterance: str,
    priority: tuple[tuple[ActionIntent, tuple[str, ...]], ...],
) -> ActionIntent:
    """Return the intent of the first keyword set found in *utterance*."""
    lowered = utterance.lower()
    for intent, keywords in priority:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return ActionIntent.NONE


def classify(
    mode: ConversationMode,
    utterance: str,
    *,
    agent_priority: tuple[tuple[ActionIntent, tuple[str, ...]], ...] = AGENT_PRIORITY,
    legacy_priority: tuple[tuple[ActionIntent, tuple[str, ...]], ...] = LEGACY_PRIORITY,
) -> ActionIntent:
    """Classify *utterance* with the keyword sets active in *mode*."""
    if mode is ConversationMode.AGENT_BOOKING:
        return match_keywords(utterance, agent_priority)
    return match_keywords(utterance, legacy_priority)
