"""Turns a validated action into exactly one external call.

Every FasterBook call has the same shape: send the request, read the JSON
body whatever the status, and normalize into an ``ActionResult`` whose
``success`` is the HTTP status.  Business failures and transport failures
come back as results, never as exceptions; only a contract violation
(dispatching incomplete parameters) raises.
"""

from __future__ import annotations

import logging

from aura.actions.extractor import ExtractedParameters, FoodOrderParams, MovieBookingParams
from aura.models import ActionIntent, ActionResult, FailureKind
from aura.routing.intent import IMAGE_KEYWORDS
from aura.services.fasterbook_client import (
    FasterBookClient,
    FasterBookTransportError,
    ServiceResponse,
)
from aura.services.image_generation import (
    ImageGenerationClient,
    ImageGenerationError,
    extract_image_prompt,
)
from aura.services.legacy_booking import LegacyBookingError, book_food_legacy, book_tickets_legacy

logger = logging.getLogger(__name__)

CONNECTION_FAILURE_MESSAGE = (
    "I couldn't connect to the booking service, so nothing was booked. "
    "Please try again in a moment."
)

_DEFAULT_FAILURE_MESSAGES: dict[ActionIntent, str] = {
    ActionIntent.FOOD_ORDER: "Failed to book food order.",
    ActionIntent.MOVIE_BOOKING: "Failed to book movie tickets.",
    ActionIntent.LIST_BOOKINGS: "Failed to fetch bookings.",
    ActionIntent.LIST_MENU: "Failed to fetch the menu.",
}


class DispatchContractError(Exception):
    """Raised when asked to dispatch something validation should have stopped."""


def normalize_response(intent: ActionIntent, response: ServiceResponse) -> ActionResult:
    """Map a raw FasterBook response onto an ``ActionResult``."""
    if response.ok:
        return ActionResult.ok(intent, data=response.body, message=response.server_message() or "")
    return ActionResult.failed(
        intent,
        FailureKind.BUSINESS,
        response.server_message() or _DEFAULT_FAILURE_MESSAGES[intent],
        data=response.body,
    )


class Dispatcher:
    """Invokes the external call that matches each intent."""

    def __init__(
        self,
        client: FasterBookClient,
        image_client: ImageGenerationClient | None = None,
    ) -> None:
        self._client = client
        self._image_client = image_client

    async def dispatch(
        self,
        intent: ActionIntent,
        params: ExtractedParameters | None = None,
    ) -> ActionResult:
        """Dispatch a FasterBook action.

        Raises:
            DispatchContractError: *params* are missing or incomplete for
                *intent*, or *intent* is not a FasterBook action.
        """
        try:
            response = await self._call(intent, params)
        except FasterBookTransportError as exc:
            logger.warning("Dispatch of %s never reached FasterBook: %s", intent.value, exc)
            return ActionResult.failed(intent, FailureKind.TRANSPORT, CONNECTION_FAILURE_MESSAGE)

        result = normalize_response(intent, response)
        logger.info(
            "Dispatched %s → HTTP %d (%s)",
            intent.value, response.status_code, "success" if result.success else "declined",
        )
        return result

    async def _call(
        self,
        intent: ActionIntent,
        params: ExtractedParameters | None,
    ) -> ServiceResponse:
        if intent is ActionIntent.FOOD_ORDER:
            order = _require_food_order(params)
            return await self._client.book_food(order.item_id, order.quantity, order.address)
        if intent is ActionIntent.MOVIE_BOOKING:
            booking = _require_movie_booking(params)
            return await self._client.book_movie(booking.movie_id, booking.seats, booking.show_time)
        if intent is ActionIntent.LIST_BOOKINGS:
            return await self._client.get_bookings()
        if intent is ActionIntent.LIST_MENU:
            return await self._client.get_available()
        raise DispatchContractError(f"{intent.value} is not a FasterBook action")

    async def dispatch_legacy(self, intent: ActionIntent, message: str) -> ActionResult:
        """Run one of the general-mode legacy actions for *message*."""
        if intent is ActionIntent.IMAGE_GENERATION:
            return await self._generate_image(message)
        try:
            if intent is ActionIntent.GENERIC_FOOD_ORDER:
                data = book_food_legacy(message)
            elif intent is ActionIntent.GENERIC_TICKET_BOOKING:
                data = book_tickets_legacy(message)
            else:
                raise DispatchContractError(f"{intent.value} is not a legacy action")
        except LegacyBookingError as exc:
            return ActionResult.failed(intent, FailureKind.BUSINESS, str(exc))
        return ActionResult.ok(intent, data=data)

    async def _generate_image(self, message: str) -> ActionResult:
        intent = ActionIntent.IMAGE_GENERATION
        prompt = extract_image_prompt(message, IMAGE_KEYWORDS)
        if self._image_client is None:
            return ActionResult.failed(
                intent, FailureKind.BUSINESS, "Image generation is not configured.",
                data={"prompt": prompt},
            )
        try:
            image_url = await self._image_client.generate(prompt)
        except ImageGenerationError as exc:
            logger.error("Image generation failed: %s", exc)
            return ActionResult.failed(intent, FailureKind.BUSINESS, str(exc), data={"prompt": prompt})
        return ActionResult.ok(
            intent,
            data={"imageUrl": image_url, "prompt": prompt},
            message=f'I\'ve generated an image: "{prompt}"',
        )


def _require_food_order(params: ExtractedParameters | None) -> FoodOrderParams:
    if (
        not isinstance(params, FoodOrderParams)
        or not params.item_id
        or not params.address
        or params.quantity is None
        or params.quantity < 1
    ):
        raise DispatchContractError(f"Incomplete food order parameters: {params!r}")
    return params


def _require_movie_booking(params: ExtractedParameters | None) -> MovieBookingParams:
    if not isinstance(params, MovieBookingParams) or not params.movie_id or not params.seats:
        raise DispatchContractError(f"Incomplete movie booking parameters: {params!r}")
    return params
