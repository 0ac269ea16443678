"""Task records for dispatched actions and the sink that receives them.

Persistence and realtime notification live outside this package; the
orchestrator hands one ``TaskRecord`` per dispatched action to a
``TaskSink`` and carries on whether or not the sink succeeds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from aura.models import ActionIntent, ActionResult

logger = logging.getLogger(__name__)

# intent → (task_type, title)
_TASK_TYPES: dict[ActionIntent, tuple[str, str]] = {
    ActionIntent.FOOD_ORDER: ("restaurant", "FasterBook Food Order"),
    ActionIntent.MOVIE_BOOKING: ("ecommerce", "FasterBook Movie Booking"),
    ActionIntent.LIST_MENU: ("general", "FasterBook Menu"),
    ActionIntent.LIST_BOOKINGS: ("general", "FasterBook Bookings"),
    ActionIntent.GENERIC_FOOD_ORDER: ("restaurant", "Food Order"),
    ActionIntent.GENERIC_TICKET_BOOKING: ("ecommerce", "Ticket Booking"),
    ActionIntent.IMAGE_GENERATION: ("general", "Image Generation"),
}


@dataclass(frozen=True)
class TaskRecord:
    task_type: str
    status: str
    title: str
    description: str
    order_details: dict[str, Any]
    api_response: dict[str, Any]
    error_message: str | None = None
    completed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def build_task_record(result: ActionResult, user_input: str) -> TaskRecord:
    """Describe *result* as a task for the persistence layer."""
    task_type, title = _TASK_TYPES.get(result.intent, ("general", "Action"))
    if result.success:
        description = result.message or f"{title} completed"
    else:
        description = f"{title} failed"
    return TaskRecord(
        task_type=task_type,
        status="completed" if result.success else "failed",
        title=title,
        description=description,
        order_details={"user_input": user_input},
        api_response=dict(result.data),
        error_message=None if result.success else result.message,
    )


class TaskSink(Protocol):
    def emit(self, record: TaskRecord) -> None: ...


class LoggingTaskSink:
    """Default sink: writes each record to the log."""

    def emit(self, record: TaskRecord) -> None:
        logger.info(
            "Task %s [%s] %s: %s",
            record.task_type, record.status, record.title, record.description,
        )


def emit_task(sink: TaskSink, result: ActionResult, user_input: str) -> None:
    """Hand *result* to *sink*; sink errors are logged and swallowed."""
    try:
        sink.emit(build_task_record(result, user_input))
    except Exception:
        logger.exception("Task sink failed for %s", result.intent.value)
