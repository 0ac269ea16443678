"""Conversation mode as an explicit, immutable per-call context."""

from __future__ import annotations

from dataclasses import dataclass, replace

from aura.models import ActionIntent, ConversationMode
from aura.routing.intent import AGENT_PRIORITY, LEGACY_PRIORITY, classify


@dataclass(frozen=True)
class ConversationContext:
    """Everything that decides which path an utterance takes.

    A new context is produced on every switch; nothing is mutated in place,
    so concurrent sessions never observe each other's mode.

    ``epoch`` counts the switches made so far.  A follow-up created under
    one epoch is stale under any other, even when the mode reads the same.
    """

    mode: ConversationMode = ConversationMode.GENERAL
    epoch: int = 0
    agent_priority: tuple[tuple[ActionIntent, tuple[str, ...]], ...] = AGENT_PRIORITY
    legacy_priority: tuple[tuple[ActionIntent, tuple[str, ...]], ...] = LEGACY_PRIORITY

    @property
    def is_agent(self) -> bool:
        return self.mode is ConversationMode.AGENT_BOOKING

    def classify(self, utterance: str) -> ActionIntent:
        return classify(
            self.mode,
            utterance,
            agent_priority=self.agent_priority,
            legacy_priority=self.legacy_priority,
        )

    def switch_to(self, mode: ConversationMode) -> tuple[ConversationContext, str | None]:
        """Return the context for *mode* and the announcement to show.

        Switching to the mode already active is a no-op with no announcement.
        """
        if mode is self.mode:
            return self, None
        return replace(self, mode=mode, epoch=self.epoch + 1), f"Switched to *{mode.display_name}*."

    def toggled(self) -> tuple[ConversationContext, str | None]:
        other = (
            ConversationMode.GENERAL
            if self.is_agent
            else ConversationMode.AGENT_BOOKING
        )
        return self.switch_to(other)
