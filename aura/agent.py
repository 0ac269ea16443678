"""LangGraph orchestrator for the A.U.R.A. agent.

Architecture:
  Each user utterance runs once through a StateGraph:

    1. **router**   : pure keyword classification under the per-call
                      ``ConversationContext`` (no LLM call); resumes a
                      pending follow-up when one is waiting
    2. **extract**  : fetch the catalog, then constrained JSON extraction
                      with the extraction model
    3. **dispatch** : one FasterBook call, normalized into an ActionResult
    4. **legacy**   : general-mode image / mock booking actions
    5. **clarify**  : agent mode with no recognised intent: one short
                      clarifying question under a strict system prompt
    6. **chatbot**  : general mode: the conversational model, grounded in
                      the session's uploaded documents

  Routing:
    router → (food / movie)        → extract → (complete?) → dispatch → END
                                              → (missing?)  → END
    router → (menu / bookings)     → dispatch → END
    router → (legacy intent)       → legacy → END
    router → (none, agent mode)    → clarify → END
    router → (none, general mode)  → chatbot → END

  Memory:
    Conversation history and the pending follow-up are checkpointed per
    session with LangGraph's MemorySaver.  The conversation mode and the
    document store are *not* state: they arrive with every call in
    ``config["configurable"]``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Annotated, Any

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AIMessage, AnyMessage, HumanMessage, SystemMessage
from langchain_core.runnables import RunnableConfig
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from typing_extensions import TypedDict

from aura.actions.dispatcher import CONNECTION_FAILURE_MESSAGE, Dispatcher
from aura.actions.extractor import (
    ExtractionParseError,
    FoodOrderParams,
    MissingDetailsError,
    MovieBookingParams,
    ParameterExtractor,
    response_text,
)
from aura.actions.replies import format_reply
from aura.config import ANTHROPIC_API_KEY, EXTRACTION_MODEL_NAME, HF_TOKEN, MODEL_NAME
from aura.documents.context import ground_message
from aura.documents.store import DocumentStore
from aura.models import ActionIntent, ActionResult, ConversationMode, FailureKind
from aura.prompts import AGENT_SYSTEM_PROMPT, get_system_prompt
from aura.routing.mode import ConversationContext
from aura.services.fasterbook_client import (
    FasterBookAPIError,
    FasterBookClient,
    FasterBookTransportError,
    get_fasterbook_client,
)
from aura.services.image_generation import ImageGenerationClient, get_image_generation_client
from aura.services.metrics import metrics
from aura.services.tasks import LoggingTaskSink, TaskSink, emit_task

logger = logging.getLogger(__name__)

EXTRACTION_FAILURE_MESSAGE = (
    "Sorry, I couldn't process that request. Could you rephrase it with the "
    "item or movie you want?"
)
CLARIFICATION_FALLBACK = (
    "Would you like to order food, book movie tickets, see the menu, or check your bookings?"
)


# ── State schema ─────────────────────────────────────────────────────


class AgentState(TypedDict, total=False):
    """The state that flows through the graph.

    ``messages`` uses the ``add_messages`` reducer and holds the raw
    utterances and replies; grounding blocks are never written back to it.

    ``pending`` survives between turns (``{"original_message", "intent"}``)
    while the agent waits for a missing detail.  ``mode`` and ``epoch`` record
    the context the pending follow-up was created under.  Every other key is
    per-turn plumbing reset by the router.
    """

    messages: Annotated[list[AnyMessage], add_messages]
    mode: str
    epoch: int
    intent: str
    query: str
    params: dict[str, Any] | None
    result: dict[str, Any] | None
    reply: str
    pending: dict[str, str] | None


# ── LLM builders ────────────────────────────────────────────────────


def _build_chat_llm() -> ChatAnthropic:
    """Build the conversational LLM used for general chat and clarification."""
    return ChatAnthropic(
        model=MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=0.7,
        max_tokens=1024,
    )


def _build_extraction_llm() -> ChatAnthropic:
    """Build the deterministic LLM used for JSON parameter extraction."""
    return ChatAnthropic(
        model=EXTRACTION_MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=0.0,
        max_tokens=256,
    )


# ── Config accessors ────────────────────────────────────────────────


def _context_from(config: RunnableConfig | None) -> ConversationContext:
    configurable = (config or {}).get("configurable", {})
    return configurable.get("context") or ConversationContext()


def _documents_from(config: RunnableConfig | None) -> DocumentStore | None:
    return (config or {}).get("configurable", {}).get("documents")


def _last_human_text(messages: list[AnyMessage]) -> str:
    for msg in reversed(messages):
        if isinstance(msg, HumanMessage):
            return response_text(msg)
    return ""


def _finish(
    result: ActionResult,
    *,
    pending: dict[str, str] | None = None,
) -> dict:
    """State update that ends the turn with *result* as the reply."""
    outcome = "success" if result.success else result.failure.value
    metrics.record_action(result.intent.value, outcome)
    reply = format_reply(result)
    return {
        "result": result.to_dict(),
        "reply": reply,
        "pending": pending,
        "messages": [AIMessage(content=reply)],
    }


# ── Node: router (keywords, no LLM) ─────────────────────────────────


def router_node(state: AgentState, config: RunnableConfig) -> dict:
    """Classify the latest utterance, or resume a pending follow-up."""
    context = _context_from(config)
    utterance = _last_human_text(state.get("messages", []))

    pending = state.get("pending")
    stale = (
        state.get("mode") != context.mode.value
        or state.get("epoch", 0) != context.epoch
    )
    if pending and stale:
        logger.debug("Mode switched; dropping pending %s follow-up", pending["intent"])
        pending = None

    update: dict[str, Any] = {
        "mode": context.mode.value,
        "epoch": context.epoch,
        "params": None,
        "result": None,
        "reply": "",
        "pending": None,
    }

    if context.is_agent and pending:
        query = f"{pending['original_message']} {utterance}"
        logger.debug("Resuming %s follow-up: %r", pending["intent"], query)
        return {**update, "intent": pending["intent"], "query": query}

    intent = context.classify(utterance)
    logger.debug("Classified as %s (mode: %s)", intent.value, context.mode.value)
    return {**update, "intent": intent.value, "query": utterance}


# ── Node: extract (catalog + constrained JSON) ──────────────────────


def _make_extract_node(extractor: ParameterExtractor, client: FasterBookClient):
    """Create the node that turns the query into validated parameters.

    Only a complete, catalog-checked parameter set is written to
    ``state["params"]``; every other outcome ends the turn here.
    """

    async def extract_node(state: AgentState) -> dict:
        intent = ActionIntent(state["intent"])
        query = state["query"]

        try:
            catalog = await client.get_catalog()
        except FasterBookTransportError:
            return _finish(
                ActionResult.failed(intent, FailureKind.TRANSPORT, CONNECTION_FAILURE_MESSAGE)
            )
        except FasterBookAPIError as exc:
            return _finish(ActionResult.failed(intent, FailureKind.BUSINESS, str(exc)))

        try:
            params = await extractor.extract(intent, query, catalog)
        except MissingDetailsError as exc:
            logger.info("Missing %s for %s; asking the user", exc.field, intent.value)
            return _finish(
                ActionResult.failed(
                    intent, FailureKind.MISSING_DETAILS, exc.prompt, data={"field": exc.field},
                ),
                pending={"original_message": query, "intent": intent.value},
            )
        except ExtractionParseError as exc:
            logger.warning("Extraction for %s unusable: %s", intent.value, exc)
            return _finish(
                ActionResult.failed(intent, FailureKind.EXTRACTION_PARSE, EXTRACTION_FAILURE_MESSAGE)
            )
        except Exception:
            logger.exception("Extraction call for %s failed", intent.value)
            return _finish(
                ActionResult.failed(intent, FailureKind.EXTRACTION_PARSE, EXTRACTION_FAILURE_MESSAGE)
            )

        return {"params": params.model_dump(by_alias=True)}

    return extract_node


# ── Node: dispatch (one FasterBook call) ────────────────────────────


def _make_dispatch_node(dispatcher: Dispatcher, task_sink: TaskSink):
    """Create the node that performs the FasterBook call and reports it."""

    async def dispatch_node(state: AgentState) -> dict:
        intent = ActionIntent(state["intent"])
        raw = state.get("params")
        params = None
        if intent is ActionIntent.FOOD_ORDER and raw is not None:
            params = FoodOrderParams.model_validate(raw)
        elif intent is ActionIntent.MOVIE_BOOKING and raw is not None:
            params = MovieBookingParams.model_validate(raw)

        result = await dispatcher.dispatch(intent, params)
        emit_task(task_sink, result, state["query"])
        return _finish(result)

    return dispatch_node


# ── Node: legacy (general-mode actions) ─────────────────────────────


def _make_legacy_node(dispatcher: Dispatcher, task_sink: TaskSink):
    async def legacy_node(state: AgentState) -> dict:
        intent = ActionIntent(state["intent"])
        result = await dispatcher.dispatch_legacy(intent, state["query"])
        emit_task(task_sink, result, state["query"])
        return _finish(result)

    return legacy_node


# ── Node: clarify (agent mode, no intent) ───────────────────────────


def _make_clarify_node(llm):
    """Create the node that asks for a booking request instead of answering.

    A failed LLM call degrades to a fixed clarifying question; the user
    still gets a reply and the booking flow stays available.
    """

    async def clarify_node(state: AgentState) -> dict:
        system = SystemMessage(content=AGENT_SYSTEM_PROMPT)
        t0 = time.perf_counter()
        try:
            response = await llm.ainvoke([system] + state["messages"])
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_success("anthropic", "clarify", latency_ms=elapsed)
            reply = response_text(response).strip() or CLARIFICATION_FALLBACK
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(
                "anthropic", "clarify",
                error_type=type(exc).__name__, latency_ms=elapsed,
            )
            logger.warning("Clarification call failed, using fallback: %s", exc)
            reply = CLARIFICATION_FALLBACK
        return {"reply": reply, "messages": [AIMessage(content=reply)]}

    return clarify_node


# ── Node: chatbot (general mode, grounded) ──────────────────────────


def _make_chatbot_node(llm):
    """Create the conversational node.

    The grounding block is built from a snapshot of the session's documents
    and prepended to the latest utterance for this call only.
    """

    async def chatbot_node(state: AgentState, config: RunnableConfig) -> dict:
        logger.debug("chatbot node invoked: model: %s", MODEL_NAME)
        history = list(state["messages"])
        store = _documents_from(config)
        if store is not None and history:
            grounded = ground_message(store.snapshot(), state["query"])
            history[-1] = HumanMessage(content=grounded)

        system = SystemMessage(content=get_system_prompt())
        t0 = time.perf_counter()
        try:
            response = await llm.ainvoke([system] + history)
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_success("anthropic", "llm_invoke", latency_ms=elapsed)
            logger.debug("chatbot responded in %.0fms", elapsed)
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(
                "anthropic", "llm_invoke",
                error_type=type(exc).__name__, latency_ms=elapsed,
            )
            raise
        return {"reply": response_text(response), "messages": [response]}

    return chatbot_node


# ── Conditional edges ────────────────────────────────────────────────


def route_by_intent(state: AgentState) -> str:
    """Pick the path for the router's classification."""
    intent = ActionIntent(state.get("intent", ActionIntent.NONE.value))
    if intent is ActionIntent.NONE:
        if state.get("mode") == ConversationMode.AGENT_BOOKING.value:
            return "clarify"
        return "chatbot"
    if intent.is_legacy:
        return "legacy"
    if intent.needs_parameters:
        return "extract"
    return "dispatch"


def route_after_extract(state: AgentState) -> str:
    """Dispatch only when extraction produced a complete parameter set."""
    if state.get("params"):
        return "dispatch"
    return END


# ── Graph assembly ───────────────────────────────────────────────────


def create_aura_agent(
    *,
    chat_llm=None,
    extraction_llm=None,
    client: FasterBookClient | None = None,
    image_client: ImageGenerationClient | None = None,
    task_sink: TaskSink | None = None,
    checkpointer=None,
):
    """Build and compile the A.U.R.A. LangGraph agent.

    Returns a compiled graph that can be invoked with:
        await graph.ainvoke(
            {"messages": [HumanMessage(content="...")]},
            config={"configurable": {
                "thread_id": "session-123",
                "context": ConversationContext(mode=ConversationMode.AGENT_BOOKING),
                "documents": document_store,
            }},
        )
    """
    chat_llm = chat_llm or _build_chat_llm()
    extraction_llm = extraction_llm or _build_extraction_llm()
    client = client or get_fasterbook_client()
    if image_client is None and HF_TOKEN:
        image_client = get_image_generation_client()
    task_sink = task_sink or LoggingTaskSink()
    dispatcher = Dispatcher(client, image_client)

    graph = StateGraph(AgentState)

    graph.add_node("router", router_node)
    graph.add_node("extract", _make_extract_node(ParameterExtractor(extraction_llm), client))
    graph.add_node("dispatch", _make_dispatch_node(dispatcher, task_sink))
    graph.add_node("legacy", _make_legacy_node(dispatcher, task_sink))
    graph.add_node("clarify", _make_clarify_node(chat_llm))
    graph.add_node("chatbot", _make_chatbot_node(chat_llm))

    graph.set_entry_point("router")
    graph.add_conditional_edges(
        "router",
        route_by_intent,
        {
            "extract": "extract",
            "dispatch": "dispatch",
            "legacy": "legacy",
            "clarify": "clarify",
            "chatbot": "chatbot",
        },
    )
    graph.add_conditional_edges(
        "extract", route_after_extract, {"dispatch": "dispatch", END: END},
    )
    for terminal in ("dispatch", "legacy", "clarify", "chatbot"):
        graph.add_edge(terminal, END)

    compiled = graph.compile(checkpointer=checkpointer or MemorySaver())
    logger.debug(
        "A.U.R.A. agent compiled: chat: %s, extraction: %s, image generation: %s",
        MODEL_NAME, EXTRACTION_MODEL_NAME, "on" if image_client else "off",
    )
    return compiled


# ── Session facade ──────────────────────────────────────────────────


@dataclass(frozen=True)
class AgentReply:
    reply: str
    intent: ActionIntent
    result: ActionResult | None = None
    awaiting_details: bool = False
    announcement: str | None = None


class AuraAgent:
    """Per-session front door to the compiled graph.

    Holds each session's ``ConversationContext`` and ``DocumentStore`` and
    serializes turns within a session; different sessions run concurrently.

    Session state lives in process memory, like the ``MemorySaver``
    checkpoints, and stays until ``end_session`` drops it.
    """

    def __init__(self, graph=None) -> None:
        self._graph = graph if graph is not None else create_aura_agent()
        self._contexts: dict[str, ConversationContext] = {}
        self._documents: dict[str, DocumentStore] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._registry_lock = threading.Lock()

    def context(self, session_id: str) -> ConversationContext:
        with self._registry_lock:
            return self._contexts.get(session_id, ConversationContext())

    def set_mode(self, session_id: str, mode: ConversationMode) -> str | None:
        """Switch *session_id* to *mode*; returns the announcement, if any."""
        with self._registry_lock:
            current = self._contexts.get(session_id, ConversationContext())
            updated, announcement = current.switch_to(mode)
            self._contexts[session_id] = updated
        if announcement:
            logger.info("Session %s switched to %s", session_id, mode.value)
        return announcement

    def toggle_mode(self, session_id: str) -> tuple[ConversationMode, str | None]:
        other = (
            ConversationMode.GENERAL
            if self.context(session_id).is_agent
            else ConversationMode.AGENT_BOOKING
        )
        return other, self.set_mode(session_id, other)

    def documents(self, session_id: str) -> DocumentStore:
        with self._registry_lock:
            store = self._documents.get(session_id)
            if store is None:
                store = self._documents[session_id] = DocumentStore()
            return store

    def end_session(self, session_id: str) -> None:
        """Forget everything held for *session_id*, conversation history included."""
        with self._registry_lock:
            self._contexts.pop(session_id, None)
            self._documents.pop(session_id, None)
            self._locks.pop(session_id, None)
        self._graph.checkpointer.delete_thread(session_id)
        logger.info("Session %s ended", session_id)

    def _session_lock(self, session_id: str) -> asyncio.Lock:
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = asyncio.Lock()
            return lock

    async def chat(
        self,
        message: str,
        session_id: str,
        *,
        mode: ConversationMode | None = None,
    ) -> AgentReply:
        """Run one utterance through the graph for *session_id*.

        When *mode* is given the session switches to it first.
        """
        announcement = self.set_mode(session_id, mode) if mode is not None else None

        async with self._session_lock(session_id):
            state = await self._graph.ainvoke(
                {"messages": [HumanMessage(content=message)]},
                config={
                    "configurable": {
                        "thread_id": session_id,
                        "context": self.context(session_id),
                        "documents": self.documents(session_id),
                    }
                },
            )

        raw_result = state.get("result")
        return AgentReply(
            reply=state.get("reply", ""),
            intent=ActionIntent(state.get("intent", ActionIntent.NONE.value)),
            result=ActionResult.from_dict(raw_result) if raw_result else None,
            awaiting_details=bool(state.get("pending")),
            announcement=announcement,
        )
