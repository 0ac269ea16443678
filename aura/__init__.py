"""A.U.R.A., a conversational assistant with a FasterBook booking agent.

Architecture Overview
=====================

Every utterance goes through a **LangGraph** state machine (``aura/agent.py``)
that decides between two kinds of answer:

1. **Conversation**: Claude answers with the session's uploaded documents
   prepended as grounding context (short documents verbatim, long ones as
   their two most relevant chunks).

2. **Action**: in FasterBook Agent Mode, a keyword router picks one of four
   booking actions (menu, bookings, movie, food).  Food and movie requests
   go through a constrained JSON extraction call against the live catalog,
   are validated field by field, and only then dispatched to the FasterBook
   REST API.  A missing detail becomes a follow-up question and the next
   message resumes the same request.

Key Design Decisions
--------------------
- **Explicit mode**: the conversation mode is a frozen ``ConversationContext``
  handed to the graph on every call, so sessions never share mode state.
- **Deterministic routing**: intent classification is keyword-based with a
  fixed priority order; only extraction and conversation use an LLM.
- **No silent retries**: each failure kind (see ``FailureKind``) maps to its
  own reply and is never retried.
- **Catalog cache**: ``GET /api/available`` is cached for five minutes in a
  ``TTLCache`` with an injectable clock.
- **Dual Interface**: FastAPI server (production) + CLI chat loop (development/testing).

Package Structure
-----------------
- ``aura/agent.py``: LangGraph StateGraph and the per-session ``AuraAgent`` facade
- ``aura/config.py``: Centralized configuration from environment variables
- ``aura/models.py``: Shared domain types (modes, intents, results, catalog)
- ``aura/prompts.py``: System, clarification and extraction prompts
- ``aura/server.py``: FastAPI application
- ``aura/main.py``: CLI chat interface
- ``aura/routing/``: Intent classification and conversation mode
- ``aura/actions/``: Parameter extraction, dispatch and reply formatting
- ``aura/documents/``: Chunking, ranking, context assembly and the document store
- ``aura/services/``: FasterBook and image clients, cache, metrics, task records
- ``aura/api/``: FastAPI routes and Pydantic schemas
"""
