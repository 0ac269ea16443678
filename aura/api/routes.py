"""FastAPI route definitions for the A.U.R.A. agent API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from aura.api.schemas import (
    ActionResultPayload,
    ChatRequest,
    ChatResponse,
    DocumentInfo,
    DocumentListResponse,
    DocumentUploadRequest,
    HealthResponse,
    ModeRequest,
    ModeResponse,
)
from aura.models import Document

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_agent(request: Request):
    """Retrieve the ``AuraAgent`` facade from app state.

    The agent is initialised once during the FastAPI lifespan (see
    ``server.py``).
    """
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(
            status_code=503,
            detail="The agent is still starting up. Please try again in a moment.",
        )
    return agent


def _document_info(entry) -> DocumentInfo:
    doc = entry.document
    return DocumentInfo(
        name=doc.name,
        mime_type=doc.mime_type,
        byte_size=doc.byte_size,
        chunk_count=len(entry.chunks),
        ingested_at=doc.ingested_at,
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, http_request: Request):
    """Send a message to the agent and get a response.

    The session_id keeps conversation history, mode, uploaded documents and
    any pending booking follow-up together across requests.
    """
    agent = _get_agent(http_request)
    request_id = getattr(http_request.state, "request_id", "?")

    try:
        answer = await agent.chat(request.message, request.session_id, mode=request.mode)
    except Exception as e:
        # Full traceback stays in the server log
        logger.exception("[%s] Error processing chat request", request_id)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e

    result = None
    if answer.result is not None:
        result = ActionResultPayload(**answer.result.to_dict())

    return ChatResponse(
        reply=answer.reply,
        session_id=request.session_id,
        mode=agent.context(request.session_id).mode,
        intent=answer.intent.value,
        result=result,
        awaiting_details=answer.awaiting_details,
        announcement=answer.announcement,
    )


@router.post("/mode", response_model=ModeResponse)
async def switch_mode(request: ModeRequest, http_request: Request):
    """Switch (or toggle) the conversation mode of a session."""
    agent = _get_agent(http_request)
    if request.mode is None:
        mode, announcement = agent.toggle_mode(request.session_id)
    else:
        mode = request.mode
        announcement = agent.set_mode(request.session_id, mode)
    return ModeResponse(session_id=request.session_id, mode=mode, announcement=announcement)


@router.post("/documents", response_model=DocumentInfo, status_code=201)
async def upload_document(request: DocumentUploadRequest, http_request: Request):
    """Attach already-extracted document text to a session.

    Uploading under an existing name replaces the earlier document.
    """
    agent = _get_agent(http_request)
    document = Document(
        name=request.name,
        mime_type=request.mime_type,
        raw_text=request.text,
        byte_size=request.size if request.size is not None else len(request.text.encode("utf-8")),
    )
    entry = agent.documents(request.session_id).add(document)
    return _document_info(entry)


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(http_request: Request, session_id: str = Query(..., min_length=1)):
    agent = _get_agent(http_request)
    entries = agent.documents(session_id).snapshot()
    return DocumentListResponse(
        session_id=session_id,
        documents=[_document_info(entry) for entry in entries],
    )


@router.delete("/documents/{name}", status_code=204)
async def remove_document(name: str, http_request: Request, session_id: str = Query(..., min_length=1)):
    agent = _get_agent(http_request)
    if not agent.documents(session_id).remove(name):
        raise HTTPException(status_code=404, detail=f"No document named '{name}'.")


@router.delete("/sessions/{session_id}", status_code=204)
async def end_session(session_id: str, http_request: Request):
    """Drop a session's history, mode, documents and any pending follow-up."""
    agent = _get_agent(http_request)
    agent.end_session(session_id)
