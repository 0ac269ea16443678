"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from aura.models import ConversationMode


class ChatRequest(BaseModel):
    """Incoming chat message from the frontend."""

    message: str = Field(..., min_length=1, max_length=4000, description="The user's message")
    session_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique session identifier for conversation continuity",
    )
    mode: ConversationMode | None = Field(
        default=None,
        description="Switch the session to this mode before answering",
    )


class ActionResultPayload(BaseModel):
    intent: str
    success: bool
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    failure: str | None = None


class ChatResponse(BaseModel):
    """Response from the agent."""

    reply: str = Field(..., description="The agent's response message")
    session_id: str = Field(..., description="The session ID for this conversation")
    mode: ConversationMode
    intent: str = Field(..., description="Classified intent, 'none' for conversation")
    result: ActionResultPayload | None = Field(
        default=None, description="Outcome of the action, when one was attempted",
    )
    awaiting_details: bool = Field(
        default=False, description="True when the reply asks for a missing booking detail",
    )
    announcement: str | None = None


class ModeRequest(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=100)
    mode: ConversationMode | None = Field(
        default=None, description="Target mode; omit to toggle",
    )


class ModeResponse(BaseModel):
    session_id: str
    mode: ConversationMode
    announcement: str | None = None


class DocumentUploadRequest(BaseModel):
    """Already-extracted text of an uploaded file."""

    session_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(default="text/plain", max_length=255)
    text: str = Field(..., description="Extracted plain text of the document")
    size: int | None = Field(default=None, ge=0, description="Original file size in bytes")


class DocumentInfo(BaseModel):
    name: str
    mime_type: str
    byte_size: int
    chunk_count: int
    ingested_at: datetime


class DocumentListResponse(BaseModel):
    session_id: str
    documents: list[DocumentInfo]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "aura-agent"
