"""Assembles the grounding block prepended to conversational requests."""

from __future__ import annotations

from collections.abc import Iterable

from aura.documents.ranker import rank_chunks
from aura.documents.store import IngestedDocument

# Documents shorter than this go into the context verbatim
SMALL_DOCUMENT_THRESHOLD = 3000
CONTEXT_TOP_K = 2


def assemble_context(
    documents: Iterable[IngestedDocument],
    query: str,
    *,
    small_document_threshold: int = SMALL_DOCUMENT_THRESHOLD,
    top_k: int = CONTEXT_TOP_K,
) -> str:
    """Build the grounding block for *query* from a document snapshot.

    Short documents are included in full; longer ones contribute only their
    *top_k* most relevant chunks.  Returns ``""`` when nothing was included.
    """
    parts: list[str] = []
    for entry in documents:
        doc = entry.document
        if len(doc.raw_text) < small_document_threshold:
            parts.append(f"--- Content from {doc.name} ---\n{doc.raw_text}\n")
            continue

        relevant = rank_chunks(list(entry.chunks), query, top_k)
        if relevant:
            parts.append(f"--- Relevant sections from {doc.name} ---\n" + "\n\n".join(relevant) + "\n")

    if not parts:
        return ""
    return "Here are the uploaded documents for reference:\n\n" + "\n".join(parts) + "\n---\n\n"


def ground_message(documents: Iterable[IngestedDocument], message: str) -> str:
    """Prepend the grounding block (if any) to *message*."""
    return assemble_context(documents, message) + message
