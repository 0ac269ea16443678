"""Per-session store of uploaded documents and their chunks.

Chunking happens outside the lock so a large upload never blocks readers;
only the swap of the finished entry is serialized.  Readers always work on
an immutable snapshot, so an upload or removal that lands mid-assembly is
either fully visible or not at all.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from aura.documents.chunker import DEFAULT_MAX_CHUNK_LENGTH, chunk_text
from aura.models import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestedDocument:
    document: Document
    chunks: tuple[str, ...]


class DocumentStore:
    """Documents keyed by name, in upload order."""

    def __init__(self, max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH) -> None:
        self._max_chunk_length = max_chunk_length
        self._entries: dict[str, IngestedDocument] = {}
        self._lock = threading.Lock()

    def add(self, document: Document) -> IngestedDocument:
        """Chunk and store *document*, replacing any earlier upload with the same name."""
        entry = IngestedDocument(
            document=document,
            chunks=tuple(chunk_text(document.raw_text, self._max_chunk_length)),
        )
        with self._lock:
            replaced = self._entries.pop(document.name, None) is not None
            self._entries[document.name] = entry
        logger.info(
            "%s document %s (%d chars, %d chunks)",
            "Replaced" if replaced else "Ingested",
            document.name, len(document.raw_text), len(entry.chunks),
        )
        return entry

    def remove(self, name: str) -> bool:
        """Drop the document called *name*.  Returns ``True`` if it existed."""
        with self._lock:
            removed = self._entries.pop(name, None) is not None
        if removed:
            logger.info("Removed document %s", name)
        return removed

    def snapshot(self) -> tuple[IngestedDocument, ...]:
        """Return the current documents as an immutable, consistent tuple."""
        with self._lock:
            return tuple(self._entries.values())

    def get(self, name: str) -> IngestedDocument | None:
        with self._lock:
            return self._entries.get(name)

    def __len__(self) -> int:
        return len(self._entries)
