"""Sentence-boundary chunking for uploaded documents."""

from __future__ import annotations

import re

DEFAULT_MAX_CHUNK_LENGTH = 2000

_SENTENCE_SPLIT = re.compile(r"(?<=[.?!])\s+")


def split_sentences(text: str) -> list[str]:
    """Split *text* on whitespace that follows ``.``, ``?`` or ``!``."""
    return [s for s in _SENTENCE_SPLIT.split(text) if s]


def chunk_text(text: str, max_length: int = DEFAULT_MAX_CHUNK_LENGTH) -> list[str]:
    """Greedily pack whole sentences into chunks of at most *max_length* characters.

    Text that already fits is returned untouched as a single chunk.
    Sentences inside a chunk are re-joined with one space, so the chunks
    reproduce the original up to whitespace at the split points.  A
    sentence longer than *max_length* becomes its own (oversized) chunk.
    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current = ""
    for sentence in split_sentences(text):
        if not current:
            current = sentence
        elif len(current) + 1 + len(sentence) <= max_length:
            current = f"{current} {sentence}"
        else:
            chunks.append(current)
            current = sentence

    if current:
        chunks.append(current)
    return chunks
