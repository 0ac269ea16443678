"""Keyword-overlap relevance ranking of document chunks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoredChunk:
    text: str
    score: int
    position: int


def _tokenize(text: str) -> list[str]:
    return text.lower().split()


def score_chunk(chunk: str, query_tokens: list[str]) -> int:
    """Count query tokens (repeats included) that occur as tokens of *chunk*."""
    chunk_tokens = set(_tokenize(chunk))
    return sum(1 for token in query_tokens if token in chunk_tokens)


def score_chunks(chunks: list[str], query: str) -> list[ScoredChunk]:
    """Score every chunk, best first; ties keep their original order."""
    query_tokens = _tokenize(query)
    scored = [
        ScoredChunk(text=chunk, score=score_chunk(chunk, query_tokens), position=i)
        for i, chunk in enumerate(chunks)
    ]
    # list.sort is stable, so equal scores stay in input order
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def rank_chunks(chunks: list[str], query: str, top_k: int) -> list[str]:
    """Return the *top_k* chunks most relevant to *query*."""
    if top_k <= 0:
        return []
    return [s.text for s in score_chunks(chunks, query)[:top_k]]
