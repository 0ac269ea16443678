"""Tests for document chunking, ranking, context assembly and the store."""

from __future__ import annotations

import pytest

from aura.documents.chunker import chunk_text, split_sentences
from aura.documents.context import assemble_context, ground_message
from aura.documents.ranker import rank_chunks, score_chunk, score_chunks
from aura.documents.store import DocumentStore
from aura.models import Document


def _doc(name: str, text: str) -> Document:
    return Document(name=name, mime_type="text/plain", raw_text=text, byte_size=len(text))


# ── Chunker ─────────────────────────────────────────────────────────


class TestChunker:
    def test_short_text_is_returned_unchanged(self):
        text = "One sentence.   Two  sentences!"
        assert chunk_text(text, max_length=100) == [text]

    def test_text_exactly_at_max_is_one_chunk(self):
        text = "a" * 50
        assert chunk_text(text, max_length=50) == [text]

    def test_splits_on_sentence_boundaries(self):
        text = "Alpha beta. Gamma delta? Epsilon zeta!"
        assert split_sentences(text) == ["Alpha beta.", "Gamma delta?", "Epsilon zeta!"]

    def test_greedy_packing_respects_max_length(self):
        text = "Aaaa aaaa. Bbbb bbbb. Cccc cccc. Dddd dddd."
        chunks = chunk_text(text, max_length=22)
        assert chunks == ["Aaaa aaaa. Bbbb bbbb.", "Cccc cccc. Dddd dddd."]
        assert all(len(chunk) <= 22 for chunk in chunks)

    def test_chunks_reconstruct_text_up_to_whitespace(self):
        text = "First point here.  Second point\nfollows. Third one? Yes! " * 30
        chunks = chunk_text(text, max_length=120)
        assert len(chunks) > 1
        assert " ".join(chunks).split() == text.split()

    def test_oversized_sentence_becomes_its_own_chunk(self):
        long_sentence = "x" * 60 + "."
        text = f"Short one. {long_sentence} Short two."
        chunks = chunk_text(text, max_length=30)
        assert chunks == ["Short one.", long_sentence, "Short two."]

    def test_rejects_non_positive_max_length(self):
        with pytest.raises(ValueError):
            chunk_text("anything", max_length=0)


# ── Ranker ──────────────────────────────────────────────────────────


class TestRanker:
    def test_score_counts_query_token_occurrences(self):
        # "refund" appears twice in the query and once in the chunk
        assert score_chunk("Our refund policy is simple", ["refund", "refund", "policy"]) == 3

    def test_scoring_is_case_insensitive(self):
        scored = score_chunks(["The REFUND Policy"], "refund policy")
        assert scored[0].score == 2

    def test_returns_at_most_top_k(self):
        chunks = ["a b", "b c", "c d", "d e"]
        assert len(rank_chunks(chunks, "b c", top_k=2)) == 2

    def test_returns_all_when_fewer_than_k(self):
        chunks = ["only one"]
        assert rank_chunks(chunks, "one", top_k=2) == ["only one"]

    def test_orders_by_descending_score(self):
        chunks = ["nothing relevant", "refund policy details", "refund only"]
        assert rank_chunks(chunks, "refund policy", top_k=3) == [
            "refund policy details", "refund only", "nothing relevant",
        ]

    def test_ties_keep_input_order(self):
        chunks = ["apple one", "banana", "apple two", "apple three"]
        assert rank_chunks(chunks, "apple", top_k=3) == ["apple one", "apple two", "apple three"]

    def test_zero_score_chunks_remain_eligible(self):
        chunks = ["alpha", "beta", "gamma"]
        assert rank_chunks(chunks, "delta", top_k=2) == ["alpha", "beta"]

    def test_non_positive_top_k_returns_nothing(self):
        assert rank_chunks(["alpha"], "alpha", top_k=0) == []


# ── Context assembly ────────────────────────────────────────────────


class TestContextAssembly:
    def test_no_documents_gives_empty_block(self):
        assert assemble_context([], "anything") == ""
        assert ground_message([], "What is the refund policy?") == "What is the refund policy?"

    def test_small_document_is_included_verbatim(self):
        store = DocumentStore()
        store.add(_doc("notes.txt", "Refunds take five days."))
        block = assemble_context(store.snapshot(), "refund")
        assert block.startswith("Here are the uploaded documents for reference:")
        assert "--- Content from notes.txt ---\nRefunds take five days.\n" in block

    def test_large_document_contributes_top_two_chunks(self):
        filler = "Unrelated sentence about weather. " * 50
        text = filler + "The refund policy allows returns within thirty days. " + filler
        store = DocumentStore(max_chunk_length=300)
        entry = store.add(_doc("policy.txt", text))
        assert len(text) >= 3000
        assert len(entry.chunks) > 2

        block = assemble_context(store.snapshot(), "refund policy")
        assert "--- Relevant sections from policy.txt ---" in block
        section = block.split("--- Relevant sections from policy.txt ---\n")[1]
        assert "refund policy allows returns" in section
        assert section.count("\n\n") >= 1

    def test_two_documents_are_labelled_in_store_order(self):
        store = DocumentStore()
        store.add(_doc("first.txt", "Alpha content."))
        store.add(_doc("second.txt", "Beta content."))
        block = assemble_context(store.snapshot(), "content")
        assert block.index("first.txt") < block.index("second.txt")
        assert "Alpha content." in block
        assert "Beta content." in block

    def test_grounded_message_ends_with_utterance(self):
        store = DocumentStore()
        store.add(_doc("notes.txt", "Opening hours are 9 to 5."))
        grounded = ground_message(store.snapshot(), "When do you open?")
        assert grounded.endswith("---\n\nWhen do you open?")


# ── Document store ──────────────────────────────────────────────────


class TestDocumentStore:
    def test_add_chunks_document(self):
        store = DocumentStore(max_chunk_length=20)
        entry = store.add(_doc("a.txt", "One sentence here. Another sentence here."))
        assert entry.chunks == ("One sentence here.", "Another sentence here.")

    def test_reupload_replaces_and_moves_to_end(self):
        store = DocumentStore()
        store.add(_doc("a.txt", "old"))
        store.add(_doc("b.txt", "b"))
        store.add(_doc("a.txt", "new"))
        names = [entry.document.name for entry in store.snapshot()]
        assert names == ["b.txt", "a.txt"]
        assert store.get("a.txt").document.raw_text == "new"
        assert len(store) == 2

    def test_remove(self):
        store = DocumentStore()
        store.add(_doc("a.txt", "text"))
        assert store.remove("a.txt") is True
        assert store.remove("a.txt") is False
        assert store.get("a.txt") is None

    def test_snapshot_is_unaffected_by_later_changes(self):
        store = DocumentStore()
        store.add(_doc("a.txt", "text"))
        snapshot = store.snapshot()
        store.remove("a.txt")
        assert [entry.document.name for entry in snapshot] == ["a.txt"]
