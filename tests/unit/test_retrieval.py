"""Unit tests for similarity scoring and the manual retriever."""

import math
from unittest.mock import MagicMock

import pytest

from manual_rag.errors import RetrievalError
from manual_rag.retrieval.retriever import ManualRetriever
from manual_rag.retrieval.similarity import cosine_similarities, cosine_similarity


class TestCosine:
    def test_identical_and_opposite(self) -> None:
        assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_zero_vector_scores_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_length_mismatch(self) -> None:
        with pytest.raises(RetrievalError):
            cosine_similarity([1.0], [1.0, 2.0])

    def test_batch_scores(self) -> None:
        scores = cosine_similarities([1.0, 0.0], [[1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
        assert list(scores) == pytest.approx([1.0, 1 / math.sqrt(2), 0.0])


def _retriever(store, query_vector, k=5) -> ManualRetriever:
    embedder = MagicMock()
    embedder.embed_query.return_value = query_vector
    return ManualRetriever(embedder, store, default_k=k)


class TestManualRetriever:
    def test_ranks_descending(self, memory_store, make_record) -> None:
        memory_store.replace(
            "A",
            [
                make_record("A", 0, [0.0, 1.0, 0.0]),
                make_record("A", 1, [1.0, 0.0, 0.0]),
                make_record("A", 2, [1.0, 1.0, 0.0]),
            ],
        )
        results = _retriever(memory_store, [1.0, 0.0, 0.0]).search("q")
        assert [r.chunk.chunk_index for r in results] == [1, 2, 0]
        assert results[0].similarity == pytest.approx(1.0)
        assert all(-1.0 <= r.similarity <= 1.0 for r in results)

    def test_top_k(self, memory_store, make_record) -> None:
        memory_store.replace("A", [make_record("A", i) for i in range(8)])
        assert len(_retriever(memory_store, [1.0, 0.0, 0.0]).search("q")) == 5
        assert len(_retriever(memory_store, [1.0, 0.0, 0.0]).search("q", k=2)) == 2

    def test_ties_keep_store_order(self, memory_store, make_record) -> None:
        memory_store.replace("A", [make_record("A", i) for i in range(3)])
        results = _retriever(memory_store, [1.0, 0.0, 0.0]).search("q")
        assert [r.chunk.chunk_index for r in results] == [0, 1, 2]

    def test_document_filter(self, memory_store, make_record) -> None:
        for n in range(40):
            doc_id = f"OTHER-{n}"
            memory_store.replace(doc_id, [make_record(doc_id, i, [1.0, 0.0, 0.0]) for i in range(50)])
        memory_store.replace("B", [make_record("B", 0, [0.0, 1.0, 0.0]), make_record("B", 1, [1.0, 1.0, 0.0])])
        assert memory_store.count() == 2002

        results = _retriever(memory_store, [1.0, 0.0, 0.0]).search("q", document_id="B")

        assert [(r.document_id, r.chunk.chunk_index) for r in results] == [("B", 1), ("B", 0)]

    def test_failure_markers_are_skipped(self, memory_store, make_record) -> None:
        memory_store.replace("A", [make_record("A", 0, []), make_record("A", 1)])
        results = _retriever(memory_store, [1.0, 0.0, 0.0]).search("q")
        assert [r.chunk.chunk_index for r in results] == [1]

    def test_empty_corpus(self, memory_store) -> None:
        assert _retriever(memory_store, [1.0, 0.0, 0.0]).search("q") == []

    def test_dimension_mismatch(self, memory_store, make_record) -> None:
        memory_store.replace("A", [make_record("A", 0, [1.0, 0.0])])
        with pytest.raises(RetrievalError, match="A#0"):
            _retriever(memory_store, [1.0, 0.0, 0.0]).search("q")

    def test_short_ref(self, memory_store, make_record) -> None:
        memory_store.replace("ABC-100", [make_record("ABC-100", 0)])
        (result,) = _retriever(memory_store, [1.0, 0.0, 0.0]).search("q")
        assert result.short_ref() == "[ABC-100§0]"
