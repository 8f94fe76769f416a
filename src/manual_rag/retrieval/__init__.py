"""
Retrieval: query embedding and similarity ranking over stored chunks.

Public surface
--------------
- :class:`ManualRetriever`: main entry point for retrieval.
- :class:`RetrievalResult`: a chunk plus its cosine similarity.
- :func:`cosine_similarity` / :func:`cosine_similarities`: scoring helpers.
"""

from manual_rag.retrieval.models import RetrievalResult
from manual_rag.retrieval.retriever import ManualRetriever
from manual_rag.retrieval.similarity import cosine_similarities, cosine_similarity

__all__ = [
    "ManualRetriever",
    "RetrievalResult",
    "cosine_similarities",
    "cosine_similarity",
]
