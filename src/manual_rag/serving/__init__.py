"""
Serving: FastAPI application over the ingestion, Q&A and maintenance
services.

Run with ``uvicorn manual_rag.serving.app:app`` or ``manual-rag serve``.
"""
