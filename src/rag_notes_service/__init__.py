"""
RAG Notes Service.

Stores short notes with their embeddings and answers questions by handing the
closest note to a chat model as context.
"""

__all__ = [
    "api",
    "config",
    "context",
    "errors",
    "index",
    "inference",
    "ingest",
    "query",
    "store",
]
