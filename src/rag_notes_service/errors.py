"""Error types raised by the question answering and ingestion flows.

Each error carries the HTTP status code and the short message the API
returns for it. Anything else raised by a collaborator is left to the
application's top-level handler.
"""

from __future__ import annotations

from typing import Optional


class NotesServiceError(Exception):
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = self.default_message if message is None else message
        super().__init__(self.message)


class ClientError(NotesServiceError):
    """A required input was missing or empty."""

    status_code = 400
    default_message = "Missing text"


class PersistenceError(NotesServiceError):
    """The row store did not hand back the inserted note."""

    status_code = 500
    default_message = "Failed to create note"


class EmbeddingError(NotesServiceError):
    """The inference service produced no vector for a note."""

    status_code = 500
    default_message = "Failed to generate vector embedding"


class UnsupportedStreamingResponse(NotesServiceError):
    """The completion came back as a stream, which the answer flow does not forward."""

    status_code = 204
    default_message = ""


__all__ = [
    "NotesServiceError",
    "ClientError",
    "PersistenceError",
    "EmbeddingError",
    "UnsupportedStreamingResponse",
]
