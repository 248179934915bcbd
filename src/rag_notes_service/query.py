from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .context import ServiceContext
from .errors import ClientError, UnsupportedStreamingResponse
from .index import Match
from .inference import Message, StreamingCompletion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "When answering the question or responding, use the context provided, "
    "if it is provided and relevant."
)
NO_RESPONSE = "No response"


def filter_matches(matches: Iterable[Match], cutoff: float) -> List[str]:
    """Ids of the matches scoring strictly above `cutoff`."""
    return [m.id for m in matches if m.score > cutoff]


def build_context_message(notes: List[str]) -> str:
    if not notes:
        return ""
    return "Context:\n" + "\n".join(f"- {note}" for note in notes)


def build_messages(question: str, notes: List[str]) -> List[Message]:
    messages: List[Message] = []
    if notes:
        messages.append({"role": "system", "content": build_context_message(notes)})
    messages.append({"role": "system", "content": SYSTEM_PROMPT})
    messages.append({"role": "user", "content": question})
    return messages


def retrieve_context(question: str, ctx: ServiceContext) -> List[str]:
    cfg = ctx.config

    vector = ctx.inference.embed([question])[0]
    matches = ctx.index.query(vector, top_k=cfg.top_k)
    ids = filter_matches(matches, cfg.similarity_cutoff)
    if not ids:
        return []

    notes = ctx.store.get_notes(ids)
    if not notes:
        logger.warning("No notes found for matched ids %s", ids)
    return [note.text for note in notes]


def answer_question(question: Optional[str], ctx: ServiceContext) -> str:
    if not question:
        raise ClientError()

    notes = retrieve_context(question, ctx)
    logger.info("Answering with %d context note(s)", len(notes))

    result = ctx.inference.complete(build_messages(question, notes))

    if isinstance(result, StreamingCompletion):
        logger.warning("Completion returned a stream; dropping it without a response body")
        close = getattr(result.handle, "close", None)
        if callable(close):
            close()
        raise UnsupportedStreamingResponse()

    return result.text or NO_RESPONSE


__all__ = [
    "NO_RESPONSE",
    "SYSTEM_PROMPT",
    "answer_question",
    "build_context_message",
    "build_messages",
    "filter_matches",
    "retrieve_context",
]
