from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from openai import OpenAI
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)

Message = Dict[str, str]


@dataclass
class StructuredCompletion:
    text: Optional[str]


@dataclass
class StreamingCompletion:
    handle: Any


CompletionResult = Union[StructuredCompletion, StreamingCompletion]


class InferenceClient:
    """
    Embeddings from a local sentence-transformers model, chat completions from OpenAI.

    Whether `complete` yields a stream is fixed by `stream` at construction,
    and the result type says which one the caller got.
    """

    def __init__(
        self,
        embedding_model_name: str,
        chat_model: str,
        temperature: float = 0.2,
        stream: bool = False,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.embedding_model_name = embedding_model_name
        self.chat_model = chat_model
        self.temperature = temperature
        self.stream = stream
        self._client = client
        self._model: Optional[SentenceTransformer] = None
        self._model_lock = threading.Lock()

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            with self._model_lock:
                if self._model is None:
                    logger.info("Loading embedding model: %s", self.embedding_model_name)
                    self._model = SentenceTransformer(self.embedding_model_name)
        return self._model

    @property
    def client(self) -> OpenAI:
        # Created on first use so ingestion works without OPENAI_API_KEY.
        if self._client is None:
            self._client = OpenAI()
        return self._client

    def embed(self, texts: Union[str, Sequence[str]]) -> List[List[float]]:
        batch = [texts] if isinstance(texts, str) else list(texts)
        if not batch:
            return []
        embeddings = self.model.encode(batch, convert_to_numpy=True)
        return [row.astype("float32").tolist() for row in embeddings]

    def complete(self, messages: Sequence[Message]) -> CompletionResult:
        response = self.client.chat.completions.create(
            model=self.chat_model,
            messages=list(messages),
            temperature=self.temperature,
            stream=self.stream,
        )
        if self.stream:
            return StreamingCompletion(handle=response)

        text = response.choices[0].message.content if response.choices else None
        return StructuredCompletion(text=text)


__all__ = [
    "CompletionResult",
    "InferenceClient",
    "Message",
    "StreamingCompletion",
    "StructuredCompletion",
]
