from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import AppConfig
from .index import VectorIndex
from .inference import InferenceClient
from .store import NoteStore


@dataclass
class ServiceContext:
    """Configuration plus the three collaborators every flow talks to."""

    config: AppConfig
    store: NoteStore
    index: VectorIndex
    # Anything with InferenceClient's embed/complete methods.
    inference: Any


def build_context(cfg: AppConfig) -> ServiceContext:
    store = NoteStore(cfg.db_path_resolved)
    store.init_schema()

    index = VectorIndex(index_dir=cfg.index_dir_resolved)

    inference = InferenceClient(
        embedding_model_name=cfg.embedding_model_name,
        chat_model=cfg.openai_model,
        temperature=cfg.temperature,
        stream=cfg.stream_completions,
    )
    return ServiceContext(config=cfg, store=store, index=index, inference=inference)


__all__ = ["ServiceContext", "build_context"]
