from typing import Dict, List, Sequence

import pytest
from fastapi.testclient import TestClient

from rag_notes_service.api import create_app
from rag_notes_service.config import AppConfig
from rag_notes_service.context import ServiceContext
from rag_notes_service.index import VectorIndex
from rag_notes_service.inference import CompletionResult, StructuredCompletion
from rag_notes_service.store import NoteStore

DEFAULT_VECTOR = [0.0, 0.0, 0.0, 1.0]


class FakeInference:
    """Scripted stand-in for InferenceClient that records every call."""

    def __init__(self) -> None:
        self.vectors: Dict[str, List[float]] = {}
        self.completion: CompletionResult = StructuredCompletion(text="An answer")
        self.embed_calls: List[List[str]] = []
        self.complete_calls: List[List[dict]] = []

    def embed(self, texts) -> List[List[float]]:
        batch = [texts] if isinstance(texts, str) else list(texts)
        self.embed_calls.append(batch)
        return [list(self.vectors.get(text, DEFAULT_VECTOR)) for text in batch]

    def complete(self, messages: Sequence[dict]) -> CompletionResult:
        self.complete_calls.append(list(messages))
        return self.completion


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        db_path=tmp_path / "notes.db",
        index_dir=tmp_path / "index",
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def store(config):
    note_store = NoteStore(config.db_path)
    note_store.init_schema()
    return note_store


@pytest.fixture
def fake_inference():
    return FakeInference()


@pytest.fixture
def ctx(config, store, fake_inference):
    return ServiceContext(
        config=config,
        store=store,
        index=VectorIndex(index_dir=config.index_dir),
        inference=fake_inference,
    )


@pytest.fixture
def client(ctx):
    with TestClient(create_app(ctx)) as test_client:
        yield test_client
