from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from rag_notes_service.api import create_app
from rag_notes_service.inference import StreamingCompletion, StructuredCompletion


@pytest.mark.parametrize("query", ["", "?question="])
def test_ask_without_question(client, fake_inference, query):
    response = client.get(f"/ask{query}")
    assert response.status_code == 400
    assert response.text == "Missing text"
    assert fake_inference.embed_calls == []
    assert fake_inference.complete_calls == []


@pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": None}, {"text": 5}])
def test_notes_without_text(client, fake_inference, body):
    response = client.post("/notes", json=body)
    assert response.status_code == 400
    assert response.text == "Missing text"
    assert fake_inference.embed_calls == []


def test_notes_with_non_object_body(client):
    response = client.post("/notes", json=["hello"])
    assert response.status_code == 400
    assert response.text == "Invalid request body"


def test_ingest_then_ask_round_trip(client, fake_inference):
    fake_inference.vectors["hello"] = [1.0, 0.0, 0.0, 0.0]
    fake_inference.vectors["Say hi?"] = [1.0, 0.0, 0.0, 0.0]
    fake_inference.completion = StructuredCompletion(text="hi there")

    created = client.post("/notes", json={"text": "hello"})
    assert created.status_code == 200
    body = created.json()
    assert isinstance(body["id"], int)
    assert body["text"] == "hello"
    assert body["inserted"] == {"count": 1, "ids": [str(body["id"])]}

    answer = client.get("/ask", params={"question": "Say hi?"})
    assert answer.status_code == 200
    assert answer.headers["content-type"].startswith("text/plain")
    assert answer.text == "hi there"
    assert "- hello" in fake_inference.complete_calls[-1][0]["content"]


def test_insert_failure_returns_500(client, ctx):
    with patch.object(ctx.store, "insert_note", return_value=None), patch.object(
        ctx.index, "upsert"
    ) as upsert:
        response = client.post("/notes", json={"text": "hello"})
    assert response.status_code == 500
    assert response.text == "Failed to create note"
    upsert.assert_not_called()


def test_embedding_failure_returns_500_and_keeps_row(client, ctx, fake_inference):
    fake_inference.vectors["hello"] = []

    response = client.post("/notes", json={"text": "hello"})

    assert response.status_code == 500
    assert response.text == "Failed to generate vector embedding"
    assert [n.text for n in ctx.store.get_notes([1])] == ["hello"]
    assert ctx.index.size == 0


def test_empty_completion_returns_fallback(client, fake_inference):
    fake_inference.completion = StructuredCompletion(text="")
    response = client.get("/ask", params={"question": "anything"})
    assert response.status_code == 200
    assert response.text == "No response"


def test_streaming_completion_returns_empty_body(client, fake_inference):
    handle = Mock()
    fake_inference.completion = StreamingCompletion(handle=handle)

    response = client.get("/ask", params={"question": "anything"})

    assert response.status_code == 204
    assert response.content == b""
    handle.close.assert_called_once()


def test_unhandled_error_returns_message(ctx):
    with patch.object(ctx.index, "query", side_effect=RuntimeError("index offline")):
        with TestClient(create_app(ctx), raise_server_exceptions=False) as test_client:
            response = test_client.get("/ask", params={"question": "anything"})
    assert response.status_code == 500
    assert response.text == "index offline"


def test_health(client):
    client.post("/notes", json={"text": "hello"})
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "notes": 1, "vectors": 1}
