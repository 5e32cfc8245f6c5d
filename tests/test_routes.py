"""HTTP-level tests for the chat and session routes."""

import base64
import io

from fastapi.testclient import TestClient
from PIL import Image

from fakes import FakeOpenAIClient, completion
from main import create_app
from services.message_flow import TEXT_ERROR_MESSAGE


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (40, 30), (10, 200, 30, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


def _client(settings, *replies):
    openai_client = FakeOpenAIClient(*replies)
    return TestClient(create_app(settings=settings, openai_client=openai_client)), openai_client


def test_health_reports_initialized_services(settings):
    client, _ = _client(settings)
    with client:
        body = client.get("/health").json()
    assert body == {"ok": True, "db_initialized": True, "gateway_available": True}


def test_get_chat_returns_empty_active_session(settings):
    client, _ = _client(settings)
    with client:
        body = client.get("/chat").json()
    assert body["session"]["title"] == "New Chat"
    assert body["messages"] == []
    assert body["loading"] is False


def test_post_message_returns_steps(settings):
    client, openai_client = _client(settings, completion("Step 1: Add the numbers\nStep 2: The result is 4"))
    with client:
        resp = client.post("/chat/messages", json={"text": "What is 2+2?"})
        sessions = client.get("/sessions").json()

    assert resp.status_code == 200
    body = resp.json()
    assert body["outcome"] == "succeeded"
    assert body["loading"] is False
    assert body["session"]["title"] == "What is 2+2?..."
    user, assistant = body["messages"]
    assert user["role"] == "user" and user["content"] == "What is 2+2?"
    assert assistant["steps"] == ["Step 1: Add the numbers", "Step 2: The result is 4"]
    assert openai_client.calls[0]["messages"][1]["content"] == "What is 2+2?"
    assert sessions["data"][0]["messageCount"] == 2


def test_post_message_gateway_failure_returns_error_reply(settings):
    client, _ = _client(settings, RuntimeError("network down"))
    with client:
        body = client.post("/chat/messages", json={"text": "Explain gravity"}).json()
    assert body["outcome"] == "failed"
    assert body["messages"][-1]["content"] == TEXT_ERROR_MESSAGE
    assert "steps" not in body["messages"][-1]


def test_post_blank_message_is_ignored(settings):
    client, openai_client = _client(settings)
    with client:
        body = client.post("/chat/messages", json={"text": "   "}).json()
    assert body["outcome"] == "ignored"
    assert body["messages"] == []
    assert openai_client.calls == []


def test_post_message_too_long_is_rejected(settings):
    client, _ = _client(settings)
    with client:
        resp = client.post("/chat/messages", json={"text": "x" * 501})
    assert resp.status_code == 422


def test_post_image_without_file_is_cancelled_selection(settings):
    client, openai_client = _client(settings)
    with client:
        body = client.post("/chat/images").json()
    assert body["outcome"] == "ignored"
    assert body["messages"] == []
    assert body["loading"] is False
    assert openai_client.calls == []


def test_post_image_normalizes_to_jpeg(settings):
    client, openai_client = _client(settings, completion("First, find the area\nThen double it"))
    with client:
        resp = client.post("/chat/images", files={"file": ("problem.png", _png_bytes(), "image/png")})

    assert resp.status_code == 200
    body = resp.json()
    assert body["outcome"] == "succeeded"
    user, assistant = body["messages"]
    assert user["content"] == "Please help me solve this homework problem."
    assert Image.open(io.BytesIO(base64.b64decode(user["image"]))).format == "JPEG"
    assert assistant["steps"] == ["First, find the area", "Then double it"]

    url = openai_client.calls[0]["messages"][1]["content"][1]["image_url"]["url"]
    assert url == f"data:image/jpeg;base64,{user['image']}"


def test_post_image_accepts_base64_text(settings):
    client, _ = _client(settings, completion("done"))
    encoded = base64.b64encode(_png_bytes())
    with client:
        body = client.post("/chat/images", files={"file": ("photo.txt", encoded, "text/plain")}).json()
    assert body["outcome"] == "succeeded"


def test_post_invalid_image_is_rejected(settings):
    client, openai_client = _client(settings)
    with client:
        resp = client.post("/chat/images", files={"file": ("broken.jpg", b"hello", "image/jpeg")})
        chat = client.get("/chat").json()
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Failed to process image. Please try again."
    assert chat["messages"] == []
    assert openai_client.calls == []


def test_post_image_with_unsupported_type_is_rejected(settings):
    client, _ = _client(settings)
    with client:
        resp = client.post("/chat/images", files={"file": ("clip.mp3", b"ID3", "audio/mpeg")})
    assert resp.status_code == 415


def test_new_chat_and_session_management(settings):
    client, _ = _client(settings, completion("answer"))
    with client:
        first = client.post("/chat/messages", json={"text": "old question"}).json()["session"]
        second = client.post("/chat/new").json()
        assert second["messages"] == []
        assert second["session"]["id"] != first["id"]

        listing = client.get("/sessions").json()
        assert [s["id"] for s in listing["data"]] == [second["session"]["id"], first["id"]]
        assert listing["current_session_id"] == second["session"]["id"]

        opened = client.post(f"/sessions/{first['id']}/open").json()
        assert [m["content"] for m in opened["messages"]] == ["old question", "answer"]

        assert client.post("/sessions/unknown/open").status_code == 404

        deleted = client.delete(f"/sessions/{first['id']}").json()
        assert deleted["ok"] is True
        assert deleted["session"]["id"] not in (first["id"], second["session"]["id"])

        remaining = client.get("/sessions").json()["data"]
    assert first["id"] not in [s["id"] for s in remaining]


def test_history_survives_restart(settings):
    client, _ = _client(settings, completion("answer"))
    with client:
        session_id = client.post("/chat/messages", json={"text": "persist me"}).json()["session"]["id"]

    client, _ = _client(settings)
    with client:
        body = client.get("/chat").json()
    assert body["session"]["id"] == session_id
    assert [m["content"] for m in body["messages"]] == ["persist me", "answer"]
