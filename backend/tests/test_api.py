"""
API tests for the HTTP surface.
"""

import pytest
from fastapi.testclient import TestClient

from contextdesk.api import deps
from contextdesk.config import settings
from contextdesk.llm.base import LLMResponse
from contextdesk.main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "local_storage_path", str(tmp_path / "data"))
    monkeypatch.setattr(settings, "llm_api_key", None)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def scripted(client, llm):
    """Swap the running resolver's completion provider for the scripted one."""
    deps.get_resolver().llm = llm
    return llm


def _create_ops(client):
    response = client.post("/api/categories", json={"id": "ops", "title": "Operations"})
    assert response.status_code == 200


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestChat:

    def test_submit_message(self, client):
        response = client.post("/api/chat", json={
            "userId": "u1",
            "messages": [
                {"role": "assistant", "content": "earlier"},
                {"role": "user", "content": "I prefer short answers"},
            ],
            "tags": [],
            "attachments": [{"name": "a.txt", "size": 3, "type": "text"}],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["sessionId"].startswith("session-")
        assert data["userMsgId"].startswith("msg-")
        assert data["usedMemories"][0]["type"] == "preference"
        assert data["ragDocs"] == []

        history = client.get(f"/api/messages/{data['sessionId']}").json()["messages"]
        assert history[0]["content"] == "I prefer short answers"
        assert history[0]["attachmentsMeta"][0]["name"] == "a.txt"

    def test_submit_requires_user_message(self, client):
        response = client.post("/api/chat", json={
            "userId": "u1",
            "messages": [{"role": "assistant", "content": "x"}],
        })
        assert response.status_code == 400

    def test_submit_requires_user_id(self, client):
        response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "x"}]})
        assert response.status_code == 400

    def test_save_reply_and_fetch_history(self, client):
        session_id = client.post("/api/chat", json={
            "userId": "u1",
            "messages": [{"role": "user", "content": "q"}],
        }).json()["sessionId"]

        response = client.post("/api/chat/response", json={
            "sessionId": session_id, "content": "a", "tags": ["ops"]
        })
        assert response.status_code == 200

        messages = client.get(f"/api/messages/{session_id}?limit=1").json()["messages"]
        assert [(m["role"], m["tags"]) for m in messages] == [("assistant", ["ops"])]

    def test_save_reply_unknown_session(self, client):
        response = client.post("/api/chat/response", json={"sessionId": "session-x", "content": "a"})
        assert response.status_code == 404


class TestMessages:

    def _conversation(self, client):
        session_id = client.post("/api/chat", json={
            "userId": "u1", "messages": [{"role": "user", "content": "q"}],
        }).json()["sessionId"]
        user_id = client.get(f"/api/messages/{session_id}").json()["messages"][0]["id"]
        reply_id = client.post("/api/chat/response", json={
            "sessionId": session_id, "content": "a"
        }).json()["msgId"]
        return session_id, user_id, reply_id

    def test_delete_exact_ids(self, client):
        session_id, user_id, reply_id = self._conversation(client)
        response = client.request("DELETE", "/api/messages", json={"messageIds": [user_id, "msg-nope"]})
        assert response.json() == {"ok": True, "deleted": 1}
        remaining = client.get(f"/api/messages/{session_id}").json()["messages"]
        assert [m["id"] for m in remaining] == [reply_id]

    def test_delete_requires_ids(self, client):
        response = client.request("DELETE", "/api/messages", json={"messageIds": []})
        assert response.status_code == 400

    def test_delete_pair(self, client):
        session_id, user_id, reply_id = self._conversation(client)
        response = client.delete(f"/api/messages/{user_id}/pair")
        assert response.json() == {"ok": True, "deleted": 2, "messageIds": [user_id, reply_id]}
        assert client.get(f"/api/messages/{session_id}").json()["messages"] == []

    def test_update_tags(self, client):
        _, user_id, _ = self._conversation(client)
        response = client.patch(f"/api/messages/{user_id}/tags", json={"tags": ["a", "b"]})
        assert response.json() == {"ok": True, "messageId": user_id, "tags": ["a", "b"]}

    def test_update_tags_unknown_message(self, client):
        response = client.patch("/api/messages/msg-nope/tags", json={"tags": ["a"]})
        assert response.status_code == 404


class TestCategories:

    def test_upsert_and_list(self, client):
        _create_ops(client)
        client.post("/api/categories/ops/items", json={"id": "i1", "title": "Latency"})

        [category] = client.get("/api/categories").json()["categories"]
        assert category["id"] == "ops"
        assert category["icon"] == "Sparkles"
        assert category["sortOrder"] == 0
        assert [i["id"] for i in category["items"]] == ["i1"]

    def test_upsert_requires_id_and_title(self, client):
        assert client.post("/api/categories", json={"title": "x"}).status_code == 400

    def test_toggle_pin_twice(self, client):
        _create_ops(client)
        assert client.post("/api/categories/ops/pin").json() == {"ok": True, "pinned": True}
        assert client.post("/api/categories/ops/pin").json() == {"ok": True, "pinned": False}

    def test_toggle_pin_unknown(self, client):
        assert client.post("/api/categories/nope/pin").status_code == 404

    def test_patch_fields(self, client):
        _create_ops(client)
        client.patch("/api/categories/ops/description", json={"description": "Runbooks"})
        client.patch("/api/categories/ops/icon", json={"icon": "Server"})
        client.patch("/api/categories/ops/accent", json={"accent": "from-red-500 to-rose-500"})

        [category] = client.get("/api/categories").json()["categories"]
        assert category["description"] == "Runbooks"
        assert category["icon"] == "Server"
        assert category["accent"] == "from-red-500 to-rose-500"

    def test_delete_item_and_category(self, client):
        _create_ops(client)
        client.post("/api/categories/ops/items", json={"id": "i1", "title": "Latency"})
        assert client.delete("/api/categories/ops/items/i1").json() == {"ok": True}
        assert client.delete("/api/categories/ops").json() == {"ok": True}
        assert client.get("/api/categories").json()["categories"] == []

    def test_display_order(self, client):
        client.post("/api/categories", json={"id": "b", "title": "Beta"})
        client.post("/api/categories", json={"id": "a", "title": "alpha"})
        client.post("/api/categories", json={"id": "p", "title": "Pinned", "pinned": True})
        client.post("/api/chat", json={
            "userId": "u1", "messages": [{"role": "user", "content": "x"}], "tags": ["b"],
        })

        ids = [c["id"] for c in client.get("/api/categories?order=display&userId=u1").json()["categories"]]
        assert ids == ["p", "b", "a"]


class TestKnowledge:

    def test_ingest_then_used_in_chat(self, client):
        response = client.post("/api/rag/ingest", json={
            "namespace": "ops", "documents": [{"text": "Restart the relay first."}],
        })
        assert response.json() == {"ok": True, "count": 1}

        data = client.post("/api/chat", json={
            "userId": "u1", "messages": [{"role": "user", "content": "relay down"}], "tags": ["ops"],
        }).json()
        assert [d["text"] for d in data["ragDocs"]] == ["Restart the relay first."]

    def test_ingest_requires_namespace(self, client):
        assert client.post("/api/rag/ingest", json={"documents": []}).status_code == 400

    def test_ingest_invalid_namespace(self, client):
        response = client.post("/api/rag/ingest", json={"namespace": "a/b", "documents": [{"text": "x"}]})
        assert response.status_code == 400


class TestConversation:

    def test_turn_without_provider_uses_placeholder(self, client):
        _create_ops(client)
        response = client.post("/api/conversation/turn", json={"userId": "u1", "content": "status"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "replied"
        assert data["tags"] == ["ops"]
        assert data["reply"]["role"] == "assistant"

    def test_turn_validation(self, client):
        response = client.post("/api/conversation/turn", json={"userId": "u1", "content": ""})
        assert response.status_code == 400

    def test_suggest_accept_flow(self, client, scripted, make_tool_response):
        _create_ops(client)
        scripted.queue(make_tool_response("suggest_category", {
            "suggestion_type": "existing", "existing_category_id": "ops", "reasoning": "fits",
        }))

        turn = client.post("/api/conversation/turn", json={
            "userId": "u1", "content": "I prefer short answers",
        }).json()
        assert turn["status"] == "awaiting_tag_decision"
        session_id = turn["sessionId"]

        pending = client.get(f"/api/conversation/{session_id}/pending").json()
        assert pending["state"] == "awaiting_tag_decision"
        assert pending["suggestion"]["suggestion"]["existingCategoryId"] == "ops"

        blocked = client.post("/api/conversation/turn", json={"userId": "u1", "content": "more"})
        assert blocked.status_code == 409

        scripted.queue(LLMResponse(content="Will do."))
        decision = client.post(f"/api/conversation/{session_id}/decision", json={"action": "accept"}).json()
        assert decision["categoryId"] == "ops"
        assert decision["reply"]["content"] == "Will do."
        assert decision["error"] is None

        assert client.get(f"/api/conversation/{session_id}/pending").json() == {"state": "idle"}
        messages = client.get(f"/api/messages/{session_id}").json()["messages"]
        assert [(m["role"], m["tags"]) for m in messages] == [("assistant", ["ops"]), ("user", ["ops"])]

    def test_chat_submit_rejected_while_awaiting(self, client, scripted, make_tool_response):
        _create_ops(client)
        scripted.queue(make_tool_response("suggest_category", {
            "suggestion_type": "existing", "existing_category_id": "ops", "reasoning": "fits",
        }))
        session_id = client.post("/api/conversation/turn", json={
            "userId": "u1", "content": "first",
        }).json()["sessionId"]

        response = client.post("/api/chat", json={
            "userId": "u1", "messages": [{"role": "user", "content": "second"}],
        })

        assert response.status_code == 409
        messages = client.get(f"/api/messages/{session_id}").json()["messages"]
        assert [(m["role"], m["content"]) for m in messages] == [("user", "first")]
        assert client.get(f"/api/conversation/{session_id}/pending").json()["state"] == "awaiting_tag_decision"

    def test_decision_without_pending(self, client):
        response = client.post("/api/conversation/session-x/decision", json={"action": "dismiss"})
        assert response.status_code == 409

    def test_select_unknown_category(self, client, scripted, make_tool_response):
        _create_ops(client)
        scripted.queue(make_tool_response("suggest_category", {
            "suggestion_type": "existing", "existing_category_id": "ops", "reasoning": "fits",
        }))
        session_id = client.post("/api/conversation/turn", json={
            "userId": "u1", "content": "hello",
        }).json()["sessionId"]

        response = client.post(f"/api/conversation/{session_id}/decision", json={
            "action": "select", "categoryId": "nope",
        })
        assert response.status_code == 404
        assert client.get(f"/api/conversation/{session_id}/pending").json()["state"] == "awaiting_tag_decision"

    def test_completion_failure_is_502(self, client, scripted):
        scripted.queue(RuntimeError("down"))
        response = client.post("/api/conversation/turn", json={"userId": "u1", "content": "hi"})
        assert response.status_code == 502
