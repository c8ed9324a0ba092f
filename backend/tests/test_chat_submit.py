"""
Tests for POST /api/chat: session checks, chat creation, message persistence,
the streamed relay and the webhook notification.
"""

import httpx
import pytest

from conftest import metric_value, read_fragments
from flobotz.crud import message as message_crud
from flobotz.models import Chat, Message


def chat_body(chat_id="c1", text="hi", role="user", **extra):
    message = {"role": role, "parts": [{"type": "text", "text": text}], **extra}
    return {"id": chat_id, "messages": [message], "selectedChatModel": "x"}


class TestSubmitScenario:
    def test_new_chat_is_created_and_reply_streamed(self, client, db, user, auth_headers, titles, webhook_requests):
        response = client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")

        fragments = read_fragments(response)
        assert fragments == [
            {"type": "text", "content": "Hel"},
            {"type": "text", "content": "lo"},
            {"type": "text", "content": " there"},
        ]

        chats = db.query(Chat).all()
        assert len(chats) == 1
        assert chats[0].id == "c1"
        assert chats[0].user_id == user.id
        assert chats[0].title == "Greeting"
        assert titles.calls == ["hi"]

        messages = message_crud.get_messages_by_chat_id(db, "c1")
        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[0].parts == [{"type": "text", "text": "hi"}]
        assert messages[1].parts == [{"type": "text", "text": "Hello there"}]

        assert webhook_requests == [
            {"chatId": "c1", "userId": user.id, "message": "Hello there"}
        ]

    def test_stream_concatenation_matches_persisted_reply(self, client, db, auth_headers, assistant):
        assistant.fragments = ["The ", "answer ", "is ", "42", "."]

        response = client.post("/api/chat", json=chat_body(text="question?"), headers=auth_headers)

        streamed = "".join(fragment["content"] for fragment in read_fragments(response))
        stored = db.query(Message).filter(Message.role == "assistant").one()
        assert stored.text == streamed == "The answer is 42."

    def test_chat_exists_before_first_fragment(self, client, session_factory, user, auth_headers, assistant):
        seen = {}

        def inspect_database():
            with session_factory() as session:
                chat = session.query(Chat).filter(Chat.id == "c1").first()
                seen["owner"] = chat.user_id if chat else None
                seen["user_messages"] = session.query(Message).filter(Message.role == "user").count()

        assistant.on_start = inspect_database

        client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert seen == {"owner": user.id, "user_messages": 1}

    def test_user_message_keeps_client_id_and_attachments(self, client, db, auth_headers):
        attachments = [{"url": "https://files.test/a.png", "name": "a.png", "contentType": "image/png"}]
        body = chat_body(id="m-1", experimental_attachments=attachments)

        client.post("/api/chat", json=body, headers=auth_headers)

        stored = message_crud.get_message_by_id(db, "m-1")
        assert stored is not None
        assert stored.attachments == attachments

    def test_assistant_receives_conversation_turns(self, client, auth_headers, assistant):
        body = {
            "id": "c1",
            "messages": [
                {"role": "user", "parts": [{"type": "text", "text": "first"}]},
                {"role": "assistant", "parts": [{"type": "text", "text": "reply"}]},
                {"role": "user", "parts": [{"type": "text", "text": "second"}]},
            ],
            "selectedChatModel": "x",
        }

        client.post("/api/chat", json=body, headers=auth_headers)

        assert [turn.text for turn in assistant.calls[0]] == ["first", "reply", "second"]


class TestExistingChat:
    def test_own_chat_appends_without_new_title(self, client, db, user, auth_headers, titles):
        client.post("/api/chat", json=chat_body(text="one"), headers=auth_headers)
        client.post("/api/chat", json=chat_body(text="two"), headers=auth_headers)

        assert db.query(Chat).count() == 1
        assert titles.calls == ["one"]
        messages = message_crud.get_messages_by_chat_id(db, "c1")
        assert [m.role for m in messages] == ["user", "assistant", "user", "assistant"]

    def test_chat_of_another_user_is_rejected(self, client, db, auth_headers, other_auth_headers, assistant):
        client.post("/api/chat", json=chat_body(), headers=auth_headers)
        before = db.query(Message).count()

        response = client.post("/api/chat", json=chat_body(text="intrusion"), headers=other_auth_headers)

        assert response.status_code == 401
        assert response.text == "Unauthorized"
        assert db.query(Message).count() == before
        assert len(assistant.calls) == 1


class TestValidation:
    def test_missing_session_returns_401(self, client, db):
        response = client.post("/api/chat", json=chat_body())

        assert response.status_code == 401
        assert db.query(Chat).count() == 0

    def test_invalid_token_returns_401(self, client, db, user):
        response = client.post(
            "/api/chat", json=chat_body(), headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert db.query(Chat).count() == 0

    @pytest.mark.parametrize("messages", [
        [],
        [{"role": "assistant", "parts": [{"type": "text", "text": "hello"}]}],
    ])
    def test_no_user_message_returns_400(self, client, db, auth_headers, messages):
        response = client.post(
            "/api/chat",
            json={"id": "c1", "messages": messages, "selectedChatModel": "x"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.text == "No user message found"
        assert db.query(Chat).count() == 0
        assert db.query(Message).count() == 0

    def test_malformed_body_returns_400(self, client, auth_headers):
        response = client.post(
            "/api/chat",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_missing_chat_id_returns_400(self, client, auth_headers):
        response = client.post(
            "/api/chat",
            json={"messages": chat_body()["messages"]},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_persistence_failure_before_stream_returns_500(self, client, auth_headers, monkeypatch):
        def broken_save(db, messages):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(message_crud, "save_messages", broken_save)

        response = client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert response.status_code == 500
        assert response.text == "An error occurred while processing your request!"


class TestStreamFailures:
    def test_provider_failure_becomes_inline_fragment(self, client, db, auth_headers, assistant, webhook_requests):
        assistant.fail_after = 1

        response = client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert response.status_code == 200
        fragments = read_fragments(response)
        assert fragments[0] == {"type": "text", "content": "Hel"}
        assert fragments[-1] == {
            "type": "text",
            "content": "⚠️ An error occurred while generating a response.",
        }

        # The user message is durable, the failed reply is not stored
        roles = [m.role for m in message_crud.get_messages_by_chat_id(db, "c1")]
        assert roles == ["user"]
        assert webhook_requests == []

    def test_webhook_outage_does_not_affect_response(self, client, db, auth_headers, webhook_status, webhook_requests):
        webhook_status["error"] = httpx.ConnectError("n8n unreachable")

        response = client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert response.status_code == 200
        assert "".join(f["content"] for f in read_fragments(response)) == "Hello there"
        assert db.query(Message).filter(Message.role == "assistant").count() == 1
        assert len(webhook_requests) == 1

    def test_webhook_error_status_is_ignored(self, client, db, auth_headers, webhook_status):
        webhook_status["status"] = 502

        response = client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert response.status_code == 200
        assert db.query(Message).filter(Message.role == "assistant").count() == 1

    def test_reply_save_failure_counts_run_once(self, client, auth_headers, webhook_requests, monkeypatch):
        save_messages = message_crud.save_messages

        def save_user_messages_only(db, messages):
            if messages[0].role == "assistant":
                raise RuntimeError("database unavailable")
            return save_messages(db, messages)

        monkeypatch.setattr(message_crud, "save_messages", save_user_messages_only)
        succeeded = metric_value("llm_requests_total", kind="run", status="success")
        failed = metric_value("llm_requests_total", kind="run", status="error")

        response = client.post("/api/chat", json=chat_body(), headers=auth_headers)

        assert response.status_code == 200
        assert read_fragments(response)[-1]["content"] == "⚠️ An error occurred while generating a response."
        assert metric_value("llm_requests_total", kind="run", status="success") == succeeded
        assert metric_value("llm_requests_total", kind="run", status="error") == failed + 1
        assert webhook_requests == []
