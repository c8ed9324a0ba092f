"""
Tests for the history, message, visibility, vote and document endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest

from flobotz.crud import chat as chat_crud
from flobotz.crud import document as document_crud
from flobotz.crud import message as message_crud
from flobotz.crud import suggestion as suggestion_crud
from flobotz.crud import vote as vote_crud
from flobotz.models import Chat, Document, Visibility
from flobotz.schemas.chat import MessageCreate
from flobotz.schemas.document import SuggestionCreate

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def add_chat(db, owner, chat_id, created_at, visibility=Visibility.private):
    db.add(Chat(id=chat_id, user_id=owner.id, title=chat_id, created_at=created_at, visibility=visibility))
    db.commit()


def add_messages(db, chat_id, count):
    message_crud.save_messages(db, [
        MessageCreate(
            id=f"{chat_id}-m{i}",
            chat_id=chat_id,
            role="user" if i % 2 == 0 else "assistant",
            parts=[{"type": "text", "text": f"message {i}"}],
            created_at=T0 + timedelta(minutes=i),
        )
        for i in range(count)
    ])


class TestHistory:
    def test_requires_session(self, client):
        assert client.get("/api/history").status_code == 401

    def test_lists_only_own_chats_newest_first(self, client, db, user, other_user, auth_headers):
        for i in range(3):
            add_chat(db, user, f"mine-{i}", T0 + timedelta(hours=i))
        add_chat(db, other_user, "theirs", T0)

        response = client.get("/api/history", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [chat["id"] for chat in data["chats"]] == ["mine-2", "mine-1", "mine-0"]
        assert data["has_more"] is False

    def test_pagination_with_cursor(self, client, db, user, auth_headers):
        for i in range(5):
            add_chat(db, user, f"chat-{i}", T0 + timedelta(hours=i))

        first = client.get("/api/history", params={"limit": 2}, headers=auth_headers).json()
        assert [chat["id"] for chat in first["chats"]] == ["chat-4", "chat-3"]
        assert first["has_more"] is True

        older = client.get(
            "/api/history", params={"limit": 2, "ending_before": "chat-3"}, headers=auth_headers
        ).json()
        assert [chat["id"] for chat in older["chats"]] == ["chat-2", "chat-1"]
        assert older["has_more"] is True

    def test_unknown_cursor_returns_404(self, client, auth_headers):
        response = client.get("/api/history", params={"starting_after": "ghost"}, headers=auth_headers)

        assert response.status_code == 404


class TestChatMessages:
    def test_owner_reads_messages_in_order(self, client, db, user, auth_headers):
        add_chat(db, user, "c1", T0)
        add_messages(db, "c1", 3)

        response = client.get("/api/chat/c1/messages", headers=auth_headers)

        assert response.status_code == 200
        assert [m["id"] for m in response.json()] == ["c1-m0", "c1-m1", "c1-m2"]

    def test_private_chat_hidden_from_others(self, client, db, user, other_auth_headers):
        add_chat(db, user, "c1", T0)

        response = client.get("/api/chat/c1/messages", headers=other_auth_headers)

        assert response.status_code == 403

    def test_public_chat_readable_by_others(self, client, db, user, other_auth_headers):
        add_chat(db, user, "c1", T0, visibility=Visibility.public)
        add_messages(db, "c1", 2)

        response = client.get("/api/chat/c1/messages", headers=other_auth_headers)

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_owner_changes_visibility(self, client, db, user, auth_headers, other_auth_headers):
        add_chat(db, user, "c1", T0)

        rejected = client.patch("/api/chat/c1/visibility", json={"visibility": "public"}, headers=other_auth_headers)
        accepted = client.patch("/api/chat/c1/visibility", json={"visibility": "public"}, headers=auth_headers)

        assert rejected.status_code == 401
        assert accepted.status_code == 200
        assert accepted.json()["visibility"] == "public"

    def test_delete_trailing_messages(self, client, db, user, auth_headers):
        add_chat(db, user, "c1", T0)
        add_messages(db, "c1", 4)
        vote_crud.vote_message(db, chat_id="c1", message_id="c1-m1", type="up")
        vote_crud.vote_message(db, chat_id="c1", message_id="c1-m3", type="down")

        response = client.delete("/api/chat/messages/c1-m2/trailing", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"deleted": 2}
        remaining = message_crud.get_messages_by_chat_id(db, "c1")
        assert [m.id for m in remaining] == ["c1-m0", "c1-m1"]
        assert [v.message_id for v in vote_crud.get_votes_by_chat_id(db, "c1")] == ["c1-m1"]

    def test_delete_trailing_messages_of_foreign_chat(self, client, db, user, other_auth_headers):
        add_chat(db, user, "c1", T0)
        add_messages(db, "c1", 2)

        response = client.delete("/api/chat/messages/c1-m0/trailing", headers=other_auth_headers)

        assert response.status_code == 401
        assert len(message_crud.get_messages_by_chat_id(db, "c1")) == 2


class TestVotes:
    def test_vote_then_flip(self, client, db, user, auth_headers):
        add_chat(db, user, "c1", T0)
        add_messages(db, "c1", 2)
        body = {"chatId": "c1", "messageId": "c1-m1", "type": "up"}

        assert client.patch("/api/vote", json=body, headers=auth_headers).json()["is_upvoted"] is True
        body["type"] = "down"
        assert client.patch("/api/vote", json=body, headers=auth_headers).json()["is_upvoted"] is False

        votes = client.get("/api/vote", params={"chatId": "c1"}, headers=auth_headers).json()
        assert votes == [{"chat_id": "c1", "message_id": "c1-m1", "is_upvoted": False}]

    def test_vote_on_foreign_chat_rejected(self, client, db, user, other_auth_headers):
        add_chat(db, user, "c1", T0)
        add_messages(db, "c1", 2)

        response = client.patch(
            "/api/vote",
            json={"chatId": "c1", "messageId": "c1-m1", "type": "up"},
            headers=other_auth_headers,
        )

        assert response.status_code == 401

    def test_vote_on_unknown_message_returns_404(self, client, db, user, auth_headers):
        add_chat(db, user, "c1", T0)

        response = client.patch(
            "/api/vote",
            json={"chatId": "c1", "messageId": "ghost", "type": "up"},
            headers=auth_headers,
        )

        assert response.status_code == 404


class TestDocuments:
    def test_save_and_list_versions(self, client, auth_headers):
        for content in ("v1", "v2"):
            response = client.post(
                "/api/document",
                params={"id": "doc-1"},
                json={"title": "Plan", "content": content, "kind": "text"},
                headers=auth_headers,
            )
            assert response.status_code == 201

        versions = client.get("/api/document", params={"id": "doc-1"}, headers=auth_headers).json()
        assert [v["content"] for v in versions] == ["v1", "v2"]

    def test_foreign_document_rejected(self, client, db, user, other_auth_headers):
        document_crud.save_document(db, id="doc-1", title="Plan", kind="text", content="v1", user_id=user.id)

        response = client.get("/api/document", params={"id": "doc-1"}, headers=other_auth_headers)

        assert response.status_code == 401

    def test_prune_versions_after_timestamp(self, client, db, user, auth_headers):
        for minutes in (0, 5, 10):
            db.add(Document(
                id="doc-1", created_at=T0 + timedelta(minutes=minutes), title="Plan",
                content=f"v{minutes}", kind="text", user_id=user.id,
            ))
        db.commit()

        response = client.patch(
            "/api/document",
            params={"id": "doc-1"},
            json={"timestamp": (T0 + timedelta(minutes=1)).isoformat()},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"deleted": 2}
        assert [d.content for d in document_crud.get_documents_by_id(db, "doc-1")] == ["v0"]

    def test_suggestions_listed_for_owner(self, client, db, user, auth_headers):
        document = document_crud.save_document(db, id="doc-1", title="Plan", kind="text", content="v1", user_id=user.id)
        suggestion_crud.save_suggestions(db, [
            SuggestionCreate(
                id="s-1", document_id="doc-1", document_created_at=document.created_at,
                original_text="teh", suggested_text="the", user_id=user.id,
            )
        ])

        response = client.get("/api/suggestions", params={"documentId": "doc-1"}, headers=auth_headers)

        assert response.status_code == 200
        assert [s["suggested_text"] for s in response.json()] == ["the"]

    @pytest.mark.parametrize("path", ["/api/document?id=missing", "/api/suggestions?documentId=missing"])
    def test_unknown_document_returns_404(self, client, auth_headers, path):
        assert client.get(path, headers=auth_headers).status_code == 404
