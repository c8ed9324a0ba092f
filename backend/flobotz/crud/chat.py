from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from flobotz.crud.exceptions import ChatNotFoundError
from flobotz.database.connection import db_operation
from flobotz.models.chat import Chat, Visibility
from flobotz.models.message import Message
from flobotz.models.vote import Vote


@dataclass
class ChatPage:
    chats: List[Chat]
    has_more: bool


@db_operation("save_chat")
def save_chat(db: Session, id: str, user_id: str, title: str) -> Chat:
    """Create a new chat owned by user_id"""
    db_chat = Chat(
        id=id,
        user_id=user_id,
        title=title,
        visibility=Visibility.private,
        created_at=datetime.now(timezone.utc),
    )
    db.add(db_chat)
    db.commit()
    db.refresh(db_chat)
    return db_chat


@db_operation("get_chat_by_id")
def get_chat_by_id(db: Session, id: str) -> Optional[Chat]:
    return db.query(Chat).filter(Chat.id == id).first()


def _cursor_created_at(db: Session, chat_id: str) -> datetime:
    created_at = db.query(Chat.created_at).filter(Chat.id == chat_id).scalar()
    if created_at is None:
        raise ChatNotFoundError(chat_id)
    return created_at


@db_operation("get_chats_by_user_id")
def get_chats_by_user_id(
    db: Session,
    user_id: str,
    limit: int,
    starting_after: Optional[str] = None,
    ending_before: Optional[str] = None,
) -> ChatPage:
    """Page through a user's chats, newest first.

    ``starting_after`` returns chats created after the cursor chat,
    ``ending_before`` chats created before it. One extra row is fetched to
    tell whether another page exists.
    """
    query = db.query(Chat).filter(Chat.user_id == user_id)

    if starting_after:
        query = query.filter(Chat.created_at > _cursor_created_at(db, starting_after))
    elif ending_before:
        query = query.filter(Chat.created_at < _cursor_created_at(db, ending_before))

    chats = query.order_by(Chat.created_at.desc()).limit(limit + 1).all()

    has_more = len(chats) > limit
    return ChatPage(chats=chats[:limit] if has_more else chats, has_more=has_more)


@db_operation("delete_chat_by_id")
def delete_chat_by_id(db: Session, id: str) -> bool:
    """Delete a chat together with its votes and messages"""
    db.query(Vote).filter(Vote.chat_id == id).delete(synchronize_session=False)
    db.query(Message).filter(Message.chat_id == id).delete(synchronize_session=False)
    deleted = db.query(Chat).filter(Chat.id == id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


@db_operation("update_chat_visibility_by_id")
def update_chat_visibility_by_id(db: Session, chat_id: str, visibility: Visibility) -> Optional[Chat]:
    chat = db.query(Chat).filter(Chat.id == chat_id).first()
    if chat:
        chat.visibility = visibility
        db.commit()
        db.refresh(chat)
    return chat
