from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from flobotz.database.connection import db_operation
from flobotz.models.message import Message
from flobotz.models.vote import Vote
from flobotz.schemas.chat import MessageCreate


@db_operation("save_messages")
def save_messages(db: Session, messages: List[MessageCreate]) -> List[Message]:
    """Insert messages in one commit"""
    db_messages = [
        Message(
            id=message.id,
            chat_id=message.chat_id,
            role=message.role,
            parts=message.parts,
            attachments=message.attachments,
            created_at=message.created_at or datetime.now(timezone.utc),
        )
        for message in messages
    ]
    db.add_all(db_messages)
    db.commit()
    for db_message in db_messages:
        db.refresh(db_message)
    return db_messages


@db_operation("get_messages_by_chat_id")
def get_messages_by_chat_id(db: Session, chat_id: str) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.chat_id == chat_id)
        .order_by(Message.created_at.asc())
        .all()
    )


@db_operation("get_message_by_id")
def get_message_by_id(db: Session, id: str) -> Optional[Message]:
    return db.query(Message).filter(Message.id == id).first()


@db_operation("delete_messages_by_chat_id_after_timestamp")
def delete_messages_by_chat_id_after_timestamp(db: Session, chat_id: str, timestamp: datetime) -> int:
    """Delete messages created at or after timestamp, and their votes.

    Returns the number of deleted messages.
    """
    message_ids = [
        row.id for row in
        db.query(Message.id)
        .filter(Message.chat_id == chat_id, Message.created_at >= timestamp)
        .all()
    ]
    if not message_ids:
        return 0

    db.query(Vote).filter(
        Vote.chat_id == chat_id, Vote.message_id.in_(message_ids)
    ).delete(synchronize_session=False)
    deleted = db.query(Message).filter(
        Message.chat_id == chat_id, Message.id.in_(message_ids)
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
