from typing import List, Literal

from sqlalchemy.orm import Session

from flobotz.database.connection import db_operation
from flobotz.models.vote import Vote


@db_operation("vote_message")
def vote_message(db: Session, chat_id: str, message_id: str, type: Literal["up", "down"]) -> Vote:
    """Record or flip the single vote a message may carry"""
    is_upvoted = type == "up"
    vote = db.query(Vote).filter(Vote.message_id == message_id).first()
    if vote:
        vote.is_upvoted = is_upvoted
    else:
        vote = Vote(chat_id=chat_id, message_id=message_id, is_upvoted=is_upvoted)
        db.add(vote)
    db.commit()
    db.refresh(vote)
    return vote


@db_operation("get_votes_by_chat_id")
def get_votes_by_chat_id(db: Session, chat_id: str) -> List[Vote]:
    return db.query(Vote).filter(Vote.chat_id == chat_id).all()
