from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from flobotz.core.logging import get_logger
from flobotz.core.security import get_current_user
from flobotz.crud import chat as chat_crud
from flobotz.crud import message as message_crud
from flobotz.crud import vote as vote_crud
from flobotz.database.connection import get_db
from flobotz.models import User
from flobotz.schemas.vote import Vote, VoteRequest

logger = get_logger(__name__)
router = APIRouter(prefix="/api/vote", tags=["vote"])


def get_owned_chat(db: Session, chat_id: str, user: User):
    chat = chat_crud.get_chat_by_id(db, chat_id)
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    if chat.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return chat


@router.get("", response_model=List[Vote])
async def get_votes(
    chat_id: str = Query(alias="chatId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Votes recorded on a chat's messages"""
    get_owned_chat(db, chat_id, current_user)
    return vote_crud.get_votes_by_chat_id(db, chat_id)


@router.patch("", response_model=Vote)
async def vote(
    request: VoteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Up- or down-vote a message, replacing any earlier vote on it"""
    get_owned_chat(db, request.chat_id, current_user)

    message = message_crud.get_message_by_id(db, request.message_id)
    if message is None or message.chat_id != request.chat_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    db_vote = vote_crud.vote_message(
        db, chat_id=request.chat_id, message_id=request.message_id, type=request.type
    )
    logger.info("Message voted", chat_id=request.chat_id, message_id=request.message_id, type=request.type)
    return db_vote
