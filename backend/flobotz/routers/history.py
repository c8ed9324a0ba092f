from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from flobotz.core.config import settings
from flobotz.core.security import get_current_user
from flobotz.crud import chat as chat_crud
from flobotz.crud.exceptions import ChatNotFoundError
from flobotz.database.connection import get_db
from flobotz.models import User
from flobotz.schemas.chat import Chat, ChatHistory

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("", response_model=ChatHistory)
async def get_history(
    limit: int = Query(default=settings.history_page_size, ge=1, le=settings.history_max_page_size),
    starting_after: Optional[str] = None,
    ending_before: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Page through the current user's chats, newest first"""
    if starting_after and ending_before:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only one of starting_after or ending_before can be provided",
        )

    try:
        page = chat_crud.get_chats_by_user_id(
            db,
            user_id=current_user.id,
            limit=limit,
            starting_after=starting_after,
            ending_before=ending_before,
        )
    except ChatNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ChatHistory(
        chats=[Chat.model_validate(chat) for chat in page.chats],
        has_more=page.has_more,
    )
