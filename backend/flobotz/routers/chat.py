import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from flobotz.core.config import settings
from flobotz.core.context import AppContext, get_app_context
from flobotz.core.logging import chat_logger
from flobotz.core.rate_limiter import limiter
from flobotz.core.security import get_current_user, get_optional_user
from flobotz.crud import chat as chat_crud
from flobotz.crud import message as message_crud
from flobotz.database.connection import get_db
from flobotz.models import User
from flobotz.models.chat import Visibility
from flobotz.schemas.chat import (
    Chat, ChatRequest, Message, MessageCreate, VisibilityUpdate
)
from flobotz.services.chat_stream import ChatTurn, notify_webhook, relay_assistant_reply

router = APIRouter(prefix="/api/chat", tags=["chat"])

GENERIC_ERROR = "An error occurred while processing your request!"


def _text(content: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(content, status_code=status_code)


@router.post("")
@limiter.limit(settings.chat_submit_rate_limit)
async def submit_message(
    request: Request,
    current_user: User = Depends(get_optional_user),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_app_context),
):
    """Store the user's message and stream the assistant's reply"""
    try:
        try:
            chat_request = ChatRequest.model_validate(await request.json())
        except (ValueError, ValidationError) as e:
            chat_logger.warning("Invalid chat request body", error=str(e))
            return _text("Invalid request body", status.HTTP_400_BAD_REQUEST)

        if current_user is None:
            return _text("Unauthorized", status.HTTP_401_UNAUTHORIZED)

        user_message = chat_request.most_recent_user_message()
        if user_message is None:
            return _text("No user message found", status.HTTP_400_BAD_REQUEST)

        chat_id = chat_request.id
        chat = chat_crud.get_chat_by_id(db, chat_id)

        if chat is None:
            title = await context.titles.generate(user_message.text)
            chat_crud.save_chat(db, id=chat_id, user_id=current_user.id, title=title)
            chat_logger.info("Chat created", chat_id=chat_id, user_id=current_user.id, title=title)
        elif chat.user_id != current_user.id:
            chat_logger.warning("Chat owned by another user", chat_id=chat_id, user_id=current_user.id)
            return _text("Unauthorized", status.HTTP_401_UNAUTHORIZED)

        message_crud.save_messages(db, [
            MessageCreate(
                id=user_message.id or str(uuid.uuid4()),
                chat_id=chat_id,
                role="user",
                parts=user_message.parts or [{"type": "text", "text": user_message.text}],
                attachments=user_message.experimental_attachments or [],
            )
        ])
        chat_logger.info(
            "Message sent",
            chat_id=chat_id,
            user_id=current_user.id,
            model=chat_request.selected_chat_model,
        )

        turn = ChatTurn(chat_id=chat_id, user_id=current_user.id)
        return StreamingResponse(
            relay_assistant_reply(turn, chat_request.messages, context),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
            background=BackgroundTask(notify_webhook, turn, context),
        )

    except Exception as e:
        chat_logger.error("POST /api/chat error", error=str(e), exc_info=True)
        return _text(GENERIC_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("")
@limiter.limit(settings.chat_delete_rate_limit)
async def delete_chat(
    request: Request,
    id: Optional[str] = Query(default=None),
    current_user: User = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Delete a chat the current user owns"""
    if not id:
        return _text("Not Found", status.HTTP_404_NOT_FOUND)

    if current_user is None:
        return _text("Unauthorized", status.HTTP_401_UNAUTHORIZED)

    try:
        chat = chat_crud.get_chat_by_id(db, id)
        if chat is None:
            return _text("Not Found", status.HTTP_404_NOT_FOUND)

        if chat.user_id != current_user.id:
            chat_logger.warning("Delete of chat owned by another user", chat_id=id, user_id=current_user.id)
            return _text("Unauthorized", status.HTTP_401_UNAUTHORIZED)

        chat_crud.delete_chat_by_id(db, id)
        chat_logger.info("Chat deleted", chat_id=id, user_id=current_user.id)
        return _text("Chat deleted", status.HTTP_200_OK)

    except Exception as e:
        chat_logger.error("DELETE /api/chat error", chat_id=id, error=str(e), exc_info=True)
        return _text(GENERIC_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{chat_id}/messages", response_model=List[Message])
async def get_chat_messages(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Messages of an owned or public chat, oldest first"""
    chat = chat_crud.get_chat_by_id(db, chat_id)
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    if chat.visibility != Visibility.public and chat.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return message_crud.get_messages_by_chat_id(db, chat_id)


@router.patch("/{chat_id}/visibility", response_model=Chat)
async def update_visibility(
    chat_id: str,
    update: VisibilityUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    chat = chat_crud.get_chat_by_id(db, chat_id)
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    if chat.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    updated = chat_crud.update_chat_visibility_by_id(db, chat_id, update.visibility)
    chat_logger.info("Chat visibility updated", chat_id=chat_id, visibility=update.visibility.value)
    return updated


@router.delete("/messages/{message_id}/trailing")
async def delete_trailing_messages(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a message and everything after it in the same chat"""
    message = message_crud.get_message_by_id(db, message_id)
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    chat = chat_crud.get_chat_by_id(db, message.chat_id)
    if chat is None or chat.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    # The delete commits and expires the loaded row
    chat_id, timestamp = message.chat_id, message.created_at
    deleted = message_crud.delete_messages_by_chat_id_after_timestamp(
        db, chat_id=chat_id, timestamp=timestamp
    )
    chat_logger.info("Trailing messages deleted", chat_id=chat_id, count=deleted)
    return {"deleted": deleted}
