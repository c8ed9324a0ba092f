import json
import time
import uuid
from dataclasses import dataclass
from typing import AsyncIterator, Sequence

from flobotz.core.config import settings
from flobotz.core.context import AppContext
from flobotz.core.logging import chat_logger
from flobotz.core.monitoring import record_llm_request, record_stream_fragment
from flobotz.crud import message as message_crud
from flobotz.database.connection import DatabaseSession
from flobotz.schemas.chat import MessageCreate, StreamFragment, UIMessage


@dataclass
class ChatTurn:
    """State of one submission shared between the stream and its background task"""
    chat_id: str
    user_id: str
    text: str = ""
    completed: bool = False
    assistant_message_id: str = ""


def format_fragment(content: str) -> str:
    """Encode one text fragment as a server-sent event"""
    return f"data: {json.dumps(StreamFragment(content=content).model_dump())}\n\n"


async def relay_assistant_reply(
    turn: ChatTurn,
    turns: Sequence[UIMessage],
    context: AppContext,
) -> AsyncIterator[str]:
    """Forward assistant fragments to the client and persist the full reply.

    Errors never abort the connection: they are logged and sent as one final
    inline fragment, and nothing is persisted for the failed reply.
    """
    start_time = time.time()
    try:
        async for content in context.assistant.stream_reply(turns):
            record_stream_fragment()
            yield format_fragment(content)
            turn.text += content

        turn.assistant_message_id = str(uuid.uuid4())
        with DatabaseSession("save_assistant_message", context.session_factory) as db:
            message_crud.save_messages(db, [
                MessageCreate(
                    id=turn.assistant_message_id,
                    chat_id=turn.chat_id,
                    role="assistant",
                    parts=[{"type": "text", "text": turn.text}],
                )
            ])
        turn.completed = True
        record_llm_request("run", time.time() - start_time, True)

        chat_logger.info(
            "Assistant reply stored",
            chat_id=turn.chat_id,
            user_id=turn.user_id,
            message_id=turn.assistant_message_id,
            length=len(turn.text),
            duration=time.time() - start_time,
        )

    except Exception as e:
        chat_logger.error(
            "Streaming error",
            chat_id=turn.chat_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        record_llm_request("run", time.time() - start_time, False)
        yield format_fragment(settings.assistant_error_message)


async def notify_webhook(turn: ChatTurn, context: AppContext) -> None:
    """Background task run once the response body is complete"""
    if not turn.completed:
        return
    await context.webhook.notify(turn.chat_id, turn.user_id, turn.text)
