"""
Streamed replies from the FloBotz assistant (OpenAI Assistants API).

Each reply runs on a fresh provider thread seeded with the conversation turns.
Only text deltas are surfaced; tool and status events are ignored. A run that
ends failed, cancelled or expired raises ``AssistantStreamError``.
"""

from typing import AsyncIterator, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from flobotz.core.logging import assistant_logger
from flobotz.schemas.chat import UIMessage

TERMINAL_FAILURE_EVENTS = {
    "thread.run.failed",
    "thread.run.cancelled",
    "thread.run.expired",
}


class AssistantStreamError(RuntimeError):
    """The provider ended a run without completing it"""


class AssistantService:
    def __init__(
        self,
        client: AsyncOpenAI,
        assistant_id: str,
        instructions: str,
        max_context_turns: int = 20,
    ):
        self.client = client
        self.assistant_id = assistant_id
        self.instructions = instructions
        self.max_context_turns = max_context_turns

    @classmethod
    def from_config(cls, config: Dict) -> "AssistantService":
        client = AsyncOpenAI(api_key=config["api_key"], timeout=config["timeout"])
        return cls(
            client=client,
            assistant_id=config["assistant_id"],
            instructions=config["instructions"],
        )

    def thread_messages(self, turns: Sequence[UIMessage]) -> List[Dict[str, str]]:
        """Map UI turns to thread messages, keeping the most recent ones"""
        messages = [
            {"role": turn.role, "content": turn.text}
            for turn in turns
            if turn.role in ("user", "assistant") and turn.text.strip()
        ]
        return messages[-self.max_context_turns:]

    async def stream_reply(self, turns: Sequence[UIMessage]) -> AsyncIterator[str]:
        """Yield text fragments of the assistant's reply as they arrive"""
        thread = await self.client.beta.threads.create(messages=self.thread_messages(turns))
        assistant_logger.debug("Thread created", thread_id=thread.id, turns=len(turns))

        stream = await self.client.beta.threads.runs.create(
            thread_id=thread.id,
            assistant_id=self.assistant_id,
            instructions=self.instructions,
            stream=True,
        )

        # Closing the stream releases the provider connection on error or disconnect
        async with stream:
            async for event in stream:
                if event.event == "thread.message.delta":
                    for block in event.data.delta.content or []:
                        text = extract_text(block)
                        if text:
                            yield text
                elif event.event in TERMINAL_FAILURE_EVENTS:
                    error = getattr(event.data, "last_error", None)
                    raise AssistantStreamError(
                        f"Run {event.data.id} ended with {event.event}: "
                        f"{error.message if error else 'no error detail'}"
                    )
                elif event.event == "error":
                    raise AssistantStreamError(f"Provider stream error: {event.data}")

        assistant_logger.debug("Run stream finished", thread_id=thread.id)

    async def aclose(self) -> None:
        await self.client.close()


def extract_text(block) -> Optional[str]:
    """Text of one message delta content block, if it carries any"""
    if getattr(block, "type", None) != "text":
        return None
    text = getattr(block, "text", None)
    return getattr(text, "value", None) if text is not None else None
