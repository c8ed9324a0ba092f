import time
from typing import Dict

from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage, SystemMessage

from flobotz.core.logging import chat_logger
from flobotz.core.monitoring import record_llm_request

DEFAULT_TITLE = "New Conversation"

TITLE_PROMPT = """You will generate a short title based on the first message a user begins a conversation with.
- ensure it is not more than 80 characters long
- the title should be a summary of the user's message
- do not use quotes or colons"""


class TitleGenerator:
    def __init__(self, model: ChatOpenAI, max_length: int = 80):
        self.model = model
        self.max_length = max_length

    @classmethod
    def from_config(cls, config: Dict) -> "TitleGenerator":
        model = ChatOpenAI(
            model=config["model"],
            temperature=config["temperature"],
            openai_api_key=config["api_key"],
            timeout=config["timeout"],
            max_tokens=40,
        )
        return cls(model, max_length=config["max_length"])

    async def generate(self, first_message: str) -> str:
        """Generate a title for a chat from its first user message"""
        start_time = time.time()
        try:
            messages = [
                SystemMessage(content=TITLE_PROMPT),
                HumanMessage(content=first_message),
            ]
            response = await self.model.ainvoke(messages)
            record_llm_request("title", time.time() - start_time, True)
            return self.clean(response.content)

        except Exception as e:
            chat_logger.error("Error generating chat title", error=str(e))
            record_llm_request("title", time.time() - start_time, False)
            return DEFAULT_TITLE

    def clean(self, raw: str) -> str:
        title = (raw or "").strip().strip('"\'').replace(":", "").strip()
        if len(title) > self.max_length:
            title = title[:self.max_length - 3].rstrip() + "..."
        return title or DEFAULT_TITLE
