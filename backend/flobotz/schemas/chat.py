from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from flobotz.models.chat import Visibility


class UIMessage(BaseModel):
    """One conversation turn as sent by the chat UI"""
    id: Optional[str] = None
    role: str
    content: Optional[str] = None
    parts: List[Dict[str, Any]] = []
    experimental_attachments: Optional[List[Dict[str, Any]]] = None

    @property
    def text(self) -> str:
        texts = [
            part.get("text", "") for part in self.parts
            if part.get("type") == "text"
        ]
        if texts:
            return "".join(texts)
        return self.content or ""


class ChatRequest(BaseModel):
    id: str = Field(min_length=1)
    messages: List[UIMessage]
    selected_chat_model: Optional[str] = Field(default=None, alias="selectedChatModel")

    class Config:
        populate_by_name = True

    def most_recent_user_message(self) -> Optional[UIMessage]:
        for message in reversed(self.messages):
            if message.role == "user":
                return message
        return None


class StreamFragment(BaseModel):
    type: Literal["text"] = "text"
    content: str


class Message(BaseModel):
    id: str
    chat_id: str
    role: str
    parts: List[Dict[str, Any]]
    attachments: List[Dict[str, Any]] = []
    created_at: datetime

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    """Input for the message accessor"""
    id: str
    chat_id: str
    role: Literal["user", "assistant"]
    parts: List[Dict[str, Any]]
    attachments: List[Dict[str, Any]] = []
    created_at: Optional[datetime] = None


class Chat(BaseModel):
    id: str
    user_id: str
    title: str
    visibility: Visibility
    created_at: datetime

    class Config:
        from_attributes = True


class ChatHistory(BaseModel):
    chats: List[Chat]
    has_more: bool


class VisibilityUpdate(BaseModel):
    visibility: Visibility
