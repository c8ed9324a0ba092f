from pydantic import BaseModel, Field
from typing import Literal


class VoteRequest(BaseModel):
    chat_id: str = Field(alias="chatId")
    message_id: str = Field(alias="messageId")
    type: Literal["up", "down"]

    class Config:
        populate_by_name = True


class Vote(BaseModel):
    chat_id: str
    message_id: str
    is_upvoted: bool

    class Config:
        from_attributes = True
