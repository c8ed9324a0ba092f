from .chat import (
    UIMessage, ChatRequest, StreamFragment, Message, MessageCreate,
    Chat, ChatHistory, VisibilityUpdate
)
from .vote import Vote, VoteRequest
from .document import Document, DocumentCreate, DocumentPrune, Suggestion, SuggestionCreate

__all__ = [
    "UIMessage", "ChatRequest", "StreamFragment", "Message", "MessageCreate",
    "Chat", "ChatHistory", "VisibilityUpdate",
    "Vote", "VoteRequest",
    "Document", "DocumentCreate", "DocumentPrune", "Suggestion", "SuggestionCreate",
]
