from .user import User
from .chat import Chat, Visibility
from .message import Message
from .vote import Vote
from .document import Document, DocumentKind
from .suggestion import Suggestion

__all__ = ["User", "Chat", "Visibility", "Message", "Vote", "Document", "DocumentKind", "Suggestion"]
