class RecordNotFoundError(LookupError):
    """A row the caller referred to does not exist"""


class ChatNotFoundError(RecordNotFoundError):
    """A chat that an operation depends on does not exist"""

    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat with id {chat_id} not found")
