from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from flobotz.database.connection import Base


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, index=True)
    chat_id = Column(String(36), ForeignKey("chats.id"), nullable=False, index=True)
    role = Column(String(50), nullable=False)  # 'user' or 'assistant'
    parts = Column(JSON, nullable=False, default=list)  # [{"type": "text", "text": "..."}]
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # Relationships
    chat = relationship("Chat", back_populates="messages")

    @property
    def text(self) -> str:
        """Concatenated text of all text parts"""
        return "".join(
            part.get("text", "") for part in (self.parts or [])
            if isinstance(part, dict) and part.get("type") == "text"
        )
