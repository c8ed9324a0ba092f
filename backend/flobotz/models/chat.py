import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from flobotz.database.connection import Base


class Visibility(str, enum.Enum):
    private = "private"
    public = "public"


class Chat(Base):
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    visibility = Column(
        Enum(Visibility, name="chat_visibility"),
        nullable=False,
        default=Visibility.private,
        server_default=Visibility.private.value,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="chats")
    messages = relationship("Message", back_populates="chat", order_by="Message.created_at")
