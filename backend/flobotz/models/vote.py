from sqlalchemy import Column, String, Boolean, ForeignKey
from flobotz.database.connection import Base


class Vote(Base):
    __tablename__ = "votes"

    chat_id = Column(String(36), ForeignKey("chats.id"), primary_key=True)
    message_id = Column(String(36), ForeignKey("messages.id"), primary_key=True)
    is_upvoted = Column(Boolean, nullable=False)
