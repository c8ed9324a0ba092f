from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, ForeignKeyConstraint
from sqlalchemy.sql import func
from flobotz.database.connection import Base


class Suggestion(Base):
    __tablename__ = "suggestions"
    __table_args__ = (
        ForeignKeyConstraint(
            ["document_id", "document_created_at"],
            ["documents.id", "documents.created_at"],
        ),
    )

    id = Column(String(36), primary_key=True)
    document_id = Column(String(36), nullable=False, index=True)
    document_created_at = Column(DateTime(timezone=True), nullable=False)
    original_text = Column(Text, nullable=False)
    suggested_text = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    is_resolved = Column(Boolean, nullable=False, default=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
