import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from flobotz.database.connection import Base


class DocumentKind(str, enum.Enum):
    text = "text"
    code = "code"
    image = "image"
    sheet = "sheet"


class Document(Base):
    """One version of a document; (id, created_at) identifies the version"""
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True)
    created_at = Column(DateTime(timezone=True), primary_key=True, server_default=func.now())
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=True)
    kind = Column(
        Enum(DocumentKind, name="document_kind"),
        nullable=False,
        default=DocumentKind.text,
        server_default=DocumentKind.text.value,
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
