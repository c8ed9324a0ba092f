from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from flobotz.database.connection import db_operation
from flobotz.models.document import Document, DocumentKind
from flobotz.models.suggestion import Suggestion


@db_operation("save_document")
def save_document(
    db: Session,
    id: str,
    title: str,
    kind: DocumentKind,
    content: Optional[str],
    user_id: str,
) -> Document:
    """Store a new version of document ``id``"""
    db_document = Document(
        id=id,
        title=title,
        kind=kind,
        content=content,
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(db_document)
    db.commit()
    db.refresh(db_document)
    return db_document


@db_operation("get_documents_by_id")
def get_documents_by_id(db: Session, id: str) -> List[Document]:
    """All versions, oldest first"""
    return (
        db.query(Document)
        .filter(Document.id == id)
        .order_by(Document.created_at.asc())
        .all()
    )


@db_operation("get_document_by_id")
def get_document_by_id(db: Session, id: str) -> Optional[Document]:
    """Latest version"""
    return (
        db.query(Document)
        .filter(Document.id == id)
        .order_by(Document.created_at.desc())
        .first()
    )


@db_operation("delete_documents_by_id_after_timestamp")
def delete_documents_by_id_after_timestamp(db: Session, id: str, timestamp: datetime) -> int:
    """Drop versions newer than timestamp along with their suggestions"""
    db.query(Suggestion).filter(
        Suggestion.document_id == id,
        Suggestion.document_created_at > timestamp,
    ).delete(synchronize_session=False)
    deleted = db.query(Document).filter(
        Document.id == id,
        Document.created_at > timestamp,
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
