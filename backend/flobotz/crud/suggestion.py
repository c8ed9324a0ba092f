from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from flobotz.database.connection import db_operation
from flobotz.models.suggestion import Suggestion
from flobotz.schemas.document import SuggestionCreate


@db_operation("save_suggestions")
def save_suggestions(db: Session, suggestions: List[SuggestionCreate]) -> List[Suggestion]:
    now = datetime.now(timezone.utc)
    db_suggestions = [
        Suggestion(**suggestion.model_dump(), created_at=now)
        for suggestion in suggestions
    ]
    db.add_all(db_suggestions)
    db.commit()
    return db_suggestions


@db_operation("get_suggestions_by_document_id")
def get_suggestions_by_document_id(db: Session, document_id: str) -> List[Suggestion]:
    return (
        db.query(Suggestion)
        .filter(Suggestion.document_id == document_id)
        .order_by(Suggestion.created_at.asc())
        .all()
    )
