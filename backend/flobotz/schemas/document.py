from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from flobotz.models.document import DocumentKind


class DocumentCreate(BaseModel):
    title: str
    content: Optional[str] = None
    kind: DocumentKind = DocumentKind.text


class DocumentPrune(BaseModel):
    timestamp: datetime


class Document(BaseModel):
    id: str
    created_at: datetime
    title: str
    content: Optional[str] = None
    kind: DocumentKind
    user_id: str

    class Config:
        from_attributes = True


class SuggestionCreate(BaseModel):
    id: str
    document_id: str
    document_created_at: datetime
    original_text: str
    suggested_text: str
    description: Optional[str] = None
    is_resolved: bool = False
    user_id: str


class Suggestion(SuggestionCreate):
    created_at: datetime

    class Config:
        from_attributes = True
