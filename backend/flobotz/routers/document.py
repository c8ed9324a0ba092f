from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from flobotz.core.logging import get_logger
from flobotz.core.security import get_current_user
from flobotz.crud import document as document_crud
from flobotz.crud import suggestion as suggestion_crud
from flobotz.database.connection import get_db
from flobotz.models import User
from flobotz.schemas.document import Document, DocumentCreate, DocumentPrune, Suggestion

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["documents"])


def check_owner(db: Session, document_id: str, user: User, required: bool = True):
    """Latest version of a document the user owns; 404/401 otherwise"""
    document = document_crud.get_document_by_id(db, document_id)
    if document is None:
        if required:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        return None
    if document.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return document


@router.get("/document", response_model=List[Document])
async def get_document_versions(
    id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All versions of a document, oldest first"""
    check_owner(db, id, current_user)
    return document_crud.get_documents_by_id(db, id)


@router.post("/document", response_model=Document, status_code=status.HTTP_201_CREATED)
async def save_document(
    document: DocumentCreate,
    id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save a new version of a document"""
    check_owner(db, id, current_user, required=False)
    db_document = document_crud.save_document(
        db,
        id=id,
        title=document.title,
        kind=document.kind,
        content=document.content,
        user_id=current_user.id,
    )
    logger.info("Document version saved", document_id=id, user_id=current_user.id)
    return db_document


@router.patch("/document")
async def prune_document_versions(
    prune: DocumentPrune,
    id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Drop every version saved after the given timestamp"""
    check_owner(db, id, current_user)
    deleted = document_crud.delete_documents_by_id_after_timestamp(db, id=id, timestamp=prune.timestamp)
    logger.info("Document versions deleted", document_id=id, count=deleted)
    return {"deleted": deleted}


@router.get("/suggestions", response_model=List[Suggestion])
async def get_suggestions(
    document_id: str = Query(alias="documentId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    check_owner(db, document_id, current_user)
    return suggestion_crud.get_suggestions_by_document_id(db, document_id)
