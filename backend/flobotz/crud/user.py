import uuid
from typing import Optional

from sqlalchemy.orm import Session

from flobotz.core.security import get_password_hash
from flobotz.database.connection import db_operation
from flobotz.models.user import User


@db_operation("get_user_by_email")
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


@db_operation("get_user_by_id")
def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


@db_operation("create_user")
def create_user(db: Session, email: str, password: Optional[str] = None) -> User:
    """Create a user; password is optional for externally provisioned accounts"""
    db_user = User(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=get_password_hash(password) if password else None,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
