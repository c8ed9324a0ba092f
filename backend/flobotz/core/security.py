"""
Session verification for the chat API.

Sessions are issued elsewhere (the login UI); this service only verifies the
Bearer JWT it receives. The token subject is the user's email, resolved to a
``User`` row on every request.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from flobotz.core.config import settings
from flobotz.core.logging import auth_logger
from flobotz.core.monitoring import record_auth_attempt
from flobotz.database.connection import get_db


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.password_hash_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT carrying ``data`` plus an ``exp`` claim"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str, credentials_exception: Exception) -> str:
    """Return the token subject or raise ``credentials_exception``"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise credentials_exception
    email = payload.get("sub")
    if not email:
        raise credentials_exception
    return email


security = HTTPBearer(auto_error=False)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
):
    """Resolve the session user, or None when there is no valid session"""
    # Imported here: the user accessors depend on this module for hashing
    from flobotz.crud import user as user_crud

    if credentials is None:
        return None

    invalid = ValueError("invalid token")
    try:
        email = verify_token(credentials.credentials, invalid)
    except ValueError:
        auth_logger.warning("Authentication failed", reason="invalid token")
        record_auth_attempt(False)
        return None

    user = user_crud.get_user_by_email(db, email=email)
    if user is None:
        auth_logger.warning("Authentication failed", reason="unknown user")
        record_auth_attempt(False)
        return None

    auth_logger.debug("User authenticated", user_id=user.id)
    record_auth_attempt(True)
    # Read by the rate limit key function
    request.state.user_id = user.id
    return user


async def get_current_user(user=Depends(get_optional_user)):
    """Get current authenticated user"""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
