import logging
from typing import Generator, Annotated
from fastapi import Depends, HTTPException, status, Path, Request
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from pydantic import ValidationError

from app.database import SessionLocal
from app.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)

# 1. DATABASE DEPENDENCY
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# 2. AUTH DEPENDENCY
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

async def get_token(
    request: Request,
    token_auth: str = Depends(oauth2_scheme)
) -> str:
    """
    Extract token from Header (API) OR Cookie (Browser).
    """
    if token_auth:
        return token_auth

    cookie_token = request.cookies.get("access_token")
    if cookie_token:
        return cookie_token

    logger.debug("No bearer token or cookie on request")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user(
        db: Annotated[Session, Depends(get_db)],
        token: Annotated[str, Depends(get_token)]
) -> User:

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
    except (JWTError, ValidationError):
        raise credentials_exception

    user = db.query(User).filter(User.username == username).first()
    if user is None or not user.is_active:
        raise credentials_exception

    return user

SessionDep = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]


# --- USER DEPENDENCY ---
async def get_target_user(
        user_id: Annotated[int, Path(title="The ID of the user")],
        db: SessionDep,
        viewer: CurrentUser
) -> User:
    """
    Fetches the profile being looked at. Inactive accounts are hidden.
    """
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=404, detail="User not found")

    return user

TargetUserDep = Annotated[User, Depends(get_target_user)]
