"""Request dependencies: database session, bearer-token user and role guards."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from fluent_forum.core.settings import settings
from fluent_forum.db.session import get_db
from fluent_forum.models import User

bearer_scheme = HTTPBearer()

SessionDep = Annotated[Session, Depends(get_db)]


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Resolve the bearer token to a user; the `sub` claim holds the user id.

    Raises:
        HTTPException: 401 if the token is invalid, expired or names no user.
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    if subject is None:
        raise _credentials_error()
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as err:
        raise _credentials_error() from err

    user = db.get(User, user_id)
    if user is None:
        raise _credentials_error("User not found")
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_admin(current_user: CurrentUserDep) -> User:
    """Reject callers whose role is not ``admin``."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this resource",
        )
    return current_user


AdminUserDep = Annotated[User, Depends(require_admin)]
