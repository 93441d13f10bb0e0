"""Shared API dependencies for authentication and external collaborators."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from downtown.db.session import get_db
from downtown.models import User
from downtown.services import authentication
from downtown.services.sms import SmsClient, get_sms_client
from downtown.services.storage import Storage, get_storage

# Missing credentials are reported by the token codec, not by FastAPI.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SmsDep = Annotated[SmsClient, Depends(get_sms_client)]
StorageDep = Annotated[Storage, Depends(get_storage)]


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the raw bearer credential, or ``None`` when the header is absent."""
    if credentials is None:
        return None
    return credentials.credentials


BearerTokenDep = Annotated[str | None, Depends(get_bearer_token)]


def get_current_user(token: BearerTokenDep, db: SessionDep) -> User:
    """Get the current authenticated user from the access token.

    Raises:
        TokenNotExists: No bearer token was sent.
        InvalidToken: The token is not a well-formed JWT.
        TokenExpired: The token is past its expiry.
        TokenError: The token failed verification or its user is gone.
    """
    return authentication.authenticate(db, token)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
