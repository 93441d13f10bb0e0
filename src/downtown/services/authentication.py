"""Access/refresh token pairs and the single-active-refresh-token policy.

Every login, registration or renewal mints a fresh pair and stores the new
refresh token on the user row. Renewal requires the presented refresh token
to match the stored one exactly, so minting a pair revokes all refresh
tokens issued before it.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from downtown.core.errors import InvalidToken, TokenError
from downtown.core.settings import settings
from downtown.db.session import atomic
from downtown.models import User
from downtown.services import tokens

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    user_id: int
    access_token: str
    refresh_token: str


def _decode(encoded: str | None, now: datetime | None) -> tokens.Token:
    return tokens.decode(
        encoded,
        settings.public_key_pem,
        issuer=settings.jwt_issuer,
        now=now,
    )


def mint_token_pair(user_id: int, *, now: datetime | None = None) -> TokenPair:
    """Sign a fresh access/refresh pair without touching the database."""
    private_key = settings.private_key_pem
    access = tokens.issue(
        private_key,
        timedelta(seconds=settings.access_token_max_age),
        user_id,
        issuer=settings.jwt_issuer,
        now=now,
    )
    refresh_token = tokens.issue(
        private_key,
        timedelta(seconds=settings.refresh_token_max_age),
        user_id,
        issuer=settings.jwt_issuer,
        now=now,
    )
    return TokenPair(
        user_id=user_id,
        access_token=access.encoded_token,
        refresh_token=refresh_token.encoded_token,
    )


def issue_token_pair(db: Session, user: User, *, now: datetime | None = None) -> TokenPair:
    """Mint an access/refresh pair for ``user`` and persist the refresh token."""
    pair = mint_token_pair(user.id, now=now)
    with atomic(db):
        user.refresh_token = pair.refresh_token

    logger.debug("Issued token pair for user %d", user.id)
    return pair


def refresh(db: Session, encoded: str | None, *, now: datetime | None = None) -> TokenPair:
    """Exchange the current refresh token for a new pair.

    The stored token is swapped with a compare-and-set on the user row, so of
    two renewals presenting the same token only one succeeds.

    Raises:
        InvalidToken: The token is valid but is not the user's current refresh token.
    """
    token = _decode(encoded, now)
    with atomic(db):
        user = db.get(User, token.user_id, with_for_update=True, populate_existing=True)
        if user is None or user.deleted:
            raise InvalidToken()

        stored = user.refresh_token
        if stored is None or not secrets.compare_digest(stored, token.encoded_token):
            logger.info("Rejected stale refresh token for user %d", user.id)
            raise InvalidToken()

        pair = mint_token_pair(user.id, now=now)
        swapped = db.execute(
            update(User)
            .where(User.id == user.id, User.refresh_token == token.encoded_token)
            .values(refresh_token=pair.refresh_token)
        )
        if swapped.rowcount != 1:
            logger.info("Refresh token for user %d was rotated concurrently", user.id)
            raise InvalidToken()

    logger.debug("Renewed token pair for user %d", user.id)
    return pair


def authenticate(db: Session, encoded: str | None, *, now: datetime | None = None) -> User:
    """Resolve the user behind an access token."""
    token = _decode(encoded, now)
    user = db.get(User, token.user_id)
    if user is None or user.deleted:
        raise TokenError("user not found")
    return user


def revoke(db: Session, user: User) -> None:
    """Drop the stored refresh token so no refresh token can be renewed."""
    with atomic(db):
        user.refresh_token = None
