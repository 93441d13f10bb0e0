"""Tests for token pairs and the single active refresh token per user."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import update

from downtown.core.errors import InvalidToken, TokenError, TokenExpired
from downtown.core.settings import settings
from downtown.db.time import utcnow
from downtown.models import User
from downtown.services import authentication


def test_issue_token_pair_persists_refresh_token(db_session, test_user) -> None:
    pair = authentication.issue_token_pair(db_session, test_user)

    db_session.refresh(test_user)
    assert pair.user_id == test_user.id
    assert test_user.refresh_token == pair.refresh_token
    assert pair.access_token != pair.refresh_token


def test_refresh_rotates_the_stored_token(db_session, test_user) -> None:
    first = authentication.issue_token_pair(db_session, test_user)

    second = authentication.refresh(db_session, first.refresh_token)

    db_session.refresh(test_user)
    assert second.refresh_token != first.refresh_token
    assert test_user.refresh_token == second.refresh_token


def test_previous_refresh_token_is_rejected(db_session, test_user) -> None:
    """Minting a new pair revokes every refresh token issued before it."""
    t1 = authentication.issue_token_pair(db_session, test_user).refresh_token
    authentication.issue_token_pair(db_session, test_user)

    with pytest.raises(InvalidToken):
        authentication.refresh(db_session, t1)


def test_revoked_user_cannot_refresh(db_session, test_user) -> None:
    pair = authentication.issue_token_pair(db_session, test_user)
    authentication.revoke(db_session, test_user)

    with pytest.raises(InvalidToken):
        authentication.refresh(db_session, pair.refresh_token)


def test_expired_refresh_token(db_session, test_user) -> None:
    pair = authentication.issue_token_pair(db_session, test_user)
    later = utcnow() + timedelta(seconds=settings.refresh_token_max_age + 1)

    with pytest.raises(TokenExpired):
        authentication.refresh(db_session, pair.refresh_token, now=later)


def test_authenticate_resolves_user(db_session, test_user) -> None:
    pair = authentication.issue_token_pair(db_session, test_user)

    user = authentication.authenticate(db_session, pair.access_token)

    assert user.id == test_user.id


def test_authenticate_rejects_withdrawn_user(db_session, test_user) -> None:
    pair = authentication.issue_token_pair(db_session, test_user)
    test_user.deleted = True
    db_session.commit()

    with pytest.raises(TokenError):
        authentication.authenticate(db_session, pair.access_token)


def test_access_token_expires_before_refresh_token(db_session, test_user) -> None:
    pair = authentication.issue_token_pair(db_session, test_user)
    later = utcnow() + timedelta(seconds=settings.access_token_max_age + 1)

    with pytest.raises(TokenExpired):
        authentication.authenticate(db_session, pair.access_token, now=later)
    assert authentication.refresh(db_session, pair.refresh_token, now=later).user_id == test_user.id


def test_refresh_token_is_single_use(db_session, test_user) -> None:
    t1 = authentication.issue_token_pair(db_session, test_user).refresh_token

    authentication.refresh(db_session, t1)
    with pytest.raises(InvalidToken):
        authentication.refresh(db_session, t1)


def test_rotation_between_check_and_write_is_rejected(db_session, test_user, monkeypatch) -> None:
    t1 = authentication.issue_token_pair(db_session, test_user).refresh_token
    mint = authentication.mint_token_pair

    def rotate_elsewhere_then_mint(user_id, *, now=None):
        db_session.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token="renewed-by-another-request")
        )
        return mint(user_id, now=now)

    monkeypatch.setattr(authentication, "mint_token_pair", rotate_elsewhere_then_mint)

    with pytest.raises(InvalidToken):
        authentication.refresh(db_session, t1)
    db_session.refresh(test_user)
    assert test_user.refresh_token == t1
