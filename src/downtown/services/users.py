"""User registration, phone login and profile management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from downtown.core.errors import AppError, InvalidRequest, UserNotFound
from downtown.core.settings import settings
from downtown.db.session import atomic
from downtown.models import IdVerificationType, Sex, User, VerificationStatus
from downtown.services import authentication, comments, towns, verification, visibility
from downtown.services.authentication import TokenPair
from downtown.services.storage import (
    PROFILE_IMAGE_PREFIX,
    VERIFICATION_IMAGE_PREFIX,
    Storage,
    discard,
    random_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    """Fields submitted with a registration form."""

    name: str
    phone: str
    birthdate: date
    sex: Sex
    address: str
    verification_type: IdVerificationType
    authorization_code: str


def from_phone(db: Session, phone: str) -> User | None:
    return db.scalars(select(User).where(User.phone == phone)).first()


def register(
    db: Session,
    registration: Registration,
    verification_photo_path: str,
    storage: Storage,
    *,
    now: datetime | None = None,
) -> tuple[User, TokenPair]:
    """Create an account for a verified phone and sign the user in.

    The one-time code is checked first and consumed in the same transaction
    that inserts the user and stores its refresh token. If that transaction
    fails, the uploaded verification photo is removed again.

    Raises:
        VerificationError: The code is missing or wrong.
        VerificationExpired: The code is too old.
        InvalidRequest: The phone is already registered.
    """
    verification.authorize(db, registration.phone, registration.authorization_code, now=now)
    if from_phone(db, registration.phone) is not None:
        raise InvalidRequest("phone is already registered")

    photo_key = random_key(VERIFICATION_IMAGE_PREFIX)
    photo_url = storage.push_file(verification_photo_path, photo_key)

    try:
        with atomic(db):
            town = towns.get_or_create(db, registration.address)
            user = User(
                name=registration.name,
                phone=registration.phone,
                birthdate=registration.birthdate,
                sex=registration.sex,
                town_id=town.id,
                verification_type=registration.verification_type,
                verification_photo_url=photo_url,
                verification_status=VerificationStatus.PENDING,
                picture=settings.default_profile_picture,
            )
            db.add(user)
            db.flush()
            pair = authentication.mint_token_pair(user.id, now=now)
            user.refresh_token = pair.refresh_token
            verification.cancel(db, registration.phone)
    except AppError:
        discard(storage, [photo_key])
        raise

    logger.info("Registered user %d in town %d", user.id, user.town_id)
    return user, pair


def login_by_phone(
    db: Session,
    phone: str,
    code: str,
    *,
    now: datetime | None = None,
) -> TokenPair:
    """Sign in with a one-time code, revoking any earlier session."""
    user = from_phone(db, phone)
    if user is None or user.deleted:
        verification.authorize(db, phone, code, now=now)
        raise UserNotFound(phone)

    with atomic(db):
        verification.consume(db, phone, code, now=now)
        pair = authentication.mint_token_pair(user.id, now=now)
        user.refresh_token = pair.refresh_token
    return pair


def from_id(db: Session, user_id: int, viewer_id: int) -> User:
    """Fetch a profile the viewer may see.

    Raises:
        UserNotFound: The user is absent, withdrawn or blocked by the viewer.
        Blocked: The user has blocked the viewer.
    """
    user = db.get(User, user_id)
    if user is None or user.deleted:
        raise UserNotFound(user_id)
    visibility.ensure_not_blocked_by(db, user.id, viewer_id)
    if visibility.has_blocked(db, viewer_id, user.id):
        raise UserNotFound(user_id)
    return user


def update_bio(db: Session, user: User, bio: str | None) -> User:
    with atomic(db):
        user.bio = bio or None
    return user


def update_picture(db: Session, user: User, picture_path: str, storage: Storage) -> User:
    key = random_key(PROFILE_IMAGE_PREFIX)
    url = storage.push_file(picture_path, key)
    try:
        with atomic(db):
            user.picture = url
    except AppError:
        discard(storage, [key])
        raise
    return user


def withdraw(db: Session, user: User) -> None:
    """Close the account: sign out and detach the user from their comments."""
    with atomic(db):
        user.deleted = True
        user.refresh_token = None
        comments.withdraw_author(db, user.id)
    logger.info("User %d withdrew", user.id)
