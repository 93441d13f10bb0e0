"""User registration, profile, like and block endpoints."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from downtown.api.v1.dependencies import CurrentUserDep, SessionDep, StorageDep
from downtown.api.v1.uploads import saved_uploads
from downtown.models import IdVerificationType, Sex, User
from downtown.schemas.token import PHONE_PATTERN, TokenPairResponse
from downtown.schemas.user import BioUpdate, MyProfileResponse, UserResponse
from downtown.services import likes, towns, users, visibility

router = APIRouter(prefix="/user", tags=["users"])


def _my_profile(db: Session, user: User) -> MyProfileResponse:
    return MyProfileResponse.from_owner(
        user,
        address=towns.from_id(db, user.town_id).address,
        like_count=likes.user_like_count(db, user.id),
    )


@router.post("", response_model=TokenPairResponse, status_code=status.HTTP_201_CREATED)
def register(
    db: SessionDep,
    storage: StorageDep,
    name: Annotated[str, Form(min_length=1, max_length=32)],
    phone: Annotated[str, Form(pattern=PHONE_PATTERN)],
    birthdate: Annotated[date, Form()],
    sex: Annotated[Sex, Form()],
    address: Annotated[str, Form(min_length=1, max_length=256)],
    verification_type: Annotated[IdVerificationType, Form()],
    authorization_code: Annotated[str, Form(pattern=r"^\d{6}$")],
    verification_photo: Annotated[UploadFile, File()],
) -> TokenPairResponse:
    """Register a phone-verified user and return their first token pair.

    The verification photo is kept for manual review; the account starts in
    the ``pending`` verification status.
    """
    registration = users.Registration(
        name=name,
        phone=phone,
        birthdate=birthdate,
        sex=sex,
        address=address,
        verification_type=verification_type,
        authorization_code=authorization_code,
    )
    with saved_uploads([verification_photo]) as (photo_path,):
        _, pair = users.register(db, registration, photo_path, storage)
    return TokenPairResponse.model_validate(pair)


@router.get("", response_model=MyProfileResponse)
def get_me(db: SessionDep, current_user: CurrentUserDep) -> MyProfileResponse:
    return _my_profile(db, current_user)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def withdraw(db: SessionDep, current_user: CurrentUserDep) -> None:
    """Close the signed-in account."""
    users.withdraw(db, current_user)


@router.patch("/bio", response_model=MyProfileResponse)
def update_bio(
    payload: BioUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> MyProfileResponse:
    users.update_bio(db, current_user, payload.bio)
    return _my_profile(db, current_user)


@router.put("/picture", response_model=MyProfileResponse)
def update_picture(
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
    picture: Annotated[UploadFile, File()],
) -> MyProfileResponse:
    with saved_uploads([picture]) as (picture_path,):
        users.update_picture(db, current_user, picture_path, storage)
    return _my_profile(db, current_user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: SessionDep, current_user: CurrentUserDep) -> UserResponse:
    user = users.from_id(db, user_id, current_user.id)
    return UserResponse.from_user(user, like_count=likes.user_like_count(db, user.id))


@router.post("/{user_id}/like", status_code=status.HTTP_204_NO_CONTENT)
def like_user(user_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    users.from_id(db, user_id, current_user.id)
    likes.like_user(db, current_user, user_id)


@router.delete("/{user_id}/like", status_code=status.HTTP_204_NO_CONTENT)
def unlike_user(user_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    likes.unlike_user(db, current_user, user_id)


@router.post("/{user_id}/block", status_code=status.HTTP_204_NO_CONTENT)
def block_user(user_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    visibility.block_user(db, current_user, user_id)


@router.delete("/{user_id}/block", status_code=status.HTTP_204_NO_CONTENT)
def unblock_user(user_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    visibility.unblock_user(db, current_user, user_id)
