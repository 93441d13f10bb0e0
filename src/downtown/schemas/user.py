"""User-related Pydantic schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from downtown.models import Sex, User, VerificationStatus


class UserResponse(BaseModel):
    """Public profile of a user."""

    id: int
    name: str
    sex: Sex
    town_id: int
    picture: str | None
    bio: str | None
    like_count: int = Field(0, description="Number of users who liked this user")
    created_at: datetime

    @classmethod
    def from_user(cls, user: User, *, like_count: int) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            sex=user.sex,
            town_id=user.town_id,
            picture=user.picture,
            bio=user.bio,
            like_count=like_count,
            created_at=user.created_at,
        )


class MyProfileResponse(UserResponse):
    """Profile of the signed-in user, including private fields."""

    phone: str
    birthdate: date
    address: str
    verification_status: VerificationStatus

    @classmethod
    def from_owner(cls, user: User, *, address: str, like_count: int) -> "MyProfileResponse":
        public = UserResponse.from_user(user, like_count=like_count)
        return cls(
            **public.model_dump(),
            phone=user.phone,
            birthdate=user.birthdate,
            address=address,
            verification_status=user.verification_status,
        )


class BioUpdate(BaseModel):
    bio: str | None = Field(None, max_length=512)
