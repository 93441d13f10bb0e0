"""SQLAlchemy models for user accounts."""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base
from downtown.db.time import utcnow


class Sex(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class IdVerificationType(str, enum.Enum):
    """Kind of identity document submitted at registration."""

    ID_CARD = "id_card"
    DRIVER_LICENSE = "driver_license"
    RESIDENT_REGISTER = "resident_register"


class VerificationStatus(str, enum.Enum):
    """Outcome of the identity document review."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED_LOW_QUALITY = "rejected_low_quality"
    REJECTED_UNMASKED = "rejected_unmasked"
    REJECTED_MISMATCH = "rejected_mismatch"


def _enum_column(enum_cls: type[enum.Enum]) -> Enum:
    # Persist the lowercase values rather than member names.
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class User(Base):
    """Registered member of a town."""

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(32), nullable=False)
    phone: Mapped[str] = mapped_column(String(13), unique=True, nullable=False)
    birthdate: Mapped[date] = mapped_column(Date, nullable=False)
    sex: Mapped[Sex] = mapped_column(_enum_column(Sex), nullable=False)
    town_id: Mapped[int] = mapped_column(Integer, ForeignKey("town.id"), nullable=False)
    verification_type: Mapped[IdVerificationType] = mapped_column(
        _enum_column(IdVerificationType), nullable=False
    )
    verification_photo_url: Mapped[str] = mapped_column(String(4096), nullable=False)
    verification_status: Mapped[VerificationStatus] = mapped_column(
        _enum_column(VerificationStatus),
        nullable=False,
        default=VerificationStatus.PENDING,
    )
    picture: Mapped[str | None] = mapped_column(String(4096), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(512), nullable=True)
    # Only the most recently issued refresh token is accepted for renewal.
    refresh_token: Mapped[str | None] = mapped_column(String(4096), nullable=True)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
