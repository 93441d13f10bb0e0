"""Model holding the pending one-time code for a phone number."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base
from downtown.db.time import utcnow


class PhoneAuthorization(Base):
    """At most one live code per phone; replaced wholesale on every send."""

    __tablename__ = "phone_authorization"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone: Mapped[str] = mapped_column(String(13), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
