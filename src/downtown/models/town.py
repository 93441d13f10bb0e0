"""SQLAlchemy model for towns (neighbourhoods users belong to)."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from downtown.db.session import Base
from downtown.db.time import utcnow


class Town(Base):
    """A neighbourhood identified by its free-text address."""

    __tablename__ = "town"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
