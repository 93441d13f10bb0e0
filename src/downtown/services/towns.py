"""Towns are created on demand from the address given at registration."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from downtown.core.errors import InvalidRequest, NotFound
from downtown.models import Town


def get_or_create(db: Session, address: str) -> Town:
    """Return the town for ``address``, inserting it if needed; the caller commits."""
    address = address.strip()
    if not address:
        raise InvalidRequest("address must not be empty")

    town = db.scalars(select(Town).where(Town.address == address)).first()
    if town is not None:
        return town

    town = Town(address=address)
    db.add(town)
    db.flush()
    return town


def from_id(db: Session, town_id: int) -> Town:
    town = db.get(Town, town_id)
    if town is None:
        raise NotFound(f"town {town_id} not found")
    return town
