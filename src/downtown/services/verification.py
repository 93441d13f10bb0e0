"""One-time codes proving ownership of a phone number.

Each phone has at most one pending code. Sending replaces it, authorizing
checks it against the configured lifetime, and cancelling removes it so a
code is never accepted twice.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from downtown.core.errors import (
    MessageSendError,
    TooManyRequests,
    VerificationError,
    VerificationExpired,
)
from downtown.core.settings import settings
from downtown.db.session import atomic
from downtown.db.time import as_utc, utcnow
from downtown.models import PhoneAuthorization
from downtown.services.sms import SmsClient

logger = logging.getLogger(__name__)

CODE_LENGTH = 6


def generate_code() -> str:
    """Return a uniformly random, zero-padded numeric code."""
    return f"{secrets.randbelow(10 ** CODE_LENGTH):0{CODE_LENGTH}d}"


def render_message(code: str) -> str:
    return settings.sms_message_template.format(code=code)


def _find(db: Session, phone: str) -> PhoneAuthorization | None:
    return db.scalars(
        select(PhoneAuthorization).where(PhoneAuthorization.phone == phone)
    ).first()


def send(
    db: Session,
    phone: str,
    sms: SmsClient,
    *,
    now: datetime | None = None,
) -> PhoneAuthorization:
    """Issue a new code for ``phone`` and deliver it by SMS.

    The message goes out before any row is written, so no row lock is held
    across the vendor call. Once the vendor accepts it, the pending code for
    the phone is replaced by the new one.

    Raises:
        TooManyRequests: A code was sent within the configured resend interval.
        MessageSendError: The vendor returned a non-zero result code.
    """
    current = now or utcnow()

    interval = settings.verification_resend_interval_seconds
    if interval > 0:
        existing = _find(db, phone)
        if existing is not None and current - as_utc(existing.created_at) < timedelta(
            seconds=interval
        ):
            raise TooManyRequests("verification code was sent recently")

    code = generate_code()
    result = sms.send(phone, render_message(code))
    if not result.ok:
        raise MessageSendError(result.code, result.message)

    with atomic(db):
        cancel(db, phone)
        record = PhoneAuthorization(phone=phone, code=code, created_at=current)
        db.add(record)

    logger.info("Sent verification code to phone ending %s", phone[-4:])
    return record


def authorize(
    db: Session,
    phone: str,
    code: str,
    *,
    now: datetime | None = None,
) -> None:
    """Check ``code`` against the pending code for ``phone``.

    A missing record and a wrong code are indistinguishable to the caller.
    An expired record fails as expired whether or not the code matches.
    """
    record = _find(db, phone)
    if record is None:
        raise VerificationError()

    elapsed = (now or utcnow()) - as_utc(record.created_at)
    if elapsed >= timedelta(minutes=settings.verification_code_ttl_minutes):
        raise VerificationExpired()

    if not secrets.compare_digest(record.code.encode(), code.encode()):
        raise VerificationError()


def cancel(db: Session, phone: str) -> None:
    """Remove the pending code for ``phone``; the caller commits."""
    db.execute(delete(PhoneAuthorization).where(PhoneAuthorization.phone == phone))


def purge_expired(db: Session, *, now: datetime | None = None) -> int:
    """Delete every code past its lifetime and return how many were removed."""
    cutoff = (now or utcnow()) - timedelta(minutes=settings.verification_code_ttl_minutes)
    with atomic(db):
        result = db.execute(
            delete(PhoneAuthorization).where(PhoneAuthorization.created_at <= cutoff)
        )
    return result.rowcount or 0


def consume(
    db: Session,
    phone: str,
    code: str,
    *,
    now: datetime | None = None,
) -> None:
    """Authorize ``code`` and drop it in the caller's transaction."""
    authorize(db, phone, code, now=now)
    cancel(db, phone)
