"""Tests for the one-time phone verification code lifecycle."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select

from downtown.core.errors import (
    MessageSendError,
    TooManyRequests,
    VerificationError,
    VerificationExpired,
)
from downtown.core.settings import settings
from downtown.models import PhoneAuthorization
from downtown.services import verification
from downtown.services.sms import SmsResult

PHONE = "0100000000"
T0 = datetime(2026, 5, 1, 9, 0, 0, tzinfo=UTC)


def _records(db_session, phone: str = PHONE) -> list[PhoneAuthorization]:
    return list(
        db_session.scalars(select(PhoneAuthorization).where(PhoneAuthorization.phone == phone))
    )


def test_generated_codes_are_six_digits() -> None:
    for _ in range(200):
        code = verification.generate_code()
        assert len(code) == 6
        assert code.isdigit()


def test_send_stores_code_and_delivers_it(db_session, sms) -> None:
    record = verification.send(db_session, PHONE, sms, now=T0)

    assert [r.code for r in _records(db_session)] == [record.code]
    assert sms.last_code(PHONE) == record.code


def test_send_replaces_pending_code(db_session, sms) -> None:
    verification.send(db_session, PHONE, sms, now=T0)
    second = verification.send(db_session, PHONE, sms, now=T0 + timedelta(minutes=1))

    records = _records(db_session)
    assert len(records) == 1
    assert records[0].code == second.code


def test_vendor_failure_rolls_back(db_session, sms) -> None:
    sms.result = SmsResult(code=-99, message="invalid sender")

    with pytest.raises(MessageSendError) as exc_info:
        verification.send(db_session, PHONE, sms, now=T0)

    assert exc_info.value.code == -99
    assert exc_info.value.status_code == 500
    assert _records(db_session) == []


def test_failed_resend_keeps_pending_code(db_session, sms) -> None:
    first = verification.send(db_session, PHONE, sms, now=T0)
    sms.result = SmsResult(code=-99, message="invalid sender")

    with pytest.raises(MessageSendError):
        verification.send(db_session, PHONE, sms, now=T0 + timedelta(minutes=1))

    assert [r.code for r in _records(db_session)] == [first.code]
    verification.authorize(db_session, PHONE, first.code, now=T0 + timedelta(minutes=2))


def test_message_is_sent_before_code_is_stored(db_session, sms) -> None:
    first = verification.send(db_session, PHONE, sms, now=T0)
    pending_during_send: list[list[str]] = []

    class InspectingSms:
        def send(self, phone: str, message: str) -> SmsResult:
            pending_during_send.append([r.code for r in _records(db_session, phone)])
            return sms.send(phone, message)

    second = verification.send(db_session, PHONE, InspectingSms(), now=T0 + timedelta(minutes=1))

    assert pending_during_send == [[first.code]]
    assert [r.code for r in _records(db_session)] == [second.code]


def test_message_uses_configured_template(db_session, sms, monkeypatch) -> None:
    monkeypatch.setattr(settings, "sms_message_template", "Your downtown code is {code}.")

    record = verification.send(db_session, PHONE, sms, now=T0)

    assert sms.sent == [(PHONE, f"Your downtown code is {record.code}.")]


class TestAuthorize:
    def test_code_accepted_within_lifetime(self, db_session, sms) -> None:
        record = verification.send(db_session, PHONE, sms, now=T0)

        verification.authorize(db_session, PHONE, record.code, now=T0 + timedelta(minutes=5))

    def test_code_expired_after_thirty_one_minutes(self, db_session, sms) -> None:
        record = verification.send(db_session, PHONE, sms, now=T0)

        with pytest.raises(VerificationExpired):
            verification.authorize(
                db_session, PHONE, record.code, now=T0 + timedelta(minutes=31)
            )

    def test_code_expired_exactly_at_boundary(self, db_session, sms) -> None:
        record = verification.send(db_session, PHONE, sms, now=T0)

        with pytest.raises(VerificationExpired):
            verification.authorize(
                db_session,
                PHONE,
                record.code,
                now=T0 + timedelta(minutes=settings.verification_code_ttl_minutes),
            )

    def test_expired_wins_over_wrong_code(self, db_session, sms) -> None:
        verification.send(db_session, PHONE, sms, now=T0)

        with pytest.raises(VerificationExpired):
            verification.authorize(db_session, PHONE, "not-it", now=T0 + timedelta(hours=2))

    def test_wrong_code_is_a_mismatch_not_expiry(self, db_session, sms) -> None:
        record = verification.send(db_session, PHONE, sms, now=T0)
        wrong = f"{(int(record.code) + 1) % 1_000_000:06d}"

        with pytest.raises(VerificationError) as exc_info:
            verification.authorize(db_session, PHONE, wrong, now=T0)
        assert not isinstance(exc_info.value, VerificationExpired)

    def test_no_code_sent_is_a_mismatch(self, db_session) -> None:
        with pytest.raises(VerificationError) as exc_info:
            verification.authorize(db_session, PHONE, "123456", now=T0)
        assert not isinstance(exc_info.value, VerificationExpired)


def test_cancel_prevents_reuse(db_session, sms) -> None:
    record = verification.send(db_session, PHONE, sms, now=T0)
    verification.consume(db_session, PHONE, record.code, now=T0)
    db_session.commit()

    with pytest.raises(VerificationError):
        verification.authorize(db_session, PHONE, record.code, now=T0)


def test_resend_throttle(db_session, sms, monkeypatch) -> None:
    monkeypatch.setattr(settings, "verification_resend_interval_seconds", 60)
    verification.send(db_session, PHONE, sms, now=T0)

    with pytest.raises(TooManyRequests):
        verification.send(db_session, PHONE, sms, now=T0 + timedelta(seconds=30))

    verification.send(db_session, PHONE, sms, now=T0 + timedelta(seconds=61))
    assert len(sms.sent) == 2


def test_purge_expired_keeps_live_codes(db_session, sms) -> None:
    verification.send(db_session, "01000000001", sms, now=T0)
    verification.send(db_session, "01000000002", sms, now=T0 + timedelta(minutes=20))

    removed = verification.purge_expired(db_session, now=T0 + timedelta(minutes=35))

    assert removed == 1
    assert _records(db_session, "01000000001") == []
    assert len(_records(db_session, "01000000002")) == 1
