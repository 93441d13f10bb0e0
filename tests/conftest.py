# tests/conftest.py
from __future__ import annotations

import os
import re
from collections.abc import Generator, Iterator
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from downtown.scripts.keys import generate_key_pair

# Settings are read at import time, so the signing key and database must be
# configured before anything else from the application is imported.
_PRIVATE_PEM, _PUBLIC_PEM = generate_key_pair()
os.environ["JWT_PRIVATE_KEY"] = _PRIVATE_PEM
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("VERIFICATION_RESEND_INTERVAL_SECONDS", "0")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from downtown.db.session import Base  # noqa: E402
from downtown.db.session import get_db as app_get_session  # noqa: E402
from downtown.main import app as fastapi_app  # noqa: E402
from downtown.models import (  # noqa: E402
    IdVerificationType,
    Post,
    PostType,
    Sex,
    Town,
    User,
)
from downtown.services import authentication  # noqa: E402
from downtown.services.sms import SmsResult, get_sms_client  # noqa: E402
from downtown.services.storage import get_storage  # noqa: E402

TEST_DB_URL = "sqlite://"
CODE_PATTERN = re.compile(r"\[(\d{6})\]")


class RecordingSms:
    """SMS collaborator that records messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.result = SmsResult(code=0, message="success")

    def send(self, phone: str, message: str) -> SmsResult:
        self.sent.append((phone, message))
        return self.result

    def last_code(self, phone: str) -> str:
        for sent_phone, message in reversed(self.sent):
            if sent_phone == phone:
                match = CODE_PATTERN.search(message)
                assert match is not None, message
                return match.group(1)
        raise AssertionError(f"no message sent to {phone}")


class MemoryStorage:
    """Object storage collaborator backed by a dict."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def push_file(self, path: str, key: str) -> str:
        self.objects[key] = Path(path).read_bytes()
        return f"https://cdn.test/{key}"

    def delete_file(self, key: str) -> bool:
        self.objects.pop(key, None)
        self.deleted.append(key)
        return True


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own; take over so savepoints nest properly.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def sms() -> RecordingSms:
    return RecordingSms()


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    sms: RecordingSms,
    storage: MemoryStorage,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_sms_client] = lambda: sms
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def key_pair() -> tuple[str, str]:
    """Return the PEM key pair the application signs tokens with."""
    return _PRIVATE_PEM, _PUBLIC_PEM


def _make_user(db: Session, town: Town, name: str, phone: str) -> User:
    user = User(
        name=name,
        phone=phone,
        birthdate=date(1994, 3, 14),
        sex=Sex.FEMALE,
        town_id=town.id,
        verification_type=IdVerificationType.ID_CARD,
        verification_photo_url="https://cdn.test/verification_image/seed",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def town(db_session: Session) -> Town:
    town = Town(address="Seoul Mapo-gu Yeonnam-dong")
    db_session.add(town)
    db_session.commit()
    return town


@pytest.fixture()
def other_town(db_session: Session) -> Town:
    town = Town(address="Busan Haeundae-gu U-dong")
    db_session.add(town)
    db_session.commit()
    return town


@pytest.fixture()
def test_user(db_session: Session, town: Town) -> User:
    """Create and return a persisted test user."""
    return _make_user(db_session, town, "Test User", "01011112222")


@pytest.fixture()
def other_user(db_session: Session, town: Town) -> User:
    """Create and return a second persisted user in the same town."""
    return _make_user(db_session, town, "Other User", "01033334444")


@pytest.fixture()
def third_user(db_session: Session, town: Town) -> User:
    return _make_user(db_session, town, "Third User", "01055556666")


def _bearer(db: Session, user: User) -> dict[str, str]:
    pair = authentication.issue_token_pair(db, user)
    return {"Authorization": f"Bearer {pair.access_token}"}


@pytest.fixture()
def auth_token(db_session: Session, test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return _bearer(db_session, test_user)


@pytest.fixture()
def other_auth_token(db_session: Session, other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return _bearer(db_session, other_user)


@pytest.fixture()
def test_post(db_session: Session, test_user: User) -> Post:
    """Create a baseline daily post authored by the primary test user."""
    post = Post(
        author_id=test_user.id,
        post_type=int(PostType.DAILY),
        town_id=test_user.town_id,
        content="Test post content",
    )
    db_session.add(post)
    db_session.commit()
    return post


@pytest.fixture()
def upload_file(tmp_path: Path) -> Any:
    """Return a factory writing a small image-like file and returning its path."""

    def _factory(name: str = "photo.png", payload: bytes = b"\x89PNG fake") -> str:
        path = tmp_path / name
        path.write_bytes(payload)
        return str(path)

    return _factory
