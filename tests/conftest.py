import os
import tempfile
from datetime import date, datetime, timezone

# Configure before the app modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["LOG_PATH"] = os.path.join(tempfile.gettempdir(), "vacations-tests", "api.log")
os.environ["FIREBASE_CREDENTIALS_PATH"] = os.path.join(tempfile.gettempdir(), "missing-service-account.json")
os.environ.pop("GOOGLE_APPLICATION_CREDENTIALS", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from dependencies import get_token_verifier, get_clock, get_storage
from main import app
from models import Activity, Trip, TripMember, MemberRole, MemberStatus, User
from services.clock import FixedClock
from services.storage import PhotoStorage, PhotoUpload

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-content"


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(name="db")
def db_fixture(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(name="clock")
def clock_fixture():
    return FixedClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc), "UTC")


@pytest.fixture(name="storage")
def storage_fixture(tmp_path):
    return PhotoStorage(tmp_path)


def fake_verifier(token):
    # The token is the uid; "bad-token" fails verification
    if token == "bad-token":
        return None
    return token


@pytest.fixture(name="client")
def client_fixture(session_factory, clock, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_verifier] = lambda: fake_verifier
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_storage] = lambda: storage
    client = TestClient(app, raise_server_exceptions=False)
    yield client
    app.dependency_overrides.clear()


def auth(uid):
    return {"Authorization": f"Bearer {uid}"}


def make_user(db, uid, email=None, name=None):
    user = User(
        firebase_uid=uid,
        username=uid,
        email=email or f"{uid}@gmail.com",
        name=name or uid.capitalize(),
    )
    db.add(user)
    db.commit()
    return user


def make_trip(db, owner, start=date(2024, 6, 1), end=date(2024, 6, 10), title="Lisbon"):
    trip = Trip(owner_id=owner.firebase_uid, title=title, start_date=start, end_date=end)
    trip.members.append(TripMember(
        user_id=owner.firebase_uid,
        role=MemberRole.OWNER,
        status=MemberStatus.ACCEPTED,
    ))
    db.add(trip)
    db.commit()
    return trip


def add_member(db, trip, user, role=MemberRole.MEMBER, status=MemberStatus.ACCEPTED):
    member = TripMember(trip_id=trip.id, user_id=user.firebase_uid, role=role, status=status)
    db.add(member)
    db.commit()
    return member


def make_activity(db, trip, day=date(2024, 6, 1), title="Tram 28"):
    activity = Activity(trip_id=trip.id, title=title, date=day)
    db.add(activity)
    db.commit()
    return activity


def photo(name="moment.jpg", content_type="image/jpeg", content=JPEG_BYTES):
    return PhotoUpload(filename=name, content_type=content_type, content=content)


def photo_files(count, name="moment.jpg"):
    return [("photos", (f"{i}-{name}", JPEG_BYTES, "image/jpeg")) for i in range(count)]


@pytest.fixture
def alice(db):
    return make_user(db, "alice")


@pytest.fixture
def bob(db):
    return make_user(db, "bob")


@pytest.fixture
def carol(db):
    return make_user(db, "carol")


@pytest.fixture
def trip(db, alice):
    return make_trip(db, alice)
