from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from exceptions import NotFound, QuotaExceeded, ValidationError
from models import CaptureType, Memory
from services import capture_quota
from services.memory_registration import parse_capture_type, register_batch
from services.storage import PhotoStorage
from conftest import add_member, make_activity, make_trip, make_user, photo


def stored_files(storage):
    if not storage.memories_dir.exists():
        return []
    return sorted(storage.memories_dir.iterdir())


class FailingStorage(PhotoStorage):
    """Saves the first `ok` photos, then fails like a full disk."""

    def __init__(self, base_dir, ok):
        super().__init__(base_dir)
        self.ok = ok

    def save(self, photo):
        if self.ok == 0:
            raise OSError("No space left on device")
        self.ok -= 1
        return super().save(photo)


def test_capture_batch_creates_memories(db, alice, trip, clock, storage):
    memories = register_batch(db, alice.firebase_uid, trip.id, [photo(), photo()],
                              clock=clock, storage=storage, capture_type="DAILY_MOMENT")
    assert len(memories) == 2
    assert {m.capture_slot for m in memories} == {1, 2}
    assert all(m.capture_scope == "daily" for m in memories)
    assert all(m.capture_day == date(2024, 6, 1) for m in memories)
    assert all(m.image_url.startswith("/uploads/memories/") for m in memories)
    assert len(stored_files(storage)) == 2


def test_empty_batch_is_rejected(db, alice, trip, clock, storage):
    with pytest.raises(ValidationError):
        register_batch(db, alice.firebase_uid, trip.id, [], clock=clock, storage=storage)


def test_stranger_cannot_register(db, trip, carol, clock, storage):
    with pytest.raises(NotFound):
        register_batch(db, carol.firebase_uid, trip.id, [photo()], clock=clock, storage=storage,
                       capture_type=CaptureType.DAILY_MOMENT)
    assert db.query(Memory).count() == 0


def test_invalid_file_rejects_whole_batch(db, alice, trip, clock, storage):
    batch = [photo(), photo(), photo(name="notes.pdf", content_type="application/pdf")]
    with pytest.raises(ValidationError):
        register_batch(db, alice.firebase_uid, trip.id, batch, clock=clock, storage=storage,
                       capture_type=CaptureType.DAILY_MOMENT)
    assert db.query(Memory).count() == 0
    assert stored_files(storage) == []


def test_storage_failure_rolls_back_and_cleans_up(db, alice, trip, clock, tmp_path):
    storage = FailingStorage(tmp_path, ok=1)
    with pytest.raises(OSError):
        register_batch(db, alice.firebase_uid, trip.id, [photo(), photo()], clock=clock,
                       storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    assert db.query(Memory).count() == 0
    assert stored_files(storage) == []


def test_quota_rejection_writes_nothing(db, alice, trip, clock, storage):
    register_batch(db, alice.firebase_uid, trip.id, [photo(), photo()], clock=clock,
                   storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    with pytest.raises(QuotaExceeded):
        register_batch(db, alice.firebase_uid, trip.id, [photo(), photo()], clock=clock,
                       storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    assert db.query(Memory).count() == 2
    assert len(stored_files(storage)) == 2


def test_concurrent_writer_slot_conflict(db, alice, trip, clock, storage, monkeypatch):
    register_batch(db, alice.firebase_uid, trip.id, [photo(), photo()], clock=clock,
                   storage=storage, capture_type=CaptureType.DAILY_MOMENT)

    # A second request that evaluated the allowance before the first one committed
    monkeypatch.setattr(capture_quota, "reserve", lambda db, scope, count, clock: [1, 2][:count])

    with pytest.raises(QuotaExceeded) as exc_info:
        register_batch(db, alice.firebase_uid, trip.id, [photo(), photo()], clock=clock,
                       storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    assert exc_info.value.remaining == 1
    assert db.query(Memory).count() == 2
    assert len(stored_files(storage)) == 2


@pytest.fixture(name="file_session_factory")
def file_session_factory_fixture(tmp_path):
    # One connection per session, like two requests against a real server
    engine = create_engine(f"sqlite:///{tmp_path / 'captures.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


def test_two_sessions_race_for_the_same_slots(file_session_factory, clock, storage, monkeypatch):
    setup = file_session_factory()
    alice = make_user(setup, "alice")
    trip_id = make_trip(setup, alice).id
    setup.close()

    first, second = file_session_factory(), file_session_factory()
    real_reserve = capture_quota.reserve
    reserved = []

    def reserve_then_let_second_commit(db, scope, count, clock):
        slots = real_reserve(db, scope, count, clock)
        reserved.append(slots)
        if db is first:
            # The second request reads the same allowance and commits first
            register_batch(second, "alice", trip_id, [photo(), photo()], clock=clock,
                           storage=storage, capture_type=CaptureType.DAILY_MOMENT)
        return slots

    monkeypatch.setattr(capture_quota, "reserve", reserve_then_let_second_commit)
    try:
        with pytest.raises(QuotaExceeded) as exc_info:
            register_batch(first, "alice", trip_id, [photo(), photo()], clock=clock,
                           storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    finally:
        first.close()
        second.close()

    assert reserved == [[1, 2], [1, 2]]
    assert exc_info.value.remaining == 1

    check = file_session_factory()
    rows = check.query(Memory).all()
    assert sorted(m.capture_slot for m in rows) == [1, 2]
    check.close()
    assert len(stored_files(storage)) == 2


def test_activity_moment_requires_activity_id(db, alice, trip, clock, storage):
    with pytest.raises(ValidationError):
        register_batch(db, alice.firebase_uid, trip.id, [photo()], clock=clock, storage=storage,
                       capture_type=CaptureType.ACTIVITY_MOMENT)


def test_daily_moment_cannot_link_activity(db, alice, trip, clock, storage):
    activity = make_activity(db, trip)
    with pytest.raises(ValidationError):
        register_batch(db, alice.firebase_uid, trip.id, [photo()], clock=clock, storage=storage,
                       capture_type=CaptureType.DAILY_MOMENT, activity_id=activity.id)


def test_activity_moment_uses_its_own_scope(db, alice, trip, clock, storage):
    activity = make_activity(db, trip)
    memories = register_batch(db, alice.firebase_uid, trip.id, [photo()], clock=clock,
                              storage=storage, capture_type="activity_moment",
                              activity_id=activity.id)
    assert memories[0].activity_id == activity.id
    assert memories[0].capture_scope == f"activity:{activity.id}"
    assert memories[0].title == "Activity moment"


def test_gallery_upload_checks_activity_trip(db, alice, trip, clock, storage):
    other_trip = make_trip(db, alice, title="Porto")
    foreign = make_activity(db, other_trip)
    with pytest.raises(NotFound):
        register_batch(db, alice.firebase_uid, trip.id, [photo()], clock=clock, storage=storage,
                       activity_id=foreign.id)

    own = make_activity(db, trip, day=date(2024, 6, 5))
    memories = register_batch(db, alice.firebase_uid, trip.id, [photo()], clock=clock,
                              storage=storage, activity_id=own.id)
    assert memories[0].capture_type is None
    assert memories[0].capture_slot is None


def test_members_share_the_trip_but_not_the_quota(db, alice, bob, trip, clock, storage):
    add_member(db, trip, bob)
    register_batch(db, alice.firebase_uid, trip.id, [photo()] * 3, clock=clock,
                   storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    memories = register_batch(db, bob.firebase_uid, trip.id, [photo()] * 3, clock=clock,
                              storage=storage, capture_type=CaptureType.DAILY_MOMENT)
    assert [m.capture_slot for m in memories] == [1, 2, 3]


@pytest.mark.parametrize("value, expected", [
    ("DAILY_MOMENT", CaptureType.DAILY_MOMENT),
    (" activity_moment ", CaptureType.ACTIVITY_MOMENT),
    ("", None),
    ("NONE", None),
    (None, None),
])
def test_parse_capture_type(value, expected):
    assert parse_capture_type(value) == expected


def test_parse_capture_type_rejects_unknown():
    with pytest.raises(ValidationError):
        parse_capture_type("WEEKLY_MOMENT")
