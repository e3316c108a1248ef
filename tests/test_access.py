import pytest

from exceptions import Forbidden, NotFound
from models import MemberRole, MemberStatus
from services.access import (
    can_access, require_trip_access, READ_ROLES, WRITE_ROLES, OWNER_ONLY,
)
from conftest import add_member


def test_owner_has_owner_role(db, alice, trip):
    access = can_access(db, alice.firebase_uid, trip)
    assert access.allowed
    assert access.role == MemberRole.OWNER
    assert access.is_owner and access.can_write


def test_accepted_member_gets_their_role(db, trip, bob):
    add_member(db, trip, bob, role=MemberRole.CO_ORGANIZER)
    access = can_access(db, bob.firebase_uid, trip)
    assert access.allowed
    assert access.role == MemberRole.CO_ORGANIZER
    assert access.can_write
    assert not access.is_owner


@pytest.mark.parametrize("status", [MemberStatus.PENDING, MemberStatus.REJECTED])
def test_member_without_acceptance_is_denied(db, trip, bob, status):
    add_member(db, trip, bob, status=status)
    access = can_access(db, bob.firebase_uid, trip)
    assert not access.allowed
    assert access.role is None


def test_stranger_is_denied(db, trip, carol):
    assert not can_access(db, carol.firebase_uid, trip).allowed


def test_missing_trip_is_denied(db, alice):
    assert not can_access(db, alice.firebase_uid, None).allowed


def test_stale_owner_row_is_treated_as_member(db, trip, bob):
    add_member(db, trip, bob, role=MemberRole.OWNER)
    access = can_access(db, bob.firebase_uid, trip)
    assert access.role == MemberRole.MEMBER
    assert not access.can_write


def test_require_access_hides_trip_from_strangers(db, trip, carol):
    with pytest.raises(NotFound):
        require_trip_access(db, carol.firebase_uid, trip.id)


def test_require_access_unknown_trip(db, alice):
    with pytest.raises(NotFound):
        require_trip_access(db, alice.firebase_uid, 9999)


def test_require_access_forbids_low_role(db, trip, bob):
    add_member(db, trip, bob)
    found, access = require_trip_access(db, bob.firebase_uid, trip.id, READ_ROLES)
    assert found.id == trip.id
    assert access.role == MemberRole.MEMBER

    with pytest.raises(Forbidden):
        require_trip_access(db, bob.firebase_uid, trip.id, WRITE_ROLES)


def test_co_organizer_cannot_do_owner_actions(db, trip, bob):
    add_member(db, trip, bob, role=MemberRole.CO_ORGANIZER)
    require_trip_access(db, bob.firebase_uid, trip.id, WRITE_ROLES)
    with pytest.raises(Forbidden):
        require_trip_access(db, bob.firebase_uid, trip.id, OWNER_ONLY)
