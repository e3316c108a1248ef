"""
Trip access evaluation.

A subject can see a trip when they own it or hold an accepted membership.
Editing requires owner or co-organizer; deleting the trip and managing
members requires the owner. Every trip, activity and memory endpoint goes
through ``require_trip_access`` so the status codes stay uniform:

* trip missing or not visible -> NotFound (404)
* visible but role too low    -> Forbidden (403)
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from sqlalchemy.orm import Session

from exceptions import Forbidden, NotFound
from models.Trip import Trip
from models.TripMember import TripMember, MemberRole, MemberStatus

READ_ROLES: FrozenSet[MemberRole] = frozenset(MemberRole)
WRITE_ROLES: FrozenSet[MemberRole] = frozenset({MemberRole.OWNER, MemberRole.CO_ORGANIZER})
OWNER_ONLY: FrozenSet[MemberRole] = frozenset({MemberRole.OWNER})


@dataclass(frozen=True)
class TripAccess:
    allowed: bool
    role: Optional[MemberRole] = None

    @property
    def can_write(self) -> bool:
        return self.allowed and self.role in WRITE_ROLES

    @property
    def is_owner(self) -> bool:
        return self.allowed and self.role == MemberRole.OWNER


DENIED = TripAccess(allowed=False)


def get_membership(db: Session, subject_id: str, trip_id: int) -> Optional[TripMember]:
    return db.query(TripMember).filter(
        TripMember.trip_id == trip_id,
        TripMember.user_id == subject_id,
    ).first()


def can_access(db: Session, subject_id: str, trip: Optional[Trip]) -> TripAccess:
    if trip is None or not subject_id:
        return DENIED
    if trip.owner_id == subject_id:
        return TripAccess(allowed=True, role=MemberRole.OWNER)

    member = get_membership(db, subject_id, trip.id)
    if member is None or member.status != MemberStatus.ACCEPTED:
        return DENIED
    # An owner row for anyone but trip.owner_id is stale; treat it as a plain member
    role = MemberRole.MEMBER if member.role == MemberRole.OWNER else member.role
    return TripAccess(allowed=True, role=role)


def require_trip_access(
    db: Session,
    subject_id: str,
    trip_id: int,
    roles: FrozenSet[MemberRole] = READ_ROLES,
) -> Tuple[Trip, TripAccess]:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    access = can_access(db, subject_id, trip)
    if not access.allowed:
        raise NotFound("Trip not found")
    if access.role not in roles:
        raise Forbidden("You don't have permission to perform this action on this trip")
    return trip, access
