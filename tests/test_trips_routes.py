from models import MemberRole, MemberStatus, Notification, TripMember
from conftest import add_member, auth


def test_missing_token_is_unauthorized(client, trip):
    resp = client.get("/trips/")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Not authenticated"}


def test_invalid_token_is_unauthorized(client, trip):
    resp = client.get("/trips/", headers=auth("bad-token"))
    assert resp.status_code == 401


def test_unregistered_user_is_unauthorized(client, trip):
    resp = client.get("/trips/", headers=auth("nobody"))
    assert resp.status_code == 401


def test_session_cookie_is_accepted(client, alice, trip):
    resp = client.get("/trips/", headers={"Cookie": "accessToken=alice"})
    assert resp.status_code == 200
    assert [t["id"] for t in resp.json()] == [trip.id]


def test_list_only_visible_trips(client, db, alice, bob, carol, trip):
    add_member(db, trip, bob)
    add_member(db, trip, carol, status=MemberStatus.PENDING)

    assert len(client.get("/trips/", headers=auth("bob")).json()) == 1
    assert client.get("/trips/", headers=auth("carol")).json() == []


def test_create_trip_adds_owner_member(client, db, alice):
    payload = {"title": " Japan ", "start_date": "2024-07-01", "end_date": "2024-07-15"}
    resp = client.post("/trips/", json=payload, headers=auth("alice"))
    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Japan"
    assert body["role"] == "owner"
    assert [m["user_id"] for m in body["members"]] == ["alice"]

    owner_row = db.query(TripMember).filter_by(trip_id=body["id"], user_id="alice").one()
    assert owner_row.role == MemberRole.OWNER
    assert owner_row.status == MemberStatus.ACCEPTED


def test_create_trip_validates_dates(client, alice):
    resp = client.post("/trips/", json={"title": "Back", "start_date": "2024-07-10", "end_date": "2024-07-01"},
                       headers=auth("alice"))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Start date must be before end date"

    resp = client.post("/trips/", json={"title": "Past", "start_date": "2024-05-01", "end_date": "2024-05-10"},
                       headers=auth("alice"))
    assert resp.status_code == 400


def test_get_trip_visibility(client, db, trip, bob, carol):
    add_member(db, trip, bob)
    resp = client.get(f"/trips/{trip.id}", headers=auth("bob"))
    assert resp.status_code == 200
    assert resp.json()["role"] == "member"

    assert client.get(f"/trips/{trip.id}", headers=auth("carol")).status_code == 404
    assert client.get("/trips/9999", headers=auth("alice")).status_code == 404


def test_update_trip_requires_write_role(client, db, trip, bob, carol):
    add_member(db, trip, bob)
    add_member(db, trip, carol, role=MemberRole.CO_ORGANIZER)

    resp = client.patch(f"/trips/{trip.id}", json={"title": "Nope"}, headers=auth("bob"))
    assert resp.status_code == 403

    resp = client.patch(f"/trips/{trip.id}", json={"title": "Lisbon & Sintra"}, headers=auth("carol"))
    assert resp.status_code == 200
    assert resp.json()["title"] == "Lisbon & Sintra"

    resp = client.patch(f"/trips/{trip.id}", json={"end_date": "2024-05-01"}, headers=auth("carol"))
    assert resp.status_code == 400


def test_delete_trip_is_owner_only(client, db, trip, bob):
    add_member(db, trip, bob, role=MemberRole.CO_ORGANIZER)
    trip_id = trip.id
    assert client.delete(f"/trips/{trip_id}", headers=auth("bob")).status_code == 403
    assert client.delete(f"/trips/{trip_id}", headers=auth("alice")).status_code == 204
    assert client.get(f"/trips/{trip_id}", headers=auth("alice")).status_code == 404


def test_member_management(client, db, trip, bob, carol):
    member = add_member(db, trip, bob)
    add_member(db, trip, carol, role=MemberRole.CO_ORGANIZER)
    owner_row = db.query(TripMember).filter_by(trip_id=trip.id, user_id="alice").one()

    resp = client.get(f"/trips/{trip.id}/members/", headers=auth("bob"))
    assert resp.status_code == 200
    assert len(resp.json()) == 3

    resp = client.patch(f"/trips/{trip.id}/members/{member.id}", json={"role": "co_organizer"},
                        headers=auth("carol"))
    assert resp.status_code == 403

    resp = client.patch(f"/trips/{trip.id}/members/{member.id}", json={"role": "co_organizer"},
                        headers=auth("alice"))
    assert resp.status_code == 200
    assert resp.json()["role"] == "co_organizer"

    resp = client.patch(f"/trips/{trip.id}/members/{member.id}", json={"role": "owner"},
                        headers=auth("alice"))
    assert resp.status_code == 400

    resp = client.delete(f"/trips/{trip.id}/members/{owner_row.id}", headers=auth("alice"))
    assert resp.status_code == 400

    resp = client.delete(f"/trips/{trip.id}/members/{member.id}", headers=auth("alice"))
    assert resp.status_code == 204
    assert client.get(f"/trips/{trip.id}", headers=auth("bob")).status_code == 404

    notes = db.query(Notification).filter_by(user_id="bob").all()
    assert [n.type for n in notes] == ["info"]
