import pytest

from models import FriendRequest, FriendRequestStatus, Friendship, Notification, TripInvitation
from conftest import auth


def befriend(client, sender, receiver):
    request_id = client.post("/friends/request", json={"user_id": receiver}, headers=auth(sender)).json()["id"]
    resp = client.post("/friends/respond", json={"request_id": request_id, "accept": True}, headers=auth(receiver))
    assert resp.status_code == 200
    return request_id


def test_request_and_accept(client, db, alice, bob):
    resp = client.post("/friends/request", json={"user_id": "bob"}, headers=auth("alice"))
    assert resp.status_code == 201
    request = resp.json()
    assert request["status"] == "pending"
    assert request["sender"]["username"] == "alice"

    note = db.query(Notification).filter_by(user_id="bob").one()
    assert note.type == "friend_request"
    assert note.data["request_id"] == request["id"]

    assert client.get("/friends/status/bob", headers=auth("alice")).json() == {"status": "pending"}
    assert client.get("/friends/status/alice", headers=auth("bob")).json() == {"status": "incoming"}
    assert [r["id"] for r in client.get("/friends/requests", headers=auth("bob")).json()] == [request["id"]]

    resp = client.post("/friends/respond", json={"request_id": request["id"], "accept": True}, headers=auth("bob"))
    assert resp.status_code == 200
    assert resp.json()["friend"]["firebase_uid"] == "alice"

    assert client.get("/friends/status/bob", headers=auth("alice")).json() == {"status": "friends"}
    assert [f["firebase_uid"] for f in client.get("/friends/", headers=auth("alice")).json()] == ["bob"]
    assert [f["firebase_uid"] for f in client.get("/friends/", headers=auth("bob")).json()] == ["alice"]
    assert client.get("/friends/requests", headers=auth("bob")).json() == []

    friendship = db.query(Friendship).one()
    assert (friendship.user1_id, friendship.user2_id) == ("alice", "bob")
    assert db.query(Notification).filter_by(user_id="alice", type="friend_request_accepted").count() == 1


def test_declined_request_can_be_sent_again(client, db, alice, bob):
    request_id = client.post("/friends/request", json={"user_id": "bob"}, headers=auth("alice")).json()["id"]
    resp = client.post("/friends/respond", json={"request_id": request_id, "accept": False}, headers=auth("bob"))
    assert resp.json()["message"] == "Friend request declined"
    assert db.query(Friendship).count() == 0
    assert client.get("/friends/status/bob", headers=auth("alice")).json() == {"status": "none"}

    resp = client.post("/friends/request", json={"user_id": "bob"}, headers=auth("alice"))
    assert resp.status_code == 201
    assert resp.json()["status"] == "pending"
    assert db.query(FriendRequest).count() == 1


@pytest.mark.parametrize("target, status", [
    ("alice", 400),
    ("ghost", 404),
])
def test_invalid_friend_requests(client, alice, target, status):
    assert client.post("/friends/request", json={"user_id": target}, headers=auth("alice")).status_code == status


def test_duplicate_requests_conflict(client, alice, bob):
    client.post("/friends/request", json={"user_id": "bob"}, headers=auth("alice"))
    assert client.post("/friends/request", json={"user_id": "bob"}, headers=auth("alice")).status_code == 409
    assert client.post("/friends/request", json={"user_id": "alice"}, headers=auth("bob")).status_code == 409


def test_friends_cannot_request_again(client, alice, bob):
    befriend(client, "alice", "bob")
    resp = client.post("/friends/request", json={"user_id": "alice"}, headers=auth("bob"))
    assert resp.status_code == 409
    assert resp.json()["message"] == "This user is already your friend"


def test_only_receiver_can_respond(client, db, alice, bob, carol):
    request_id = client.post("/friends/request", json={"user_id": "bob"}, headers=auth("alice")).json()["id"]
    resp = client.post("/friends/respond", json={"request_id": request_id, "accept": True}, headers=auth("carol"))
    assert resp.status_code == 404
    resp = client.post("/friends/respond", json={"request_id": request_id, "accept": True}, headers=auth("alice"))
    assert resp.status_code == 404
    db.expire_all()
    assert db.get(FriendRequest, request_id).status == FriendRequestStatus.PENDING


def test_status_of_unknown_user(client, alice):
    assert client.get("/friends/status/ghost", headers=auth("alice")).status_code == 404


def test_invite_friend_to_trip(client, db, trip, bob, carol):
    trip_id = trip.id
    resp = client.post(f"/trips/{trip_id}/invitations/friend", json={"friend_id": "bob"}, headers=auth("alice"))
    assert resp.status_code == 403

    befriend(client, "alice", "bob")
    resp = client.post(f"/trips/{trip_id}/invitations/friend", json={"friend_id": "bob", "message": "Come!"},
                       headers=auth("alice"))
    assert resp.status_code == 201
    assert resp.json()["invited_user_id"] == "bob"
    assert db.query(TripInvitation).filter_by(trip_id=trip_id, invited_user_id="bob").count() == 1

    # Friendship does not bypass the trip's write roles
    befriend(client, "carol", "bob")
    resp = client.post(f"/trips/{trip_id}/invitations/friend", json={"friend_id": "bob"}, headers=auth("carol"))
    assert resp.status_code == 404
