import pytest

from conftest import auth, make_trip, make_user
from services.matching_service import run_matching


@pytest.fixture
def group(client, db):
    """Group created by alice and joined by bob; carol is registered but outside."""
    for uid in ("alice", "bob", "carol"):
        make_user(db, uid)
    resp = client.post("/groups/", json={"name": "Weekend in Utrecht"}, headers=auth("alice"))
    assert resp.status_code == 201, resp.text
    joined = client.post(f"/groups/{resp.json()['id']}/join", headers=auth("bob"))
    assert joined.status_code == 201, joined.text
    return resp.json()


def test_creator_is_admin(client, group):
    assert group["created_by"] == "alice"
    assert group["member_count"] == 1
    assert group["members"][0]["role"] == "admin"
    assert group["members"][0]["user"]["username"] == "alice"


def test_join_adds_member(client, group):
    detail = client.get(f"/groups/{group['id']}", headers=auth("bob")).json()
    assert [(m["user_id"], m["role"]) for m in detail["members"]] == [("alice", "admin"), ("bob", "member")]

    again = client.post(f"/groups/{group['id']}/join", headers=auth("bob"))
    assert again.status_code == 400
    assert again.json()["code"] == "ALREADY_MEMBER"


def test_group_detail_is_members_only(client, group):
    assert client.get(f"/groups/{group['id']}", headers=auth("carol")).status_code == 403
    assert client.get("/groups/9999", headers=auth("alice")).json()["code"] == "GROUP_NOT_FOUND"


def test_list_my_groups(client, group):
    assert [g["id"] for g in client.get("/groups/", headers=auth("bob")).json()] == [group["id"]]
    assert client.get("/groups/", headers=auth("carol")).json() == []


def test_invite(client, group):
    resp = client.post(f"/groups/{group['id']}/invite", json={"invitee_id": "carol"}, headers=auth("alice"))
    assert resp.status_code == 200
    assert resp.json()["member_count"] == 3

    again = client.post(f"/groups/{group['id']}/invite", json={"invitee_id": "carol"}, headers=auth("alice"))
    assert again.status_code == 400

    unknown = client.post(f"/groups/{group['id']}/invite", json={"invitee_id": "ghost"}, headers=auth("alice"))
    assert unknown.status_code == 404


def test_only_admins_invite(client, group):
    resp = client.post(f"/groups/{group['id']}/invite", json={"invitee_id": "carol"}, headers=auth("bob"))
    assert resp.status_code == 403


def test_one_group_per_trip(client, db, group):
    trip = make_trip(db, "alice", "Leiden", "Utrecht")

    first = client.post("/groups/", json={"name": "Carpool", "trip_id": trip.id}, headers=auth("alice"))
    assert first.status_code == 201
    second = client.post("/groups/", json={"name": "Carpool 2", "trip_id": trip.id}, headers=auth("alice"))
    assert second.status_code == 409
    assert second.json()["code"] == "GROUP_EXISTS"

    missing = client.post("/groups/", json={"name": "Nope", "trip_id": 9999}, headers=auth("alice"))
    assert missing.status_code == 404


# --- messages ---

def test_messages_in_order(client, group):
    url = f"/groups/{group['id']}/messages/"
    first = client.post(url, json={"body": "Who drives?"}, headers=auth("alice"))
    second = client.post(url, json={"body": "  I can  "}, headers=auth("bob"))
    assert first.status_code == second.status_code == 201
    assert second.json()["body"] == "I can"
    assert second.json()["sender"]["username"] == "bob"

    listed = client.get(url, headers=auth("alice")).json()
    assert [m["body"] for m in listed] == ["Who drives?", "I can"]


def test_messages_are_members_only(client, group):
    url = f"/groups/{group['id']}/messages/"
    assert client.post(url, json={"body": "hi"}, headers=auth("carol")).status_code == 403
    assert client.get(url, headers=auth("carol")).status_code == 403
    assert client.get("/groups/9999/messages/", headers=auth("alice")).status_code == 404


def test_empty_message_rejected(client, group):
    resp = client.post(f"/groups/{group['id']}/messages/", json={"body": "   "}, headers=auth("alice"))
    assert resp.status_code == 422


def test_only_sender_deletes_message(client, group):
    url = f"/groups/{group['id']}/messages/"
    msg = client.post(url, json={"body": "Who drives?"}, headers=auth("alice")).json()

    forbidden = client.delete(f"{url}{msg['id']}", headers=auth("bob"))
    assert forbidden.status_code == 403

    assert client.delete(f"{url}{msg['id']}", headers=auth("alice")).status_code == 204
    assert client.get(url, headers=auth("alice")).json() == []
    assert client.delete(f"{url}{msg['id']}", headers=auth("alice")).json()["code"] == "MESSAGE_NOT_FOUND"


def test_group_for_someone_elses_trip_is_forbidden(client, db, group):
    alice_trip = make_trip(db, "alice", "Alphen", "Utrecht")

    resp = client.post("/groups/", json={"name": "mine", "trip_id": alice_trip.id}, headers=auth("carol"))

    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"


def test_accepting_owner_stays_admin_of_trip_group(client, db, group):
    bob_trip = make_trip(db, "bob", "Leiden", "Amersfoort")
    alice_trip = make_trip(db, "alice", "Alphen", "Utrecht")
    run_matching(db, alice_trip)
    client.post("/groups/", json={"name": "mine", "trip_id": alice_trip.id}, headers=auth("carol"))
    client.post("/groups/", json={"name": "mine", "trip_id": bob_trip.id}, headers=auth("carol"))
    match_id = client.get(f"/trips/{alice_trip.id}/matches", headers=auth("alice")).json()[0]["match_id"]

    resp = client.post(f"/trips/{alice_trip.id}/accept-match", json={"match_id": match_id}, headers=auth("alice"))

    assert resp.status_code == 201
    assert resp.json()["created_by"] == "alice"
    assert [(m["user_id"], m["role"]) for m in resp.json()["members"]] == [("alice", "admin"), ("bob", "member")]
