from conftest import auth, make_user

REGISTRATION = {"username": "alice", "email": "alice@example.com"}


def test_register_and_fetch_profile(client):
    resp = client.post("/users/me", json=REGISTRATION, headers=auth("alice"))
    assert resp.status_code == 201
    assert resp.json()["firebase_uid"] == "alice"
    assert resp.json()["emergency_contact_name"] is None

    me = client.get("/users/me", headers=auth("alice"))
    assert me.status_code == 200
    assert me.json()["email"] == "alice@example.com"


def test_register_with_safety_details(client):
    resp = client.post("/users/me", json={
        **REGISTRATION,
        "phone": "+31 6 1234 5678",
        "emergency_contact_name": "Jan",
        "emergency_contact_phone": "+31 6 8765 4321",
        "travel_preferences": {"smoking": False, "music": "quiet"},
    }, headers=auth("alice"))

    assert resp.status_code == 201
    body = resp.json()
    assert body["phone"] == "+31 6 1234 5678"
    assert body["emergency_contact_phone"] == "+31 6 8765 4321"
    assert body["travel_preferences"] == {"smoking": False, "music": "quiet"}


def test_second_post_updates_only_sent_fields(client, db):
    make_user(db, "alice")

    resp = client.post("/users/me", json={
        "emergency_contact_name": "Jan",
        "emergency_contact_phone": "+31 6 8765 4321",
    }, headers=auth("alice"))
    assert resp.status_code == 200
    assert resp.json()["emergency_contact_name"] == "Jan"
    assert resp.json()["username"] == "alice"

    again = client.post("/users/me", json={"phone": "0612345678", "username": None}, headers=auth("alice"))
    assert again.status_code == 200
    me = client.get("/users/me", headers=auth("alice")).json()
    assert me["phone"] == "0612345678"
    assert me["emergency_contact_name"] == "Jan"
    assert me["username"] == "alice"


def test_update_can_clear_optional_fields(client, db):
    make_user(db, "alice")
    client.post("/users/me", json={"phone": "0612345678"}, headers=auth("alice"))

    resp = client.post("/users/me", json={"phone": None}, headers=auth("alice"))

    assert resp.status_code == 200
    assert resp.json()["phone"] is None


def test_registration_needs_username_and_email(client):
    resp = client.post("/users/me", json={"phone": "0612345678"}, headers=auth("alice"))
    assert resp.status_code == 400
    assert client.get("/users/me", headers=auth("alice")).status_code == 404


def test_email_belongs_to_one_user(client, db):
    make_user(db, "alice")

    taken = client.post("/users/me", json={"username": "eve", "email": "alice@example.com"}, headers=auth("eve"))
    assert taken.status_code == 409

    make_user(db, "bob")
    steal = client.post("/users/me", json={"email": "alice@example.com"}, headers=auth("bob"))
    assert steal.status_code == 409

    # re-sending your own email is not a conflict
    own = client.post("/users/me", json={"email": "alice@example.com"}, headers=auth("alice"))
    assert own.status_code == 200


def test_body_cannot_name_a_user(client, db):
    make_user(db, "alice")
    for key in ("user_id", "userId", "firebase_uid"):
        resp = client.post("/users/me", json={key: "bob", "phone": "1"}, headers=auth("alice"))
        assert resp.status_code == 422


def test_unknown_profile(client):
    resp = client.get("/users/me", headers=auth("ghost"))
    assert resp.status_code == 404
    assert resp.json()["code"] == "USER_NOT_FOUND"
