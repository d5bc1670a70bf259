import pytest
from sqlmodel import Session, select

from models.models import Subscription, SubscriptionStatus


@pytest.fixture
def alice(register_user):
    return register_user("alice@example.com", name="Alice")


@pytest.fixture
def bob(register_user):
    return register_user("bob@example.com", name="Bob")


def _create_rider(client, headers, name="Main stage", **extra):
    return client.post("/riders/", json={"name": name, **extra}, headers=headers)


def test_create_and_get_rider(client, alice):
    headers, _ = alice
    response = _create_rider(client, headers, description="Festival rider", data={"inputs": 24})

    assert response.status_code == 201
    rider = response.json()["data"]
    assert rider["data"] == {"inputs": 24}

    fetched = client.get(f"/riders/{rider['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["description"] == "Festival rider"


def test_free_plan_second_rider_rejected(client, alice):
    headers, _ = alice
    assert _create_rider(client, headers, "First").status_code == 201

    response = _create_rider(client, headers, "Second")
    assert response.status_code == 403
    error = response.json()["error"]
    assert error["code"] == "LIMIT_EXCEEDED"
    assert "1 rider" in error["message"]

    listed = client.get("/riders/", headers=headers).json()["data"]
    assert [r["name"] for r in listed] == ["First"]


def test_unlimited_plan_creates_many(client, alice, switch_plan):
    headers, user = alice
    switch_plan(user["id"], "enterprise")

    for i in range(3):
        assert _create_rider(client, headers, f"Rider {i}").status_code == 201


def test_create_without_subscription(client, alice, engine):
    headers, user = alice
    with Session(engine) as session:
        for subscription in session.exec(select(Subscription).where(Subscription.user_id == user["id"])).all():
            subscription.status = SubscriptionStatus.PAUSED.value
            session.add(subscription)
        session.commit()

    response = _create_rider(client, headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "SUBSCRIPTION_REQUIRED"


def test_create_rider_in_foreign_project(client, alice, bob, switch_plan):
    bob_headers, bob_user = bob
    switch_plan(bob_user["id"], "basic")
    project_id = client.post("/projects/", json={"name": "Bob's"}, headers=bob_headers).json()["data"]["id"]

    alice_headers, _ = alice
    response = _create_rider(client, alice_headers, project_id=project_id)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_comment_grant_cannot_edit(client, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    rider_id = _create_rider(client, alice_headers).json()["data"]["id"]

    grant = client.post(
        f"/riders/{rider_id}/permissions",
        json={"email": "bob@example.com", "permission": "comment"},
        headers=alice_headers,
    )
    assert grant.status_code == 201

    assert client.get(f"/riders/{rider_id}", headers=bob_headers).status_code == 200

    response = client.put(f"/riders/{rider_id}", json={"name": "Hijacked"}, headers=bob_headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"

    comment = client.post(f"/riders/{rider_id}/comments", json={"content": "Need more monitors"}, headers=bob_headers)
    assert comment.status_code == 201


def test_edit_grant_can_update(client, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    rider_id = _create_rider(client, alice_headers, description="keep me").json()["data"]["id"]
    client.post(
        f"/riders/{rider_id}/permissions",
        json={"email": "bob@example.com", "permission": "edit"},
        headers=alice_headers,
    )

    response = client.put(f"/riders/{rider_id}", json={"name": "Renamed"}, headers=bob_headers)
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed"
    assert response.json()["data"]["description"] == "keep me"


def test_stranger_cannot_view(client, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    rider_id = _create_rider(client, alice_headers).json()["data"]["id"]

    response = client.get(f"/riders/{rider_id}", headers=bob_headers)
    assert response.status_code == 403


def test_duplicate_grant_conflict(client, alice):
    headers, _ = alice
    rider_id = _create_rider(client, headers).json()["data"]["id"]
    body = {"email": "bob@example.com", "permission": "comment"}

    assert client.post(f"/riders/{rider_id}/permissions", json=body, headers=headers).status_code == 201

    response = client.post(f"/riders/{rider_id}/permissions", json={**body, "permission": "edit"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_grant_management_is_owner_only(client, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    rider_id = _create_rider(client, alice_headers).json()["data"]["id"]

    response = client.post(
        f"/riders/{rider_id}/permissions",
        json={"email": "bob@example.com", "permission": "edit"},
        headers=bob_headers,
    )
    assert response.status_code == 403


def test_update_and_delete_grant(client, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    rider_id = _create_rider(client, alice_headers).json()["data"]["id"]
    permission_id = client.post(
        f"/riders/{rider_id}/permissions",
        json={"email": "bob@example.com", "permission": "comment"},
        headers=alice_headers,
    ).json()["data"]["id"]

    updated = client.put(
        f"/riders/{rider_id}/permissions/{permission_id}",
        json={"permission": "edit"},
        headers=alice_headers,
    )
    assert updated.json()["data"]["permission"] == "edit"
    assert client.put(f"/riders/{rider_id}", json={"name": "Edited"}, headers=bob_headers).status_code == 200

    assert client.delete(f"/riders/{rider_id}/permissions/{permission_id}", headers=alice_headers).status_code == 200
    assert client.get(f"/riders/{rider_id}", headers=bob_headers).status_code == 403


def test_invalid_grant_level_rejected(client, alice):
    headers, _ = alice
    rider_id = _create_rider(client, headers).json()["data"]["id"]

    response = client.post(
        f"/riders/{rider_id}/permissions",
        json={"email": "bob@example.com", "permission": "read"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_delete_rider_owner_only(client, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    rider_id = _create_rider(client, alice_headers).json()["data"]["id"]
    client.post(
        f"/riders/{rider_id}/permissions",
        json={"email": "bob@example.com", "permission": "edit"},
        headers=alice_headers,
    )

    assert client.delete(f"/riders/{rider_id}", headers=bob_headers).status_code == 403
    assert client.delete(f"/riders/{rider_id}", headers=alice_headers).status_code == 200
    assert client.get(f"/riders/{rider_id}", headers=alice_headers).status_code == 404

    # The freed slot can be used again
    assert _create_rider(client, alice_headers, "Replacement").status_code == 201


def test_rider_activity_is_logged(client, alice):
    headers, _ = alice
    rider_id = _create_rider(client, headers, "Logged").json()["data"]["id"]
    client.put(f"/riders/{rider_id}", json={"description": "x"}, headers=headers)

    activities = client.get("/user/activities", headers=headers).json()["data"]
    titles = {a["title"] for a in activities}
    assert {"Rider Created", "Rider Updated"} <= titles


def test_missing_rider(client, alice):
    headers, _ = alice
    response = client.get("/riders/9999", headers=headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"
