import pytest


@pytest.fixture
def owner(register_user, switch_plan):
    headers, user = register_user("owner@example.com", name="Owner")
    switch_plan(user["id"], "basic")
    return headers, user


@pytest.fixture
def guest(register_user):
    return register_user("guest@example.com", name="Guest")


def _project(client, headers, name="Summer tour"):
    response = client.post("/projects/", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_free_plan_cannot_create_project(client, guest):
    headers, _ = guest
    response = client.post("/projects/", json={"name": "Nope"}, headers=headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_project_crud(client, owner):
    headers, _ = owner
    project = _project(client, headers)

    listed = client.get("/projects/", headers=headers).json()["data"]
    assert [p["id"] for p in listed] == [project["id"]]

    renamed = client.put(f"/projects/{project['id']}", json={"name": "Winter tour"}, headers=headers)
    assert renamed.json()["data"]["name"] == "Winter tour"

    assert client.delete(f"/projects/{project['id']}", headers=headers).status_code == 200
    assert client.get(f"/projects/{project['id']}", headers=headers).status_code == 404


def test_project_is_owner_only(client, owner, guest):
    headers, _ = owner
    guest_headers, _ = guest
    project = _project(client, headers)

    assert client.get(f"/projects/{project['id']}", headers=guest_headers).status_code == 403
    assert client.put(f"/projects/{project['id']}", json={"name": "x"}, headers=guest_headers).status_code == 403


def test_deleting_project_keeps_riders(client, owner):
    headers, _ = owner
    project = _project(client, headers)
    rider = client.post("/riders/", json={"name": "Stage A", "project_id": project["id"]}, headers=headers).json()["data"]
    assert rider["project_id"] == project["id"]

    client.delete(f"/projects/{project['id']}", headers=headers)

    fetched = client.get(f"/riders/{rider['id']}", headers=headers).json()["data"]
    assert fetched["project_id"] is None


def test_project_edit_grant_implies_comment(client, owner, guest):
    headers, _ = owner
    guest_headers, _ = guest
    project = _project(client, headers)
    rider = client.post("/riders/", json={"name": "Stage B", "project_id": project["id"]}, headers=headers).json()["data"]

    grant = client.post(
        f"/projects/{project['id']}/permissions",
        json={"email": "guest@example.com", "permission": "edit"},
        headers=headers,
    )
    assert grant.status_code == 201

    assert client.get(f"/riders/{rider['id']}", headers=guest_headers).status_code == 200
    comment = client.post(f"/riders/{rider['id']}/comments", json={"content": "Looks good"}, headers=guest_headers)
    assert comment.status_code == 201
    updated = client.put(f"/riders/{rider['id']}", json={"name": "Stage B2"}, headers=guest_headers)
    assert updated.status_code == 200


def test_project_read_grant_gives_no_rider_access(client, owner, guest):
    headers, _ = owner
    guest_headers, _ = guest
    project = _project(client, headers)
    rider = client.post("/riders/", json={"name": "Stage C", "project_id": project["id"]}, headers=headers).json()["data"]
    client.post(
        f"/projects/{project['id']}/permissions",
        json={"email": "guest@example.com", "permission": "read"},
        headers=headers,
    )

    assert client.get(f"/riders/{rider['id']}", headers=guest_headers).status_code == 403


def test_project_duplicate_grant_conflict(client, owner):
    headers, _ = owner
    project = _project(client, headers)
    body = {"email": "guest@example.com", "permission": "comment"}

    assert client.post(f"/projects/{project['id']}/permissions", json=body, headers=headers).status_code == 201
    response = client.post(f"/projects/{project['id']}/permissions", json=body, headers=headers)
    assert response.status_code == 409


def test_project_grant_from_other_project_not_found(client, owner):
    headers, _ = owner
    first = _project(client, headers, "First")
    second = _project(client, headers, "Second")
    permission_id = client.post(
        f"/projects/{first['id']}/permissions",
        json={"email": "guest@example.com", "permission": "comment"},
        headers=headers,
    ).json()["data"]["id"]

    response = client.put(
        f"/projects/{second['id']}/permissions/{permission_id}",
        json={"permission": "edit"},
        headers=headers,
    )
    assert response.status_code == 404

    assert client.delete(f"/projects/{first['id']}/permissions/{permission_id}", headers=headers).status_code == 200
