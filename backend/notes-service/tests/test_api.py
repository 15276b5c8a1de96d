"""Tests for the REST API."""

import pytest


def as_user(username):
    return {"X-Username": username}


@pytest.fixture
def family(client, users):
    response = client.post(
        "/groups", json={"name": "family", "members": ["marge", "bart"]}, headers=as_user("homer")
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "notes-service"}


class TestNotesApi:
    """Tests for the /notes routes."""

    def test_create_and_read_shared_note(self, client, users, family):
        response = client.post(
            "/notes",
            json={"body": "Moe's at 8", "visibility": {"users": ["lenny"], "groups": ["family"]}},
            headers=as_user("homer"),
        )
        assert response.status_code == 201
        note_id = response.json()["id"]
        assert response.headers["Location"] == f"/notes/{note_id}"

        note = client.get(f"/notes/{note_id}", headers=as_user("homer")).json()

        assert note["body"] == "Moe's at 8"
        assert note["owner"] == {"username": "homer", "real_name": "Homer Simpson"}
        assert note["visibility"]["users"] == [{"username": "lenny", "real_name": "Lenny Leonard"}]
        assert note["visibility"]["groups"] == [
            {
                "id": family,
                "name": "family",
                "members": [
                    {"username": "marge", "real_name": "Marge Simpson"},
                    {"username": "bart", "real_name": "Bart Simpson"},
                ],
            }
        ]
        assert note["created_at"].endswith("Z")

    def test_public_note_visibility_is_a_string(self, client, users):
        client.post("/notes", json={"body": "Donuts", "visibility": "public"}, headers=as_user("homer"))

        [note] = client.get("/notes", headers=as_user("homer")).json()

        assert note["visibility"] == "public"

    def test_missing_username_header(self, client, users):
        assert client.get("/notes").status_code == 401

    def test_unknown_user_in_visibility(self, client, users):
        response = client.post(
            "/notes",
            json={"body": "Hi", "visibility": {"users": ["moe"], "groups": []}},
            headers=as_user("homer"),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Nonexistent user(s) in payload.visibility.users"

    @pytest.mark.parametrize(
        "payload",
        [
            {"body": "", "visibility": "public"},
            {"body": "x" * 10001, "visibility": "public"},
            {"body": "Hi", "visibility": "everyone"},
            {"body": "Hi", "visibility": {"users": [], "groups": []}},
            {"body": "Hi"},
        ],
    )
    def test_invalid_payloads(self, client, users, payload):
        response = client.post("/notes", json=payload, headers=as_user("homer"))
        assert response.status_code == 422

    def test_empty_patch(self, client, users):
        note_id = client.post(
            "/notes", json={"body": "Hi", "visibility": "public"}, headers=as_user("homer")
        ).json()["id"]
        response = client.patch(f"/notes/{note_id}", json={}, headers=as_user("homer"))
        assert response.status_code == 422

    def test_patch_put_delete(self, client, users):
        note_id = client.post(
            "/notes", json={"body": "Hi", "visibility": "public"}, headers=as_user("homer")
        ).json()["id"]

        response = client.patch(
            f"/notes/{note_id}",
            json={"visibility": {"users": ["marge"], "groups": []}},
            headers=as_user("homer"),
        )
        assert response.status_code == 204
        note = client.get(f"/notes/{note_id}", headers=as_user("homer")).json()
        assert note["body"] == "Hi"
        assert [u["username"] for u in note["visibility"]["users"]] == ["marge"]

        response = client.put(
            f"/notes/{note_id}",
            json={"body": "Bye", "visibility": "private"},
            headers=as_user("homer"),
        )
        assert response.status_code == 204
        note = client.get(f"/notes/{note_id}", headers=as_user("homer")).json()
        assert note == {**note, "body": "Bye", "visibility": "private"}

        assert client.delete(f"/notes/{note_id}", headers=as_user("homer")).status_code == 204
        assert client.get(f"/notes/{note_id}", headers=as_user("homer")).status_code == 404

    def test_not_owner(self, client, users):
        note_id = client.post(
            "/notes", json={"body": "Hi", "visibility": "public"}, headers=as_user("marge")
        ).json()["id"]

        response = client.delete(f"/notes/{note_id}", headers=as_user("homer"))

        assert response.status_code == 403
        assert response.json()["detail"] == "Permission denied"

    def test_missing_note(self, client, users):
        response = client.get("/notes/12345", headers=as_user("homer"))
        assert response.status_code == 404
        assert response.json()["detail"] == "noteID does not exist"


class TestGroupsApi:
    """Tests for the /groups routes."""

    def test_crud(self, client, users, family):
        groups = client.get("/groups", headers=as_user("homer")).json()
        assert [g["name"] for g in groups] == ["family"]

        response = client.patch(
            f"/groups/{family}", json={"members": ["lisa"]}, headers=as_user("homer")
        )
        assert response.status_code == 204
        group = client.get(f"/groups/{family}", headers=as_user("homer")).json()
        assert [m["username"] for m in group["members"]] == ["lisa"]

        assert client.delete(f"/groups/{family}", headers=as_user("homer")).status_code == 204
        assert client.get(f"/groups/{family}", headers=as_user("homer")).status_code == 404

    def test_duplicate_name(self, client, users, family):
        response = client.post(
            "/groups", json={"name": "family", "members": []}, headers=as_user("homer")
        )
        assert response.status_code == 409

    def test_group_of_another_user(self, client, users, family):
        assert client.get(f"/groups/{family}", headers=as_user("marge")).status_code == 403


class TestFeedApi:
    """Tests for the /feed routes."""

    def test_feeds(self, client, users):
        client.post("/notes", json={"body": "Donuts", "visibility": "public"}, headers=as_user("homer"))
        client.post(
            "/notes",
            json={"body": "Psst", "visibility": {"users": ["bart"], "groups": []}},
            headers=as_user("homer"),
        )

        public = client.get("/feed/public").json()
        shared = client.get("/feed/shared", headers=as_user("bart")).json()
        bart_feed = client.get("/feed", headers=as_user("bart")).json()
        homer_feed = client.get("/feed", headers=as_user("homer")).json()
        by_owner = client.get("/feed/homer").json()

        assert [n["body"] for n in public] == ["Donuts"]
        assert [n["body"] for n in shared] == ["Psst"]
        assert [n["body"] for n in bart_feed] == ["Psst", "Donuts"]
        assert homer_feed == []
        assert [n["body"] for n in by_owner] == ["Donuts"]
        assert "visibility" not in bart_feed[0]

    def test_unknown_owner(self, client, users):
        assert client.get("/feed/moe").status_code == 404


class TestUsersApi:
    """Tests for the /users routes."""

    def test_create_get_delete(self, client):
        response = client.post(
            "/users",
            json={"username": "moe", "real_name": "Moe Szyslak", "email_address": "moe@tavern.example"},
        )
        assert response.status_code == 201
        assert response.json() == {"username": "moe", "real_name": "Moe Szyslak"}

        assert client.get("/users/moe").json() == {"username": "moe", "real_name": "Moe Szyslak"}
        assert client.delete("/users/moe", headers=as_user("moe")).status_code == 204
        assert client.get("/users/moe").status_code == 404

    def test_duplicate_username(self, client, users):
        response = client.post(
            "/users",
            json={"username": "homer", "real_name": "Homer J", "email_address": "h@example.com"},
        )
        assert response.status_code == 409

    def test_invalid_username(self, client):
        response = client.post(
            "/users",
            json={"username": "Homer!", "real_name": "Homer", "email_address": "h@example.com"},
        )
        assert response.status_code == 422

    def test_deleting_a_user_removes_their_notes_and_grants(self, client, users, family):
        client.post(
            "/notes",
            json={"body": "For the family", "visibility": {"users": [], "groups": ["family"]}},
            headers=as_user("homer"),
        )

        assert client.delete("/users/homer", headers=as_user("homer")).status_code == 204

        assert client.get("/feed/shared", headers=as_user("marge")).json() == []
        assert client.get("/groups", headers=as_user("marge")).json() == []

    def test_cannot_delete_another_user(self, client, users):
        response = client.delete("/users/homer", headers=as_user("marge"))
        assert response.status_code == 403
        assert response.json()["detail"] == "Permission denied"
        assert client.get("/users/homer").status_code == 200

    def test_delete_requires_username_header(self, client, users):
        assert client.delete("/users/bart").status_code == 401
        assert client.get("/users/bart").status_code == 200

    def test_patch_own_account(self, client, users):
        response = client.patch(
            "/users/homer", json={"real_name": "Max Power"}, headers=as_user("homer")
        )
        assert response.status_code == 200
        assert response.json() == {"username": "homer", "real_name": "Max Power"}
        assert client.get("/users/homer").json()["real_name"] == "Max Power"

    def test_put_own_account(self, client, users):
        response = client.put(
            "/users/marge",
            json={"real_name": "Marjorie Simpson", "email_address": "marge@example.com"},
            headers=as_user("marge"),
        )
        assert response.status_code == 200
        assert response.json() == {"username": "marge", "real_name": "Marjorie Simpson"}

    def test_cannot_change_another_user(self, client, users):
        patch = client.patch(
            "/users/homer", json={"real_name": "Mr. Plow"}, headers=as_user("bart")
        )
        put = client.put(
            "/users/homer",
            json={"real_name": "Mr. Plow", "email_address": "plow@example.com"},
            headers=as_user("bart"),
        )
        assert patch.status_code == 403
        assert put.status_code == 403
        assert client.get("/users/homer").json()["real_name"] == "Homer Simpson"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"real_name": ""}, {"email_address": "x"}],
    )
    def test_invalid_patch(self, client, users, payload):
        response = client.patch("/users/homer", json=payload, headers=as_user("homer"))
        assert response.status_code == 422
