"""
HTTP-level tests for the /api surface, including response shapes and the
error body format.
"""

import json

import pytest
from sqlalchemy.exc import OperationalError

from survey.services.vote_service import VoteService


def submit(client, username, options):
    return client.post("/api/votes", json={"username": username, "selectedOptions": options})


def stats(client):
    response = client.get("/api/statistics")
    assert response.status_code == 200
    return response.json()


def test_alice_scenario(client):
    response = submit(client, "alice", ["Red", "Blue"])
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "投票提交成功"
    assert body["timestamp"].endswith("Z")
    vote_id = body["id"]

    data = stats(client)
    assert data["optionCounts"]["Red"] == 1
    assert data["optionCounts"]["Blue"] == 1
    assert data["totalVotes"] == 2
    assert data["voterCount"] == 1

    duplicate = submit(client, "alice", ["Green"])
    assert duplicate.status_code == 409
    assert duplicate.json()["success"] is False
    assert stats(client)["optionCounts"] == data["optionCounts"]

    updated = client.put(f"/api/votes/{vote_id}", json={"username": "alice", "selectedOptions": ["Blue"]})
    assert updated.status_code == 200
    assert updated.json() == {"success": True, "message": "投票记录更新成功"}
    data = stats(client)
    assert data["optionCounts"]["Red"] == 0
    assert data["optionCounts"]["Blue"] == 1

    deleted = client.delete(f"/api/votes/{vote_id}")
    assert deleted.status_code == 200
    data = stats(client)
    assert data["totalVotes"] == 0
    assert data["voterCount"] == 0
    assert set(data["optionCounts"].values()) == {0}


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "", "selectedOptions": ["Red"]},
        {"username": "bob", "selectedOptions": []},
        {"username": "bob"},
        {"selectedOptions": ["Red"]},
        {"username": "bob", "selectedOptions": "Red"},
    ],
)
def test_submit_invalid_input_returns_400(client, payload):
    response = client.post("/api/votes", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "error" in body
    assert body["timestamp"].endswith("Z")


def test_check_username(client):
    submit(client, "alice", ["Red", "Green"])

    voted = client.get("/api/votes/check/alice").json()
    assert voted["hasVoted"] is True
    assert voted["vote"]["username"] == "alice"
    assert voted["vote"]["selectedOptions"] == ["Red", "Green"]
    assert voted["vote"]["submitTime"].endswith("Z")

    assert client.get("/api/votes/check/nobody").json() == {"hasVoted": False}


def test_options_lists_active_only(client):
    body = client.get("/api/options").json()

    assert body["success"] is True
    assert body["options"] == [
        {"id": body["options"][0]["id"], "text": "Red", "order": 1},
        {"id": body["options"][1]["id"], "text": "Blue", "order": 2},
        {"id": body["options"][2]["id"], "text": "Green", "order": 3},
    ]


def test_list_votes_shape_and_search(client):
    submit(client, "alice", ["Red"])
    submit(client, "bob", ["Blue"])

    body = client.get("/api/votes").json()
    assert body["success"] is True
    assert body["total"] == 2
    record = body["votes"][0]
    assert set(record) == {
        "id", "username", "selectedOptions", "submitTime", "ipAddress",
        "userAgent", "isDeleted", "createTime", "updateTime",
    }
    assert record["isDeleted"] is False

    found = client.get("/api/votes", params={"search": "BLUE"}).json()
    assert [v["username"] for v in found["votes"]] == ["bob"]
    assert found["total"] == 1


def test_update_and_delete_missing_vote_return_404(client):
    assert client.put("/api/votes/999", json={"username": "x", "selectedOptions": ["Red"]}).status_code == 404
    response = client.delete("/api/votes/999")
    assert response.status_code == 404
    assert response.json()["error"] == "投票记录不存在"


def test_update_with_malformed_option_string_returns_400(client):
    vote_id = submit(client, "alice", ["Red"]).json()["id"]

    response = client.put(f"/api/votes/{vote_id}", json={"username": "alice", "selectedOptions": "[\"Red\","})

    assert response.status_code == 400


def test_update_rename_to_taken_username_returns_409(client):
    submit(client, "alice", ["Red"])
    bob_id = submit(client, "bob", ["Blue"]).json()["id"]

    response = client.put(f"/api/votes/{bob_id}", json={"username": "alice", "selectedOptions": ["Blue"]})

    assert response.status_code == 409


def test_clear_own_vote_by_username(client):
    submit(client, "alice", ["Red"])

    assert client.delete("/api/votes/by-username/alice").status_code == 200
    assert client.get("/api/votes/check/alice").json() == {"hasVoted": False}
    assert client.delete("/api/votes/by-username/alice").status_code == 404


def test_backup_then_restore_round_trip(client):
    submit(client, "alice", ["Red", "Blue"])
    submit(client, "bob", ["Blue"])

    response = client.get("/api/backup")
    assert response.status_code == 200
    assert response.headers["content-disposition"].startswith("attachment; filename=backup_")
    backup = json.loads(response.content)
    assert set(backup) == {"timestamp", "version", "database", "votes"}
    assert len(backup["votes"]) == 2

    client.delete("/api/debug/clear")
    assert stats(client)["voterCount"] == 0

    restored = client.post("/api/restore", json={"votes": backup["votes"]})
    assert restored.status_code == 200
    assert restored.json()["message"] == "成功恢复 2 条投票记录"

    data = stats(client)
    assert data["voterCount"] == 2
    assert data["optionCounts"]["Blue"] == 2
    assert data["optionCounts"]["Red"] == 1


def test_restore_accepts_legacy_option_strings(client):
    payload = {"votes": [
        {"id": 5, "username": "old", "selected_options": "Red，Green", "submit_time": "2023-05-01 10:00:00"},
        {"id": 6, "username": "older", "selectedOptions": ["Green"]},
    ]}

    assert client.post("/api/restore", json=payload).status_code == 200
    assert stats(client)["optionCounts"]["Green"] == 2


@pytest.mark.parametrize("payload", [{}, {"votes": "nope"}, {"votes": [{"selected_options": ["Red"]}]}])
def test_restore_malformed_payload_returns_400(client, payload):
    response = client.post("/api/restore", json=payload)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_restore_with_repeated_id_returns_400(client):
    submit(client, "alice", ["Red"])
    payload = {"votes": [
        {"id": 1, "username": "a", "selectedOptions": ["Red"]},
        {"id": 1, "username": "b", "selectedOptions": ["Blue"]},
    ]}

    response = client.post("/api/restore", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "无效的备份数据"
    assert client.get("/api/votes/check/alice").json()["hasVoted"] is True


def test_restore_with_duplicate_usernames_returns_409(client):
    payload = {"votes": [
        {"id": 1, "username": "a", "selectedOptions": ["Red"]},
        {"id": 2, "username": "a", "selectedOptions": ["Blue"]},
    ]}

    response = client.post("/api/restore", json=payload)

    assert response.status_code == 409
    assert response.json()["error"] == "备份数据中存在重复的用户名"


def test_store_failure_returns_503(client, monkeypatch):
    def broken_increment(self, *args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("gone"))

    monkeypatch.setattr(VoteService, "_increment_options", broken_increment)

    response = submit(client, "alice", ["Red"])

    assert response.status_code == 503
    body = response.json()
    assert body["error"] == "DATABASE_UNAVAILABLE"
    assert body["message"]
    assert client.get("/api/votes/check/alice").json() == {"hasVoted": False}


def test_connection_test_and_debug_options(client):
    body = client.get("/api/test").json()
    assert body["success"] is True

    submit(client, "alice", ["Red"])
    debug = client.get("/api/debug/options").json()
    assert debug["count"] == 4
    red = next(o for o in debug["options"] if o["text"] == "Red")
    assert red["voteCount"] == 1
    assert red["isActive"] is True


def test_unknown_route_returns_error_body(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["error"] == "接口不存在"
