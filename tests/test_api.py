"""Integration tests for API endpoints"""

import pytest


@pytest.fixture
def submitted(client, citizen, headers_for):
    """An issue submitted through the API"""
    response = client.post(
        "/issues",
        json={"description": "Urgent pothole on 5th Ave", "address": "5th Ave"},
        headers=headers_for(citizen),
    )
    assert response.status_code == 201
    return response.json()["issue"]


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["classifier"] == "keyword-rules-v1"


def test_database_health(client):
    response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json()["database"] == "memory"


def test_submit_issue(client, submitted, citizen):
    assert submitted["issue_number"] == 1000
    assert submitted["priority"] == "Critical"
    assert submitted["category"] == "Road Maintenance"
    assert submitted["status"] == "Pending"
    assert submitted["visibility"] == "Review"
    assert submitted["created_by"] == citizen.id
    assert submitted["upvote_count"] == 0


def test_submit_requires_identity(client):
    response = client.post("/issues", json={"description": "pothole", "address": "Main St"})
    assert response.status_code == 401


def test_unknown_role(client):
    response = client.post(
        "/issues",
        json={"description": "pothole", "address": "Main St"},
        headers={"X-User-Id": "someone", "X-User-Role": "Mayor"},
    )
    assert response.status_code == 400


def test_submit_validation_error(client, citizen, headers_for):
    response = client.post("/issues", json={"description": "pothole"}, headers=headers_for(citizen))
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_submit_forbidden_for_authority(client, authority, headers_for):
    response = client.post(
        "/issues",
        json={"description": "pothole", "address": "Main St"},
        headers=headers_for(authority),
    )
    assert response.status_code == 403


def test_classification_preview_persists_nothing(client, store, citizen, headers_for):
    response = client.post(
        "/issues/classify",
        json={"description": "Garbage everywhere, urgent"},
        headers=headers_for(citizen),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["priority"] == "Critical"
    assert data["category"] == "Waste Disposal"
    assert store.query("issues") == []


def test_classification_preview_requires_identity(client):
    response = client.post("/issues/classify", json={"description": "pothole", "audio_url": "/etc/passwd"})
    assert response.status_code == 401


def test_get_issue(client, submitted, citizen, headers_for):
    response = client.get(f"/issues/{submitted['id']}", headers=headers_for(citizen))
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == submitted["id"]
    assert data["comments"] == []
    assert data["suggested_statuses"] == ["In Progress", "Resolved"]


def test_rejected_issue_not_publicly_readable(client, submitted, other_citizen, authority, admin, headers_for):
    url = f"/issues/{submitted['id']}"
    assert client.get(url).status_code == 404

    response = client.patch(
        f"/moderation/issues/{submitted['id']}",
        json={"decision": "Reject", "reason": "spam"},
        headers=headers_for(admin),
    )
    assert response.status_code == 200

    response = client.get(url)
    assert response.status_code == 404
    assert "spam" not in response.text
    assert client.get(url, headers=headers_for(other_citizen)).status_code == 404
    assert client.get(url, headers=headers_for(authority)).json()["reason"] == "spam"


def test_get_missing_issue(client):
    response = client.get("/issues/doesNotExist")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_get_malformed_issue_id(client):
    response = client.get("/issues/bad id!")
    assert response.status_code == 400
    assert response.json()["detail"] == "Malformed issue ID"


def test_upvote_flow(client, submitted, citizen, other_citizen, headers_for):
    url = f"/issues/{submitted['id']}/upvote"

    response = client.put(url, headers=headers_for(citizen))
    assert response.status_code == 403

    response = client.put(url, headers=headers_for(other_citizen))
    assert response.status_code == 200
    assert response.json()["issue"]["upvote_count"] == 1

    response = client.put(url, headers=headers_for(other_citizen))
    assert response.status_code == 409
    assert response.json()["detail"] == "You have already upvoted this issue"


def test_status_and_team_workflow(client, submitted, authority, headers_for):
    team = client.post("/teams", json={"name": "Road Crew"}, headers=headers_for(authority))
    assert team.status_code == 201
    team_id = team.json()["id"]
    assert team.json()["team_number"] == 1000

    response = client.patch(
        f"/issues/{submitted['id']}/team",
        json={"team_id": team_id},
        headers=headers_for(authority),
    )
    assert response.status_code == 200
    assert response.json()["issue"]["team_id"] == team_id

    response = client.patch(
        f"/issues/{submitted['id']}/status",
        json={"status": "Closed", "note": "Filled"},
        headers=headers_for(authority),
    )
    assert response.status_code == 200
    assert response.json()["issue"]["status"] == "Closed"

    response = client.patch(
        f"/issues/{submitted['id']}/team",
        json={"team_id": team_id},
        headers=headers_for(authority),
    )
    assert response.status_code == 409
    assert response.json()["error"] == "TerminalStateError"

    response = client.patch(
        f"/issues/{submitted['id']}/status",
        json={"status": "Pending"},
        headers=headers_for(authority),
    )
    assert response.status_code == 409


def test_status_change_forbidden_for_citizen(client, submitted, citizen, headers_for):
    response = client.patch(
        f"/issues/{submitted['id']}/status",
        json={"status": "Resolved"},
        headers=headers_for(citizen),
    )
    assert response.status_code == 403


def test_status_change_invalid_value(client, submitted, authority, headers_for):
    response = client.patch(
        f"/issues/{submitted['id']}/status",
        json={"status": "Done"},
        headers=headers_for(authority),
    )
    assert response.status_code == 400


def test_status_change_missing_body(client, submitted, authority, headers_for):
    response = client.patch(f"/issues/{submitted['id']}/status", json={}, headers=headers_for(authority))
    assert response.status_code == 422


def test_moderation_and_explore(client, submitted, admin, headers_for):
    assert client.get("/issues/explore").json()["total_count"] == 0

    response = client.patch(
        f"/moderation/issues/{submitted['id']}",
        json={"decision": "Reject"},
        headers=headers_for(admin),
    )
    assert response.status_code == 400

    response = client.patch(
        f"/moderation/issues/{submitted['id']}",
        json={"decision": "Approve"},
        headers=headers_for(admin),
    )
    assert response.status_code == 200
    assert response.json()["issue"]["visibility"] == "Approved"

    page = client.get("/issues/explore").json()
    assert page["total_count"] == 1
    assert page["data"][0]["id"] == submitted["id"]


def test_moderation_forbidden_for_authority(client, submitted, authority, headers_for):
    response = client.get("/moderation", headers=headers_for(authority))
    assert response.status_code == 403


def test_comment_flow(client, submitted, citizen, other_citizen, admin, headers_for):
    response = client.post(
        "/comments",
        json={"issue_id": submitted["id"], "content": "Nearly lost a tyre here"},
        headers=headers_for(other_citizen),
    )
    assert response.status_code == 201
    assert response.json()["message"] == "successfully commented!"
    comment = response.json()["comment"]
    assert comment["status"] == "Pending"

    response = client.post(
        "/comments",
        json={"issue_id": submitted["id"], "content": "bump"},
        headers=headers_for(citizen),
    )
    assert response.status_code == 403

    queue = client.get("/moderation", headers=headers_for(admin)).json()
    assert [c["id"] for c in queue["comments"]] == [comment["id"]]

    response = client.patch(
        f"/moderation/comments/{comment['id']}",
        json={"decision": "Approve"},
        headers=headers_for(admin),
    )
    assert response.status_code == 200
    assert response.json()["comment"]["status"] == "Approved"

    issue = client.get(f"/issues/{submitted['id']}", headers=headers_for(citizen)).json()
    assert [c["id"] for c in issue["comments"]] == [comment["id"]]


def test_list_and_mine(client, submitted, citizen, other_citizen, authority, headers_for):
    client.post(
        "/issues",
        json={"description": "minor litter", "address": "Market Road"},
        headers=headers_for(other_citizen),
    )

    response = client.get("/issues", params={"priority": "Critical"}, headers=headers_for(authority))
    assert response.status_code == 200
    assert [issue["id"] for issue in response.json()] == [submitted["id"]]

    response = client.get("/issues/mine", headers=headers_for(citizen))
    assert [issue["id"] for issue in response.json()] == [submitted["id"]]

    response = client.get("/issues", params={"status": "Done"}, headers=headers_for(authority))
    assert response.status_code == 400


def test_delete_issue(client, submitted, admin, authority, headers_for):
    response = client.delete(f"/issues/{submitted['id']}", headers=headers_for(authority))
    assert response.status_code == 403

    response = client.delete(f"/issues/{submitted['id']}", headers=headers_for(admin))
    assert response.status_code == 204

    assert client.get(f"/issues/{submitted['id']}", headers=headers_for(admin)).status_code == 404


def test_teams_listing(client, authority, citizen, headers_for):
    client.post("/teams", json={"name": "Sanitation"}, headers=headers_for(authority))
    response = client.get("/teams", headers=headers_for(authority))
    assert [team["name"] for team in response.json()] == ["Sanitation"]

    team_id = response.json()[0]["id"]
    assert client.get(f"/teams/{team_id}", headers=headers_for(authority)).status_code == 200
    assert client.get("/teams", headers=headers_for(citizen)).status_code == 403
