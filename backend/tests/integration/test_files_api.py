"""Integration tests for the counter-gated file endpoints."""

from __future__ import annotations

from tests.helpers.http import API, access_token_of, auth_headers, register


def _token(client) -> str:
    return access_token_of(register(client))


def test_count_requires_auth(client) -> None:
    resp = client.post(f"{API}/files/count", json={"count": 1})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_count_defaults_to_one_file_upload(client) -> None:
    token = _token(client)

    resp = client.post(f"{API}/files/count", json={}, headers=auth_headers(token))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["filesUploaded"] == 1
    assert data["totalFilesUploaded"] == 1


def test_counters_accumulate_into_the_total(client) -> None:
    token = _token(client)
    headers = auth_headers(token)

    client.post(f"{API}/files/count", json={"count": 3}, headers=headers)
    batch = {"count": 2, "counter": "batchAnalysis"}
    client.post(f"{API}/files/count", json=batch, headers=headers)
    client.post(f"{API}/files/count", json={"counter": "compare_resumes"}, headers=headers)

    stats = client.get(f"{API}/files/stats", headers=headers).get_json()["data"]
    assert stats["filesUploaded"] == 3
    assert stats["batchAnalysis"] == 2
    assert stats["compareResumes"] == 1
    assert stats["selectedCandidate"] == 0
    assert stats["totalFilesUploaded"] == 6
    assert stats["totalUsage"] == 6
    assert stats["limits"]["selected_candidate"] == 10


def test_selected_candidate_limit(client) -> None:
    token = _token(client)
    headers = auth_headers(token)
    body = {"counter": "selectedCandidate", "count": 1}

    for _ in range(10):
        assert client.post(f"{API}/files/count", json=body, headers=headers).status_code == 200

    blocked = client.post(f"{API}/files/count", json=body, headers=headers)
    assert blocked.status_code == 429
    envelope = blocked.get_json()
    assert envelope["error"] == "limit_exceeded"
    assert envelope["details"] == {"counter": "selected_candidate", "limit": 10, "current": 10}

    stats = client.get(f"{API}/files/stats", headers=headers).get_json()["data"]
    assert stats["selectedCandidate"] == 10
    # Selections are not uploads
    assert stats["totalFilesUploaded"] == 0
    assert stats["totalUsage"] == 10


def test_profile_reflects_counters(client) -> None:
    token = _token(client)
    client.post(f"{API}/files/count", json={"count": 4}, headers=auth_headers(token))

    user = client.get(f"{API}/auth/profile", headers=auth_headers(token)).get_json()["data"]["user"]

    assert user["filesUploaded"] == 4


def test_invalid_payloads(client) -> None:
    headers = auth_headers(_token(client))

    for body in ({"count": 0}, {"count": "3"}, {"counter": "downloads"}, {"count": 1.5}):
        resp = client.post(f"{API}/files/count", json=body, headers=headers)
        assert resp.status_code == 422, body
        assert resp.get_json()["error"] == "validation_error"
