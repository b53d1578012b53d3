import pytest
from fastapi.testclient import TestClient

from conftest import ALICE, BOB
from urban_node.shared_runtime import UrbanRuntime
from urban_node.storage.directory import MemoryDirectory
from urban_node.urban_api import create_app

CFG = {"cors": {"origins": ["http://localhost:5173"]}}


@pytest.fixture
def client():
    runtime = UrbanRuntime(MemoryDirectory(address="0x00000000000000000000000000000000000c0ffe"), cfg=CFG)
    app = create_app(runtime=runtime, cfg=CFG)
    with TestClient(app) as c:
        yield c


def _create(client, wallet=ALICE, **overrides):
    body = {
        "title": "Pocket park",
        "description": "Turn the empty lot into a park",
        "location": "District 12",
        "vote_count": 42,
    }
    body.update(overrides)
    return client.post("/proposals", json=body, headers={"X-Wallet-Address": wallet})


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "directory_available": True}


def test_create_and_list(client):
    r = _create(client)
    assert r.status_code == 200
    created = r.json()["proposal"]
    assert created["status"] == "pending"
    assert created["owner"] == ALICE
    assert created["encoded_votes"].startswith("FHE-")

    listed = client.get("/proposals").json()["proposals"]
    assert [p["id"] for p in listed] == [created["id"]]

    one = client.get(f"/proposals/{created['id']}").json()["proposal"]
    assert one["title"] == "Pocket park"


def test_create_requires_wallet(client):
    r = client.post(
        "/proposals",
        json={"title": "t", "location": "District 1", "vote_count": 1},
    )
    assert r.status_code == 401


def test_create_rejects_unknown_district(client):
    r = _create(client, location="Downtown")
    assert r.status_code == 400
    notice = client.get("/notifications/current").json()["notice"]
    assert notice["status"] == "error"
    assert notice["message"].startswith("Submission failed:")


def test_success_notice_after_create(client):
    _create(client)
    notice = client.get("/notifications/current").json()["notice"]
    assert notice == {
        "status": "success",
        "message": "Encrypted proposal submitted securely!",
        "expires_at": notice["expires_at"],
    }
    assert notice["expires_at"] is not None


def test_unknown_proposal_is_404(client):
    assert client.get("/proposals/prop-0-zzzz").status_code == 404
    r = client.post("/proposals/prop-0-zzzz/approve", headers={"X-Wallet-Address": ALICE})
    assert r.status_code == 404


def test_owner_approves_then_reject_conflicts(client):
    pid = _create(client).json()["proposal"]["id"]
    headers = {"X-Wallet-Address": ALICE.lower()}

    r = client.post(f"/proposals/{pid}/approve", headers=headers)
    assert r.status_code == 200
    assert r.json()["proposal"]["status"] == "approved"

    r = client.post(f"/proposals/{pid}/reject", headers=headers)
    assert r.status_code == 409
    assert client.get(f"/proposals/{pid}").json()["proposal"]["status"] == "approved"


def test_non_owner_cannot_reject(client):
    pid = _create(client).json()["proposal"]["id"]
    r = client.post(f"/proposals/{pid}/reject", headers={"X-Wallet-Address": BOB})
    assert r.status_code == 403
    assert client.get(f"/proposals/{pid}").json()["proposal"]["status"] == "pending"


def test_stats_and_districts(client):
    pid = _create(client, location="District 1").json()["proposal"]["id"]
    _create(client, location="District 1")
    _create(client, location="District 2")
    client.post(f"/proposals/{pid}/approve", headers={"X-Wallet-Address": ALICE})

    stats = client.get("/proposals/stats").json()
    assert stats["total"] == 3
    assert stats["approved"] == 1
    assert stats["pending"] == 2
    assert stats["rejected"] == 0

    districts = client.get("/proposals/districts").json()["districts"]
    assert len(districts) == 16
    assert len(districts["District 1"]) == 2
    assert len(districts["District 2"]) == 1
    assert districts["District 16"] == []


def test_challenge_is_stable_for_the_runtime(client):
    first = client.get("/disclosure/challenge").json()
    second = client.get("/disclosure/challenge").json()

    assert first["message"] == second["message"]
    lines = first["message"].split("\n")
    assert [line.split(":", 1)[0] for line in lines] == [
        "publickey",
        "contractAddresses",
        "contractsChainId",
        "startTimestamp",
        "durationDays",
    ]
    assert lines[1] == "contractAddresses:0x00000000000000000000000000000000000c0ffe"
    assert lines[4] == "durationDays:30"


def test_reveal_with_signature(client):
    pid = _create(client, vote_count=42).json()["proposal"]["id"]
    r = client.post(
        f"/proposals/{pid}/reveal",
        json={"signature": "0x1234"},
        headers={"X-Wallet-Address": BOB},
    )
    assert r.status_code == 200
    assert r.json()["votes"] == 42.0


def test_reveal_without_signature_is_declined(client):
    pid = _create(client).json()["proposal"]["id"]
    r = client.post(f"/proposals/{pid}/reveal", json={}, headers={"X-Wallet-Address": BOB})
    assert r.status_code == 403

    r = client.post(f"/proposals/{pid}/reveal", json={"signature": "0x1"})
    assert r.status_code == 403
