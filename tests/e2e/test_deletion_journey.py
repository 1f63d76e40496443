from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.features.account_deletion import account_deletion_router

AUTH = {"Authorization": "Bearer token-123"}
OPERATOR = {"x-cron-secret": "cron-secret"}


def _client(deletion_service):
    app = FastAPI()
    app.include_router(account_deletion_router)
    app.state.account_deletion_service = deletion_service
    return TestClient(app)


def test_cancelled_deletion_is_never_finalized(deletion_service, users, clock, notifier):
    client = _client(deletion_service)

    assert client.post("/account/delete", headers=AUTH).status_code == 200

    clock.advance(days=10)
    assert client.post("/account/delete/cancel", headers=AUTH).status_code == 200

    clock.advance(days=21)
    report = client.post("/account/delete/finalize", headers=OPERATOR).json()

    assert report["deleted_users"] == 0
    assert users.get_user("user-123") is not None
    assert client.get("/account/delete/status", headers=AUTH).json()["state"] == "active"
    assert [kind for _, kind, _ in notifier.sent] == ["deletion_scheduled"]


def test_uncancelled_deletion_is_finalized_once(deletion_service, users, clock, notifier):
    client = _client(deletion_service)

    assert client.post("/account/delete", headers=AUTH).status_code == 200

    clock.advance(days=29)
    early = client.post("/account/delete/finalize", headers=OPERATOR).json()
    assert early["due_users"] == 0
    assert client.get("/account/delete/status", headers=AUTH).json()["state"] == "scheduled"

    clock.advance(days=2)
    report = client.post("/account/delete/finalize", headers=OPERATOR).json()
    assert report["deleted_user_ids"] == ["user-123"]
    assert report["email_sent"] == 1
    assert users.get_user("user-123") is None

    # The token no longer resolves to a user
    assert client.get("/account/delete/status", headers=AUTH).status_code == 401

    again = client.post("/account/delete/finalize", headers=OPERATOR).json()
    assert again["due_users"] == 0
    assert users.delete_calls == ["user-123"]
    assert [kind for _, kind, _ in notifier.sent] == ["deletion_scheduled", "deletion_completed"]
